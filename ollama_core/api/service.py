"""对外 API 服务模块。

提供按配置组装 Agent 的工厂函数。不维护任何全局客户端实例，
调用方持有返回的 Agent 并显式传递。
"""

from typing import Optional, Union

import httpx

from ollama_core.agents.chat_agent import ChatAgent
from ollama_core.agents.history_agent import HistoryAwareChatAgent
from ollama_core.config.settings import Settings, settings
from ollama_core.domain.history import MessagesHistory
from ollama_core.providers import create_provider


def create_chat_agent(
    cfg: Settings = settings,
    *,
    history: Optional[bool] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Union[ChatAgent, HistoryAwareChatAgent]:
    """创建对话 Agent。

    Args:
        cfg: 配置对象，默认使用全局 settings。
        history: 是否启用会话历史；为 None 时取 cfg.history_enabled。
        transport: 可选的 httpx 传输层（测试用）。

    Returns:
        未启用历史时返回 ChatAgent，否则返回包裹它的 HistoryAwareChatAgent。
    """
    base = ChatAgent(create_provider(cfg, transport=transport))
    enabled = cfg.history_enabled if history is None else history
    if not enabled:
        return base
    return HistoryAwareChatAgent(
        base,
        history=MessagesHistory(messages_limit=cfg.history_messages_limit),
        serialize_calls=cfg.serialize_history_calls,
    )
