"""传输层集成。

该包下的模块负责：
- 定义传输抽象接口 (base)。
- 提供 /api/chat 的 httpx 实现 (ollama_client)。
"""

from typing import Optional

import httpx

from ollama_core.config.settings import Settings, settings
from ollama_core.providers.base import ChatTransport, StreamItem
from ollama_core.providers.ollama_client import OllamaClient


def create_provider(
    cfg: Settings = settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ChatTransport:
    """根据配置创建传输层实例。"""

    return OllamaClient(cfg, transport=transport)


__all__ = ["ChatTransport", "OllamaClient", "StreamItem", "create_provider"]
