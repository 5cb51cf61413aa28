"""Ollama Core 顶层包。

该包提供 /api/chat 对话接口的异步客户端，
包括配置加载、领域模型、httpx 传输层、会话历史管理与日志。
"""

from ollama_core.agents.chat_agent import ChatAgent
from ollama_core.agents.history_agent import HistoryAwareChatAgent
from ollama_core.api.service import create_chat_agent
from ollama_core.domain.exceptions import (
    BusinessError,
    DecodeError,
    RemoteError,
    TransportError,
    ValidationError,
)
from ollama_core.domain.history import MessagesHistory
from ollama_core.domain.models import (
    ChatMessage,
    ChatMessageFinalResponseData,
    ChatMessageRequest,
    ChatMessageResponse,
    Image,
    MessageRole,
    StreamError,
)
from ollama_core.providers.ollama_client import OllamaClient

__all__ = [
    "BusinessError",
    "ChatAgent",
    "ChatMessage",
    "ChatMessageFinalResponseData",
    "ChatMessageRequest",
    "ChatMessageResponse",
    "DecodeError",
    "HistoryAwareChatAgent",
    "Image",
    "MessageRole",
    "MessagesHistory",
    "OllamaClient",
    "RemoteError",
    "StreamError",
    "TransportError",
    "ValidationError",
    "create_chat_agent",
]
