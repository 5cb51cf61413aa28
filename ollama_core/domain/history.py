"""会话历史存储。

按会话 ID 保存有序的 ChatMessage 列表，生命周期与所属客户端实例一致，
不做持久化。除显式清空外，只有 rollback_last 会让列表变短。
"""

from typing import Dict, List, Optional, Protocol

from ollama_core.domain.models import ChatMessage, MessageRole


class HistoryStore(Protocol):
    def append(self, conversation_id: str, message: ChatMessage, trim: bool = True) -> None:
        ...

    def rollback_last(self, conversation_id: str) -> None:
        ...

    def snapshot(self, conversation_id: str) -> List[ChatMessage]:
        ...

    def clear(self, conversation_id: str) -> None:
        ...


class MessagesHistory(HistoryStore):
    """内存中的会话历史。

    messages_limit 为 None 时不限制长度；设置后达到上限会丢弃最旧的一条，
    位于开头的 system 消息保留不动。
    """

    def __init__(self, messages_limit: Optional[int] = None):
        if messages_limit is not None and messages_limit < 1:
            raise ValueError("messages_limit must be >= 1")
        self._messages_limit = messages_limit
        self._messages_by_id: Dict[str, List[ChatMessage]] = {}

    @property
    def messages_limit(self) -> Optional[int]:
        return self._messages_limit

    def append(self, conversation_id: str, message: ChatMessage, trim: bool = True) -> None:
        """追加一条消息。

        trim 为 False 时暂不按 messages_limit 裁剪，用于发送前的预写入，
        保证 rollback_last 之后历史与写入前完全一致。
        """
        messages = self._messages_by_id.setdefault(conversation_id, [])
        messages.append(message)
        if trim:
            self._trim(messages)

    def _trim(self, messages: List[ChatMessage]) -> None:
        if self._messages_limit is None:
            return
        while len(messages) > self._messages_limit:
            keep_head = self._messages_limit > 1 and messages[0].role == MessageRole.SYSTEM
            del messages[1 if keep_head else 0]

    def rollback_last(self, conversation_id: str) -> None:
        messages = self._messages_by_id.get(conversation_id)
        if messages:
            messages.pop()

    def snapshot(self, conversation_id: str) -> List[ChatMessage]:
        return list(self._messages_by_id.get(conversation_id, ()))

    def clear(self, conversation_id: str) -> None:
        self._messages_by_id.pop(conversation_id, None)

    def clear_all(self) -> None:
        self._messages_by_id.clear()

    def ids(self) -> List[str]:
        return list(self._messages_by_id)

    def __contains__(self, conversation_id: object) -> bool:
        return conversation_id in self._messages_by_id

    def __len__(self) -> int:
        return len(self._messages_by_id)
