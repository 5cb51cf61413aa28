"""带会话历史的对话 Agent。

在 ChatAgent 之上维护每个会话 ID 的消息历史，调用方每次只需传入新的一条消息：

1. 读取已存历史，拼上新消息，作为本次实际发送的 messages。
2. 发送前先把新消息写入历史（此时不做长度裁剪）。
3. 成功后写入助手回复并按上限裁剪；失败（包括取消）则撤销第 2 步写入的消息再抛出。

同一会话 ID 的调用默认串行执行（serialize_calls=True），
否则并发调用的写入顺序无法保证。不同会话 ID 之间互不阻塞。
"""

import asyncio
import logging
import weakref
from contextlib import nullcontext
from dataclasses import replace
from typing import Any, AsyncIterator, Dict, List, Optional

from ollama_core.agents.chat_agent import ChatAgent
from ollama_core.domain.exceptions import DecodeError, ValidationError
from ollama_core.domain.history import MessagesHistory
from ollama_core.domain.models import ChatMessage, ChatMessageRequest, ChatMessageResponse, StreamError
from ollama_core.providers.base import StreamItem


class HistoryAwareChatAgent:
    def __init__(
        self,
        base: ChatAgent,
        history: Optional[MessagesHistory] = None,
        serialize_calls: bool = True,
    ):
        self._base = base
        self._history = history if history is not None else MessagesHistory()
        self._serialize_calls = serialize_calls
        # 锁只被进行中的调用引用，调用结束后自动回收
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    @property
    def history(self) -> MessagesHistory:
        return self._history

    def get_history(self, conversation_id: str) -> List[ChatMessage]:
        return self._history.snapshot(conversation_id)

    def clear_history(self, conversation_id: str) -> None:
        self._history.clear(conversation_id)

    # ---- 无历史调用，直接委托 ----

    async def send(self, req: ChatMessageRequest) -> ChatMessageResponse:
        return await self._base.send(req)

    async def send_stream(self, req: ChatMessageRequest) -> AsyncIterator[StreamItem]:
        return await self._base.send_stream(req)

    # ---- 带历史调用 ----

    async def send_with_history(self, conversation_id: str, req: ChatMessageRequest) -> ChatMessageResponse:
        """发送一条新消息并维护历史，返回完整响应。

        req.messages 最多包含一条新消息；为空时仅发送已有历史。
        """

        self._check_new_messages(conversation_id, req)
        log_ctx = {"conversation_id": conversation_id}
        async with self._lock_for(conversation_id):
            req, appended = self._prefill(conversation_id, req)
            try:
                result = await self._base.send(req, log_ctx)
                if result.message is None:
                    raise DecodeError(code="DECODE_ERROR", message="response has no message")
            except BaseException:
                self._rollback(conversation_id, appended, log_ctx)
                raise
            self._history.append(conversation_id, result.message)
            return result

    async def send_stream_with_history(
        self,
        conversation_id: str,
        req: ChatMessageRequest,
    ) -> AsyncIterator[StreamItem]:
        """流式版本的 send_with_history。

        参数校验立即进行；加锁、写入新消息和发送请求都推迟到第一次迭代，
        因此未被迭代就丢弃的流不会改动历史，也不会占用锁。
        打开流失败时在第一次迭代抛出。
        收到 done=True 的帧时把拼接后的回复写入历史；
        流以 StreamError 结束或在完成前被放弃时撤销新消息。
        """

        self._check_new_messages(conversation_id, req)
        return self._stream_with_history(conversation_id, req)

    # ---- 辅助方法 ----

    def _lock_for(self, conversation_id: str):
        if not self._serialize_calls:
            return nullcontext()
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[conversation_id] = lock
        return lock

    @staticmethod
    def _check_new_messages(conversation_id: str, req: ChatMessageRequest) -> None:
        if len(req.messages) > 1:
            raise ValidationError(
                code="VALIDATION_ERROR",
                message="send_with_history expects at most one new message per call",
                conversation_id=conversation_id,
                message_count=len(req.messages),
            )

    def _prefill(self, conversation_id: str, req: ChatMessageRequest):
        """把历史拼到请求前面，并把新消息写入历史。

        返回改写后的请求副本，以及是否写入了新消息。
        """

        messages = self._history.snapshot(conversation_id)
        if not req.messages:
            return replace(req, messages=messages), False
        new_message = req.messages[0]
        messages.append(new_message)
        self._history.append(conversation_id, new_message, trim=False)
        return replace(req, messages=messages), True

    def _rollback(self, conversation_id: str, appended: bool, log_ctx: Dict[str, Any]) -> None:
        if not appended:
            return
        self._history.rollback_last(conversation_id)
        ChatAgent._log(logging.INFO, "Rolled back unanswered message", log_ctx)

    async def _stream_with_history(
        self,
        conversation_id: str,
        req: ChatMessageRequest,
    ) -> AsyncIterator[StreamItem]:
        log_ctx = {"conversation_id": conversation_id}
        async with self._lock_for(conversation_id):
            req, appended = self._prefill(conversation_id, req)
            completed = False
            stream: Optional[AsyncIterator[StreamItem]] = None
            try:
                stream = await self._base.send_stream(req, log_ctx)
                parts: List[str] = []
                async for item in stream:
                    if isinstance(item, StreamError):
                        yield item
                        return
                    if item.message is not None:
                        parts.append(item.message.content)
                    if item.done:
                        self._history.append(conversation_id, ChatMessage.assistant("".join(parts)))
                        completed = True
                    yield item
                    if completed:
                        return
            finally:
                if not completed:
                    self._rollback(conversation_id, appended, log_ctx)
                aclose = getattr(stream, "aclose", None)
                if aclose is not None:
                    await aclose()
