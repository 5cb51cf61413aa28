"""无状态对话 Agent。

只负责把请求交给传输层并记录调用日志，不保存任何会话历史。
需要历史管理时，用 HistoryAwareChatAgent 包裹本类。
"""

import logging
import time
from typing import Any, AsyncIterator, Dict, Optional
from uuid import uuid4

from ollama_core.domain.exceptions import BusinessError
from ollama_core.domain.models import ChatMessageRequest, ChatMessageResponse
from ollama_core.infrastructure.logging.logger import logger
from ollama_core.providers.base import ChatTransport, StreamItem


class ChatAgent:
    def __init__(self, transport: ChatTransport):
        self._transport = transport

    @property
    def transport(self) -> ChatTransport:
        return self._transport

    async def send(self, req: ChatMessageRequest, log_ctx: Optional[Dict[str, Any]] = None) -> ChatMessageResponse:
        """非流式调用，失败时记录日志并原样抛出。"""

        log_ctx = self._new_log_ctx(log_ctx)
        start_time = time.time()
        self._log(
            logging.INFO,
            "Calling chat endpoint",
            log_ctx,
            model=req.model_name,
            message_count=len(req.messages),
        )
        try:
            result = await self._transport.send_chat_messages(req)
        except BusinessError as e:
            self._log(logging.WARNING, "Chat call failed", log_ctx, code=e.code, error=e.message)
            raise
        fields: Dict[str, Any] = {"elapsed_seconds": round(time.time() - start_time, 2), "done": result.done}
        if result.final_data:
            fields["eval_count"] = result.final_data.eval_count
            fields["prompt_eval_count"] = result.final_data.prompt_eval_count
        self._log(logging.INFO, "Completed chat call", log_ctx, **fields)
        return result

    async def send_stream(
        self,
        req: ChatMessageRequest,
        log_ctx: Optional[Dict[str, Any]] = None,
    ) -> AsyncIterator[StreamItem]:
        """流式调用；初始发送失败时抛出，之后交给调用方逐帧消费。"""

        log_ctx = self._new_log_ctx(log_ctx)
        self._log(
            logging.INFO,
            "Opening chat stream",
            log_ctx,
            model=req.model_name,
            message_count=len(req.messages),
        )
        try:
            return await self._transport.send_chat_messages_stream(req)
        except BusinessError as e:
            self._log(logging.WARNING, "Chat stream failed to open", log_ctx, code=e.code, error=e.message)
            raise

    @staticmethod
    def _new_log_ctx(log_ctx: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        ctx = dict(log_ctx or {})
        ctx.setdefault("trace_id", f"tr-{uuid4().hex}")
        return ctx

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
