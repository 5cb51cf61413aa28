"""Ollama /api/chat 传输层实现。

本模块负责：

1. 接收统一的 ChatMessageRequest，并按调用方式强制设置 stream 字段。
2. 调用 POST {base_url}/api/chat，处理网络错误与非 2xx 响应。
3. 将响应 JSON（或 NDJSON 流中的每一行）解析为 ChatMessageResponse。

流式调用中，单帧解析失败或读取中断不会在迭代时抛异常，
而是产出一个 StreamError 作为最后一个元素。
"""

import json
import logging
from dataclasses import replace
from typing import AsyncIterator, Optional

import httpx

from ollama_core.config.settings import Settings, settings
from ollama_core.domain.exceptions import DecodeError, RemoteError, TransportError
from ollama_core.domain.models import ChatMessageRequest, ChatMessageResponse, StreamError
from ollama_core.infrastructure.logging.logger import logger
from ollama_core.providers.base import StreamItem


class OllamaClient:
    """/api/chat 的 httpx 异步客户端。

    - transport: 可选的 httpx 传输层，测试中注入 httpx.MockTransport。
    """

    name = "ollama"

    def __init__(self, cfg: Settings = settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._settings = cfg
        self._transport = transport

    @property
    def chat_url(self) -> str:
        return f"{self._settings.base_url}/api/chat"

    # ---- 非流式 ----

    async def send_chat_messages(self, req: ChatMessageRequest) -> ChatMessageResponse:
        payload = replace(req, stream=False).to_payload()
        async with self._new_client() as client:
            resp = await self._open(client, payload)
            try:
                await resp.aread()
            except httpx.RequestError as e:
                raise TransportError(code="TRANSPORT_ERROR", message=str(e))
            finally:
                await resp.aclose()
        try:
            data = resp.json()
        except ValueError as e:
            raise DecodeError(code="DECODE_ERROR", message=f"invalid JSON body: {e}")
        return ChatMessageResponse.from_payload(data)

    # ---- 流式 ----

    async def send_chat_messages_stream(self, req: ChatMessageRequest) -> AsyncIterator[StreamItem]:
        payload = replace(req, stream=True).to_payload()
        client = self._new_client()
        try:
            resp = await self._open(client, payload)
        except BaseException:
            await client.aclose()
            raise
        return self._iter_frames(client, resp)

    # ---- 辅助方法 ----

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._settings.http_timeout,
            trust_env=False,
            transport=self._transport,
        )

    async def _open(self, client: httpx.AsyncClient, payload: dict) -> httpx.Response:
        """发送请求并检查状态码，返回尚未读取响应体的 Response。"""

        try:
            request = client.build_request("POST", self.chat_url, json=payload)
            resp = await client.send(request, stream=True)
        except httpx.RequestError as e:
            raise TransportError(code="TRANSPORT_ERROR", message=str(e))
        if resp.is_success:
            return resp
        try:
            await resp.aread()
            body = resp.text
        except httpx.RequestError as e:
            body = f"failed to read error body: {e}"
        finally:
            await resp.aclose()
        raise RemoteError(code="REMOTE_ERROR", message=body, http_status=resp.status_code)

    async def _iter_frames(self, client: httpx.AsyncClient, resp: httpx.Response) -> AsyncIterator[StreamItem]:
        try:
            async for line in resp.aiter_lines():
                if not line.strip():
                    continue
                try:
                    chunk = ChatMessageResponse.from_payload(json.loads(line))
                except ValueError as e:
                    yield self._frame_error(DecodeError(code="DECODE_ERROR", message=str(e), frame=line))
                    return
                except DecodeError as e:
                    yield self._frame_error(e)
                    return
                yield chunk
                if chunk.done:
                    return
        except httpx.RequestError as e:
            yield self._frame_error(TransportError(code="TRANSPORT_ERROR", message=str(e)))
        finally:
            await resp.aclose()
            await client.aclose()

    @staticmethod
    def _frame_error(error) -> StreamError:
        logger.log(
            logging.WARNING,
            "Stream terminated by frame error",
            extra={"extra": {"code": error.code, "error": error.message}},
        )
        return StreamError(error=error)
