"""传输层抽象接口。

上层 Agent 不直接依赖 httpx，而是依赖此协议：

- OllamaClient 是默认实现，负责把 ChatMessageRequest 转成 HTTP 请求，
  并把响应 JSON 解析为 ChatMessageResponse。
- 测试或其他部署方式可以提供任意满足该协议的对象。
"""

from typing import AsyncIterator, Protocol, Union

from ollama_core.domain.models import ChatMessageRequest, ChatMessageResponse, StreamError

StreamItem = Union[ChatMessageResponse, StreamError]


class ChatTransport(Protocol):
    """/api/chat 传输协议。

    - send_chat_messages(req): 非流式调用，返回完整响应。
    - send_chat_messages_stream(req): 流式调用，初始发送失败直接抛出；
      之后返回逐帧产出的异步迭代器，出错时以 StreamError 结束。
    """

    async def send_chat_messages(self, req: ChatMessageRequest) -> ChatMessageResponse:
        ...

    async def send_chat_messages_stream(self, req: ChatMessageRequest) -> AsyncIterator[StreamItem]:
        ...
