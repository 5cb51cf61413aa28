"""对话请求与响应的数据模型。

本模块定义客户端内部共享的标准数据结构：

- ChatMessage: 一条对话消息（system/user/assistant），不可变。
- ChatMessageRequest: 发给 /api/chat 的完整请求。
- ChatMessageResponse: 单次响应，或流式响应中的一帧。
- StreamError: 流式响应的终止错误标记。

与 JSON 之间的转换集中在 to_payload / from_payload 中，
解析失败统一抛出 DecodeError。
"""

from base64 import b64encode
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ollama_core.domain.exceptions import BusinessError, DecodeError


class MessageRole(str, Enum):
    """消息角色，值即为线上传输的字符串。"""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass(frozen=True)
class Image:
    """图片附件，线上以 base64 字符串传输。"""

    base64: str

    @classmethod
    def from_base64(cls, data: str) -> "Image":
        return cls(base64=data)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Image":
        return cls(base64=b64encode(data).decode("ascii"))


@dataclass(frozen=True)
class ChatMessage:
    """一条对话消息，既可用于请求，也可用于响应。

    - role: 消息角色。
    - content: 纯文本内容。
    - images: 可选的图片附件（按顺序）。

    实例不可变，with_images / add_image 会返回新的消息。
    """

    role: MessageRole
    content: str
    images: Optional[Tuple[Image, ...]] = None

    @classmethod
    def user(cls, content: str, images: Optional[Sequence[Image]] = None) -> "ChatMessage":
        return cls(MessageRole.USER, content, _as_images(images))

    @classmethod
    def assistant(cls, content: str, images: Optional[Sequence[Image]] = None) -> "ChatMessage":
        return cls(MessageRole.ASSISTANT, content, _as_images(images))

    @classmethod
    def system(cls, content: str, images: Optional[Sequence[Image]] = None) -> "ChatMessage":
        return cls(MessageRole.SYSTEM, content, _as_images(images))

    def with_images(self, images: Sequence[Image]) -> "ChatMessage":
        return replace(self, images=tuple(images))

    def add_image(self, image: Image) -> "ChatMessage":
        return replace(self, images=(self.images or ()) + (image,))

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.images is not None:
            payload["images"] = [img.base64 for img in self.images]
        return payload

    @classmethod
    def from_payload(cls, payload: Any) -> "ChatMessage":
        if not isinstance(payload, Mapping):
            raise DecodeError(code="DECODE_ERROR", message="message must be an object")
        try:
            role = MessageRole(payload.get("role"))
        except ValueError:
            raise DecodeError(code="DECODE_ERROR", message=f"unknown role: {payload.get('role')!r}")
        content = payload.get("content")
        if not isinstance(content, str):
            raise DecodeError(code="DECODE_ERROR", message="message.content must be a string")
        images_raw = payload.get("images")
        images = None
        if images_raw is not None:
            if not isinstance(images_raw, list) or not all(isinstance(i, str) for i in images_raw):
                raise DecodeError(code="DECODE_ERROR", message="message.images must be a list of strings")
            images = tuple(Image(base64=i) for i in images_raw)
        return cls(role=role, content=content, images=images)


def _as_images(images: Optional[Sequence[Image]]) -> Optional[Tuple[Image, ...]]:
    return tuple(images) if images is not None else None


@dataclass
class ChatMessageRequest:
    """一次 /api/chat 请求。

    messages 与 stream 会被上层（历史管理、传输层）改写，
    其余字段原样序列化。options 为生成参数（temperature、num_ctx 等），
    对客户端不透明。
    """

    model_name: str
    messages: List[ChatMessage]
    options: Optional[Dict[str, Any]] = None
    template: Optional[str] = None
    format: Optional[str] = None
    keep_alive: Optional[str] = None
    stream: bool = False

    def with_options(self, options: Mapping[str, Any]) -> "ChatMessageRequest":
        self.options = dict(options)
        return self

    def with_template(self, template: str) -> "ChatMessageRequest":
        self.template = template
        return self

    def with_format(self, fmt: str) -> "ChatMessageRequest":
        self.format = fmt
        return self

    def with_keep_alive(self, keep_alive: str) -> "ChatMessageRequest":
        self.keep_alive = keep_alive
        return self

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model_name,
            "messages": [m.to_payload() for m in self.messages],
            "stream": self.stream,
        }
        if self.options is not None:
            payload["options"] = self.options
        if self.template is not None:
            payload["template"] = self.template
        if self.format is not None:
            payload["format"] = self.format
        if self.keep_alive is not None:
            payload["keep_alive"] = self.keep_alive
        return payload


_FINAL_FIELDS = (
    "total_duration",
    "prompt_eval_count",
    "prompt_eval_duration",
    "eval_count",
    "eval_duration",
)


@dataclass
class ChatMessageFinalResponseData:
    """生成结束时附带的统计信息（时长单位为纳秒）。"""

    total_duration: int
    prompt_eval_count: int
    prompt_eval_duration: int
    eval_count: int
    eval_duration: int


@dataclass
class ChatMessageResponse:
    """单次响应或流式中的一帧。

    - model: 实际使用的模型名。
    - created_at: 服务端时间戳字符串，如 "2023-08-04T08:52:19.385406455-07:00"。
    - message: 本帧的助手消息（流式时为增量内容）。
    - done: 是否为最后一帧。
    - final_data: 仅在 done 为 True 时存在的统计信息。
    """

    model: str
    created_at: str
    message: Optional[ChatMessage] = None
    done: bool = False
    final_data: Optional[ChatMessageFinalResponseData] = None

    @classmethod
    def from_payload(cls, data: Any) -> "ChatMessageResponse":
        if not isinstance(data, Mapping):
            raise DecodeError(code="DECODE_ERROR", message="response must be a JSON object")
        model = data.get("model")
        created_at = data.get("created_at")
        done = data.get("done")
        if not isinstance(model, str) or not isinstance(created_at, str):
            raise DecodeError(code="DECODE_ERROR", message="response.model/created_at must be strings")
        if not isinstance(done, bool):
            raise DecodeError(code="DECODE_ERROR", message="response.done must be a boolean")
        msg_raw = data.get("message")
        message = ChatMessage.from_payload(msg_raw) if msg_raw is not None else None
        final_data = None
        if done and all(_is_count(data.get(k)) for k in _FINAL_FIELDS):
            final_data = ChatMessageFinalResponseData(**{k: data[k] for k in _FINAL_FIELDS})
        return cls(
            model=model,
            created_at=created_at,
            message=message,
            done=done,
            final_data=final_data,
        )


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


@dataclass
class StreamError:
    """流式响应的终止标记。

    消费方收到它即视为流结束，之后不会再有任何元素。
    """

    error: BusinessError
