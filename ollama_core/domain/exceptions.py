"""统一业务异常模型。

所有跨模块抛出的错误都继承自 BusinessError，
调用方可以只捕获基类，也可以按类型区分传输层/服务端/解析错误。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "REMOTE_ERROR"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 conversation_id、frame 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class TransportError(BusinessError):
    """请求无法发出或响应体无法读取（连接失败、超时、连接中断等）。"""


class RemoteError(BusinessError):
    """服务端返回非 2xx 状态码，message 为响应体文本。"""


class DecodeError(BusinessError):
    """响应体（或流式中的某一帧）无法解析为预期结构。"""


class ValidationError(BusinessError):
    """参数或配置校验失败。"""
