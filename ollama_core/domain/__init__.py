"""领域层模型与协议。

包含：
- models: ChatMessage / ChatMessageRequest / ChatMessageResponse 等数据模型。
- history: 按会话 ID 保存消息的 MessagesHistory。
- exceptions: 业务异常类型定义。
"""
