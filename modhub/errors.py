"""
Exceptions raised by domain operations and rendered as error envelopes.
"""

from __future__ import annotations


class ModhubError(Exception):
    """Base error carrying an HTTP status and a user-facing message."""

    status_code = 500
    default_message = "服务器内部错误"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ModhubError):
    status_code = 400
    default_message = "请求数据格式错误"


class UnauthorizedError(ModhubError):
    status_code = 401
    default_message = "未授权访问"


class NotFoundError(ModhubError):
    status_code = 404
    default_message = "接口不存在"


class MethodNotAllowedError(ModhubError):
    status_code = 405
    default_message = "方法不允许"


class StoreError(ModhubError):
    """The key-value store failed; details are logged, never returned."""

    status_code = 500
