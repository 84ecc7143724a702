"""Numeric error codes for the relay API.

Handlers raise ``ErrCode.X.with_messages(...)`` and convert the resulting
:class:`ErrCodeError` to an ``HTTPException`` with :func:`handle_err_code`.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any

from fastapi import HTTPException, status


class ErrCode(IntEnum):
    UNKNOWN_ERROR = 1000
    INTERNAL_SERVER_ERROR = 1001
    INVALID_REQUEST = 1002

    TASK_NOT_FOUND = 2000
    TASK_ACCESS_DENIED = 2001

    PUSH_SUBSCRIPTION_NOT_FOUND = 3000
    PUSH_DISABLED = 3001
    VAPID_NOT_CONFIGURED = 3002

    def with_messages(self, *messages: str) -> ErrCodeError:
        return ErrCodeError(self, messages)

    def with_errors(self, *errors: BaseException) -> ErrCodeError:
        return ErrCodeError(self, tuple(str(err) for err in errors if err))


class ErrCodeError(Exception):
    def __init__(self, code: ErrCode, messages: tuple[str, ...] = ()) -> None:
        self.code = code
        self.messages = tuple(m for m in messages if m)
        super().__init__(self._format())

    def _format(self) -> str:
        head = f"[{self.code.name}:{self.code.value}]"
        if self.messages:
            return f"{head} {'; '.join(self.messages)}"
        return head

    def as_dict(self) -> dict[str, Any]:
        if not self.messages:
            return {"code": self.code.value, "msg": self.code.name.replace("_", " ").title(), "info": []}
        primary, *rest = self.messages
        data: dict[str, Any] = {"code": self.code.value, "msg": primary}
        if rest:
            data["info"] = rest
        return data


_STATUS_BY_CODE: dict[ErrCode, int] = {
    ErrCode.INVALID_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrCode.TASK_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrCode.TASK_ACCESS_DENIED: status.HTTP_403_FORBIDDEN,
    ErrCode.PUSH_SUBSCRIPTION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrCode.PUSH_DISABLED: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrCode.VAPID_NOT_CONFIGURED: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def handle_err_code(e: ErrCodeError) -> HTTPException:
    """Map an :class:`ErrCodeError` onto the HTTP status the client should see."""
    status_code = _STATUS_BY_CODE.get(e.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return HTTPException(status_code=status_code, detail=e.as_dict())
