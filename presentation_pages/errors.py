from __future__ import annotations

from typing import Any


class PageError(Exception):
    """Base class for every error the page layer reports back to the operator."""

    code = "Error"

    def __init__(self, message: str, *, code: str | None = None, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.extra = extra

    def to_result(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"status": "error", "message": self.message, "code": self.code}
        payload.update(self.extra)
        return payload


class ValidationError(PageError, ValueError):
    code = "Invalid"


class NotFoundError(PageError, LookupError):
    code = "NotFound"


class PermissionDeniedError(PageError, PermissionError):
    code = "NotWritable"


class ParseError(PageError):
    code = "MalformedPayload"


class ProtectedResourceError(PageError):
    code = "Protected"
