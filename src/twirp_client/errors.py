"""Custom exceptions raised by the Twirp Python client."""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping


class ErrorCode(str, Enum):
    """Twirp error codes, valued by their wire representation."""

    CANCELED = "canceled"
    UNKNOWN = "unknown"
    INVALID_ARGUMENT = "invalid_argument"
    MALFORMED = "malformed"
    DEADLINE_EXCEEDED = "deadline_exceeded"
    NOT_FOUND = "not_found"
    BAD_ROUTE = "bad_route"
    ALREADY_EXISTS = "already_exists"
    PERMISSION_DENIED = "permission_denied"
    UNAUTHENTICATED = "unauthenticated"
    RESOURCE_EXHAUSTED = "resource_exhausted"
    FAILED_PRECONDITION = "failed_precondition"
    ABORTED = "aborted"
    OUT_OF_RANGE = "out_of_range"
    UNIMPLEMENTED = "unimplemented"
    INTERNAL = "internal"
    UNAVAILABLE = "unavailable"
    DATALOSS = "dataloss"

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]

    @classmethod
    def parse(cls, value: Any) -> "ErrorCode | None":
        """Return the member for ``value`` or ``None`` when it is not a known code."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value)
        except ValueError:
            return None


_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.CANCELED: 408,
    ErrorCode.UNKNOWN: 500,
    ErrorCode.INVALID_ARGUMENT: 400,
    ErrorCode.MALFORMED: 400,
    ErrorCode.DEADLINE_EXCEEDED: 408,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.BAD_ROUTE: 404,
    ErrorCode.ALREADY_EXISTS: 409,
    ErrorCode.PERMISSION_DENIED: 403,
    ErrorCode.UNAUTHENTICATED: 401,
    ErrorCode.RESOURCE_EXHAUSTED: 429,
    ErrorCode.FAILED_PRECONDITION: 412,
    ErrorCode.ABORTED: 409,
    ErrorCode.OUT_OF_RANGE: 400,
    ErrorCode.UNIMPLEMENTED: 501,
    ErrorCode.INTERNAL: 500,
    ErrorCode.UNAVAILABLE: 503,
    ErrorCode.DATALOSS: 500,
}


class TwirpClientError(Exception):
    """Base error for all client failures."""

    def __init__(self, message: str, *, context: Any | None = None) -> None:
        super().__init__(message)
        self.context = context


class TwirpError(TwirpClientError):
    """Raised when the server (or an intermediary) rejected the call."""

    def __init__(
        self,
        code: ErrorCode,
        msg: str,
        meta: Mapping[str, str] | None = None,
        *,
        context: Any | None = None,
    ) -> None:
        super().__init__(msg, context=context)
        self.code = code
        self.msg = msg
        self.meta: dict[str, str] = dict(meta or {})

    @property
    def http_status(self) -> int:
        return self.code.http_status

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.msg}"

    def __repr__(self) -> str:
        return f"TwirpError(code={self.code.value!r}, msg={self.msg!r}, meta={self.meta!r})"


class StreamClosedError(TwirpClientError):
    """Raised when a stream channel ended abnormally or is used after close."""

    def __init__(
        self,
        message: str,
        *,
        code: int | None = None,
        reason: str = "",
        context: Any | None = None,
    ) -> None:
        super().__init__(message, context=context)
        self.code = code
        self.reason = reason


class InputStreamBrokenError(StreamClosedError):
    """Raised to stream consumers when the outbound producer failed."""


class EmptyStreamError(StreamClosedError):
    """Raised when a channel ended before delivering its first message."""


__all__ = [
    "EmptyStreamError",
    "ErrorCode",
    "InputStreamBrokenError",
    "StreamClosedError",
    "TwirpClientError",
    "TwirpError",
]
