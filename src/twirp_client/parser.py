"""Decoding of Twirp error bodies into ``TwirpError`` values."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping

from .errors import ErrorCode, TwirpError


@dataclass(frozen=True)
class ErrorBody:
    code: ErrorCode
    msg: str
    meta: dict[str, str] = field(default_factory=dict)


def parse_error_body(body: bytes | str | None) -> ErrorBody | None:
    """Parse a ``{"code", "msg", "meta"}`` document.

    Returns ``None`` when the body is empty, is not JSON, or carries a code
    outside the Twirp taxonomy.
    """
    if not body:
        return None
    try:
        parsed = json.loads(body)
    except (ValueError, RecursionError):
        return None
    if not isinstance(parsed, dict):
        return None

    code = ErrorCode.parse(parsed.get("code"))
    if code is None:
        return None

    msg = parsed.get("msg")
    if msg is None:
        msg = ""
    elif not isinstance(msg, str):
        msg = str(msg)
    return ErrorBody(code=code, msg=msg, meta=_coerce_meta(parsed.get("meta")))


def twirp_error_from_response(
    status: int,
    body: bytes | None,
    headers: Mapping[str, str] | None = None,
    *,
    reason: str | None = None,
) -> TwirpError:
    """Build the ``TwirpError`` describing a failed response. Never raises."""
    parsed = parse_error_body(body)
    if parsed is not None:
        return TwirpError(parsed.code, parsed.msg, parsed.meta, context=status)
    return intermediary_error(status, body, headers, reason=reason)


def intermediary_error(
    status: int,
    body: bytes | None,
    headers: Mapping[str, str] | None = None,
    *,
    reason: str | None = None,
) -> TwirpError:
    """Fallback for responses that did not come from a Twirp handler (proxies, load balancers)."""
    status_line = f"{status} {reason}".strip() if reason else str(status)
    meta = {
        "http_error_from_intermediary": "true",
        "status_code": str(status),
    }
    if body:
        meta["body"] = _decode_body(body)
    location = _header(headers, "location")
    if location:
        meta["location"] = location
    message = f"Error from intermediary with HTTP status code {status_line}"
    return TwirpError(ErrorCode.INTERNAL, message, meta, context=status)


def _coerce_meta(meta: Any) -> dict[str, str]:
    if not isinstance(meta, dict):
        return {}
    return {str(key): value if isinstance(value, str) else json.dumps(value) for key, value in meta.items()}


def _header(headers: Mapping[str, str] | None, name: str) -> str | None:
    if not headers:
        return None
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


def _decode_body(body: bytes | str) -> str:
    if isinstance(body, str):
        return body
    return body.decode("utf-8", errors="replace")


__all__ = ["ErrorBody", "intermediary_error", "parse_error_body", "twirp_error_from_response"]
