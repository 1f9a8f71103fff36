"""WebSocket stream transport built on top of websockets."""

from __future__ import annotations

from typing import AsyncIterator

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, ConnectionClosedOK, InvalidStatus

from ..errors import StreamClosedError, TwirpError
from ..logger import BoundLogger, create_logger
from ..parser import twirp_error_from_response
from .base import ABNORMAL_CLOSURE, NORMAL_CLOSURE


class WebSocketConnection:
    """Adapts a ``websockets`` client connection to the ``StreamConnection`` protocol."""

    def __init__(self, websocket: ClientConnection, *, logger: BoundLogger) -> None:
        self._ws = websocket
        self._logger = logger

    async def send(self, message: bytes | str) -> None:
        # bytes go out as binary frames, str as text frames
        try:
            await self._ws.send(message)
        except ConnectionClosed as exc:
            raise _closed_error(exc) from exc
        self._logger.trace("WS -> %s frame len=%d", "text" if isinstance(message, str) else "binary", len(message))

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._frames()

    async def _frames(self) -> AsyncIterator[bytes]:
        try:
            async for frame in self._ws:
                data = frame.encode("utf-8") if isinstance(frame, str) else bytes(frame)
                self._logger.trace("WS <- frame len=%d", len(data))
                yield data
        except ConnectionClosedOK:
            return
        except ConnectionClosed as exc:
            raise _closed_error(exc) from exc

    async def close(self, code: int = NORMAL_CLOSURE, reason: str = "") -> None:
        await self._ws.close(code=code, reason=reason)


class WebSocketTransport:
    def __init__(
        self,
        *,
        open_timeout: float | None = 60.0,
        max_size: int | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        self._open_timeout = open_timeout
        self._max_size = max_size
        self._logger = (logger or create_logger()).child("websocket")

    async def connect(self, url: str) -> WebSocketConnection:
        """Complete the opening handshake.

        A handshake answered with a non-101 HTTP response raises ``TwirpError``;
        network failures propagate from ``websockets`` untouched.
        """
        self._logger.debug("WS connecting to %s", url)
        try:
            websocket = await connect(url, open_timeout=self._open_timeout, max_size=self._max_size)
        except InvalidStatus as exc:
            raise _handshake_error(exc) from exc
        self._logger.debug("WS connected to %s", url)
        return WebSocketConnection(websocket, logger=self._logger)


def _closed_error(exc: ConnectionClosed) -> StreamClosedError:
    frame = exc.rcvd or exc.sent
    code = frame.code if frame else ABNORMAL_CLOSURE
    reason = frame.reason if frame else ""
    message = f"Stream closed with code {code}" + (f": {reason}" if reason else "")
    return StreamClosedError(message, code=code, reason=reason)


def _handshake_error(exc: InvalidStatus) -> TwirpError:
    response = exc.response
    headers = {key.lower(): value for key, value in response.headers.raw_items()}
    return twirp_error_from_response(
        response.status_code,
        response.body,
        headers,
        reason=response.reason_phrase,
    )


__all__ = ["WebSocketConnection", "WebSocketTransport"]
