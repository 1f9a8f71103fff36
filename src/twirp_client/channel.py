"""Duplex stream channels used by the streaming call shapes."""

from __future__ import annotations

import asyncio
from typing import Any, AsyncIterator, Union

from .errors import EmptyStreamError, InputStreamBrokenError, StreamClosedError
from .forwarder import CLOSE_SEND, INPUT_STREAM_BROKEN_CODE, INPUT_STREAM_BROKEN_REASON, forward_input
from .logger import BoundLogger, create_logger
from .transport.base import NORMAL_CLOSURE, StreamConnection, StreamTransport
from .types import CallTarget, PayloadLike, Producer, to_bytes


class _End:
    pass


_END = _End()

_Event = Union[bytes, BaseException, _End]


class StreamChannel:
    """A connected, single-use duplex channel for one streaming call.

    Inbound frames are pumped into a queue by a background task as soon as the
    channel is opened, so nothing depends on when (or whether) the caller
    starts iterating. Iterate with ``async for`` to consume them in receipt
    order; iteration ends on a normal close and raises on an abnormal one.
    """

    def __init__(
        self,
        connection: StreamConnection,
        target: CallTarget,
        *,
        logger: BoundLogger | None = None,
    ) -> None:
        self.target = target
        self._connection = connection
        self._logger = (logger or create_logger()).child("channel")
        self._queue: asyncio.Queue[_Event] = asyncio.Queue()
        self._closed = False
        self._terminated = False
        self._outcome: BaseException | None = None
        self._finished = False
        self._forward_task: asyncio.Task[None] | None = None
        self._receive_task: asyncio.Task[None] = asyncio.create_task(self._receive_loop())

    @classmethod
    async def open(
        cls,
        transport: StreamTransport,
        url: str,
        target: CallTarget,
        *,
        logger: BoundLogger | None = None,
    ) -> "StreamChannel":
        connection = await transport.connect(url)
        channel = cls(connection, target, logger=logger)
        channel._logger.info("Opened stream channel for %s", target)
        return channel

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, payload: PayloadLike) -> None:
        """Send one payload as a binary frame, verbatim."""
        self._ensure_open()
        await self._connection.send(to_bytes(payload))

    async def close_send(self) -> None:
        """Tell the peer no further client messages will follow; receiving continues."""
        self._ensure_open()
        self._logger.debug("Sending %s on %s", CLOSE_SEND, self.target)
        await self._connection.send(CLOSE_SEND)

    def forward(self, producer: Producer) -> asyncio.Task[None]:
        """Relay ``producer`` onto this channel from a task owned by the channel."""
        if self._forward_task is not None:
            raise RuntimeError(f"Channel for {self.target} is already forwarding input")
        self._ensure_open()
        self._forward_task = asyncio.create_task(forward_input(producer, self, logger=self._logger))
        return self._forward_task

    async def fail(self, code: int, reason: str) -> None:
        """Close the transport with an application error code and fail the inbound sequence."""
        if self._closed:
            return
        self._closed = True
        message = f"Stream closed with code {code}: {reason}"
        if code == INPUT_STREAM_BROKEN_CODE:
            error: StreamClosedError = InputStreamBrokenError(message, code=code, reason=reason)
        else:
            error = StreamClosedError(message, code=code, reason=reason)
        self._terminate(error)
        self._logger.debug("Failing channel for %s code=%d reason=%s", self.target, code, reason)
        await self._release(code, reason)

    async def close(self) -> None:
        """Release the channel. Safe to call any number of times."""
        if self._closed:
            return
        self._closed = True
        self._terminate(None)
        self._logger.debug("Closing channel for %s", self.target)
        await self._release(NORMAL_CLOSURE, "")

    async def first(self) -> bytes:
        """Return the first inbound payload, or raise if the channel ends without one."""
        async for payload in self:
            return payload
        raise EmptyStreamError(f"Stream for {self.target} closed before a response arrived")

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self

    async def __anext__(self) -> bytes:
        if self._finished:
            return self._replay_outcome()
        event = await self._queue.get()
        if isinstance(event, bytes):
            return event
        self._finished = True
        return self._replay_outcome()

    async def __aenter__(self) -> "StreamChannel":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _replay_outcome(self) -> bytes:
        if self._outcome is not None:
            raise self._outcome
        raise StopAsyncIteration

    def _ensure_open(self) -> None:
        if self._closed:
            raise StreamClosedError(f"Channel for {self.target} is closed")

    def _terminate(self, error: BaseException | None) -> None:
        # The consumer sees exactly one end-of-stream signal
        if self._terminated:
            return
        self._terminated = True
        self._outcome = error
        self._queue.put_nowait(error if error is not None else _END)

    async def _receive_loop(self) -> None:
        try:
            async for frame in self._connection:
                if self._terminated:
                    break
                self._queue.put_nowait(frame)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self._logger.debug("Stream for %s ended with error: %s", self.target, exc)
            self._terminate(exc)
        else:
            if not self._terminated:
                self._logger.debug("Stream for %s closed by peer", self.target)
                self._terminate(None)
        # Nothing more can be delivered; stop relaying input
        if self._forward_task is not None and not self._forward_task.done():
            self._forward_task.cancel()

    async def _release(self, code: int, reason: str) -> None:
        if self._forward_task is not None:
            await _cancel(self._forward_task)
        await _cancel(self._receive_task)
        await self._connection.close(code, reason)


async def _cancel(task: asyncio.Task[Any]) -> None:
    if task is asyncio.current_task() or task.done():
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


__all__ = [
    "CLOSE_SEND",
    "INPUT_STREAM_BROKEN_CODE",
    "INPUT_STREAM_BROKEN_REASON",
    "StreamChannel",
]
