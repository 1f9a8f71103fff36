"""Relays an outbound producer onto a stream channel."""

from __future__ import annotations

from typing import TYPE_CHECKING, AsyncIterable, AsyncIterator, Iterable

from .errors import StreamClosedError
from .logger import BoundLogger, create_logger
from .types import PayloadLike, Producer, to_bytes

if TYPE_CHECKING:
    from .channel import StreamChannel

CLOSE_SEND = "closeSend"

INPUT_STREAM_BROKEN_CODE = 4001
INPUT_STREAM_BROKEN_REASON = "Input stream broken"


async def forward_input(
    producer: Producer,
    channel: "StreamChannel",
    *,
    logger: BoundLogger | None = None,
) -> None:
    """Send every payload from ``producer`` on ``channel``, then ``closeSend``.

    A failing producer fails the channel with the input-stream-broken close
    code. A channel that closes underneath us simply ends the relay.
    """
    log = (logger or create_logger()).child("forwarder")
    iterator: AsyncIterator[PayloadLike] | None = None
    sent = 0
    while True:
        try:
            if iterator is None:
                iterator = _aiter(producer)
            payload = to_bytes(await iterator.__anext__())
        except StopAsyncIteration:
            break
        except Exception as exc:
            # Covers failing to subscribe as well as failing mid-stream
            log.warn("Input stream for %s broken after %d messages: %r", channel.target, sent, exc)
            await channel.fail(INPUT_STREAM_BROKEN_CODE, INPUT_STREAM_BROKEN_REASON)
            return

        try:
            await channel.send(payload)
        except StreamClosedError:
            log.debug("Channel for %s closed while forwarding; dropping remaining input", channel.target)
            return
        sent += 1

    log.debug("Input stream for %s completed after %d messages", channel.target, sent)
    try:
        await channel.close_send()
    except StreamClosedError:
        log.debug("Channel for %s closed before %s could be sent", channel.target, CLOSE_SEND)


def _aiter(producer: Producer) -> AsyncIterator[PayloadLike]:
    if isinstance(producer, AsyncIterable):
        return producer.__aiter__()
    if isinstance(producer, Iterable):
        return _from_sync(producer)
    raise TypeError(f"Expected an iterable of payloads, got {type(producer).__name__}")


async def _from_sync(producer: Iterable[PayloadLike]) -> AsyncIterator[PayloadLike]:
    for payload in producer:
        yield payload


__all__ = ["CLOSE_SEND", "INPUT_STREAM_BROKEN_CODE", "INPUT_STREAM_BROKEN_REASON", "forward_input"]
