"""Common transport abstractions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import AsyncIterator, Mapping, Protocol, runtime_checkable

# Close codes used on stream connections
NORMAL_CLOSURE = 1000
ABNORMAL_CLOSURE = 1006


@dataclass
class TransportResponse:
    status: int
    body: bytes
    headers: Mapping[str, str] = field(default_factory=dict)
    reason: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


@runtime_checkable
class HttpTransport(Protocol):
    async def post(
        self,
        path: str,
        body: bytes,
        headers: Mapping[str, str] | None = None,
    ) -> TransportResponse: ...

    async def close(self) -> None: ...


@runtime_checkable
class StreamConnection(Protocol):
    """A connected duplex message stream.

    Iterating yields inbound frames as bytes. Iteration stops when the peer
    closes normally and raises ``StreamClosedError`` on an abnormal close.
    """

    async def send(self, message: bytes | str) -> None: ...

    def __aiter__(self) -> AsyncIterator[bytes]: ...

    async def close(self, code: int = NORMAL_CLOSURE, reason: str = "") -> None: ...


@runtime_checkable
class StreamTransport(Protocol):
    async def connect(self, url: str) -> StreamConnection: ...


__all__ = [
    "ABNORMAL_CLOSURE",
    "HttpTransport",
    "NORMAL_CLOSURE",
    "StreamConnection",
    "StreamTransport",
    "TransportResponse",
]
