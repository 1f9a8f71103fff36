"""Shared typing helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, AsyncIterable, Generic, Iterable, Protocol, TypeVar, Union

if TYPE_CHECKING:
    from .channel import StreamChannel

T = TypeVar("T")

PayloadLike = Union[bytes, bytearray, memoryview]
Producer = Union[AsyncIterable[PayloadLike], Iterable[PayloadLike]]


@dataclass(frozen=True)
class CallTarget:
    service: str
    method: str

    @property
    def path(self) -> str:
        return f"/{self.service}/{self.method}"

    def __str__(self) -> str:
        return f"{self.service}/{self.method}"


@dataclass
class CallResult(Generic[T]):
    ok: bool
    data: T | None = None
    error: Exception | None = None


class Rpc(Protocol):
    """The contract generated service stubs are written against."""

    async def request(self, service: str, method: str, data: PayloadLike) -> bytes: ...

    async def client_streaming_request(self, service: str, method: str, data: Producer) -> bytes: ...

    async def server_streaming_request(self, service: str, method: str, data: PayloadLike) -> "StreamChannel": ...

    async def bidirectional_streaming_request(self, service: str, method: str, data: Producer) -> "StreamChannel": ...


def to_bytes(payload: PayloadLike) -> bytes:
    """Copy exactly the viewed bytes of ``payload``."""
    if isinstance(payload, bytes):
        return payload
    if isinstance(payload, (bytearray, memoryview)):
        return bytes(payload)
    raise TypeError(f"Expected a bytes-like payload, got {type(payload).__name__}")


__all__ = ["CallResult", "CallTarget", "PayloadLike", "Producer", "Rpc", "to_bytes"]
