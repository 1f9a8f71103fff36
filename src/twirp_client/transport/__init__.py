"""Transport implementations exposed to users."""

from .base import HttpTransport, StreamConnection, StreamTransport, TransportResponse
from .http import HttpxTransport
from .websocket import WebSocketConnection, WebSocketTransport

__all__ = [
    "HttpTransport",
    "HttpxTransport",
    "StreamConnection",
    "StreamTransport",
    "TransportResponse",
    "WebSocketConnection",
    "WebSocketTransport",
]
