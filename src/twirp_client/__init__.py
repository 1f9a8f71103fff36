"""Public surface for the Twirp Python client."""

from .auth import BasicAuth
from .channel import StreamChannel
from .client import ClientOptions, TwirpClient, create_client
from .errors import (
    EmptyStreamError,
    ErrorCode,
    InputStreamBrokenError,
    StreamClosedError,
    TwirpClientError,
    TwirpError,
)
from .forwarder import CLOSE_SEND, forward_input
from .parser import parse_error_body, twirp_error_from_response
from .transport import HttpxTransport, WebSocketTransport
from .types import CallResult, CallTarget, Rpc
from .version import __version__

__all__ = [
    "__version__",
    "BasicAuth",
    "CLOSE_SEND",
    "CallResult",
    "CallTarget",
    "ClientOptions",
    "EmptyStreamError",
    "ErrorCode",
    "HttpxTransport",
    "InputStreamBrokenError",
    "Rpc",
    "StreamChannel",
    "StreamClosedError",
    "TwirpClient",
    "TwirpClientError",
    "TwirpError",
    "WebSocketTransport",
    "create_client",
    "forward_input",
    "parse_error_body",
    "twirp_error_from_response",
]
