"""High-level Twirp client covering unary and streaming call shapes."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping

from .auth import AuthLike, BasicAuth, coerce_auth
from .channel import StreamChannel
from .logger import LogLevel, create_logger
from .parser import twirp_error_from_response
from .transport import HttpTransport, HttpxTransport, StreamTransport, TransportResponse, WebSocketTransport
from .types import CallResult, CallTarget, PayloadLike, Producer, to_bytes

CONTENT_TYPE = "application/protobuf"
ACCEPT = "application/protobuf,application/json"

UrlRewriter = Callable[[str], str]


def _identity(url: str) -> str:
    return url


@dataclass(frozen=True)
class ClientOptions:
    base_url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    timeout: float | None = 60.0
    auth: BasicAuth | None = None
    websockets_url_rewriter: UrlRewriter = _identity
    http_transport: HttpTransport | None = None
    stream_transport: StreamTransport | None = None
    logger: object | None = None
    log_level: LogLevel = "info"

    def __post_init__(self) -> None:
        # Callers keep their dicts; the client sees a read-only snapshot
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))


class TwirpClient:
    """Primary entry point for calling a Twirp service.

    Unary calls are POSTed over HTTP; streaming calls each open their own
    WebSocket at the scheme-rewritten ``/{service}/{method}`` URL.
    """

    def __init__(
        self,
        *,
        base_url: str,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = 60.0,
        auth: AuthLike = None,
        websockets_url_rewriter: UrlRewriter | None = None,
        http_transport: HttpTransport | None = None,
        stream_transport: StreamTransport | None = None,
        logger: object | None = None,
        log_level: LogLevel = "info",
    ) -> None:
        options = ClientOptions(
            base_url=base_url,
            headers=headers or {},
            timeout=timeout,
            auth=coerce_auth(auth),
            websockets_url_rewriter=websockets_url_rewriter or _identity,
            http_transport=http_transport,
            stream_transport=stream_transport,
            logger=logger,
            log_level=log_level,
        )
        self.options = options
        self._logger = create_logger(logger=options.logger, level=options.log_level)
        self._logger.info("Initializing TwirpClient for %s", options.base_url)
        self._http = options.http_transport or HttpxTransport(
            options.base_url,
            timeout=options.timeout,
            auth=options.auth,
            logger=self._logger,
        )
        self._streams = options.stream_transport or WebSocketTransport(
            open_timeout=options.timeout,
            logger=self._logger,
        )
        headers = {k: v for k, v in options.headers.items() if k.lower() not in {"accept", "content-type"}}
        headers.update({"Accept": ACCEPT, "Content-Type": CONTENT_TYPE})
        self._request_headers = MappingProxyType(headers)

    @property
    def base_url(self) -> str:
        return self.options.base_url

    @property
    def request_headers(self) -> Mapping[str, str]:
        return self._request_headers

    async def request(self, service: str, method: str, data: PayloadLike) -> bytes:
        """Unary call: POST ``data`` and return the response body bytes."""
        target = CallTarget(service, method)
        self._logger.debug("Unary request %s", target)
        response = await self._http.post(target.path, to_bytes(data), headers=self._request_headers)
        return self._handle_response(target, response)

    async def request_safe(self, service: str, method: str, data: PayloadLike) -> CallResult[bytes]:
        try:
            payload = await self.request(service, method, data)
            return CallResult(ok=True, data=payload)
        except Exception as exc:
            return CallResult(ok=False, error=exc)

    async def client_streaming_request(self, service: str, method: str, data: Producer) -> bytes:
        """Stream ``data`` to the server and return its single reply.

        The channel is closed once the reply arrives; later replies are dropped.
        """
        channel = await self._open_channel(CallTarget(service, method))
        try:
            channel.forward(data)
            return await channel.first()
        finally:
            await channel.close()

    async def server_streaming_request(self, service: str, method: str, data: PayloadLike) -> StreamChannel:
        channel = await self._open_channel(CallTarget(service, method))
        try:
            await channel.send(data)
        except BaseException:
            await channel.close()
            raise
        return channel

    async def bidirectional_streaming_request(self, service: str, method: str, data: Producer) -> StreamChannel:
        channel = await self._open_channel(CallTarget(service, method))
        channel.forward(data)
        return channel

    def websocket_url(self, target: CallTarget) -> str:
        url = re.sub(r"^http", "ws", self.options.base_url) + target.path
        return self.options.websockets_url_rewriter(url)

    async def close(self) -> None:
        await self._http.close()

    async def __aenter__(self) -> "TwirpClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _open_channel(self, target: CallTarget) -> StreamChannel:
        return await StreamChannel.open(
            self._streams,
            self.websocket_url(target),
            target,
            logger=self._logger,
        )

    def _handle_response(self, target: CallTarget, response: TransportResponse) -> bytes:
        if response.ok:
            return response.body
        error = twirp_error_from_response(
            response.status,
            response.body,
            response.headers,
            reason=response.reason,
        )
        self._logger.debug("Unary request %s failed status=%d code=%s", target, response.status, error.code.value)
        raise error


def create_client(**options: Any) -> TwirpClient:
    """Build a ``TwirpClient`` from keyword options (see ``TwirpClient``)."""
    return TwirpClient(**options)


__all__ = ["ClientOptions", "TwirpClient", "create_client"]
