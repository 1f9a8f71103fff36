"""HTTP transport built on top of httpx."""

from __future__ import annotations

from typing import Mapping

import httpx

from ..auth import BasicAuth
from ..logger import BoundLogger, create_logger
from .base import TransportResponse


class HttpxTransport:
    """POSTs request bodies relative to a base URL with ``httpx.AsyncClient``.

    Transport failures (DNS, refused connections, timeouts) are not caught
    here; callers receive the ``httpx`` exception as raised.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float | None = 60.0,
        auth: BasicAuth | None = None,
        client: httpx.AsyncClient | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._auth = auth.to_httpx() if auth else httpx.USE_CLIENT_DEFAULT
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))
        self._owns_client = client is None
        self._logger = (logger or create_logger()).child("http")

    @property
    def base_url(self) -> str:
        return self._base_url

    def url_for(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    async def post(
        self,
        path: str,
        body: bytes,
        headers: Mapping[str, str] | None = None,
    ) -> TransportResponse:
        url = self.url_for(path)
        self._logger.debug("HTTP POST %s bytes=%d", url, len(body))
        try:
            response = await self._client.post(
                url,
                content=body,
                headers=dict(headers or {}),
                auth=self._auth,
            )
        except httpx.TimeoutException:
            self._logger.warn("HTTP POST %s timed out after %ss", url, self._timeout)
            raise
        except httpx.RequestError as exc:
            self._logger.warn("HTTP POST %s failed: %s", url, exc)
            raise

        content = response.content
        self._logger.debug(
            "HTTP <- %s status=%s bytes=%d",
            url,
            response.status_code,
            len(content),
        )
        return TransportResponse(
            status=response.status_code,
            body=content,
            headers={k.lower(): v for k, v in response.headers.items()},
            reason=response.reason_phrase,
        )

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = ["HttpxTransport"]
