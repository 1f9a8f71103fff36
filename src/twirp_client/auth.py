"""Authentication utilities for the Python client."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union

import httpx


@dataclass(frozen=True)
class BasicAuth:
    """HTTP basic-auth credentials applied to unary requests."""

    username: str
    password: str

    def __repr__(self) -> str:
        return f"BasicAuth(username={self.username!r}, password='***')"

    def to_httpx(self) -> httpx.BasicAuth:
        return httpx.BasicAuth(self.username, self.password)


AuthLike = Union[BasicAuth, Tuple[str, str], None]


def coerce_auth(auth: AuthLike) -> BasicAuth | None:
    if auth is None or isinstance(auth, BasicAuth):
        return auth
    if isinstance(auth, tuple) and len(auth) == 2:
        username, password = auth
        return BasicAuth(str(username), str(password))
    raise TypeError(f"Unsupported auth value: {type(auth).__name__}")


__all__ = ["AuthLike", "BasicAuth", "coerce_auth"]
