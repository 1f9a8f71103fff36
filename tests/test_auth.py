import httpx
import pytest

from twirp_client.auth import BasicAuth, coerce_auth


def test_to_httpx_sets_basic_authorization_header() -> None:
    auth = BasicAuth("Aladdin", "open sesame").to_httpx()
    request = next(auth.auth_flow(httpx.Request("POST", "http://localhost/svc/M")))
    assert request.headers["Authorization"] == "Basic QWxhZGRpbjpvcGVuIHNlc2FtZQ=="


def test_repr_hides_password() -> None:
    assert "secret" not in repr(BasicAuth("user", "secret"))


def test_coerce_auth_accepts_tuples() -> None:
    assert coerce_auth(("user", "secret")) == BasicAuth("user", "secret")
    assert coerce_auth(None) is None
    with pytest.raises(TypeError):
        coerce_auth("user:secret")  # type: ignore[arg-type]
