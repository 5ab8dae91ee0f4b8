"""HttpAuthApi tests (respx mocks)."""

from __future__ import annotations

import json

import httpx
import pytest
import respx
from conftest import NOW

from spec_auth.config import AuthClientConfig
from spec_auth.exceptions import ApiError, SpecAuthErrorCodes
from spec_auth.http_api import HttpAuthApi

BASE_URL = "http://auth-server:8000/auth/v1"


def make_api() -> HttpAuthApi:
    return HttpAuthApi(AuthClientConfig(url=BASE_URL, headers={"X-Client-Info": "test"}))


@respx.mock
async def test_init_auth() -> None:
    """init posts the address with the configured headers."""
    route = respx.post(f"{BASE_URL}/init").mock(
        return_value=httpx.Response(200, json={"message": "Sign this: 42"})
    )

    nonce = await make_api().init_auth("0xA")

    assert nonce.message == "Sign this: 42"
    request = route.calls.last.request
    assert request.headers["X-Client-Info"] == "test"
    assert json.loads(request.content) == {"address": "0xA"}


@respx.mock
async def test_verify_auth_normalizes_expiry() -> None:
    """verify derives expiresAt from expiresIn."""
    respx.post(f"{BASE_URL}/verify").mock(
        return_value=httpx.Response(
            200,
            json={
                "session": {"accessToken": "at", "refreshToken": "rt", "expiresIn": 3600},
                "user": {"id": "0xA"},
                "isNewUser": False,
            },
        )
    )

    data = await make_api().verify_auth("0xA", "sig")

    assert data.session.expires_at == NOW + 3600
    assert data.session.refresh_token == "rt"
    assert data.user.id == "0xA"


@respx.mock
async def test_verify_auth_error_status() -> None:
    """An error status raises ApiError with the server message."""
    respx.post(f"{BASE_URL}/verify").mock(
        return_value=httpx.Response(401, json={"message": "Invalid signature"})
    )

    with pytest.raises(ApiError) as exc_info:
        await make_api().verify_auth("0xA", "sig")

    assert exc_info.value.status == 401
    assert exc_info.value.message == "Invalid signature"
    assert exc_info.value.code == SpecAuthErrorCodes.HTTP_ERROR


@respx.mock
async def test_verify_auth_incomplete_payload() -> None:
    """An incomplete verify payload raises ApiError."""
    respx.post(f"{BASE_URL}/verify").mock(
        return_value=httpx.Response(200, json={"user": {"id": "0xA"}})
    )

    with pytest.raises(ApiError) as exc_info:
        await make_api().verify_auth("0xA", "sig")

    assert exc_info.value.code == SpecAuthErrorCodes.MISSING_DATA


@respx.mock
async def test_refresh_access_token() -> None:
    """refresh posts the token and returns a normalized session."""
    route = respx.post(f"{BASE_URL}/token/refresh").mock(
        return_value=httpx.Response(
            200,
            json={"accessToken": "at2", "expiresIn": 60, "user": {"id": "0xA"}},
        )
    )

    session = await make_api().refresh_access_token("rt")

    assert session.access_token == "at2"
    assert session.expires_at == NOW + 60
    assert json.loads(route.calls.last.request.content) == {"token": "rt"}


@respx.mock
async def test_refresh_access_token_plain_text_error() -> None:
    """A plain-text error body becomes the message."""
    respx.post(f"{BASE_URL}/token/refresh").mock(
        return_value=httpx.Response(500, text="boom")
    )

    with pytest.raises(ApiError) as exc_info:
        await make_api().refresh_access_token("rt")

    assert exc_info.value.status == 500
    assert exc_info.value.message == "boom"


@respx.mock
async def test_refresh_access_token_invalid_json() -> None:
    """A non-JSON success body raises ApiError."""
    respx.post(f"{BASE_URL}/token/refresh").mock(
        return_value=httpx.Response(200, text="not json")
    )

    with pytest.raises(ApiError) as exc_info:
        await make_api().refresh_access_token("rt")

    assert exc_info.value.code == SpecAuthErrorCodes.INVALID_SESSION


@respx.mock
async def test_sign_out_sends_bearer_token() -> None:
    """sign-out sends the access token as a bearer header."""
    route = respx.post(f"{BASE_URL}/sign-out").mock(return_value=httpx.Response(204))

    await make_api().sign_out("at")

    assert route.calls.last.request.headers["Authorization"] == "Bearer at"


@respx.mock
async def test_transport_failure() -> None:
    """A transport failure raises ApiError with status 0."""
    respx.post(f"{BASE_URL}/init").mock(side_effect=httpx.ConnectError("refused"))

    with pytest.raises(ApiError) as exc_info:
        await make_api().init_auth("0xA")

    assert exc_info.value.status == 0
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


@respx.mock
async def test_fractional_expires_in_is_accepted() -> None:
    """Verify and refresh accept a fractional ``expiresIn`` from the server."""
    respx.post(f"{BASE_URL}/verify").mock(
        return_value=httpx.Response(
            200,
            json={
                "session": {"accessToken": "at", "expiresIn": 3599.5},
                "user": {"id": "0xA"},
            },
        )
    )
    respx.post(f"{BASE_URL}/token/refresh").mock(
        return_value=httpx.Response(
            200,
            json={"accessToken": "at2", "expiresIn": 59.25, "user": {"id": "0xA"}},
        )
    )
    api = make_api()

    data = await api.verify_auth("0xA", "sig")
    session = await api.refresh_access_token("rt")

    assert data.session.expires_at == NOW + 3599.5
    assert session.expires_at == NOW + 59.25
