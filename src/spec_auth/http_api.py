"""AuthApi implementation over HTTP (httpx)."""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import ValidationError

from .api import AuthApi
from .config import AuthClientConfig
from .constants import Paths
from .exceptions import ApiError, SpecAuthErrorCodes
from .models import AuthSuccess, MessageNonce, Session

_ERROR_MESSAGE_KEYS = ("message", "msg", "error_description", "error")


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or resp.reason_phrase
    if isinstance(body, dict):
        for key in _ERROR_MESSAGE_KEYS:
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return resp.text or resp.reason_phrase


class HttpAuthApi(AuthApi):
    """Auth server client using httpx."""

    def __init__(self, config: AuthClientConfig | None = None) -> None:
        self._config = config or AuthClientConfig()
        self._headers = {"Content-Type": "application/json", **self._config.headers}

    def _make_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._config.url,
            headers=self._headers,
            timeout=self._config.timeout_seconds,
        )

    async def _post(
        self,
        path: str,
        body: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            async with self._make_client() as client:
                resp = await client.post(path, json=body, headers=headers)
        except httpx.HTTPError as e:
            raise ApiError(message=f"Request to {path} failed: {e}", cause=e) from e
        if resp.status_code >= 400:
            raise ApiError(message=_error_message(resp), status=resp.status_code)
        return resp

    def _json(self, resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise ApiError(
                message="Invalid JSON in auth server response",
                status=resp.status_code,
                code=SpecAuthErrorCodes.INVALID_SESSION,
                cause=e,
            ) from e

    async def init_auth(self, address: str) -> MessageNonce:
        """Request a nonce message for ``address`` to sign."""
        resp = await self._post(Paths.INIT, {"address": address})
        try:
            return MessageNonce.model_validate(self._json(resp))
        except ValidationError as e:
            raise ApiError(
                message="An error occurred requesting a message to sign.",
                status=resp.status_code,
                code=SpecAuthErrorCodes.MISSING_DATA,
                cause=e,
            ) from e

    async def verify_auth(self, address: str, signature: str) -> AuthSuccess:
        """Exchange a signed nonce for a new session."""
        resp = await self._post(
            Paths.VERIFY, {"address": address, "signature": signature}
        )
        try:
            data = AuthSuccess.model_validate(self._json(resp))
        except ValidationError as e:
            raise ApiError(
                message="An error occurred on sign-in.",
                status=resp.status_code,
                code=SpecAuthErrorCodes.MISSING_DATA,
                cause=e,
            ) from e
        return data.model_copy(update={"session": data.session.normalized()})

    async def refresh_access_token(self, refresh_token: str) -> Session:
        """Exchange a refresh token for a new session."""
        resp = await self._post(Paths.REFRESH, {"token": refresh_token})
        try:
            session = Session.model_validate(self._json(resp))
        except ValidationError as e:
            raise ApiError(
                message="Invalid session data.",
                status=resp.status_code,
                code=SpecAuthErrorCodes.INVALID_SESSION,
                cause=e,
            ) from e
        return session.normalized()

    async def sign_out(self, access_token: str) -> None:
        """Revoke ``access_token`` on the server."""
        await self._post(
            Paths.SIGN_OUT, {}, headers={"Authorization": f"Bearer {access_token}"}
        )
