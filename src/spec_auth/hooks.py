"""Auth webhook: lets a backend enrich or replace the signed-in user."""

from __future__ import annotations

from dataclasses import dataclass

import httpx
from pydantic import ValidationError

from .constants import SPEC_API_KEY_HEADER
from .exceptions import ApiError, SpecAuthErrorCodes
from .models import User


@dataclass
class HookResult:
    """Result of ``perform_auth_hook``."""
    user: User | None = None
    error: ApiError | None = None


async def perform_auth_hook(
    user: User,
    webhook_url: str,
    webhook_api_key: str | None = None,
    timeout_seconds: float = 10.0,
) -> HookResult:
    """POST ``{"user": ...}`` to ``webhook_url`` and return the user it sends back."""
    headers = {SPEC_API_KEY_HEADER: webhook_api_key or ""}
    try:
        async with httpx.AsyncClient(timeout=timeout_seconds) as client:
            resp = await client.post(
                webhook_url, json={"user": user.to_dict()}, headers=headers
            )
    except httpx.HTTPError as e:
        return HookResult(error=ApiError(message=f"Auth hook failed: {e}", cause=e))
    if resp.status_code >= 400:
        return HookResult(
            error=ApiError(
                message=f"Auth hook failed: HTTP {resp.status_code}: {resp.text}",
                status=resp.status_code,
            )
        )
    try:
        data = resp.json()
    except ValueError as e:
        return HookResult(
            error=ApiError(
                message="Auth hook returned invalid JSON",
                status=resp.status_code,
                code=SpecAuthErrorCodes.MISSING_DATA,
                cause=e,
            )
        )
    raw_user = data.get("user") if isinstance(data, dict) else None
    if raw_user is None:
        return HookResult(user=None)
    try:
        return HookResult(user=User.model_validate(raw_user))
    except ValidationError as e:
        return HookResult(
            error=ApiError(
                message="Auth hook returned invalid user data",
                status=resp.status_code,
                code=SpecAuthErrorCodes.MISSING_DATA,
                cause=e,
            )
        )
