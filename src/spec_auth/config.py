"""Client configuration (pydantic BaseModel) and YAML loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

from .constants import DEFAULT_HEADERS, SPEC_AUTH_URL, STORAGE_KEY
from .exceptions import SpecAuthError, SpecAuthErrorCodes


class AuthClientConfig(BaseModel):
    """SpecAuth client settings."""

    url: str = SPEC_AUTH_URL
    headers: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_HEADERS))
    auto_refresh_token: bool = True
    persist_session: bool = True
    timeout_seconds: float = Field(default=10.0, gt=0)
    storage_key: str = Field(default=STORAGE_KEY, min_length=1)
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"


def load_config(path: Path | str) -> AuthClientConfig:
    """Read a YAML file and return the validated AuthClientConfig."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SpecAuthError(
            code=SpecAuthErrorCodes.CONFIG_READ,
            message=f"Failed to read config file: {path}",
            cause=e,
        ) from e
    try:
        data: dict[str, Any] = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise SpecAuthError(
            code=SpecAuthErrorCodes.CONFIG_PARSE,
            message=f"Failed to parse YAML: {path}",
            cause=e,
        ) from e
    try:
        return AuthClientConfig.model_validate(data)
    except ValidationError as e:
        raise SpecAuthError(
            code=SpecAuthErrorCodes.CONFIG_VALIDATION,
            message=f"Config validation failed: {e}",
            cause=e,
        ) from e
