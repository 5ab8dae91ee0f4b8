"""Library-wide constants."""

from __future__ import annotations

from ._version import __version__

SPEC_AUTH_URL = "http://localhost:8000/auth/v1"
DEFAULT_HEADERS = {"X-Client-Info": f"spec-auth-py/{__version__}"}
STORAGE_KEY = "spec.auth.token"
SPEC_API_KEY_HEADER = "X-Spec-Api-Key"


class Paths:
    """Auth server endpoint paths, relative to the configured url."""

    INIT: str = "/init"
    VERIFY: str = "/verify"
    REFRESH: str = "/token/refresh"
    SIGN_OUT: str = "/sign-out"
