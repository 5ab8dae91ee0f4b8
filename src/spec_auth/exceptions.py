"""spec_auth exception types."""

from __future__ import annotations


class SpecAuthError(Exception):
    """Base error for the spec_auth library."""

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class ApiError(SpecAuthError):
    """Error returned by the auth server or raised on the client side.

    ``status`` is the HTTP status code, or 0 when the error never reached
    the server (transport failure, missing input, bad session data).
    """

    def __init__(
        self,
        message: str,
        status: int = 0,
        code: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(code or SpecAuthErrorCodes.HTTP_ERROR, message, cause)
        self.status = status


class SpecAuthErrorCodes:
    """Error code constants for SpecAuthError."""

    HTTP_ERROR: str = "HTTP_ERROR"
    NOT_AUTHENTICATED: str = "NOT_AUTHENTICATED"
    NO_REFRESH_TOKEN: str = "NO_REFRESH_TOKEN"
    INVALID_SESSION: str = "INVALID_SESSION"
    MISSING_DATA: str = "MISSING_DATA"
    SESSION_CHANGED: str = "SESSION_CHANGED"
    INTERNAL: str = "INTERNAL"
    CONFIG_READ: str = "CONFIG_READ"
    CONFIG_PARSE: str = "CONFIG_PARSE"
    CONFIG_VALIDATION: str = "CONFIG_VALIDATION"
