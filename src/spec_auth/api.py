"""AuthApi abstract base class: the transport contract used by the client."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .models import AuthSuccess, MessageNonce, Session


class AuthApi(ABC):
    """Network operations of the signature auth flow.

    Implementations raise ApiError on failure.
    """

    @abstractmethod
    async def init_auth(self, address: str) -> MessageNonce:
        """Request a nonce message for ``address`` to sign."""
        ...

    @abstractmethod
    async def verify_auth(self, address: str, signature: str) -> AuthSuccess:
        """Exchange a signed nonce for a new session."""
        ...

    @abstractmethod
    async def refresh_access_token(self, refresh_token: str) -> Session:
        """Exchange a refresh token for a new session."""
        ...

    @abstractmethod
    async def sign_out(self, access_token: str) -> None:
        """Revoke ``access_token`` on the server."""
        ...
