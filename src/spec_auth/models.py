"""Session data models."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Callable

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from . import helpers
from .exceptions import ApiError

if TYPE_CHECKING:
    from .subscribers import Subscription


class _WireModel(BaseModel):
    """Base model using the camelCase field names of the auth server."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        """Dump with wire (camelCase) names, dropping unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class User(_WireModel):
    """Account identity. ``id`` is the address the user signed in with."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    id: str


class Session(_WireModel):
    """One authenticated grant for one account."""

    access_token: str
    refresh_token: str | None = None
    expires_in: float | None = None
    expires_at: float | None = None
    token_type: str = "bearer"
    user: User | None = None

    def normalized(self) -> Session:
        """Return a copy with ``expires_at`` derived from ``expires_in``."""
        if self.expires_at is None and self.expires_in is not None:
            return self.model_copy(
                update={"expires_at": helpers.expires_at(self.expires_in)}
            )
        return self

    def with_user(self, user: User | None) -> Session:
        """Return a copy bound to ``user``."""
        return self.model_copy(update={"user": user})

    def is_complete(self) -> bool:
        """True when both ``expires_at`` and ``user`` are present."""
        return self.expires_at is not None and self.user is not None

    def is_expired(self, now: float) -> bool:
        """True when ``now`` is past ``expires_at``."""
        return self.expires_at is not None and now > self.expires_at


class PersistedSessions(_WireModel):
    """The single document kept in durable storage."""

    sessions: dict[str, Session] = Field(default_factory=dict)
    active_address: str = ""

    def active_session(self) -> Session | None:
        """Session stored under ``active_address``, if any."""
        if not self.active_address:
            return None
        return self.sessions.get(self.active_address)

    def to_json(self) -> str:
        """Serialize the document for storage."""
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, raw: str) -> PersistedSessions:
        """Decode and validate a stored document."""
        return cls.model_validate_json(raw)


class MessageNonce(_WireModel):
    """Message the user must sign to prove control of an address."""

    message: str


class AuthSuccess(_WireModel):
    """Payload of a successful signature verification."""

    session: Session
    user: User
    is_new_user: bool = False


class AuthChangeEvent(StrEnum):
    """Events broadcast to state change subscribers."""

    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    INITIAL_STATE_LOADED = "INITIAL_STATE_LOADED"


class RecoveryState(StrEnum):
    """Startup recovery progress."""

    UNINITIALIZED = "UNINITIALIZED"
    RECOVERING_SYNC = "RECOVERING_SYNC"
    RECOVERING_ASYNC = "RECOVERING_ASYNC"
    ACTIVE = "ACTIVE"
    SIGNED_OUT = "SIGNED_OUT"


StateChangeCallback = Callable[[AuthChangeEvent, Session | None], Any]


@dataclass
class NonceResult:
    """Result of ``SpecAuthClient.init``."""

    data: MessageNonce | None = None
    error: ApiError | None = None


@dataclass
class VerifyResult:
    """Result of ``SpecAuthClient.verify``."""

    session: Session | None = None
    user: User | None = None
    is_new_user: bool = False
    error: ApiError | None = None


@dataclass
class SessionResult:
    """Result of the session refreshing operations."""

    session: Session | None = None
    user: User | None = None
    error: ApiError | None = None


@dataclass
class SignOutResult:
    """Result of ``SpecAuthClient.sign_out``."""

    error: ApiError | None = None


@dataclass
class SubscriptionResult:
    """Result of ``SpecAuthClient.on_state_change``."""

    data: Subscription | None = None
    error: ApiError | None = None
