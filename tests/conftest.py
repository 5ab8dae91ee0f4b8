"""Shared fixtures for spec_auth tests."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from spec_auth import helpers
from spec_auth.api import AuthApi
from spec_auth.models import PersistedSessions, Session, User

NOW = 1_700_000_000


@pytest.fixture(autouse=True)
def frozen_clock(monkeypatch: pytest.MonkeyPatch) -> int:
    monkeypatch.setattr(helpers, "now_seconds", lambda: NOW)
    return NOW


def make_session(
    address: str = "0xA",
    expires_in: int = 3600,
    refresh_token: str | None = "rt-0xA",
    access_token: str = "at-0xA",
    with_user: bool = True,
) -> Session:
    return Session(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=expires_in,
        expires_at=NOW + expires_in,
        user=User(id=address) if with_user else None,
    )


def make_store(*sessions: Session, active: str = "") -> str:
    store = PersistedSessions(
        sessions={s.user.id: s for s in sessions if s.user is not None},
        active_address=active,
    )
    return store.to_json()


@pytest.fixture
def api() -> MagicMock:
    mock = MagicMock(spec=AuthApi)
    mock.init_auth = AsyncMock()
    mock.verify_auth = AsyncMock()
    mock.refresh_access_token = AsyncMock()
    mock.sign_out = AsyncMock(return_value=None)
    return mock


class EventRecorder:
    """Collects (event, session) pairs broadcast by a client."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Session | None]] = []

    def __call__(self, event: str, session: Session | None) -> None:
        self.calls.append((event, session))

    @property
    def events(self) -> list[str]:
        return [str(event) for event, _ in self.calls]


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()
