"""Clock and identifier helpers."""

from __future__ import annotations

import time
import uuid

# Refresh this many seconds before expiry for normal-length sessions.
EXPIRY_MARGIN_SECONDS = 60
SHORT_SESSION_MARGIN_SECONDS = 0.5


def now_seconds() -> int:
    """Current epoch time rounded to whole seconds."""
    return round(time.time())


def expires_at(expires_in: float) -> float:
    """Absolute expiry timestamp for a lifetime starting now."""
    return now_seconds() + expires_in


def refresh_margin(expires_in: float) -> float:
    """Seconds to refresh ahead of expiry for a given remaining lifetime."""
    if expires_in > EXPIRY_MARGIN_SECONDS:
        return EXPIRY_MARGIN_SECONDS
    return SHORT_SESSION_MARGIN_SECONDS


def new_id() -> str:
    """Fresh subscription identifier."""
    return str(uuid.uuid4())
