"""Registry of auth state change subscribers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

import structlog

from . import helpers
from .models import AuthChangeEvent, Session, StateChangeCallback

logger = structlog.get_logger(__name__)


@dataclass
class Subscription:
    """A registered callback. Call ``unsubscribe()`` to detach it."""

    id: str
    callback: StateChangeCallback
    _detach: Callable[[str], None] = field(repr=False)

    def unsubscribe(self) -> None:
        """Remove this subscription from its registry."""
        self._detach(self.id)


class SubscriberRegistry:
    """Maps subscription ids to subscriptions."""

    def __init__(self) -> None:
        self._subscriptions: dict[str, Subscription] = {}

    def __len__(self) -> int:
        return len(self._subscriptions)

    def __contains__(self, subscription_id: object) -> bool:
        return subscription_id in self._subscriptions

    def add(self, callback: StateChangeCallback) -> Subscription:
        """Register ``callback`` under a fresh id."""
        subscription = Subscription(
            id=helpers.new_id(), callback=callback, _detach=self.remove
        )
        self._subscriptions[subscription.id] = subscription
        return subscription

    def remove(self, subscription_id: str) -> None:
        """Drop a subscription; unknown ids are ignored."""
        self._subscriptions.pop(subscription_id, None)

    def broadcast(self, event: AuthChangeEvent, session: Session | None) -> None:
        """Invoke every callback synchronously.

        Iterates a snapshot, so callbacks may detach themselves or others.
        """
        for subscription in list(self._subscriptions.values()):
            try:
                subscription.callback(event, session)
            except Exception:
                logger.exception(
                    "subscriber_callback_failed",
                    subscription_id=subscription.id,
                    auth_event=str(event),
                )
