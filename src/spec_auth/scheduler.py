"""Single-timer scheduler for automatic token refresh."""

from __future__ import annotations

import asyncio
import contextlib
from typing import Awaitable, Callable

import structlog

logger = structlog.get_logger(__name__)


class RefreshScheduler:
    """Holds at most one armed deferred refresh.

    The callback is a coroutine function, run as a task when the timer
    fires. asyncio timer handles do not keep the host process alive.
    """

    def __init__(
        self, callback: Callable[[], Awaitable[None]], enabled: bool = True
    ) -> None:
        self._callback = callback
        self._enabled = enabled
        self._handle: asyncio.TimerHandle | None = None
        self._task: asyncio.Task[None] | None = None
        self._delay_ms: float | None = None

    @property
    def is_armed(self) -> bool:
        """True while a timer is pending."""
        return self._handle is not None and not self._handle.cancelled()

    @property
    def delay_ms(self) -> float | None:
        """Delay of the currently armed timer, in milliseconds."""
        return self._delay_ms if self.is_armed else None

    def arm(self, delay_ms: float) -> None:
        """Cancel any armed timer, then arm a new one."""
        self.cancel()
        if delay_ms <= 0 or not self._enabled:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("refresh_timer_skipped", reason="no running event loop")
            return
        self._delay_ms = delay_ms
        self._handle = loop.call_later(delay_ms / 1000, self._fire)

    def cancel(self) -> None:
        """Disarm the pending timer, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._delay_ms = None

    async def aclose(self) -> None:
        """Cancel the armed timer and any refresh already running."""
        self.cancel()
        task, self._task = self._task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    def _fire(self) -> None:
        self._handle = None
        self._delay_ms = None
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        try:
            await self._callback()
        except Exception:
            logger.exception("refresh_callback_failed")
        finally:
            if self._task is asyncio.current_task():
                self._task = None
