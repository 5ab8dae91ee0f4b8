"""RefreshScheduler tests."""

from __future__ import annotations

import asyncio

from spec_auth.scheduler import RefreshScheduler


class Counter:
    def __init__(self) -> None:
        self.count = 0

    async def __call__(self) -> None:
        self.count += 1


async def test_fires_after_delay() -> None:
    """The callback runs after the delay."""
    counter = Counter()
    scheduler = RefreshScheduler(counter)

    scheduler.arm(10)
    assert scheduler.is_armed
    assert scheduler.delay_ms == 10
    await asyncio.sleep(0.05)

    assert counter.count == 1
    assert not scheduler.is_armed


async def test_rearm_replaces_previous_timer() -> None:
    """Re-arming replaces the pending timer."""
    counter = Counter()
    scheduler = RefreshScheduler(counter)

    scheduler.arm(10)
    scheduler.arm(20)
    scheduler.arm(30)
    await asyncio.sleep(0.1)

    assert counter.count == 1


async def test_non_positive_delay_disarms() -> None:
    """A non-positive delay leaves the scheduler disarmed."""
    counter = Counter()
    scheduler = RefreshScheduler(counter)
    scheduler.arm(10_000)

    scheduler.arm(0)

    assert not scheduler.is_armed
    assert scheduler.delay_ms is None
    scheduler.arm(-5)
    assert not scheduler.is_armed


async def test_disabled_scheduler_never_arms() -> None:
    """A disabled scheduler never arms."""
    counter = Counter()
    scheduler = RefreshScheduler(counter, enabled=False)

    scheduler.arm(10)
    await asyncio.sleep(0.03)

    assert not scheduler.is_armed
    assert counter.count == 0


async def test_cancel() -> None:
    """cancel disarms the pending timer."""
    counter = Counter()
    scheduler = RefreshScheduler(counter)

    scheduler.arm(10)
    scheduler.cancel()
    await asyncio.sleep(0.03)

    assert counter.count == 0


async def test_callback_error_is_logged_not_raised() -> None:
    """A failing callback is logged, not raised."""
    async def boom() -> None:
        raise RuntimeError("refresh exploded")

    scheduler = RefreshScheduler(boom)
    scheduler.arm(5)
    await asyncio.sleep(0.03)

    assert not scheduler.is_armed


async def test_aclose_cancels_running_callback() -> None:
    """aclose cancels a callback already running."""
    started = asyncio.Event()
    finished = False

    async def slow() -> None:
        nonlocal finished
        started.set()
        await asyncio.sleep(10)
        finished = True

    scheduler = RefreshScheduler(slow)
    scheduler.arm(1)
    await started.wait()

    await scheduler.aclose()

    assert finished is False


def test_arm_without_event_loop_is_dropped() -> None:
    """Arming without an event loop is dropped."""
    scheduler = RefreshScheduler(Counter())

    scheduler.arm(1000)

    assert not scheduler.is_armed


async def test_aclose_cancels_refresh_fired_while_previous_run_finishes() -> None:
    """A run that ends after a newer fire must not drop the newer task."""
    calls = 0
    second_started = asyncio.Event()
    cancelled = False

    async def callback() -> None:
        nonlocal calls, cancelled
        calls += 1
        if calls == 1:
            scheduler.arm(1)
            await asyncio.sleep(0.02)
            return
        second_started.set()
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled = True
            raise

    scheduler = RefreshScheduler(callback)
    scheduler.arm(1)
    await second_started.wait()
    await asyncio.sleep(0.05)

    await scheduler.aclose()

    assert calls == 2
    assert cancelled is True
