"""Banner rotation timer tests."""

from __future__ import annotations

import asyncio

import pytest

from cineflix.scheduler import BannerRotationScheduler


def test_period_must_be_positive() -> None:
    with pytest.raises(ValueError):
        BannerRotationScheduler(lambda: None, period_seconds=0)


def test_arm_requires_running_loop() -> None:
    scheduler = BannerRotationScheduler(lambda: None, period_seconds=0.01)

    with pytest.raises(RuntimeError):
        scheduler.arm()


def test_ticks_repeat_until_stopped() -> None:
    ticks: list[int] = []

    async def _run() -> None:
        scheduler = BannerRotationScheduler(lambda: ticks.append(1), period_seconds=0.01)
        scheduler.arm()
        assert scheduler.armed
        await asyncio.sleep(0.1)
        await scheduler.stop()
        assert not scheduler.armed

    asyncio.run(_run())

    assert len(ticks) >= 2


def test_rearming_replaces_previous_timer() -> None:
    ticks: list[int] = []

    async def _run() -> None:
        scheduler = BannerRotationScheduler(lambda: ticks.append(1), period_seconds=0.2)
        scheduler.arm()
        await asyncio.sleep(0.12)
        scheduler.arm()
        assert scheduler.generation == 2
        await asyncio.sleep(0.12)
        # The first timer would have fired by now; the replacement has not.
        assert ticks == []
        await asyncio.sleep(0.16)
        await scheduler.stop()

    asyncio.run(_run())

    assert len(ticks) == 1


def test_disarm_stops_ticks() -> None:
    ticks: list[int] = []

    async def _run() -> None:
        scheduler = BannerRotationScheduler(lambda: ticks.append(1), period_seconds=0.02)
        scheduler.arm()
        scheduler.disarm()
        await asyncio.sleep(0.06)
        await scheduler.stop()

    asyncio.run(_run())

    assert ticks == []
