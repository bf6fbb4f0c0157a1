"""Timed rotation over the featured banner candidates."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import Callable

logger = logging.getLogger(__name__)

DEFAULT_BANNER_PERIOD_SECONDS = 6.0


class BannerRotationScheduler:
    """Single repeating timer; re-arming replaces any previous timer."""

    def __init__(
        self,
        on_tick: Callable[[], None],
        *,
        period_seconds: float = DEFAULT_BANNER_PERIOD_SECONDS,
    ) -> None:
        if period_seconds <= 0:
            raise ValueError("Banner period must be positive")
        self._on_tick = on_tick
        self._period_seconds = period_seconds
        self._task: asyncio.Task[None] | None = None
        self._generation = 0

    @property
    def period_seconds(self) -> float:
        return self._period_seconds

    @property
    def armed(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def generation(self) -> int:
        """Incremented every time the timer is armed."""

        return self._generation

    def arm(self) -> None:
        """(Re)start the timer from a full period. Requires a running loop."""

        loop = asyncio.get_running_loop()
        self.disarm()
        self._generation += 1
        self._task = loop.create_task(self._run(self._generation))

    def disarm(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def stop(self) -> None:
        """Disarm and wait for the cancelled timer to unwind."""

        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task

    async def _run(self, generation: int) -> None:
        while True:
            await asyncio.sleep(self._period_seconds)
            if generation != self._generation:
                return
            try:
                self._on_tick()
            except Exception as exc:  # pragma: no cover - timer safety net
                logger.exception("Banner rotation tick failed: %s", exc)
