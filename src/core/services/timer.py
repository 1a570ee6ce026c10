"""Temporizador de ronda sobre asyncio.

Un único task periódico hace `tick()` cada `tick_seconds`. Pausar no toca el
task: los ticks en pausa simplemente no descuentan.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from core.domain.models import RoundResult

logger = logging.getLogger(__name__)


class RoundTimer:
    def __init__(
        self,
        on_complete: Callable[[RoundResult], None],
        *,
        tick_seconds: float = 1.0,
        on_tick: Callable[[int], None] | None = None,
    ) -> None:
        self._on_complete = on_complete
        self._on_tick = on_tick
        self._tick_seconds = tick_seconds
        self._task: asyncio.Task[None] | None = None
        self.remaining = 0
        self.is_paused = False

    @property
    def running(self) -> bool:
        return self._task is not None

    def start(self, duration: int) -> None:
        """Arranca la cuenta atrás. Requiere un event loop en marcha."""

        self.stop()
        self.remaining = max(0, int(duration))
        self.is_paused = False
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        me = asyncio.current_task()
        while self._task is me:
            await asyncio.sleep(self._tick_seconds)
            if self._task is not me:
                break
            self.tick()

    def tick(self) -> None:
        if not self.running or self.is_paused:
            return
        self.remaining -= 1
        if self.remaining <= 0:
            self.remaining = 0
            if self._on_tick:
                self._on_tick(self.remaining)
            self._finish(RoundResult.TIMEOUT)
            return
        if self._on_tick:
            self._on_tick(self.remaining)

    def pause(self) -> None:
        self.is_paused = True

    def resume(self) -> None:
        self.is_paused = False

    def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    def succeed(self) -> None:
        self._finish(RoundResult.SUCCESS)

    def abandon(self) -> None:
        self._finish(RoundResult.FAIL)

    def _finish(self, result: RoundResult) -> None:
        # Una sola finalización por `start`.
        if not self.running:
            logger.debug("Ignoring %s: timer is not running", result.value)
            return
        self.stop()
        self._on_complete(result)
