"""Cancellable fixed-interval polling."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


class PollingTask:
    """Runs ``cycle`` every ``interval`` seconds and hands results to ``on_result``.

    A new cycle starts on every tick whether or not the previous one has
    finished, so slow cycles may overlap. Each cycle gets a sequence number
    when it starts and its outcome is applied only if no later-started cycle
    has already been applied: the last *started* cycle wins, and a slow,
    older response never overwrites a newer one.

    After ``stop()`` nothing is applied, including cycles that were already in
    flight when it was called.
    """

    def __init__(
        self,
        name: str,
        cycle: Callable[[], Awaitable[Any]],
        on_result: Callable[[Any], None],
        interval: float,
        on_error: Callable[[BaseException], None] | None = None,
    ) -> None:
        self.name = name
        self.interval = interval
        self._cycle = cycle
        self._on_result = on_result
        self._on_error = on_error

        self._alive = True
        self._timer: asyncio.Task | None = None
        self._in_flight: set[asyncio.Task] = set()
        self._started = 0
        self._applied = 0

    @property
    def is_running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def start(self) -> None:
        """Start ticking. The first cycle starts immediately."""
        if self.is_running:
            return
        self._alive = True
        self._timer = asyncio.create_task(self._tick_loop())
        logger.info("Polling %s every %.1fs", self.name, self.interval)

    async def run_once(self) -> bool:
        """Run one cycle now; returns whether its outcome was applied."""
        self._started += 1
        return await self._run_cycle(self._started)

    async def stop(self) -> None:
        """Cancel the timer and every in-flight cycle; discard their results."""
        self._alive = False
        tasks = list(self._in_flight)
        if self._timer is not None:
            tasks.append(self._timer)
            self._timer = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._in_flight.clear()
        logger.debug("Stopped polling %s", self.name)

    async def _tick_loop(self) -> None:
        while True:
            self._started += 1
            task = asyncio.create_task(self._run_cycle(self._started))
            self._in_flight.add(task)
            task.add_done_callback(self._in_flight.discard)
            await asyncio.sleep(self.interval)

    async def _run_cycle(self, seq: int) -> bool:
        try:
            result = await self._cycle()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if not self._accept(seq):
                return False
            logger.warning("%s cycle %d failed: %s", self.name, seq, e)
            if self._on_error is not None:
                self._call(self._on_error, e)
            return True

        if not self._accept(seq):
            return False
        self._call(self._on_result, result)
        return True

    def _accept(self, seq: int) -> bool:
        if not self._alive:
            logger.debug("%s cycle %d finished after stop, discarded", self.name, seq)
            return False
        if seq < self._applied:
            logger.debug(
                "%s cycle %d superseded by cycle %d", self.name, seq, self._applied
            )
            return False
        self._applied = seq
        return True

    def _call(self, callback: Callable[[Any], None], value: Any) -> None:
        try:
            callback(value)
        except Exception as e:
            logger.error("%s callback failed: %s", self.name, e)
