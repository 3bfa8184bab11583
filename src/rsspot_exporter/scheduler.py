from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from enum import Enum

from rsspot_exporter.constants import DEFAULT_SCRAPE_INTERVAL_SECONDS

logger = logging.getLogger(__name__)

CollectFn = Callable[[], Awaitable[None]]
SleepFn = Callable[[float], Awaitable[None]]


class SchedulerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class CollectionScheduler:
    """Run collection passes on a fixed interval, never more than one at a time.

    A tick that fires while a pass is still running is skipped outright; it is
    neither queued nor allowed to cancel the pass in flight. Failures are
    logged and swallowed so the next tick acts as the retry.
    """

    def __init__(
        self,
        collect: CollectFn,
        *,
        interval_seconds: float = DEFAULT_SCRAPE_INTERVAL_SECONDS,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._collect = collect
        self.interval_seconds = interval_seconds
        self._sleep = sleep
        self.state = SchedulerState.IDLE
        self.last_success: datetime | None = None
        self.last_error: BaseException | None = None
        self._loop_task: asyncio.Task[None] | None = None
        self._ticks: set[asyncio.Task[bool]] = set()

    @property
    def running(self) -> bool:
        return self.state is SchedulerState.RUNNING

    async def tick(self) -> bool:
        """Run one pass unless another is in flight; return whether it ran."""

        if self.state is SchedulerState.RUNNING:
            logger.info("collection already in progress, skipping tick")
            return False

        self.state = SchedulerState.RUNNING
        try:
            await self._collect()
        except Exception as exc:
            self.last_error = exc
            logger.error("error collecting metrics", exc_info=exc)
        else:
            self.last_error = None
            self.last_success = datetime.now(UTC)
            logger.info("metrics collected successfully", extra={"at": self.last_success.isoformat()})
        finally:
            self.state = SchedulerState.IDLE
        return True

    def fire(self) -> asyncio.Task[bool]:
        task = asyncio.get_running_loop().create_task(self.tick())
        self._ticks.add(task)
        task.add_done_callback(self._ticks.discard)
        return task

    async def run_forever(self) -> None:
        while True:
            await self._sleep(self.interval_seconds)
            self.fire()

    def start(self) -> asyncio.Task[None]:
        if self._loop_task is None or self._loop_task.done():
            self._loop_task = asyncio.get_running_loop().create_task(self.run_forever())
        return self._loop_task

    async def stop(self) -> None:
        tasks: list[asyncio.Task[object]] = [*self._ticks]
        if self._loop_task is not None:
            tasks.append(self._loop_task)
            self._loop_task = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._ticks.clear()
