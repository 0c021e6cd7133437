"""Cancellable periodic jobs for the live view.

Both the now-marker tick and the silent booking refresh run as a
``ScheduledTask``: an APScheduler interval job on the running asyncio loop
that fires every ``interval`` seconds, or straight away when woken (window
focus or visibility regained, manual reload). ``cancel()`` removes the job
and waits for a run in progress to stop.
"""

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, Optional, Set

from apscheduler.job import Job
from apscheduler.schedulers.asyncio import AsyncIOScheduler


logger = logging.getLogger(__name__)


class WakeReason(str, Enum):
    INTERVAL = "interval"
    FOCUS = "focus"
    VISIBILITY = "visibility"
    MANUAL = "manual"


TaskCallback = Callable[[WakeReason], Awaitable[None]]


def create_scheduler() -> AsyncIOScheduler:
    """An AsyncIOScheduler bound to the running loop."""
    return AsyncIOScheduler(event_loop=asyncio.get_running_loop())


class ScheduledTask:
    """Run an async callback on an interval and on demand.

    Pass a shared ``scheduler`` to run several tasks on one scheduler;
    otherwise the task starts its own and shuts it down on ``cancel()``.
    """

    def __init__(
        self,
        callback: TaskCallback,
        interval: float,
        name: str = "task",
        scheduler: Optional[AsyncIOScheduler] = None,
    ):
        self.callback = callback
        self.interval = interval
        self.name = name
        self._scheduler = scheduler
        self._owns_scheduler = scheduler is None
        self._job: Optional[Job] = None
        self._wake_reason = WakeReason.INTERVAL
        self._runs: Set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._job is not None

    def start(self):
        if self.running:
            return
        if self._scheduler is None:
            self._scheduler = create_scheduler()
        if not self._scheduler.running:
            self._scheduler.start()

        self._job = self._scheduler.add_job(
            self._fire,
            "interval",
            seconds=self.interval,
            id=self.name,
            name=self.name,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        logger.debug(f"Started {self.name} every {self.interval}s")

    def wake(self, reason: WakeReason = WakeReason.MANUAL):
        """Fire the callback now instead of waiting for the interval."""
        if not self.running:
            return
        self._wake_reason = reason
        self._job.modify(next_run_time=datetime.now(timezone.utc))

    async def cancel(self):
        job, self._job = self._job, None
        if job is None:
            return
        job.remove()

        current = asyncio.current_task()
        runs = [run for run in self._runs if run is not current]
        for run in runs:
            run.cancel()
        await asyncio.gather(*runs, return_exceptions=True)

        if self._owns_scheduler:
            scheduler, self._scheduler = self._scheduler, None
            await shutdown_scheduler(scheduler)
        logger.debug(f"Cancelled {self.name}")

    async def reschedule(self):
        """Restart the interval from now."""
        if not self.running:
            self.start()
            return
        self._job.reschedule("interval", seconds=self.interval)
        logger.debug(f"Rescheduled {self.name}")

    async def _fire(self):
        reason, self._wake_reason = self._wake_reason, WakeReason.INTERVAL
        run = asyncio.current_task()
        self._runs.add(run)

        logger.debug(f"Running {self.name} ({reason.value})")
        try:
            await self.callback(reason)
        except asyncio.CancelledError:
            logger.debug(f"Stopped {self.name} mid-run")
        except Exception:
            logger.exception(f"Scheduled {self.name} failed")
        finally:
            self._runs.discard(run)


async def shutdown_scheduler(scheduler: AsyncIOScheduler):
    if not scheduler.running:
        return
    scheduler.shutdown(wait=False)
    # AsyncIOScheduler queues the shutdown onto the loop
    await asyncio.sleep(0)


class LiveRefresh:
    """The two cadences of a live calendar view.

    ``on_tick`` redraws geometry (the now-marker moves) and never fetches.
    ``on_refresh`` re-runs the fetch silently. Both jobs share one scheduler,
    are restarted together when the credential or the display window
    changes, and are stopped by ``close()``.
    """

    def __init__(
        self,
        on_tick: TaskCallback,
        on_refresh: TaskCallback,
        tick_interval: float = 60.0,
        refresh_interval: float = 30.0,
    ):
        self._on_tick = on_tick
        self._on_refresh = on_refresh
        self.tick_interval = tick_interval
        self.refresh_interval = refresh_interval
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.tick: Optional[ScheduledTask] = None
        self.refresh: Optional[ScheduledTask] = None

    @property
    def running(self) -> bool:
        return bool(self.tick and self.tick.running) or bool(self.refresh and self.refresh.running)

    def start(self):
        if self.running:
            return
        self.scheduler = create_scheduler()
        self.tick = ScheduledTask(
            self._on_tick, self.tick_interval, name="tick", scheduler=self.scheduler
        )
        self.refresh = ScheduledTask(
            self._on_refresh, self.refresh_interval, name="refresh", scheduler=self.scheduler
        )
        self.tick.start()
        self.refresh.start()

    def wake(self, reason: WakeReason = WakeReason.FOCUS):
        if not self.running:
            return
        self.tick.wake(reason)
        self.refresh.wake(reason)

    async def reschedule(self):
        """Restart both intervals from now, starting them again after ``close()``."""
        if not self.running:
            self.start()
            return
        await self.tick.reschedule()
        await self.refresh.reschedule()

    async def close(self):
        if self.scheduler is None:
            return
        await self.tick.cancel()
        await self.refresh.cancel()
        scheduler, self.scheduler = self.scheduler, None
        await shutdown_scheduler(scheduler)
