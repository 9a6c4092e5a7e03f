"""
AsyncioScheduler — RuntimeScheduler running each job as an asyncio task.

INTERVAL jobs sleep between runs; DAILY jobs sleep until the next of their
wall-clock times. A failing run is logged and the job keeps its schedule.
"""

import asyncio
import logging
from datetime import datetime, time, timedelta
from typing import Awaitable, Callable, Dict, List, Sequence

from .base import RuntimeScheduler, ScheduledJob, ScheduleType

logger = logging.getLogger(__name__)


def seconds_until_next(daily_times: Sequence[time], now: datetime) -> float:
    """Seconds from *now* until the earliest upcoming time in *daily_times*."""
    candidates = []
    for t in daily_times:
        run_at = datetime.combine(now.date(), t)
        if run_at <= now:
            run_at += timedelta(days=1)
        candidates.append(run_at)
    return (min(candidates) - now).total_seconds()


class AsyncioScheduler(RuntimeScheduler):
    """In-process scheduler on the running event loop."""

    def __init__(
        self,
        clock: Callable[[], datetime] = datetime.now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._clock = clock
        self._sleep = sleep
        self._jobs: Dict[str, ScheduledJob] = {}
        self._tasks: Dict[str, asyncio.Task] = {}
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def schedule(self, job: ScheduledJob) -> None:
        if not job.enabled:
            logger.info("Job '%s' is disabled, skipping", job.name)
            return

        self.cancel(job.name)
        self._jobs[job.name] = job
        if job.schedule_type == ScheduleType.INTERVAL:
            logger.info(
                "Scheduled interval job '%s' every %ds (first after %ds)",
                job.name,
                job.interval_seconds,
                job.first_delay_seconds,
            )
        else:
            logger.info(
                "Scheduled daily job '%s' at %s",
                job.name,
                ", ".join(t.strftime("%H:%M") for t in job.daily_times),
            )
        if self._running:
            self._start_task(job)

    def cancel(self, name: str) -> bool:
        if name not in self._jobs:
            return False
        del self._jobs[name]
        task = self._tasks.pop(name, None)
        if task is not None:
            task.cancel()
        logger.info("Cancelled job '%s'", name)
        return True

    def list_jobs(self) -> List[str]:
        return list(self._jobs.keys())

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        for job in self._jobs.values():
            self._start_task(job)
        logger.info("Scheduler started with %d jobs", len(self._jobs))

    async def stop(self) -> None:
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        self._jobs.clear()
        self._running = False
        logger.info("All scheduled jobs cancelled")

    def _start_task(self, job: ScheduledJob) -> None:
        self._tasks[job.name] = asyncio.create_task(
            self._run(job), name=f"scheduler:{job.name}"
        )

    async def _run(self, job: ScheduledJob) -> None:
        if job.schedule_type == ScheduleType.INTERVAL:
            await self._sleep(job.first_delay_seconds)
            while True:
                await self.run_once(job)
                await self._sleep(job.interval_seconds)
        else:
            while True:
                await self._sleep(seconds_until_next(job.daily_times, self._clock()))
                await self.run_once(job)

    async def run_once(self, job: ScheduledJob) -> None:
        """Execute one run of *job*, logging instead of raising on failure."""
        started = self._clock()
        try:
            await job.callback()
        except Exception:
            logger.exception("Scheduled job '%s' failed", job.name)
            return
        elapsed = (self._clock() - started).total_seconds()
        logger.info("Scheduled job '%s' finished in %.1fs", job.name, elapsed)
