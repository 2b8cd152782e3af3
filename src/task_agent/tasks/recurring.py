# src/task_agent/tasks/recurring.py

from __future__ import annotations

"""
Recurring job triggers.

Each ScheduledJob gets its own trigger loop that sleeps (via the injected Clock)
until the next fire time and then launches the job body as a separate asyncio
task. A firing is skipped while the previous run of the same job is still in
flight. Job bodies never take the scheduler down: exceptions are logged and
the trigger keeps going.

All wall-clock schedules are evaluated in UTC.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone

from ..core.ports import Clock, SystemClock

logger = logging.getLogger(__name__)

JobBody = Callable[[], Awaitable[None]]


@dataclass(slots=True, frozen=True)
class DailyAt:
    """Fire once per calendar day at hour:minute UTC."""

    hour: int
    minute: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.hour <= 23 or not 0 <= self.minute <= 59:
            raise ValueError(f"invalid daily time {self.hour}:{self.minute:02d}")

    def next_fire_after(self, after: datetime) -> datetime:
        after = after.astimezone(timezone.utc)
        candidate = datetime.combine(after.date(), time(self.hour, self.minute), tzinfo=timezone.utc)
        if candidate <= after:
            candidate += timedelta(days=1)
        return candidate


@dataclass(slots=True, frozen=True)
class Every:
    """Fire on a fixed interval."""

    seconds: float

    def __post_init__(self) -> None:
        if self.seconds <= 0:
            raise ValueError("interval must be positive")

    def next_fire_after(self, after: datetime) -> datetime:
        return after + timedelta(seconds=self.seconds)


Schedule = DailyAt | Every


@dataclass(slots=True)
class ScheduledJob:
    name: str
    body: JobBody
    schedule: Schedule
    run_on_start: bool = True
    allow_overlap: bool = False


class RecurringScheduler:
    def __init__(self, jobs: list[ScheduledJob], *, clock: Clock | None = None) -> None:
        names = [j.name for j in jobs]
        if len(set(names)) != len(names):
            raise ValueError(f"duplicate job names: {names}")
        self._jobs = list(jobs)
        self._clock = clock or SystemClock()
        self._triggers: list[asyncio.Task[None]] = []
        self._running: dict[str, set[asyncio.Task[None]]] = {j.name: set() for j in jobs}
        self._stopped = True

    @property
    def is_running(self) -> bool:
        return not self._stopped

    def job_names(self) -> list[str]:
        return [j.name for j in self._jobs]

    async def start(self) -> None:
        """
        Run every run_on_start job once (in registration order), then arm triggers.
        """
        if not self._stopped:
            logger.warning("Scheduler already started")
            return
        self._stopped = False
        logger.info("Starting scheduler jobs=%s", self.job_names())

        for job in self._jobs:
            if not job.run_on_start:
                continue
            run = self._fire(job)
            if run is not None:
                await asyncio.wait([run])
            if self._stopped:
                return

        for job in self._jobs:
            self._triggers.append(asyncio.create_task(self._trigger_loop(job), name=f"trigger:{job.name}"))

    async def stop(self) -> None:
        """
        Halt all triggers and wait for in-flight job bodies to finish.

        When this returns, no job body is executing and none will be launched.
        """
        self._stopped = True
        triggers, self._triggers = self._triggers, []
        for t in triggers:
            t.cancel()
        if triggers:
            await asyncio.gather(*triggers, return_exceptions=True)

        in_flight = [t for runs in self._running.values() for t in runs]
        if in_flight:
            logger.info("Waiting for %d in-flight job(s) to finish", len(in_flight))
            await asyncio.gather(*in_flight, return_exceptions=True)
        logger.info("Scheduler stopped")

    async def _trigger_loop(self, job: ScheduledJob) -> None:
        target = job.schedule.next_fire_after(self._clock.now())
        while not self._stopped:
            delay = (target - self._clock.now()).total_seconds()
            await self._clock.sleep(max(0.0, delay))
            if self._stopped:
                return
            self._fire(job)
            # Never fire twice for the same slot if the clock woke us slightly early.
            target = job.schedule.next_fire_after(max(target, self._clock.now()))

    def _fire(self, job: ScheduledJob) -> asyncio.Task[None] | None:
        runs = self._running[job.name]
        if runs and not job.allow_overlap:
            logger.warning("Job %s is still running; skipping this firing", job.name)
            return None

        run = asyncio.create_task(self._run_guarded(job), name=f"job:{job.name}")
        runs.add(run)
        run.add_done_callback(runs.discard)
        return run

    async def _run_guarded(self, job: ScheduledJob) -> None:
        logger.debug("Job %s started", job.name)
        try:
            await job.body()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Job %s failed", job.name)
            return
        logger.debug("Job %s finished", job.name)
