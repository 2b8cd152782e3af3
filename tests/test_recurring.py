# tests/test_recurring.py

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest

from task_agent.tasks.recurring import DailyAt, Every, RecurringScheduler, ScheduledJob

from .fakes import FakeClock, settle


def test_daily_at_next_fire_is_strictly_after() -> None:
    sched = DailyAt(9)
    before = datetime(2026, 3, 2, 8, 59, tzinfo=timezone.utc)
    exactly = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

    assert sched.next_fire_after(before) == exactly
    assert sched.next_fire_after(exactly) == datetime(2026, 3, 3, 9, 0, tzinfo=timezone.utc)


def test_schedule_validation() -> None:
    with pytest.raises(ValueError):
        DailyAt(24)
    with pytest.raises(ValueError):
        Every(0)


@pytest.mark.asyncio
async def test_failing_job_does_not_stop_triggers(clock: FakeClock) -> None:
    calls = {"bad": 0, "good": 0}

    async def bad() -> None:
        calls["bad"] += 1
        raise RuntimeError("boom")

    async def good() -> None:
        calls["good"] += 1

    sched = RecurringScheduler(
        [ScheduledJob("bad", bad, Every(10)), ScheduledJob("good", good, Every(10))],
        clock=clock,
    )
    await sched.start()
    await clock.advance(30)
    await sched.stop()

    assert calls == {"bad": 4, "good": 4}


@pytest.mark.asyncio
async def test_overlapping_firing_is_skipped(clock: FakeClock) -> None:
    release = asyncio.Event()
    runs = 0

    async def slow() -> None:
        nonlocal runs
        runs += 1
        await release.wait()

    sched = RecurringScheduler([ScheduledJob("slow", slow, Every(60), run_on_start=False)], clock=clock)
    await sched.start()

    await clock.advance(60)
    assert runs == 1
    await clock.advance(120)  # two more firings while the first is still blocked
    assert runs == 1

    release.set()
    await settle()
    await clock.advance(60)
    assert runs == 2

    await sched.stop()


@pytest.mark.asyncio
async def test_stop_waits_for_in_flight_job(clock: FakeClock) -> None:
    release = asyncio.Event()
    finished = False

    async def slow() -> None:
        nonlocal finished
        await release.wait()
        finished = True

    sched = RecurringScheduler([ScheduledJob("slow", slow, Every(60), run_on_start=False)], clock=clock)
    await sched.start()
    await clock.advance(60)

    stopper = asyncio.create_task(sched.stop())
    await settle()
    assert not stopper.done()

    release.set()
    await stopper
    assert finished
    assert not sched.is_running


@pytest.mark.asyncio
async def test_scheduler_can_restart_after_stop(clock: FakeClock) -> None:
    calls = 0

    async def job() -> None:
        nonlocal calls
        calls += 1

    sched = RecurringScheduler([ScheduledJob("job", job, Every(5))], clock=clock)
    await sched.start()
    await sched.stop()
    await clock.advance(60)
    assert calls == 1

    await sched.start()
    await clock.advance(5)
    await sched.stop()
    assert calls == 3


def test_duplicate_job_names_rejected() -> None:
    async def job() -> None:
        return None

    with pytest.raises(ValueError):
        RecurringScheduler([ScheduledJob("a", job, Every(1)), ScheduledJob("a", job, Every(2))])
