# src/task_agent/tasks/task_scheduler.py

from __future__ import annotations

"""
Task scheduler.

Two recurring jobs on top of RecurringScheduler:
- daily digest: mails the top pending tasks by priority,
- meeting check: polls the calendar and mails a reminder for every event
  starting within the reminder window.

It shares the calendar/mail collaborators and the history store with the
dispatcher but never dispatches tasks itself.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from ..core.ports import CalendarActor, Clock, HistoryRepo, MailActor, SystemClock
from .recurring import DailyAt, Every, RecurringScheduler, ScheduledJob
from .task_models import Task, TaskStatus, UpcomingEvent

logger = logging.getLogger(__name__)

DIGEST_JOB = "daily_digest"
MEETING_CHECK_JOB = "meeting_check"

DIGEST_SUBJECT = "Daily Task Reminder"
DIGEST_HEADING = "Here are your top priority tasks for today:"
DIGEST_EMPTY = "No pending tasks"
MEETING_REMINDER_SUBJECT = "Meeting Reminder"


@dataclass(slots=True, frozen=True)
class SchedulerConfig:
    digest_recipient: str = "user@example.com"
    reminder_recipient: str = "user@example.com"
    digest_hour_utc: int = 9
    digest_minute_utc: int = 0
    digest_size: int = 5
    meeting_check_interval_seconds: float = 60.0
    reminder_window: timedelta = timedelta(minutes=15)
    dedupe_meeting_reminders: bool = False


def select_digest_tasks(tasks: list[Task], limit: int = 5) -> list[Task]:
    """
    Pending tasks ordered by descending priority, ties kept in insertion order.
    """
    pending = [t for t in tasks if t.status == TaskStatus.PENDING]
    # sorted() is stable, so equal priorities keep their history order.
    return sorted(pending, key=lambda t: t.priority, reverse=True)[: max(0, limit)]


def format_digest(tasks: list[Task]) -> str:
    lines = [f"{i}. {t.description} (Priority: {t.priority})" for i, t in enumerate(tasks, start=1)]
    return DIGEST_HEADING + "\n" + ("\n".join(lines) or DIGEST_EMPTY)


def format_meeting_reminder(event: UpcomingEvent) -> str:
    start = event.start_time.astimezone(timezone.utc).strftime("%H:%M:%S")
    return f"Reminder: You have a meeting '{event.title}' starting at {start} UTC"


def in_reminder_window(event: UpcomingEvent, now: datetime, window: timedelta) -> bool:
    time_to_start = event.start_time - now
    return timedelta(0) < time_to_start <= window


class TaskScheduler:
    def __init__(
        self,
        *,
        calendar: CalendarActor,
        mailer: MailActor,
        history: HistoryRepo,
        clock: Clock | None = None,
        config: SchedulerConfig | None = None,
    ) -> None:
        self._calendar = calendar
        self._mailer = mailer
        self._history = history
        self._clock = clock or SystemClock()
        self._config = config or SchedulerConfig()
        self._reminded: set[tuple[str, ...]] = set()

        cfg = self._config
        self._recurring = RecurringScheduler(
            [
                ScheduledJob(
                    name=DIGEST_JOB,
                    body=self.send_daily_digest,
                    schedule=DailyAt(cfg.digest_hour_utc, cfg.digest_minute_utc),
                ),
                ScheduledJob(
                    name=MEETING_CHECK_JOB,
                    body=self.check_upcoming_meetings,
                    schedule=Every(cfg.meeting_check_interval_seconds),
                ),
            ],
            clock=self._clock,
        )

    @property
    def is_running(self) -> bool:
        return self._recurring.is_running

    async def start(self) -> None:
        await self._recurring.start()

    async def stop(self) -> None:
        await self._recurring.stop()

    async def send_daily_digest(self) -> None:
        tasks = select_digest_tasks(self._history.list_tasks(), self._config.digest_size)
        logger.info("Sending daily digest (%d pending task(s))", len(tasks))
        await self._mailer.send_email(self._config.digest_recipient, DIGEST_SUBJECT, format_digest(tasks))

    async def check_upcoming_meetings(self) -> None:
        events = await self._calendar.get_upcoming_events()
        now = self._clock.now()
        logger.debug("Checking %d upcoming event(s)", len(events))

        if self._config.dedupe_meeting_reminders:
            live = {e.identity for e in events if e.start_time > now}
            self._reminded &= live

        for event in events:
            if not in_reminder_window(event, now, self._config.reminder_window):
                continue
            if self._config.dedupe_meeting_reminders and event.identity in self._reminded:
                continue
            try:
                await self.send_meeting_reminder(event)
            except Exception:
                logger.exception("Meeting reminder failed title=%r", event.title)
                continue
            if self._config.dedupe_meeting_reminders:
                self._reminded.add(event.identity)

    async def send_meeting_reminder(self, event: UpcomingEvent) -> None:
        logger.info("Sending meeting reminder title=%r", event.title)
        await self._mailer.send_email(
            self._config.reminder_recipient,
            MEETING_REMINDER_SUBJECT,
            format_meeting_reminder(event),
        )
