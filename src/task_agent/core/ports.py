# src/task_agent/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The task engine depends on Protocols instead of concrete collaborators.
This keeps calendar/mail/LLM providers swappable and makes testing easier.
"""

import asyncio
from datetime import datetime, timezone
from typing import Awaitable, Protocol

from ..tasks.task_models import Task, UpcomingEvent


class CalendarActor(Protocol):
    def schedule_meeting(
            self,
            attendees: list[str],
            start: datetime,
            duration_ms: int,
            title: str,
    ) -> Awaitable[None]: ...

    def get_upcoming_events(self) -> Awaitable[list[UpcomingEvent]]: ...


class MailActor(Protocol):
    def send_email(self, to: str, subject: str, body: str) -> Awaitable[None]: ...


class LanguageActor(Protocol):
    """Interprets a free-text command; the result is only used for audit logs."""
    def process_command(self, text: str) -> Awaitable[str]: ...


class HistoryRepo(Protocol):
    def append(self, task: Task) -> None: ...
    def list_tasks(self) -> list[Task]: ...
    def count(self) -> int: ...


class Clock(Protocol):
    """
    Time source for the scheduler and dispatcher.

    now() must return a timezone-aware UTC datetime.
    """

    def now(self) -> datetime: ...
    def sleep(self, seconds: float) -> Awaitable[None]: ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(max(0.0, seconds))
