# src/task_agent/actors/calendar.py

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timedelta

from ..core.ports import Clock, SystemClock
from ..tasks.task_models import UpcomingEvent

logger = logging.getLogger(__name__)


class InMemoryCalendar:
    """
    Local calendar used when no calendar provider is configured.

    Scheduled meetings are kept in memory and served back as upcoming events,
    which is enough for the meeting-reminder job to work end to end.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or SystemClock()
        self._events: list[tuple[UpcomingEvent, timedelta, list[str]]] = []
        self._lock = threading.Lock()

    async def schedule_meeting(
        self,
        attendees: list[str],
        start: datetime,
        duration_ms: int,
        title: str,
    ) -> None:
        event = UpcomingEvent(title=title, start_time=start, event_id=uuid.uuid4().hex)
        with self._lock:
            self._events.append((event, timedelta(milliseconds=duration_ms), list(attendees)))
        logger.info(
            "Meeting scheduled (local calendar) title=%r start=%s duration_ms=%s attendees=%s",
            title,
            start.isoformat(),
            duration_ms,
            attendees,
        )

    async def get_upcoming_events(self) -> list[UpcomingEvent]:
        now = self._clock.now()
        with self._lock:
            # Meetings that have already ended are dropped for good.
            self._events = [entry for entry in self._events if entry[0].start_time + entry[1] > now]
            upcoming = [e for e, _, _ in self._events if e.start_time > now]
        return sorted(upcoming, key=lambda e: e.start_time)

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
