# src/task_agent/tasks/task_models.py

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum

from .errors import TaskStateError

PRIORITY_MIN = 1
PRIORITY_MAX = 5


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    pending -> completed | failed, exactly once. Terminal states never change.
    """

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not TaskStatus.PENDING

    @classmethod
    def from_db(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.PENDING
        try:
            return cls(raw)
        except ValueError:
            return cls.PENDING


class TaskType(StrEnum):
    MEETING = "meeting"
    EMAIL = "email"
    OTHER = "other"

    @classmethod
    def from_raw(cls, raw: str | None) -> TaskType:
        """Unknown or missing types are treated as OTHER (a successful no-op)."""
        if not raw:
            return cls.OTHER
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return cls.OTHER


@dataclass(slots=True)
class Task:
    description: str
    priority: int
    type: TaskType = TaskType.OTHER
    status: TaskStatus = TaskStatus.PENDING

    task_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=utc_now)
    finished_at: datetime | None = None

    @classmethod
    def create(cls, *, description: str, priority: int, type: str | TaskType | None = None) -> Task:
        if not description or not description.strip():
            raise ValueError("description is required")
        task_type = type if isinstance(type, TaskType) else TaskType.from_raw(type)
        return cls(description=description.strip(), priority=priority, type=task_type)

    def transition_to(self, new_status: TaskStatus, *, at: datetime | None = None) -> None:
        if self.status.is_terminal:
            raise TaskStateError(self.task_id, self.status.value, new_status.value)
        if not new_status.is_terminal:
            raise TaskStateError(self.task_id, self.status.value, new_status.value)
        self.status = new_status
        self.finished_at = at or utc_now()


@dataclass(slots=True, frozen=True)
class ParsedCommand:
    """Structured fields pulled out of a free-text description. Never persisted."""

    attendees: list[str] | None = None
    start_time: datetime | None = None
    duration_ms: int | None = None
    title: str | None = None
    to: str | None = None
    subject: str | None = None
    body: str | None = None


@dataclass(slots=True, frozen=True)
class UpcomingEvent:
    title: str
    start_time: datetime
    event_id: str | None = None

    @property
    def identity(self) -> tuple[str, ...]:
        if self.event_id:
            return (self.event_id,)
        return (self.title, self.start_time.isoformat())
