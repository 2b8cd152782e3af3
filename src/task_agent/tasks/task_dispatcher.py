# src/task_agent/tasks/task_dispatcher.py

from __future__ import annotations

"""
Task dispatcher.

Turns a submitted task into one external action:
- validates priority before touching anything,
- asks the language collaborator for an interpretation (audit only),
- parses the description and fills defaults,
- calls the calendar or mail collaborator according to the task type,
- moves the task to its terminal status and appends it to history.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta

from ..core.ports import CalendarActor, Clock, HistoryRepo, LanguageActor, MailActor, SystemClock
from .command_parser import parse_command
from .errors import CollaboratorFailure, InvalidPriority, TaskStateError
from .task_models import PRIORITY_MAX, PRIORITY_MIN, Task, TaskStatus, TaskType

logger = logging.getLogger(__name__)

DEFAULT_MEETING_OFFSET = timedelta(hours=1)
DEFAULT_MEETING_DURATION_MS = 30 * 60 * 1000


@dataclass(slots=True, frozen=True)
class DispatchDefaults:
    default_attendee: str = "example@email.com"
    fallback_email_to: str = "user@example.com"
    fallback_email_body: str = "This is an automated email from the AI Agent."


def validate_priority(priority: object) -> int:
    # bool is an int subclass; True/False are not priorities.
    if isinstance(priority, bool) or not isinstance(priority, int):
        raise InvalidPriority(priority)
    if priority < PRIORITY_MIN or priority > PRIORITY_MAX:
        raise InvalidPriority(priority)
    return priority


class _ActionFailed(Exception):
    """Internal marker: which collaborator failed, wrapping the original error."""

    def __init__(self, collaborator: str, cause: Exception) -> None:
        super().__init__(collaborator)
        self.collaborator = collaborator
        self.cause = cause


TaskHandler = Callable[[Task], Awaitable[None]]


class TaskDispatcher:
    def __init__(
        self,
        *,
        calendar: CalendarActor,
        mailer: MailActor,
        interpreter: LanguageActor,
        history: HistoryRepo,
        clock: Clock | None = None,
        defaults: DispatchDefaults | None = None,
        interpreter_failure_fatal: bool = False,
    ) -> None:
        self._calendar = calendar
        self._mailer = mailer
        self._interpreter = interpreter
        self._history = history
        self._clock = clock or SystemClock()
        self._defaults = defaults or DispatchDefaults()
        self._interpreter_failure_fatal = interpreter_failure_fatal

        self._handlers: dict[TaskType, TaskHandler] = {
            TaskType.MEETING: self._handle_meeting,
            TaskType.EMAIL: self._handle_email,
            TaskType.OTHER: self._handle_other,
        }
        missing = set(TaskType) - set(self._handlers)
        if missing:
            raise RuntimeError(f"No dispatch handler for task types: {sorted(missing)}")

    async def dispatch(self, task: Task) -> None:
        """
        Drive a pending task to a terminal status.

        Raises InvalidPriority before any side effect, or CollaboratorFailure after
        the task has been marked failed and recorded in history.
        """
        validate_priority(task.priority)
        if task.status.is_terminal:
            raise TaskStateError(task.task_id, task.status.value, "dispatch")
        logger.info(
            "Processing task task_id=%s type=%s priority=%s",
            task.task_id,
            task.type.value,
            task.priority,
        )

        try:
            await self._interpret(task)
            await self._handlers[task.type](task)
        except _ActionFailed as e:
            task.transition_to(TaskStatus.FAILED, at=self._clock.now())
            self._history.append(task)
            logger.error(
                "Task %s failed: %s call raised %s",
                task.task_id,
                e.collaborator,
                e.cause.__class__.__name__,
            )
            raise CollaboratorFailure(e.collaborator, task.task_id, e.cause) from e.cause

        task.transition_to(TaskStatus.COMPLETED, at=self._clock.now())
        self._history.append(task)
        logger.info("Task %s -> completed", task.task_id)

    async def _interpret(self, task: Task) -> None:
        try:
            response = await self._interpreter.process_command(task.description)
        except Exception as e:
            if self._interpreter_failure_fatal:
                raise _ActionFailed("interpreter", e) from e
            logger.warning(
                "Interpreter failed for task_id=%s (%s); continuing",
                task.task_id,
                e.__class__.__name__,
            )
            return
        logger.info("Interpreter response task_id=%s: %s", task.task_id, response)

    async def _handle_meeting(self, task: Task) -> None:
        now = self._clock.now()
        parsed = parse_command(task.description, now=now)

        attendees = parsed.attendees or [self._defaults.default_attendee]
        start = parsed.start_time or now + DEFAULT_MEETING_OFFSET
        duration_ms = parsed.duration_ms or DEFAULT_MEETING_DURATION_MS
        title = parsed.title or f"Meeting (Priority: {task.priority})"

        logger.info("Scheduling meeting task_id=%s title=%r attendees=%s", task.task_id, title, attendees)
        try:
            await self._calendar.schedule_meeting(attendees, start, duration_ms, title)
        except Exception as e:
            raise _ActionFailed("calendar", e) from e

    async def _handle_email(self, task: Task) -> None:
        parsed = parse_command(task.description, now=self._clock.now())

        to = parsed.to or self._defaults.fallback_email_to
        subject = parsed.subject or f"Email (Priority: {task.priority})"
        body = parsed.body or self._defaults.fallback_email_body

        logger.info("Sending email task_id=%s to=%s subject=%r", task.task_id, to, subject)
        try:
            await self._mailer.send_email(to, subject, body)
        except Exception as e:
            raise _ActionFailed("mailer", e) from e

    async def _handle_other(self, task: Task) -> None:
        logger.info("No action for task_id=%s type=%s; marking completed", task.task_id, task.type.value)
