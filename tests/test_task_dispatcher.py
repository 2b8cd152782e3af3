# tests/test_task_dispatcher.py

from __future__ import annotations

from datetime import timedelta

import pytest

from task_agent.tasks.errors import CollaboratorFailure, InvalidPriority, TaskStateError
from task_agent.tasks.task_dispatcher import DEFAULT_MEETING_DURATION_MS
from task_agent.tasks.task_models import Task, TaskStatus, TaskType

from .conftest import START


@pytest.mark.asyncio
@pytest.mark.parametrize("priority", [0, 6, -1, 100, True, "3", 2.5])
async def test_invalid_priority_rejected_without_side_effects(
    service, calendar, mailer, interpreter, history, priority
) -> None:
    task = Task.create(description="send email to a@x.com", priority=priority, type="email")

    with pytest.raises(InvalidPriority):
        await service.submit_task(task)

    assert task.status == TaskStatus.PENDING
    assert history.count() == 0
    assert interpreter.calls == []
    assert mailer.sent == []
    assert calendar.meetings == []


@pytest.mark.asyncio
@pytest.mark.parametrize("raw_type", ["other", "todo", "", None])
async def test_unknown_type_completes_without_collaborators(
    service, calendar, mailer, history, raw_type
) -> None:
    task = await service.submit(description="water the plants", priority=2, type=raw_type)

    assert task.type == TaskType.OTHER
    assert task.status == TaskStatus.COMPLETED
    assert calendar.meetings == []
    assert mailer.sent == []
    assert [t.task_id for t in history.list_tasks()] == [task.task_id]


@pytest.mark.asyncio
async def test_meeting_uses_parsed_fields(service, calendar, history) -> None:
    task = await service.submit(
        description="Schedule meeting about Budget Review to team@x.com at 10:00 AM for 45 minutes",
        priority=4,
        type="meeting",
    )

    assert task.status == TaskStatus.COMPLETED
    assert len(calendar.meetings) == 1
    m = calendar.meetings[0]
    assert m.attendees == ["team@x.com"]
    assert m.title == "Budget Review"
    assert m.duration_ms == 45 * 60 * 1000
    assert m.start == START + timedelta(hours=1)
    assert history.list_tasks()[0].status == TaskStatus.COMPLETED


@pytest.mark.asyncio
async def test_meeting_defaults(service, calendar) -> None:
    await service.submit(description="sync up", priority=3, type="meeting")

    m = calendar.meetings[0]
    assert m.attendees == ["example@email.com"]
    assert m.start == START + timedelta(hours=1)
    assert m.duration_ms == DEFAULT_MEETING_DURATION_MS
    assert m.title == "Meeting (Priority: 3)"


@pytest.mark.asyncio
async def test_email_defaults(service, mailer) -> None:
    await service.submit(description="ping the team", priority=5, type="email")

    assert len(mailer.sent) == 1
    sent = mailer.sent[0]
    assert sent.to == "user@example.com"
    assert sent.subject == "Email (Priority: 5)"
    assert sent.body == "This is an automated email from the AI Agent."


@pytest.mark.asyncio
async def test_mail_failure_marks_failed_and_is_recorded(service, mailer, history) -> None:
    boom = ConnectionError("smtp down")
    mailer.error = boom
    task = Task.create(description="send email to a@x.com subject Hi", priority=3, type="email")

    with pytest.raises(CollaboratorFailure) as excinfo:
        await service.submit_task(task)

    assert excinfo.value.collaborator == "mailer"
    assert excinfo.value.__cause__ is boom
    assert task.status == TaskStatus.FAILED
    recorded = history.list_tasks()
    assert len(recorded) == 1
    assert recorded[0].task_id == task.task_id
    assert recorded[0].status == TaskStatus.FAILED


@pytest.mark.asyncio
async def test_calendar_failure_marks_failed(service, calendar, history) -> None:
    calendar.error = RuntimeError("quota")
    task = Task.create(description="meeting about plans", priority=1, type="meeting")

    with pytest.raises(CollaboratorFailure):
        await service.submit_task(task)

    assert task.status == TaskStatus.FAILED
    assert history.list_tasks()[0].status == TaskStatus.FAILED


@pytest.mark.asyncio
async def test_interpreter_failure_is_not_fatal_by_default(service, interpreter, mailer) -> None:
    interpreter.error = RuntimeError("llm offline")

    task = await service.submit(description="email to a@x.com", priority=2, type="email")

    assert task.status == TaskStatus.COMPLETED
    assert len(mailer.sent) == 1


@pytest.mark.asyncio
async def test_interpreter_failure_can_be_fatal(calendar, mailer, interpreter, history, clock) -> None:
    from task_agent.tasks.task_api import AgentService

    service = AgentService(
        calendar=calendar,
        mailer=mailer,
        interpreter=interpreter,
        history=history,
        clock=clock,
        interpreter_failure_fatal=True,
    )
    interpreter.error = RuntimeError("llm offline")
    task = Task.create(description="email to a@x.com", priority=2, type="email")

    with pytest.raises(CollaboratorFailure) as excinfo:
        await service.submit_task(task)

    assert excinfo.value.collaborator == "interpreter"
    assert task.status == TaskStatus.FAILED
    assert mailer.sent == []
    assert history.count() == 1


@pytest.mark.asyncio
async def test_terminal_task_cannot_be_dispatched_again(service, history) -> None:
    task = await service.submit(description="noop", priority=1, type="other")

    with pytest.raises(TaskStateError):
        await service.submit_task(task)
    assert history.count() == 1


def test_transition_happens_exactly_once() -> None:
    task = Task.create(description="x", priority=1)
    task.transition_to(TaskStatus.COMPLETED)
    assert task.finished_at is not None

    with pytest.raises(TaskStateError):
        task.transition_to(TaskStatus.FAILED)
    with pytest.raises(TaskStateError):
        Task.create(description="y", priority=1).transition_to(TaskStatus.PENDING)


def test_empty_description_rejected() -> None:
    with pytest.raises(ValueError):
        Task.create(description="   ", priority=3)


@pytest.mark.asyncio
async def test_history_records_in_completion_order(service) -> None:
    for i, kind in enumerate(["email", "meeting", "other"], start=1):
        await service.submit(description=f"task {i}", priority=i, type=kind)

    assert [t.description for t in service.get_history()] == ["task 1", "task 2", "task 3"]
