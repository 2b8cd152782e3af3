# tests/conftest.py

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from task_agent.tasks.task_api import AgentService
from task_agent.tasks.task_history import InMemoryHistoryStore

from .fakes import FakeCalendar, FakeClock, FakeInterpreter, FakeMailer

START = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(START)


@pytest.fixture()
def calendar() -> FakeCalendar:
    return FakeCalendar()


@pytest.fixture()
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture()
def interpreter() -> FakeInterpreter:
    return FakeInterpreter()


@pytest.fixture()
def history() -> InMemoryHistoryStore:
    return InMemoryHistoryStore()


@pytest.fixture()
def service(calendar, mailer, interpreter, history, clock) -> AgentService:
    """
    AgentService wired with deterministic fakes and a controllable clock.
    """
    return AgentService(
        calendar=calendar,
        mailer=mailer,
        interpreter=interpreter,
        history=history,
        clock=clock,
    )
