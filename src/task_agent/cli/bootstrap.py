# src/task_agent/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires collaborators, history store and the recurring scheduler into AgentService.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from ..actors.calendar import InMemoryCalendar
from ..actors.mailer import LoggingMailer
from ..config import Settings, get_settings
from ..core.ports import Clock, LanguageActor, SystemClock
from ..llm.client import OpenRouterInterpreter, OpenRouterLLMClient
from ..llm.offline import OfflineInterpreter
from ..tasks.task_api import AgentService
from ..tasks.task_dispatcher import DispatchDefaults
from ..tasks.task_history import create_history_store
from ..tasks.task_scheduler import SchedulerConfig

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.history_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_interpreter(settings: Settings) -> LanguageActor:
    try:
        return OpenRouterInterpreter(OpenRouterLLMClient(settings))
    except RuntimeError as e:
        # Fallback for demos / local runs without external services.
        logger.info("Language model unavailable (%s); using offline interpreter", e)
        return OfflineInterpreter()


def scheduler_config_from_settings(settings: Settings) -> SchedulerConfig:
    return SchedulerConfig(
        digest_recipient=settings.digest_recipient,
        reminder_recipient=settings.reminder_recipient,
        digest_hour_utc=settings.digest_hour_utc,
        digest_minute_utc=settings.digest_minute_utc,
        digest_size=settings.digest_size,
        meeting_check_interval_seconds=float(settings.meeting_check_interval_seconds),
        reminder_window=timedelta(minutes=settings.meeting_reminder_window_minutes),
        dedupe_meeting_reminders=settings.dedupe_meeting_reminders,
    )


def create_agent_service(*, settings: Settings | None = None, clock: Clock | None = None) -> AgentService:
    """
    Build AgentService from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()
    clock = clock or SystemClock()

    _ensure_local_dirs(settings)

    return AgentService(
        calendar=InMemoryCalendar(clock=clock),
        mailer=LoggingMailer(),
        interpreter=create_interpreter(settings),
        history=create_history_store(settings.history_backend, settings.history_db_path),
        clock=clock,
        defaults=DispatchDefaults(
            default_attendee=settings.default_attendee,
            fallback_email_to=settings.fallback_email_to,
            fallback_email_body=settings.fallback_email_body,
        ),
        scheduler_config=scheduler_config_from_settings(settings),
        interpreter_failure_fatal=settings.interpreter_failure_fatal,
    )
