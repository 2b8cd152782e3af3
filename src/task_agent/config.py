# src/task_agent/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time.
- Collaborator keys are optional: without them the offline actors are used.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

ENV_PREFIX = "TASK_AGENT"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    console_enabled: bool

    # ---- Local data ----
    data_dir: Path
    history_backend: str  # "memory" | "sqlite"
    history_db_path: Path

    # ---- Language collaborator (OpenRouter) ----
    openrouter_api_key: Optional[str]
    openrouter_base_url: str
    llm_models: List[str]
    extra_headers: Dict[str, str]

    # ---- Dispatch defaults ----
    default_attendee: str
    fallback_email_to: str
    fallback_email_body: str
    interpreter_failure_fatal: bool

    # ---- Recurring jobs ----
    digest_recipient: str
    digest_hour_utc: int
    digest_minute_utc: int
    digest_size: int
    reminder_recipient: str
    meeting_check_interval_seconds: int
    meeting_reminder_window_minutes: int
    dedupe_meeting_reminders: bool

    @staticmethod
    def from_env() -> "Settings":
        app_name = _first_env(_k("APP_NAME"), default="task-agent") or "task-agent"
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/task_agent"))
        history_backend = _env(_k("HISTORY_BACKEND"), "memory").strip().lower() or "memory"
        history_db_path = _env_path(_k("HISTORY_DB_PATH"), data_dir / "history.sqlite3")

        openrouter_api_key = _first_env(_k("OPENROUTER_API_KEY"), "OPENROUTER_API_KEY", default=None)
        openrouter_base_url = _env(_k("OPENROUTER_BASE_URL"), "https://openrouter.ai/api/v1")

        extra_headers = {
            "HTTP-Referer": _env(_k("HTTP_REFERER"), "https://example.com"),
            "X-Title": _env(_k("APP_TITLE"), app_name),
        }

        llm_models = _env_list(
            _k("LLM_MODELS"),
            [
                "qwen/qwen-2.5-72b-instruct:free",
                "deepseek/deepseek-chat-v3-0324:free",
            ],
        )

        default_attendee = _env(_k("DEFAULT_ATTENDEE"), "example@email.com")
        fallback_email_to = _env(_k("FALLBACK_EMAIL_TO"), "user@example.com")
        fallback_email_body = _env(
            _k("FALLBACK_EMAIL_BODY"), "This is an automated email from the AI Agent."
        )
        interpreter_failure_fatal = _env_bool(_k("INTERPRETER_FAILURE_FATAL"), False)

        digest_recipient = _env(_k("DIGEST_RECIPIENT"), "user@example.com")
        reminder_recipient = _env(_k("REMINDER_RECIPIENT"), digest_recipient)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            data_dir=data_dir,
            history_backend=history_backend,
            history_db_path=history_db_path,
            openrouter_api_key=openrouter_api_key,
            openrouter_base_url=openrouter_base_url,
            llm_models=llm_models,
            extra_headers=extra_headers,
            default_attendee=default_attendee,
            fallback_email_to=fallback_email_to,
            fallback_email_body=fallback_email_body,
            interpreter_failure_fatal=interpreter_failure_fatal,
            digest_recipient=digest_recipient,
            digest_hour_utc=_env_int(_k("DIGEST_HOUR_UTC"), 9),
            digest_minute_utc=_env_int(_k("DIGEST_MINUTE_UTC"), 0),
            digest_size=_env_int(_k("DIGEST_SIZE"), 5),
            reminder_recipient=reminder_recipient,
            meeting_check_interval_seconds=_env_int(_k("MEETING_CHECK_INTERVAL_SECONDS"), 60),
            meeting_reminder_window_minutes=_env_int(_k("MEETING_REMINDER_WINDOW_MINUTES"), 15),
            dedupe_meeting_reminders=_env_bool(_k("DEDUPE_MEETING_REMINDERS"), False),
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
