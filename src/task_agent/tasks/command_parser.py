# src/task_agent/tasks/command_parser.py

from __future__ import annotations

"""
Free-text command parser.

Pattern matching, not NLU. Every field is optional and matched independently;
the dispatcher substitutes defaults for whatever is missing.

Known simplification: a time phrase ("at 10:00 AM") does NOT set the literal
clock time. Its presence resolves the start to now + TIME_PHRASE_DEFAULT_OFFSET.
"""

import re
from datetime import datetime, timedelta, timezone

from .task_models import ParsedCommand

TIME_PHRASE_DEFAULT_OFFSET = timedelta(hours=1)

# Clauses that end an unquoted meeting title when they follow it.
_CLAUSE_BOUNDARY = (
    r"(?=\s+(?:"
    r"to\s+\S"
    r"|at\s+\d{1,2}:\d{2}"
    r"|for\s+\d+\s+minutes?\b"
    r"|(?:and\s+|with\s+)?subject\b"
    r"|(?:and\s+|with\s+)?body\b"
    r")|$)"
)

_FLAGS = re.IGNORECASE | re.MULTILINE

RECIPIENT_RE = re.compile(r"\bto\s+(\S+)", _FLAGS)
TIME_RE = re.compile(r"\bat\s+(\d{1,2}:\d{2}\s*(?:AM|PM)?)", _FLAGS)
DURATION_RE = re.compile(r"\bfor\s+(\d+)\s+minutes?\b", _FLAGS)
TITLE_RE = re.compile(r"\bmeeting\s+about\s+(.+?)" + _CLAUSE_BOUNDARY, _FLAGS)
# A quoted subject runs to its closing quote; a bare one stops only at a body clause.
SUBJECT_RE = re.compile(
    r'\bsubject\s+(?:"([^"\n]*)"|(.+?)(?=\s+(?:and\s+|with\s+)?body\b|$))', _FLAGS
)
BODY_RE = re.compile(r"\bbody\s+(.+)$", _FLAGS)


def _clean(text: str) -> str | None:
    s = text.strip()
    if len(s) >= 2 and s[0] == s[-1] == '"':
        s = s[1:-1].strip()
    return s or None


def _capture(pattern: re.Pattern[str], text: str) -> str | None:
    m = pattern.search(text)
    if not m:
        return None
    groups = [g for g in m.groups() if g is not None]
    return _clean(groups[0]) if groups else None


def parse_command(description: str, *, now: datetime | None = None) -> ParsedCommand:
    """
    Extract structured fields from a task description.

    `now` anchors the time-phrase default; it defaults to the current UTC time.
    """
    text = description or ""
    if now is None:
        now = datetime.now(timezone.utc)

    attendees: list[str] | None = None
    to: str | None = None
    m = RECIPIENT_RE.search(text)
    if m:
        token = m.group(1).strip().rstrip(".;")
        parts = [p.strip() for p in token.split(",") if p.strip()]
        if parts:
            attendees = parts
            to = token

    start_time = now + TIME_PHRASE_DEFAULT_OFFSET if TIME_RE.search(text) else None

    duration_ms: int | None = None
    m = DURATION_RE.search(text)
    if m:
        duration_ms = int(m.group(1)) * 60 * 1000

    return ParsedCommand(
        attendees=attendees,
        start_time=start_time,
        duration_ms=duration_ms,
        title=_capture(TITLE_RE, text),
        to=to,
        subject=_capture(SUBJECT_RE, text),
        body=_capture(BODY_RE, text),
    )
