# src/task_agent/actors/mailer.py

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class OutgoingEmail:
    to: str
    subject: str
    body: str


class LoggingMailer:
    """Mail actor that logs each message and keeps the most recent ones in an outbox."""

    def __init__(self, outbox_size: int = 100) -> None:
        self.outbox: deque[OutgoingEmail] = deque(maxlen=max(1, outbox_size))

    async def send_email(self, to: str, subject: str, body: str) -> None:
        if not to or not to.strip():
            raise ValueError("recipient is required")
        self.outbox.append(OutgoingEmail(to=to, subject=subject, body=body))
        logger.info("Email sent (logging mailer) to=%s subject=%r", to, subject)
        logger.debug("Email body to=%s:\n%s", to, body)
