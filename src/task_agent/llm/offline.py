# src/task_agent/llm/offline.py

from __future__ import annotations


class OfflineInterpreter:
    """
    Offline deterministic interpreter used when no external API is configured.

    Echoes the command back so dispatch audit logs still show what was asked.
    """

    async def process_command(self, text: str) -> str:
        if not text or not text.strip():
            return "No command provided"
        return f"Processed command: {text}"
