# src/task_agent/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from ..tasks.errors import AgentError
from ..tasks.task_api import AgentService
from ..tasks.task_models import Task, TaskType

CommandHandler = Callable[[AgentService, list[str]], Awaitable[str]]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /meeting, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(self, service: AgentService, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return await handler(service, parts[1:])

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _format_task(task: Task) -> str:
    return f"[{task.status.value}] ({task.type.value}, p{task.priority}) {task.description}"


async def _submit(service: AgentService, task_type: TaskType | str, args: list[str], usage: str) -> str:
    if len(args) < 2:
        return usage
    try:
        priority = int(args[0])
    except ValueError:
        return f"Priority must be a number between 1 and 5.\n{usage}"

    try:
        task = await service.submit(description=" ".join(args[1:]), priority=priority, type=task_type)
    except AgentError as e:
        logger.info("Task submission rejected: %s", e)
        return f"Task failed: {e.message}"
    except ValueError as e:
        return f"Invalid task: {e}"
    return f"Task {task.task_id[:8]} {task.status.value}."


async def cmd_help(service: AgentService, args: list[str]) -> str:
    return registry.build_help()


async def cmd_status(service: AgentService, args: list[str]) -> str:
    history = service.get_history()
    counts: dict[str, int] = {}
    for t in history:
        counts[t.status.value] = counts.get(t.status.value, 0) + 1
    summary = ", ".join(f"{k}={v}" for k, v in sorted(counts.items())) or "empty"
    sched = "RUNNING" if service.scheduler.is_running else "STOPPED"
    return f"Status:\n  Scheduler: {sched}\n  History: {len(history)} task(s) ({summary})"


async def cmd_meeting(service: AgentService, args: list[str]) -> str:
    return await _submit(service, TaskType.MEETING, args, "Usage: /meeting <priority 1-5> <description>")


async def cmd_email(service: AgentService, args: list[str]) -> str:
    return await _submit(service, TaskType.EMAIL, args, "Usage: /email <priority 1-5> <description>")


async def cmd_task(service: AgentService, args: list[str]) -> str:
    """
    /task <type> <priority> <description>
    Unknown types are accepted and complete without any external action.
    """
    if not args:
        return "Usage: /task <type> <priority 1-5> <description>"
    return await _submit(service, args[0], args[1:], "Usage: /task <type> <priority 1-5> <description>")


async def cmd_history(service: AgentService, args: list[str]) -> str:
    history = service.get_history()
    if not history:
        return "No tasks submitted yet."
    lines = ["Task history:"]
    for i, t in enumerate(history, start=1):
        lines.append(f"{i}. {_format_task(t)}")
    return "\n".join(lines)


async def cmd_nlp(service: AgentService, args: list[str]) -> str:
    if not args:
        return "Usage: /nlp <command>"
    return await service.process_natural_language(" ".join(args))


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show scheduler state and history totals.")
registry.register("meeting", cmd_meeting, help_text="Schedule a meeting: /meeting 3 meeting about X to a@b.com")
registry.register("email", cmd_email, help_text="Send an email: /email 2 to a@b.com subject Hi body Hello")
registry.register("task", cmd_task, help_text="Submit any task: /task <type> <priority> <description>")
registry.register("history", cmd_history, help_text="List submitted tasks.", aliases=["tasks"])
registry.register("nlp", cmd_nlp, help_text="Ask the language model to interpret a command.")
