# src/task_agent/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Awaitable, Callable
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..llm.client import friendly_llm_error_message
from ..tasks.task_api import AgentService

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


class StdinReader:
    """
    Line reader backed by a daemon thread.

    A prompt left waiting on stdin never keeps the process alive: on shutdown
    the thread is simply abandoned. readline() returns None on EOF.
    """

    def __init__(self, prompt: str = ">>> You: ", *, input_fn: Callable[[str], str] = input) -> None:
        self._prompt = prompt
        self._input = input_fn
        self._loop = asyncio.get_running_loop()
        self._queue: asyncio.Queue[str | None] = asyncio.Queue()
        self._wanted = threading.Event()
        self._thread = threading.Thread(target=self._pump, name="console-stdin", daemon=True)
        self._thread.start()

    @property
    def thread(self) -> threading.Thread:
        return self._thread

    def _pump(self) -> None:
        while True:
            self._wanted.wait()
            self._wanted.clear()
            try:
                line: str | None = self._input(self._prompt)
            except (EOFError, OSError, ValueError):
                line = None
            try:
                self._loop.call_soon_threadsafe(self._queue.put_nowait, line)
            except RuntimeError:
                # Event loop already closed.
                return
            if line is None:
                return

    async def readline(self) -> str | None:
        self._wanted.set()
        return await self._queue.get()


async def run_console_loop(
    service: AgentService,
    *,
    app_name: str = "task-agent",
    read_line: Callable[[], Awaitable[str | None]] | None = None,
) -> None:
    """
    Interactive console on top of AgentService.

    Input comes from a StdinReader unless `read_line` is given, so the
    scheduler keeps firing while the prompt is waiting.
    """
    if read_line is None:
        read_line = StdinReader().readline
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Type /help for commands, plain text to ask the language model, /exit to quit.\n")

    while True:
        raw = await read_line()
        if raw is None:
            logger.info("Console EOF received, exiting.")
            break
        user_input = raw.strip()

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            reply = await command_registry.handle(service, user_input)
            if reply is None:
                reply = await service.process_natural_language(user_input)
        except RuntimeError as e:
            msg = friendly_llm_error_message(e)
            logger.info("Language model error: %s", msg)
            _print_ts(f"[LLM] {msg}")
            continue
        except Exception:
            logger.exception("Console handler crashed.")
            _print_ts("Internal error while handling the input.")
            continue

        _print_ts(f"<<< {app_name}: {reply}")

    logger.info("Console connector finished.")
