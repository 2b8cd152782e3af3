# tests/test_console.py

from __future__ import annotations

import asyncio
import logging
import threading

import pytest

from task_agent.cli import main as cli_main
from task_agent.connectors.console_connector import StdinReader, run_console_loop


def _scripted(lines: list[str | None]):
    feed = iter(lines)

    async def read_line() -> str | None:
        return next(feed)

    return read_line


@pytest.mark.asyncio
async def test_console_routes_commands_until_eof(service, capsys) -> None:
    await run_console_loop(service, read_line=_scripted(["", "/task chore 1 buy milk", None]))

    out = capsys.readouterr().out
    assert "completed." in out
    assert len(service.get_history()) == 1


@pytest.mark.asyncio
async def test_console_exit_command_stops_reading(service) -> None:
    # Reading past /exit would exhaust the script and raise.
    await run_console_loop(service, read_line=_scripted(["/exit"]))
    assert service.get_history() == []


@pytest.mark.asyncio
async def test_stdin_reader_returns_none_on_eof() -> None:
    lines = iter(["hello"])

    def fake_input(prompt: str) -> str:
        for line in lines:
            return line
        raise EOFError

    reader = StdinReader(input_fn=fake_input)

    assert await reader.readline() == "hello"
    assert await reader.readline() is None
    assert reader.thread.daemon


@pytest.mark.asyncio
async def test_blocked_prompt_does_not_hold_shutdown() -> None:
    release = threading.Event()

    def stuck_input(prompt: str) -> str:
        release.wait(5)
        return "late"

    reader = StdinReader(input_fn=stuck_input)
    try:
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(reader.readline(), timeout=0.05)
        # Nothing joins a daemon thread at interpreter exit.
        assert reader.thread.daemon
        assert reader.thread.is_alive()
    finally:
        release.set()


@pytest.mark.asyncio
async def test_run_logs_console_crash_and_stops_scheduler(service, monkeypatch, caplog) -> None:
    async def crashing_console(svc, *, app_name: str) -> None:
        raise RuntimeError("console exploded")

    monkeypatch.setattr(cli_main, "run_console_loop", crashing_console)

    with caplog.at_level(logging.ERROR, logger="task_agent.cli.main"):
        await cli_main._run(service, console_enabled=True, app_name="test")

    assert "Console connector crashed." in caplog.text
    assert "console exploded" in caplog.text
    assert not service.scheduler.is_running
