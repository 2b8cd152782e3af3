# tests/test_logging_setup.py

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from task_agent.logging_setup import _ConsoleNoiseFilter, setup_logging


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


def test_console_filter_keeps_scheduler_lifecycle_lines() -> None:
    f = _ConsoleNoiseFilter()

    assert f.filter(_record("task_agent.tasks.recurring", logging.INFO))
    assert f.filter(_record("task_agent.tasks.task_scheduler", logging.INFO))
    assert not f.filter(_record("task_agent.tasks.recurring", logging.DEBUG))
    assert not f.filter(_record("task_agent.tasks.task_scheduler", logging.DEBUG))
    assert f.filter(_record("task_agent.tasks.task_dispatcher", logging.DEBUG))


def test_console_filter_hides_third_party_below_error() -> None:
    f = _ConsoleNoiseFilter()

    assert not f.filter(_record("httpx", logging.WARNING))
    assert f.filter(_record("httpx", logging.ERROR))


@pytest.fixture()
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)
    logging.captureWarnings(False)


def test_setup_logging_writes_debug_to_file(tmp_path: Path, restore_root_logging) -> None:
    log_file = setup_logging(log_dir=tmp_path / "logs")

    logging.getLogger("task_agent.tasks.task_scheduler").debug("Checking %d upcoming event(s)", 3)
    for h in logging.getLogger().handlers:
        h.flush()

    assert log_file == tmp_path / "logs" / "task_agent.log"
    assert "Checking 3 upcoming event(s)" in log_file.read_text(encoding="utf-8")
