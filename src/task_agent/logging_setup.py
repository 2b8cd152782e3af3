# src/task_agent/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

# Loggers that emit a DEBUG line on every trigger firing / meeting-check tick.
TICK_LOGGERS = ("task_agent.tasks.recurring", "task_agent.tasks.task_scheduler")

LOG_FILE_NAME = "task_agent.log"


class _ConsoleNoiseFilter(logging.Filter):
    """
    Console filter: task_agent records pass, except per-tick DEBUG chatter from
    the scheduler loggers; third-party records only at ERROR+.

    The file handler is unfiltered, so every dropped record is still on disk.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if not name.startswith("task_agent."):
            return record.levelno >= logging.ERROR
        if name in TICK_LOGGERS:
            return record.levelno > logging.DEBUG
        return True


def setup_logging(
    *,
    log_dir: str | Path = ".local/task_agent",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Route all logging to stderr (filtered) and to <log_dir>/task_agent.log.

    Replaces any handlers already on the root logger, so calling it twice is
    harmless. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(min(console_level, file_level))
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)

    root.addHandler(console)
    root.addHandler(file_handler)
    logging.captureWarnings(True)

    for noisy in ("httpx", "httpcore", "openai"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return log_file
