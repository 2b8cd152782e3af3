# src/task_agent/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AgentService, starts the recurring scheduler and
runs the console connector (optional) until exit or a signal.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal

from ..cli.bootstrap import create_agent_service
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging
from ..tasks.task_api import AgentService

logger = logging.getLogger(__name__)


async def _run(service: AgentService, *, console_enabled: bool, app_name: str) -> None:
    stop_main = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # Not every platform supports loop signal handlers.
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, stop_main.set)

    await service.start_scheduler()
    try:
        if console_enabled:
            console = asyncio.create_task(run_console_loop(service, app_name=app_name))
            stopper = asyncio.create_task(stop_main.wait())
            done, pending = await asyncio.wait({console, stopper}, return_when=asyncio.FIRST_COMPLETED)
            for t in pending:
                t.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            if console in done and console.exception() is not None:
                logger.error("Console connector crashed.", exc_info=console.exception())
        else:
            logger.info("Console disabled. Running scheduler only. Press Ctrl+C to stop.")
            await stop_main.wait()
    finally:
        await service.stop_scheduler()
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError, RuntimeError):
                loop.remove_signal_handler(sig)


def main() -> None:
    settings = get_settings()

    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    service = create_agent_service(settings=settings)

    try:
        asyncio.run(_run(service, console_enabled=settings.console_enabled, app_name=settings.app_name))
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    logger.info("Bye.")


if __name__ == "__main__":
    main()
