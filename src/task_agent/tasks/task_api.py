# src/task_agent/tasks/task_api.py

from __future__ import annotations

import logging

from ..core.ports import CalendarActor, Clock, HistoryRepo, LanguageActor, MailActor, SystemClock
from .task_dispatcher import DispatchDefaults, TaskDispatcher
from .task_history import InMemoryHistoryStore
from .task_models import Task, TaskType
from .task_scheduler import SchedulerConfig, TaskScheduler

logger = logging.getLogger(__name__)


class AgentService:
    """
    Boundary of the task engine.

    Owns the history store and wires the same collaborators into the dispatcher
    and the recurring scheduler. Connectors (console, future HTTP API) talk to
    this class only.
    """

    def __init__(
        self,
        *,
        calendar: CalendarActor,
        mailer: MailActor,
        interpreter: LanguageActor,
        history: HistoryRepo | None = None,
        clock: Clock | None = None,
        defaults: DispatchDefaults | None = None,
        scheduler_config: SchedulerConfig | None = None,
        interpreter_failure_fatal: bool = False,
    ) -> None:
        self._interpreter = interpreter
        self._history = history if history is not None else InMemoryHistoryStore()
        clock = clock or SystemClock()

        self._dispatcher = TaskDispatcher(
            calendar=calendar,
            mailer=mailer,
            interpreter=interpreter,
            history=self._history,
            clock=clock,
            defaults=defaults,
            interpreter_failure_fatal=interpreter_failure_fatal,
        )
        self._scheduler = TaskScheduler(
            calendar=calendar,
            mailer=mailer,
            history=self._history,
            clock=clock,
            config=scheduler_config,
        )

    @property
    def scheduler(self) -> TaskScheduler:
        return self._scheduler

    async def submit(self, *, description: str, priority: int, type: str | TaskType | None = None) -> Task:
        """
        Create a task and drive it to completion.

        Returns the finished task. Raises InvalidPriority (nothing recorded) or
        CollaboratorFailure (task recorded as failed).
        """
        task = Task.create(description=description, priority=priority, type=type)
        await self.submit_task(task)
        return task

    async def submit_task(self, task: Task) -> None:
        await self._dispatcher.dispatch(task)

    def get_history(self) -> list[Task]:
        return self._history.list_tasks()

    async def process_natural_language(self, command: str) -> str:
        return await self._interpreter.process_command(command)

    async def start_scheduler(self) -> None:
        logger.info("Starting task scheduler")
        await self._scheduler.start()

    async def stop_scheduler(self) -> None:
        logger.info("Stopping task scheduler")
        await self._scheduler.stop()
