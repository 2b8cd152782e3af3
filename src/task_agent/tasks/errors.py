"""
Errors raised by the task engine.

- stable error codes for the boundary layer (console, future HTTP API)
- one exception style across the project
"""

from __future__ import annotations


class ErrCode:
    INVALID_PRIORITY = "invalid_priority"
    COLLABORATOR_FAILURE = "collaborator_failure"
    INVALID_TRANSITION = "invalid_transition"


class AgentError(Exception):
    """
    Base error of the task engine.
    - code: stable error code
    - message: safe, user-presentable message
    """

    code: str = "unknown"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class InvalidPriority(AgentError, ValueError):
    code = ErrCode.INVALID_PRIORITY

    def __init__(self, priority: object) -> None:
        super().__init__(f"Priority must be between 1 and 5 (got {priority!r})")
        self.priority = priority


class CollaboratorFailure(AgentError):
    code = ErrCode.COLLABORATOR_FAILURE

    def __init__(self, collaborator: str, task_id: str | None = None, cause: BaseException | None = None) -> None:
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{collaborator} call failed{detail}")
        self.collaborator = collaborator
        self.task_id = task_id


class TaskStateError(AgentError):
    code = ErrCode.INVALID_TRANSITION

    def __init__(self, task_id: str, current: str, requested: str) -> None:
        super().__init__(f"Task {task_id} cannot move from {current} to {requested}")
        self.task_id = task_id
        self.current = current
        self.requested = requested
