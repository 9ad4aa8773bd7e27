"""TaskState - lifecycle of a task node."""

from enum import Enum


class TaskState(str, Enum):
    """
    State of a task node.

    idle -> progress -> success | error. success and error are terminal.
    """
    IDLE = "idle"
    PROGRESS = "progress"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskState.SUCCESS, TaskState.ERROR)
