"""
Error classes for automator.

Every failure surfaced by the engine is a structured AutomatorError carrying:
- type: a short error kind (TaskNotFound, InvalidTask, KeyError, ...)
- message: human readable description
- data: diagnostics payload (offending descriptor, cause, ...)

Error handling contract:
- Compilation errors (TaskNotFound, InvalidTask) are raised immediately
- Execution errors are raised out of the awaited task future
- Handler exceptions are wrapped with wrap_error() so callers never
  receive a raw exception; the original is kept as __cause__
"""

from typing import Any, Optional


class AutomatorError(Exception):
    """Base exception for automator."""

    default_type = "AutomatorError"

    def __init__(
        self,
        message: str = "",
        *,
        type: Optional[str] = None,
        data: Any = None,
    ):
        super().__init__(message)
        self.type = type or self.default_type
        self.message = message
        self.data = data if data is not None else {}

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON friendly dict (for logs and CLI output)."""
        return {
            "type": self.type,
            "message": self.message,
            "data": _jsonable(self.data),
        }


class TaskNotFound(AutomatorError):
    """Raised when a task type has no registered handler."""

    default_type = "TaskNotFound"


class InvalidTask(AutomatorError):
    """
    Raised when a task node cannot be constructed.

    data carries the offending name, descriptor, context and the
    underlying cause.
    """

    default_type = "InvalidTask"


class AmbiguousTask(InvalidTask):
    """Raised when a root descriptor names more than one task."""


class NoTaskFound(AutomatorError):
    """
    Raised when a root descriptor does not name any task.

    data is the descriptor as given, None included.
    """

    default_type = "NoTaskFound"

    def __init__(self, message: str = "", *, data: Any = None):
        super().__init__(message, data=data)
        self.data = data


class MissingParameter(AutomatorError, KeyError):
    """Raised by ensure_parameters() when a required key is missing."""

    default_type = "KeyError"

    def __init__(self, key: str, config: Any):
        super().__init__(
            f"Missing `{key}` key in config",
            data={"key": key, "config": config},
        )
        self.key = key


class TaskFailed(AutomatorError):
    """
    A handler failure wrapped into a structured error.

    The type is the class name of the original exception, which is
    also available as __cause__.
    """

    default_type = "TaskFailed"


class SubtaskFailed(AutomatorError):
    """
    Raised when one or more subtasks of a task failed.

    data["errors"] holds every subtask error, in descriptor order.
    """

    default_type = "SubtaskFailed"


class TaskTimeout(AutomatorError):
    """Raised when a handler wrapped with with_timeout() runs too long."""

    default_type = "TimeoutException"


class DescriptorLoadError(AutomatorError):
    """Raised when a descriptor file cannot be loaded."""

    default_type = "DescriptorLoadError"


class ConfigError(AutomatorError):
    """Configuration validation error."""

    default_type = "ConfigError"


def wrap_error(err: BaseException, task: Optional[str] = None) -> AutomatorError:
    """
    Return a structured error for any exception.

    AutomatorError instances are returned unchanged. Anything else is
    wrapped into a TaskFailed whose __cause__ is the original exception.

    Args:
        err: The exception to wrap
        task: Name of the task that raised it, if known

    Returns:
        An AutomatorError
    """
    if isinstance(err, AutomatorError):
        return err

    data: dict[str, Any] = {"cause": err}
    if task is not None:
        data["task"] = task
    message = str(err) or err.__class__.__name__
    wrapped = TaskFailed(message, type=err.__class__.__name__, data=data)
    wrapped.__cause__ = err
    return wrapped


def _jsonable(value: Any) -> Any:
    if isinstance(value, AutomatorError):
        return value.to_dict()
    if isinstance(value, BaseException):
        return {"type": value.__class__.__name__, "message": str(value)}
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return repr(value)
