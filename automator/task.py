"""
TaskNode - compiled, stateful unit of execution.

A TaskNode runs its handler once, then runs all its subtasks concurrently
with a context extended by its own result:

    collab ──> storage ──> nav
          ├──> nav
          └──> overview

Execution rules:
- run() is at-most-once: later calls return the same future
- a node's handler completes before any subtask starts
- subtasks see their ancestors' results, never their siblings'
- subtasks are joined fail-slow: a failing sibling does not cancel others
- a node fails if its handler fails or if any subtask failed

State machine: idle -> progress -> success | error
"""

import asyncio
import inspect
import logging
from typing import Any, Iterator, Mapping, Optional, Sequence

from automator.errors import AutomatorError, SubtaskFailed, wrap_error
from automator.handlers.registry import Handler
from automator.schemas import TaskState

logger = logging.getLogger(__name__)


class TaskNode:
    """
    A task compiled from one descriptor entry.

    Instances are built by the Compiler (see automator.compiler.compile_task)
    and are not reusable: once run, a node keeps its outcome.

    Attributes:
        name: Task type name, also the key of its result in subtask contexts
        descriptor: Configuration passed to the handler
        default_context: Context the node runs with unless overridden
        subtasks: Nodes compiled from descriptor["after"]
        state: Current TaskState
        result: Handler result, set when state is success
        error: Structured error, set when state is error
    """

    def __init__(
        self,
        name: str,
        handler: Handler,
        descriptor: Optional[Mapping[str, Any]] = None,
        context: Optional[Mapping[str, Any]] = None,
        subtasks: Sequence["TaskNode"] = (),
    ):
        self.name = name
        self.handler = handler
        self.descriptor = descriptor if descriptor is not None else {}
        self.default_context = dict(context) if context else {}
        self.subtasks = tuple(subtasks)
        self.state = TaskState.IDLE
        self.result: Any = None
        self.error: Optional[AutomatorError] = None
        self.pending: Optional[asyncio.Future] = None

    @property
    def type(self) -> str:
        return self.name

    @property
    def children(self) -> tuple["TaskNode", ...]:
        return self.subtasks

    def run(self, context: Optional[Mapping[str, Any]] = None) -> asyncio.Future:
        """
        Launch the task.

        Must be called from a running event loop. Only the first call runs
        the handler; every call returns the same future.

        Args:
            context: Merged over the default context (keys in context win)

        Returns:
            A future resolving to the handler result, or failing with an
            AutomatorError
        """
        if self.state is not TaskState.IDLE:
            return self.pending

        loop = asyncio.get_running_loop()
        effective = {**self.default_context, **(context or {})}
        self.state = TaskState.PROGRESS
        self.pending = loop.create_task(self._execute(effective), name=f"task:{self.name}")
        return self.pending

    async def _execute(self, context: dict[str, Any]) -> Any:
        logger.debug(
            f"Starting task: {self.name}",
            extra={"task": self.name, "event": "task_started"},
        )
        try:
            result = self.handler(self.descriptor, context)
            if inspect.isawaitable(result):
                result = await result
        except (Exception, asyncio.CancelledError) as e:
            self._fail(wrap_error(e, task=self.name))
            raise self.error

        sub_context = dict(context)
        sub_context[self.name] = result
        errors = await self.run_subtasks(sub_context)
        if errors:
            failed = SubtaskFailed(
                f"Task {self.name}: {len(errors)} of {len(self.subtasks)} subtasks failed",
                data={"task": self.name, "errors": errors},
            )
            failed.__cause__ = errors[0]
            self._fail(failed)
            raise self.error

        self.result = result
        self.state = TaskState.SUCCESS
        logger.info(
            f"Task completed: {self.name}",
            extra={"task": self.name, "event": "task_completed"},
        )
        return result

    async def run_subtasks(self, context: Mapping[str, Any]) -> list[AutomatorError]:
        """
        Run all subtasks concurrently and wait for every one to settle.

        Args:
            context: The context derived from this task's result

        Returns:
            Errors of the failed subtasks, in descriptor order
        """
        if not self.subtasks:
            return []
        outcomes = await asyncio.gather(
            *(subtask.run(dict(context)) for subtask in self.subtasks),
            return_exceptions=True,
        )
        errors = []
        for subtask, outcome in zip(self.subtasks, outcomes):
            if not isinstance(outcome, BaseException):
                continue
            error = wrap_error(outcome, task=subtask.name)
            # cancelled before its handler ran
            if not subtask.state.is_terminal:
                subtask._fail(error)
            errors.append(error)
        return errors

    def _fail(self, error: AutomatorError) -> None:
        self.state = TaskState.ERROR
        self.error = error
        logger.error(
            f"Task failed: {self.name} - {error.type}: {error.message}",
            extra={"task": self.name, "event": "task_failed"},
        )

    def walk(self) -> Iterator["TaskNode"]:
        """Yield this node and all its descendants, depth-first."""
        yield self
        for subtask in self.subtasks:
            yield from subtask.walk()

    def to_dict(self) -> dict[str, Any]:
        """Describe the task tree (type, state, params) for diagnostics."""
        result: dict[str, Any] = {
            "type": self.name,
            "state": self.state.value,
            "params": {k: v for k, v in self.descriptor.items() if k != "after"},
        }
        if self.error is not None:
            result["error"] = self.error.to_dict()
        if self.subtasks:
            result["after"] = [subtask.to_dict() for subtask in self.subtasks]
        return result

    def __repr__(self) -> str:
        return f"TaskNode(name={self.name}, state={self.state.value}, subtasks={len(self.subtasks)})"
