"""
Compiler - Transform a workflow descriptor into a TaskNode tree.

The compiler resolves:
- each task type against the HandlerRegistry
- each `after` list into subtasks, recursively

Compilation is synchronous: an unknown task type or a malformed entry
is reported before anything runs, never through the task future.
"""

import logging
from typing import Any, Mapping, Optional

from automator.errors import AutomatorError, InvalidTask
from automator.handlers.registry import REGISTRY, HandlerRegistry
from automator.schemas import TaskDescriptor
from automator.task import TaskNode

logger = logging.getLogger(__name__)


class Compiler:
    """
    Compiles descriptors into TaskNode trees.

    Usage:
        compiler = Compiler(registry)
        node = compiler.compile("collab", {"title": "My Collab"})
        root = compiler.compile_root({"collab": {"title": "My Collab"}})
    """

    def __init__(self, registry: Optional[HandlerRegistry] = None):
        self.registry = registry if registry is not None else REGISTRY

    def compile(
        self,
        name: str,
        descriptor: Optional[Mapping[str, Any]] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> TaskNode:
        """
        Compile a task and its subtasks.

        Args:
            name: Task type name
            descriptor: Task configuration, may contain an `after` list
            context: Default context for the task (subtasks get none)

        Returns:
            An idle TaskNode

        Raises:
            TaskNotFound: If name or a nested task type is not registered
            InvalidTask: If the descriptor or a nested entry is malformed
        """
        try:
            handler = self.registry.get(name)
            entry = TaskDescriptor.from_config(name, descriptor)
            subtasks = []
            for i, child in enumerate(entry.after):
                try:
                    subtasks.append(self.compile(child.type, child.config))
                except AutomatorError as e:
                    # path from the root down to the offending entry
                    if isinstance(e.data, dict):
                        e.data.setdefault("path", []).insert(0, f"{name}.after[{i}]")
                    raise
            return TaskNode(
                name,
                handler,
                descriptor=entry.config,
                context=context,
                subtasks=subtasks,
            )
        except AutomatorError:
            raise
        except Exception as e:
            logger.error(f"Invalid task {name}: {e}", exc_info=True)
            raise InvalidTask(
                f"Invalid task {name}: {e}",
                data={
                    "cause": e,
                    "name": name,
                    "descriptor": descriptor,
                    "context": context,
                },
            ) from e

    def compile_root(
        self,
        descriptor: Mapping[str, Any],
        context: Optional[Mapping[str, Any]] = None,
    ) -> TaskNode:
        """
        Compile a top-level descriptor naming exactly one root task.

        Raises:
            NoTaskFound: If the descriptor is empty
            AmbiguousTask: If the descriptor names several root tasks
            TaskNotFound: If a task type is not registered
            InvalidTask: If an entry is malformed
        """
        root = TaskDescriptor.from_root(descriptor)
        return self.compile(root.type, root.config, context)


def compile_task(
    name: str,
    descriptor: Optional[Mapping[str, Any]] = None,
    context: Optional[Mapping[str, Any]] = None,
    registry: Optional[HandlerRegistry] = None,
) -> TaskNode:
    """
    Convenience function to compile a task.

    Args:
        name: Task type name
        descriptor: Task configuration
        context: Default context
        registry: Handler registry (defaults to the process-wide one)

    Returns:
        An idle TaskNode
    """
    return Compiler(registry).compile(name, descriptor, context)
