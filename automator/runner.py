"""
Runner - public entry points of the task engine.

    node = task("collab", {"title": "My Collab"})
    collab = await node.run()

    collab = await run({
        "collab": {
            "title": "My Collab",
            "after": [{"nav": {"name": "Notebook", "app": "Jupyter Notebook"}}],
        }
    })

Both functions must be called from a running event loop when the task is
run. Compilation errors are raised immediately by task() and run(); only
execution errors (and an empty descriptor) surface through the future.
"""

import asyncio
import logging
from typing import Any, Mapping, Optional

from automator.compiler import Compiler
from automator.errors import NoTaskFound
from automator.handlers.registry import HandlerRegistry
from automator.task import TaskNode

logger = logging.getLogger(__name__)


def task(
    name: str,
    descriptor: Optional[Mapping[str, Any]] = None,
    context: Optional[Mapping[str, Any]] = None,
    *,
    registry: Optional[HandlerRegistry] = None,
) -> TaskNode:
    """
    Instantiate a task without running it.

    The context given here is the default context; it is extended at run
    time with the results of parent (but not sibling) tasks.

    Raises:
        TaskNotFound: If a task type is not registered
        InvalidTask: If the descriptor is malformed
    """
    return Compiler(registry).compile(name, descriptor, context)


def run(
    descriptor: Mapping[str, Any],
    context: Optional[Mapping[str, Any]] = None,
    *,
    registry: Optional[HandlerRegistry] = None,
) -> asyncio.Future:
    """
    Compile the tasks of a descriptor and run them.

    Args:
        descriptor: {root_type: {...params, "after": [...]}}
        context: The initial context

    Returns:
        A future of the root task result

    Raises:
        TaskNotFound: If a task type is not registered
        InvalidTask: If the descriptor is malformed or names several roots
    """
    try:
        root = Compiler(registry).compile_root(descriptor, context)
    except NoTaskFound as e:
        logger.warning(f"No task found in descriptor: {descriptor!r}")
        future = asyncio.get_running_loop().create_future()
        future.set_exception(e)
        return future
    logger.info(f"Running workflow: {root.name} ({sum(1 for _ in root.walk())} tasks)")
    return root.run()
