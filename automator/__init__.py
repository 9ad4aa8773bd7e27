"""
automator - Declarative task automation for the Collaboratory.

Describes a series of actions (create a collab, add navigation items, copy
storage entities, fill the overview page) as nested data and runs them:
each task runs after its parent, sibling tasks run concurrently, and each
task sees the results of its ancestors in its context.
"""

__version__ = "0.1.0"
__author__ = "Collaboratory Team"


__all__ = [
    "AutomatorError",
    "HandlerRegistry",
    "REGISTRY",
    "TaskNode",
    "TaskState",
    "ensure_parameters",
    "extract_attributes",
    "register_handler",
    "run",
    "task",
]

from .errors import AutomatorError
from .handlers import REGISTRY, HandlerRegistry, register_handler
from .params import ensure_parameters, extract_attributes
from .runner import run, task
from .schemas import TaskState
from .task import TaskNode
