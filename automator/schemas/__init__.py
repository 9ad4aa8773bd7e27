"""
automator.schemas - Data structures for the task engine.

Descriptor -> TaskDescriptor -> TaskNode

1. Descriptor: plain nested data ({type: {...params, "after": [...]}})
2. TaskDescriptor: one parsed {type: config} entry
3. TaskNode (automator.task): compiled, stateful unit of execution
"""

from .descriptor import (
    AFTER_KEY,
    TaskDescriptor,
    parse_after,
)
from .state import TaskState

__all__ = [
    "AFTER_KEY",
    "TaskDescriptor",
    "parse_after",
    "TaskState",
]
