"""
Base class for the built-in collaboratory task handlers.

Each handler is bound to a CollabClient and registered under its `name`.
Handlers are called with (descriptor, context) and return the created
resource; they raise to signal failure.
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping

from automator.errors import MissingParameter
from automator.tasks.client import CollabClient


class TaskHandler(ABC):
    """
    Abstract base class for collaboratory task handlers.

    Attributes:
        name: Task type name the handler is registered under
        client: The collaboratory client used to perform the operation
    """

    name: str = ""

    def __init__(self, client: CollabClient):
        self.client = client

    @abstractmethod
    async def __call__(self, descriptor: Mapping[str, Any], context: dict[str, Any]) -> Any:
        """
        Execute the task.

        Args:
            descriptor: The task configuration
            context: Results of the ancestor tasks, keyed by task type

        Returns:
            The created resource, made available to subtasks as context[name]
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name})"


def collab_id(descriptor: Mapping[str, Any], context: Mapping[str, Any]) -> Any:
    """
    Return the target collab id.

    Taken from descriptor["collab"] or, when a collab task ran before,
    from context["collab"]["id"].

    Raises:
        MissingParameter: If neither is available
    """
    if descriptor.get("collab") is not None:
        return descriptor["collab"]
    collab = context.get("collab")
    if isinstance(collab, Mapping) and collab.get("id") is not None:
        return collab["id"]
    raise MissingParameter("collab", descriptor)
