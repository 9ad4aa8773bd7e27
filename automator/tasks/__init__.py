"""
Built-in collaboratory tasks.

Available task types:
- collab: create a collab
- nav: create a navigation item, optionally linked to a storage entity
- storage: copy entities into the collab storage
- overview: fill the overview page with the content of a file

Example descriptor:

    {
      "collab": {
        "title": "Test Collab Creation",
        "content": "My Collab Description",
        "private": true,
        "after": [
          {"storage": {
            "entities": {"sample.ipynb": "155c1bcc-ee9c-43e2-8190-50c66befa1fa"},
            "after": [{"nav": {"name": "Example Code", "app": "Jupyter Notebook",
                               "entity": "sample.ipynb"}}]
          }},
          {"nav": {"name": "Introduction", "app": "Rich Text Editor"}}
        ]
      }
    }
"""

from typing import Optional

from automator.handlers.registry import REGISTRY, HandlerRegistry
from automator.tasks.base import TaskHandler
from automator.tasks.client import CollabClient, InMemoryCollabClient
from automator.tasks.collab import CollabHandler
from automator.tasks.nav import NavHandler
from automator.tasks.overview import OverviewHandler
from automator.tasks.storage import StorageHandler
from automator.utils import with_timeout

DEFAULT_HANDLERS: tuple[type[TaskHandler], ...] = (
    CollabHandler,
    NavHandler,
    StorageHandler,
    OverviewHandler,
)


def register_default_handlers(
    client: CollabClient,
    registry: Optional[HandlerRegistry] = None,
    timeout_s: Optional[float] = None,
) -> HandlerRegistry:
    """
    Register the built-in collaboratory handlers.

    Args:
        client: Client used by every handler
        registry: Target registry (defaults to the process-wide one)
        timeout_s: Optional per-handler timeout

    Returns:
        The registry the handlers were registered in
    """
    target = registry if registry is not None else REGISTRY
    for handler_cls in DEFAULT_HANDLERS:
        handler = handler_cls(client)
        target.register(
            handler.name,
            with_timeout(handler, timeout_s) if timeout_s else handler,
        )
    return target


__all__ = [
    "CollabClient",
    "CollabHandler",
    "DEFAULT_HANDLERS",
    "InMemoryCollabClient",
    "NavHandler",
    "OverviewHandler",
    "StorageHandler",
    "TaskHandler",
    "register_default_handlers",
]
