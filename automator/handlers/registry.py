"""
Handler Registry for dispatching tasks to their implementations.

The registry maps task type names (collab, nav, storage, ...) to handler
callables. A handler accepts (descriptor, context) and returns a value or
an awaitable of a value. Failures are signalled by raising.

Registration happens at startup; the registry is read-only while tasks run.
"""

from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from automator.errors import TaskNotFound

# Type alias for handler functions
Handler = Callable[[Mapping[str, Any], dict[str, Any]], Union[Any, Awaitable[Any]]]


class HandlerRegistry:
    """
    Registry for handler dispatch by task type.

    Usage:
        registry = HandlerRegistry()
        registry.register("collab", create_collab)

        handler = registry.get("collab")
    """

    def __init__(self) -> None:
        """Initialize an empty handler registry."""
        self._handlers: dict[str, Handler] = {}

    def register(self, name: str, handler: Handler) -> None:
        """
        Register a handler for a task type.

        An existing registration for the same name is replaced.

        Args:
            name: Task type name
            handler: Callable accepting (descriptor, context)
        """
        self._handlers[name] = handler

    def unregister(self, name: str) -> None:
        self._handlers.pop(name, None)

    def get(self, name: str) -> Handler:
        """
        Get the handler for a task type.

        Raises:
            TaskNotFound: If no handler is registered for this name
        """
        try:
            return self._handlers[name]
        except (KeyError, TypeError):
            raise TaskNotFound(
                f"No handler registered for task: {name}. "
                f"Registered: {self.names()}",
                data={"name": name},
            ) from None

    def has(self, name: str) -> bool:
        try:
            return name in self._handlers
        except TypeError:
            return False

    def names(self) -> list[str]:
        """List all registered task type names."""
        return list(self._handlers.keys())

    def clear(self) -> None:
        self._handlers.clear()

    def __contains__(self, name: str) -> bool:
        return self.has(name)

    def __len__(self) -> int:
        return len(self._handlers)


# Process-wide default registry
REGISTRY = HandlerRegistry()


def register_handler(
    name: str,
    handler: Optional[Handler] = None,
    *,
    registry: Optional[HandlerRegistry] = None,
):
    """
    Register a handler in the default registry.

    Can be called directly or used as a decorator:

        register_handler("collab", create_collab)

        @register_handler("nav")
        async def create_nav_item(descriptor, context): ...
    """
    target = registry if registry is not None else REGISTRY

    def register(fn: Handler) -> Handler:
        target.register(name, fn)
        return fn

    return register if handler is None else register(handler)
