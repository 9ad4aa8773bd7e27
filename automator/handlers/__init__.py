"""
Handler registration for automator tasks.

Handlers are the operations bound to task type names. The engine only
knows them through the registry; built-in collaboratory handlers live in
automator.tasks and are registered with register_default_handlers().
"""

from .registry import REGISTRY, Handler, HandlerRegistry, register_handler

__all__ = [
    "Handler",
    "HandlerRegistry",
    "REGISTRY",
    "register_handler",
]
