"""
Utility functions for automator.

Includes logging setup, console output and handler wrappers.
"""

import asyncio
import functools
import inspect
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from rich.console import Console
from rich.logging import RichHandler

from automator.errors import TaskTimeout
from automator.handlers.registry import Handler


# Global consoles for pretty output (status messages go to stderr)
console = Console()
err_console = Console(stderr=True)


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "structured",
    log_file: Optional[Path] = None,
    console_output: bool = True,
) -> logging.Logger:
    """
    Set up logging for task execution.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: "structured" (JSON) or "pretty" (human-readable)
        log_file: Optional path to a log file
        console_output: Also log to console

    Returns:
        Configured logger
    """
    logger = logging.getLogger("automator")
    logger.setLevel(getattr(logging, log_level.upper()))
    logger.handlers = []  # Clear existing handlers

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        if log_format == "structured":
            file_handler.setFormatter(StructuredFormatter())
        else:
            file_handler.setFormatter(
                logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            )
        logger.addHandler(file_handler)

    if console_output:
        if log_format == "pretty":
            console_handler = RichHandler(console=err_console, rich_tracebacks=True, show_time=False)
        else:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(StructuredFormatter())
        logger.addHandler(console_handler)

    return logger


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add extra fields if present
        if hasattr(record, "task"):
            log_data["task"] = record.task
        if hasattr(record, "event"):
            log_data["event"] = record.event

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=repr)


def with_timeout(handler: Handler, seconds: float) -> Handler:
    """
    Wrap a handler so that it fails with TaskTimeout after `seconds`.

    The engine has no timeout of its own; handlers that talk to remote
    services are wrapped with this at registration time.
    """

    @functools.wraps(handler)
    async def wrapper(descriptor, context):
        result = handler(descriptor, context)
        if not inspect.isawaitable(result):
            return result
        try:
            return await asyncio.wait_for(result, timeout=seconds)
        except asyncio.TimeoutError:
            raise TaskTimeout(
                f"Handler {getattr(handler, '__name__', handler)!s} timed out after {seconds}s",
                data={"timeout_s": seconds, "descriptor": descriptor},
            ) from None

    return wrapper


def format_duration(seconds: float) -> str:
    """
    Format duration in seconds to human-readable string.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string (e.g., "1m 23s", "45s", "350ms")
    """
    if seconds < 1:
        return f"{int(seconds * 1000)}ms"
    if seconds < 60:
        return f"{int(seconds)}s"

    minutes = int(seconds // 60)
    remaining_seconds = int(seconds % 60)

    if minutes < 60:
        return f"{minutes}m {remaining_seconds}s"

    hours = minutes // 60
    remaining_minutes = minutes % 60
    return f"{hours}h {remaining_minutes}m {remaining_seconds}s"


def print_success(message: str) -> None:
    """Print success message to console."""
    err_console.print(f"[bold green]✓[/bold green] {message}")


def print_error(message: str) -> None:
    """Print error message to console."""
    err_console.print(f"[bold red]✗[/bold red] {message}")


def to_jsonable(obj: Any) -> Any:
    """Convert task results (objects with to_dict, sets, ...) to JSON-safe values."""
    if hasattr(obj, "to_dict") and callable(obj.to_dict):
        return to_jsonable(obj.to_dict())
    if isinstance(obj, dict):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(x) for x in obj]
    if isinstance(obj, set):
        return sorted(to_jsonable(x) for x in obj)
    if isinstance(obj, (str, int, float, bool)) or obj is None:
        return obj
    return repr(obj)
