"""
TaskDescriptor schema - one entry of a workflow descriptor.

A workflow descriptor is plain nested data:

    {"collab": {"title": "...", "after": [{"nav": {"name": "..."}}]}}

Each single-key mapping ({type: config}) is parsed into a TaskDescriptor.
The config is kept as given (handlers receive it unchanged, `after`
included); `params` is the config without `after`.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from automator.errors import AmbiguousTask, InvalidTask, NoTaskFound

AFTER_KEY = "after"


@dataclass(frozen=True)
class TaskDescriptor:
    """
    A parsed descriptor entry.

    Attributes:
        type: Task type name, resolved against the handler registry
        config: The task configuration (never mutated)
    """
    type: str
    config: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.type, str) or not self.type:
            raise InvalidTask(
                f"Task type must be a non-empty string, got {self.type!r}",
                data={"name": self.type, "descriptor": self.config},
            )
        if not isinstance(self.config, Mapping):
            raise InvalidTask(
                f"Invalid task {self.type}: descriptor must be a mapping, "
                f"got {type(self.config).__name__}",
                data={"name": self.type, "descriptor": self.config},
            )

    @property
    def params(self) -> dict[str, Any]:
        """The configuration without the `after` list."""
        return {k: v for k, v in self.config.items() if k != AFTER_KEY}

    @property
    def after(self) -> tuple["TaskDescriptor", ...]:
        """Parsed subtask entries, in descriptor order."""
        return parse_after(self.type, self.config.get(AFTER_KEY))

    @classmethod
    def from_config(cls, name: str, config: Optional[Mapping[str, Any]]) -> "TaskDescriptor":
        return cls(type=name, config=config if config is not None else {})

    @classmethod
    def from_entry(cls, entry: Any, *, parent: Optional[str] = None, index: Optional[int] = None) -> "TaskDescriptor":
        """
        Parse a single-key {type: config} mapping.

        Raises:
            InvalidTask: If entry is not a mapping with exactly one key
        """
        where = _location(parent, index)
        if not isinstance(entry, Mapping) or len(entry) != 1:
            raise InvalidTask(
                f"Invalid subtask{where}: expected a single-key mapping, got {entry!r}",
                data={"parent": parent, "index": index, "entry": entry},
            )
        (name, config), = entry.items()
        return cls.from_config(name, config)

    @classmethod
    def from_root(cls, descriptor: Any) -> "TaskDescriptor":
        """
        Parse a top-level workflow descriptor.

        Raises:
            NoTaskFound: If the descriptor names no task
            AmbiguousTask: If the descriptor names several tasks
        """
        if not descriptor:
            raise NoTaskFound("No task found in descriptor", data=descriptor)
        if not isinstance(descriptor, Mapping):
            raise InvalidTask(
                f"Descriptor must be a mapping, got {type(descriptor).__name__}",
                data={"descriptor": descriptor},
            )
        if len(descriptor) > 1:
            raise AmbiguousTask(
                f"Descriptor names several root tasks: {list(descriptor)}. "
                f"Wrap them in the `after` list of a single root task.",
                data={"descriptor": descriptor, "names": list(descriptor)},
            )
        (name, config), = descriptor.items()
        return cls.from_config(name, config)


def parse_after(parent: str, after: Any) -> tuple[TaskDescriptor, ...]:
    """
    Parse the `after` list of a task configuration.

    A missing or empty list gives no subtasks.

    Raises:
        InvalidTask: If after is not a list or one of its entries is malformed
    """
    if not after:
        return ()
    if not isinstance(after, (list, tuple)):
        raise InvalidTask(
            f"Invalid task {parent}: `after` must be a list, got {type(after).__name__}",
            data={"parent": parent, "after": after},
        )
    return tuple(
        TaskDescriptor.from_entry(entry, parent=parent, index=i)
        for i, entry in enumerate(after)
    )


def _location(parent: Optional[str], index: Optional[int]) -> str:
    if parent is None:
        return ""
    if index is None:
        return f" of {parent}"
    return f" #{index} of {parent}"
