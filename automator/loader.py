"""
Descriptor loading from JSON or YAML files.

    descriptor = load_descriptor("workflows/new_collab.yaml")
    await run(descriptor)
"""

import json
from pathlib import Path
from typing import Any

import yaml

from automator.errors import DescriptorLoadError

YAML_SUFFIXES = (".yaml", ".yml")


def load_descriptor(path: Path | str) -> dict[str, Any]:
    """
    Load a workflow descriptor from a file.

    Args:
        path: Path to a .json, .yaml or .yml file

    Returns:
        The descriptor mapping

    Raises:
        DescriptorLoadError: If the file is missing, unreadable or not a mapping
    """
    path = Path(path)
    if not path.exists():
        raise DescriptorLoadError(f"Descriptor file not found: {path}", data={"path": str(path)})

    suffix = path.suffix.lower()
    try:
        with open(path, "r", encoding="utf-8") as f:
            if suffix in YAML_SUFFIXES:
                data = yaml.safe_load(f)
            elif suffix == ".json":
                data = json.load(f)
            else:
                raise DescriptorLoadError(
                    f"Unsupported descriptor format: {suffix or path.name}",
                    data={"path": str(path)},
                )
    except (OSError, UnicodeDecodeError) as e:
        raise DescriptorLoadError(
            f"Cannot read descriptor {path}: {e}",
            data={"path": str(path), "cause": e},
        ) from e
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise DescriptorLoadError(
            f"Invalid descriptor {path}: {e}",
            data={"path": str(path), "cause": e},
        ) from e

    if not isinstance(data, dict):
        raise DescriptorLoadError(
            f"Descriptor must be a mapping, got {type(data).__name__}: {path}",
            data={"path": str(path)},
        )
    return data
