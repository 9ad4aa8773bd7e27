"""
Parameter helpers for handler implementations.

Handlers use these to check preconditions uniformly and to whitelist
fields before forwarding a descriptor to an external API.
"""

from typing import Any, Iterable, Mapping

from automator.errors import MissingParameter


def ensure_parameters(descriptor: Mapping[str, Any], *keys: str) -> Mapping[str, Any]:
    """
    Ensure that all listed keys are present in a task descriptor.

    A key whose value is None counts as missing.

    Args:
        descriptor: Task descriptor
        *keys: Required keys

    Returns:
        The descriptor, unchanged

    Raises:
        MissingParameter: Naming the first missing key
    """
    for key in keys:
        if descriptor.get(key) is None:
            raise MissingParameter(key, descriptor)
    return descriptor


def extract_attributes(descriptor: Mapping[str, Any], keys: Iterable[str]) -> dict[str, Any]:
    """Return a new dict with only the listed keys found (and not None) in descriptor."""
    return {
        key: descriptor[key]
        for key in keys
        if descriptor.get(key) is not None
    }
