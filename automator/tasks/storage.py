"""
storage task - copy entities into the collab storage.

    {"storage": {"entities": {"sample.ipynb": "155c1bcc-ee9c-43e2-8190-50c66befa1fa"}}}

Keys of `entities` are names in the new collab, values are UUIDs of the
entities to copy. The result maps the same names to the copied entities.
"""

import asyncio
import logging
from typing import Any, Mapping

from automator.params import ensure_parameters
from automator.tasks.base import TaskHandler, collab_id

logger = logging.getLogger(__name__)


class StorageHandler(TaskHandler):
    """Copy files and folders to the collab storage project."""

    name = "storage"

    async def __call__(self, descriptor: Mapping[str, Any], context: dict[str, Any]) -> dict[str, Any]:
        ensure_parameters(descriptor, "entities")
        entities = descriptor["entities"]
        if not isinstance(entities, Mapping):
            raise ValueError("storage: `entities` must map names to entity UUIDs")

        project = await self.client.get_project_by_collab(collab_id(descriptor, context))

        names = []
        copies = []
        for name, source in entities.items():
            if isinstance(source, str):
                logger.debug(f"Copy entity with UUID {source}")
                names.append(name)
                copies.append(self.client.copy_entity(source, project["_uuid"]))
            else:
                logger.warning(f"Invalid configuration for storage task: {name}={source!r}")

        results = await asyncio.gather(*copies)
        return dict(zip(names, results))
