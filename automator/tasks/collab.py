"""
collab task - create a collab.

    {"collab": {"title": "My Collab", "content": "Description", "private": true}}
"""

import logging
from typing import Any, Mapping

from automator.params import extract_attributes
from automator.tasks.base import TaskHandler

logger = logging.getLogger(__name__)

COLLAB_ATTRIBUTES = ("title", "content", "private")


class CollabHandler(TaskHandler):
    """Create a collab from the title, content and private attributes."""

    name = "collab"

    async def __call__(self, descriptor: Mapping[str, Any], context: dict[str, Any]) -> dict[str, Any]:
        attributes = extract_attributes(descriptor, COLLAB_ATTRIBUTES)
        logger.debug(f"Create collab: {attributes}")
        return await self.client.create_collab(attributes)
