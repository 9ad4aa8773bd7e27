"""
overview task - fill the collab overview page with the content of a file.

    {"overview": {"entity": "155c1bcc-ee9c-43e2-8190-50c66befa1fa"}}

`entity` is either a name produced by an ancestor storage task or the
UUID of a file entity. The overview page is the first child of the
collab root nav item.
"""

import asyncio
import logging
from typing import Any, Mapping

from automator.params import ensure_parameters
from automator.tasks.base import TaskHandler, collab_id

logger = logging.getLogger(__name__)


class OverviewHandler(TaskHandler):
    """Set the overview page content from a storage file."""

    name = "overview"

    async def __call__(self, descriptor: Mapping[str, Any], context: dict[str, Any]) -> dict[str, Any]:
        ensure_parameters(descriptor, "entity")
        logger.debug("Fill overview page with content from entity")

        root, source = await asyncio.gather(
            self.client.get_nav_root(collab_id(descriptor, context)),
            self.client.get_file_content(self._source_uuid(descriptor, context)),
        )
        if not root.get("children"):
            raise LookupError(f"Collab {root.get('collab')} has no overview page")

        overview = root["children"][0]
        await self.client.set_richtext(overview["context"], source)
        return overview

    @staticmethod
    def _source_uuid(descriptor: Mapping[str, Any], context: Mapping[str, Any]) -> str:
        ref = descriptor["entity"]
        for key in ("storage", "entities"):
            known = context.get(key) or {}
            if ref in known:
                return known[ref]["_uuid"]
        return ref
