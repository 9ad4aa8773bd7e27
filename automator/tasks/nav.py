"""
nav task - create a navigation item in a collab.

    {"nav": {"name": "Example Code", "app": "Jupyter Notebook", "entity": "sample.ipynb"}}

`entity` is optional. It is either a name produced by an ancestor storage
task (looked up in context["storage"]) or an entity UUID.
"""

import logging
from typing import Any, Mapping

from automator.params import ensure_parameters
from automator.tasks.base import TaskHandler, collab_id

logger = logging.getLogger(__name__)


class NavHandler(TaskHandler):
    """Create a nav item under the collab root and optionally link an entity."""

    name = "nav"

    async def __call__(self, descriptor: Mapping[str, Any], context: dict[str, Any]) -> dict[str, Any]:
        ensure_parameters(descriptor, "app", "name")
        target = collab_id(descriptor, context)
        logger.debug(f"Create nav item {descriptor['name']!r} in collab {target}")

        app = await self.client.find_app(descriptor["app"])
        root = await self.client.get_nav_root(target)
        nav = await self.client.add_nav_item(target, {
            "collab": target,
            "name": descriptor["name"],
            "app_id": app["id"],
            "parent_id": root["id"],
        })
        return await self._link_to_storage(nav, descriptor, context)

    async def _link_to_storage(
        self,
        nav: dict[str, Any],
        descriptor: Mapping[str, Any],
        context: Mapping[str, Any],
    ) -> dict[str, Any]:
        ref = descriptor.get("entity")
        if not ref:
            return nav

        # It might be the name used in a previous storage task.
        copied = context.get("storage") or {}
        if ref in copied:
            entity = copied[ref]
        else:
            entity = await self.client.get_entity(ref)
        await self.client.set_context_metadata(entity, nav["context"])
        return nav
