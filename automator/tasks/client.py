"""
Collaboratory client protocol used by the built-in task handlers.

The handlers in automator.tasks never talk to a transport directly. They
receive a CollabClient, which keeps the engine free of HTTP and auth
details and lets the backend be swapped (REST client, fixtures, mock).

InMemoryCollabClient is a complete implementation backed by dicts. It is
used for dry runs and tests.
"""

import asyncio
import itertools
import uuid
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CollabClient(Protocol):
    """
    Protocol for collaboratory operations.

    Entities are dicts with at least a `_uuid` key. Nav items are dicts
    with `id`, `collab`, `name`, `context` and `children` keys.
    """

    async def create_collab(self, attributes: dict[str, Any]) -> dict[str, Any]:
        """Create a collab from title/content/private and return it (with `id`)."""
        ...

    async def find_app(self, title: str) -> dict[str, Any]:
        """Return the registered app with the given title."""
        ...

    async def get_nav_root(self, collab_id: Any) -> dict[str, Any]:
        """Return the root nav item of a collab."""
        ...

    async def add_nav_item(self, collab_id: Any, item: dict[str, Any]) -> dict[str, Any]:
        """Add a nav item (name, app_id, parent_id) and return it."""
        ...

    async def get_entity(self, entity_uuid: str) -> dict[str, Any]:
        """Return a storage entity by UUID."""
        ...

    async def set_context_metadata(self, entity: dict[str, Any], nav_context: str) -> None:
        """Link a storage entity to a nav item context."""
        ...

    async def get_project_by_collab(self, collab_id: Any) -> dict[str, Any]:
        """Return the storage project entity of a collab."""
        ...

    async def copy_entity(self, entity_uuid: str, parent_uuid: str) -> dict[str, Any]:
        """Copy an entity under a parent entity and return the copy."""
        ...

    async def get_file_content(self, entity_uuid: str) -> str:
        """Return the content of a file entity."""
        ...

    async def set_richtext(self, nav_context: str, raw: str) -> None:
        """Set the rich text content shown by a nav item."""
        ...


DEFAULT_APPS = (
    "Rich Text Editor",
    "Jupyter Notebook",
    "Storage",
)


class InMemoryCollabClient:
    """
    In-memory implementation of CollabClient.

    Every new collab gets a storage project and a root nav item with an
    "Overview" child, like on the platform.

    With autocreate=True, unknown entity UUIDs resolve to empty placeholder
    files instead of failing (dry runs of real descriptors).

    Usage:
        client = InMemoryCollabClient()
        source = client.add_file("intro.html", "<h1>Hello</h1>")
    """

    def __init__(self, apps: tuple[str, ...] = DEFAULT_APPS, autocreate: bool = False):
        self.autocreate = autocreate
        self._ids = itertools.count(1)
        self.apps: dict[str, dict[str, Any]] = {
            title: {"id": next(self._ids), "title": title} for title in apps
        }
        self.collabs: dict[Any, dict[str, Any]] = {}
        self.nav_items: dict[Any, dict[str, Any]] = {}
        self.nav_roots: dict[Any, Any] = {}
        self.projects: dict[Any, str] = {}
        self.entities: dict[str, dict[str, Any]] = {}
        self.contents: dict[str, str] = {}
        self.richtext: dict[str, str] = {}
        self.metadata: dict[str, str] = {}
        self.calls: list[tuple[str, Any]] = []

    # -- fixtures ------------------------------------------------------------

    def add_file(self, name: str, content: str = "", parent: str | None = None) -> dict[str, Any]:
        """Create a file entity and return it."""
        entity = {
            "_uuid": str(uuid.uuid4()),
            "_entityType": "file",
            "_name": name,
            "_parent": parent,
        }
        self.entities[entity["_uuid"]] = entity
        self.contents[entity["_uuid"]] = content
        return entity

    # -- CollabClient ----------------------------------------------------------

    async def create_collab(self, attributes: dict[str, Any]) -> dict[str, Any]:
        await asyncio.sleep(0)
        self.calls.append(("create_collab", attributes))
        if not attributes.get("title"):
            raise ValueError("A collab requires a title")

        collab_id = next(self._ids)
        collab = {
            "id": collab_id,
            "title": attributes["title"],
            "content": attributes.get("content", ""),
            "private": bool(attributes.get("private", False)),
        }
        self.collabs[collab_id] = collab

        project = {
            "_uuid": str(uuid.uuid4()),
            "_entityType": "project",
            "_name": collab["title"],
            "_parent": None,
        }
        self.entities[project["_uuid"]] = project
        self.projects[collab_id] = project["_uuid"]

        root = self._new_nav_item(collab_id, "root", app_id=None, parent_id=None)
        self.nav_roots[collab_id] = root["id"]
        overview = self._new_nav_item(
            collab_id, "Overview", app_id=self.apps.get("Rich Text Editor", {}).get("id"), parent_id=root["id"],
        )
        root["children"].append(overview)
        return dict(collab)

    async def find_app(self, title: str) -> dict[str, Any]:
        await asyncio.sleep(0)
        self.calls.append(("find_app", title))
        try:
            return dict(self.apps[title])
        except KeyError:
            raise LookupError(f"No app found with title: {title}") from None

    async def get_nav_root(self, collab_id: Any) -> dict[str, Any]:
        await asyncio.sleep(0)
        self.calls.append(("get_nav_root", collab_id))
        if collab_id not in self.nav_roots:
            raise LookupError(f"Unknown collab: {collab_id}")
        return self.nav_items[self.nav_roots[collab_id]]

    async def add_nav_item(self, collab_id: Any, item: dict[str, Any]) -> dict[str, Any]:
        await asyncio.sleep(0)
        self.calls.append(("add_nav_item", item))
        parent = self.nav_items.get(item.get("parent_id"))
        if parent is None or parent["collab"] != collab_id:
            raise LookupError(f"Unknown parent nav item: {item.get('parent_id')}")
        nav = self._new_nav_item(collab_id, item["name"], app_id=item.get("app_id"), parent_id=parent["id"])
        parent["children"].append(nav)
        return nav

    async def get_entity(self, entity_uuid: str) -> dict[str, Any]:
        await asyncio.sleep(0)
        self.calls.append(("get_entity", entity_uuid))
        if entity_uuid not in self.entities and self.autocreate:
            self._placeholder(entity_uuid)
        try:
            return self.entities[entity_uuid]
        except KeyError:
            raise LookupError(f"Unknown entity: {entity_uuid}") from None

    async def set_context_metadata(self, entity: dict[str, Any], nav_context: str) -> None:
        await asyncio.sleep(0)
        self.calls.append(("set_context_metadata", entity["_uuid"]))
        self.metadata[entity["_uuid"]] = nav_context

    async def get_project_by_collab(self, collab_id: Any) -> dict[str, Any]:
        await asyncio.sleep(0)
        self.calls.append(("get_project_by_collab", collab_id))
        if collab_id not in self.projects:
            raise LookupError(f"Unknown collab: {collab_id}")
        return self.entities[self.projects[collab_id]]

    async def copy_entity(self, entity_uuid: str, parent_uuid: str) -> dict[str, Any]:
        await asyncio.sleep(0)
        self.calls.append(("copy_entity", entity_uuid))
        source = await self.get_entity(entity_uuid)
        copy = dict(source, _uuid=str(uuid.uuid4()), _parent=parent_uuid)
        self.entities[copy["_uuid"]] = copy
        if entity_uuid in self.contents:
            self.contents[copy["_uuid"]] = self.contents[entity_uuid]
        return copy

    async def get_file_content(self, entity_uuid: str) -> str:
        await asyncio.sleep(0)
        self.calls.append(("get_file_content", entity_uuid))
        if entity_uuid not in self.contents and self.autocreate:
            self._placeholder(entity_uuid)
        try:
            return self.contents[entity_uuid]
        except KeyError:
            raise LookupError(f"Unknown file entity: {entity_uuid}") from None

    async def set_richtext(self, nav_context: str, raw: str) -> None:
        await asyncio.sleep(0)
        self.calls.append(("set_richtext", nav_context))
        self.richtext[nav_context] = raw

    def _placeholder(self, entity_uuid: str) -> dict[str, Any]:
        entity = {"_uuid": entity_uuid, "_entityType": "file", "_name": entity_uuid, "_parent": None}
        self.entities[entity_uuid] = entity
        self.contents[entity_uuid] = ""
        return entity

    def _new_nav_item(self, collab_id: Any, name: str, app_id: Any, parent_id: Any) -> dict[str, Any]:
        nav = {
            "id": next(self._ids),
            "collab": collab_id,
            "name": name,
            "app_id": app_id,
            "parent_id": parent_id,
            "context": str(uuid.uuid4()),
            "children": [],
        }
        self.nav_items[nav["id"]] = nav
        return nav
