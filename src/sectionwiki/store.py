"""Persistence boundary for documents and the navigation tree.

Every public store method returns ``None``, ``False`` or an empty list on
failure and logs the cause; backend exceptions never escape. Writes are last
write wins: there is no version check between a read and the next write.
"""

from __future__ import annotations

import copy
import json
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable

import httpx
from pydantic import ValidationError

from sectionwiki.config import (
    SECTIONWIKI_REST_KEY,
    SECTIONWIKI_REST_NAVIGATION_TABLE,
    SECTIONWIKI_REST_TABLE,
    SECTIONWIKI_REST_URL,
    SECTIONWIKI_STORE_BACKEND,
    SECTIONWIKI_STORE_PATH,
)
from sectionwiki.exceptions import NotFoundError, StoreError
from sectionwiki.file_utils import mkdir_async, read_text_async, write_text_atomic_async
from sectionwiki.http_utils import request_with_retries
from sectionwiki.schemas import Document, NavigationNode, NodeType, Section

logger = logging.getLogger(__name__)

_BOUNDARY_ERRORS = (StoreError, ValidationError)


def _rows(value: Any, source: str) -> list[dict[str, Any]]:
    """Check that a stored collection is a list of JSON objects."""
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(row, dict) for row in value):
        raise StoreError(f"Malformed rows from {source}: expected a list of objects")
    return value


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _default_title(path: str, sections: list[Section]) -> str:
    """A document is titled after its first section, else after its path."""
    if sections and sections[0].title:
        return sections[0].title
    slug = path.rstrip("/").rsplit("/", 1)[-1]
    return slug.replace("-", " ").strip().capitalize() or "Untitled"


def build_navigation_tree(nodes: list[NavigationNode]) -> list[NavigationNode]:
    """Nest flat navigation rows by ``parent_id``, ordered by ``order_index``."""
    by_id = {node.id: node.model_copy(update={"children": []}) for node in nodes}
    roots: list[NavigationNode] = []
    for node in sorted(by_id.values(), key=lambda item: item.order_index):
        parent = by_id.get(node.parent_id) if node.parent_id else None
        if parent is None:
            roots.append(node)
        else:
            parent.children.append(node)
    return roots


class DocumentStore(ABC):
    """Async persistence boundary.

    Subclasses implement the underscored operations and may raise
    :class:`StoreError`; the public methods turn those into ``None`` /
    ``False`` / ``[]`` and log them.
    """

    async def get_document_by_path(self, path: str) -> Document | None:
        try:
            return await self._get_document(path)
        except _BOUNDARY_ERRORS as exc:
            logger.error("Failed to load document", extra={"path": path, "error": str(exc)})
            return None

    async def get_all_documents(self) -> list[Document]:
        try:
            return await self._get_all_documents()
        except _BOUNDARY_ERRORS as exc:
            logger.error("Failed to load documents", extra={"error": str(exc)})
            return []

    async def upsert_document(
        self,
        path: str,
        sections: list[Section],
        *,
        title: str | None = None,
        tags: list[str] | None = None,
    ) -> bool:
        """Create or replace the sections of the document at ``path``."""
        try:
            await self._upsert_document(path, sections, title=title, tags=tags)
        except _BOUNDARY_ERRORS as exc:
            logger.error("Failed to save document", extra={"path": path, "error": str(exc)})
            return False
        return True

    async def update_section(self, path: str, section_id: str, new_section: Section) -> bool:
        """Replace one section of a document in place."""
        try:
            await self._update_section(path, section_id, new_section)
        except _BOUNDARY_ERRORS as exc:
            logger.error(
                "Failed to update section",
                extra={"path": path, "section_id": section_id, "error": str(exc)},
            )
            return False
        return True

    async def create_node(
        self,
        title: str,
        path: str,
        *,
        node_type: NodeType = NodeType.FOLDER,
        parent_id: str | None = None,
        order_index: int = 0,
    ) -> NavigationNode | None:
        try:
            return await self._create_node(
                NavigationNode(
                    id=str(uuid.uuid4()),
                    title=title,
                    type=node_type,
                    path=path,
                    parent_id=parent_id,
                    order_index=order_index,
                )
            )
        except _BOUNDARY_ERRORS as exc:
            logger.error("Failed to create navigation node", extra={"path": path, "error": str(exc)})
            return None

    async def delete_node(self, node_id: str) -> bool:
        """Delete a navigation node and everything under it."""
        try:
            await self._delete_node(node_id)
        except _BOUNDARY_ERRORS as exc:
            logger.error("Failed to delete node", extra={"node_id": node_id, "error": str(exc)})
            return False
        return True

    async def reorder_node(self, node_id: str, new_parent_id: str | None, new_order_index: int) -> bool:
        """Move a navigation node under ``new_parent_id`` at ``new_order_index``."""
        try:
            await self._reorder_node(node_id, new_parent_id, new_order_index)
        except _BOUNDARY_ERRORS as exc:
            logger.error(
                "Failed to reorder node",
                extra={"node_id": node_id, "parent_id": new_parent_id, "error": str(exc)},
            )
            return False
        return True

    async def get_navigation_tree(self) -> list[NavigationNode]:
        try:
            nodes = await self._get_navigation_nodes()
        except _BOUNDARY_ERRORS as exc:
            logger.error("Failed to load navigation structure", extra={"error": str(exc)})
            return []
        return build_navigation_tree(nodes)

    @abstractmethod
    async def _get_document(self, path: str) -> Document | None: ...

    @abstractmethod
    async def _get_all_documents(self) -> list[Document]: ...

    @abstractmethod
    async def _upsert_document(
        self,
        path: str,
        sections: list[Section],
        *,
        title: str | None,
        tags: list[str] | None,
    ) -> None: ...

    @abstractmethod
    async def _update_section(self, path: str, section_id: str, new_section: Section) -> None: ...

    @abstractmethod
    async def _create_node(self, node: NavigationNode) -> NavigationNode: ...

    @abstractmethod
    async def _delete_node(self, node_id: str) -> None: ...

    @abstractmethod
    async def _reorder_node(self, node_id: str, new_parent_id: str | None, new_order_index: int) -> None: ...

    @abstractmethod
    async def _get_navigation_nodes(self) -> list[NavigationNode]: ...


def _replace_section(document: Document, section_id: str, new_section: Section) -> list[Section]:
    for index, section in enumerate(document.sections):
        if section.id == section_id:
            sections = list(document.sections)
            sections[index] = new_section
            return sections
    raise NotFoundError(f"Section {section_id!r} not found in {document.path!r}")


class InMemoryDocumentStore(DocumentStore):
    """Store kept in process memory; used by tests and the default server."""

    def __init__(
        self,
        documents: list[Document] | None = None,
        nodes: list[NavigationNode] | None = None,
    ) -> None:
        self._documents: dict[str, Document] = {doc.path: doc for doc in documents or []}
        self._nodes: dict[str, NavigationNode] = {node.id: node for node in nodes or []}

    async def _get_document(self, path: str) -> Document | None:
        document = self._documents.get(path)
        return document.model_copy(deep=True) if document else None

    async def _get_all_documents(self) -> list[Document]:
        return [document.model_copy(deep=True) for document in self._documents.values()]

    async def _upsert_document(
        self,
        path: str,
        sections: list[Section],
        *,
        title: str | None,
        tags: list[str] | None,
    ) -> None:
        existing = self._documents.get(path)
        stored_sections = [section.model_copy() for section in sections]
        if existing is None:
            self._documents[path] = Document(
                id=str(uuid.uuid4()),
                title=title or _default_title(path, stored_sections),
                path=path,
                sections=stored_sections,
                tags=list(tags or []),
                updated_at=_now(),
            )
            self._ensure_document_node(path, self._documents[path].title)
            return

        self._documents[path] = existing.model_copy(
            update={
                "title": title or _default_title(path, stored_sections),
                "sections": stored_sections,
                "tags": list(tags) if tags is not None else existing.tags,
                "updated_at": _now(),
            }
        )

    def _ensure_document_node(self, path: str, title: str) -> None:
        if any(node.path == path for node in self._nodes.values()):
            return
        node_id = str(uuid.uuid4())
        self._nodes[node_id] = NavigationNode(
            id=node_id,
            title=title,
            type=NodeType.DOCUMENT,
            path=path,
            order_index=len(self._nodes),
        )

    async def _update_section(self, path: str, section_id: str, new_section: Section) -> None:
        document = self._documents.get(path)
        if document is None:
            raise NotFoundError(f"Document {path!r} not found")
        self._documents[path] = document.model_copy(
            update={
                "sections": _replace_section(document, section_id, new_section.model_copy()),
                "updated_at": _now(),
            }
        )

    async def _create_node(self, node: NavigationNode) -> NavigationNode:
        if node.parent_id is not None and node.parent_id not in self._nodes:
            raise NotFoundError(f"Parent node {node.parent_id!r} not found")
        if any(existing.path == node.path for existing in self._nodes.values()):
            raise StoreError(f"Path {node.path!r} already exists")
        self._nodes[node.id] = node
        return node.model_copy()

    def _descendant_ids(self, node_id: str) -> set[str]:
        found = {node_id}
        frontier = [node_id]
        while frontier:
            current = frontier.pop()
            for node in self._nodes.values():
                if node.parent_id == current and node.id not in found:
                    found.add(node.id)
                    frontier.append(node.id)
        return found

    async def _delete_node(self, node_id: str) -> None:
        if node_id not in self._nodes:
            raise NotFoundError(f"Node {node_id!r} not found")
        for doomed in self._descendant_ids(node_id):
            node = self._nodes.pop(doomed)
            if node.type is NodeType.DOCUMENT:
                self._documents.pop(node.path, None)

    async def _reorder_node(self, node_id: str, new_parent_id: str | None, new_order_index: int) -> None:
        node = self._nodes.get(node_id)
        if node is None:
            raise NotFoundError(f"Node {node_id!r} not found")
        if new_parent_id is not None:
            if new_parent_id not in self._nodes:
                raise NotFoundError(f"Parent node {new_parent_id!r} not found")
            if new_parent_id in self._descendant_ids(node_id):
                raise StoreError(f"Cannot move {node_id!r} under its own subtree")
        self._nodes[node_id] = node.model_copy(
            update={"parent_id": new_parent_id, "order_index": new_order_index}
        )

    async def _get_navigation_nodes(self) -> list[NavigationNode]:
        return [node.model_copy() for node in self._nodes.values()]


class JsonFileDocumentStore(InMemoryDocumentStore):
    """In-memory store mirrored to one JSON file after every write."""

    def __init__(self, path: Path = SECTIONWIKI_STORE_PATH) -> None:
        super().__init__()
        self._path = path
        self._loaded = False

    async def _load(self) -> None:
        if self._loaded:
            return
        if self._path.exists():
            try:
                raw = json.loads(await read_text_async(self._path))
            except (OSError, ValueError) as exc:
                raise StoreError(f"Cannot read {self._path}: {exc}") from exc
            if not isinstance(raw, dict):
                raise StoreError(f"Cannot read {self._path}: top level is not an object")
            documents = [Document.model_validate(item) for item in _rows(raw.get("documents"), str(self._path))]
            nodes = [NavigationNode.model_validate(item) for item in _rows(raw.get("nodes"), str(self._path))]
            self._documents = {document.path: document for document in documents}
            self._nodes = {node.id: node for node in nodes}
        self._loaded = True

    async def _persist(self) -> None:
        payload = {
            "documents": [document.model_dump(mode="json") for document in self._documents.values()],
            "nodes": [node.model_dump(mode="json", exclude={"children"}) for node in self._nodes.values()],
        }
        try:
            await mkdir_async(self._path.parent, parents=True, exist_ok=True)
            await write_text_atomic_async(self._path, json.dumps(payload, indent=2))
        except OSError as exc:
            raise StoreError(f"Cannot write {self._path}: {exc}") from exc

    async def _write(self, operation: Callable[[], Awaitable[Any]]) -> Any:
        """Run a mutation; on a failed write roll memory back to the last saved state."""
        await self._load()
        documents = copy.deepcopy(self._documents)
        nodes = copy.deepcopy(self._nodes)
        try:
            result = await operation()
            await self._persist()
        except StoreError:
            self._documents, self._nodes = documents, nodes
            raise
        return result

    async def _get_document(self, path: str) -> Document | None:
        await self._load()
        return await super()._get_document(path)

    async def _get_all_documents(self) -> list[Document]:
        await self._load()
        return await super()._get_all_documents()

    async def _get_navigation_nodes(self) -> list[NavigationNode]:
        await self._load()
        return await super()._get_navigation_nodes()

    async def _upsert_document(
        self,
        path: str,
        sections: list[Section],
        *,
        title: str | None,
        tags: list[str] | None,
    ) -> None:
        parent = super()._upsert_document
        await self._write(lambda: parent(path, sections, title=title, tags=tags))

    async def _update_section(self, path: str, section_id: str, new_section: Section) -> None:
        parent = super()._update_section
        await self._write(lambda: parent(path, section_id, new_section))

    async def _create_node(self, node: NavigationNode) -> NavigationNode:
        parent = super()._create_node
        return await self._write(lambda: parent(node))

    async def _delete_node(self, node_id: str) -> None:
        parent = super()._delete_node
        await self._write(lambda: parent(node_id))

    async def _reorder_node(self, node_id: str, new_parent_id: str | None, new_order_index: int) -> None:
        parent = super()._reorder_node
        await self._write(lambda: parent(node_id, new_parent_id, new_order_index))


def _sections_from_content_json(content_json: Any) -> list[Section]:
    """Accept both a bare section list and a ``{"sections": [...]}`` wrapper."""
    if not content_json:
        return []
    if isinstance(content_json, dict):
        content_json = content_json.get("sections") or []
    if not isinstance(content_json, list):
        return []
    return [Section.model_validate(item) for item in content_json]


class RestDocumentStore(DocumentStore):
    """Store backed by a PostgREST-style managed database.

    Documents live in one table (``path`` unique, sections in
    ``content_json``) and the sidebar tree in another.
    """

    def __init__(
        self,
        base_url: str = SECTIONWIKI_REST_URL,
        api_key: str = SECTIONWIKI_REST_KEY,
        *,
        table: str = SECTIONWIKI_REST_TABLE,
        navigation_table: str = SECTIONWIKI_REST_NAVIGATION_TABLE,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not base_url:
            raise StoreError("REST store requires a base URL (SECTIONWIKI_REST_URL)")
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._table = table
        self._navigation_table = navigation_table
        self._client = client

    def _url(self, table: str) -> str:
        return f"{self._base_url}/rest/v1/{table}"

    def _headers(self, **extra: str) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["apikey"] = self._api_key
            headers["Authorization"] = f"Bearer {self._api_key}"
        headers.update(extra)
        return headers

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, str] | None = None,
        json_body: Any = None,
        prefer: str | None = None,
    ) -> Any:
        headers = self._headers(Prefer=prefer) if prefer else self._headers()
        response = await request_with_retries(
            method,
            self._url(table),
            client=self._client,
            params=params,
            json=json_body,
            headers=headers,
        )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise StoreError(f"Invalid JSON from {method} {table}: {exc}") from exc

    @staticmethod
    def _row_to_document(row: dict[str, Any]) -> Document:
        missing = [key for key in ("id", "path") if row.get(key) is None]
        if missing:
            raise StoreError(f"Document row is missing {', '.join(missing)}")
        return Document(
            id=str(row["id"]),
            title=row.get("title") or "",
            path=row["path"],
            sections=_sections_from_content_json(row.get("content_json")),
            tags=row.get("tags") or [],
            updated_at=row.get("updated_at"),
        )

    async def _get_document(self, path: str) -> Document | None:
        rows = _rows(
            await self._request("GET", self._table, params={"path": f"eq.{path}", "select": "*"}),
            self._table,
        )
        if not rows:
            return None
        return self._row_to_document(rows[0])

    async def _get_all_documents(self) -> list[Document]:
        rows = _rows(await self._request("GET", self._table, params={"select": "*"}), self._table)
        return [self._row_to_document(row) for row in rows]

    async def _upsert_document(
        self,
        path: str,
        sections: list[Section],
        *,
        title: str | None,
        tags: list[str] | None,
    ) -> None:
        body: dict[str, Any] = {
            "path": path,
            "title": title or _default_title(path, sections),
            "content_json": {"sections": [section.model_dump(mode="json") for section in sections]},
        }
        if tags is not None:
            body["tags"] = tags
        await self._request(
            "POST",
            self._table,
            params={"on_conflict": "path"},
            json_body=body,
            prefer="resolution=merge-duplicates,return=minimal",
        )

    async def _update_section(self, path: str, section_id: str, new_section: Section) -> None:
        document = await self._get_document(path)
        if document is None:
            raise NotFoundError(f"Document {path!r} not found")
        sections = _replace_section(document, section_id, new_section)
        await self._request(
            "PATCH",
            self._table,
            params={"path": f"eq.{path}"},
            json_body={"content_json": {"sections": [section.model_dump(mode="json") for section in sections]}},
            prefer="return=minimal",
        )

    async def _create_node(self, node: NavigationNode) -> NavigationNode:
        rows = await self._request(
            "POST",
            self._navigation_table,
            json_body=node.model_dump(mode="json", exclude={"children"}),
            prefer="return=representation",
        )
        rows = _rows(rows, self._navigation_table)
        if rows:
            return NavigationNode.model_validate(rows[0])
        return node

    async def _delete_node(self, node_id: str) -> None:
        # Child rows are removed by the table's ON DELETE CASCADE.
        await self._request(
            "DELETE",
            self._navigation_table,
            params={"id": f"eq.{node_id}"},
            prefer="return=minimal",
        )

    async def _reorder_node(self, node_id: str, new_parent_id: str | None, new_order_index: int) -> None:
        await self._request(
            "PATCH",
            self._navigation_table,
            params={"id": f"eq.{node_id}"},
            json_body={"parent_id": new_parent_id, "order_index": new_order_index},
            prefer="return=minimal",
        )

    async def _get_navigation_nodes(self) -> list[NavigationNode]:
        rows = await self._request(
            "GET",
            self._navigation_table,
            params={"select": "*", "order": "order_index"},
        )
        return [NavigationNode.model_validate(row) for row in _rows(rows, self._navigation_table)]


def create_store(backend: str = SECTIONWIKI_STORE_BACKEND) -> DocumentStore:
    """Build the store selected by configuration."""
    if backend == "memory":
        return InMemoryDocumentStore()
    if backend == "json":
        return JsonFileDocumentStore(SECTIONWIKI_STORE_PATH)
    if backend == "rest":
        return RestDocumentStore()
    raise ValueError(f"Unknown store backend: {backend!r}")
