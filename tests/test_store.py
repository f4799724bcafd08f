"""Tests for the document stores."""

from __future__ import annotations

import json
import logging

import httpx
import pytest
from conftest import make_section

from sectionwiki.exceptions import StoreError
from sectionwiki.schemas import NavigationNode, NodeType
from sectionwiki.store import (
    InMemoryDocumentStore,
    JsonFileDocumentStore,
    RestDocumentStore,
    build_navigation_tree,
    create_store,
)

SECTIONS = [make_section("s1", "Intro", 1, "Hello."), make_section("s2", "Details", 2, "More.")]


class TestInMemoryDocumentStore:
    """Tests for InMemoryDocumentStore."""

    @pytest.mark.asyncio
    async def test_upsert_then_get(self) -> None:
        store = InMemoryDocumentStore()
        assert await store.upsert_document("/guide", SECTIONS, tags=["a"])

        document = await store.get_document_by_path("/guide")
        assert document.title == "Intro"
        assert document.sections == SECTIONS
        assert document.tags == ["a"]
        assert document.updated_at is not None

    @pytest.mark.asyncio
    async def test_upsert_replaces_sections_and_keeps_id(self) -> None:
        store = InMemoryDocumentStore()
        await store.upsert_document("/guide", SECTIONS, title="Guide", tags=["a"])
        first = await store.get_document_by_path("/guide")

        await store.upsert_document("/guide", SECTIONS[:1], title="Guide")
        second = await store.get_document_by_path("/guide")

        assert second.id == first.id
        assert len(second.sections) == 1
        assert second.tags == ["a"]

    @pytest.mark.asyncio
    async def test_missing_document(self) -> None:
        assert await InMemoryDocumentStore().get_document_by_path("/nope") is None

    @pytest.mark.asyncio
    async def test_returned_documents_are_copies(self) -> None:
        store = InMemoryDocumentStore()
        await store.upsert_document("/guide", SECTIONS)
        document = await store.get_document_by_path("/guide")
        document.sections.clear()
        assert len((await store.get_document_by_path("/guide")).sections) == 2

    @pytest.mark.asyncio
    async def test_update_section(self) -> None:
        store = InMemoryDocumentStore()
        await store.upsert_document("/guide", SECTIONS)
        new_section = make_section("s2", "Details", 2, "Rewritten.")

        assert await store.update_section("/guide", "s2", new_section)
        document = await store.get_document_by_path("/guide")
        assert document.sections[1].content == "Rewritten."

    @pytest.mark.asyncio
    async def test_update_unknown_section_fails_and_logs(self, caplog: pytest.LogCaptureFixture) -> None:
        store = InMemoryDocumentStore()
        await store.upsert_document("/guide", SECTIONS)

        with caplog.at_level(logging.ERROR, logger="sectionwiki.store"):
            assert not await store.update_section("/guide", "zz", make_section("zz", "X", 1))
        assert "Failed to update section" in caplog.text

    @pytest.mark.asyncio
    async def test_update_section_of_missing_document(self) -> None:
        assert not await InMemoryDocumentStore().update_section("/nope", "s1", SECTIONS[0])

    @pytest.mark.asyncio
    async def test_upsert_creates_navigation_entry(self) -> None:
        store = InMemoryDocumentStore()
        await store.upsert_document("/guide", SECTIONS, title="Guide")

        tree = await store.get_navigation_tree()
        assert [(node.title, node.type, node.path) for node in tree] == [("Guide", NodeType.DOCUMENT, "/guide")]


class TestNavigationNodes:
    """Tests for navigation tree operations."""

    @pytest.mark.asyncio
    async def test_create_and_nest(self) -> None:
        store = InMemoryDocumentStore()
        folder = await store.create_node("Docs", "/docs")
        child = await store.create_node("Child", "/docs/child", node_type=NodeType.DOCUMENT, parent_id=folder.id)

        tree = await store.get_navigation_tree()
        assert tree[0].id == folder.id
        assert tree[0].children[0].id == child.id

    @pytest.mark.asyncio
    async def test_create_with_missing_parent_fails(self) -> None:
        assert await InMemoryDocumentStore().create_node("X", "/x", parent_id="nope") is None

    @pytest.mark.asyncio
    async def test_create_duplicate_path_fails(self) -> None:
        store = InMemoryDocumentStore()
        await store.create_node("X", "/x")
        assert await store.create_node("Y", "/x") is None

    @pytest.mark.asyncio
    async def test_delete_cascades_to_descendants_and_documents(self) -> None:
        store = InMemoryDocumentStore()
        folder = await store.create_node("Docs", "/docs")
        await store.upsert_document("/docs/page", SECTIONS, title="Page")
        tree = await store.get_navigation_tree()
        page = next(node for node in tree if node.path == "/docs/page")
        assert await store.reorder_node(page.id, folder.id, 0)

        assert await store.delete_node(folder.id)
        assert await store.get_navigation_tree() == []
        assert await store.get_document_by_path("/docs/page") is None

    @pytest.mark.asyncio
    async def test_delete_missing_node(self) -> None:
        assert not await InMemoryDocumentStore().delete_node("nope")

    @pytest.mark.asyncio
    async def test_reorder_orders_siblings(self) -> None:
        store = InMemoryDocumentStore()
        first = await store.create_node("First", "/first", order_index=0)
        second = await store.create_node("Second", "/second", order_index=1)

        assert await store.reorder_node(first.id, None, 5)
        tree = await store.get_navigation_tree()
        assert [node.id for node in tree] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_reorder_rejects_cycles(self) -> None:
        store = InMemoryDocumentStore()
        parent = await store.create_node("Parent", "/p")
        child = await store.create_node("Child", "/p/c", parent_id=parent.id)

        assert not await store.reorder_node(parent.id, child.id, 0)
        assert not await store.reorder_node(parent.id, parent.id, 0)

    def test_build_navigation_tree_orphans_become_roots(self) -> None:
        nodes = [
            NavigationNode(id="1", title="A", path="/a", order_index=1),
            NavigationNode(id="2", title="B", path="/b", parent_id="gone", order_index=0),
        ]
        assert [node.id for node in build_navigation_tree(nodes)] == ["2", "1"]


class TestJsonFileDocumentStore:
    """Tests for JsonFileDocumentStore."""

    @pytest.mark.asyncio
    async def test_persists_across_instances(self, tmp_path) -> None:
        path = tmp_path / "store" / "documents.json"
        await JsonFileDocumentStore(path).upsert_document("/guide", SECTIONS, title="Guide")

        assert path.exists()
        raw = json.loads(path.read_text(encoding="utf-8"))
        assert raw["documents"][0]["path"] == "/guide"

        document = await JsonFileDocumentStore(path).get_document_by_path("/guide")
        assert document.title == "Guide"
        assert document.sections == SECTIONS

    @pytest.mark.asyncio
    async def test_navigation_persists(self, tmp_path) -> None:
        path = tmp_path / "documents.json"
        store = JsonFileDocumentStore(path)
        folder = await store.create_node("Docs", "/docs")

        tree = await JsonFileDocumentStore(path).get_navigation_tree()
        assert tree[0].id == folder.id

    @pytest.mark.asyncio
    async def test_corrupt_file_is_reported_not_raised(self, tmp_path) -> None:
        path = tmp_path / "documents.json"
        path.write_text("{not json", encoding="utf-8")

        store = JsonFileDocumentStore(path)
        assert await store.get_document_by_path("/guide") is None
        assert await store.get_all_documents() == []

    @pytest.mark.asyncio
    async def test_undecodable_file_is_reported_not_raised(self, tmp_path) -> None:
        path = tmp_path / "documents.json"
        path.write_bytes(b'{"documents": [\xff\xfe]}')

        store = JsonFileDocumentStore(path)
        assert await store.get_document_by_path("/guide") is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            "[]",
            '{"documents": {"path": "/guide"}}',
            '{"documents": [{"id": "d1", "title": "No path"}]}',
            '{"nodes": ["n1"]}',
        ],
    )
    async def test_malformed_file_is_reported_not_raised(self, tmp_path, payload: str, caplog) -> None:
        path = tmp_path / "documents.json"
        path.write_text(payload, encoding="utf-8")

        store = JsonFileDocumentStore(path)
        with caplog.at_level(logging.ERROR, logger="sectionwiki.store"):
            assert await store.get_all_documents() == []
            assert await store.get_navigation_tree() == []
        assert caplog.records

    @pytest.mark.asyncio
    async def test_failed_write_rolls_back(self, tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "documents.json"
        store = JsonFileDocumentStore(path)
        await store.upsert_document("/guide", SECTIONS)

        async def _fail(*args, **kwargs) -> None:
            raise OSError("disk full")

        monkeypatch.setattr("sectionwiki.store.write_text_atomic_async", _fail)
        assert not await store.upsert_document("/guide", SECTIONS[:1])
        assert len((await store.get_document_by_path("/guide")).sections) == 2


def _rest_store(handler) -> tuple[RestDocumentStore, httpx.AsyncClient]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RestDocumentStore("https://db.example.com", "secret", client=client), client


class TestRestDocumentStore:
    """Tests for RestDocumentStore against a mocked PostgREST API."""

    @pytest.fixture(autouse=True)
    def no_backoff(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sectionwiki.http_utils.SECTIONWIKI_FETCH_BACKOFF_S", 0.0)

    @pytest.mark.asyncio
    async def test_get_document(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(
                200,
                json=[
                    {
                        "id": 7,
                        "title": "Guide",
                        "path": "/guide",
                        "content_json": {"sections": [section.model_dump() for section in SECTIONS]},
                        "tags": ["a"],
                    }
                ],
            )

        store, client = _rest_store(handler)
        async with client:
            document = await store.get_document_by_path("/guide")

        assert document.id == "7"
        assert document.sections == SECTIONS
        request = requests[0]
        assert request.url.path == "/rest/v1/content_items"
        assert request.url.params["path"] == "eq./guide"
        assert request.headers["apikey"] == "secret"
        assert request.headers["authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_bare_section_list_is_accepted(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            rows = [{"id": "1", "path": "/g", "title": "G", "content_json": [SECTIONS[0].model_dump()]}]
            return httpx.Response(200, json=rows)

        store, client = _rest_store(handler)
        async with client:
            document = await store.get_document_by_path("/g")
        assert document.sections == SECTIONS[:1]

    @pytest.mark.asyncio
    async def test_missing_document(self) -> None:
        store, client = _rest_store(lambda request: httpx.Response(200, json=[]))
        async with client:
            assert await store.get_document_by_path("/nope") is None

    @pytest.mark.asyncio
    async def test_upsert_posts_merge_duplicates(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(201)

        store, client = _rest_store(handler)
        async with client:
            assert await store.upsert_document("/guide", SECTIONS, title="Guide")

        request = requests[0]
        body = json.loads(request.content)
        assert request.method == "POST"
        assert request.url.params["on_conflict"] == "path"
        assert "resolution=merge-duplicates" in request.headers["prefer"]
        assert body["title"] == "Guide"
        assert [item["id"] for item in body["content_json"]["sections"]] == ["s1", "s2"]
        assert "tags" not in body

    @pytest.mark.asyncio
    async def test_update_section_reads_then_patches(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if request.method == "GET":
                rows = [{"id": "1", "path": "/g", "title": "G", "content_json": [s.model_dump() for s in SECTIONS]}]
                return httpx.Response(200, json=rows)
            return httpx.Response(204)

        store, client = _rest_store(handler)
        async with client:
            assert await store.update_section("/g", "s2", make_section("s2", "Details", 2, "New."))

        patch = requests[-1]
        assert patch.method == "PATCH"
        assert json.loads(patch.content)["content_json"]["sections"][1]["content"] == "New."

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "rows",
        [
            [{"id": 1, "title": "x"}],
            [{"path": "/guide", "title": "x"}],
            {"id": 1, "path": "/guide"},
            ["not a row"],
        ],
    )
    async def test_malformed_rows_are_reported_not_raised(self, rows) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=rows)

        store, client = _rest_store(handler)
        async with client:
            assert await store.get_all_documents() == []
            assert await store.get_document_by_path("/guide") is None
            assert await store.get_navigation_tree() == []

    @pytest.mark.asyncio
    async def test_update_section_with_malformed_row_fails_cleanly(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[{"title": "x"}])

        store, client = _rest_store(handler)
        async with client:
            assert not await store.update_section("/guide", "s1", SECTIONS[0])

    @pytest.mark.asyncio
    async def test_server_errors_are_retried_then_reported(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(503)

        store, client = _rest_store(handler)
        async with client:
            assert not await store.upsert_document("/guide", SECTIONS)
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_navigation_tree(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/rest/v1/navigation_structure"
            return httpx.Response(
                200,
                json=[
                    {"id": "f", "title": "Docs", "type": "folder", "path": "/docs", "order_index": 0},
                    {"id": "d", "title": "Page", "type": "document", "path": "/docs/p", "parent_id": "f"},
                ],
            )

        store, client = _rest_store(handler)
        async with client:
            tree = await store.get_navigation_tree()
        assert tree[0].children[0].id == "d"

    @pytest.mark.asyncio
    async def test_delete_node(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(204)

        store, client = _rest_store(handler)
        async with client:
            assert await store.delete_node("abc")
        assert requests[0].method == "DELETE"
        assert requests[0].url.params["id"] == "eq.abc"

    def test_requires_base_url(self) -> None:
        with pytest.raises(StoreError):
            RestDocumentStore("")


class TestCreateStore:
    """Tests for create_store."""

    def test_memory(self) -> None:
        assert isinstance(create_store("memory"), InMemoryDocumentStore)

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValueError, match="Unknown store backend"):
            create_store("carrier-pigeon")
