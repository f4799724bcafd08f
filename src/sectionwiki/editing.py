"""Editing and search-as-you-type sessions.

Both sessions sit on top of the persistence boundary and defer their work
through a cancel-and-restart timer: only the latest pending call fires.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable

from sectionwiki.blocks import blocks_to_sections, change_heading_level, sections_to_blocks
from sectionwiki.config import (
    SECTIONWIKI_AUTOSAVE_DELAY_S,
    SECTIONWIKI_SEARCH_DELAY_S,
    SECTIONWIKI_SEARCH_MIN_QUERY_LENGTH,
    SECTIONWIKI_SNIPPET_CONTEXT,
)
from sectionwiki.parser import parse_sections, sections_to_markup
from sectionwiki.schemas import Block, Document, SearchResult, Section
from sectionwiki.search import search_documents
from sectionwiki.store import DocumentStore

logger = logging.getLogger(__name__)

Notifier = Callable[[str], None]


class Debouncer:
    """Run an async callback ``delay`` seconds after the last trigger."""

    def __init__(self, delay: float, callback: Callable[[], Awaitable[None]]) -> None:
        self._delay = delay
        self._callback = callback
        self._task: asyncio.Task[None] | None = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def trigger(self) -> None:
        """Restart the timer; a call already waiting is dropped."""
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._wait_and_run())

    async def _wait_and_run(self) -> None:
        await asyncio.sleep(self._delay)
        self._task = None
        await self._callback()

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def flush(self) -> None:
        """Run a pending call now instead of waiting for the timer."""
        if not self.pending:
            return
        self.cancel()
        await self._callback()


class EditMode(str, Enum):
    MARKUP = "markup"
    BLOCKS = "blocks"


def _carry_ids(previous: list[Section], parsed: list[Section]) -> list[Section]:
    """Keep the ids of sections whose title and level survived a re-parse."""
    available: dict[tuple[str, int], list[str]] = {}
    for section in previous:
        available.setdefault((section.title, section.level), []).append(section.id)

    carried: list[Section] = []
    for section in parsed:
        ids = available.get((section.title, section.level))
        if ids:
            section = section.model_copy(update={"id": ids.pop(0)})
        carried.append(section)
    return carried


class DocumentEditSession:
    """One open document in either the markup editor or the block editor.

    Sections are the source of truth. The active editor holds its own
    representation (markup text or blocks) which is committed back into
    sections on save and whenever the mode is switched.

    Args:
        store: Where saves go.
        path: Document path.
        sections: Sections loaded for the document.
        title: Document title, also used for the implicit root section.
        mode: Initial editor.
        autosave_delay: Seconds of inactivity before an autosave.
        on_notify: Receives a user-facing message when a save fails.
    """

    def __init__(
        self,
        store: DocumentStore,
        path: str,
        sections: list[Section],
        *,
        title: str | None = None,
        mode: EditMode = EditMode.MARKUP,
        autosave_delay: float = SECTIONWIKI_AUTOSAVE_DELAY_S,
        on_notify: Notifier | None = None,
    ) -> None:
        self.store = store
        self.path = path
        self.title = title
        self._sections = [section.model_copy() for section in sections]
        self._mode = mode
        self._markup = ""
        self._blocks: list[Block] = []
        self._dirty = False
        self._on_notify = on_notify
        self._autosave = Debouncer(autosave_delay, self._autosave_now)
        self._load_representation()

    @classmethod
    async def open(cls, store: DocumentStore, path: str, **kwargs) -> DocumentEditSession:
        """Load ``path`` from the store; a missing document opens empty."""
        document = await store.get_document_by_path(path)
        if document is None:
            return cls(store, path, [], **kwargs)
        kwargs.setdefault("title", document.title)
        return cls(store, path, document.sections, **kwargs)

    @property
    def mode(self) -> EditMode:
        return self._mode

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def autosave_pending(self) -> bool:
        return self._autosave.pending

    @property
    def markup(self) -> str:
        return self._markup

    @property
    def blocks(self) -> list[Block]:
        return self._blocks

    @property
    def sections(self) -> list[Section]:
        """Sections including any uncommitted editor changes."""
        self._commit()
        return list(self._sections)

    def _load_representation(self) -> None:
        if self._mode is EditMode.MARKUP:
            self._markup = sections_to_markup(self._sections, self.title)
            self._blocks = []
        else:
            self._blocks = sections_to_blocks(self._sections)
            self._markup = ""

    def _commit(self) -> None:
        if self._mode is EditMode.MARKUP:
            self._sections = _carry_ids(self._sections, parse_sections(self._markup, self.title))
        else:
            self._sections = blocks_to_sections(self._blocks)

    def _touch(self) -> None:
        self._dirty = True
        self._autosave.trigger()

    def edit_markup(self, text: str) -> None:
        if self._mode is not EditMode.MARKUP:
            raise ValueError("Markup edits require markup mode")
        self._markup = text
        self._touch()

    def edit_blocks(self, blocks: list[Block]) -> None:
        if self._mode is not EditMode.BLOCKS:
            raise ValueError("Block edits require blocks mode")
        self._blocks = [block.model_copy(deep=True) for block in blocks]
        self._touch()

    def change_heading_level(self, block_id: str, delta: int) -> None:
        """Indent (``delta > 0``) or outdent a heading and its subtree."""
        if self._mode is not EditMode.BLOCKS:
            raise ValueError("Heading level changes require blocks mode")
        self._blocks = change_heading_level(self._blocks, block_id, delta)
        self._touch()

    def switch_mode(self, mode: EditMode) -> None:
        """Commit the active editor into sections, then open the other one."""
        if mode is self._mode:
            return
        self._commit()
        self._mode = mode
        self._load_representation()
        logger.debug("Switched editor mode", extra={"path": self.path, "mode": mode.value})

    async def _autosave_now(self) -> None:
        await self.save()

    async def save(self) -> bool:
        """Persist the current sections.

        On failure the editor keeps its in-memory state, stays dirty, and the
        user is notified.
        """
        self._autosave.cancel()
        self._commit()
        saved = await self.store.upsert_document(self.path, self._sections, title=self.title)
        if saved:
            self._dirty = False
            logger.info("Document saved", extra={"path": self.path, "sections": len(self._sections)})
            return True

        logger.warning("Document save failed; keeping local changes", extra={"path": self.path})
        if self._on_notify is not None:
            self._on_notify(f"Could not save {self.path}. Your changes are kept locally.")
        return False

    async def close(self, save: bool = True) -> bool:
        """Stop the autosave timer and optionally save outstanding changes."""
        self._autosave.cancel()
        if save and self._dirty:
            return await self.save()
        return True


class SearchSession:
    """Search-as-you-type over every stored document.

    Each query change gets a new request token. A search that finishes after
    a newer query was typed has its results discarded.
    """

    def __init__(
        self,
        load_documents: Callable[[], Awaitable[list[Document]]],
        *,
        delay: float = SECTIONWIKI_SEARCH_DELAY_S,
        min_query_length: int = SECTIONWIKI_SEARCH_MIN_QUERY_LENGTH,
        context_length: int = SECTIONWIKI_SNIPPET_CONTEXT,
        on_results: Callable[[list[SearchResult]], None] | None = None,
    ) -> None:
        self._load_documents = load_documents
        self._min_query_length = min_query_length
        self._context_length = context_length
        self._on_results = on_results
        self._query = ""
        self._token = 0
        self._results: list[SearchResult] = []
        self._debouncer = Debouncer(delay, self._run)

    @classmethod
    def for_store(cls, store: DocumentStore, **kwargs) -> SearchSession:
        return cls(store.get_all_documents, **kwargs)

    @property
    def query(self) -> str:
        return self._query

    @property
    def token(self) -> int:
        return self._token

    @property
    def results(self) -> list[SearchResult]:
        return list(self._results)

    def _publish(self, results: list[SearchResult]) -> None:
        self._results = results
        if self._on_results is not None:
            self._on_results(list(results))

    def update_query(self, query: str) -> None:
        """Record a keystroke; short queries clear results immediately."""
        self._query = query
        self._token += 1
        if len(query.strip()) < self._min_query_length:
            self._debouncer.cancel()
            self._publish([])
            return
        self._debouncer.trigger()

    async def flush(self) -> None:
        await self._debouncer.flush()

    async def _run(self) -> None:
        token = self._token
        query = self._query
        documents = await self._load_documents()
        if token != self._token:
            logger.debug("Discarding stale search results", extra={"query": query, "token": token})
            return
        self._publish(search_documents(query, documents, context_length=self._context_length))
