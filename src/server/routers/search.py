"""Full-text search endpoint."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from sectionwiki.config import SECTIONWIKI_SEARCH_MIN_QUERY_LENGTH
from sectionwiki.search import search_documents
from sectionwiki.store import DocumentStore
from server.dependencies import get_store
from server.models import SearchResponse
from server.server_config import MAX_SEARCH_RESULTS

router = APIRouter(prefix="/api")


@router.get("/search", response_model=SearchResponse)
async def search(
    store: Annotated[DocumentStore, Depends(get_store)],
    q: Annotated[str, Query(description="Search text")] = "",
    limit: Annotated[int, Query(ge=1, le=MAX_SEARCH_RESULTS)] = MAX_SEARCH_RESULTS,
) -> SearchResponse:
    """Search document titles, section titles and section bodies.

    Queries shorter than the minimum length return no results without
    touching the store.
    """
    query = q.strip()
    if len(query) < SECTIONWIKI_SEARCH_MIN_QUERY_LENGTH:
        return SearchResponse(query=query, results=[])

    results = search_documents(query, await store.get_all_documents())
    return SearchResponse(query=query, results=results[:limit])
