"""FastAPI dependencies shared by the routers."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from sectionwiki.schemas import Document
from sectionwiki.store import DocumentStore
from server.models import normalize_document_path


def get_store(request: Request) -> DocumentStore:
    """Return the store attached to the running application."""
    return request.app.state.store


async def load_document(store: DocumentStore, path: str) -> Document:
    """Fetch a document or fail with 404.

    Raises
    ------
    HTTPException
        **422** for an empty path, **404** if nothing is stored under it.

    """
    try:
        path = normalize_document_path(path)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc

    document = await store.get_document_by_path(path)
    if document is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Document {path!r} not found")
    return document
