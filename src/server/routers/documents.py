"""Document, section and block endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from sectionwiki.blocks import blocks_to_sections, change_heading_level, sections_to_blocks
from sectionwiki.extractor import extract_full_content, find_section
from sectionwiki.hierarchy import build_tree, render_outline, render_toc
from sectionwiki.links import iter_internal_links, resolve_internal_link
from sectionwiki.parser import parse_sections, sections_to_markup
from sectionwiki.renderer import render_markdown
from sectionwiki.schemas import Document, HierarchicalSection, Section
from sectionwiki.store import DocumentStore
from sectionwiki.tags import collect_tags, filter_documents, suggest_tags
from sectionwiki.utils.logging_config import get_logger
from server.dependencies import get_store, load_document
from server.models import (
    BlocksResponse,
    ChangeLevelRequest,
    DocumentLinksResponse,
    DocumentResponse,
    DocumentSummary,
    ErrorResponse,
    RenderResponse,
    ResolveLinkRequest,
    SaveBlocksRequest,
    SaveDocumentRequest,
    SectionViewResponse,
    TagsResponse,
    UpdateSectionRequest,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api")

StoreDep = Annotated[DocumentStore, Depends(get_store)]

COMMON_RESPONSES = {
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse, "description": "Document or section not found"},
    status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ErrorResponse, "description": "The store rejected the write"},
}


def _document_response(document: Document) -> DocumentResponse:
    tree = build_tree(document.sections)
    return DocumentResponse(
        id=document.id,
        title=document.title,
        path=document.path,
        tags=document.tags,
        sections=document.sections,
        markup=sections_to_markup(document.sections, document.title),
        outline=render_outline(tree),
        toc=render_toc(tree),
    )


def _save_failed(path: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"Could not save {path!r}",
    )


@router.get("/documents", response_model=list[DocumentSummary])
async def list_documents(
    store: StoreDep,
    include: Annotated[list[str] | None, Query()] = None,
    exclude: Annotated[list[str] | None, Query()] = None,
) -> list[DocumentSummary]:
    """List stored documents, optionally filtered by tag.

    **Query Parameters**
    - **include** (`list[str]`, optional): keep documents carrying any of these tags
    - **exclude** (`list[str]`, optional): drop documents carrying any of these tags
    """
    documents = filter_documents(await store.get_all_documents(), include=include, exclude=exclude)
    return [
        DocumentSummary(
            id=document.id,
            title=document.title,
            path=document.path,
            tags=document.tags,
            section_count=len(document.sections),
            updated_at=document.updated_at,
        )
        for document in documents
    ]


@router.get("/tags", response_model=TagsResponse)
async def list_tags(store: StoreDep, prefix: str = "") -> TagsResponse:
    """All document tags; with ``prefix``, only matching tags with prefix hits first."""
    tags = collect_tags(await store.get_all_documents())
    return TagsResponse(tags=suggest_tags(prefix, tags))


@router.get("/document", response_model=DocumentResponse, responses=COMMON_RESPONSES)
async def get_document(store: StoreDep, path: str) -> DocumentResponse:
    """Return a document with its sections, markup, outline and table of contents."""
    return _document_response(await load_document(store, path))


@router.put("/document", response_model=DocumentResponse, responses=COMMON_RESPONSES)
async def save_document(store: StoreDep, request: SaveDocumentRequest) -> DocumentResponse:
    """Create or replace a document from markup or from sections.

    **Parameters**

    - **request** (`SaveDocumentRequest`): path, optional title and tags, and either ``markup`` or ``sections``

    **Returns**

    - **DocumentResponse**: the stored document as read back from the store
    """
    if request.markup is not None:
        sections = parse_sections(request.markup, request.title)
    else:
        sections = request.sections or []

    if not await store.upsert_document(request.path, sections, title=request.title, tags=request.tags):
        raise _save_failed(request.path)

    logger.info("Document saved", extra={"path": request.path, "sections": len(sections)})
    return _document_response(await load_document(store, request.path))


@router.get("/document/render", response_model=RenderResponse, responses=COMMON_RESPONSES)
async def render_document(store: StoreDep, path: str) -> RenderResponse:
    """Render the whole document to HTML."""
    document = await load_document(store, path)
    return RenderResponse(
        path=document.path,
        html=render_markdown(sections_to_markup(document.sections, document.title)),
    )


@router.get("/document/tree", response_model=list[HierarchicalSection], responses=COMMON_RESPONSES)
async def get_section_tree(store: StoreDep, path: str) -> list[HierarchicalSection]:
    """Return the document's sections nested by level."""
    document = await load_document(store, path)
    return build_tree(document.sections)


@router.get("/document/section", response_model=SectionViewResponse, responses=COMMON_RESPONSES)
async def get_section_view(store: StoreDep, path: str, section_id: str) -> SectionViewResponse:
    """Drill into one section: its subtree markup, HTML and ancestor chain."""
    document = await load_document(store, path)
    section = find_section(document.sections, section_id)
    if section is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Section {section_id!r} not found in {document.path!r}",
        )
    view = extract_full_content(section, document.sections)
    return SectionViewResponse(section_id=section.id, view=view, html=render_markdown(view.content))


@router.put("/document/section/{section_id}", response_model=Section, responses=COMMON_RESPONSES)
async def update_section(store: StoreDep, section_id: str, request: UpdateSectionRequest) -> Section:
    """Replace one section of a document in place."""
    if request.section.id != section_id:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="section.id must match the section_id in the URL",
        )
    document = await load_document(store, request.path)
    if find_section(document.sections, section_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Section {section_id!r} not found in {document.path!r}",
        )
    if not await store.update_section(document.path, section_id, request.section):
        raise _save_failed(document.path)
    return request.section


@router.get("/document/blocks", response_model=BlocksResponse, responses=COMMON_RESPONSES)
async def get_blocks(store: StoreDep, path: str) -> BlocksResponse:
    """Return the document as rich-editor blocks."""
    document = await load_document(store, path)
    return BlocksResponse(path=document.path, blocks=sections_to_blocks(document.sections))


@router.put("/document/blocks", response_model=BlocksResponse, responses=COMMON_RESPONSES)
async def save_blocks(store: StoreDep, request: SaveBlocksRequest) -> BlocksResponse:
    """Save rich-editor blocks back as sections."""
    document = await load_document(store, request.path)
    sections = blocks_to_sections(request.blocks)
    if not await store.upsert_document(document.path, sections, title=document.title):
        raise _save_failed(document.path)
    return BlocksResponse(path=document.path, blocks=sections_to_blocks(sections))


@router.post("/document/blocks/level", response_model=BlocksResponse, responses=COMMON_RESPONSES)
async def change_level(store: StoreDep, request: ChangeLevelRequest) -> BlocksResponse:
    """Indent or outdent a heading together with every heading nested under it."""
    document = await load_document(store, request.path)
    if find_section(document.sections, request.block_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Heading {request.block_id!r} not found in {document.path!r}",
        )

    blocks = change_heading_level(sections_to_blocks(document.sections), request.block_id, request.delta)
    sections = blocks_to_sections(blocks)
    if not await store.upsert_document(document.path, sections, title=document.title):
        raise _save_failed(document.path)
    return BlocksResponse(path=document.path, blocks=blocks)


@router.get("/document/links", response_model=DocumentLinksResponse, responses=COMMON_RESPONSES)
async def get_document_links(store: StoreDep, path: str) -> DocumentLinksResponse:
    """Resolve every internal link written in a document's sections."""
    document = await load_document(store, path)
    by_path = {item.path: item.sections for item in await store.get_all_documents()}

    links = {}
    for section in document.sections:
        for target in iter_internal_links(section.content):
            resolved = resolve_internal_link(target, document.sections, lookup=by_path.get)
            if resolved is not None:
                links[target] = resolved
    return DocumentLinksResponse(path=document.path, links=links)


@router.post("/links/resolve", responses=COMMON_RESPONSES)
async def resolve_link(store: StoreDep, request: ResolveLinkRequest) -> dict:
    """Resolve one authored link target relative to ``current_path``.

    **Returns**

    - **dict**: ``{"internal": false}`` for external targets, otherwise the resolved link
    """
    document = await load_document(store, request.current_path)
    by_path = {item.path: item.sections for item in await store.get_all_documents()}
    resolved = resolve_internal_link(request.target, document.sections, lookup=by_path.get)
    if resolved is None:
        return {"internal": False}
    return {"internal": True, "link": resolved.model_dump(mode="json")}
