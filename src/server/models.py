"""Pydantic request and response models for the API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from sectionwiki.schemas import (
    Block,
    NavigationNode,
    NodeType,
    ResolvedLink,
    SearchResult,
    Section,
    SectionView,
)


def normalize_document_path(value: str) -> str:
    """Return ``value`` with exactly one leading slash and no trailing slash."""
    stripped = value.strip().strip("/")
    if not stripped:
        err = "path cannot be empty"
        raise ValueError(err)
    return f"/{stripped}"


class DocumentSummary(BaseModel):
    """Listing entry for a stored document.

    Attributes
    ----------
    id : str
        Document id.
    title : str
        Document title.
    path : str
        Routable document path.
    tags : list[str]
        Document tags.
    section_count : int
        Number of sections in the document.
    updated_at : datetime | None
        Last save time, when the store records one.

    """

    id: str
    title: str
    path: str
    tags: list[str] = Field(default_factory=list)
    section_count: int = Field(..., ge=0, description="Number of sections")
    updated_at: datetime | None = None


class DocumentResponse(BaseModel):
    """A document with every representation the reader and editors need.

    Attributes
    ----------
    id : str
        Document id.
    title : str
        Document title.
    path : str
        Routable document path.
    tags : list[str]
        Document tags.
    sections : list[Section]
        Flat sections in document order.
    markup : str
        Sections serialized back to authored markup.
    outline : str
        Indented outline of section titles.
    toc : str
        Markdown table of contents linking to section ids.

    """

    id: str
    title: str
    path: str
    tags: list[str] = Field(default_factory=list)
    sections: list[Section]
    markup: str = Field(..., description="Authored markup for the whole document")
    outline: str = Field(..., description="Indented outline of section titles")
    toc: str = Field(..., description="Markdown table of contents")


class SaveDocumentRequest(BaseModel):
    """Request body for saving a whole document.

    Exactly one of ``markup`` and ``sections`` must be provided.

    Attributes
    ----------
    path : str
        Routable document path.
    title : str | None
        Document title; also names the implicit root section of ``markup``.
    tags : list[str] | None
        Document tags; ``None`` keeps the stored tags.
    markup : str | None
        Authored markup to parse.
    sections : list[Section] | None
        Already parsed sections.

    """

    path: str = Field(..., description="Routable document path")
    title: str | None = Field(default=None, description="Document title")
    tags: list[str] | None = Field(default=None, description="Document tags")
    markup: str | None = Field(default=None, description="Authored markup")
    sections: list[Section] | None = Field(default=None, description="Flat sections")

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Normalize ``path``."""
        return normalize_document_path(v)

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v: str | list[str] | None) -> list[str] | None:
        """Accept comma-separated strings as well as lists."""
        if v is None:
            return None
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return [item.strip() for item in v if item.strip()]

    @model_validator(mode="after")
    def check_one_body(self) -> SaveDocumentRequest:
        """Require exactly one of ``markup`` and ``sections``."""
        if (self.markup is None) == (self.sections is None):
            err = "provide exactly one of markup or sections"
            raise ValueError(err)
        return self


class UpdateSectionRequest(BaseModel):
    """Request body for replacing one section in place."""

    path: str = Field(..., description="Routable document path")
    section: Section = Field(..., description="New section; its id must match section_id")

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Normalize ``path``."""
        return normalize_document_path(v)


class SectionViewResponse(BaseModel):
    """Drill-down view of one section.

    Attributes
    ----------
    section_id : str
        Id of the viewed section.
    view : SectionView
        Markup of the subtree plus its ancestor chain.
    html : str
        ``view.content`` rendered to HTML.

    """

    section_id: str
    view: SectionView
    html: str


class RenderResponse(BaseModel):
    """Rendered HTML for a document."""

    path: str
    html: str


class BlocksResponse(BaseModel):
    """The block-editor representation of a document."""

    path: str
    blocks: list[Block]


class SaveBlocksRequest(BaseModel):
    """Request body for saving block-editor content."""

    path: str = Field(..., description="Routable document path")
    blocks: list[Block] = Field(..., description="Editor blocks")

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Normalize ``path``."""
        return normalize_document_path(v)


class ChangeLevelRequest(BaseModel):
    """Request body for indenting or outdenting a heading with its subtree.

    Attributes
    ----------
    path : str
        Routable document path.
    block_id : str
        Id of the heading block (equal to its section id).
    delta : int
        ``+1`` to indent, ``-1`` to outdent.

    """

    path: str
    block_id: str
    delta: int = Field(..., ge=-98, le=98, description="Level change, positive indents")

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Normalize ``path``."""
        return normalize_document_path(v)

    @field_validator("delta")
    @classmethod
    def validate_delta(cls, v: int) -> int:
        """Reject a no-op level change."""
        if v == 0:
            err = "delta cannot be zero"
            raise ValueError(err)
        return v


class ResolveLinkRequest(BaseModel):
    """Request body for resolving an authored link target."""

    target: str = Field(..., description="Link target, e.g. '#setup' or '/guides/intro#install'")
    current_path: str = Field(..., description="Path of the document containing the link")

    @field_validator("current_path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Normalize ``current_path``."""
        return normalize_document_path(v)


class DocumentLinksResponse(BaseModel):
    """Every internal link found in a document, resolved."""

    path: str
    links: dict[str, ResolvedLink]


class SearchResponse(BaseModel):
    """Ranked search results."""

    query: str
    results: list[SearchResult]


class TagsResponse(BaseModel):
    """Known tags, optionally narrowed by a typed prefix."""

    tags: list[str]


class CreateNodeRequest(BaseModel):
    """Request body for adding a navigation node."""

    title: str = Field(..., min_length=1)
    path: str
    type: NodeType = NodeType.FOLDER
    parent_id: str | None = None
    order_index: int = Field(default=0, ge=0)

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Normalize ``path``."""
        return normalize_document_path(v)


class ReorderNodeRequest(BaseModel):
    """Request body for moving a navigation node."""

    parent_id: str | None = Field(default=None, description="New parent, or null for the top level")
    order_index: int = Field(..., ge=0, description="Position among the new siblings")


class NavigationTreeResponse(BaseModel):
    """The sidebar tree."""

    nodes: list[NavigationNode]


class ErrorResponse(BaseModel):
    """Error payload.

    Attributes
    ----------
    error : str
        Error message describing what went wrong.

    """

    error: str = Field(..., description="Error message")
