"""Document and navigation tree models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from sectionwiki.schemas.sections import Section


class Document(BaseModel):
    """A document: a routable path plus its flat section list."""

    id: str
    title: str
    path: str
    sections: list[Section] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    updated_at: datetime | None = None


class NodeType(str, Enum):
    """Kind of entry in the navigation tree."""

    DOCUMENT = "document"
    FOLDER = "folder"


class NavigationNode(BaseModel):
    """A sidebar navigation entry (document or folder)."""

    id: str
    title: str
    type: NodeType = NodeType.DOCUMENT
    path: str
    parent_id: str | None = None
    order_index: int = 0
    children: list["NavigationNode"] = Field(default_factory=list)
