"""Section models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from sectionwiki.config import MAX_SECTION_LEVEL, MIN_SECTION_LEVEL


class Section(BaseModel):
    """One header-delimited unit of a document, in flat (pre-order) form."""

    id: str
    title: str
    level: int = Field(..., ge=MIN_SECTION_LEVEL, le=MAX_SECTION_LEVEL)
    content: str = ""
    tags: list[str] = Field(default_factory=list)


class HierarchicalSection(Section):
    """A section with its structurally nested children. Never persisted."""

    children: list["HierarchicalSection"] = Field(default_factory=list)

    def to_section(self) -> Section:
        """Drop the children and return the flat section."""
        return Section(
            id=self.id,
            title=self.title,
            level=self.level,
            content=self.content,
            tags=list(self.tags),
        )


class AncestorEntry(BaseModel):
    """One entry of an ancestor chain."""

    title: str
    level: int


class SectionView(BaseModel):
    """Materialized drill-down view of a section and its nested content.

    Attributes:
        content: Markup of the section and all of its descendants.
        title: Title of the section.
        level: Level of the section.
        parent_path: Ancestor titles joined with `` / ``.
        section_hierarchy: Ancestor chain, root first.
    """

    content: str
    title: str
    level: int
    parent_path: str = ""
    section_hierarchy: list[AncestorEntry] = Field(default_factory=list)
