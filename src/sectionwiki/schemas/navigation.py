"""Navigation state model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, model_validator

from sectionwiki.schemas.sections import SectionView


class NavigationState(BaseModel):
    """Current document and section, replaced as one unit on every transition."""

    model_config = ConfigDict(frozen=True)

    document_path: str | None = None
    section_id: str | None = None
    section_title: str | None = None
    section_view: SectionView | None = None

    @model_validator(mode="after")
    def _check_section_has_context(self) -> NavigationState:
        if self.section_id is not None:
            if self.document_path is None:
                raise ValueError("section_id requires document_path")
            if self.section_view is None:
                raise ValueError("section_id requires section_view")
        return self

    @property
    def at_section(self) -> bool:
        return self.section_id is not None
