"""Search result model."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class MatchType(str, Enum):
    """What part of a document a search result matched."""

    TITLE = "title"
    SECTION_TITLE = "section-title"
    CONTENT = "content"


class SearchResult(BaseModel):
    """One ranked search hit.

    Attributes:
        id: Stable result id, unique per match type.
        document_id: Id of the matching document.
        document_title: Title of the matching document.
        document_path: Routable path of the matching document.
        section_id: Id of the matching section, if any.
        section_title: Title of the matching section, if any.
        matched_text: Snippet with every query occurrence wrapped in ``**``.
        full_content: Unhighlighted text the match was found in.
        breadcrumb_path: Document title, ancestor titles, section title.
        match_type: Which field matched.
        relevance_score: Ranking score, higher first.
    """

    id: str
    document_id: str
    document_title: str
    document_path: str
    section_id: str | None = None
    section_title: str | None = None
    matched_text: str
    full_content: str
    breadcrumb_path: list[str] = Field(default_factory=list)
    match_type: MatchType
    relevance_score: int
