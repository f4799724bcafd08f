"""Resolved internal link model."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class LinkType(str, Enum):
    """Where an internal link points."""

    SAME_DOCUMENT = "same-document"
    CROSS_DOCUMENT = "cross-document"


class ResolvedLink(BaseModel):
    """Result of resolving an authored internal link.

    ``section_id`` is only set when the reference matched a known section;
    an unmatched reference keeps its text in ``section_title``.
    """

    type: LinkType
    document_path: str | None = None
    section_title: str | None = None
    section_id: str | None = None
