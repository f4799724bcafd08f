"""Test setup for sectionwiki."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from sectionwiki.schemas import Document, Section  # noqa: E402


def make_section(section_id: str, title: str, level: int, content: str = "", tags: list[str] | None = None) -> Section:
    """Build a section with a readable id."""
    return Section(id=section_id, title=title, level=level, content=content, tags=tags or [])


@pytest.fixture
def nested_sections() -> list[Section]:
    """``H1 > A2 > B3``, then ``C2`` back under ``H1``, then a new root ``D1``."""
    return [
        make_section("h", "Handbook", 1, "Welcome to the handbook."),
        make_section("a", "Alpha", 2, "Alpha body."),
        make_section("b", "Beta", 3, "Beta body."),
        make_section("c", "Gamma", 2, "Gamma body."),
        make_section("d", "Delta", 1, "Delta body."),
    ]


@pytest.fixture
def guide_document() -> Document:
    """A small document used by search, link and store tests."""
    return Document(
        id="doc-guide",
        title="Installation Guide",
        path="/guides/install",
        tags=["guide", "setup"],
        sections=[
            make_section("s-intro", "Introduction", 1, "This guide walks through installation."),
            make_section("s-req", "Requirements", 2, "You need Python and a database."),
            make_section("s-steps", "Setup Steps", 2, "Run the installer, then configure the database.", ["howto"]),
            make_section("s-db", "Database", 3, "Point the config at your database server."),
        ],
    )


@pytest.fixture
def faq_document() -> Document:
    return Document(
        id="doc-faq",
        title="FAQ",
        path="/faq",
        tags=["support"],
        sections=[
            make_section("f-1", "General", 1, "Questions about the project."),
            make_section("f-2", "Database", 2, "Which database engines are supported?"),
        ],
    )
