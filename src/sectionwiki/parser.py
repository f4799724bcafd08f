"""Parse authored markup into flat sections, and serialize them back."""

from __future__ import annotations

import re
import uuid
from typing import Iterable

from sectionwiki.schemas import Section

# A header is a run of 1-99 '#' characters, a title, and an optional
# trailing bracketed tag list: "## Setup [guide, intro]".
_HEADER_RE = re.compile(r"^(#{1,99})\s*(.+?)(?:\s*\[(.*?)\])?$")


def generate_section_id() -> str:
    """Return a fresh, editor-independent section id."""
    return f"section-{uuid.uuid4().hex[:12]}"


def parse_sections(text: str, document_title: str | None = None) -> list[Section]:
    """Split marked-up text into an ordered flat list of sections.

    Lines that do not match the header grammar are body text of the most
    recently opened section, even when they start with ``#``. Levels may
    skip (``#`` followed by ``###``); the deeper header is simply a child.

    Text before the first header is kept as a level-1 section titled
    ``document_title``, or with an empty title when no document title is
    given. Whitespace-only text before the first header is dropped.

    Args:
        text: The authored markup.
        document_title: Title for the implicit root section.

    Returns:
        Sections in document (pre-order) order, with generated ids.
    """
    sections: list[Section] = []
    preamble: list[str] = []
    header: tuple[str, int, list[str]] | None = None
    body: list[str] = []

    def _flush() -> None:
        if header is None:
            return
        title, level, tags = header
        sections.append(
            Section(
                id=generate_section_id(),
                title=title,
                level=level,
                content=_normalize_body(body),
                tags=tags,
            )
        )

    for raw_line in text.split("\n"):
        line = raw_line[:-1] if raw_line.endswith("\r") else raw_line
        match = _HEADER_RE.match(line)
        if match:
            _flush()
            hashes, title, tag_string = match.groups()
            header = (title.strip(), len(hashes), _split_tags(tag_string))
            body = []
        elif header is None:
            preamble.append(line)
        else:
            body.append(line)
    _flush()

    preamble_content = _normalize_body(preamble)
    if preamble_content.strip():
        root = Section(
            id=generate_section_id(),
            title=document_title or "",
            level=1,
            content=preamble_content,
        )
        sections.insert(0, root)

    return sections


def format_header(title: str, level: int, tags: Iterable[str] = ()) -> str:
    """Render one header line in the authored markup syntax."""
    tag_list = list(tags)
    line = f"{'#' * level} {title}"
    if tag_list:
        line += f" [{', '.join(tag_list)}]"
    return line


def sections_to_markup(sections: list[Section], document_title: str | None = None) -> str:
    """Serialize flat sections back into authored markup.

    A leading implicit root section (level 1, no tags, titled
    ``document_title`` or untitled when no title is given) is written as
    text before the first header, so that ``parse_sections`` with the same
    ``document_title`` restores it.
    """
    blocks: list[str] = []
    for index, section in enumerate(sections):
        if index == 0 and _is_implicit_root(section, document_title):
            blocks.append(section.content)
            continue
        header = format_header(section.title, section.level, section.tags)
        if section.content:
            blocks.append(f"{header}\n{section.content}")
        else:
            blocks.append(header)
    return "\n\n".join(blocks)


def build_tag_index(sections: Iterable[Section]) -> dict[str, list[str]]:
    """Map each tag to the ids of the sections carrying it, in order."""
    index: dict[str, list[str]] = {}
    for section in sections:
        for tag in section.tags:
            index.setdefault(tag, []).append(section.id)
    return index


def _split_tags(tag_string: str | None) -> list[str]:
    if not tag_string:
        return []
    return [tag.strip() for tag in tag_string.split(",") if tag.strip()]


def _normalize_body(lines: list[str]) -> str:
    """Drop leading blank lines and trailing whitespace; keep inner blank lines."""
    start = 0
    while start < len(lines) and not lines[start].strip():
        start += 1
    return "\n".join(lines[start:]).rstrip()


def _is_implicit_root(section: Section, document_title: str | None) -> bool:
    if section.level != 1 or section.tags or not section.content.strip():
        return False
    expected_title = document_title if document_title is not None else ""
    return section.title == expected_title
