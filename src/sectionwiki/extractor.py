"""Drill-down extraction: a section's full nested content and its ancestors."""

from __future__ import annotations

import re
from typing import Iterable

from sectionwiki.hierarchy import AncestryStack
from sectionwiki.schemas import AncestorEntry, HierarchicalSection, Section, SectionView

_ANY_HEADER_RE = re.compile(r"^(#{1,99})\s")


def find_section(sections: Iterable[Section], section_id: str) -> Section | None:
    """Find a section by id in a flat list."""
    for section in sections:
        if section.id == section_id:
            return section
    return None


def _index_of(sections: list[Section], target: Section) -> int:
    for index, section in enumerate(sections):
        if section.id == target.id:
            return index
    return -1


def ancestor_chain(target: Section, sections: list[Section]) -> list[AncestorEntry]:
    """Return the root-to-parent chain of sections enclosing ``target``.

    The ancestry stack is replayed forward from the start of ``sections`` up
    to, but not including, the target; the target's parents are what its own
    level leaves open on that stack. A target that is not in ``sections`` has
    no ancestors.
    """
    index = _index_of(sections, target)
    if index < 0:
        return []

    stack: AncestryStack[Section] = AncestryStack()
    for section in sections[:index]:
        stack.enter(section, section.level)
    stack.enter(target, target.level)

    return [
        AncestorEntry(title=section.title, level=section.level)
        for section in stack.ancestors[:-1]
    ]


def _render_section_block(section: Section) -> str:
    block = f"{'#' * max(1, section.level)} {section.title}\n\n"
    if section.content.strip():
        block += section.content.strip() + "\n\n"
    return block


def subtree_sections(target: Section, sections: list[Section]) -> list[Section]:
    """Return ``target`` followed by every section structurally nested under it.

    The scan stops at the first following section whose level is less than
    or equal to the target's level.
    """
    index = _index_of(sections, target)
    if index < 0:
        return [target]

    subtree = [target]
    for section in sections[index + 1 :]:
        if section.level <= target.level:
            break
        subtree.append(section)
    return subtree


def extract_full_content(target: Section, sections: list[Section]) -> SectionView:
    """Build the drill-down view for ``target``.

    The content is the target's heading and body followed by every nested
    descendant, each re-serialized as its heading and then its body.
    """
    content = "".join(_render_section_block(section) for section in subtree_sections(target, sections))
    hierarchy = ancestor_chain(target, sections)
    return SectionView(
        content=content.strip(),
        title=target.title,
        level=target.level,
        parent_path=" / ".join(entry.title for entry in hierarchy),
        section_hierarchy=hierarchy,
    )


def render_subtree(node: HierarchicalSection) -> str:
    """Serialize a tree node and its descendants the way ``extract_full_content`` does."""

    def _walk(current: HierarchicalSection) -> str:
        text = _render_section_block(current)
        for child in current.children:
            text += _walk(child)
        return text

    return _walk(node).strip()


def _find_header_line(lines: list[str], title: str, level: int) -> int:
    pattern = re.compile(rf"^#{{{level}}}\s+{re.escape(title)}")
    for index, line in enumerate(lines):
        if pattern.match(line):
            return index
    return -1


def _find_section_end(lines: list[str], start: int, level: int) -> int:
    for index in range(start + 1, len(lines)):
        match = _ANY_HEADER_RE.match(lines[index])
        if match and len(match.group(1)) <= level:
            return index
    return len(lines)


def extract_section_markup(text: str, title: str, level: int) -> str:
    """Cut a section (header line through its last nested line) out of raw markup.

    Returns an empty string when no header of that level and title exists.
    """
    lines = text.split("\n")
    start = _find_header_line(lines, title, level)
    if start < 0:
        return ""
    end = _find_section_end(lines, start, level)
    return "\n".join(lines[start:end])


def replace_section_markup(
    text: str,
    title: str,
    level: int,
    new_content: str,
    new_title: str | None = None,
) -> str:
    """Replace a section of raw markup, keeping everything around it.

    ``new_content`` may start with its own header line of the same level;
    otherwise one is added. ``new_title`` renames the header. The original
    text is returned unchanged when the section cannot be found.
    """
    lines = text.split("\n")
    start = _find_header_line(lines, title, level)
    if start < 0:
        return text
    end = _find_section_end(lines, start, level)

    header_prefix = "#" * level
    final_title = new_title or title
    replacement = new_content.split("\n")
    if not replacement[0].startswith(header_prefix):
        replacement.insert(0, f"{header_prefix} {final_title}")
    elif new_title:
        replacement[0] = f"{header_prefix} {final_title}"

    return "\n".join(lines[:start] + replacement + lines[end:])
