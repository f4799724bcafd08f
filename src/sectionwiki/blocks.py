"""Conversion between flat sections and the rich-editor block tree.

The editor can only draw three heading levels, so every heading block keeps
its true level in ``props.original_level`` next to the capped visual
``props.level``. Colors and indentation are attached for display and are
never read back.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from sectionwiki.config import (
    COLOR_LEVEL_CYCLE,
    INDENT_PX_PER_LEVEL,
    MAX_SECTION_LEVEL,
    MAX_VISUAL_LEVEL,
    MIN_SECTION_LEVEL,
)
from sectionwiki.exceptions import ConversionError
from sectionwiki.extractor import subtree_sections
from sectionwiki.hierarchy import AncestryStack
from sectionwiki.parser import generate_section_id
from sectionwiki.schemas import Block, BlockProps, BlockType, InlineText, Section

_PARAGRAPH_SEPARATOR = "\n\n"


def clamp_level(level: int) -> int:
    return max(MIN_SECTION_LEVEL, min(MAX_SECTION_LEVEL, level))


def visual_level(level: int) -> int:
    """Heading level the editor actually renders for a semantic level."""
    return min(level, MAX_VISUAL_LEVEL)


def _heading_props(level: int, tags: list[str]) -> BlockProps:
    return BlockProps(
        level=visual_level(level),
        original_level=level,
        tags=list(tags),
        color_level=((level - 1) % COLOR_LEVEL_CYCLE) + 1,
        indent_px=(level - 1) * INDENT_PX_PER_LEVEL,
    )


def _paragraph_props(level: int) -> BlockProps:
    return BlockProps(
        color_level=((level - 1) % COLOR_LEVEL_CYCLE) + 1,
        indent_px=(level - 1) * INDENT_PX_PER_LEVEL,
    )


def _paragraph_block(text: str, level: int) -> Block:
    return Block(
        id=generate_section_id(),
        type=BlockType.PARAGRAPH,
        props=_paragraph_props(level),
        content=[InlineText(text=text)] if text else [],
    )


def sections_to_blocks(sections: list[Section]) -> list[Block]:
    """Convert flat sections into a nested block tree.

    Each section becomes a heading block (keeping the section id) whose
    children are first its body paragraphs, then its nested headings.
    """
    roots: list[Block] = []
    stack: AncestryStack[Block] = AncestryStack()

    for section in sections:
        paragraphs = []
        if section.content:
            paragraphs = [
                _paragraph_block(text, section.level)
                for text in section.content.split(_PARAGRAPH_SEPARATOR)
            ]
        block = Block(
            id=section.id,
            type=BlockType.HEADING,
            props=_heading_props(section.level, section.tags),
            content=[InlineText(text=section.title)] if section.title else [],
            children=paragraphs,
        )
        parent = stack.enter(block, section.level)
        if parent is None:
            roots.append(block)
        else:
            parent.children.append(block)

    return roots


def semantic_level(block: Block, fallback: int) -> int:
    """Resolve a heading's semantic level.

    ``original_level`` wins; a heading the editor created without one falls
    back to its visual level, and a heading with neither to ``fallback``.
    Out-of-range values are clamped rather than rejected.
    """
    level = block.props.original_level or block.props.level or fallback
    return clamp_level(level)


def blocks_to_sections(blocks: list[Block]) -> list[Section]:
    """Flatten a block tree back into pre-order sections.

    Paragraph text is appended, separated by a blank line, to the nearest
    preceding heading. A paragraph that precedes every heading opens an
    untitled level-1 section.
    """
    headers: list[Section] = []
    bodies: list[list[str]] = []

    def _walk(nodes: list[Block], depth: int) -> None:
        for block in nodes:
            if block.type is BlockType.HEADING:
                headers.append(
                    Section(
                        id=block.id,
                        title=block.text,
                        level=semantic_level(block, depth),
                        tags=list(block.props.tags),
                    )
                )
                bodies.append([])
                _walk(block.children, depth + 1)
            else:
                if not headers:
                    headers.append(Section(id=generate_section_id(), title="", level=MIN_SECTION_LEVEL))
                    bodies.append([])
                bodies[-1].append(block.text)
                _walk(block.children, depth)

    _walk(blocks, MIN_SECTION_LEVEL)

    return [
        header.model_copy(update={"content": _PARAGRAPH_SEPARATOR.join(body)})
        for header, body in zip(headers, bodies)
    ]


def _find_block(blocks: list[Block], block_id: str, depth: int = MIN_SECTION_LEVEL) -> tuple[Block, int] | None:
    for block in blocks:
        if block.id == block_id:
            return block, depth
        child_depth = depth + 1 if block.type is BlockType.HEADING else depth
        found = _find_block(block.children, block_id, child_depth)
        if found:
            return found
    return None


def _set_heading_level(block: Block, level: int) -> None:
    block.props = _heading_props(level, block.props.tags)


def _shift_descendants(children: list[Block], delta: int, parent_level: int, depth: int) -> None:
    for child in children:
        if child.type is BlockType.HEADING:
            new_level = clamp_level(semantic_level(child, depth) + delta)
            _set_heading_level(child, new_level)
            _shift_descendants(child.children, delta, new_level, depth + 1)
        else:
            child.props = _paragraph_props(parent_level)
            _shift_descendants(child.children, delta, parent_level, depth)


def change_heading_level(blocks: list[Block], block_id: str, delta: int) -> list[Block]:
    """Indent (``delta > 0``) or outdent (``delta < 0``) a heading and its subtree.

    The new level is clamped to 1..99 and the same effective change is
    applied to every descendant heading, so relative nesting is kept. Visual
    levels and display metadata are recomputed. The input is not modified.
    """
    updated = [block.model_copy(deep=True) for block in blocks]
    found = _find_block(updated, block_id)
    if found is None:
        return updated
    target, depth = found
    if target.type is not BlockType.HEADING:
        return updated

    current = semantic_level(target, depth)
    new_level = clamp_level(current + delta)
    effective = new_level - current
    if effective == 0:
        return updated

    _set_heading_level(target, new_level)
    _shift_descendants(target.children, effective, new_level, depth + 1)
    return updated


def shift_section_level(sections: list[Section], section_id: str, delta: int) -> list[Section]:
    """Flat-form counterpart of :func:`change_heading_level`."""
    target = next((section for section in sections if section.id == section_id), None)
    if target is None:
        return list(sections)

    new_level = clamp_level(target.level + delta)
    effective = new_level - target.level
    if effective == 0:
        return list(sections)

    affected = {section.id for section in subtree_sections(target, sections)}
    return [
        section.model_copy(update={"level": clamp_level(section.level + effective)})
        if section.id in affected
        else section
        for section in sections
    ]


@dataclass
class RoundTripReport:
    """Differences found converting sections to blocks and back."""

    is_valid: bool
    differences: list[str] = field(default_factory=list)


def validate_round_trip(sections: list[Section], *, strict: bool = False) -> RoundTripReport:
    """Check that ``blocks_to_sections(sections_to_blocks(sections))`` loses nothing.

    Args:
        sections: Flat sections to check.
        strict: Raise :class:`ConversionError` instead of returning an
            invalid report.
    """
    converted = blocks_to_sections(sections_to_blocks(sections))
    differences: list[str] = []

    if len(sections) != len(converted):
        differences.append(f"Section count mismatch: {len(sections)} vs {len(converted)}")

    for index, (original, result) in enumerate(zip(sections, converted)):
        for name in ("title", "level", "tags", "content"):
            before = getattr(original, name)
            after = getattr(result, name)
            if before != after:
                differences.append(f"{name.capitalize()} mismatch at index {index}: {before!r} vs {after!r}")

    report = RoundTripReport(is_valid=not differences, differences=differences)
    if strict and not report.is_valid:
        raise ConversionError("; ".join(differences))
    return report
