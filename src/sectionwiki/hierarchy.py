"""Section tree construction from the flat, level-tagged form."""

from __future__ import annotations

from typing import Generic, Iterable, TypeVar

from sectionwiki.schemas import HierarchicalSection, Section

T = TypeVar("T")


class AncestryStack(Generic[T]):
    """Stack of open ancestors while walking a pre-order, level-tagged sequence.

    This is the single implementation of the nesting rule used by tree
    building, ancestor chains, block conversion and search breadcrumbs: an
    incoming item closes every open entry whose level is greater than or
    equal to its own, and whatever remains on top is its parent.
    """

    def __init__(self) -> None:
        self._entries: list[tuple[int, T]] = []

    def enter(self, item: T, level: int) -> T | None:
        """Open ``item`` at ``level`` and return its parent, if any."""
        while self._entries and self._entries[-1][0] >= level:
            self._entries.pop()
        parent = self._entries[-1][1] if self._entries else None
        self._entries.append((level, item))
        return parent

    @property
    def ancestors(self) -> list[T]:
        """Open entries, root first."""
        return [item for _, item in self._entries]

    def __len__(self) -> int:
        return len(self._entries)


def build_tree(sections: Iterable[Section]) -> list[HierarchicalSection]:
    """Nest a flat section list into a forest in one forward pass."""
    roots: list[HierarchicalSection] = []
    stack: AncestryStack[HierarchicalSection] = AncestryStack()

    for section in sections:
        node = HierarchicalSection(**section.model_dump())
        parent = stack.enter(node, section.level)
        if parent is None:
            roots.append(node)
        else:
            parent.children.append(node)

    return roots


def flatten_tree(roots: Iterable[HierarchicalSection]) -> list[Section]:
    """Pre-order walk of a section forest back into the flat form."""
    flat: list[Section] = []

    def _walk(nodes: Iterable[HierarchicalSection]) -> None:
        for node in nodes:
            flat.append(node.to_section())
            _walk(node.children)

    _walk(roots)
    return flat


def build_tree_branches_only(sections: Iterable[Section]) -> list[HierarchicalSection]:
    """Build the tree, keeping only sections that have subsections.

    Pruning is bottom-up: a node's children are filtered first, and the node
    is kept if it had at least one subsection before filtering. Leaves are
    always dropped.
    """

    def _prune(nodes: list[HierarchicalSection]) -> list[HierarchicalSection]:
        kept: list[HierarchicalSection] = []
        for node in nodes:
            if not node.children:
                continue
            node.children = _prune(node.children)
            kept.append(node)
        return kept

    return _prune(build_tree(sections))


def count_sections(sections: Iterable[HierarchicalSection]) -> int:
    """Count total sections in the tree."""
    total = 0
    for section in sections:
        total += 1
        total += count_sections(section.children)
    return total


def render_outline(sections: list[HierarchicalSection], indent: int = 0) -> str:
    """Render titles as an indented tree, four spaces per level of nesting."""
    lines: list[str] = []
    for section in sections:
        lines.append(" " * (indent * 4) + section.title)
        if section.children:
            lines.append(render_outline(section.children, indent + 1))
    return "\n".join(lines)


def render_toc(sections: list[HierarchicalSection], indent: int = 0) -> str:
    """Render a markdown bullet list linking each title to its section id."""
    lines: list[str] = []
    for section in sections:
        prefix = "  " * indent + "- "
        lines.append(f"{prefix}[{section.title}](#{section.id})")
        if section.children:
            lines.append(render_toc(section.children, indent + 1))
    return "\n".join(lines)
