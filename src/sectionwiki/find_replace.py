"""Find and replace inside a markup body."""

from __future__ import annotations

import re


def find_matches(content: str, needle: str, *, case_sensitive: bool = False) -> list[int]:
    """Start offsets of every non-overlapping occurrence of ``needle``."""
    if not needle:
        return []
    haystack = content if case_sensitive else content.lower()
    term = needle if case_sensitive else needle.lower()

    positions: list[int] = []
    index = haystack.find(term)
    while index != -1:
        positions.append(index)
        index = haystack.find(term, index + len(term))
    return positions


def replace_at(content: str, position: int, needle: str, replacement: str) -> str:
    """Replace the occurrence of ``needle`` starting at ``position``."""
    return content[:position] + replacement + content[position + len(needle) :]


def replace_all(content: str, needle: str, replacement: str, *, case_sensitive: bool = False) -> str:
    """Replace every occurrence of ``needle``."""
    if not needle:
        return content
    if case_sensitive:
        return content.replace(needle, replacement)
    return re.sub(re.escape(needle), lambda _match: replacement, content, flags=re.IGNORECASE)
