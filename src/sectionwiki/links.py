"""Resolve authored internal links (``#ref``, ``/path#ref``, ``/path``)."""

from __future__ import annotations

import re
from typing import Callable, Iterable, Iterator
from urllib.parse import unquote

from sectionwiki.schemas import LinkType, ResolvedLink, Section

SectionLookup = Callable[[str], "list[Section] | None"]

_NON_WORD_RE = re.compile(r"[^\w\s-]")
_WHITESPACE_RE = re.compile(r"\s+")
_HYPHENS_RE = re.compile(r"-{2,}")
_MARKDOWN_LINK_RE = re.compile(r"(?<!!)\[[^\]]*\]\(([^)\s]+)\)")


def slugify(title: str) -> str:
    """Derive the URL-safe slug used to match a section from a link or URL hash."""
    slug = _NON_WORD_RE.sub("", title.lower())
    slug = _WHITESPACE_RE.sub("-", slug.strip())
    slug = _HYPHENS_RE.sub("-", slug)
    return slug.strip("-")


def find_section_by_reference(sections: Iterable[Section], ref: str) -> Section | None:
    """Match a link reference against sections; the first rule that hits wins.

    1. exact title, case-insensitive
    2. section id
    3. slug of the title
    4. title contains the reference, or the reference contains the title
    """
    candidates = list(sections)
    normalized = ref.lower().strip()
    if not normalized:
        return None

    for section in candidates:
        if section.title.lower().strip() == normalized:
            return section

    for section in candidates:
        if section.id == ref:
            return section

    for section in candidates:
        if slugify(section.title) == normalized:
            return section

    for section in candidates:
        title = section.title.lower().strip()
        if title and (normalized in title or title in normalized):
            return section

    return None


def find_section_by_fragment(sections: Iterable[Section], fragment: str) -> Section | None:
    """Match a URL fragment against section ids or title slugs only."""
    ref = unquote(fragment.lstrip("#"))
    if not ref:
        return None
    for section in sections:
        if section.id == ref or slugify(section.title) == ref:
            return section
    return None


def resolve_internal_link(
    target: str,
    sections: list[Section],
    *,
    lookup: SectionLookup | None = None,
) -> ResolvedLink | None:
    """Resolve a link target to a same-document or cross-document destination.

    Unmatched references still resolve: a same-document link keeps the
    reference text as ``section_title`` so it can be retried once the
    section list changes, and a cross-document link is always returned so a
    dead link renders as a link rather than disappearing.

    Args:
        target: The authored link target.
        sections: Sections of the current document.
        lookup: Optional callable returning the sections of another
            document by path, used to fill ``section_id`` on cross-document
            links.

    Returns:
        The resolved link, or None if ``target`` is not an internal link.
    """
    if target.startswith("#"):
        ref = unquote(target[1:])
        section = find_section_by_reference(sections, ref)
        if section:
            return ResolvedLink(
                type=LinkType.SAME_DOCUMENT,
                section_title=section.title,
                section_id=section.id,
            )
        return ResolvedLink(type=LinkType.SAME_DOCUMENT, section_title=ref)

    if target.startswith("/"):
        path, hash_mark, raw_ref = target.partition("#")
        if not hash_mark:
            return ResolvedLink(type=LinkType.CROSS_DOCUMENT, document_path=path)

        ref = unquote(raw_ref)
        other_sections = lookup(path) if lookup else None
        section = find_section_by_reference(other_sections, ref) if other_sections else None
        if section:
            return ResolvedLink(
                type=LinkType.CROSS_DOCUMENT,
                document_path=path,
                section_title=section.title,
                section_id=section.id,
            )
        return ResolvedLink(type=LinkType.CROSS_DOCUMENT, document_path=path, section_title=ref)

    return None


def iter_internal_links(markup: str) -> Iterator[str]:
    """Yield the targets of markdown links that point inside the wiki."""
    for match in _MARKDOWN_LINK_RE.finditer(markup):
        target = match.group(1)
        if target.startswith(("#", "/")):
            yield target
