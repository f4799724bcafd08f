"""Full-text search over an in-memory set of documents."""

from __future__ import annotations

import re
from typing import Iterable

from sectionwiki.config import SECTIONWIKI_SNIPPET_CONTEXT
from sectionwiki.hierarchy import AncestryStack
from sectionwiki.schemas import Document, MatchType, SearchResult, Section

TITLE_EXACT_SCORE = 100
TITLE_PARTIAL_SCORE = 80
SECTION_TITLE_EXACT_SCORE = 70
SECTION_TITLE_PARTIAL_SCORE = 50
CONTENT_SCORE = 30
MAX_PROXIMITY_BONUS = 19
ELLIPSIS = "…"
HIGHLIGHT_MARKER = "**"


def _match_index(text: str, query: str) -> int:
    # Offsets must index the original text; str.lower() can change its length.
    match = re.search(re.escape(query), text, re.IGNORECASE)
    return match.start() if match else -1


def proximity_score(text: str, query: str) -> int:
    """Bonus for how early ``query`` occurs in ``text``: 19 at the start, 0 past 190 chars."""
    index = _match_index(text, query)
    if index == -1:
        return 0
    return max(0, MAX_PROXIMITY_BONUS - index // 10)


def extract_snippet(content: str, query: str, context_length: int = SECTIONWIKI_SNIPPET_CONTEXT) -> str:
    """Cut a window of ``context_length`` characters on each side of the first match."""
    index = _match_index(content, query)
    if index == -1:
        return content[: context_length * 2]

    start = max(0, index - context_length)
    end = min(len(content), index + len(query) + context_length)
    snippet = content[start:end]
    if start > 0:
        snippet = ELLIPSIS + snippet
    if end < len(content):
        snippet = snippet + ELLIPSIS
    return snippet


def highlight_match(text: str, query: str) -> str:
    """Wrap every case-insensitive occurrence of ``query`` in ``**`` markers."""
    if not query:
        return text
    pattern = re.compile(f"({re.escape(query)})", re.IGNORECASE)
    return pattern.sub(rf"{HIGHLIGHT_MARKER}\1{HIGHLIGHT_MARKER}", text)


def _section_breadcrumbs(document: Document) -> Iterable[tuple[Section, list[str]]]:
    stack: AncestryStack[Section] = AncestryStack()
    for section in document.sections:
        stack.enter(section, section.level)
        yield section, [document.title] + [entry.title for entry in stack.ancestors]


def _document_results(document: Document, query: str, context_length: int) -> list[SearchResult]:
    needle = query.lower()
    results: list[SearchResult] = []

    title = document.title
    if needle in title.lower():
        exact = title.lower() == needle
        results.append(
            SearchResult(
                id=f"doc-{document.id}",
                document_id=document.id,
                document_title=title,
                document_path=document.path,
                matched_text=highlight_match(title, query),
                full_content=title,
                breadcrumb_path=[title],
                match_type=MatchType.TITLE,
                relevance_score=TITLE_EXACT_SCORE if exact else TITLE_PARTIAL_SCORE + proximity_score(title, query),
            )
        )

    for section, breadcrumb in _section_breadcrumbs(document):
        common = {
            "document_id": document.id,
            "document_title": title,
            "document_path": document.path,
            "section_id": section.id,
            "section_title": section.title,
            "breadcrumb_path": breadcrumb,
        }

        if needle in section.title.lower():
            exact = section.title.lower() == needle
            score = (
                SECTION_TITLE_EXACT_SCORE
                if exact
                else SECTION_TITLE_PARTIAL_SCORE + proximity_score(section.title, query)
            )
            results.append(
                SearchResult(
                    id=f"section-{document.id}-{section.id}",
                    matched_text=highlight_match(section.title, query),
                    full_content=section.content or section.title,
                    match_type=MatchType.SECTION_TITLE,
                    relevance_score=score,
                    **common,
                )
            )

        if needle in section.content.lower():
            snippet = extract_snippet(section.content, query, context_length)
            results.append(
                SearchResult(
                    id=f"content-{document.id}-{section.id}",
                    matched_text=highlight_match(snippet, query),
                    full_content=section.content,
                    match_type=MatchType.CONTENT,
                    relevance_score=CONTENT_SCORE + proximity_score(section.content, query),
                    **common,
                )
            )

    return results


def deduplicate_results(results: list[SearchResult]) -> list[SearchResult]:
    """Keep the first result per ``(document, section or document)`` key."""
    seen: set[tuple[str, str]] = set()
    unique: list[SearchResult] = []
    for result in results:
        key = (result.document_id, result.section_id or result.document_id)
        if key in seen:
            continue
        seen.add(key)
        unique.append(result)
    return unique


def search_documents(
    query: str,
    documents: Iterable[Document],
    *,
    context_length: int = SECTIONWIKI_SNIPPET_CONTEXT,
) -> list[SearchResult]:
    """Search titles, section titles and bodies of every document.

    Every match type is produced for each section, the whole set is sorted
    by relevance (highest first, ties in document order), and only the best
    result per section (or per document, for title hits) is kept. Minimum
    query length is the caller's business; a blank query returns nothing.

    Args:
        query: Text to look for, case-insensitively.
        documents: Documents to scan.
        context_length: Characters kept on each side of a content match.

    Returns:
        Ranked, deduplicated results.
    """
    needle = query.strip()
    if not needle:
        return []

    results: list[SearchResult] = []
    for document in documents:
        results.extend(_document_results(document, needle, context_length))

    results.sort(key=lambda result: result.relevance_score, reverse=True)
    return deduplicate_results(results)
