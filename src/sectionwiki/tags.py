"""Tag collection and tag-based document filtering."""

from __future__ import annotations

from typing import Iterable

from sectionwiki.schemas import Document


def collect_tags(documents: Iterable[Document]) -> list[str]:
    """All distinct document tags, sorted."""
    tags: set[str] = set()
    for document in documents:
        tags.update(document.tags)
    return sorted(tags)


def build_document_tag_index(documents: Iterable[Document]) -> dict[str, list[str]]:
    """Map each tag to the ids of the documents carrying it."""
    index: dict[str, list[str]] = {}
    for document in documents:
        for tag in document.tags:
            index.setdefault(tag, []).append(document.id)
    return index


def filter_documents(
    documents: Iterable[Document],
    *,
    include: Iterable[str] | None = None,
    exclude: Iterable[str] | None = None,
) -> list[Document]:
    """Filter documents by tag.

    A document carrying any excluded tag is dropped. If include tags are
    given, a document must carry at least one of them.
    """
    include_tags = set(include or [])
    exclude_tags = set(exclude or [])
    result: list[Document] = []
    for document in documents:
        doc_tags = set(document.tags)
        if doc_tags & exclude_tags:
            continue
        if include_tags and not doc_tags & include_tags:
            continue
        result.append(document)
    return result


def suggest_tags(current_input: str, all_tags: Iterable[str]) -> list[str]:
    """Tags containing the input, prefix matches first, then alphabetical."""
    tags = list(all_tags)
    if not current_input:
        return tags

    needle = current_input.lower()
    matching = [tag for tag in tags if needle in tag.lower()]
    return sorted(matching, key=lambda tag: (not tag.lower().startswith(needle), tag))
