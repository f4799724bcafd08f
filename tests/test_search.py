"""Tests for the search indexer."""

from __future__ import annotations

from conftest import make_section

from sectionwiki.schemas import Document, MatchType
from sectionwiki.search import (
    CONTENT_SCORE,
    ELLIPSIS,
    SECTION_TITLE_EXACT_SCORE,
    TITLE_EXACT_SCORE,
    deduplicate_results,
    extract_snippet,
    highlight_match,
    proximity_score,
    search_documents,
)


class TestScoringHelpers:
    """Tests for proximity, snippets and highlighting."""

    def test_proximity_score(self) -> None:
        assert proximity_score("database setup", "database") == 19
        assert proximity_score("x" * 50 + "database", "database") == 14
        assert proximity_score("x" * 500 + "database", "database") == 0
        assert proximity_score("nothing", "database") == 0

    def test_snippet_adds_ellipses(self) -> None:
        content = "a" * 100 + "needle" + "b" * 100
        snippet = extract_snippet(content, "needle", context_length=10)
        assert snippet == ELLIPSIS + "a" * 10 + "needle" + "b" * 10 + ELLIPSIS

    def test_snippet_offsets_survive_case_folding(self) -> None:
        content = "İ" * 100 + "needle" + "x" * 200
        snippet = extract_snippet(content, "needle", context_length=10)
        assert snippet == ELLIPSIS + "İ" * 10 + "needle" + "x" * 10 + ELLIPSIS
        assert "**needle**" in highlight_match(snippet, "needle")

    def test_proximity_counts_original_characters(self) -> None:
        assert proximity_score("İ" * 20 + "needle", "needle") == 17

    def test_snippet_at_start_has_no_leading_ellipsis(self) -> None:
        assert extract_snippet("needle in a haystack", "needle", context_length=5) == "needle in a" + ELLIPSIS

    def test_snippet_without_match(self) -> None:
        assert extract_snippet("abcdef", "zz", context_length=2) == "abcd"

    def test_highlight_is_case_insensitive_and_keeps_case(self) -> None:
        assert highlight_match("Data and DATA", "data") == "**Data** and **DATA**"

    def test_highlight_escapes_regex(self) -> None:
        assert highlight_match("cost (usd)", "(usd)") == "cost **(usd)**"


class TestSearchDocuments:
    """Tests for search_documents."""

    def test_blank_query(self, guide_document) -> None:
        assert search_documents("   ", [guide_document]) == []

    def test_exact_title_outranks_section_title_partial(self) -> None:
        exact = Document(id="d1", title="Setup", path="/setup")
        partial = Document(
            id="d2",
            title="Other",
            path="/other",
            sections=[make_section("s", "Setup notes", 1)],
        )
        results = search_documents("setup", [partial, exact])

        assert results[0].document_id == "d1"
        assert results[0].relevance_score == TITLE_EXACT_SCORE
        assert results[1].match_type is MatchType.SECTION_TITLE
        assert results[1].relevance_score < TITLE_EXACT_SCORE

    def test_one_result_per_section(self, guide_document) -> None:
        results = search_documents("database", [guide_document])
        keys = [(result.document_id, result.section_id) for result in results]
        assert len(keys) == len(set(keys))

    def test_section_title_beats_content_for_same_section(self, guide_document, faq_document) -> None:
        results = search_documents("database", [guide_document, faq_document])
        by_section = {result.section_id: result for result in results}

        assert by_section["s-db"].match_type is MatchType.SECTION_TITLE
        assert by_section["s-db"].relevance_score == SECTION_TITLE_EXACT_SCORE
        assert by_section["s-req"].match_type is MatchType.CONTENT
        assert by_section["s-req"].relevance_score >= CONTENT_SCORE

    def test_sorted_by_relevance(self, guide_document, faq_document) -> None:
        results = search_documents("database", [guide_document, faq_document])
        scores = [result.relevance_score for result in results]
        assert scores == sorted(scores, reverse=True)

    def test_breadcrumbs(self, guide_document) -> None:
        results = search_documents("point the config", [guide_document])
        assert results[0].breadcrumb_path == [
            "Installation Guide",
            "Introduction",
            "Setup Steps",
            "Database",
        ]

    def test_content_result_fields(self, guide_document) -> None:
        result = search_documents("installer", [guide_document])[0]

        assert result.id == "content-doc-guide-s-steps"
        assert result.document_path == "/guides/install"
        assert result.section_title == "Setup Steps"
        assert "**installer**" in result.matched_text
        assert result.full_content == "Run the installer, then configure the database."

    def test_document_title_result(self, guide_document) -> None:
        result = search_documents("installation guide", [guide_document])[0]

        assert result.id == "doc-doc-guide"
        assert result.match_type is MatchType.TITLE
        assert result.section_id is None
        assert result.breadcrumb_path == ["Installation Guide"]

    def test_ties_keep_document_order(self) -> None:
        first = Document(id="a", title="Alpha", path="/a", sections=[make_section("1", "X", 1, "keyword")])
        second = Document(id="b", title="Beta", path="/b", sections=[make_section("2", "Y", 1, "keyword")])
        results = search_documents("keyword", [first, second])
        assert [result.document_id for result in results] == ["a", "b"]


class TestDeduplicate:
    """Tests for deduplicate_results."""

    def test_keeps_first_per_key(self, guide_document) -> None:
        results = search_documents("setup", [guide_document])
        doubled = results + results
        assert deduplicate_results(doubled) == results
