"""Tests for internal link resolution."""

from __future__ import annotations

from conftest import make_section

from sectionwiki.links import (
    find_section_by_fragment,
    find_section_by_reference,
    iter_internal_links,
    resolve_internal_link,
    slugify,
)
from sectionwiki.schemas import LinkType


SECTIONS = [
    make_section("s-1", "Getting Started", 1),
    make_section("s-2", "Install & Configure", 2),
    make_section("s-3", "FAQ", 2),
    make_section("s-4", "", 2),
]


class TestSlugify:
    """Tests for slugify."""

    def test_basic(self) -> None:
        assert slugify("Getting Started") == "getting-started"

    def test_strips_punctuation_and_collapses_hyphens(self) -> None:
        assert slugify("Install & Configure") == "install-configure"
        assert slugify("  --Hello,   World!--  ") == "hello-world"

    def test_keeps_underscores_and_digits(self) -> None:
        assert slugify("Step_2 of 3") == "step_2-of-3"


class TestFindSectionByReference:
    """Tests for the rule order of find_section_by_reference."""

    def test_exact_title_case_insensitive(self) -> None:
        assert find_section_by_reference(SECTIONS, "getting started").id == "s-1"

    def test_section_id(self) -> None:
        assert find_section_by_reference(SECTIONS, "s-3").id == "s-3"

    def test_slug(self) -> None:
        assert find_section_by_reference(SECTIONS, "install-configure").id == "s-2"

    def test_substring_either_way(self) -> None:
        assert find_section_by_reference(SECTIONS, "Started").id == "s-1"
        assert find_section_by_reference(SECTIONS, "the faq page").id == "s-3"

    def test_exact_title_beats_substring(self) -> None:
        sections = [make_section("1", "Setup Guide", 1), make_section("2", "Setup", 1)]
        assert find_section_by_reference(sections, "setup").id == "2"

    def test_empty_reference(self) -> None:
        assert find_section_by_reference(SECTIONS, "  ") is None

    def test_no_match(self) -> None:
        assert find_section_by_reference(SECTIONS, "nothing here") is None


class TestFindSectionByFragment:
    """Tests for find_section_by_fragment."""

    def test_matches_id_or_slug(self) -> None:
        assert find_section_by_fragment(SECTIONS, "#s-2").id == "s-2"
        assert find_section_by_fragment(SECTIONS, "getting-started").id == "s-1"

    def test_ignores_substring_rule(self) -> None:
        assert find_section_by_fragment(SECTIONS, "started") is None

    def test_percent_encoded(self) -> None:
        assert find_section_by_fragment([make_section("a b", "X", 1)], "a%20b").id == "a b"


class TestResolveInternalLink:
    """Tests for resolve_internal_link."""

    def test_same_document_match(self) -> None:
        link = resolve_internal_link("#faq", SECTIONS)

        assert link.type is LinkType.SAME_DOCUMENT
        assert link.section_id == "s-3"
        assert link.section_title == "FAQ"
        assert link.document_path is None

    def test_same_document_unmatched_keeps_reference(self) -> None:
        link = resolve_internal_link("#Missing%20Part", SECTIONS)

        assert link.type is LinkType.SAME_DOCUMENT
        assert link.section_id is None
        assert link.section_title == "Missing Part"

    def test_cross_document_without_fragment(self) -> None:
        link = resolve_internal_link("/guides/intro", SECTIONS)
        assert link.type is LinkType.CROSS_DOCUMENT
        assert link.document_path == "/guides/intro"
        assert link.section_title is None

    def test_cross_document_without_lookup(self) -> None:
        link = resolve_internal_link("/guides/intro#setup", SECTIONS)
        assert link.document_path == "/guides/intro"
        assert link.section_title == "setup"
        assert link.section_id is None

    def test_cross_document_with_lookup(self) -> None:
        other = [make_section("o-1", "Setup", 1)]
        link = resolve_internal_link(
            "/guides/intro#setup",
            SECTIONS,
            lookup={"/guides/intro": other}.get,
        )
        assert link.section_id == "o-1"
        assert link.section_title == "Setup"

    def test_external_targets_are_not_internal(self) -> None:
        assert resolve_internal_link("https://example.com", SECTIONS) is None
        assert resolve_internal_link("relative/page", SECTIONS) is None


class TestIterInternalLinks:
    """Tests for iter_internal_links."""

    def test_yields_internal_targets_only(self) -> None:
        markup = (
            "See [setup](#setup), [intro](/guides/intro#start) and [site](https://example.com).\n"
            "![diagram](/img/diagram.png)"
        )
        assert list(iter_internal_links(markup)) == ["#setup", "/guides/intro#start"]
