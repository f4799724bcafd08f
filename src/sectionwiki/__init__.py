"""sectionwiki: hierarchical, section-addressable documents."""

from sectionwiki.blocks import (
    blocks_to_sections,
    change_heading_level,
    sections_to_blocks,
    validate_round_trip,
)
from sectionwiki.editing import DocumentEditSession, EditMode, SearchSession
from sectionwiki.exceptions import (
    ConversionError,
    NotFoundError,
    RequestError,
    SectionwikiError,
    StoreError,
)
from sectionwiki.extractor import ancestor_chain, extract_full_content
from sectionwiki.hierarchy import build_tree, flatten_tree
from sectionwiki.links import resolve_internal_link, slugify
from sectionwiki.navigation import DeepLinkReconciler, NavigationController
from sectionwiki.parser import parse_sections, sections_to_markup
from sectionwiki.schemas import Document, NavigationState, SearchResult, Section, SectionView
from sectionwiki.search import search_documents
from sectionwiki.store import DocumentStore, create_store

__all__ = [
    "ConversionError",
    "DeepLinkReconciler",
    "Document",
    "DocumentEditSession",
    "DocumentStore",
    "EditMode",
    "NavigationController",
    "NavigationState",
    "NotFoundError",
    "RequestError",
    "SearchResult",
    "SearchSession",
    "Section",
    "SectionView",
    "SectionwikiError",
    "StoreError",
    "ancestor_chain",
    "blocks_to_sections",
    "build_tree",
    "change_heading_level",
    "create_store",
    "extract_full_content",
    "flatten_tree",
    "parse_sections",
    "resolve_internal_link",
    "search_documents",
    "sections_to_blocks",
    "sections_to_markup",
    "slugify",
    "validate_round_trip",
]
