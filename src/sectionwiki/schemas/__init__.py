"""Shared schemas for sectionwiki."""

from sectionwiki.schemas.blocks import Block, BlockProps, BlockType, InlineText
from sectionwiki.schemas.documents import Document, NavigationNode, NodeType
from sectionwiki.schemas.links import LinkType, ResolvedLink
from sectionwiki.schemas.navigation import NavigationState
from sectionwiki.schemas.search import MatchType, SearchResult
from sectionwiki.schemas.sections import (
    AncestorEntry,
    HierarchicalSection,
    Section,
    SectionView,
)

__all__ = [
    "AncestorEntry",
    "Block",
    "BlockProps",
    "BlockType",
    "Document",
    "HierarchicalSection",
    "InlineText",
    "LinkType",
    "MatchType",
    "NavigationNode",
    "NavigationState",
    "NodeType",
    "ResolvedLink",
    "SearchResult",
    "Section",
    "SectionView",
]
