"""Navigation state: which document and which section are active.

The state lives in one mutable cell that is replaced, never edited, on each
transition. Predicates read that cell, so a callback captured before a
transition still sees the latest state when it runs.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from sectionwiki.extractor import extract_full_content
from sectionwiki.hierarchy import AncestryStack
from sectionwiki.links import find_section_by_fragment
from sectionwiki.schemas import NavigationState, Section, SectionView

logger = logging.getLogger(__name__)

StateListener = Callable[[NavigationState], None]

ROOT_FRAGMENT = "root"


class NavigationController:
    """Holds the current navigation state and applies transitions atomically."""

    def __init__(self) -> None:
        self._state = NavigationState()
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> NavigationState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener`` after every effective transition; returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _commit(self, state: NavigationState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def navigate_to_document(self, path: str) -> bool:
        """Go to a document root, clearing any section. Returns False when already there."""
        current = self._state
        if current.document_path == path and current.section_id is None:
            return False
        self._commit(NavigationState(document_path=path))
        return True

    def navigate_to_section(
        self,
        document_path: str,
        section_id: str,
        section_title: str,
        view: SectionView,
    ) -> bool:
        """Go to a section, setting document, section and view together.

        Returns False when that exact section is already active.
        """
        current = self._state
        if current.document_path == document_path and current.section_id == section_id:
            return False
        self._commit(
            NavigationState(
                document_path=document_path,
                section_id=section_id,
                section_title=section_title,
                section_view=view,
            )
        )
        return True

    def clear_section(self) -> bool:
        """Leave the active section and return to its document root."""
        current = self._state
        if current.section_id is None:
            return False
        self._commit(NavigationState(document_path=current.document_path))
        return True

    def is_at_document(self, path: str) -> bool:
        current = self._state
        return current.document_path == path and current.section_id is None

    def is_at_section(self, path: str, section_id: str) -> bool:
        current = self._state
        return current.document_path == path and current.section_id == section_id

    def is_document_active(self, path: str) -> bool:
        """True at the document root or at any of its sections."""
        return self._state.document_path == path


class DeepLinkReconciler:
    """Apply a ``#fragment`` from the initial URL once the document has loaded.

    Each ``(path, fragment)`` pair is handled at most once per load, so an
    effect that reruns cannot bounce between states.

    Args:
        navigation: Controller to drive.
        replace_url: Called with the bare path to strip the fragment from
            the address bar after a successful navigation.
    """

    def __init__(
        self,
        navigation: NavigationController,
        replace_url: Callable[[str], None] | None = None,
    ) -> None:
        self._navigation = navigation
        self._replace_url = replace_url
        self._processed: set[tuple[str, str]] = set()

    def begin_load(self, path: str) -> None:
        """Forget processed fragments; call when a new path starts loading."""
        self._processed.clear()
        logger.debug("Deep link tracking reset for %s", path)

    def reconcile(self, path: str, fragment: str | None, sections: list[Section]) -> bool:
        """Navigate to the fragment's section (or the root for ``#root``).

        Returns:
            True if a navigation was performed and the fragment stripped.
        """
        fragment = (fragment or "").lstrip("#")
        if not fragment:
            return False

        key = (path, fragment)
        if key in self._processed:
            return False
        self._processed.add(key)

        if fragment == ROOT_FRAGMENT:
            self._navigation.navigate_to_document(path)
            self._strip_fragment(path)
            return True

        section = find_section_by_fragment(sections, fragment)
        if section is None:
            logger.info("Deep link did not match any section", extra={"path": path, "fragment": fragment})
            return False

        view = extract_full_content(section, sections)
        self._navigation.navigate_to_section(path, section.id, section.title, view)
        self._strip_fragment(path)
        return True

    def _strip_fragment(self, path: str) -> None:
        if self._replace_url is not None:
            self._replace_url(path)


class ExpansionState:
    """Expanded/collapsed sidebar entries for one sidebar instance."""

    def __init__(self, expanded: Iterable[str] = ()) -> None:
        self._expanded: set[str] = set(expanded)

    def is_expanded(self, node_id: str) -> bool:
        return node_id in self._expanded

    def expand(self, node_id: str) -> None:
        self._expanded.add(node_id)

    def collapse(self, node_id: str) -> None:
        self._expanded.discard(node_id)

    def toggle(self, node_id: str) -> bool:
        """Flip one entry; returns whether it is now expanded."""
        if node_id in self._expanded:
            self._expanded.remove(node_id)
            return False
        self._expanded.add(node_id)
        return True

    def expand_ancestors(self, section_id: str, sections: list[Section]) -> None:
        """Expand every section enclosing ``section_id`` so it is visible."""
        stack: AncestryStack[Section] = AncestryStack()
        for section in sections:
            stack.enter(section, section.level)
            if section.id == section_id:
                for ancestor in stack.ancestors[:-1]:
                    self._expanded.add(ancestor.id)
                return

    @property
    def expanded(self) -> frozenset[str]:
        return frozenset(self._expanded)
