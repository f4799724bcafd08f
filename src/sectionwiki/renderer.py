"""Markdown rendering for section bodies and plain-text previews."""

from __future__ import annotations

import html
import logging

import markdown
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

_EXTENSIONS = ["fenced_code", "nl2br", "tables"]


def render_markdown(text: str) -> str:
    """Render a markup body to HTML.

    Never raises: if the renderer fails the escaped input is returned in a
    ``<pre>`` block so the page still shows something.
    """
    if not text:
        return ""
    try:
        return markdown.markdown(text, extensions=_EXTENSIONS)
    except Exception as exc:  # noqa: BLE001 - third-party extensions may raise anything
        logger.warning("Markdown rendering failed", extra={"error": str(exc)})
        return f"<pre>{html.escape(text)}</pre>"


def html_to_text(html_text: str) -> str:
    """Visible text of an HTML fragment with whitespace collapsed."""
    if not html_text:
        return ""
    soup = BeautifulSoup(html_text, "lxml")
    for element in soup(["script", "style"]):
        element.decompose()
    return " ".join(soup.get_text(" ").split())


def strip_markdown(text: str) -> str:
    """Plain-text preview of a markup body."""
    return html_to_text(render_markdown(text))
