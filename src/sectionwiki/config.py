"""Local configuration for sectionwiki."""

from __future__ import annotations

import os
from pathlib import Path


DEFAULT_STORE_BACKEND = "memory"
DEFAULT_STORE_PATH = ".sectionwiki/documents.json"
DEFAULT_REST_URL = ""
DEFAULT_REST_KEY = ""
DEFAULT_REST_TABLE = "content_items"
DEFAULT_REST_NAVIGATION_TABLE = "navigation_structure"
DEFAULT_FETCH_TIMEOUT_S = 10.0
DEFAULT_FETCH_MAX_RETRIES = 2
DEFAULT_FETCH_BACKOFF_S = 0.5
DEFAULT_USER_AGENT = "sectionwiki/0.1"

DEFAULT_AUTOSAVE_DELAY_S = 2.0
DEFAULT_SEARCH_DELAY_S = 0.2
DEFAULT_SEARCH_MIN_QUERY_LENGTH = 2
DEFAULT_SNIPPET_CONTEXT = 60

MIN_SECTION_LEVEL = 1
MAX_SECTION_LEVEL = 99
# Deepest heading level the rich editor renders natively.
MAX_VISUAL_LEVEL = 3
COLOR_LEVEL_CYCLE = 6
INDENT_PX_PER_LEVEL = 25

# "memory", "json" or "rest".
SECTIONWIKI_STORE_BACKEND = os.getenv("SECTIONWIKI_STORE_BACKEND", DEFAULT_STORE_BACKEND)
SECTIONWIKI_STORE_PATH = Path(os.getenv("SECTIONWIKI_STORE_PATH", DEFAULT_STORE_PATH)).expanduser().resolve()
SECTIONWIKI_REST_URL = os.getenv("SECTIONWIKI_REST_URL", DEFAULT_REST_URL)
SECTIONWIKI_REST_KEY = os.getenv("SECTIONWIKI_REST_KEY", DEFAULT_REST_KEY)
SECTIONWIKI_REST_TABLE = os.getenv("SECTIONWIKI_REST_TABLE", DEFAULT_REST_TABLE)
SECTIONWIKI_REST_NAVIGATION_TABLE = os.getenv(
    "SECTIONWIKI_REST_NAVIGATION_TABLE", DEFAULT_REST_NAVIGATION_TABLE
)
SECTIONWIKI_FETCH_TIMEOUT_S = float(os.getenv("SECTIONWIKI_FETCH_TIMEOUT_S", str(DEFAULT_FETCH_TIMEOUT_S)))
SECTIONWIKI_FETCH_MAX_RETRIES = int(os.getenv("SECTIONWIKI_FETCH_MAX_RETRIES", str(DEFAULT_FETCH_MAX_RETRIES)))
SECTIONWIKI_FETCH_BACKOFF_S = float(os.getenv("SECTIONWIKI_FETCH_BACKOFF_S", str(DEFAULT_FETCH_BACKOFF_S)))
SECTIONWIKI_USER_AGENT = os.getenv("SECTIONWIKI_USER_AGENT", DEFAULT_USER_AGENT)

SECTIONWIKI_AUTOSAVE_DELAY_S = float(os.getenv("SECTIONWIKI_AUTOSAVE_DELAY_S", str(DEFAULT_AUTOSAVE_DELAY_S)))
SECTIONWIKI_SEARCH_DELAY_S = float(os.getenv("SECTIONWIKI_SEARCH_DELAY_S", str(DEFAULT_SEARCH_DELAY_S)))
SECTIONWIKI_SEARCH_MIN_QUERY_LENGTH = int(
    os.getenv("SECTIONWIKI_SEARCH_MIN_QUERY_LENGTH", str(DEFAULT_SEARCH_MIN_QUERY_LENGTH))
)
SECTIONWIKI_SNIPPET_CONTEXT = int(os.getenv("SECTIONWIKI_SNIPPET_CONTEXT", str(DEFAULT_SNIPPET_CONTEXT)))
SECTIONWIKI_LOG_LEVEL = os.getenv("SECTIONWIKI_LOG_LEVEL", "INFO")
