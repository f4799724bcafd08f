"""Server-side configuration."""

from __future__ import annotations

import os

DEFAULT_MAX_SEARCH_RESULTS = 50
DEFAULT_CORS_ORIGINS = "*"

MAX_SEARCH_RESULTS = int(os.getenv("SECTIONWIKI_MAX_SEARCH_RESULTS", str(DEFAULT_MAX_SEARCH_RESULTS)))
CORS_ORIGINS = [
    origin.strip() for origin in os.getenv("SECTIONWIKI_CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",") if origin.strip()
]
