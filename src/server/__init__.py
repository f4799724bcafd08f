"""HTTP API for sectionwiki."""
