# ============================================================================
# VERSION - SCHEMA SYNC ENGINE
# ============================================================================
"""
Version information for the schema sync engine.

This is the single source of truth for the package version.
Updated manually for each release.
"""
# Version format: major.minor.patch
__version__ = "0.4.1"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Build metadata
BUILD_DATE = "2026-10-19"
CODENAME = "Schema Sync"
