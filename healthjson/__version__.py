# ============================================================================
# VERSION - HEALTHJSON
# ============================================================================
"""
Version information for healthjson.

This is the single source of truth for the library version.
Updated manually for each release.
"""
__version__ = "1.2.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Build metadata
BUILD_DATE = "2026-10-19"
