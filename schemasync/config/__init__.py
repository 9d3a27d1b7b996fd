# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration Module

Provides centralized configuration and defaults for the schema engine.
"""

from schemasync.config.defaults import (
    HistoryDefaults,
    StorageDefaults,
    GeneratorDefaults,
    Defaults,
    get_defaults,
    reset_defaults,
)

__all__ = [
    "HistoryDefaults",
    "StorageDefaults",
    "GeneratorDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
