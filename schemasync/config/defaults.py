# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for history retention, storage budget, output
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration Defaults

Provides sensible defaults for the history engine, persistence layer and
DDL generator. These can be overridden via environment variables.

Design:
- Immutable dataclasses for defaults
- Environment variable overrides
- Type-safe access
"""

import os
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class HistoryDefaults:
    """
    Defaults for the undo/redo history.

    max_entries bounds the in-memory ring buffer; max_entries_to_save bounds
    what gets serialized (kept smaller to limit storage use).
    """
    max_entries: int = 100
    max_entries_to_save: int = 50
    storage_key: str = "schema-history"
    initial_label: str = "Initial state"

    @classmethod
    def from_env(cls) -> "HistoryDefaults":
        """Create from environment variables."""
        return cls(
            max_entries=int(os.getenv("SCHEMA_HISTORY_MAX_ENTRIES", 100)),
            max_entries_to_save=int(os.getenv("SCHEMA_HISTORY_SAVE_ENTRIES", 50)),
            storage_key=os.getenv("SCHEMA_HISTORY_STORAGE_KEY", "schema-history"),
        )


@dataclass(frozen=True)
class StorageDefaults:
    """
    Defaults for the persisted key-value store.

    Sizes are measured in characters of serialized JSON plus key length.
    """
    max_total_bytes: int = 5 * 1024 * 1024  # 5 MB save budget
    max_item_bytes: int = 1024 * 1024  # 1 MB per item
    validator_total_bytes: int = 3 * 1024 * 1024  # 3 MB before a full purge
    corruption_threshold_bytes: int = 500 * 1024  # 500 KB table list
    max_avg_table_bytes: int = 50000

    # Keys
    tables_key: str = "table-list"
    edges_key: str = "edge-relationships"
    enums_key: str = "enum-types"
    visible_schemas_key: str = "visible-schemas"
    collapsed_schemas_key: str = "collapsed-schemas"

    @property
    def schema_keys(self) -> tuple:
        """Keys holding schema data (purged under storage pressure)."""
        return (
            self.tables_key,
            self.edges_key,
            self.enums_key,
            self.visible_schemas_key,
            self.collapsed_schemas_key,
        )

    @property
    def json_key_prefixes(self) -> tuple:
        """Key prefixes whose values must parse as JSON."""
        return ("table", "edge", "enum", "visible", "collapsed", "schema")

    @classmethod
    def from_env(cls) -> "StorageDefaults":
        """Create from environment variables."""
        return cls(
            max_total_bytes=int(os.getenv("SCHEMA_STORAGE_MAX_BYTES", 5 * 1024 * 1024)),
            max_item_bytes=int(os.getenv("SCHEMA_STORAGE_MAX_ITEM_BYTES", 1024 * 1024)),
        )


@dataclass(frozen=True)
class GeneratorDefaults:
    """Defaults for canonical SQL output."""
    fallback_type: str = "text"
    enum_section: str = "-- Enum Types"
    enum_in_use_section: str = "-- Enum Types in use"
    table_section: str = "-- Tables"
    constraint_section: str = "-- Constraints"
    index_section: str = "-- Indexes"
    comment_section: str = "-- Comments"
    missing_table_message: str = "-- Selected table not found in schema"

    @classmethod
    def from_env(cls) -> "GeneratorDefaults":
        """Create from environment variables."""
        return cls(
            fallback_type=os.getenv("SCHEMA_FALLBACK_COLUMN_TYPE", "text"),
        )


# ============================================================================
# GLOBAL DEFAULTS INSTANCE
# ============================================================================

@dataclass
class Defaults:
    """Container for all default configurations."""
    history: HistoryDefaults = field(default_factory=HistoryDefaults)
    storage: StorageDefaults = field(default_factory=StorageDefaults)
    generator: GeneratorDefaults = field(default_factory=GeneratorDefaults)

    @classmethod
    def from_env(cls) -> "Defaults":
        """Create all defaults from environment variables."""
        return cls(
            history=HistoryDefaults.from_env(),
            storage=StorageDefaults.from_env(),
            generator=GeneratorDefaults.from_env(),
        )


_defaults: Optional[Defaults] = None


def get_defaults() -> Defaults:
    """Get global defaults instance."""
    global _defaults
    if _defaults is None:
        _defaults = Defaults.from_env()
    return _defaults


def reset_defaults() -> None:
    """Reset defaults (for testing)."""
    global _defaults
    _defaults = None


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "HistoryDefaults",
    "StorageDefaults",
    "GeneratorDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
