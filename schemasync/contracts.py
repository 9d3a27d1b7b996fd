# ============================================================================
# BASE CONTRACTS & ENUMS
# ============================================================================
# STATUS: Foundation - Shared enums for model, parser, generator, storage
# PURPOSE: Define the closed vocabularies used across the schema engine
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: ConstraintType, ColumnCategory, RelationshipType, WriteStatus
# DEPENDENCIES: enum
# ============================================================================
"""
Base contracts for the schema sync engine.

These enums cross every boundary:
- SQL text (parser input / generator output)
- JSON (persisted table list and history)
- Python (internal processing)
"""

from enum import Enum


# ============================================================================
# SCHEMA ENUMS
# ============================================================================

class ConstraintType(str, Enum):
    """
    Table-level constraint kinds.

    Declaration order is the emission order used by the generator.
    """
    PRIMARY_KEY = "primary_key"
    FOREIGN_KEY = "foreign_key"
    UNIQUE = "unique"
    CHECK = "check"

    @property
    def sort_order(self) -> int:
        """Position of this kind in generated output."""
        return list(ConstraintType).index(self)


class ColumnCategory(str, Enum):
    """Coarse column category derived from the raw type token."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"


class RelationshipType(str, Enum):
    """Cardinality shown on a foreign-key edge."""
    ONE_TO_ONE = "one-to-one"
    ONE_TO_MANY = "one-to-many"
    MANY_TO_MANY = "many-to-many"


# ============================================================================
# STORAGE ENUMS
# ============================================================================

class WriteStatus(str, Enum):
    """Result of a write against the persistence collaborator."""
    OK = "ok"
    QUOTA_EXCEEDED = "quota_exceeded"

    def is_ok(self) -> bool:
        return self is WriteStatus.OK


__all__ = [
    "ConstraintType",
    "ColumnCategory",
    "RelationshipType",
    "WriteStatus",
]
