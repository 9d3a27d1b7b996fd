# ============================================================================
# MODELS MODULE
# ============================================================================
# STATUS: Model exports
# PURPOSE: Central export point for all Pydantic models
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point

All Pydantic models for the schema engine. Python attributes are snake_case;
JSON uses the camelCase names of the persisted format (enumTypeName,
currentIndex, ...) via aliases, so dump with by_alias=True for storage.
"""

from schemasync.models.column import Column
from schemasync.models.enum_type import EnumTypeDefinition
from schemasync.models.table import (
    Position,
    ForeignKeyReference,
    TableConstraint,
    TableIndex,
    Table,
)
from schemasync.models.schema_model import SchemaModel, TableState, EnumMap
from schemasync.models.history import HistorySnapshot, HistoryEntry, HistoryState

__all__ = [
    # Columns / tables
    "Column",
    "Position",
    "ForeignKeyReference",
    "TableConstraint",
    "TableIndex",
    "Table",
    # Enums
    "EnumTypeDefinition",
    # Schema
    "SchemaModel",
    "TableState",
    "EnumMap",
    # History
    "HistorySnapshot",
    "HistoryEntry",
    "HistoryState",
]
