# ============================================================================
# HISTORY MODELS
# ============================================================================
# STATUS: Core model - Undo/redo snapshots and the bounded entry buffer
# PURPOSE: Immutable after-action snapshots plus the history cursor
# CREATED: 19 OCT 2026
# EXPORTS: HistorySnapshot, HistoryEntry, HistoryState
# DEPENDENCIES: pydantic
# ============================================================================
"""
History Models

Each entry holds the state AFTER the labeled action:

    Entry 0: initial state             label "Initial state"
    Entry 1: after moving table A      label "Move table: A"
    Entry 2: after moving table B      label "Move table: B"

Undo from 2 restores entry 1; redo from 1 restores entry 2.

All three models are frozen. Snapshots are deep copies taken at push time and
deep-copied again on restore, so they never share structure with the live
model.
"""

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, model_validator

from schemasync.contracts import RelationshipType
from schemasync.models.enum_type import EnumTypeDefinition
from schemasync.models.table import Table


class HistorySnapshot(BaseModel):
    """Deep copy of {tables, enum types, edge relationships} at one instant."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    tables: Dict[str, Table] = Field(default_factory=dict)
    enum_types: Dict[str, EnumTypeDefinition] = Field(default_factory=dict, alias="enumTypes")
    edge_relationships: Dict[str, RelationshipType] = Field(
        default_factory=dict, alias="edgeRelationships"
    )


class HistoryEntry(BaseModel):
    """One labeled point in history."""

    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: int = Field(..., description="Epoch milliseconds")
    label: str
    snapshot: HistorySnapshot


class HistoryState(BaseModel):
    """
    Ordered entries plus a cursor.

    Invariant: -1 <= current_index < len(entries), and current_index == -1
    exactly when entries is empty.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    entries: List[HistoryEntry] = Field(default_factory=list)
    current_index: int = Field(default=-1, alias="currentIndex")
    max_entries: int = Field(default=100, ge=1, alias="maxEntries")

    @model_validator(mode="after")
    def cursor_in_bounds(self) -> "HistoryState":
        if not self.entries:
            if self.current_index != -1:
                raise ValueError("current_index must be -1 for an empty history")
        elif not 0 <= self.current_index < len(self.entries):
            raise ValueError(
                f"current_index {self.current_index} out of range for "
                f"{len(self.entries)} entries"
            )
        return self

    @property
    def current_entry(self):
        if self.current_index < 0:
            return None
        return self.entries[self.current_index]


__all__ = ["HistorySnapshot", "HistoryEntry", "HistoryState"]
