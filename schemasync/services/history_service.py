# ============================================================================
# HISTORY SERVICE
# ============================================================================
# STATUS: Service - Undo/redo over schema snapshots
# PURPOSE: Push with duplicate suppression, branch truncation and bounded
#          retention; undo/redo; persistence-safe (de)serialization
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: HistoryCorruptionError, create_initial_history_state,
#          create_history_entry, snapshot_of, snapshots_differ, push_history,
#          undo, redo, can_undo, can_redo, undo_label, redo_label,
#          serialize_history, deserialize_history, reset_history,
#          restore_history, restore_snapshot
# DEPENDENCIES: pydantic
# ============================================================================
"""
History Service

All functions are pure: they take a HistoryState and return a new one.
HistoryState is frozen, so a state handed to a caller can never change
underneath it.

Push:
    1. If the new snapshot equals the one at current_index, nothing happens.
    2. Entries after current_index (the redo branch) are discarded.
    3. The entry is appended; the oldest entries are evicted until the
       length is within max_entries.
    4. current_index points at the new last entry.

Undo / redo move the cursor and hand back a deep copy of the snapshot at the
new position; they are no-ops at the ends of history.

Persistence:
    serialize_history keeps only the newest N entries (N independent of
    max_entries), re-bases current_index into that window and clamps it to
    >= 0. deserialize_history validates shape and clamps current_index into
    [-1, len - 1]; anything structurally wrong discards the whole history.
"""

import json
import math
import time
import uuid
from typing import Dict, Mapping, Optional, Tuple

from pydantic import ValidationError

from schemasync.config import get_defaults
from schemasync.contracts import RelationshipType
from schemasync.logging import ComponentType, get_logger, log_checkpoint
from schemasync.models import (
    EnumTypeDefinition,
    HistoryEntry,
    HistorySnapshot,
    HistoryState,
    SchemaModel,
    Table,
)

logger = get_logger(__name__, ComponentType.HISTORY)


class HistoryCorruptionError(Exception):
    """Persisted history failed shape validation."""
    pass


# ============================================================================
# CONSTRUCTION
# ============================================================================

def create_initial_history_state(max_entries: Optional[int] = None) -> HistoryState:
    """Empty history: no entries, cursor at -1."""
    return HistoryState(
        entries=[],
        current_index=-1,
        max_entries=max_entries or get_defaults().history.max_entries,
    )


def snapshot_of(
    tables: Mapping[str, Table],
    enum_types: Mapping[str, EnumTypeDefinition],
    edge_relationships: Optional[Mapping[str, RelationshipType]] = None,
) -> HistorySnapshot:
    """Deep copy of the given state; shares nothing with the inputs."""
    return HistorySnapshot(
        tables={k: t.model_copy(deep=True) for k, t in tables.items()},
        enum_types={k: e.model_copy(deep=True) for k, e in enum_types.items()},
        edge_relationships=dict(edge_relationships or {}),
    )


def create_history_entry(
    label: str,
    tables: Mapping[str, Table],
    enum_types: Mapping[str, EnumTypeDefinition],
    edge_relationships: Optional[Mapping[str, RelationshipType]] = None,
) -> HistoryEntry:
    """
    Entry for the state AFTER an action.

    Call once the action has been applied so the snapshot holds its result.
    """
    return HistoryEntry(
        id=str(uuid.uuid4()),
        timestamp=int(time.time() * 1000),
        label=label,
        snapshot=snapshot_of(tables, enum_types, edge_relationships),
    )


def restore_snapshot(snapshot: HistorySnapshot) -> Tuple[SchemaModel, Dict[str, RelationshipType]]:
    """Live-model copy of a snapshot: (model, edge relationships)."""
    copy = snapshot.model_copy(deep=True)
    model = SchemaModel(tables=dict(copy.tables), enum_types=dict(copy.enum_types))
    return model, dict(copy.edge_relationships)


# ============================================================================
# COMPARISON
# ============================================================================

def snapshots_differ(first: HistorySnapshot, second: HistorySnapshot) -> bool:
    """
    Deep, field-by-field comparison.

    Covers layout (position, color), every table and column field, enum
    definitions and the edge-relationship map.
    """
    if len(first.tables) != len(second.tables):
        return True
    return first.model_dump(mode="json") != second.model_dump(mode="json")


# ============================================================================
# PUSH / UNDO / REDO
# ============================================================================

def push_history(history: HistoryState, entry: HistoryEntry) -> HistoryState:
    """
    Record an entry after the current position.

    Returns the same state object when the snapshot is a duplicate.
    """
    current = history.current_entry
    if current is not None and not snapshots_differ(current.snapshot, entry.snapshot):
        logger.debug(f"Suppressed duplicate history entry: {entry.label}")
        return history

    entries = list(history.entries[:history.current_index + 1])
    entries.append(entry)

    evicted = max(0, len(entries) - history.max_entries)
    if evicted:
        entries = entries[evicted:]
        logger.debug(f"Evicted {evicted} oldest history entries")

    return history.model_copy(update={
        "entries": entries,
        "current_index": len(entries) - 1,
    })


def can_undo(history: HistoryState) -> bool:
    return history.current_index > 0


def can_redo(history: HistoryState) -> bool:
    return history.current_index < len(history.entries) - 1


def undo_label(history: HistoryState) -> Optional[str]:
    """Label of the action undo would revert (the current entry)."""
    if not can_undo(history):
        return None
    return history.entries[history.current_index].label


def redo_label(history: HistoryState) -> Optional[str]:
    if not can_redo(history):
        return None
    return history.entries[history.current_index + 1].label


def undo(history: HistoryState) -> Tuple[HistoryState, Optional[HistorySnapshot]]:
    """
    Step back one entry.

    Returns (new state, deep copy of the snapshot to restore), or
    (history, None) when there is nothing to undo.
    """
    if not can_undo(history):
        return history, None
    index = history.current_index - 1
    snapshot = history.entries[index].snapshot.model_copy(deep=True)
    return history.model_copy(update={"current_index": index}), snapshot


def redo(history: HistoryState) -> Tuple[HistoryState, Optional[HistorySnapshot]]:
    """Step forward one entry; (history, None) at the end of history."""
    if not can_redo(history):
        return history, None
    index = history.current_index + 1
    snapshot = history.entries[index].snapshot.model_copy(deep=True)
    return history.model_copy(update={"current_index": index}), snapshot


def reset_history(seed: HistorySnapshot, max_entries: Optional[int] = None) -> HistoryState:
    """Fresh history holding one initial-state entry seeded from `seed`."""
    defaults = get_defaults().history
    entry = HistoryEntry(
        id=str(uuid.uuid4()),
        timestamp=int(time.time() * 1000),
        label=defaults.initial_label,
        snapshot=seed.model_copy(deep=True),
    )
    return HistoryState(
        entries=[entry],
        current_index=0,
        max_entries=max_entries or defaults.max_entries,
    )


# ============================================================================
# SERIALIZATION
# ============================================================================

def serialize_history(history: HistoryState, max_entries_to_save: Optional[int] = None) -> str:
    """
    JSON text holding the newest entries only.

    current_index is re-based into the saved window and clamped to >= 0.
    """
    limit = max_entries_to_save or get_defaults().history.max_entries_to_save
    start = max(0, len(history.entries) - limit)
    saved = history.entries[start:]

    payload = {
        "entries": [e.model_dump(mode="json", by_alias=True, exclude_none=True) for e in saved],
        "currentIndex": max(0, history.current_index - start),
        "maxEntries": history.max_entries,
    }
    return json.dumps(payload)


def deserialize_history(text: str, strict: bool = False) -> Optional[HistoryState]:
    """
    Parse persisted history.

    Returns None on any structural problem (or raises HistoryCorruptionError
    when strict). Partial repair is never attempted; only current_index is
    clamped into range.
    """
    try:
        parsed = json.loads(text)
        if not isinstance(parsed, dict):
            raise HistoryCorruptionError("History payload is not an object")

        raw_entries = parsed.get("entries")
        raw_index = parsed.get("currentIndex")
        if not isinstance(raw_entries, list):
            raise HistoryCorruptionError("History entries is not a list")
        if isinstance(raw_index, bool) or not isinstance(raw_index, (int, float)):
            raise HistoryCorruptionError("History currentIndex is not a number")
        if not math.isfinite(raw_index):
            raise HistoryCorruptionError("History currentIndex is not finite")

        entries = [HistoryEntry.model_validate(e) for e in raw_entries]
    except (ValueError, TypeError, HistoryCorruptionError) as e:
        # json.JSONDecodeError and pydantic ValidationError are ValueErrors
        reason = e if isinstance(e, HistoryCorruptionError) else HistoryCorruptionError(str(e))
        if strict:
            raise reason from e
        logger.warning(f"Discarding corrupted history: {_first_line(reason)}")
        return None

    max_entries = parsed.get("maxEntries")
    if isinstance(max_entries, bool) or not isinstance(max_entries, int) or max_entries < 1:
        max_entries = get_defaults().history.max_entries

    index = max(-1, min(int(raw_index), len(entries) - 1))
    if entries and index < 0:
        index = 0

    if len(entries) > max_entries:
        dropped = len(entries) - max_entries
        entries = entries[dropped:]
        index = max(0, index - dropped)

    return HistoryState(entries=entries, current_index=index, max_entries=max_entries)


def _first_line(error: Exception) -> str:
    return str(error).splitlines()[0] if str(error) else type(error).__name__


def restore_history(text: Optional[str], fallback: HistorySnapshot) -> HistoryState:
    """
    Load persisted history, or start over from `fallback`.

    Missing, empty or corrupted history yields a single initial-state entry.
    """
    if text:
        history = deserialize_history(text)
        if history is not None and history.entries:
            return history
    log_checkpoint("history_reset", {"had_payload": bool(text)}, logger=logger.logger)
    return reset_history(fallback)


__all__ = [
    "HistoryCorruptionError",
    "create_initial_history_state",
    "create_history_entry",
    "snapshot_of",
    "restore_snapshot",
    "snapshots_differ",
    "push_history",
    "can_undo",
    "can_redo",
    "undo_label",
    "redo_label",
    "undo",
    "redo",
    "reset_history",
    "serialize_history",
    "deserialize_history",
    "restore_history",
]
