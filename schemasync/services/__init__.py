"""
Services package.

Sanitize/merge, schema edits, history, relationships, persistence and the
SchemaSession container.
"""

from schemasync.services.sanitize_service import (
    SanitizeResult,
    sanitize_tables,
    merge_tables,
    replace_tables,
    merge_enum_types,
)
from schemasync.services.schema_service import SchemaEditError, HistoryLabels
from schemasync.services.history_service import (
    HistoryCorruptionError,
    create_initial_history_state,
    create_history_entry,
    snapshot_of,
    snapshots_differ,
    push_history,
    undo,
    redo,
    can_undo,
    can_redo,
    undo_label,
    redo_label,
    serialize_history,
    deserialize_history,
    reset_history,
    restore_history,
)
from schemasync.services.relationship_service import (
    RelationshipEdge,
    DanglingReference,
    derive_edges,
    find_dangling_references,
    prune_edge_relationships,
)
from schemasync.services.persistence_service import (
    StorageBackend,
    InMemoryStorage,
    StorageExceededError,
    SaveResult,
    PersistedState,
    PersistenceService,
)
from schemasync.services.storage_validator import StorageValidator, ValidationReport
from schemasync.services.session import SchemaSession

__all__ = [
    "SanitizeResult",
    "sanitize_tables",
    "merge_tables",
    "replace_tables",
    "merge_enum_types",
    "SchemaEditError",
    "HistoryLabels",
    "HistoryCorruptionError",
    "create_initial_history_state",
    "create_history_entry",
    "snapshot_of",
    "snapshots_differ",
    "push_history",
    "undo",
    "redo",
    "can_undo",
    "can_redo",
    "undo_label",
    "redo_label",
    "serialize_history",
    "deserialize_history",
    "reset_history",
    "restore_history",
    "RelationshipEdge",
    "DanglingReference",
    "derive_edges",
    "find_dangling_references",
    "prune_edge_relationships",
    "StorageBackend",
    "InMemoryStorage",
    "StorageExceededError",
    "SaveResult",
    "PersistedState",
    "PersistenceService",
    "StorageValidator",
    "ValidationReport",
    "SchemaSession",
]
