# ============================================================================
# PERSISTENCE SERVICE
# ============================================================================
# STATUS: Service - Save/load schema state through a key-value collaborator
# PURPOSE: Size-budgeted writes of tables, enums, edges and history; sanitized
#          loads with history recovery
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: StorageBackend, InMemoryStorage, StorageExceededError, SaveResult,
#          PersistedState, PersistenceService
# DEPENDENCIES: pydantic
# ============================================================================
"""
Persistence Service

The engine never touches storage directly; the host supplies a
StorageBackend (browser localStorage, a file, a database row...). Sizes are
measured like the host measures them: characters of value plus key.

Save policy:
    - If storage already exceeds the budget, schema keys are purged first.
    - If the new payload exceeds the budget, nothing is written; the host
      is told through SaveResult and the on_storage_exceeded callback.
    - If the backend reports quota exhaustion mid-save, schema keys are
      purged. The in-memory model is never truncated.

Load policy:
    - Tables are sanitized; if anything was dropped the cleaned map is
      written back.
    - Unparseable values are logged and treated as absent.
    - History that is missing or corrupt is reseeded from the loaded model.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, TYPE_CHECKING

from schemasync.config import HistoryDefaults, StorageDefaults, get_defaults
from schemasync.contracts import RelationshipType, WriteStatus
from schemasync.logging import ComponentType, get_logger, log_checkpoint
from schemasync.models import HistoryState, SchemaModel
from schemasync.services.history_service import restore_history, serialize_history, snapshot_of
from schemasync.services.sanitize_service import merge_enum_types, sanitize_tables

if TYPE_CHECKING:
    from schemasync.services.session import SchemaSession

logger = get_logger(__name__, ComponentType.STORAGE)


# ============================================================================
# STORAGE COLLABORATOR
# ============================================================================

class StorageBackend(Protocol):
    """Narrow key-value interface the host provides."""

    def read(self, key: str) -> Optional[str]: ...

    def write(self, key: str, text: str) -> WriteStatus: ...

    def remove(self, key: str) -> None: ...

    def keys(self) -> List[str]: ...


class InMemoryStorage:
    """
    Dict-backed StorageBackend with an optional character quota.

    Used by tests and the CLI; behaves like a quota-limited browser store.
    """

    def __init__(self, quota: Optional[int] = None, initial: Optional[Dict[str, str]] = None):
        self.quota = quota
        self._items: Dict[str, str] = dict(initial or {})

    def read(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def write(self, key: str, text: str) -> WriteStatus:
        if self.quota is not None:
            size_after = self.size() - self._item_size(key) + len(key) + len(text)
            if size_after > self.quota:
                return WriteStatus.QUOTA_EXCEEDED
        self._items[key] = text
        return WriteStatus.OK

    def remove(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._items)

    def _item_size(self, key: str) -> int:
        value = self._items.get(key)
        return 0 if value is None else len(key) + len(value)

    def size(self) -> int:
        return sum(len(k) + len(v) for k, v in self._items.items())


def storage_size(storage: StorageBackend, keys: Optional[Iterable[str]] = None) -> int:
    """Total characters (value plus key) held under the given or all keys."""
    total = 0
    for key in keys if keys is not None else storage.keys():
        value = storage.read(key)
        if value is not None:
            total += len(key) + len(value)
    return total


# ============================================================================
# RESULTS
# ============================================================================

class StorageExceededError(Exception):
    """Serialized payload is larger than the storage budget."""

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(
            f"Data size ({size / 1024 / 1024:.2f}MB) exceeds "
            f"{limit / 1024 / 1024:.2f}MB storage limit"
        )


@dataclass
class SaveResult:
    saved: bool
    size: int
    limit: int
    status: WriteStatus = WriteStatus.OK
    history_saved: bool = False
    error: Optional[StorageExceededError] = None


@dataclass
class PersistedState:
    """Everything load() restores."""
    model: SchemaModel = field(default_factory=SchemaModel)
    edge_relationships: Dict[str, RelationshipType] = field(default_factory=dict)
    visible_schemas: List[str] = field(default_factory=list)
    collapsed_schemas: List[str] = field(default_factory=list)
    history: Optional[HistoryState] = None
    removed_tables: int = 0
    removed_columns: int = 0


# ============================================================================
# SERVICE
# ============================================================================

class PersistenceService:
    """
    Save and load schema state against a StorageBackend.
    """

    def __init__(
        self,
        storage: StorageBackend,
        defaults: Optional[StorageDefaults] = None,
        history_defaults: Optional[HistoryDefaults] = None,
        on_storage_exceeded: Optional[Callable[[StorageExceededError], None]] = None,
    ):
        """
        Initialize persistence service.

        Args:
            storage: Host key-value store
            defaults: Size budget and key names
            history_defaults: History key and saved-entry limit
            on_storage_exceeded: Called when a save is skipped for size
        """
        self.storage = storage
        self.defaults = defaults or get_defaults().storage
        self.history_defaults = history_defaults or get_defaults().history
        self.on_storage_exceeded = on_storage_exceeded

    # =========================================================================
    # SAVE
    # =========================================================================

    def purge_schema_data(self, include_history: bool = False) -> List[str]:
        """Remove persisted tables, edges and enums; returns removed keys."""
        keys = [self.defaults.tables_key, self.defaults.edges_key, self.defaults.enums_key]
        if include_history:
            keys.append(self.history_defaults.storage_key)
        removed = [k for k in keys if self.storage.read(k) is not None]
        for key in keys:
            self.storage.remove(key)
        log_checkpoint("storage_purged", {"keys": removed}, logger=logger.logger)
        return removed

    def _notify_exceeded(self, error: StorageExceededError) -> None:
        logger.error(str(error))
        if self.on_storage_exceeded is not None:
            self.on_storage_exceeded(error)

    def save(
        self,
        model: SchemaModel,
        edge_relationships: Optional[Dict[str, RelationshipType]] = None,
        history: Optional[HistoryState] = None,
        visible_schemas: Optional[Iterable[str]] = None,
        collapsed_schemas: Optional[Iterable[str]] = None,
        strict: bool = False,
    ) -> SaveResult:
        """
        Persist schema state.

        Raises:
            StorageExceededError: only when strict and the payload is too large
        """
        limit = self.defaults.max_total_bytes

        if storage_size(self.storage) > limit:
            logger.warning("Storage exceeds budget before save; clearing schema data")
            self.purge_schema_data()

        payloads = {
            self.defaults.tables_key: json.dumps(
                {k: t.model_dump(mode="json", by_alias=True, exclude_none=True) for k, t in model.tables.items()},
                separators=(",", ":"),
            ),
            self.defaults.edges_key: json.dumps(
                {k: RelationshipType(v).value for k, v in (edge_relationships or {}).items()},
                separators=(",", ":"),
            ),
            self.defaults.visible_schemas_key: json.dumps(sorted(visible_schemas or [])),
            self.defaults.collapsed_schemas_key: json.dumps(sorted(collapsed_schemas or [])),
            self.defaults.enums_key: json.dumps(
                {k: e.model_dump(mode="json", by_alias=True, exclude_none=True) for k, e in model.enum_types.items()},
                separators=(",", ":"),
            ),
        }
        size = sum(len(k) + len(v) for k, v in payloads.items())

        if size > limit:
            error = StorageExceededError(size, limit)
            self._notify_exceeded(error)
            if strict:
                raise error
            return SaveResult(saved=False, size=size, limit=limit, error=error)

        for key, text in payloads.items():
            status = self.storage.write(key, text)
            if not status.is_ok():
                logger.error(f"Storage quota exceeded writing {key}; clearing schema data")
                self.purge_schema_data()
                error = StorageExceededError(storage_size(self.storage) + size, limit)
                if self.on_storage_exceeded is not None:
                    self.on_storage_exceeded(error)
                if strict:
                    raise error
                return SaveResult(saved=False, size=size, limit=limit, status=status, error=error)

        history_saved = False
        if history is not None:
            history_saved = self.save_history(history)

        logger.debug(f"Saved {len(model.tables)} tables ({size} chars)")
        return SaveResult(saved=True, size=size, limit=limit, history_saved=history_saved)

    def save_history(self, history: HistoryState) -> bool:
        """Write serialized history; on quota exhaustion the stale copy is removed."""
        key = self.history_defaults.storage_key
        text = serialize_history(history, self.history_defaults.max_entries_to_save)
        status = self.storage.write(key, text)
        if not status.is_ok():
            logger.warning(f"History not saved ({len(text)} chars): storage quota exceeded")
            self.storage.remove(key)
            return False
        return True

    def save_session(self, session: "SchemaSession", strict: bool = False) -> SaveResult:
        return self.save(
            session.model,
            edge_relationships=session.edge_relationships,
            history=session.history,
            visible_schemas=session.visible_schemas,
            collapsed_schemas=session.collapsed_schemas,
            strict=strict,
        )

    # =========================================================================
    # LOAD
    # =========================================================================

    def _read_json(self, key: str) -> Any:
        text = self.storage.read(key)
        if text is None:
            return None
        try:
            return json.loads(text)
        except ValueError as e:
            logger.error(f"Ignoring unparseable stored value for {key}: {e}")
            return None

    def load(self) -> PersistedState:
        """Restore state; anything missing or invalid falls back to empty."""
        state = PersistedState()

        raw_tables = self._read_json(self.defaults.tables_key)
        if isinstance(raw_tables, dict):
            result = sanitize_tables(raw_tables)
            state.removed_tables = result.removed_tables
            state.removed_columns = result.removed_columns
            if result.changed:
                logger.info(f"Cleaned up {result.removed_tables} stored table(s)")
                self.storage.write(self.defaults.tables_key, json.dumps(
                    {k: t.model_dump(mode="json", by_alias=True, exclude_none=True)
                     for k, t in result.tables.items()},
                    separators=(",", ":"),
                ))
            tables = result.tables
        else:
            tables = {}

        raw_enums = self._read_json(self.defaults.enums_key)
        enums = merge_enum_types({}, raw_enums) if isinstance(raw_enums, dict) else {}
        state.model = SchemaModel(tables=tables, enum_types=enums)

        raw_edges = self._read_json(self.defaults.edges_key)
        if isinstance(raw_edges, dict):
            valid = {item.value for item in RelationshipType}
            state.edge_relationships = {
                k: RelationshipType(v) for k, v in raw_edges.items() if isinstance(v, str) and v in valid
            }

        for attribute, key in (
            ("visible_schemas", self.defaults.visible_schemas_key),
            ("collapsed_schemas", self.defaults.collapsed_schemas_key),
        ):
            raw = self._read_json(key)
            if isinstance(raw, list):
                setattr(state, attribute, [s for s in raw if isinstance(s, str)])

        fallback = snapshot_of(tables, enums, state.edge_relationships)
        state.history = restore_history(
            self.storage.read(self.history_defaults.storage_key), fallback,
        )
        return state


__all__ = [
    "StorageBackend",
    "InMemoryStorage",
    "storage_size",
    "StorageExceededError",
    "SaveResult",
    "PersistedState",
    "PersistenceService",
]
