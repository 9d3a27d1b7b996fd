# ============================================================================
# PERSISTENCE SERVICE TESTS
# ============================================================================
# STATUS: Tests - save/load against the in-memory key-value store
# PURPOSE: Verify round trips, size budgets, quota recovery and sanitized loads
# CREATED: 19 OCT 2026
# ============================================================================
"""
Persistence Service Tests

Run with:
    pytest tests/test_persistence.py -v
"""

import json
import logging

import pytest

from schemasync.config import HistoryDefaults, StorageDefaults
from schemasync.contracts import RelationshipType, WriteStatus
from schemasync.services.persistence_service import (
    InMemoryStorage,
    PersistenceService,
    StorageExceededError,
    storage_size,
)
from schemasync.services.session import SchemaSession

SQL = """
CREATE TYPE public.status AS ENUM ('active', 'banned');
CREATE TABLE public.users (id int PRIMARY KEY, state status);
CREATE TABLE public.posts (id int PRIMARY KEY, user_id int REFERENCES public.users(id));
"""

EDGE_ID = "posts.user_id-public.users.id"


@pytest.fixture
def session():
    session = SchemaSession()
    session.import_sql(SQL)
    session.move_table("public.users", 10, 20)
    return session


class RefusingStorage(InMemoryStorage):
    """Reports quota exhaustion for the listed keys."""

    def __init__(self, refuse, **kwargs):
        super().__init__(**kwargs)
        self.refuse = set(refuse)

    def write(self, key, text):
        if key in self.refuse:
            return WriteStatus.QUOTA_EXCEEDED
        return super().write(key, text)


# ============================================================================
# IN-MEMORY STORAGE
# ============================================================================

class TestInMemoryStorage:

    def test_sizes_count_keys_and_values(self):
        storage = InMemoryStorage(initial={"ab": "cde", "f": ""})
        assert storage.size() == 6
        assert storage_size(storage) == 6
        assert storage_size(storage, ["ab", "missing"]) == 5

    def test_quota(self):
        storage = InMemoryStorage(quota=10)
        assert storage.write("k", "x" * 9) is WriteStatus.OK
        assert storage.write("k", "y" * 9) is WriteStatus.OK
        assert storage.write("j", "z") is WriteStatus.QUOTA_EXCEEDED
        assert storage.keys() == ["k"]


# ============================================================================
# ROUND TRIP
# ============================================================================

class TestRoundTrip:

    def test_save_then_load(self, session):
        session.set_relationship(EDGE_ID, RelationshipType.ONE_TO_ONE)
        storage = InMemoryStorage()
        service = PersistenceService(storage)

        result = service.save_session(session)
        assert result.saved and result.history_saved
        assert set(storage.keys()) == {
            "table-list", "edge-relationships", "enum-types",
            "visible-schemas", "collapsed-schemas", "schema-history",
        }

        state = service.load()
        assert state.model.model_dump(mode="json") == session.model.model_dump(mode="json")
        assert state.edge_relationships == {EDGE_ID: RelationshipType.ONE_TO_ONE}
        assert state.visible_schemas == ["public"]
        assert [e.label for e in state.history.entries] == [
            "Initial state", "Import SQL schema", "Move table: users", "Update relationship",
        ]
        assert state.history.current_index == 3

    def test_session_restores_from_persisted_state(self, session):
        storage = InMemoryStorage()
        service = PersistenceService(storage)
        service.save_session(session)

        restored = SchemaSession.from_persisted(service.load())
        assert restored.undo_label == "Move table: users"
        assert restored.undo()
        assert restored.model.tables["public.users"].position is None

    def test_payload_is_compact_camel_case(self, session):
        storage = InMemoryStorage()
        PersistenceService(storage).save(session.model)
        tables = json.loads(storage.read("table-list"))
        assert tables["public.users"]["columns"][1]["enumTypeName"] == "public.status"
        assert "comment" not in tables["public.users"]
        assert json.loads(storage.read("enum-types"))["public.status"]["schema"] == "public"

    def test_history_window_is_bounded(self, session):
        storage = InMemoryStorage()
        service = PersistenceService(storage, history_defaults=HistoryDefaults(max_entries_to_save=2))
        service.save_session(session)
        saved = json.loads(storage.read("schema-history"))
        assert [e["label"] for e in saved["entries"]] == ["Import SQL schema", "Move table: users"]
        assert saved["currentIndex"] == 1


# ============================================================================
# SIZE BUDGET
# ============================================================================

class TestSizeBudget:

    def test_oversized_payload_is_not_written(self, session):
        storage = InMemoryStorage()
        seen = []
        service = PersistenceService(
            storage, defaults=StorageDefaults(max_total_bytes=200), on_storage_exceeded=seen.append,
        )

        result = service.save(session.model)
        assert not result.saved
        assert result.size > 200
        assert storage.keys() == []
        assert seen == [result.error]

    def test_strict_mode_raises(self, session):
        service = PersistenceService(InMemoryStorage(), defaults=StorageDefaults(max_total_bytes=200))
        with pytest.raises(StorageExceededError, match="exceeds .* storage limit"):
            service.save(session.model, strict=True)

    def test_existing_bloat_is_purged_before_save(self, session):
        storage = InMemoryStorage(initial={"table-list": "x" * 5000})
        service = PersistenceService(storage, defaults=StorageDefaults(max_total_bytes=4000))

        result = service.save(session.model)
        assert result.saved
        assert set(json.loads(storage.read("table-list"))) == {"public.users", "public.posts"}

    def test_quota_exhausted_mid_save_purges_schema_keys(self, session, caplog):
        storage = RefusingStorage({"enum-types"}, initial={"edge-relationships": "{}"})
        seen = []
        service = PersistenceService(storage, on_storage_exceeded=seen.append)

        with caplog.at_level(logging.INFO):
            result = service.save(session.model)

        assert not result.saved
        assert result.status is WriteStatus.QUOTA_EXCEEDED
        assert storage.read("table-list") is None
        assert storage.read("edge-relationships") is None
        assert len(seen) == 1
        assert "CHECKPOINT: storage_purged" in caplog.text

    def test_history_quota_removes_stale_history(self, session):
        storage = RefusingStorage({"schema-history"}, initial={"schema-history": "stale"})
        result = PersistenceService(storage).save_session(session)
        assert result.saved
        assert not result.history_saved
        assert storage.read("schema-history") is None


# ============================================================================
# LOAD
# ============================================================================

class TestLoad:

    def test_empty_storage(self):
        state = PersistenceService(InMemoryStorage()).load()
        assert state.model.tables == {}
        assert [e.label for e in state.history.entries] == ["Initial state"]

    def test_load_sanitizes_and_writes_back(self):
        raw = {
            "public.users": {"title": "users", "schema": "public", "columns": [{"title": "id"}, {"title": ""}]},
            "public.empty": {"title": "empty", "columns": []},
        }
        storage = InMemoryStorage(initial={"table-list": json.dumps(raw)})

        state = PersistenceService(storage).load()
        assert set(state.model.tables) == {"public.users"}
        assert (state.removed_tables, state.removed_columns) == (1, 1)
        assert set(json.loads(storage.read("table-list"))) == {"public.users"}

    def test_unparseable_values_are_ignored(self, caplog):
        storage = InMemoryStorage(initial={
            "table-list": "{not json",
            "enum-types": "[]",
            "schema-history": "also not json",
        })
        with caplog.at_level(logging.ERROR):
            state = PersistenceService(storage).load()
        assert state.model.tables == {}
        assert state.model.enum_types == {}
        assert len(state.history.entries) == 1
        assert "Ignoring unparseable stored value for table-list" in caplog.text

    def test_unknown_relationship_values_are_dropped(self):
        storage = InMemoryStorage(initial={
            "edge-relationships": json.dumps({"a": "one-to-one", "b": "bogus"}),
            "visible-schemas": json.dumps(["public", 3]),
        })
        state = PersistenceService(storage).load()
        assert state.edge_relationships == {"a": RelationshipType.ONE_TO_ONE}
        assert state.visible_schemas == ["public"]

    def test_non_string_relationship_values_are_dropped(self):
        storage = InMemoryStorage(initial={
            "edge-relationships": json.dumps({
                "a": ["one-to-many"], "b": {"type": "one-to-one"}, "c": "many-to-many",
            }),
        })
        state = PersistenceService(storage).load()
        assert state.edge_relationships == {"c": RelationshipType.MANY_TO_MANY}
