# ============================================================================
# SCHEMA SESSION
# ============================================================================
# STATUS: Service - Explicit state container for one editing session
# PURPOSE: Hold model, edge relationships and history; apply an edit and push
#          exactly one history entry per action
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: SchemaSession
# DEPENDENCIES: pydantic
# ============================================================================
"""
Schema Session

There is no global store. A SchemaSession is created by the host and
passed to whatever needs it. Every edit method:

    1. runs a pure operation from schema_service against the current model
    2. replaces the live model with the result
    3. pushes one history entry labeled with HistoryLabels

A failed operation (SchemaEditError, ParseError, ValidationError) leaves
model and history untouched. Edits that change nothing are suppressed by
the history engine's duplicate check.

Usage:
    session = SchemaSession()
    session.import_sql(open("schema.sql").read())
    session.rename_table("public.users", "accounts")
    session.undo()
    print(session.generate_sql())
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from schemasync.contracts import RelationshipType
from schemasync.logging import ComponentType, get_logger, log_context
from schemasync.models import Column, HistoryState, Position, SchemaModel
from schemasync.schema import generate_schema_sql, parse_sql
from schemasync.services import schema_service as ops
from schemasync.services.history_service import (
    can_redo,
    can_undo,
    create_history_entry,
    push_history,
    redo,
    redo_label,
    reset_history,
    restore_snapshot,
    snapshot_of,
    undo,
    undo_label,
)
from schemasync.services.relationship_service import (
    RelationshipEdge,
    derive_edges,
    prune_edge_relationships,
)
from schemasync.services.sanitize_service import SanitizeResult
from schemasync.services.schema_service import HistoryLabels, table_display_name

logger = get_logger(__name__, ComponentType.SERVICE)


class SchemaSession:
    """
    Live model plus its history.

    Attributes:
        model: Current SchemaModel (replaced, never mutated in place)
        edge_relationships: Edge id -> relationship type overrides
        history: Current HistoryState
        visible_schemas / collapsed_schemas: Host view state, persisted as-is
    """

    def __init__(
        self,
        model: Optional[SchemaModel] = None,
        edge_relationships: Optional[Mapping[str, RelationshipType]] = None,
        history: Optional[HistoryState] = None,
        visible_schemas: Optional[Iterable[str]] = None,
        collapsed_schemas: Optional[Iterable[str]] = None,
        max_entries: Optional[int] = None,
    ):
        self.model = model or SchemaModel()
        self.edge_relationships: Dict[str, RelationshipType] = dict(edge_relationships or {})
        self.visible_schemas: Set[str] = set(visible_schemas or [])
        self.collapsed_schemas: Set[str] = set(collapsed_schemas or [])
        self.history = history or reset_history(self.snapshot(), max_entries=max_entries)

    @classmethod
    def from_persisted(cls, state) -> "SchemaSession":
        """Build from PersistenceService.load() output."""
        return cls(
            model=state.model,
            edge_relationships=state.edge_relationships,
            history=state.history,
            visible_schemas=state.visible_schemas,
            collapsed_schemas=state.collapsed_schemas,
        )

    # =========================================================================
    # STATE
    # =========================================================================

    def snapshot(self):
        return snapshot_of(self.model.tables, self.model.enum_types, self.edge_relationships)

    def _commit(self, model: SchemaModel, label: str) -> bool:
        """Install a new model and record it. Returns False if suppressed."""
        with log_context(history_label=label):
            self.model = model
            self.edge_relationships = prune_edge_relationships(
                self.edge_relationships, derive_edges(model.tables, self.edge_relationships)
            )
            for table in model.tables.values():
                if table.schema_name:
                    self.visible_schemas.add(table.schema_name)

            entry = create_history_entry(
                label, model.tables, model.enum_types, self.edge_relationships
            )
            before = self.history
            self.history = push_history(self.history, entry)
            pushed = self.history is not before
            if pushed:
                logger.debug(f"Recorded '{label}'")
            return pushed

    def _restore(self, snapshot) -> None:
        self.model, self.edge_relationships = restore_snapshot(snapshot)

    # =========================================================================
    # UNDO / REDO
    # =========================================================================

    @property
    def can_undo(self) -> bool:
        return can_undo(self.history)

    @property
    def can_redo(self) -> bool:
        return can_redo(self.history)

    @property
    def undo_label(self) -> Optional[str]:
        return undo_label(self.history)

    @property
    def redo_label(self) -> Optional[str]:
        return redo_label(self.history)

    def undo(self) -> bool:
        self.history, snapshot = undo(self.history)
        if snapshot is None:
            return False
        self._restore(snapshot)
        return True

    def redo(self) -> bool:
        self.history, snapshot = redo(self.history)
        if snapshot is None:
            return False
        self._restore(snapshot)
        return True

    # =========================================================================
    # SQL
    # =========================================================================

    def import_sql(self, text: str) -> SanitizeResult:
        """
        Parse SQL and merge it into the model.

        Raises:
            ParseError: the model and history are left unchanged
        """
        with log_context(operation="import_sql"):
            parsed = parse_sql(text)
            model, result = ops.add_tables(self.model, parsed.tables, parsed.enum_types)
            self._commit(model, HistoryLabels.import_sql())
            return result

    def apply_sql(self, text: str) -> SanitizeResult:
        """
        Parse SQL and make it the whole model (layout of surviving tables kept).

        Raises:
            ParseError: the model and history are left unchanged
        """
        with log_context(operation="apply_sql"):
            parsed = parse_sql(text)
            model, result = ops.replace_tables(self.model, parsed.tables, parsed.enum_types)
            self._commit(model, HistoryLabels.apply_sql_changes())
            return result

    def generate_sql(self, table_key: Optional[str] = None) -> str:
        return generate_schema_sql(self.model, table_key)

    def edges(self) -> List[RelationshipEdge]:
        return derive_edges(self.model.tables, self.edge_relationships)

    # =========================================================================
    # TABLE EDITS
    # =========================================================================

    def add_table(
        self,
        title: str,
        schema: Optional[str] = None,
        columns: Optional[List[Column]] = None,
        position: Optional[Position] = None,
    ) -> str:
        model, key = ops.add_table(self.model, title, schema, columns, position)
        self._commit(model, HistoryLabels.add_table(title))
        return key

    def rename_table(self, key: str, new_title: str) -> str:
        model, new_key = ops.rename_table(self.model, key, new_title)
        self._commit(model, HistoryLabels.rename_table(table_display_name(key), new_title))
        return new_key

    def delete_table(self, key: str) -> None:
        self._commit(ops.delete_table(self.model, key), HistoryLabels.delete_table(table_display_name(key)))

    def move_table(self, key: str, x: float, y: float) -> None:
        self._commit(ops.move_table(self.model, key, x, y), HistoryLabels.move_table(table_display_name(key)))

    def move_tables(self, positions: Mapping[str, Tuple[float, float]]) -> None:
        self._commit(ops.move_tables(self.model, positions), HistoryLabels.move_tables(len(positions)))

    def auto_arrange(self, positions: Mapping[str, Tuple[float, float]]) -> None:
        """Apply positions computed by an external layout pass."""
        self._commit(ops.move_tables(self.model, positions), HistoryLabels.auto_arrange())

    def set_table_color(self, key: str, color: Optional[str]) -> None:
        self._commit(
            ops.set_table_color(self.model, key, color),
            HistoryLabels.change_table_color(table_display_name(key)),
        )

    def set_table_comment(self, key: str, comment: Optional[str]) -> None:
        self._commit(
            ops.set_table_comment(self.model, key, comment),
            HistoryLabels.update_table_comment(table_display_name(key)),
        )

    def add_tables(self, tables: Mapping[str, Any], enum_types: Optional[Mapping[str, Any]] = None) -> SanitizeResult:
        model, result = ops.add_tables(self.model, tables, enum_types)
        self._commit(model, HistoryLabels.bulk_add_tables(len(tables)))
        return result

    def clear_schema(self) -> None:
        self._commit(ops.clear_schema(self.model), HistoryLabels.clear_schema())

    # =========================================================================
    # COLUMN EDITS
    # =========================================================================

    def add_column(self, key: str, column: Column) -> None:
        self._commit(
            ops.add_column(self.model, key, column),
            HistoryLabels.add_column(table_display_name(key), column.title),
        )

    def update_column(self, key: str, index: int, updates: Mapping[str, Any]) -> None:
        model = ops.update_column(self.model, key, index, updates)
        title = model.tables[key].columns[index].title
        self._commit(model, HistoryLabels.update_column(table_display_name(key), title))

    def delete_column(self, key: str, index: int) -> None:
        table = self.model.tables.get(key)
        model = ops.delete_column(self.model, key, index)
        title = table.columns[index].title
        self._commit(model, HistoryLabels.delete_column(table_display_name(key), title))

    def reorder_columns(self, key: str, from_index: int, to_index: int) -> None:
        self._commit(
            ops.reorder_columns(self.model, key, from_index, to_index),
            HistoryLabels.reorder_columns(table_display_name(key)),
        )

    # =========================================================================
    # RELATIONSHIPS AND ENUMS
    # =========================================================================

    def set_relationship(self, edge_id: str, relationship: RelationshipType) -> None:
        """Override an edge's relationship type; unknown edge ids are rejected."""
        if edge_id not in {edge.id for edge in self.edges()}:
            raise ops.SchemaEditError(f"Edge not found: {edge_id}")
        self.edge_relationships = {**self.edge_relationships, edge_id: RelationshipType(relationship)}
        self._commit(self.model, HistoryLabels.update_relationship())

    def create_enum(self, name: str, values: List[str], schema: Optional[str] = None) -> str:
        model, key = ops.create_enum(self.model, name, values, schema)
        self._commit(model, HistoryLabels.create_enum(name))
        return key

    def update_enum(self, key: str, values: List[str]) -> None:
        self._commit(ops.update_enum(self.model, key, values), HistoryLabels.update_enum(table_display_name(key)))

    def rename_enum(self, key: str, new_name: str) -> str:
        model, new_key = ops.rename_enum(self.model, key, new_name)
        self._commit(model, HistoryLabels.rename_enum(table_display_name(key), new_name))
        return new_key

    def delete_enum(self, key: str) -> None:
        self._commit(ops.delete_enum(self.model, key), HistoryLabels.delete_enum(table_display_name(key)))


__all__ = ["SchemaSession"]
