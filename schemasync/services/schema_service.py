# ============================================================================
# SCHEMA EDIT SERVICE
# ============================================================================
# STATUS: Service - Pure edit operations on the schema model
# PURPOSE: Table/column/enum mutations that return a new SchemaModel, plus the
#          history labels that describe them
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: SchemaEditError, HistoryLabels, add_table, rename_table,
#          delete_table, move_table, move_tables, set_table_color,
#          set_table_comment, add_column, update_column, delete_column,
#          reorder_columns, add_tables, replace_tables, create_enum,
#          update_enum, rename_enum, delete_enum, clear_schema
# DEPENDENCIES: pydantic
# ============================================================================
"""
Schema Edit Service

Every operation takes the current SchemaModel and returns a new one; the
input is never modified. Operations addressed at something that does not
exist (table key, column index, enum key) raise SchemaEditError, as do
renames to a blank or already-used name.

Foreign-key strings are not rewritten when a table is renamed or deleted;
relationship_service.find_dangling_references reports what broke.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from schemasync.config import get_defaults
from schemasync.identifiers import parse_identifier, table_key
from schemasync.models import (
    Column,
    EnumTypeDefinition,
    Position,
    SchemaModel,
    Table,
)
from schemasync.services.sanitize_service import (
    SanitizeResult,
    merge_enum_types,
    merge_tables,
    replace_tables as replace_table_map,
)

logger = logging.getLogger(__name__)


class SchemaEditError(Exception):
    """Edit addressed at a missing target, or an invalid rename."""
    pass


# ============================================================================
# HISTORY LABELS
# ============================================================================

class HistoryLabels:
    """Standard history labels, one per edit operation."""

    @staticmethod
    def add_table(name: str) -> str:
        return f"Add table: {name}"

    @staticmethod
    def delete_table(name: str) -> str:
        return f"Delete table: {name}"

    @staticmethod
    def rename_table(old_name: str, new_name: str) -> str:
        return f"Rename table: {old_name} → {new_name}"

    @staticmethod
    def move_table(name: str) -> str:
        return f"Move table: {name}"

    @staticmethod
    def move_tables(count: int) -> str:
        return f"Move {count} tables"

    @staticmethod
    def change_table_color(name: str) -> str:
        return f"Change color: {name}"

    @staticmethod
    def update_table_comment(name: str) -> str:
        return f"Update comment: {name}"

    @staticmethod
    def add_column(table: str, column: str) -> str:
        return f"Add column: {table}.{column}"

    @staticmethod
    def delete_column(table: str, column: str) -> str:
        return f"Delete column: {table}.{column}"

    @staticmethod
    def update_column(table: str, column: str) -> str:
        return f"Update column: {table}.{column}"

    @staticmethod
    def reorder_columns(table: str) -> str:
        return f"Reorder columns in {table}"

    @staticmethod
    def update_relationship() -> str:
        return "Update relationship"

    @staticmethod
    def create_enum(name: str) -> str:
        return f"Create enum: {name}"

    @staticmethod
    def update_enum(name: str) -> str:
        return f"Update enum: {name}"

    @staticmethod
    def delete_enum(name: str) -> str:
        return f"Delete enum: {name}"

    @staticmethod
    def rename_enum(old_name: str, new_name: str) -> str:
        return f"Rename enum: {old_name} → {new_name}"

    @staticmethod
    def import_sql() -> str:
        return "Import SQL schema"

    @staticmethod
    def apply_sql_changes() -> str:
        return "Apply SQL changes"

    @staticmethod
    def auto_arrange() -> str:
        return "Auto arrange tables"

    @staticmethod
    def bulk_add_tables(count: int) -> str:
        return f"Add {count} tables"

    @staticmethod
    def clear_schema() -> str:
        return "Clear schema"

    @staticmethod
    def initial_state() -> str:
        return get_defaults().history.initial_label


# ============================================================================
# HELPERS
# ============================================================================

def _require_table(model: SchemaModel, key: str) -> Table:
    table = model.tables.get(key)
    if table is None:
        raise SchemaEditError(f"Table not found: {key}")
    return table


def _require_column_index(table: Table, index: int) -> None:
    if not 0 <= index < len(table.columns):
        raise SchemaEditError(
            f"Column index {index} out of range for {table.key} ({len(table.columns)} columns)"
        )


def _require_enum(model: SchemaModel, key: str) -> EnumTypeDefinition:
    enum = model.enum_types.get(key)
    if enum is None:
        raise SchemaEditError(f"Enum type not found: {key}")
    return enum


def _with_table(model: SchemaModel, key: str, table: Table) -> SchemaModel:
    tables = dict(model.tables)
    tables[key] = table
    return model.model_copy(update={"tables": tables})


_COLUMN_ALIASES = {
    field.alias: name for name, field in Column.model_fields.items() if field.alias
}


def _check_column_title(table: Table, title: str, ignore_index: Optional[int] = None) -> None:
    if not title or not title.strip():
        raise SchemaEditError("Column title must not be blank")
    existing = table.column_index(title)
    if existing >= 0 and existing != ignore_index:
        raise SchemaEditError(f"Column '{title}' already exists in {table.key}")


# ============================================================================
# TABLE OPERATIONS
# ============================================================================

def add_table(
    model: SchemaModel,
    title: str,
    schema: Optional[str] = None,
    columns: Optional[List[Column]] = None,
    position: Optional[Position] = None,
) -> Tuple[SchemaModel, str]:
    """
    Add a table; returns (new model, new table key).

    A table needs at least one column to survive sanitize, so a bare `id`
    primary key is added when none are given.
    """
    if not title or not title.strip():
        raise SchemaEditError("Table title must not be blank")
    key = table_key(schema, title)
    if key in model.tables:
        raise SchemaEditError(f"Table already exists: {key}")

    table = Table(
        title=title,
        schema=schema,
        columns=[c.model_copy(deep=True) for c in columns] if columns else [
            Column(title="id", format="int4", type="number", pk=True),
        ],
        position=position or Position(),
    )
    return _with_table(model, key, table), key


def rename_table(model: SchemaModel, key: str, new_title: str) -> Tuple[SchemaModel, str]:
    """
    Rename a table within its schema; returns (new model, new key).

    Column fk strings pointing at the old key are left as they are.
    """
    table = _require_table(model, key)
    if not new_title or not new_title.strip():
        raise SchemaEditError("Table title must not be blank")
    new_key = table_key(table.schema_name, new_title)
    if new_key != key and new_key in model.tables:
        raise SchemaEditError(f"Table already exists: {new_key}")

    tables = {k: t for k, t in model.tables.items() if k != key}
    tables[new_key] = table.model_copy(deep=True, update={"title": new_title})
    return model.model_copy(update={"tables": tables}), new_key


def delete_table(model: SchemaModel, key: str) -> SchemaModel:
    _require_table(model, key)
    tables = {k: t for k, t in model.tables.items() if k != key}
    return model.model_copy(update={"tables": tables})


def move_table(model: SchemaModel, key: str, x: float, y: float) -> SchemaModel:
    table = _require_table(model, key)
    return _with_table(model, key, table.model_copy(update={"position": Position(x=x, y=y)}))


def move_tables(model: SchemaModel, positions: Mapping[str, Tuple[float, float]]) -> SchemaModel:
    """Move several tables at once (one history entry for a layout pass)."""
    tables = dict(model.tables)
    for key, (x, y) in positions.items():
        table = _require_table(model, key)
        tables[key] = table.model_copy(update={"position": Position(x=x, y=y)})
    return model.model_copy(update={"tables": tables})


def set_table_color(model: SchemaModel, key: str, color: Optional[str]) -> SchemaModel:
    table = _require_table(model, key)
    return _with_table(model, key, table.model_copy(update={"color": color or None}))


def set_table_comment(model: SchemaModel, key: str, comment: Optional[str]) -> SchemaModel:
    table = _require_table(model, key)
    return _with_table(model, key, table.model_copy(update={"comment": comment or None}))


# ============================================================================
# COLUMN OPERATIONS
# ============================================================================

def add_column(model: SchemaModel, key: str, column: Column) -> SchemaModel:
    table = _require_table(model, key)
    _check_column_title(table, column.title)
    columns = list(table.columns) + [column.model_copy(deep=True)]
    return _with_table(model, key, table.model_copy(update={"columns": columns}))


def update_column(model: SchemaModel, key: str, index: int, updates: Mapping[str, Any]) -> SchemaModel:
    """
    Merge field updates into one column.

    Updates use field names (enum_type_name) or their aliases
    (enumTypeName). The merged column is re-validated.
    """
    table = _require_table(model, key)
    _require_column_index(table, index)

    merged = table.columns[index].model_dump()
    for name, value in updates.items():
        merged[_COLUMN_ALIASES.get(name, name)] = value
    column = Column.model_validate(merged)
    _check_column_title(table, column.title, ignore_index=index)

    columns = list(table.columns)
    columns[index] = column
    return _with_table(model, key, table.model_copy(update={"columns": columns}))


def delete_column(model: SchemaModel, key: str, index: int) -> SchemaModel:
    table = _require_table(model, key)
    _require_column_index(table, index)
    columns = [c for i, c in enumerate(table.columns) if i != index]
    return _with_table(model, key, table.model_copy(update={"columns": columns}))


def reorder_columns(model: SchemaModel, key: str, from_index: int, to_index: int) -> SchemaModel:
    """Move one column to a new position; other columns keep their order."""
    table = _require_table(model, key)
    _require_column_index(table, from_index)
    _require_column_index(table, to_index)
    columns = list(table.columns)
    columns.insert(to_index, columns.pop(from_index))
    return _with_table(model, key, table.model_copy(update={"columns": columns}))


# ============================================================================
# BULK OPERATIONS
# ============================================================================

def add_tables(
    model: SchemaModel,
    tables: Mapping[str, Any],
    enum_types: Optional[Mapping[str, Any]] = None,
) -> Tuple[SchemaModel, SanitizeResult]:
    """Merge tables (and enum types) into the model through sanitize."""
    result = merge_tables(model.tables, tables)
    enums = merge_enum_types(model.enum_types, enum_types or {})
    return SchemaModel(tables=result.tables, enum_types=enums), result


def replace_tables(
    model: SchemaModel,
    tables: Mapping[str, Any],
    enum_types: Optional[Mapping[str, Any]] = None,
) -> Tuple[SchemaModel, SanitizeResult]:
    """
    Whole-model replacement; positions and colors of surviving keys are kept.

    Enum types are replaced too when given, otherwise kept.
    """
    result = replace_table_map(model.tables, tables)
    if enum_types is None:
        enums = dict(model.enum_types)
    else:
        enums = merge_enum_types({}, enum_types)
    return SchemaModel(tables=result.tables, enum_types=enums), result


def clear_schema(model: SchemaModel) -> SchemaModel:
    return SchemaModel()


# ============================================================================
# ENUM OPERATIONS
# ============================================================================

def _map_columns(model: SchemaModel, enum_key: str, update) -> Dict[str, Table]:
    """Apply update(column) to every column typed with enum_key."""
    tables = {}
    for key, table in model.tables.items():
        if any(c.enum_type_name == enum_key for c in table.columns):
            columns = [
                update(c) if c.enum_type_name == enum_key else c
                for c in table.columns
            ]
            table = table.model_copy(update={"columns": columns})
        tables[key] = table
    return tables


def create_enum(
    model: SchemaModel, name: str, values: List[str], schema: Optional[str] = None
) -> Tuple[SchemaModel, str]:
    """Add an enum type; duplicate values raise pydantic's ValidationError."""
    enum = EnumTypeDefinition(name=name, schema=schema, values=list(values))
    if enum.key in model.enum_types:
        raise SchemaEditError(f"Enum type already exists: {enum.key}")
    enums = dict(model.enum_types)
    enums[enum.key] = enum
    return model.model_copy(update={"enum_types": enums}), enum.key


def update_enum(model: SchemaModel, key: str, values: List[str]) -> SchemaModel:
    """Replace an enum's values; cached values on its columns are refreshed."""
    enum = _require_enum(model, key)
    updated = EnumTypeDefinition(name=enum.name, schema=enum.schema_name, values=list(values))
    enums = dict(model.enum_types)
    enums[key] = updated

    def refresh(column: Column) -> Column:
        if column.enum_values is None:
            return column
        return column.model_copy(update={"enum_values": list(values)})

    return SchemaModel(tables=_map_columns(model, key, refresh), enum_types=enums)


def rename_enum(model: SchemaModel, key: str, new_name: str) -> Tuple[SchemaModel, str]:
    """Rename within the enum's schema; columns are re-pointed to the new key."""
    enum = _require_enum(model, key)
    if not new_name or not new_name.strip():
        raise SchemaEditError("Enum name must not be blank")
    renamed = enum.model_copy(update={"name": new_name})
    if renamed.key != key and renamed.key in model.enum_types:
        raise SchemaEditError(f"Enum type already exists: {renamed.key}")

    enums = {k: e for k, e in model.enum_types.items() if k != key}
    enums[renamed.key] = renamed
    tables = _map_columns(
        model, key, lambda c: c.model_copy(update={"enum_type_name": renamed.key})
    )
    return SchemaModel(tables=tables, enum_types=enums), renamed.key


def delete_enum(model: SchemaModel, key: str) -> SchemaModel:
    """
    Remove an enum type.

    Columns that used it stay enum-typed with the values kept inline.
    """
    enum = _require_enum(model, key)
    enums = {k: e for k, e in model.enum_types.items() if k != key}
    tables = _map_columns(
        model,
        key,
        lambda c: c.model_copy(update={
            "enum_type_name": None,
            "enum_values": list(enum.values),
            "format": "enum",
        }),
    )
    logger.debug(f"Deleted enum {key}; values kept inline on its columns")
    return SchemaModel(tables=tables, enum_types=enums)


def table_display_name(key: str) -> str:
    """Bare table name for history labels."""
    return parse_identifier(key)[1] or key


__all__ = [
    "SchemaEditError",
    "HistoryLabels",
    "add_table",
    "rename_table",
    "delete_table",
    "move_table",
    "move_tables",
    "set_table_color",
    "set_table_comment",
    "add_column",
    "update_column",
    "delete_column",
    "reorder_columns",
    "add_tables",
    "replace_tables",
    "clear_schema",
    "create_enum",
    "update_enum",
    "rename_enum",
    "delete_enum",
    "table_display_name",
]
