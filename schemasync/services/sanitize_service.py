# ============================================================================
# SANITIZE SERVICE
# ============================================================================
# STATUS: Service - Normalization of externally supplied table maps
# PURPOSE: Drop invalid tables/columns and merge incoming tables into state
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: SanitizeResult, sanitize_tables, merge_tables, replace_tables,
#          merge_enum_types
# DEPENDENCIES: pydantic
# ============================================================================
"""
Sanitize Service

Every table map that enters the engine from outside (parsed SQL, an AI
suggestion, a persisted cache) goes through sanitize_tables before it
becomes state. Invalid entries are dropped and counted, never raised:

    - a table whose key is empty or whitespace
    - a column that is not an object, has a blank title, fails validation,
      or repeats an earlier title in the same table
    - a table left with no columns after filtering, or failing validation

Sanitizing is idempotent: a sanitized map passes through unchanged.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ValidationError

from schemasync.identifiers import normalize_name, parse_identifier
from schemasync.models import Column, EnumTypeDefinition, Table

logger = logging.getLogger(__name__)


@dataclass
class SanitizeResult:
    """Cleaned table map plus drop counts for diagnostics."""
    tables: Dict[str, Table] = field(default_factory=dict)
    removed_tables: int = 0
    removed_columns: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.removed_tables or self.removed_columns)


def _as_dict(value: Any) -> Optional[Dict[str, Any]]:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    if isinstance(value, Mapping):
        return dict(value)
    return None


def _clean_columns(raw_columns: Any) -> Tuple[List[Column], int]:
    """Valid, distinct columns plus the number dropped."""
    if not isinstance(raw_columns, list):
        return [], 0

    columns: List[Column] = []
    seen = set()
    removed = 0
    for raw in raw_columns:
        data = _as_dict(raw)
        title = data.get("title") if data else None
        if not isinstance(title, str) or not title.strip():
            removed += 1
            continue
        folded = normalize_name(title)
        if folded in seen:
            removed += 1
            continue
        try:
            column = raw if isinstance(raw, Column) else Column.model_validate(data)
        except ValidationError as e:
            logger.debug(f"Dropping invalid column '{title}': {e.error_count()} errors")
            removed += 1
            continue
        seen.add(folded)
        columns.append(column)
    return columns, removed


def sanitize_tables(tables: Mapping[str, Any]) -> SanitizeResult:
    """
    Drop invalid tables and columns. Never raises on bad entries.

    Args:
        tables: Table key -> Table (or raw dict in persisted/camelCase form)

    Returns:
        SanitizeResult with the cleaned map and drop counts
    """
    result = SanitizeResult()

    for key, value in (tables or {}).items():
        if not isinstance(key, str) or not key.strip():
            result.removed_tables += 1
            continue

        data = _as_dict(value)
        if data is None:
            result.removed_tables += 1
            continue

        columns, removed = _clean_columns(data.get("columns"))
        result.removed_columns += removed
        if not columns:
            result.removed_tables += 1
            continue

        title = data.get("title")
        if not isinstance(title, str) or not title.strip():
            data["title"] = parse_identifier(key)[1] or key
        data["columns"] = columns

        try:
            result.tables[key] = Table.model_validate(data)
        except ValidationError as e:
            logger.debug(f"Dropping invalid table '{key}': {e.error_count()} errors")
            result.removed_tables += 1
            result.removed_columns += len(columns)

    if result.changed:
        logger.info(
            f"Sanitized tables: removed {result.removed_tables} tables, "
            f"{result.removed_columns} columns"
        )
    return result


def _keep_layout(incoming: Table, existing: Optional[Table]) -> Table:
    """Carry position and color over when the incoming table has none."""
    if existing is None:
        return incoming
    return incoming.model_copy(update={
        "position": incoming.position or existing.position,
        "color": incoming.color or existing.color,
    })


def merge_tables(current: Mapping[str, Table], incoming: Mapping[str, Any]) -> SanitizeResult:
    """
    Overlay incoming tables on the current map, then sanitize.

    Incoming entries replace same-key tables but inherit their layout.
    """
    cleaned = sanitize_tables(incoming)
    merged = {key: table for key, table in current.items()}
    for key, table in cleaned.tables.items():
        merged[key] = _keep_layout(table, current.get(key))
    result = sanitize_tables(merged)
    result.removed_tables += cleaned.removed_tables
    result.removed_columns += cleaned.removed_columns
    return result


def replace_tables(current: Mapping[str, Table], incoming: Mapping[str, Any]) -> SanitizeResult:
    """
    Whole-model replacement; surviving keys keep their layout.
    """
    result = sanitize_tables(incoming)
    result.tables = {
        key: _keep_layout(table, current.get(key))
        for key, table in result.tables.items()
    }
    return result


def merge_enum_types(
    current: Mapping[str, EnumTypeDefinition],
    incoming: Mapping[str, Any],
) -> Dict[str, EnumTypeDefinition]:
    """Overlay incoming enum types; invalid incoming entries are dropped."""
    merged = dict(current)
    for key, value in (incoming or {}).items():
        try:
            enum = value if isinstance(value, EnumTypeDefinition) else EnumTypeDefinition.model_validate(value)
        except ValidationError as e:
            logger.debug(f"Dropping invalid enum type '{key}': {e.error_count()} errors")
            continue
        merged[key] = enum
    return merged


__all__ = [
    "SanitizeResult",
    "sanitize_tables",
    "merge_tables",
    "replace_tables",
    "merge_enum_types",
]
