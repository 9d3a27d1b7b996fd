# ============================================================================
# RELATIONSHIP SERVICE
# ============================================================================
# STATUS: Service - Foreign-key edges between tables
# PURPOSE: Derive canvas edges from column fk strings, report dangling
#          references, prune stale relationship-type overrides
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: RelationshipEdge, DanglingReference, derive_edges,
#          find_dangling_references, prune_edge_relationships
# DEPENDENCIES: pydantic
# ============================================================================
"""
Relationship Service

Edges come from column-level `fk` strings only. Multi-column foreign keys
live in Table.constraints and never produce edges, since no single column
carries them.

An fk without a schema part resolves against the source table's schema:
`users.id` on a table in schema `app` targets `app.users`, and on a
schema-less table targets `users`.

Edge ids have the form `{title}.{column}-{target_key}.{target_column}`;
edge_relationships maps those ids to a RelationshipType override
(default one-to-many).
"""

import logging
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from schemasync.contracts import ConstraintType, RelationshipType
from schemasync.identifiers import parse_fk_string, table_key
from schemasync.models import Table

logger = logging.getLogger(__name__)


class RelationshipEdge(BaseModel):
    """Directed edge from a referencing column to its target column."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    source: str = Field(..., description="Source table key")
    target: str = Field(..., description="Target table key")
    source_column: str = Field(..., alias="sourceColumn")
    target_column: str = Field(..., alias="targetColumn")
    source_index: int = Field(..., alias="sourceIndex")
    target_index: int = Field(..., alias="targetIndex")
    relationship_type: RelationshipType = Field(
        default=RelationshipType.ONE_TO_MANY, alias="relationshipType"
    )


class DanglingReference(BaseModel):
    """A reference whose target table or column does not exist."""
    table_key: str
    column: Optional[str] = None
    reference: str
    reason: str


def edge_id(source_title: str, source_column: str, target_key: str, target_column: str) -> str:
    return f"{source_title}.{source_column}-{target_key}.{target_column}"


def _resolve_target(table: Table, fk: str):
    """(target key, target column) for an fk string, or None if unparseable."""
    parsed = parse_fk_string(fk)
    if parsed is None:
        return None
    schema, target_table, target_column = parsed
    return table_key(schema or table.schema_name, target_table), target_column


def derive_edges(
    tables: Mapping[str, Table],
    edge_relationships: Optional[Mapping[str, RelationshipType]] = None,
) -> List[RelationshipEdge]:
    """
    One edge per resolvable column fk, in table then column order.

    Unresolvable targets are skipped and logged.
    """
    overrides = edge_relationships or {}
    edges: List[RelationshipEdge] = []

    for key, table in tables.items():
        for source_index, column in enumerate(table.columns):
            if not column.fk:
                continue
            target = _resolve_target(table, column.fk)
            if target is None:
                logger.warning(f"Invalid fk format on {key}.{column.title}: {column.fk}")
                continue
            target_key, target_column = target

            target_table = tables.get(target_key)
            target_index = target_table.column_index(target_column) if target_table else -1
            if target_index < 0:
                logger.debug(f"Target column {target_column} not found in table {target_key}")
                continue

            identifier = edge_id(table.title, column.title, target_key, target_column)
            edges.append(RelationshipEdge(
                id=identifier,
                source=key,
                target=target_key,
                source_column=column.title,
                target_column=target_table.columns[target_index].title,
                source_index=source_index,
                target_index=target_index,
                relationship_type=overrides.get(identifier, RelationshipType.ONE_TO_MANY),
            ))

    return edges


def find_dangling_references(tables: Mapping[str, Table]) -> List[DanglingReference]:
    """
    Column fk strings and foreign-key constraints that do not resolve.

    Nothing is repaired; callers decide what to do.
    """
    dangling: List[DanglingReference] = []

    for key, table in tables.items():
        for column in table.columns:
            if not column.fk:
                continue
            target = _resolve_target(table, column.fk)
            if target is None:
                dangling.append(DanglingReference(
                    table_key=key, column=column.title, reference=column.fk,
                    reason="unparseable reference",
                ))
                continue
            target_key, target_column = target
            target_table = tables.get(target_key)
            if target_table is None:
                reason = f"table {target_key} not found"
            elif target_table.find_column(target_column) is None:
                reason = f"column {target_column} not found in {target_key}"
            else:
                continue
            dangling.append(DanglingReference(
                table_key=key, column=column.title, reference=column.fk, reason=reason,
            ))

        for constraint in table.constraints_of(ConstraintType.FOREIGN_KEY):
            reference = constraint.reference
            if reference is None:
                continue
            target_table = tables.get(reference.table_key)
            missing = []
            if target_table is None:
                reason = f"table {reference.table_key} not found"
            else:
                missing = [c for c in reference.columns if target_table.find_column(c) is None]
                if not missing:
                    continue
                reason = f"columns {missing} not found in {reference.table_key}"
            dangling.append(DanglingReference(
                table_key=key,
                reference=f"{reference.table_key}({', '.join(reference.columns)})",
                reason=reason,
            ))

    return dangling


def prune_edge_relationships(
    edge_relationships: Mapping[str, RelationshipType],
    edges: List[RelationshipEdge],
) -> Dict[str, RelationshipType]:
    """Drop overrides for edges that no longer exist."""
    live = {edge.id for edge in edges}
    pruned = {k: v for k, v in edge_relationships.items() if k in live}
    if len(pruned) != len(edge_relationships):
        logger.debug(f"Pruned {len(edge_relationships) - len(pruned)} stale edge relationships")
    return pruned


__all__ = [
    "RelationshipEdge",
    "DanglingReference",
    "edge_id",
    "derive_edges",
    "find_dangling_references",
    "prune_edge_relationships",
]
