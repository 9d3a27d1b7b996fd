# ============================================================================
# TABLE MODEL
# ============================================================================
# STATUS: Core model - Table with columns, constraints and indexes
# PURPOSE: Structured form of one CREATE TABLE plus its ALTER/INDEX statements
# CREATED: 19 OCT 2026
# EXPORTS: Position, ForeignKeyReference, TableConstraint, TableIndex, Table
# DEPENDENCIES: pydantic
# ============================================================================
"""
Table Model

A table is keyed in SchemaModel.tables by its schema-qualified key
(`schema.title` or bare `title`). An absent schema is NOT the same as
"public": `users` and `public.users` are different keys.

Constraint storage:
    Column flags (pk / fk / unique) carry single-column facts. A
    TableConstraint is kept only when it carries something the flags cannot:
    a name, more than one column, referential actions, or a CHECK body.
"""

from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from schemasync.contracts import ConstraintType
from schemasync.identifiers import normalize_name, table_key, fk_string
from schemasync.models.column import Column


class Position(BaseModel):
    """Canvas position of a table card."""
    x: float = 0
    y: float = 0


class ForeignKeyReference(BaseModel):
    """Target side of a foreign key."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    schema_name: Optional[str] = Field(default=None, alias="schema")
    table: str
    columns: List[str] = Field(default_factory=list)
    on_delete: Optional[str] = Field(default=None, alias="onDelete")
    on_update: Optional[str] = Field(default=None, alias="onUpdate")

    @property
    def table_key(self) -> str:
        return table_key(self.schema_name, self.table)

    @property
    def has_actions(self) -> bool:
        return bool(self.on_delete or self.on_update)

    def as_fk_string(self) -> Optional[str]:
        """Column-level fk form, only for single-column targets."""
        if len(self.columns) != 1:
            return None
        return fk_string(self.schema_name, self.table, self.columns[0])


class TableConstraint(BaseModel):
    """PRIMARY KEY / FOREIGN KEY / UNIQUE / CHECK at table level."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: ConstraintType
    name: Optional[str] = None
    columns: List[str] = Field(default_factory=list)
    reference: Optional[ForeignKeyReference] = None
    expression: Optional[str] = None

    def column_key(self) -> Tuple[str, ...]:
        """Normalized column list used to dedup against derived constraints."""
        return tuple(normalize_name(c) for c in self.columns)

    def is_folded(self) -> bool:
        """
        True when column flags carry everything this constraint says.

        Such constraints are applied to columns and not stored.
        """
        if self.name:
            return False
        if self.type == ConstraintType.PRIMARY_KEY:
            return bool(self.columns)
        if self.type == ConstraintType.UNIQUE:
            return len(self.columns) == 1
        if self.type == ConstraintType.FOREIGN_KEY:
            return (
                len(self.columns) == 1
                and self.reference is not None
                and len(self.reference.columns) == 1
                and not self.reference.has_actions
            )
        return False


class TableIndex(BaseModel):
    """CREATE [UNIQUE] INDEX definition; columns are raw column/expression text."""

    name: str
    columns: List[str] = Field(default_factory=list)
    unique: bool = False
    using: Optional[str] = None
    where: Optional[str] = None


class Table(BaseModel):
    """
    Table (or view) in the schema model.

    Column order is meaningful: it is both display and DDL order.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str
    schema_name: Optional[str] = Field(default=None, alias="schema")
    columns: List[Column] = Field(default_factory=list)
    constraints: List[TableConstraint] = Field(default_factory=list)
    indexes: List[TableIndex] = Field(default_factory=list)
    position: Optional[Position] = None
    color: Optional[str] = None
    comment: Optional[str] = None
    is_view: bool = False

    @property
    def key(self) -> str:
        return table_key(self.schema_name, self.title)

    def find_column(self, name: str) -> Optional[Column]:
        """Case-insensitive, quote-insensitive column lookup."""
        index = self.column_index(name)
        return self.columns[index] if index >= 0 else None

    def column_index(self, name: str) -> int:
        normalized = normalize_name(name)
        for i, column in enumerate(self.columns):
            if normalize_name(column.title) == normalized:
                return i
        return -1

    def constraints_of(self, constraint_type: ConstraintType) -> List[TableConstraint]:
        return [c for c in self.constraints if c.type == constraint_type]

    def primary_key_columns(self) -> List[str]:
        return [c.title for c in self.columns if c.pk]


__all__ = [
    "Position",
    "ForeignKeyReference",
    "TableConstraint",
    "TableIndex",
    "Table",
]
