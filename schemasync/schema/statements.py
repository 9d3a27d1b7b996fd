# ============================================================================
# DDL STATEMENT NODES
# ============================================================================
# STATUS: Core - Typed statements produced by the parser
# PURPOSE: Decouple "what the SQL said" from "how it changes the model"
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: ColumnDefinition, CreateTable, CreateEnum, AlterTableAddConstraint,
#          CreateIndex, CommentOn, Statement
# DEPENDENCIES: schemasync.models
# ============================================================================
"""
DDL Statement Nodes

The parser turns each recognized statement into one of these nodes; the
model builder then applies them in phases (types and tables first, then
constraints, indexes and comments) so that forward references work.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from schemasync.models import TableConstraint, TableIndex


@dataclass
class ColumnDefinition:
    """One column entry of a CREATE TABLE body, before enum resolution."""
    name: str
    type_text: str
    type_name: Optional[Tuple[Optional[str], str]] = None  # bare (schema, name) when the type is a plain identifier
    not_null: bool = False
    primary_key: bool = False
    unique: bool = False
    default: Optional[str] = None
    fk: Optional[str] = None


@dataclass
class CreateTable:
    schema: Optional[str]
    name: str
    columns: List[ColumnDefinition] = field(default_factory=list)
    constraints: List[TableConstraint] = field(default_factory=list)


@dataclass
class CreateEnum:
    schema: Optional[str]
    name: str
    values: List[str] = field(default_factory=list)


@dataclass
class AlterTableAddConstraint:
    schema: Optional[str]
    table: str
    constraint: TableConstraint


@dataclass
class CreateIndex:
    schema: Optional[str]
    table: str
    index: TableIndex


@dataclass
class CommentOn:
    """COMMENT ON TABLE / COLUMN. column is None for table comments."""
    schema: Optional[str]
    table: str
    column: Optional[str]
    text: Optional[str]


Statement = Union[CreateTable, CreateEnum, AlterTableAddConstraint, CreateIndex, CommentOn]


__all__ = [
    "ColumnDefinition",
    "CreateTable",
    "CreateEnum",
    "AlterTableAddConstraint",
    "CreateIndex",
    "CommentOn",
    "Statement",
]
