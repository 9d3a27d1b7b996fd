# ============================================================================
# DDL UTILITIES
# ============================================================================
# STATUS: Core - Type normalization and psycopg.sql statement builders
# PURPOSE: Shared type aliasing for the parser, composable DDL for the generator
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: TYPE_ALIASES, normalize_type, determine_category, render_type,
#          qualified_name, TableBuilder, ConstraintBuilder, EnumBuilder,
#          IndexBuilder, CommentBuilder, render
# DEPENDENCIES: psycopg
# ============================================================================
"""
DDL Utilities - Shared SQL Generation Patterns.

Type handling:
    normalize_type('character varying(255)')    -> 'varchar(255)'
    normalize_type('TIMESTAMP WITH TIME ZONE')  -> 'timestamptz'
    normalize_type('integer[]')                 -> 'int4[]'
    determine_category('int4[]')                -> ColumnCategory.ARRAY

normalize_type is idempotent over its own upper-cased output, which is what
the generator emits, so parse -> generate -> parse is stable.

Builders return psycopg.sql.Composed objects. Identifiers go through
sql.Identifier; raw expressions the model already holds as SQL text (DEFAULT,
CHECK, index expressions, WHERE) are passed through sql.SQL unchanged.

Usage:
    from schemasync.schema.ddl_utils import IndexBuilder, render

    stmt = IndexBuilder.create("public", "users", index)
    print(render(stmt))
"""

import re
from typing import List, Optional, Sequence

from psycopg import sql

from schemasync.contracts import ColumnCategory, ConstraintType
from schemasync.identifiers import quote_literal, unquote_identifier
from schemasync.models import TableConstraint, TableIndex


# ============================================================================
# TYPE MAPPING
# ============================================================================

TYPE_ALIASES = {
    # Integers
    'integer': 'int4',
    'int': 'int4',
    'int4': 'int4',
    'smallint': 'int2',
    'int2': 'int2',
    'bigint': 'int8',
    'int8': 'int8',

    # Floating point
    'real': 'float4',
    'float4': 'float4',
    'double precision': 'float8',
    'float': 'float8',
    'float8': 'float8',
    'decimal': 'numeric',

    # Text
    'character varying': 'varchar',
    'varchar': 'varchar',
    'character': 'char',

    # Boolean
    'boolean': 'bool',
    'bool': 'bool',

    # Date/time
    'timestamp without time zone': 'timestamp',
    'timestamp with time zone': 'timestamptz',
    'time without time zone': 'time',
    'time with time zone': 'timetz',
}

NUMBER_TYPES = {
    'int2', 'int4', 'int8', 'serial', 'serial2', 'serial4', 'serial8',
    'smallserial', 'bigserial', 'numeric', 'float4', 'float8', 'money', 'oid',
}
BOOLEAN_TYPES = {'bool'}
OBJECT_TYPES = {'json', 'jsonb'}

_ARRAY_SUFFIX_RE = re.compile(r"((?:\[\d*\])+)$")
_MODIFIER_RE = re.compile(r"\([^)]*\)")


def normalize_type(type_text: str) -> str:
    """
    Canonical lower-case type token, modifiers and array suffix kept.

    Types containing quoted identifiers keep their case.
    """
    text = " ".join(type_text.split())
    if '"' not in text:
        text = text.lower()
    text = re.sub(r"\s*\(\s*", "(", text)
    text = re.sub(r"\s*\)", ")", text)
    text = re.sub(r"\s*,\s*", ",", text)
    text = re.sub(r"\s*\[", "[", text)
    text = re.sub(r"\[\s*(\d*)\s*\]", r"[\1]", text)
    text = re.sub(r"\s*\.\s*", ".", text)

    # "integer array" is the SQL-standard spelling of integer[]
    if text.endswith(" array"):
        text = text[: -len(" array")] + "[]"

    array_suffix = ""
    match = _ARRAY_SUFFIX_RE.search(text)
    if match:
        array_suffix = match.group(1)
        text = text[: match.start()]

    modifier = ""
    match = _MODIFIER_RE.search(text)
    if match:
        modifier = match.group(0)
        text = (text[: match.start()] + " " + text[match.end():]).strip()
        text = " ".join(text.split())

    base = TYPE_ALIASES.get(text, text)
    if base == 'float8' and text == 'float':
        # float(p) is a precision hint, not a length; Postgres maps it to float4/float8
        modifier = ""
    return f"{base}{modifier}{array_suffix}"


def split_type(format_text: str) -> tuple:
    """Split a normalized type into (base, modifier, array_suffix)."""
    array_suffix = ""
    match = _ARRAY_SUFFIX_RE.search(format_text)
    if match:
        array_suffix = match.group(1)
        format_text = format_text[: match.start()]
    modifier = ""
    match = _MODIFIER_RE.search(format_text)
    if match:
        modifier = match.group(0)
        format_text = format_text[: match.start()] + format_text[match.end():]
    return format_text.strip(), modifier, array_suffix


def determine_category(format_text: str) -> ColumnCategory:
    """Coarse UI category for a normalized type."""
    base, _, array_suffix = split_type(format_text)
    if array_suffix:
        return ColumnCategory.ARRAY
    if base in NUMBER_TYPES:
        return ColumnCategory.NUMBER
    if base in BOOLEAN_TYPES:
        return ColumnCategory.BOOLEAN
    if base in OBJECT_TYPES:
        return ColumnCategory.OBJECT
    return ColumnCategory.STRING


def render_type(format_text: str) -> str:
    """Type text as emitted in DDL: upper-cased unless it holds quoted names."""
    if '"' in format_text:
        return format_text
    return format_text.upper()


# ============================================================================
# NAMES
# ============================================================================

def qualified_name(schema: Optional[str], name: str) -> sql.Identifier:
    """"schema"."name", or just "name" when unqualified."""
    if schema:
        return sql.Identifier(unquote_identifier(schema), unquote_identifier(name))
    return sql.Identifier(unquote_identifier(name))


def _identifier_list(columns: Sequence[str]) -> sql.Composed:
    return sql.SQL(", ").join(sql.Identifier(unquote_identifier(c)) for c in columns)


def render(statement: sql.Composable) -> str:
    """Render a composed statement without a connection."""
    return statement.as_string()


# ============================================================================
# TABLE BUILDER
# ============================================================================

class TableBuilder:
    """Builder for CREATE TABLE statements."""

    @staticmethod
    def column(
        name: str,
        type_sql: sql.Composable,
        not_null: bool = False,
        default: Optional[str] = None,
    ) -> sql.Composed:
        """Single column line: "name" TYPE [NOT NULL] [DEFAULT expr]."""
        parts: List[sql.Composable] = [sql.Identifier(unquote_identifier(name)), type_sql]
        if not_null:
            parts.append(sql.SQL("NOT NULL"))
        if default is not None:
            parts.append(sql.SQL("DEFAULT {}").format(sql.SQL(default)))
        return sql.SQL(" ").join(parts)

    @staticmethod
    def create(
        schema: Optional[str],
        table: str,
        column_lines: Sequence[sql.Composable],
    ) -> sql.Composed:
        body = sql.SQL(",\n").join(
            sql.SQL("  {}").format(line) for line in column_lines
        )
        return sql.SQL("CREATE TABLE {name} (\n{body}\n);").format(
            name=qualified_name(schema, table),
            body=body,
        )


# ============================================================================
# CONSTRAINT BUILDER
# ============================================================================

class ConstraintBuilder:
    """Builder for ALTER TABLE ... ADD [CONSTRAINT name] <body> statements."""

    @staticmethod
    def body(constraint: TableConstraint) -> sql.Composed:
        if constraint.type == ConstraintType.PRIMARY_KEY:
            return sql.SQL("PRIMARY KEY ({})").format(_identifier_list(constraint.columns))

        if constraint.type == ConstraintType.UNIQUE:
            return sql.SQL("UNIQUE ({})").format(_identifier_list(constraint.columns))

        if constraint.type == ConstraintType.CHECK:
            return sql.SQL("CHECK ({})").format(sql.SQL(constraint.expression or ""))

        reference = constraint.reference
        stmt = sql.SQL("FOREIGN KEY ({columns}) REFERENCES {target} ({target_columns})").format(
            columns=_identifier_list(constraint.columns),
            target=qualified_name(reference.schema_name, reference.table),
            target_columns=_identifier_list(reference.columns),
        )
        if reference.on_delete:
            stmt = sql.SQL("{} ON DELETE {}").format(stmt, sql.SQL(reference.on_delete.upper()))
        if reference.on_update:
            stmt = sql.SQL("{} ON UPDATE {}").format(stmt, sql.SQL(reference.on_update.upper()))
        return stmt

    @staticmethod
    def add(schema: Optional[str], table: str, constraint: TableConstraint) -> sql.Composed:
        if constraint.name:
            return sql.SQL("ALTER TABLE {table} ADD CONSTRAINT {name} {body};").format(
                table=qualified_name(schema, table),
                name=sql.Identifier(unquote_identifier(constraint.name)),
                body=ConstraintBuilder.body(constraint),
            )
        return sql.SQL("ALTER TABLE {table} ADD {body};").format(
            table=qualified_name(schema, table),
            body=ConstraintBuilder.body(constraint),
        )


# ============================================================================
# ENUM BUILDER
# ============================================================================

class EnumBuilder:
    """Builder for CREATE TYPE ... AS ENUM."""

    @staticmethod
    def create(schema: Optional[str], name: str, values: Sequence[str]) -> sql.Composed:
        # Literals are quoted by hand: sql.Literal may emit E'' strings
        literals = sql.SQL(", ").join(sql.SQL(quote_literal(v)) for v in values)
        return sql.SQL("CREATE TYPE {name} AS ENUM ({values});").format(
            name=qualified_name(schema, name),
            values=literals,
        )


# ============================================================================
# INDEX BUILDER
# ============================================================================

class IndexBuilder:
    """
    Builder for CREATE [UNIQUE] INDEX.

    Index columns are stored as raw text (they may be expressions such as
    lower(email) or "created_at" DESC), so they are emitted verbatim.
    """

    @staticmethod
    def create(schema: Optional[str], table: str, index: TableIndex) -> sql.Composed:
        stmt = sql.SQL("CREATE {unique}INDEX {name} ON {table}").format(
            unique=sql.SQL("UNIQUE " if index.unique else ""),
            name=sql.Identifier(unquote_identifier(index.name)),
            table=qualified_name(schema, table),
        )
        if index.using:
            stmt = sql.SQL("{} USING {}").format(stmt, sql.SQL(index.using.upper()))
        stmt = sql.SQL("{} ({})").format(
            stmt, sql.SQL(", ").join(sql.SQL(c) for c in index.columns)
        )
        if index.where:
            stmt = sql.SQL("{} WHERE {}").format(stmt, sql.SQL(index.where))
        return sql.SQL("{};").format(stmt)


# ============================================================================
# COMMENT BUILDER
# ============================================================================

class CommentBuilder:
    """
    Builder for PostgreSQL COMMENT statements.
    """

    @staticmethod
    def table(schema: Optional[str], table: str, comment: str) -> sql.Composed:
        """Add comment to table."""
        return sql.SQL("COMMENT ON TABLE {} IS {};").format(
            qualified_name(schema, table),
            sql.SQL(quote_literal(comment)),
        )

    @staticmethod
    def column(schema: Optional[str], table: str, column: str, comment: str) -> sql.Composed:
        """Add comment to column."""
        return sql.SQL("COMMENT ON COLUMN {}.{} IS {};").format(
            qualified_name(schema, table),
            sql.Identifier(unquote_identifier(column)),
            sql.SQL(quote_literal(comment)),
        )


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    'TYPE_ALIASES',
    'normalize_type',
    'split_type',
    'determine_category',
    'render_type',
    'qualified_name',
    'render',
    'TableBuilder',
    'ConstraintBuilder',
    'EnumBuilder',
    'IndexBuilder',
    'CommentBuilder',
]
