# ============================================================================
# SCHEMA TO SQL GENERATOR
# ============================================================================
# STATUS: Core - Canonical DDL from a SchemaModel
# PURPOSE: Deterministic CREATE TYPE / CREATE TABLE / ALTER TABLE / CREATE
#          INDEX / COMMENT ON text for display, export and round-trip tests
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: SchemaSQLGenerator, generate_schema_sql, generate_table_sql
# DEPENDENCIES: psycopg
# ============================================================================
"""
Schema Model to PostgreSQL DDL Generator.

The SchemaModel is the single source of truth; this module only renders it.

Output order (full schema):
    -- Enum Types      sorted by (schema, name)
    -- Tables          sorted by table key
    -- Constraints     per table: primary key, foreign keys, unique, check
    -- Indexes         per table, sorted by index name
    -- Comments        per table: table comment, then column comments

Derived constraints:
    Column flags (pk / fk / unique) are rendered as unnamed ALTER TABLE
    statements unless an explicit constraint already covers the same
    normalized column set. Any explicit primary key suppresses the derived
    one.

Usage:
    generator = SchemaSQLGenerator(model)
    text = generator.generate_all()
    single = generator.generate_for_table("public.users")
"""

import logging
from typing import Dict, List, Optional, Tuple

from psycopg import sql

from schemasync.config import GeneratorDefaults, get_defaults
from schemasync.contracts import ConstraintType
from schemasync.identifiers import normalize_name, parse_fk_string, parse_identifier
from schemasync.models import (
    Column,
    EnumTypeDefinition,
    ForeignKeyReference,
    SchemaModel,
    Table,
    TableConstraint,
)
from schemasync.schema.ddl_utils import (
    CommentBuilder,
    ConstraintBuilder,
    EnumBuilder,
    IndexBuilder,
    TableBuilder,
    qualified_name,
    render,
    render_type,
)

# Setup logger
logger = logging.getLogger(__name__)


class SchemaSQLGenerator:
    """
    Render a SchemaModel as canonical PostgreSQL DDL.

    The generator never mutates the model it is given.
    """

    def __init__(self, model: SchemaModel, defaults: Optional[GeneratorDefaults] = None):
        self.model = model
        self.defaults = defaults or get_defaults().generator
        self.enum_types = self._merge_enum_definitions()

    # =========================================================================
    # IDENTITY
    # =========================================================================

    @staticmethod
    def table_identity(key: str, table: Table) -> Tuple[Optional[str], str]:
        """(schema, name) for a table, falling back to the parts of its key."""
        key_schema, key_name = parse_identifier(key)
        return table.schema_name or key_schema, table.title or key_name

    def _merge_enum_definitions(self) -> Dict[str, EnumTypeDefinition]:
        """Model enums plus enums known only from columns' inline values."""
        merged = dict(self.model.enum_types)
        for table in self.model.tables.values():
            for column in table.columns:
                if column.enum_type_name and column.enum_values and column.enum_type_name not in merged:
                    schema, name = parse_identifier(column.enum_type_name)
                    merged[column.enum_type_name] = EnumTypeDefinition(
                        name=name, schema=schema, values=column.enum_values,
                    )
        return merged

    def _sorted_enums(self, keys=None) -> List[EnumTypeDefinition]:
        enums = [e for k, e in self.enum_types.items() if keys is None or k in keys]
        return sorted(enums, key=lambda e: (e.schema_name or "", e.name))

    def _sorted_tables(self) -> List[Tuple[str, Table]]:
        return sorted(self.model.tables.items(), key=lambda item: item[0])

    # =========================================================================
    # TYPE CONVERSION
    # =========================================================================

    def column_type(self, column: Column, table_key: str = "") -> sql.Composable:
        """Enum columns render their qualified type name, others their format."""
        if column.enum_type_name:
            enum = self.enum_types.get(column.enum_type_name)
            if enum is not None:
                return qualified_name(enum.schema_name, enum.name)
            schema, name = parse_identifier(column.enum_type_name)
            return qualified_name(schema, name)

        if column.format == "enum":
            logger.warning(
                f"Column {table_key}.{column.title} is enum-typed without a type name; "
                f"rendering as {self.defaults.fallback_type}"
            )
            return sql.SQL(render_type(self.defaults.fallback_type))

        return sql.SQL(render_type(column.format or self.defaults.fallback_type))

    # =========================================================================
    # STATEMENT GENERATION
    # =========================================================================

    def generate_enum(self, enum: EnumTypeDefinition) -> sql.Composed:
        return EnumBuilder.create(enum.schema_name, enum.name, enum.values)

    def generate_table(self, key: str, table: Table) -> sql.Composed:
        schema, name = self.table_identity(key, table)
        lines = [
            TableBuilder.column(
                column.title,
                self.column_type(column, key),
                not_null=column.required,
                default=column.default,
            )
            for column in table.columns
        ]
        return TableBuilder.create(schema, name, lines)

    def table_constraints(self, table: Table) -> List[TableConstraint]:
        """
        Explicit constraints plus those derived from column flags.

        Sorted primary key, foreign keys, unique, check; explicit before
        derived within each kind.
        """
        explicit = list(table.constraints)
        derived: List[TableConstraint] = []

        if not table.constraints_of(ConstraintType.PRIMARY_KEY):
            pk_columns = table.primary_key_columns()
            if pk_columns:
                derived.append(TableConstraint(type=ConstraintType.PRIMARY_KEY, columns=pk_columns))

        fk_keys = {c.column_key() for c in table.constraints_of(ConstraintType.FOREIGN_KEY)}
        unique_keys = {c.column_key() for c in table.constraints_of(ConstraintType.UNIQUE)}

        for column in table.columns:
            column_key = (normalize_name(column.title),)
            if column.fk and column_key not in fk_keys:
                target = parse_fk_string(column.fk)
                if target is None:
                    logger.debug(f"Ignoring unparseable fk '{column.fk}' on {table.key}.{column.title}")
                else:
                    target_schema, target_table, target_column = target
                    derived.append(TableConstraint(
                        type=ConstraintType.FOREIGN_KEY,
                        columns=[column.title],
                        reference=ForeignKeyReference(
                            schema=target_schema, table=target_table, columns=[target_column],
                        ),
                    ))
            if column.unique and column_key not in unique_keys:
                derived.append(TableConstraint(type=ConstraintType.UNIQUE, columns=[column.title]))

        ordered = [c for c in explicit if self._renderable(table, c)] + derived
        return sorted(ordered, key=lambda c: c.type.sort_order)

    @staticmethod
    def _renderable(table: Table, constraint: TableConstraint) -> bool:
        if constraint.type == ConstraintType.CHECK:
            return bool(constraint.expression)
        if not constraint.columns:
            logger.debug(f"Skipping {constraint.type.value} constraint without columns on {table.key}")
            return False
        if constraint.type == ConstraintType.FOREIGN_KEY:
            reference = constraint.reference
            return reference is not None and bool(reference.columns)
        return True

    def generate_constraints(self, key: str, table: Table) -> List[sql.Composed]:
        schema, name = self.table_identity(key, table)
        return [ConstraintBuilder.add(schema, name, c) for c in self.table_constraints(table)]

    def generate_indexes(self, key: str, table: Table) -> List[sql.Composed]:
        schema, name = self.table_identity(key, table)
        return [
            IndexBuilder.create(schema, name, index)
            for index in sorted(table.indexes, key=lambda i: i.name)
            if index.columns
        ]

    def generate_comments(self, key: str, table: Table) -> List[sql.Composed]:
        schema, name = self.table_identity(key, table)
        statements = []
        if table.comment:
            statements.append(CommentBuilder.table(schema, name, table.comment))
        for column in table.columns:
            if column.comment:
                statements.append(CommentBuilder.column(schema, name, column.title, column.comment))
        return statements

    # =========================================================================
    # COMPLETE SCHEMA GENERATION
    # =========================================================================

    def generate_all(self) -> str:
        """Full-schema DDL, sectioned and blank-line separated."""
        tables = self._sorted_tables()
        sections = [
            (self.defaults.enum_section, [self.generate_enum(e) for e in self._sorted_enums()]),
            (self.defaults.table_section, [self.generate_table(k, t) for k, t in tables]),
            (self.defaults.constraint_section, [s for k, t in tables for s in self.generate_constraints(k, t)]),
            (self.defaults.index_section, [s for k, t in tables for s in self.generate_indexes(k, t)]),
            (self.defaults.comment_section, [s for k, t in tables for s in self.generate_comments(k, t)]),
        ]

        blocks = []
        for header, statements in sections:
            if statements:
                blocks.append(header + "\n" + "\n\n".join(render(s) for s in statements))

        logger.debug(
            f"Generated SQL for {len(tables)} tables and {len(self.enum_types)} enum types"
        )
        return "\n\n".join(blocks).strip()

    def generate_for_table(self, key: str) -> str:
        """DDL for one table, preceded by the enum types it uses."""
        table = self.model.tables.get(key)
        if table is None:
            return self.defaults.missing_table_message

        lines: List[str] = []
        used = {c.enum_type_name for c in table.columns if c.enum_type_name}
        enums = self._sorted_enums(used)
        if enums:
            lines.append(self.defaults.enum_in_use_section)
            lines.extend(render(self.generate_enum(e)) for e in enums)
            lines.append("")

        lines.append(render(self.generate_table(key, table)))
        for group in (
            self.generate_constraints(key, table),
            self.generate_indexes(key, table),
            self.generate_comments(key, table),
        ):
            if group:
                lines.append("")
                lines.extend(render(s) for s in group)

        return "\n".join(lines)


# ============================================================================
# MODULE API
# ============================================================================

def generate_schema_sql(model: SchemaModel, table_key: Optional[str] = None) -> str:
    """Full-schema DDL, or single-table DDL when table_key is given."""
    generator = SchemaSQLGenerator(model)
    if table_key is not None:
        return generator.generate_for_table(table_key)
    return generator.generate_all()


def generate_table_sql(model: SchemaModel, table_key: str) -> str:
    return SchemaSQLGenerator(model).generate_for_table(table_key)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = ['SchemaSQLGenerator', 'generate_schema_sql', 'generate_table_sql']
