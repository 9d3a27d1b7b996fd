# ============================================================================
# SQL GENERATOR TESTS
# ============================================================================
# STATUS: Tests - SchemaModel to canonical DDL
# PURPOSE: Verify sectioning, derived constraints, enum rendering and
#          single-table output
# CREATED: 19 OCT 2026
# ============================================================================
"""
SQL Generator Tests

Run with:
    pytest tests/test_sql_generator.py -v
"""

import logging

import pytest

from schemasync.config import reset_defaults
from schemasync.contracts import ConstraintType
from schemasync.models import (
    Column,
    EnumTypeDefinition,
    SchemaModel,
    Table,
    TableConstraint,
    TableIndex,
)
from schemasync.schema import (
    SchemaSQLGenerator,
    generate_schema_sql,
    generate_table_sql,
    parse_sql,
)


SAMPLE_SQL = """
CREATE TYPE public.status AS ENUM ('active', 'banned');
CREATE TABLE public.users (
    id uuid PRIMARY KEY DEFAULT gen_random_uuid(),
    email varchar(255) NOT NULL UNIQUE,
    state status NOT NULL DEFAULT 'active'
);
CREATE TABLE public.posts (
    id int4 PRIMARY KEY,
    user_id uuid REFERENCES public.users(id) ON DELETE CASCADE,
    title text
);
CREATE INDEX posts_user_idx ON public.posts (user_id);
COMMENT ON TABLE public.users IS 'People';
"""


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def sample_model():
    return parse_sql(SAMPLE_SQL)


def table_of(*columns, **kwargs):
    return Table(title=kwargs.pop("title", "t"), columns=list(columns), **kwargs)


# ============================================================================
# FULL SCHEMA
# ============================================================================

class TestGenerateAll:

    def test_sectioned_output(self, sample_model):
        assert generate_schema_sql(sample_model) == (
            '-- Enum Types\n'
            'CREATE TYPE "public"."status" AS ENUM (\'active\', \'banned\');\n'
            '\n'
            '-- Tables\n'
            'CREATE TABLE "public"."posts" (\n'
            '  "id" INT4 NOT NULL,\n'
            '  "user_id" UUID,\n'
            '  "title" TEXT\n'
            ');\n'
            '\n'
            'CREATE TABLE "public"."users" (\n'
            '  "id" UUID NOT NULL DEFAULT gen_random_uuid(),\n'
            '  "email" VARCHAR(255) NOT NULL,\n'
            '  "state" "public"."status" NOT NULL DEFAULT \'active\'\n'
            ');\n'
            '\n'
            '-- Constraints\n'
            'ALTER TABLE "public"."posts" ADD PRIMARY KEY ("id");\n'
            '\n'
            'ALTER TABLE "public"."posts" ADD FOREIGN KEY ("user_id") '
            'REFERENCES "public"."users" ("id") ON DELETE CASCADE;\n'
            '\n'
            'ALTER TABLE "public"."users" ADD PRIMARY KEY ("id");\n'
            '\n'
            'ALTER TABLE "public"."users" ADD UNIQUE ("email");\n'
            '\n'
            '-- Indexes\n'
            'CREATE INDEX "posts_user_idx" ON "public"."posts" (user_id);\n'
            '\n'
            '-- Comments\n'
            'COMMENT ON TABLE "public"."users" IS \'People\';'
        )

    def test_empty_model(self):
        assert generate_schema_sql(SchemaModel()) == ""

    def test_sections_appear_in_dependency_order(self, sample_model):
        text = generate_schema_sql(sample_model)
        positions = [text.index(h) for h in ("-- Enum Types", "-- Tables", "-- Constraints", "-- Indexes")]
        assert positions == sorted(positions)

    def test_model_not_mutated(self, sample_model):
        before = sample_model.model_dump()
        generate_schema_sql(sample_model)
        assert sample_model.model_dump() == before


# ============================================================================
# DERIVED CONSTRAINTS
# ============================================================================

class TestDerivedConstraints:

    def test_explicit_primary_key_suppresses_derived(self):
        table = table_of(
            Column(title="id", format="int4", type="number", pk=True),
            constraints=[TableConstraint(type=ConstraintType.PRIMARY_KEY, name="t_pkey", columns=["id"])],
        )
        generator = SchemaSQLGenerator(SchemaModel(tables={"t": table}))
        constraints = generator.table_constraints(table)
        assert [(c.type, c.name) for c in constraints] == [(ConstraintType.PRIMARY_KEY, "t_pkey")]

    def test_explicit_unique_suppresses_same_column_set(self):
        table = table_of(
            Column(title="Email", unique=True),
            constraints=[TableConstraint(type=ConstraintType.UNIQUE, name="u", columns=['"email"'])],
        )
        constraints = SchemaSQLGenerator(SchemaModel()).table_constraints(table)
        assert [c.name for c in constraints] == ["u"]

    def test_multi_column_unique_does_not_suppress_single(self):
        table = table_of(
            Column(title="a", unique=True),
            Column(title="b"),
            constraints=[TableConstraint(type=ConstraintType.UNIQUE, columns=["a", "b"])],
        )
        constraints = SchemaSQLGenerator(SchemaModel()).table_constraints(table)
        assert [c.columns for c in constraints] == [["a", "b"], ["a"]]

    def test_kinds_ordered_explicit_first(self):
        table = table_of(
            Column(title="id", pk=True),
            Column(title="code", unique=True),
            Column(title="owner", fk="users.id"),
            constraints=[
                TableConstraint(type=ConstraintType.CHECK, expression="id > 0"),
                TableConstraint(type=ConstraintType.UNIQUE, name="u_pair", columns=["code", "owner"]),
            ],
        )
        constraints = SchemaSQLGenerator(SchemaModel()).table_constraints(table)
        assert [(c.type, c.name) for c in constraints] == [
            (ConstraintType.PRIMARY_KEY, None),
            (ConstraintType.FOREIGN_KEY, None),
            (ConstraintType.UNIQUE, "u_pair"),
            (ConstraintType.UNIQUE, None),
            (ConstraintType.CHECK, None),
        ]

    def test_derived_foreign_key_target(self):
        table = table_of(Column(title="owner", fk="app.users.id"))
        [fk] = SchemaSQLGenerator(SchemaModel()).table_constraints(table)
        assert fk.reference.table_key == "app.users"
        assert fk.reference.columns == ["id"]

    def test_unparseable_fk_is_ignored(self):
        table = table_of(Column(title="owner", fk="nowhere"))
        assert SchemaSQLGenerator(SchemaModel()).table_constraints(table) == []

    def test_incomplete_constraints_are_not_rendered(self):
        table = table_of(
            Column(title="a"),
            constraints=[
                TableConstraint(type=ConstraintType.UNIQUE, name="empty"),
                TableConstraint(type=ConstraintType.CHECK, name="blank"),
            ],
        )
        assert SchemaSQLGenerator(SchemaModel()).table_constraints(table) == []


# ============================================================================
# COLUMN TYPES
# ============================================================================

class TestColumnTypes:

    def test_enum_without_type_name_uses_fallback(self, caplog):
        model = SchemaModel(tables={"t": table_of(Column(title="s", format="enum", enumValues=["a"]))})
        with caplog.at_level(logging.WARNING):
            text = generate_schema_sql(model)
        assert '"s" TEXT' in text
        assert "enum-typed without a type name" in caplog.text

    def test_fallback_type_from_environment(self, monkeypatch):
        monkeypatch.setenv("SCHEMA_FALLBACK_COLUMN_TYPE", "varchar(64)")
        reset_defaults()
        model = SchemaModel(tables={"t": table_of(Column(title="s", format="enum"))})
        assert '"s" VARCHAR(64)' in generate_schema_sql(model)

    def test_inline_enum_values_are_synthesized(self):
        column = Column(title="s", format="enum", enumTypeName="app.mood", enumValues=["ok", "meh"])
        model = SchemaModel(tables={"t": table_of(column)})
        text = generate_schema_sql(model)
        assert "CREATE TYPE \"app\".\"mood\" AS ENUM ('ok', 'meh');" in text
        assert '"s" "app"."mood"' in text

    def test_model_enum_wins_over_inline_values(self):
        column = Column(title="s", format="enum", enumTypeName="mood", enumValues=["stale"])
        model = SchemaModel(
            tables={"t": table_of(column)},
            enum_types={"mood": EnumTypeDefinition(name="mood", values=["fresh"])},
        )
        text = generate_schema_sql(model)
        assert "AS ENUM ('fresh');" in text
        assert "stale" not in text

    def test_enums_sorted_by_schema_then_name(self):
        model = SchemaModel(enum_types={
            "b.x": EnumTypeDefinition(name="x", schema="b", values=["1"]),
            "a.y": EnumTypeDefinition(name="y", schema="a", values=["1"]),
            "z": EnumTypeDefinition(name="z", values=["1"]),
        })
        text = generate_schema_sql(model)
        assert text.index('"z"') < text.index('"a"."y"') < text.index('"b"."x"')


# ============================================================================
# SINGLE TABLE
# ============================================================================

class TestGenerateForTable:

    def test_table_with_enums_in_use(self, sample_model):
        assert generate_table_sql(sample_model, "public.users") == (
            '-- Enum Types in use\n'
            'CREATE TYPE "public"."status" AS ENUM (\'active\', \'banned\');\n'
            '\n'
            'CREATE TABLE "public"."users" (\n'
            '  "id" UUID NOT NULL DEFAULT gen_random_uuid(),\n'
            '  "email" VARCHAR(255) NOT NULL,\n'
            '  "state" "public"."status" NOT NULL DEFAULT \'active\'\n'
            ');\n'
            '\n'
            'ALTER TABLE "public"."users" ADD PRIMARY KEY ("id");\n'
            'ALTER TABLE "public"."users" ADD UNIQUE ("email");\n'
            '\n'
            'COMMENT ON TABLE "public"."users" IS \'People\';'
        )

    def test_table_without_enums(self, sample_model):
        text = generate_schema_sql(sample_model, "public.posts")
        assert text.startswith('CREATE TABLE "public"."posts"')
        assert 'CREATE INDEX "posts_user_idx"' in text

    def test_missing_table(self, sample_model):
        assert generate_table_sql(sample_model, "nope") == "-- Selected table not found in schema"

    def test_indexes_sorted_by_name(self):
        table = table_of(
            Column(title="a"),
            indexes=[TableIndex(name="z_idx", columns=["a"]), TableIndex(name="a_idx", columns=["a"])],
        )
        text = generate_table_sql(SchemaModel(tables={"t": table}), "t")
        assert text.index('"a_idx"') < text.index('"z_idx"')

    def test_column_comments(self):
        table = table_of(Column(title="a", comment="first"), comment="table note")
        text = generate_table_sql(SchemaModel(tables={"t": table}), "t")
        assert text.endswith(
            "COMMENT ON TABLE \"t\" IS 'table note';\n"
            "COMMENT ON COLUMN \"t\".\"a\" IS 'first';"
        )

    def test_identity_falls_back_to_key(self):
        table = Table(title="", columns=[Column(title="a")])
        text = generate_table_sql(SchemaModel(tables={"app.things": table}), "app.things")
        assert text.startswith('CREATE TABLE "app"."things"')
