# ============================================================================
# DDL PARSER TESTS
# ============================================================================
# STATUS: Tests - SQL text to SchemaModel
# PURPOSE: Verify statement recognition, enum resolution, constraint folding,
#          indexes, comments and the error policy
# CREATED: 19 OCT 2026
# ============================================================================
"""
DDL Parser Tests

Covers:
1. CREATE TABLE columns, types, defaults, inline constraints
2. CREATE TYPE ... AS ENUM and enum resolution
3. ALTER TABLE ... ADD constraints and folding into column flags
4. CREATE INDEX and COMMENT ON
5. Error policy: raise, warn-and-skip, silently skip

Run with:
    pytest tests/test_parser.py -v
"""

import logging

import pytest

from schemasync.contracts import ColumnCategory, ConstraintType
from schemasync.models import Column
from schemasync.schema import (
    ParseError,
    generate_schema_sql,
    parse_sql,
    parse_statements,
    try_parse_sql,
)
from schemasync.schema.statements import (
    AlterTableAddConstraint,
    CommentOn,
    CreateEnum,
    CreateIndex,
    CreateTable,
)


def column(model, key, title):
    return model.tables[key].find_column(title)


# ============================================================================
# CREATE TABLE
# ============================================================================

class TestCreateTable:

    def test_primary_key_and_not_null(self):
        model = parse_sql(
            "CREATE TABLE public.users (id uuid PRIMARY KEY, email varchar NOT NULL);"
        )

        assert list(model.tables) == ["public.users"]
        table = model.tables["public.users"]
        assert table.schema_name == "public"
        assert table.title == "users"

        id_col, email = table.columns
        assert (id_col.title, id_col.format, id_col.pk, id_col.required) == ("id", "uuid", True, True)
        assert (email.title, email.format, email.pk, email.required) == ("email", "varchar", False, True)
        assert table.constraints == []

    def test_unqualified_table_has_no_schema(self):
        model = parse_sql("CREATE TABLE users (id int); CREATE TABLE public.users (id int);")

        assert set(model.tables) == {"users", "public.users"}
        assert model.tables["users"].schema_name is None

    def test_quoted_names_keep_case(self):
        model = parse_sql('CREATE TABLE IF NOT EXISTS "My Table" ("Id" int, "select" text);')

        table = model.tables["My Table"]
        assert [c.title for c in table.columns] == ["Id", "select"]

    def test_column_order_preserved(self):
        model = parse_sql("CREATE TABLE t (c int, a int, b int);")
        assert [c.title for c in model.tables["t"].columns] == ["c", "a", "b"]

    def test_type_normalization_and_categories(self):
        model = parse_sql("""
            CREATE TABLE t (
                a integer,
                b character varying(255),
                c timestamp with time zone,
                d numeric(10, 2),
                e int[],
                f double precision,
                g jsonb,
                h boolean,
                i text ARRAY
            );
        """)
        columns = model.tables["t"].columns

        assert [c.format for c in columns] == [
            "int4", "varchar(255)", "timestamptz", "numeric(10,2)", "int4[]",
            "float8", "jsonb", "bool", "text[]",
        ]
        assert [c.type for c in columns] == [
            "number", "string", "string", "number", "array",
            "number", "object", "boolean", "array",
        ]

    def test_defaults_kept_as_raw_text(self):
        model = parse_sql("""
            CREATE TABLE t (
                id uuid DEFAULT gen_random_uuid() NOT NULL,
                status text DEFAULT 'new',
                n int DEFAULT -1,
                created timestamptz NOT NULL DEFAULT now()
            );
        """)

        assert column(model, "t", "id").default == "gen_random_uuid()"
        assert column(model, "t", "id").required is True
        assert column(model, "t", "status").default == "'new'"
        assert column(model, "t", "n").default == "-1"
        assert column(model, "t", "created").default == "now()"

    @pytest.mark.parametrize("clause", [
        "GENERATED BY DEFAULT AS IDENTITY",
        "GENERATED ALWAYS AS IDENTITY (START WITH 10 INCREMENT BY 5)",
        "GENERATED ALWAYS AS (n * 2) STORED",
    ])
    def test_generated_clause_is_skipped(self, clause):
        model = parse_sql(f"CREATE TABLE t (n int, id int {clause} NOT NULL, name text);")
        generated = column(model, "t", "id")
        assert generated.default is None
        assert generated.required is True
        assert [c.title for c in model.tables["t"].columns] == ["n", "id", "name"]
        assert "DEFAULT" not in generate_schema_sql(model)

    def test_inline_unique_and_null(self):
        model = parse_sql("CREATE TABLE t (email text UNIQUE NULL);")
        email = column(model, "t", "email")
        assert email.unique is True
        assert email.required is False

    def test_redefinition_keeps_later_table(self):
        model = parse_sql("CREATE TABLE t (a int); CREATE TABLE t (b int);")
        assert [c.title for c in model.tables["t"].columns] == ["b"]

    def test_dollar_quoted_function_does_not_break_splitting(self):
        model = parse_sql("""
            CREATE FUNCTION touch() RETURNS trigger AS $$
            BEGIN NEW.updated = now(); RETURN NEW; END;
            $$ LANGUAGE plpgsql;
            CREATE TABLE t (id int);
        """)
        assert list(model.tables) == ["t"]


# ============================================================================
# ENUM TYPES
# ============================================================================

class TestEnums:

    def test_enum_values_resolve_through_model(self):
        model = parse_sql("CREATE TYPE public.status AS ENUM ('active','banned');")

        assert model.enum_types["public.status"].values == ["active", "banned"]
        col = Column(title="state", format="enum", enumTypeName="public.status")
        assert model.resolve_enum_values(col) == ["active", "banned"]

    def test_column_resolves_in_table_schema(self):
        model = parse_sql("""
            CREATE TYPE app.mood AS ENUM ('ok');
            CREATE TYPE other.mood AS ENUM ('meh');
            CREATE TABLE app.t (m mood);
        """)
        m = column(model, "app.t", "m")
        assert m.format == "enum"
        assert m.type == ColumnCategory.STRING.value
        assert m.enum_type_name == "app.mood"

    def test_qualified_type_resolves_exactly(self):
        model = parse_sql("""
            CREATE TYPE app.mood AS ENUM ('ok');
            CREATE TABLE t (m app.mood);
        """)
        assert column(model, "t", "m").enum_type_name == "app.mood"

    def test_unique_bare_name_matches_case_insensitively(self):
        model = parse_sql("""
            CREATE TYPE app.Mood AS ENUM ('ok');
            CREATE TABLE t (m mood);
        """)
        assert column(model, "t", "m").enum_type_name == "app.Mood"

    def test_ambiguous_bare_name_is_not_an_enum(self):
        model = parse_sql("""
            CREATE TYPE a.mood AS ENUM ('ok');
            CREATE TYPE b.mood AS ENUM ('ok');
            CREATE TABLE t (m mood);
        """)
        m = column(model, "t", "m")
        assert m.enum_type_name is None
        assert m.format == "mood"

    def test_qualified_miss_is_not_an_enum(self):
        model = parse_sql("""
            CREATE TYPE app.mood AS ENUM ('ok');
            CREATE TABLE t (m other.mood);
        """)
        assert column(model, "t", "m").format == "other.mood"

    def test_forward_reference_resolves(self):
        model = parse_sql("""
            CREATE TABLE t (s status);
            CREATE TYPE status AS ENUM ('on', 'off');
        """)
        assert column(model, "t", "s").enum_type_name == "status"

    def test_escaped_quote_in_value(self):
        model = parse_sql("CREATE TYPE q AS ENUM ('it''s', $$x$$);")
        assert model.enum_types["q"].values == ["it's", "x"]

    def test_composite_type_ignored(self):
        model = parse_sql("CREATE TYPE pair AS (a int, b int);")
        assert model.enum_types == {}


# ============================================================================
# CONSTRAINTS
# ============================================================================

class TestConstraints:

    def test_alter_table_foreign_key(self):
        model = parse_sql("""
            CREATE TABLE public.users (id uuid PRIMARY KEY);
            CREATE TABLE orders (id int, user_id uuid);
            ALTER TABLE orders ADD CONSTRAINT fk_user FOREIGN KEY (user_id) REFERENCES public.users(id);
        """)

        assert column(model, "orders", "user_id").fk == "public.users.id"
        [fk] = model.tables["orders"].constraints
        assert fk.name == "fk_user"
        assert fk.type == ConstraintType.FOREIGN_KEY
        assert fk.reference.table_key == "public.users"

    def test_constraint_before_table_still_applies(self):
        model = parse_sql("""
            ALTER TABLE t ADD PRIMARY KEY (id);
            CREATE TABLE t (id int);
        """)
        assert column(model, "t", "id").pk is True

    def test_unnamed_single_column_constraints_fold_into_flags(self):
        model = parse_sql("""
            CREATE TABLE users (id int);
            CREATE TABLE t (id int, email text, user_id int,
                PRIMARY KEY (id), UNIQUE (email), FOREIGN KEY (user_id) REFERENCES users (id));
        """)
        table = model.tables["t"]

        assert table.find_column("id").pk is True
        assert table.find_column("id").required is True
        assert table.find_column("email").unique is True
        assert table.find_column("user_id").fk == "users.id"
        assert table.constraints == []

    def test_named_constraint_is_stored(self):
        model = parse_sql("CREATE TABLE t (id int, CONSTRAINT t_pkey PRIMARY KEY (id));")
        [pk] = model.tables["t"].constraints
        assert (pk.type, pk.name, pk.columns) == (ConstraintType.PRIMARY_KEY, "t_pkey", ["id"])

    def test_multi_column_unique_is_stored_without_flags(self):
        model = parse_sql("CREATE TABLE t (a int, b int, UNIQUE (a, b));")
        table = model.tables["t"]
        assert [c.columns for c in table.constraints] == [["a", "b"]]
        assert not any(c.unique for c in table.columns)

    def test_composite_primary_key_folds(self):
        model = parse_sql("CREATE TABLE t (a int, b int, PRIMARY KEY (a, b));")
        table = model.tables["t"]
        assert table.primary_key_columns() == ["a", "b"]
        assert table.constraints == []

    def test_multi_column_foreign_key_never_sets_column_fk(self):
        model = parse_sql("""
            CREATE TABLE a (x int, y int, PRIMARY KEY (x, y));
            CREATE TABLE b (x int, y int, FOREIGN KEY (x, y) REFERENCES a (x, y));
        """)
        table = model.tables["b"]
        assert all(c.fk is None for c in table.columns)
        [fk] = table.constraints
        assert fk.reference.columns == ["x", "y"]

    def test_inline_references_with_actions_is_stored(self):
        model = parse_sql("""
            CREATE TABLE users (id int PRIMARY KEY);
            CREATE TABLE posts (id int, user_id int REFERENCES users(id) ON DELETE CASCADE ON UPDATE no action);
        """)
        assert column(model, "posts", "user_id").fk == "users.id"
        [fk] = model.tables["posts"].constraints
        assert fk.name is None
        assert fk.reference.on_delete == "CASCADE"
        assert fk.reference.on_update == "NO ACTION"

    def test_inline_named_references_is_stored(self):
        model = parse_sql("CREATE TABLE t (u int CONSTRAINT fk_u REFERENCES users(id));")
        assert column(model, "t", "u").fk == "users.id"
        assert [c.name for c in model.tables["t"].constraints] == ["fk_u"]

    def test_inline_references_without_target_column(self):
        model = parse_sql("CREATE TABLE t (u int REFERENCES users);")
        assert column(model, "t", "u").fk is None
        assert model.tables["t"].constraints == []

    def test_inline_check_becomes_table_check(self):
        model = parse_sql("CREATE TABLE t (n int CHECK (n > 0));")
        [check] = model.tables["t"].constraints
        assert check.type == ConstraintType.CHECK
        assert check.expression == "n > 0"
        assert check.columns == []

    def test_named_constraint_replaces_earlier_one(self):
        model = parse_sql("""
            CREATE TABLE t (a int, b int);
            ALTER TABLE t ADD CONSTRAINT c UNIQUE (a);
            ALTER TABLE t ADD CONSTRAINT c UNIQUE (b);
        """)
        [unique] = model.tables["t"].constraints
        assert unique.columns == ["b"]

    def test_unnamed_duplicate_stored_once(self):
        model = parse_sql("""
            CREATE TABLE t (a int, b int);
            ALTER TABLE t ADD UNIQUE (a, b);
            ALTER TABLE t ADD UNIQUE (a, b);
        """)
        assert len(model.tables["t"].constraints) == 1

    def test_alter_table_with_several_actions(self):
        model = parse_sql("""
            CREATE TABLE public.t (id int, a int);
            ALTER TABLE ONLY public.t
                ADD CONSTRAINT t_pkey PRIMARY KEY (id),
                ADD CONSTRAINT t_a_key UNIQUE (a);
        """)
        table = model.tables["public.t"]
        assert [c.name for c in table.constraints] == ["t_pkey", "t_a_key"]
        assert table.find_column("a").unique is True

    def test_constraint_columns_match_case_insensitively(self):
        model = parse_sql('CREATE TABLE t ("Email" text); ALTER TABLE t ADD UNIQUE (email);')
        assert column(model, "t", "Email").unique is True


# ============================================================================
# INDEXES AND COMMENTS
# ============================================================================

class TestIndexesAndComments:

    def test_full_index_definition(self):
        model = parse_sql("""
            CREATE TABLE public.users (email text, deleted_at timestamptz);
            CREATE UNIQUE INDEX IF NOT EXISTS users_email_idx ON public.users
                USING BTREE (lower(email)) WHERE deleted_at IS NULL;
        """)
        [index] = model.tables["public.users"].indexes
        assert index.name == "users_email_idx"
        assert index.unique is True
        assert index.using == "btree"
        assert index.columns == ["lower(email)"]
        assert index.where == "deleted_at IS NULL"

    def test_unnamed_index_gets_default_name(self):
        model = parse_sql("""
            CREATE TABLE t (a int, b int);
            CREATE INDEX ON t (a, b);
            CREATE INDEX ON t (lower(a));
        """)
        names = sorted(i.name for i in model.tables["t"].indexes)
        assert names == ["t_a_b_idx", "t_expr_idx"]

    def test_comments(self):
        model = parse_sql("""
            COMMENT ON TABLE public.users IS 'People';
            CREATE TABLE public.users (id int, email text);
            COMMENT ON COLUMN public.users.email IS 'Login name';
            COMMENT ON COLUMN public.users.id IS NULL;
        """)
        table = model.tables["public.users"]
        assert table.comment == "People"
        assert table.find_column("email").comment == "Login name"
        assert table.find_column("id").comment is None


# ============================================================================
# ERROR POLICY
# ============================================================================

class TestErrorPolicy:

    @pytest.mark.parametrize("sql,message", [
        ("CREATE TABLE", "missing a table name"),
        ("CREATE TABLE (id int);", "Expected table name"),
        ("CREATE TABLE t;", "missing its column list"),
        ("CREATE TABLE t (id int", "Missing closing parenthesis"),
        ("CREATE TABLE t (id int, ID text);", "specified more than once"),
        ("CREATE TABLE t (id NOT NULL);", "has no type"),
        ("CREATE TYPE s AS ENUM (a, b);", "must be string literals"),
        ("CREATE TYPE s AS ENUM ('a', 'A');", "Duplicate enum value"),
        ("CREATE TABLE t (name text DEFAULT 'oops);", "Unterminated string literal"),
        ("CREATE TABLE t (id int GENERATED AS IDENTITY);", "ALWAYS or BY DEFAULT"),
    ])
    def test_malformed_input_raises(self, sql, message):
        with pytest.raises(ParseError, match=message):
            parse_sql(sql)

    def test_error_names_statement(self):
        with pytest.raises(ParseError) as exc_info:
            parse_sql("CREATE TABLE ok (id int);\nCREATE TABLE bad;")
        assert exc_info.value.statement_index == 2
        assert str(exc_info.value).startswith("Statement 2:")

    def test_malformed_alter_is_skipped(self, caplog):
        with caplog.at_level(logging.WARNING):
            model = parse_sql("""
                CREATE TABLE t (id int);
                ALTER TABLE t ADD CONSTRAINT c FOREIGN KEY (id) REFERENCES;
            """)
        assert model.tables["t"].constraints == []
        assert "Skipping malformed statement 2" in caplog.text

    def test_malformed_index_and_comment_are_skipped(self):
        model = parse_sql("""
            CREATE TABLE t (id int);
            CREATE INDEX i ON t;
            COMMENT ON TABLE t IS 42;
        """)
        assert model.tables["t"].indexes == []
        assert model.tables["t"].comment is None

    def test_unknown_table_and_column_are_skipped(self, caplog):
        with caplog.at_level(logging.WARNING):
            model = parse_sql("""
                CREATE TABLE t (id int);
                ALTER TABLE ghost ADD PRIMARY KEY (id);
                ALTER TABLE t ADD UNIQUE (nope);
                CREATE INDEX ON ghost (id);
                COMMENT ON COLUMN t.nope IS 'x';
            """)
        assert model.tables["t"].constraints == []
        assert "unknown table ghost" in caplog.text
        assert "unknown columns ['nope']" in caplog.text
        assert "unknown column t.nope" in caplog.text

    def test_unrecognized_statements_are_ignored(self):
        model = parse_sql("""
            SET search_path = public;
            CREATE EXTENSION IF NOT EXISTS pgcrypto;
            CREATE VIEW v AS SELECT 1;
            INSERT INTO t VALUES (1, 'a;b');
            CREATE TABLE copy AS SELECT * FROM t;
            GRANT SELECT ON t TO someone;
        """)
        assert model.tables == {}

    def test_try_parse_sql_reports_error(self):
        result = try_parse_sql("CREATE TABLE t (id int, id int);")
        assert not result.ok
        assert isinstance(result.error, ParseError)
        assert result.tables == {}
        assert result.model.tables == {}

    def test_try_parse_sql_success(self):
        result = try_parse_sql("CREATE TABLE t (id int);")
        assert result.ok
        assert list(result.model.tables) == ["t"]


# ============================================================================
# STATEMENT NODES
# ============================================================================

class TestParseStatements:

    def test_node_kinds(self):
        statements = parse_statements("""
            CREATE TYPE s AS ENUM ('a');
            CREATE TABLE t (id int);
            ALTER TABLE t ADD PRIMARY KEY (id);
            CREATE INDEX ON t (id);
            COMMENT ON TABLE t IS 'x';
        """)
        assert [type(s) for s in statements] == [
            CreateEnum, CreateTable, AlterTableAddConstraint, CreateIndex, CommentOn,
        ]

    def test_column_definition_details(self):
        [table] = parse_statements("CREATE TABLE t (n numeric(10, 2) NOT NULL DEFAULT 0);")
        [definition] = table.columns
        assert definition.type_text == "numeric(10, 2)"
        assert definition.type_name is None
        assert definition.not_null is True
        assert definition.default == "0"
