# ============================================================================
# DDL PARSER
# ============================================================================
# STATUS: Core - SQL text to SchemaModel
# PURPOSE: Recognize CREATE TABLE / TYPE ... AS ENUM / INDEX, ALTER TABLE ADD
#          constraint and COMMENT ON, then build the model in phases
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: parse_sql, try_parse_sql, parse_statements, build_model,
#          ParseResult, ParseError
# DEPENDENCIES: pydantic (via models)
# ============================================================================
"""
DDL Parser

Two stages:

1. parse_statements(text) tokenizes, splits on top-level ';' and turns each
   recognized statement into a node from schemasync.schema.statements.
   Anything else (CREATE VIEW, INSERT, GRANT, SET ...) is skipped.

2. build_model(statements) applies the nodes in phases so forward
   references resolve regardless of statement order:

       enums -> tables (with enum resolution) -> constraints -> indexes -> comments

Error policy:
    ParseError   tokenizer failures, malformed CREATE TABLE, malformed
                 CREATE TYPE ... AS ENUM
    warning      malformed ALTER TABLE / CREATE INDEX / COMMENT ON, and any
                 statement that targets an unknown table or column
    silent       statements the parser does not recognize

Constraint folding:
    Unnamed single-column facts (PRIMARY KEY, UNIQUE, plain FOREIGN KEY)
    become column flags only. Anything the flags cannot carry (a name,
    several columns, ON DELETE / ON UPDATE, CHECK) is stored as a
    TableConstraint as well.

Usage:
    from schemasync.schema import parse_sql

    model = parse_sql(open("schema.sql").read())
    model.tables["public.users"].columns
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from schemasync.contracts import ColumnCategory, ConstraintType
from schemasync.identifiers import normalize_name, table_key
from schemasync.logging import ComponentType, get_logger, log_context
from schemasync.models import (
    Column,
    EnumTypeDefinition,
    ForeignKeyReference,
    SchemaModel,
    Table,
    TableConstraint,
    TableIndex,
)
from schemasync.schema.ddl_utils import determine_category, normalize_type
from schemasync.schema.statements import (
    AlterTableAddConstraint,
    ColumnDefinition,
    CommentOn,
    CreateEnum,
    CreateIndex,
    CreateTable,
    Statement,
)
from schemasync.schema.tokenizer import (
    ParseError,
    Token,
    TokenType,
    split_token_statements,
    tokenize,
)

logger = get_logger(__name__, ComponentType.PARSER)


# Keywords that end a column's type and start its constraint list
COLUMN_CONSTRAINT_KEYWORDS = (
    "NOT", "NULL", "DEFAULT", "PRIMARY", "REFERENCES", "UNIQUE", "CHECK",
    "CONSTRAINT", "COLLATE", "GENERATED",
)

# Keywords that end a DEFAULT expression
DEFAULT_STOP_KEYWORDS = COLUMN_CONSTRAINT_KEYWORDS


# ============================================================================
# TOKEN STREAM
# ============================================================================

class TokenStream:
    """Cursor over one statement's tokens."""

    def __init__(self, tokens: Sequence[Token], source: str):
        self.tokens = list(tokens)
        self.source = source
        self.pos = 0

    @property
    def at_end(self) -> bool:
        return self.pos >= len(self.tokens)

    def peek(self, offset: int = 0) -> Optional[Token]:
        index = self.pos + offset
        return self.tokens[index] if index < len(self.tokens) else None

    def peek_keyword(self, *words: str) -> bool:
        token = self.peek()
        return token is not None and token.is_keyword(*words)

    def peek_punct(self, char: str) -> bool:
        token = self.peek()
        return token is not None and token.is_punct(char)

    def advance(self) -> Token:
        token = self.peek()
        if token is None:
            raise ParseError("Unexpected end of statement")
        self.pos += 1
        return token

    def accept(self, *words: str) -> bool:
        """Consume a keyword sequence only if every word matches."""
        for offset, word in enumerate(words):
            token = self.peek(offset)
            if token is None or not token.is_keyword(word):
                return False
        self.pos += len(words)
        return True

    def expect_identifier(self, what: str) -> str:
        token = self.peek()
        if token is None or not token.is_identifier:
            raise ParseError(f"Expected {what}")
        self.pos += 1
        return token.identifier

    def name_parts(self, what: str) -> List[str]:
        """Dotted identifier: ident ('.' ident)*."""
        parts = [self.expect_identifier(what)]
        while self.peek_punct("."):
            self.pos += 1
            parts.append(self.expect_identifier(what))
        return parts

    def qualified_name(self, what: str) -> Tuple[Optional[str], str]:
        parts = self.name_parts(what)
        if len(parts) == 1:
            return None, parts[0]
        return parts[-2], parts[-1]

    def group(self) -> List[Token]:
        """Tokens inside the balanced parentheses starting at the cursor."""
        if not self.peek_punct("("):
            raise ParseError("Expected '('")
        depth = 0
        start = self.pos
        for index in range(self.pos, len(self.tokens)):
            token = self.tokens[index]
            if token.is_punct("("):
                depth += 1
            elif token.is_punct(")"):
                depth -= 1
                if depth == 0:
                    self.pos = index + 1
                    return self.tokens[start + 1:index]
        raise ParseError("Missing closing parenthesis")

    def skip_element(self) -> None:
        """Skip one token, or a whole parenthesized group."""
        if self.peek_punct("("):
            self.group()
        else:
            self.advance()

    def rest(self) -> List[Token]:
        remaining = self.tokens[self.pos:]
        self.pos = len(self.tokens)
        return remaining

    def text(self, tokens: Sequence[Token]) -> str:
        """Raw source text spanning the given tokens."""
        if not tokens:
            return ""
        return self.source[tokens[0].start:tokens[-1].end]

    def sub(self, tokens: Sequence[Token]) -> "TokenStream":
        return TokenStream(tokens, self.source)


def split_tokens(tokens: Sequence[Token], separator: str = ",") -> List[List[Token]]:
    """Split on a punctuation token at parenthesis depth zero."""
    parts: List[List[Token]] = []
    current: List[Token] = []
    depth = 0
    for token in tokens:
        if token.is_punct("("):
            depth += 1
        elif token.is_punct(")"):
            depth -= 1
        elif token.is_punct(separator) and depth == 0:
            if current:
                parts.append(current)
            current = []
            continue
        current.append(token)
    if current:
        parts.append(current)
    return parts


# ============================================================================
# STATEMENT PARSER
# ============================================================================

class StatementParser:
    """
    Turns token statements into statement nodes.

    Raises ParseError for malformed CREATE TABLE / CREATE TYPE; other
    malformed statements are logged and skipped.
    """

    def __init__(self, source: str):
        self.source = source

    def parse(self) -> List[Statement]:
        statements: List[Statement] = []
        for index, tokens in enumerate(split_token_statements(tokenize(self.source)), start=1):
            with log_context(statement_index=index):
                statements.extend(self._parse_one(index, tokens))
        return statements

    def _parse_one(self, index: int, tokens: List[Token]) -> List[Statement]:
        stream = TokenStream(tokens, self.source)
        raw = stream.text(tokens)

        if stream.accept("CREATE"):
            if stream.peek_keyword("UNIQUE", "INDEX"):
                return self._lenient(index, raw, self._create_index, stream)
            if stream.peek_keyword("GLOBAL", "LOCAL"):
                stream.advance()
            if stream.peek_keyword("TEMP", "TEMPORARY", "UNLOGGED"):
                stream.advance()
            if stream.accept("TABLE"):
                return self._strict(index, raw, self._create_table, stream)
            if stream.accept("TYPE"):
                return self._strict(index, raw, self._create_type, stream)
            return []

        if stream.accept("ALTER", "TABLE"):
            return self._lenient(index, raw, self._alter_table, stream)

        if stream.accept("COMMENT", "ON"):
            return self._lenient(index, raw, self._comment_on, stream)

        return []

    @staticmethod
    def _strict(index, raw, handler, stream) -> List[Statement]:
        try:
            return handler(stream)
        except ParseError as e:
            raise ParseError(e.message, statement_index=index, statement=raw) from e

    @staticmethod
    def _lenient(index, raw, handler, stream) -> List[Statement]:
        try:
            return handler(stream)
        except ParseError as e:
            logger.warning(f"Skipping malformed statement {index}: {e.message}")
            return []

    # =========================================================================
    # CREATE TABLE
    # =========================================================================

    def _create_table(self, stream: TokenStream) -> List[Statement]:
        stream.accept("IF", "NOT", "EXISTS")
        if stream.at_end:
            raise ParseError("CREATE TABLE is missing a table name")
        schema, name = stream.qualified_name("table name")

        if not stream.peek_punct("("):
            if stream.peek_keyword("AS", "PARTITION", "OF"):
                # CREATE TABLE ... AS SELECT / PARTITION OF: no column list to read
                return []
            raise ParseError(f"CREATE TABLE {name} is missing its column list")

        body = stream.group()
        statement = CreateTable(schema=schema, name=name)
        seen = set()
        for part in split_tokens(body):
            element = stream.sub(part)
            if self._starts_table_constraint(element):
                constraint = self._constraint(element)
                if constraint is not None:
                    statement.constraints.append(constraint)
            elif element.peek_keyword("LIKE", "EXCLUDE"):
                logger.debug(f"Ignoring {element.peek().value.upper()} clause in {name}")
            else:
                column = self._column(element, statement)
                folded = normalize_name(column.name)
                if folded in seen:
                    raise ParseError(f"Column '{column.name}' specified more than once")
                seen.add(folded)
                statement.columns.append(column)
        return [statement]

    @staticmethod
    def _starts_table_constraint(stream: TokenStream) -> bool:
        first, second = stream.peek(), stream.peek(1)
        if first is None or first.type != TokenType.WORD:
            return False
        word = first.value.upper()
        if word == "CONSTRAINT":
            return True
        if word in ("PRIMARY", "FOREIGN"):
            return second is not None and second.is_keyword("KEY")
        if word in ("UNIQUE", "CHECK"):
            return second is not None and (second.is_punct("(") or second.is_keyword("NULLS"))
        return False

    def _column(self, stream: TokenStream, table: CreateTable) -> ColumnDefinition:
        first = stream.peek()
        if first is None or not first.is_identifier:
            raise ParseError(f"Invalid column definition: {stream.text(stream.tokens)}")
        name = stream.advance().identifier

        type_tokens: List[Token] = []
        while not stream.at_end and not stream.peek_keyword(*COLUMN_CONSTRAINT_KEYWORDS):
            start = stream.pos
            stream.skip_element()
            type_tokens.extend(stream.tokens[start:stream.pos])
        if not type_tokens:
            raise ParseError(f"Column '{name}' has no type")

        column = ColumnDefinition(
            name=name,
            type_text=stream.text(type_tokens),
            type_name=self._plain_type_name(type_tokens),
        )

        pending_name: Optional[str] = None
        while not stream.at_end:
            if stream.accept("CONSTRAINT"):
                pending_name = stream.expect_identifier("constraint name")
                continue

            if stream.accept("NOT", "NULL"):
                column.not_null = True
            elif stream.accept("NULL"):
                pass
            elif stream.accept("PRIMARY", "KEY"):
                column.primary_key = True
                if pending_name:
                    table.constraints.append(TableConstraint(
                        type=ConstraintType.PRIMARY_KEY, name=pending_name, columns=[name],
                    ))
            elif stream.accept("UNIQUE"):
                column.unique = True
                if pending_name:
                    table.constraints.append(TableConstraint(
                        type=ConstraintType.UNIQUE, name=pending_name, columns=[name],
                    ))
            elif stream.accept("REFERENCES"):
                reference = self._references(stream)
                column.fk = reference.as_fk_string()
                if column.fk is None:
                    logger.debug(f"Reference from {table.name}.{name} has no single target column")
                elif pending_name or reference.has_actions:
                    table.constraints.append(TableConstraint(
                        type=ConstraintType.FOREIGN_KEY, name=pending_name,
                        columns=[name], reference=reference,
                    ))
            elif stream.accept("CHECK"):
                table.constraints.append(TableConstraint(
                    type=ConstraintType.CHECK, name=pending_name,
                    expression=stream.text(stream.group()),
                ))
            elif stream.accept("DEFAULT"):
                column.default = self._default_expression(stream)
            elif stream.accept("COLLATE"):
                stream.name_parts("collation")
            elif stream.accept("GENERATED"):
                self._skip_generated(stream)
            else:
                stream.skip_element()
            pending_name = None

        return column

    @staticmethod
    def _skip_generated(stream: TokenStream) -> None:
        """
        Consume the rest of a GENERATED clause; the model does not keep it.

            ALWAYS | BY DEFAULT  AS IDENTITY [ (sequence options) ]
            ALWAYS               AS (expr) [STORED | VIRTUAL]
        """
        if not (stream.accept("ALWAYS") or stream.accept("BY", "DEFAULT")):
            raise ParseError("GENERATED must be followed by ALWAYS or BY DEFAULT")
        if not stream.accept("AS"):
            raise ParseError("GENERATED column is missing AS")
        if stream.accept("IDENTITY"):
            if stream.peek_punct("("):
                stream.group()
            return
        stream.group()
        stream.accept("STORED") or stream.accept("VIRTUAL")

    @staticmethod
    def _plain_type_name(tokens: Sequence[Token]) -> Optional[Tuple[Optional[str], str]]:
        """(schema, name) when the type is a bare, possibly qualified, identifier."""
        parts: List[str] = []
        for position, token in enumerate(tokens):
            if position % 2 == 0:
                if not token.is_identifier:
                    return None
                parts.append(token.identifier)
            elif not token.is_punct("."):
                return None
        if not parts or len(tokens) % 2 == 0:
            return None
        if len(parts) == 1:
            return None, parts[0]
        return parts[-2], parts[-1]

    def _default_expression(self, stream: TokenStream) -> str:
        start = stream.pos
        stream.skip_element()
        while not stream.at_end and not stream.peek_keyword(*DEFAULT_STOP_KEYWORDS):
            stream.skip_element()
        return stream.text(stream.tokens[start:stream.pos])

    # =========================================================================
    # CONSTRAINTS
    # =========================================================================

    def _constraint(self, stream: TokenStream) -> Optional[TableConstraint]:
        """[CONSTRAINT name] PRIMARY KEY | UNIQUE | FOREIGN KEY | CHECK body."""
        name = None
        if stream.accept("CONSTRAINT"):
            name = stream.expect_identifier("constraint name")

        if stream.accept("PRIMARY", "KEY"):
            return TableConstraint(
                type=ConstraintType.PRIMARY_KEY, name=name, columns=self._column_list(stream),
            )

        if stream.accept("UNIQUE"):
            stream.accept("NULLS", "NOT", "DISTINCT") or stream.accept("NULLS", "DISTINCT")
            return TableConstraint(
                type=ConstraintType.UNIQUE, name=name, columns=self._column_list(stream),
            )

        if stream.accept("FOREIGN", "KEY"):
            columns = self._column_list(stream)
            if not stream.accept("REFERENCES"):
                raise ParseError("FOREIGN KEY is missing REFERENCES")
            reference = self._references(stream)
            if not reference.columns:
                raise ParseError(f"FOREIGN KEY references {reference.table} without target columns")
            if len(reference.columns) != len(columns):
                raise ParseError("FOREIGN KEY column count does not match its target")
            return TableConstraint(
                type=ConstraintType.FOREIGN_KEY, name=name, columns=columns, reference=reference,
            )

        if stream.accept("CHECK"):
            return TableConstraint(
                type=ConstraintType.CHECK, name=name, expression=stream.text(stream.group()),
            )

        return None

    def _column_list(self, stream: TokenStream) -> List[str]:
        columns = []
        for part in split_tokens(stream.group()):
            if len(part) == 1 and part[0].is_identifier:
                columns.append(part[0].identifier)
            else:
                columns.append(stream.text(part))
        if not columns:
            raise ParseError("Empty column list")
        return columns

    def _references(self, stream: TokenStream) -> ForeignKeyReference:
        schema, table = stream.qualified_name("referenced table")
        columns = self._column_list(stream) if stream.peek_punct("(") else []
        on_delete = on_update = None
        while not stream.at_end:
            if stream.accept("ON", "DELETE"):
                on_delete = self._referential_action(stream)
            elif stream.accept("ON", "UPDATE"):
                on_update = self._referential_action(stream)
            elif stream.accept("MATCH"):
                stream.advance()
            elif stream.accept("DEFERRABLE") or stream.accept("NOT", "DEFERRABLE"):
                continue
            elif stream.accept("INITIALLY"):
                stream.advance()
            else:
                break
        return ForeignKeyReference(
            schema=schema, table=table, columns=columns,
            on_delete=on_delete, on_update=on_update,
        )

    @staticmethod
    def _referential_action(stream: TokenStream) -> str:
        for words in (("NO", "ACTION"), ("SET", "NULL"), ("SET", "DEFAULT"), ("CASCADE",), ("RESTRICT",)):
            if stream.accept(*words):
                if stream.peek_punct("("):
                    # SET NULL (col, ...) column subsets are not modelled
                    stream.group()
                return " ".join(words)
        raise ParseError("Unknown referential action")

    # =========================================================================
    # CREATE TYPE ... AS ENUM
    # =========================================================================

    def _create_type(self, stream: TokenStream) -> List[Statement]:
        stream.accept("IF", "NOT", "EXISTS")
        if stream.at_end:
            raise ParseError("CREATE TYPE is missing a type name")
        schema, name = stream.qualified_name("type name")
        if not stream.accept("AS", "ENUM"):
            # Composite, range and base types are not modelled
            return []
        if not stream.peek_punct("("):
            raise ParseError(f"Enum {name} is missing its value list")

        values: List[str] = []
        seen = set()
        for part in split_tokens(stream.group()):
            if len(part) != 1 or part[0].type != TokenType.STRING:
                raise ParseError(f"Enum {name} values must be string literals")
            value = part[0].string_value
            if value.lower() in seen:
                raise ParseError(f"Duplicate enum value: '{value}'")
            seen.add(value.lower())
            values.append(value)
        return [CreateEnum(schema=schema, name=name, values=values)]

    # =========================================================================
    # ALTER TABLE ... ADD
    # =========================================================================

    def _alter_table(self, stream: TokenStream) -> List[Statement]:
        stream.accept("IF", "EXISTS")
        stream.accept("ONLY")
        schema, table = stream.qualified_name("table name")

        statements: List[Statement] = []
        for action in split_tokens(stream.rest()):
            action_stream = stream.sub(action)
            if not action_stream.accept("ADD"):
                continue
            constraint = self._constraint(action_stream)
            if constraint is not None:
                statements.append(AlterTableAddConstraint(schema=schema, table=table, constraint=constraint))
        return statements

    # =========================================================================
    # CREATE INDEX
    # =========================================================================

    def _create_index(self, stream: TokenStream) -> List[Statement]:
        unique = stream.accept("UNIQUE")
        stream.accept("INDEX")
        stream.accept("CONCURRENTLY")
        stream.accept("IF", "NOT", "EXISTS")

        name = None
        if not stream.peek_keyword("ON"):
            name = stream.expect_identifier("index name")
        if not stream.accept("ON"):
            raise ParseError("CREATE INDEX is missing ON")
        stream.accept("ONLY")
        schema, table = stream.qualified_name("table name")

        using = None
        if stream.accept("USING"):
            using = stream.advance().value.lower()

        if not stream.peek_punct("("):
            raise ParseError(f"Index on {table} is missing its column list")
        columns = [stream.text(part) for part in split_tokens(stream.group())]
        if not columns:
            raise ParseError(f"Index on {table} has no columns")

        where = None
        while not stream.at_end:
            if stream.accept("WHERE"):
                where = stream.text(stream.rest())
                break
            # INCLUDE (...), NULLS [NOT] DISTINCT, WITH (...), TABLESPACE x
            stream.skip_element()

        index = TableIndex(
            name=name or default_index_name(table, columns),
            columns=columns,
            unique=unique,
            using=using,
            where=where,
        )
        return [CreateIndex(schema=schema, table=table, index=index)]

    # =========================================================================
    # COMMENT ON
    # =========================================================================

    def _comment_on(self, stream: TokenStream) -> List[Statement]:
        if stream.accept("TABLE"):
            schema, table = stream.qualified_name("table name")
            column = None
        elif stream.accept("COLUMN"):
            parts = stream.name_parts("column name")
            if len(parts) < 2:
                raise ParseError("COMMENT ON COLUMN needs table.column")
            column = parts[-1]
            table = parts[-2]
            schema = parts[-3] if len(parts) >= 3 else None
        else:
            return []

        if not stream.accept("IS"):
            raise ParseError("COMMENT ON is missing IS")
        token = stream.advance()
        if token.is_keyword("NULL"):
            text = None
        elif token.type == TokenType.STRING:
            text = token.string_value
        else:
            raise ParseError("COMMENT ON expects a string literal or NULL")
        return [CommentOn(schema=schema, table=table, column=column, text=text)]


def default_index_name(table: str, columns: Sequence[str]) -> str:
    """Postgres-style generated name: <table>_<col>[_<col>...]_idx."""
    parts = []
    for column in columns:
        bare = normalize_name(column)
        parts.append(bare if bare.replace("_", "").isalnum() else "expr")
    return "_".join([table] + parts + ["idx"])


# ============================================================================
# MODEL BUILDER
# ============================================================================

class SchemaBuilder:
    """Applies statement nodes to an empty model in dependency order."""

    def __init__(self):
        self.tables: Dict[str, Table] = {}
        self.enum_types: Dict[str, EnumTypeDefinition] = {}

    def build(self, statements: Sequence[Statement]) -> SchemaModel:
        for statement in statements:
            if isinstance(statement, CreateEnum):
                self._add_enum(statement)

        for statement in statements:
            if isinstance(statement, CreateTable):
                self._add_table(statement)

        for statement in statements:
            if isinstance(statement, CreateTable):
                key = table_key(statement.schema, statement.name)
                for constraint in statement.constraints:
                    self._apply_constraint(key, constraint)
            elif isinstance(statement, AlterTableAddConstraint):
                self._apply_constraint(table_key(statement.schema, statement.table), statement.constraint)

        for statement in statements:
            if isinstance(statement, CreateIndex):
                self._apply_index(statement)

        for statement in statements:
            if isinstance(statement, CommentOn):
                self._apply_comment(statement)

        return SchemaModel(tables=self.tables, enum_types=self.enum_types)

    # =========================================================================
    # ENUMS AND TABLES
    # =========================================================================

    def _add_enum(self, statement: CreateEnum) -> None:
        try:
            enum = EnumTypeDefinition(name=statement.name, schema=statement.schema, values=statement.values)
        except ValidationError as e:
            raise ParseError(f"Invalid enum type {statement.name}: {e.errors()[0]['msg']}") from e
        if enum.key in self.enum_types:
            logger.debug(f"Enum {enum.key} redefined; keeping the later definition")
        self.enum_types[enum.key] = enum

    def _add_table(self, statement: CreateTable) -> None:
        key = table_key(statement.schema, statement.name)
        if key in self.tables:
            logger.debug(f"Table {key} redefined; keeping the later definition")
        self.tables[key] = Table(
            title=statement.name,
            schema=statement.schema,
            columns=[self._build_column(d, statement.schema) for d in statement.columns],
        )

    def _build_column(self, definition: ColumnDefinition, table_schema: Optional[str]) -> Column:
        format_text = normalize_type(definition.type_text)
        category = determine_category(format_text)
        enum_key = None

        if definition.type_name is not None:
            enum = self._resolve_enum(definition.type_name, table_schema)
            if enum is not None:
                format_text = "enum"
                category = ColumnCategory.STRING
                enum_key = enum.key

        return Column(
            title=definition.name,
            format=format_text,
            type=category.value,
            default=definition.default,
            required=definition.not_null or definition.primary_key,
            pk=definition.primary_key,
            unique=definition.unique,
            fk=definition.fk,
            enum_type_name=enum_key,
        )

    def _resolve_enum(
        self, type_name: Tuple[Optional[str], str], table_schema: Optional[str]
    ) -> Optional[EnumTypeDefinition]:
        """Exact key, then the table's schema, then a unique bare-name match."""
        schema, name = type_name
        exact = self.enum_types.get(table_key(schema, name))
        if exact is not None or schema is not None:
            return exact
        if table_schema:
            same_schema = self.enum_types.get(table_key(table_schema, name))
            if same_schema is not None:
                return same_schema
        folded = normalize_name(name)
        matches = [e for e in self.enum_types.values() if normalize_name(e.name) == folded]
        return matches[0] if len(matches) == 1 else None

    # =========================================================================
    # CONSTRAINTS, INDEXES, COMMENTS
    # =========================================================================

    def _apply_constraint(self, key: str, constraint: TableConstraint) -> None:
        table = self.tables.get(key)
        if table is None:
            logger.warning(f"Skipping {constraint.type.value} constraint on unknown table {key}")
            return

        missing = [c for c in constraint.columns if table.find_column(c) is None]
        if missing:
            logger.warning(f"Skipping {constraint.type.value} constraint on {key}: unknown columns {missing}")
            return

        columns = [table.find_column(c) for c in constraint.columns]
        if constraint.type == ConstraintType.PRIMARY_KEY:
            for column in columns:
                column.pk = True
                column.required = True
        elif constraint.type == ConstraintType.UNIQUE and len(columns) == 1:
            columns[0].unique = True
        elif constraint.type == ConstraintType.FOREIGN_KEY and len(columns) == 1:
            fk = constraint.reference.as_fk_string()
            if fk:
                columns[0].fk = fk

        if constraint.name:
            folded = normalize_name(constraint.name)
            table.constraints = [
                c for c in table.constraints
                if not (c.name and normalize_name(c.name) == folded)
            ]
            table.constraints.append(constraint)
        elif not constraint.is_folded() and constraint not in table.constraints:
            table.constraints.append(constraint)

    def _apply_index(self, statement: CreateIndex) -> None:
        key = table_key(statement.schema, statement.table)
        table = self.tables.get(key)
        if table is None:
            logger.warning(f"Skipping index {statement.index.name} on unknown table {key}")
            return
        table.indexes = [i for i in table.indexes if i.name != statement.index.name]
        table.indexes.append(statement.index)

    def _apply_comment(self, statement: CommentOn) -> None:
        key = table_key(statement.schema, statement.table)
        table = self.tables.get(key)
        if table is None:
            logger.warning(f"Skipping comment on unknown table {key}")
            return
        if statement.column is None:
            table.comment = statement.text
            return
        column = table.find_column(statement.column)
        if column is None:
            logger.warning(f"Skipping comment on unknown column {key}.{statement.column}")
            return
        column.comment = statement.text


# ============================================================================
# PUBLIC API
# ============================================================================

@dataclass
class ParseResult:
    """Outcome of try_parse_sql: a model, or the error that prevented one."""
    tables: Dict[str, Table] = field(default_factory=dict)
    enum_types: Dict[str, EnumTypeDefinition] = field(default_factory=dict)
    error: Optional[ParseError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def model(self) -> SchemaModel:
        return SchemaModel(tables=self.tables, enum_types=self.enum_types)


def parse_statements(text: str) -> List[Statement]:
    """Tokenize and parse without building a model."""
    return StatementParser(text).parse()


def build_model(statements: Sequence[Statement]) -> SchemaModel:
    return SchemaBuilder().build(statements)


def parse_sql(text: str) -> SchemaModel:
    """
    Parse DDL text into a SchemaModel.

    Raises:
        ParseError: structurally malformed input
    """
    with log_context(operation="parse_sql"):
        model = build_model(parse_statements(text))
        logger.debug(
            f"Parsed {len(model.tables)} tables and {len(model.enum_types)} enum types"
        )
        return model


def try_parse_sql(text: str) -> ParseResult:
    """parse_sql that reports failure in the result instead of raising."""
    try:
        model = parse_sql(text)
    except ParseError as e:
        logger.warning(f"SQL parse failed: {e}")
        return ParseResult(error=e)
    return ParseResult(tables=model.tables, enum_types=model.enum_types)


__all__ = [
    "ParseError",
    "ParseResult",
    "TokenStream",
    "StatementParser",
    "SchemaBuilder",
    "parse_statements",
    "build_model",
    "parse_sql",
    "try_parse_sql",
    "default_index_name",
]
