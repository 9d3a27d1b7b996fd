"""
SQL schema package.

Tokenizer, statement parser, DDL builders and the canonical generator.
"""

from schemasync.schema.tokenizer import ParseError, Token, TokenType, tokenize
from schemasync.schema.parser import (
    ParseResult,
    parse_sql,
    parse_statements,
    build_model,
    try_parse_sql,
)
from schemasync.schema.sql_generator import (
    SchemaSQLGenerator,
    generate_schema_sql,
    generate_table_sql,
)
from schemasync.schema.ddl_utils import normalize_type, determine_category

__all__ = [
    "ParseError",
    "Token",
    "TokenType",
    "tokenize",
    "ParseResult",
    "parse_sql",
    "parse_statements",
    "build_model",
    "try_parse_sql",
    "SchemaSQLGenerator",
    "generate_schema_sql",
    "generate_table_sql",
    "normalize_type",
    "determine_category",
]
