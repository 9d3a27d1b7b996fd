"""
schemasync - bidirectional SQL DDL / schema model synchronization.

    from schemasync import parse_sql, generate_schema_sql, SchemaSession

    model = parse_sql(sql_text)
    print(generate_schema_sql(model))
"""

from schemasync.__version__ import __version__
from schemasync.models import Column, EnumTypeDefinition, SchemaModel, Table
from schemasync.schema import (
    ParseError,
    generate_schema_sql,
    generate_table_sql,
    parse_sql,
    try_parse_sql,
)
from schemasync.services import SchemaSession, sanitize_tables

__all__ = [
    "__version__",
    "Column",
    "EnumTypeDefinition",
    "SchemaModel",
    "Table",
    "ParseError",
    "parse_sql",
    "try_parse_sql",
    "generate_schema_sql",
    "generate_table_sql",
    "SchemaSession",
    "sanitize_tables",
]
