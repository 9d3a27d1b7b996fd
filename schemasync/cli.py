# ============================================================================
# COMMAND-LINE INTERFACE
# ============================================================================
# STATUS: Entry point - schemasync console script
# PURPOSE: Format SQL canonically, inspect the parsed model, render SQL from
#          a JSON/YAML model file
# USAGE:
#   schemasync format schema.sql                 # Canonical SQL
#   schemasync format schema.sql --table public.users
#   schemasync inspect schema.sql --yaml         # Parsed model
#   schemasync generate model.yaml               # SQL from a model file
# ============================================================================
"""
Command-line interface.

Exit status is 0 on success and 1 when input cannot be parsed or loaded;
the error message goes to stderr.
"""

import argparse
import json
import sys
from typing import List, Optional

import yaml
from pydantic import ValidationError

from schemasync.__version__ import __version__
from schemasync.logging import ComponentType, configure_logging, get_logger
from schemasync.models import SchemaModel
from schemasync.schema import ParseError, generate_schema_sql, parse_sql
from schemasync.services.sanitize_service import merge_enum_types, sanitize_tables

logger = get_logger(__name__, ComponentType.CLI)


def _read_text(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, encoding="utf-8") as f:
        return f.read()


def load_model_file(path: str) -> SchemaModel:
    """
    Load a model from JSON or YAML (JSON is valid YAML).

    Expected shape: {"tables": {key: table}, "enumTypes": {key: enum}}.
    Tables are sanitized; invalid entries are dropped.
    """
    data = yaml.safe_load(_read_text(path)) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping with 'tables' and 'enumTypes'")
    result = sanitize_tables(data.get("tables") or {})
    enums = merge_enum_types({}, data.get("enumTypes") or data.get("enum_types") or {})
    if result.changed:
        logger.warning(
            f"Dropped {result.removed_tables} tables and {result.removed_columns} columns from {path}"
        )
    return SchemaModel(tables=result.tables, enum_types=enums)


# ============================================================================
# COMMANDS
# ============================================================================

def cmd_format(args) -> int:
    model = parse_sql(_read_text(args.file))
    print(generate_schema_sql(model, args.table))
    return 0


def cmd_inspect(args) -> int:
    model = parse_sql(_read_text(args.file))
    data = model.to_json_dict()
    if args.yaml:
        print(yaml.safe_dump(data, sort_keys=False, allow_unicode=True), end="")
    else:
        print(json.dumps(data, indent=2, ensure_ascii=False))
    return 0


def cmd_generate(args) -> int:
    model = load_model_file(args.model_file)
    print(generate_schema_sql(model, args.table))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="schemasync",
        description="Bidirectional SQL DDL / schema model sync",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  schemasync format schema.sql                    # Canonical SQL for a dump
  schemasync format schema.sql --table app.users  # One table with its enums
  schemasync inspect schema.sql --yaml            # Parsed model as YAML
  schemasync generate model.json                  # SQL from a saved model

Environment Variables:
  LOG_FORMAT                     "json" for structured logs on stderr
  SCHEMA_FALLBACK_COLUMN_TYPE    Type for enum columns without a type name
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    fmt = sub.add_parser("format", help="Parse SQL and print canonical SQL")
    fmt.add_argument("file", help="SQL file, or - for stdin")
    fmt.add_argument("--table", help="Only this table key")
    fmt.set_defaults(func=cmd_format)

    inspect = sub.add_parser("inspect", help="Parse SQL and print the model")
    inspect.add_argument("file", help="SQL file, or - for stdin")
    inspect.add_argument("--yaml", action="store_true", help="YAML instead of JSON")
    inspect.set_defaults(func=cmd_inspect)

    generate = sub.add_parser("generate", help="Render SQL from a JSON/YAML model file")
    generate.add_argument("model_file", help="Model file, or - for stdin")
    generate.add_argument("--table", help="Only this table key")
    generate.set_defaults(func=cmd_generate)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(level="DEBUG" if args.verbose else "WARNING")

    try:
        return args.func(args)
    except ParseError as e:
        print(f"Parse error: {e}", file=sys.stderr)
        return 1
    except (OSError, ValueError, yaml.YAMLError, ValidationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
