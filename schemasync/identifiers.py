# ============================================================================
# IDENTIFIER UTILITIES
# ============================================================================
# STATUS: Core - Quote-aware text primitives shared by model, parser, generator
# PURPOSE: Quoting, unquoting, qualified-name splitting, paren-aware splitting
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: quote_identifier, unquote_identifier, split_identifier,
#          parse_identifier, table_key, normalize_name, split_top_level,
#          extract_parenthetical, consume_identifier, strip_comments,
#          split_statements, parse_fk_string
# DEPENDENCIES: none
# ============================================================================
"""
Identifier Utilities

Text-level helpers that understand SQL quoting rules:

- Double quotes delimit identifiers ("Order Items"), "" escapes a quote.
- Single quotes delimit string literals ('it''s'), '' escapes a quote.
- Commas, dots, semicolons and comment markers only count outside both.

The tokenizer in schemasync.schema is the primary parsing path; these helpers
serve callers that hold loose strings (fk references, table keys, raw
column lists) and need the same splitting semantics without a token stream.
"""

from typing import List, Optional, Tuple


# ============================================================================
# QUOTING
# ============================================================================

def is_quoted(identifier: str) -> bool:
    """True if the identifier is wrapped in double quotes."""
    return len(identifier) >= 2 and identifier.startswith('"') and identifier.endswith('"')


def quote_identifier(identifier: str) -> str:
    """
    Wrap an identifier in double quotes, doubling embedded quotes.

    Already-quoted identifiers are returned unchanged.
    """
    if is_quoted(identifier):
        return identifier
    return '"' + identifier.replace('"', '""') + '"'


def unquote_identifier(identifier: str) -> str:
    """Strip surrounding double quotes and collapse doubled quotes."""
    value = identifier.strip()
    if is_quoted(value):
        return value[1:-1].replace('""', '"')
    return value


def quote_literal(value: str) -> str:
    """Render a single-quoted SQL string literal."""
    return "'" + value.replace("'", "''") + "'"


def normalize_name(name: str) -> str:
    """Case-folded, unquoted form used for column matching and dedup keys."""
    return unquote_identifier(name).lower()


# ============================================================================
# QUALIFIED NAMES
# ============================================================================

def split_identifier(value: str) -> List[str]:
    """
    Split a possibly schema-qualified identifier on dots outside quotes.

    'public.users' -> ['public', 'users']
    '"my.schema"."Users"' -> ['my.schema', 'Users']
    """
    if not value:
        return []
    parts: List[str] = []
    current: List[str] = []
    in_quotes = False
    i = 0
    while i < len(value):
        char = value[i]
        if char == '"':
            if in_quotes and i + 1 < len(value) and value[i + 1] == '"':
                current.append('""')
                i += 2
                continue
            in_quotes = not in_quotes
            current.append(char)
        elif char == "." and not in_quotes:
            token = "".join(current).strip()
            if token:
                parts.append(token)
            current = []
        else:
            current.append(char)
        i += 1
    token = "".join(current).strip()
    if token:
        parts.append(token)
    return [unquote_identifier(part) for part in parts]


def parse_identifier(value: str) -> Tuple[Optional[str], str]:
    """
    Split into (schema, name). Schema is None when unqualified.

    For names with more than two parts the last two are used.
    """
    parts = split_identifier(value)
    if not parts:
        return None, ""
    if len(parts) == 1:
        return None, parts[0]
    return parts[-2], parts[-1]


def table_key(schema: Optional[str], name: str) -> str:
    """Build the schema-qualified lookup key (`schema.name` or bare `name`)."""
    return f"{schema}.{name}" if schema else name


def parse_fk_string(value: str) -> Optional[Tuple[Optional[str], str, str]]:
    """
    Parse a column-level fk reference of the form [schema.]table.column.

    Returns (schema, table, column) or None if it has fewer than two parts.
    """
    parts = split_identifier(value or "")
    if len(parts) < 2:
        return None
    if len(parts) == 2:
        return None, parts[0], parts[1]
    return parts[-3], parts[-2], parts[-1]


def fk_string(schema: Optional[str], table: str, column: str) -> str:
    """Inverse of parse_fk_string."""
    return f"{table_key(schema, table)}.{column}"


# ============================================================================
# QUOTE-AWARE SCANNING
# ============================================================================

def _scan(value: str):
    """
    Yield (index, char, outside) for each character.

    `outside` is True when the character is outside string literals and
    quoted identifiers. Quote characters themselves report outside=False.
    """
    in_single = False
    in_double = False
    for i, char in enumerate(value):
        if char == "'" and not in_double:
            in_single = not in_single
            yield i, char, False
        elif char == '"' and not in_single:
            in_double = not in_double
            yield i, char, False
        else:
            yield i, char, not (in_single or in_double)


def split_top_level(value: str, separator: str = ",") -> List[str]:
    """
    Split on a separator that is not nested in parentheses or quotes.

    'numeric(10,2), b text' -> ['numeric(10,2)', 'b text']
    Empty items are dropped; items are stripped.
    """
    result: List[str] = []
    start = 0
    depth = 0
    for i, char, outside in _scan(value):
        if not outside:
            continue
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        elif char == separator and depth == 0:
            result.append(value[start:i])
            start = i + 1
    result.append(value[start:])
    return [item.strip() for item in result if item.strip()]


def extract_parenthetical(value: str, open_index: int) -> Optional[Tuple[str, int]]:
    """
    Return (content, close_index) for the balanced group opening at open_index.

    Depth counting ignores parentheses inside quotes. None when unbalanced.
    """
    if open_index < 0 or open_index >= len(value) or value[open_index] != "(":
        return None
    depth = 0
    for i, char, outside in _scan(value):
        if i < open_index or not outside:
            continue
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return value[open_index + 1:i], i
    return None


def consume_identifier(value: str) -> Tuple[str, str]:
    """
    Take a leading (possibly quoted, possibly qualified) identifier.

    Stops at whitespace or '(' outside quotes. Returns (identifier, rest).
    """
    text = value.lstrip()
    end = len(text)
    for i, char, outside in _scan(text):
        if outside and (char.isspace() or char == "("):
            end = i
            break
    return text[:end].strip(), text[end:].strip()


def strip_comments(sql: str) -> str:
    """
    Remove -- line comments and /* */ block comments outside quoted regions.

    Line comments keep their terminating newline; block comments become a
    single space so adjacent tokens stay separated.
    """
    out: List[str] = []
    i = 0
    length = len(sql)
    quote: Optional[str] = None
    while i < length:
        char = sql[i]
        if quote:
            out.append(char)
            if char == quote:
                if i + 1 < length and sql[i + 1] == quote:
                    out.append(sql[i + 1])
                    i += 2
                    continue
                quote = None
            i += 1
            continue
        if char in ("'", '"'):
            quote = char
            out.append(char)
            i += 1
        elif sql.startswith("--", i):
            newline = sql.find("\n", i)
            i = length if newline == -1 else newline
        elif sql.startswith("/*", i):
            close = sql.find("*/", i + 2)
            i = length if close == -1 else close + 2
            out.append(" ")
        else:
            out.append(char)
            i += 1
    return "".join(out)


def split_statements(sql: str) -> List[str]:
    """
    Split comment-free SQL on ';' outside parentheses and quotes.

    Returns stripped, non-empty statements without the terminator.
    """
    return split_top_level(sql, ";")


__all__ = [
    "is_quoted",
    "quote_identifier",
    "unquote_identifier",
    "quote_literal",
    "normalize_name",
    "split_identifier",
    "parse_identifier",
    "table_key",
    "parse_fk_string",
    "fk_string",
    "split_top_level",
    "extract_parenthetical",
    "consume_identifier",
    "strip_comments",
    "split_statements",
]
