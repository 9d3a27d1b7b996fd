# ============================================================================
# SQL TOKENIZER
# ============================================================================
# STATUS: Core - Flat token stream for the DDL parser
# PURPOSE: Turn raw SQL text into identifiers, keywords, literals, punctuation
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: TokenType, Token, ParseError, tokenize, split_token_statements
# DEPENDENCIES: none
# ============================================================================
"""
SQL Tokenizer

Produces a flat list of tokens with source offsets. Comments and whitespace
are dropped here, which is what makes comment stripping safe: a `--` or `/*`
inside a string literal or quoted identifier is consumed as part of that
token and never seen as a comment.

Token kinds:
    WORD      bare identifier or keyword          users, CREATE, varchar
    QUOTED    double-quoted identifier            "Order Items"
    STRING    single-quoted or dollar-quoted text 'it''s', $$ ... $$
    NUMBER    numeric literal                     10, 2.5, 1e6
    PUNCT     ( ) , ; . [ ]
    OPERATOR  anything else, consecutive symbols grouped (::, >=, <>)

Offsets let the parser slice raw text (DEFAULT expressions, CHECK bodies,
index expressions, WHERE predicates) straight from the source.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from schemasync.identifiers import unquote_identifier


class ParseError(Exception):
    """
    Raised when DDL text is structurally malformed.

    Carries the 1-based statement number and a snippet when known.
    """

    def __init__(
        self,
        message: str,
        statement_index: Optional[int] = None,
        statement: Optional[str] = None,
    ):
        self.message = message
        self.statement_index = statement_index
        self.statement = statement
        super().__init__(self.__str__())

    def __str__(self) -> str:
        if self.statement_index is None:
            return self.message
        snippet = ""
        if self.statement:
            flat = " ".join(self.statement.split())
            snippet = f": {flat[:80]}{'...' if len(flat) > 80 else ''}"
        return f"Statement {self.statement_index}: {self.message}{snippet}"


class TokenType(str, Enum):
    WORD = "word"
    QUOTED = "quoted"
    STRING = "string"
    NUMBER = "number"
    PUNCT = "punct"
    OPERATOR = "operator"


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str
    start: int
    end: int

    def is_keyword(self, *words: str) -> bool:
        """Case-insensitive keyword match; quoted identifiers never match."""
        return self.type == TokenType.WORD and self.value.upper() in words

    def is_punct(self, char: str) -> bool:
        return self.type == TokenType.PUNCT and self.value == char

    @property
    def is_identifier(self) -> bool:
        return self.type in (TokenType.WORD, TokenType.QUOTED)

    @property
    def identifier(self) -> str:
        """Identifier text with quoting removed."""
        if self.type == TokenType.QUOTED:
            return unquote_identifier(self.value)
        return self.value

    @property
    def string_value(self) -> str:
        """Unescaped content of a STRING token."""
        if self.value.startswith("'"):
            return self.value[1:-1].replace("''", "'")
        # Dollar quote: strip the matching $tag$ delimiters
        tag_end = self.value.index("$", 1) + 1
        return self.value[tag_end:-tag_end]


_WORD_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_$]*")
_NUMBER_RE = re.compile(r"(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_DOLLAR_TAG_RE = re.compile(r"\$([A-Za-z_][A-Za-z0-9_]*)?\$")
_PUNCT = "(),;.[]"
_OPERATOR_CHARS = set("+-*/<>=~!@#%^&|`?:")


def _line_of(text: str, offset: int) -> int:
    return text.count("\n", 0, offset) + 1


def _close_quoted(text: str, start: int, quote: str) -> int:
    """Index just past the closing quote, honouring doubled-quote escapes."""
    i = start + 1
    while i < len(text):
        if text[i] == quote:
            if i + 1 < len(text) and text[i + 1] == quote:
                i += 2
                continue
            return i + 1
        i += 1
    kind = "string literal" if quote == "'" else "quoted identifier"
    raise ParseError(f"Unterminated {kind} starting on line {_line_of(text, start)}")


def tokenize(text: str) -> List[Token]:
    """
    Tokenize SQL text.

    Raises:
        ParseError: unterminated string, quoted identifier, block comment or
            dollar-quoted string
    """
    tokens: List[Token] = []
    i = 0
    length = len(text)

    while i < length:
        char = text[i]

        if char.isspace():
            i += 1
            continue

        if text.startswith("--", i):
            newline = text.find("\n", i)
            i = length if newline == -1 else newline + 1
            continue

        if text.startswith("/*", i):
            close = text.find("*/", i + 2)
            if close == -1:
                raise ParseError(
                    f"Unterminated block comment starting on line {_line_of(text, i)}"
                )
            i = close + 2
            continue

        if char == "'":
            end = _close_quoted(text, i, "'")
            tokens.append(Token(TokenType.STRING, text[i:end], i, end))
            i = end
            continue

        if char == '"':
            end = _close_quoted(text, i, '"')
            tokens.append(Token(TokenType.QUOTED, text[i:end], i, end))
            i = end
            continue

        if char == "$":
            tag = _DOLLAR_TAG_RE.match(text, i)
            if tag:
                delimiter = tag.group(0)
                close = text.find(delimiter, tag.end())
                if close == -1:
                    raise ParseError(
                        f"Unterminated dollar-quoted string starting on line {_line_of(text, i)}"
                    )
                end = close + len(delimiter)
                tokens.append(Token(TokenType.STRING, text[i:end], i, end))
                i = end
                continue

        word = _WORD_RE.match(text, i)
        if word:
            tokens.append(Token(TokenType.WORD, word.group(0), i, word.end()))
            i = word.end()
            continue

        number = _NUMBER_RE.match(text, i)
        if number and (char.isdigit() or (char == "." and number.end() > i + 1)):
            tokens.append(Token(TokenType.NUMBER, number.group(0), i, number.end()))
            i = number.end()
            continue

        if char in _PUNCT:
            tokens.append(Token(TokenType.PUNCT, char, i, i + 1))
            i += 1
            continue

        start = i
        i += 1
        while i < length and text[i] in _OPERATOR_CHARS and char in _OPERATOR_CHARS:
            if text.startswith("--", i) or text.startswith("/*", i):
                break
            i += 1
        tokens.append(Token(TokenType.OPERATOR, text[start:i], start, i))

    return tokens


def split_token_statements(tokens: List[Token]) -> List[List[Token]]:
    """
    Split a token stream on ';' at parenthesis depth zero.

    An unclosed '(' keeps swallowing tokens, so a malformed statement runs
    to the end of input instead of being cut at an inner ';'.
    """
    statements: List[List[Token]] = []
    current: List[Token] = []
    depth = 0
    for token in tokens:
        if token.is_punct("("):
            depth += 1
        elif token.is_punct(")"):
            depth = max(0, depth - 1)
        elif token.is_punct(";") and depth == 0:
            if current:
                statements.append(current)
            current = []
            continue
        current.append(token)
    if current:
        statements.append(current)
    return statements


__all__ = [
    "ParseError",
    "TokenType",
    "Token",
    "tokenize",
    "split_token_statements",
]
