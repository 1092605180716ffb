"""
Boolean-mode full-text matching.

Queries use MySQL boolean-mode syntax on every supported database:

    login            any plain token may match
    +login           token is required
    -logout          token must not appear
    log*             prefix match

Tokens are runs of word characters, so ``auth`` matches ``auth.login.title``.
When at least one ``+`` token is present, plain tokens no longer restrict the
result (they only affect relevance on MySQL). A query without any positive
token matches nothing.

MySQL compiles to ``MATCH ... AGAINST (... IN BOOLEAN MODE)``. PostgreSQL
uses ``to_tsvector('simple', ...) @@ to_tsquery('simple', ...)`` over the
column with non-word runs replaced by spaces (see pg_document). SQLite calls
a Python function registered on each connection (see app.core.database).
"""
import re
from dataclasses import dataclass
from typing import Optional, Set, Tuple

from sqlalchemy import false, func, literal_column
from sqlalchemy.sql.elements import ColumnElement

SQLITE_FUNCTION_NAME = "fulltext_match"
PG_TEXT_SEARCH_CONFIG = literal_column("'simple'")

_WORD_RE = re.compile(r"\w+", re.UNICODE)


def tokenize(text: Optional[str]) -> Set[str]:
    """Split text into the lowercase word set the matcher compares against."""
    if not text:
        return set()
    return set(_WORD_RE.findall(text.lower()))


@dataclass(frozen=True)
class Term:
    word: str
    prefix: bool = False

    def matches(self, tokens: Set[str]) -> bool:
        if self.prefix:
            return any(token.startswith(self.word) for token in tokens)
        return self.word in tokens

    def to_tsquery(self) -> str:
        return f"{self.word}:*" if self.prefix else self.word


@dataclass(frozen=True)
class BooleanQuery:
    required: Tuple[Term, ...] = ()
    optional: Tuple[Term, ...] = ()
    excluded: Tuple[Term, ...] = ()

    @property
    def is_empty(self) -> bool:
        """True when nothing could ever match."""
        return not self.required and not self.optional

    def matches(self, text: Optional[str]) -> bool:
        if self.is_empty:
            return False

        tokens = tokenize(text)
        if any(term.matches(tokens) for term in self.excluded):
            return False
        if self.required:
            return all(term.matches(tokens) for term in self.required)
        return any(term.matches(tokens) for term in self.optional)

    def to_tsquery(self) -> str:
        """Render as a PostgreSQL tsquery string."""
        if self.required:
            parts = [term.to_tsquery() for term in self.required]
        else:
            parts = ["(" + " | ".join(term.to_tsquery() for term in self.optional) + ")"]
        parts.extend("!" + term.to_tsquery() for term in self.excluded)
        return " & ".join(parts)


def parse_boolean_query(raw: Optional[str]) -> BooleanQuery:
    """
    Parse a boolean-mode search string.

    The operator of a chunk applies to every word in it, so ``+auth.login``
    requires both ``auth`` and ``login``. A trailing ``*`` only marks the
    last word as a prefix.
    """
    required, optional, excluded = [], [], []

    for chunk in (raw or "").split():
        bucket = optional
        if chunk[0] == "+":
            bucket = required
        elif chunk[0] == "-":
            bucket = excluded

        words = _WORD_RE.findall(chunk.lower())
        for index, word in enumerate(words):
            is_last = index == len(words) - 1
            bucket.append(Term(word=word, prefix=is_last and chunk.endswith("*")))

    return BooleanQuery(
        required=tuple(required),
        optional=tuple(optional),
        excluded=tuple(excluded),
    )


def pg_document(column) -> ColumnElement:
    """
    tsvector of ``column`` with non-word runs turned into spaces, so dotted
    names split into tokens the same way as on the other backends.
    The GIN indexes are declared on this exact expression.
    """
    return func.to_tsvector(
        PG_TEXT_SEARCH_CONFIG,
        func.regexp_replace(
            column, literal_column(r"'\W+'"), literal_column("' '"), literal_column("'g'")
        ),
    )


def sqlite_fulltext_match(text: Optional[str], raw: Optional[str]) -> int:
    """SQLite user function: 1 if ``text`` satisfies the boolean query ``raw``."""
    return int(parse_boolean_query(raw).matches(text))


def fulltext_match(column, raw: str, dialect_name: str) -> ColumnElement:
    """
    Build a boolean-mode full-text predicate on ``column`` for the dialect.

    Args:
        column: Text column to search
        raw: User supplied search string
        dialect_name: Name of the bound dialect (mysql, postgresql, sqlite)

    Returns:
        SQL boolean expression usable in a WHERE clause
    """
    query = parse_boolean_query(raw)
    if query.is_empty:
        return false()

    if dialect_name == "mysql":
        # SQLAlchemy's MySQL compiler renders IN BOOLEAN MODE by default
        return column.match(raw)

    if dialect_name == "postgresql":
        return pg_document(column).op("@@")(
            func.to_tsquery(PG_TEXT_SEARCH_CONFIG, query.to_tsquery())
        )

    return getattr(func, SQLITE_FUNCTION_NAME)(column, raw) == 1
