"""
Export Service - locale exports as flat {key_name: value} data.

Two modes share one filtered query:
- export_for_locale(): single query, fully materialized dict
- stream_export_for_locale(): ExportStream iterating over LIMIT/OFFSET chunks,
  memory bounded by the chunk size

A stream is a series of independent snapshots, one per chunk. Rows written
while it is being consumed may or may not show up.
"""
import json
import logging
from collections import deque
from typing import Callable, Deque, Dict, Iterator, List, Optional, Tuple

from sqlalchemy.orm import Query, Session

from app.core.exceptions import NotFoundError
from app.core.monitoring import monitor_performance
from app.models.locale import Locale
from app.models.tag import Tag
from app.models.translation import Translation
from app.models.translation_key import TranslationKey
from app.schemas.translation import ExportFilters

logger = logging.getLogger(__name__)

Pair = Tuple[str, str]


def build_export_query(db: Session, filters: ExportFilters) -> Query:
    """
    (key_name, value) rows for one locale, ordered by key id.
    Tags use OR semantics, checked with EXISTS so rows never fan out.
    """
    query = (
        db.query(TranslationKey.key_name, Translation.value)
        .join(Translation, Translation.translation_key_id == TranslationKey.id)
        .join(Locale, Locale.id == Translation.locale_id)
        .filter(Locale.code == filters.locale)
    )
    if filters.tags:
        query = query.filter(TranslationKey.tags.any(Tag.name.in_(filters.tags)))
    return query.order_by(TranslationKey.id)


def encode_pair(key: str, value: str) -> str:
    """
    One '"key":"value"' member of a JSON object, escaped for embedding.
    The caller adds the braces and separating commas.
    """
    return json.dumps(key, ensure_ascii=False) + ":" + json.dumps(value, ensure_ascii=False)


class ExportCursor:
    """
    Explicit chunk cursor over the export query: (filters, chunk_size, offset).
    Each next_chunk() is one bounded round trip.
    """

    def __init__(self, db: Session, filters: ExportFilters):
        self.filters = filters
        self.chunk_size = filters.chunk_size
        self.offset = 0
        self.exhausted = False
        self._query = build_export_query(db, filters)

    def next_chunk(self) -> Tuple[List[Pair], bool]:
        """
        Fetch the next chunk.

        Returns:
            (pairs, has_more) - has_more is False once a chunk comes back
            shorter than chunk_size
        """
        if self.exhausted:
            return [], False

        rows = self._query.offset(self.offset).limit(self.chunk_size).all()
        pairs = [(row.key_name, row.value or "") for row in rows]

        logger.debug(
            f"Export chunk locale={self.filters.locale} offset={self.offset} rows={len(rows)}"
        )
        self.offset += self.chunk_size
        has_more = len(rows) == self.chunk_size
        self.exhausted = not has_more
        return pairs, has_more


class ExportStream:
    """
    Lazy, finite iterator of (key_name, value) pairs.
    Not restartable: build a new stream to scan again.

    Consumers either drain it or call close() to abort; ``on_close`` runs
    exactly once in both cases (e.g. to release the session).
    """

    def __init__(self, cursor: ExportCursor, on_close: Optional[Callable[[], None]] = None):
        self._cursor = cursor
        self._buffer: Deque[Pair] = deque()
        self._has_more = True
        self._on_close = on_close
        self.closed = False
        self.emitted = 0

    def __iter__(self) -> Iterator[Pair]:
        return self

    def __next__(self) -> Pair:
        while not self._buffer:
            if not self._has_more:
                self.close()
                raise StopIteration
            pairs, self._has_more = self._cursor.next_chunk()
            self._buffer.extend(pairs)
            if not self._has_more:
                logger.info(
                    f"Stream export drained: locale={self._cursor.filters.locale} "
                    f"rows={self.emitted + len(self._buffer)}"
                )

        self.emitted += 1
        return self._buffer.popleft()

    def close(self) -> None:
        """Stop the stream; remaining rows are never fetched. Idempotent."""
        if self.closed:
            return
        self.closed = True
        self._has_more = False
        self._buffer.clear()
        self._cursor.exhausted = True
        if self._on_close is not None:
            self._on_close()

    def fragments(self) -> Iterator[str]:
        """Remaining pairs as encoded JSON members"""
        for key, value in self:
            yield encode_pair(key, value)


class ExportService:
    """Export engine for one locale at a time"""

    def __init__(self, db: Session):
        self.db = db

    def _require_locale(self, code: str) -> Locale:
        locale = self.db.query(Locale).filter(Locale.code == code).first()
        if locale is None:
            raise NotFoundError(f"Locale '{code}' not found")
        return locale

    @monitor_performance
    def export_for_locale(self, filters: ExportFilters) -> Dict[str, str]:
        """
        Export all matching translations in one query.

        Returns:
            {key_name: value} in key id order; null values become ""

        Raises:
            NotFoundError: If the locale does not exist
        """
        self._require_locale(filters.locale)

        result = {
            row.key_name: row.value or ""
            for row in build_export_query(self.db, filters)
        }
        logger.info(
            f"Export: locale={filters.locale} tags={filters.tags} rows={len(result)}"
        )
        return result

    def stream_export_for_locale(
        self,
        filters: ExportFilters,
        on_close: Optional[Callable[[], None]] = None,
    ) -> ExportStream:
        """
        Start a chunked export. The locale is checked here, before any
        chunk is fetched, so callers can fail fast. ``on_close`` is called
        once the stream is drained or closed.

        Raises:
            NotFoundError: If the locale does not exist
        """
        self._require_locale(filters.locale)
        logger.info(
            f"Stream export: locale={filters.locale} tags={filters.tags} chunk_size={filters.chunk_size}"
        )
        return ExportStream(ExportCursor(self.db, filters), on_close=on_close)
