"""
Export endpoint.
Small exports are returned as one JSON document; stream=true writes the
object member by member from a chunked cursor.
"""
import itertools
import logging
from typing import Iterator, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, StreamingResponse
from sqlalchemy.orm import Session, sessionmaker

from app.core.database import get_db, get_session_factory
from app.schemas.translation import ExportFilters
from app.services.export_service import ExportService, ExportStream

logger = logging.getLogger(__name__)

router = APIRouter()


def iter_json_object(stream: ExportStream) -> Iterator[str]:
    """Frame the stream's encoded members as one JSON object"""
    yield "{"
    first = True
    for fragment in stream.fragments():
        if not first:
            yield ","
        yield fragment
        first = False
    yield "}"


def _stream_body(stream: ExportStream) -> Iterator[str]:
    # runs until drained or the client goes away
    try:
        yield from iter_json_object(stream)
    finally:
        stream.close()
        logger.debug(f"Stream export closed after {stream.emitted} rows")


@router.get("/export/{locale}")
def export_translations(
    locale: str,
    tags: Optional[str] = Query(None, description="Comma-separated tag names (any matches)"),
    stream: bool = Query(False, description="Stream the response for large datasets"),
    chunk_size: Optional[int] = Query(None, description="Rows per round trip when streaming"),
    db: Session = Depends(get_db),
    session_factory: sessionmaker = Depends(get_session_factory),
):
    """
    Export translations for one locale as {key_name: value}.

    Returns 404 when the locale does not exist; an existing locale without
    matching keys yields {}.
    """
    filters = ExportFilters.from_params({
        "locale": locale,
        "tags": tags,
        "chunk_size": chunk_size,
    })

    if not stream:
        return JSONResponse(content=ExportService(db).export_for_locale(filters))

    # the request-scoped session may be closed before the body is sent
    stream_db = session_factory()
    try:
        pairs = ExportService(stream_db).stream_export_for_locale(filters, on_close=stream_db.close)
    except Exception:
        stream_db.close()
        raise

    body = _stream_body(pairs)
    # a started generator runs its finally even if the body is never sent
    opening = next(body)

    return StreamingResponse(
        itertools.chain([opening], body),
        media_type="application/json",
        headers={"Cache-Control": "no-cache"},
    )
