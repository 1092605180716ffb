"""
Translations endpoints.
Structural checks only; filter bounds and business rules live in the services.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.schemas.translation import (
    DeleteResponse,
    TranslationCreate,
    TranslationFilters,
    TranslationKeyResponse,
    TranslationPage,
    TranslationUpdate,
)
from app.services.translation_service import TranslationService

logger = logging.getLogger(__name__)

router = APIRouter()


def get_translation_service(db: Session = Depends(get_db)) -> TranslationService:
    return TranslationService(db)


@router.get("/translations", response_model=TranslationPage)
def list_translations(
    keyword: Optional[str] = Query(None, description="Full-text search in values"),
    key: Optional[str] = Query(None, description="Full-text search in key names"),
    locale: Optional[str] = Query(None, description="Locale code, e.g. 'en'"),
    tags: Optional[str] = Query(None, description="Comma-separated tag names (any matches)"),
    tag: Optional[str] = Query(None, description="Alias for tags"),
    page: Optional[int] = Query(None),
    per_page: Optional[int] = Query(None),
    service: TranslationService = Depends(get_translation_service),
):
    """
    Search translation keys.

    Returns:
        Page envelope {data, current_page, per_page, total, last_page}
    """
    filters = TranslationFilters.from_params({
        "keyword": keyword,
        "key": key,
        "locale": locale,
        "tags": tags,
        "tag": tag,
        "page": page,
        "per_page": per_page,
    })
    return TranslationPage.model_validate(service.search(filters))


@router.get("/translations/{key_id}", response_model=TranslationKeyResponse)
def get_translation(
    key_id: int,
    service: TranslationService = Depends(get_translation_service),
):
    """Get one translation key with tags and all translations"""
    return service.find_key_with_relations(key_id)


@router.post(
    "/translations",
    response_model=TranslationKeyResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_translation(
    payload: TranslationCreate,
    service: TranslationService = Depends(get_translation_service),
):
    """Create a translation key with initial values and tags"""
    return service.create(
        key_name=payload.key_name,
        values_by_locale=payload.values,
        tags=payload.tags,
    )


@router.put("/translations/{key_id}", response_model=TranslationKeyResponse)
def update_translation(
    key_id: int,
    payload: TranslationUpdate,
    service: TranslationService = Depends(get_translation_service),
):
    """
    Update key name, tags and/or values.
    Fields missing from the body are left alone; values are merged per locale.
    """
    return service.update(key_id, payload.model_dump(exclude_unset=True))


@router.delete("/translations/{key_id}", response_model=DeleteResponse)
def delete_translation(
    key_id: int,
    service: TranslationService = Depends(get_translation_service),
):
    """Delete a translation key. Unknown ids return deleted=false."""
    return DeleteResponse(deleted=service.delete(key_id))
