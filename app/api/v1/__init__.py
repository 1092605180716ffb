"""
API v1.

- translations.py: search, show, create, update, delete translation keys
- export.py: per-locale export, full or streamed
"""
from fastapi import APIRouter

from .translations import router as translations_router
from .export import router as export_router

router = APIRouter()

router.include_router(translations_router, tags=["translations"])
router.include_router(export_router, tags=["export"])

__all__ = ["router"]
