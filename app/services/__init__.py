"""
Business logic services - search, mutation and export of translations
"""
from app.services.translation_service import TranslationService, SearchPage
from app.services.export_service import ExportService, ExportCursor, ExportStream

__all__ = [
    "TranslationService",
    "SearchPage",
    "ExportService",
    "ExportCursor",
    "ExportStream",
]
