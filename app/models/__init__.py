"""
SQLAlchemy models
"""
from app.models.locale import Locale
from app.models.tag import Tag, translation_key_tags
from app.models.translation_key import TranslationKey
from app.models.translation import Translation, TranslationStatus

__all__ = [
    "Locale",
    "Tag",
    "TranslationKey",
    "Translation",
    "TranslationStatus",
    "translation_key_tags",
]

# Import Base for metadata.create_all()
from app.core.database import Base
