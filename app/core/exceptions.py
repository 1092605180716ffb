"""
Error kinds raised by the translation engines.
The HTTP layer maps each kind to a status code (see app.main).
"""
from typing import Any, Optional


class TranslationServiceError(Exception):
    """Base class for all engine errors"""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(TranslationServiceError):
    """Malformed filter, pagination or payload"""


class NotFoundError(TranslationServiceError):
    """Referenced translation key or export locale does not exist"""


class ConflictError(TranslationServiceError):
    """key_name uniqueness violation"""


class QueryFailureError(TranslationServiceError):
    """Storage operation failed; safe for the caller to retry"""
