"""
Pydantic schemas for Translation API
"""
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.models.translation import TranslationStatus


def normalize_tags(value: Any) -> List[str]:
    """
    Accept a comma-separated string or a list of names.
    Entries are trimmed, empty ones dropped and duplicates removed (order kept).
    """
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple, set)):
        raise ValueError("tags must be a comma-separated string or a list of strings")

    tags: List[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError("tag names must be strings")
        name = item.strip()
        if len(name) > 100:
            raise ValueError(f"tag name too long: {name[:20]!r}...")
        if name and name not in tags:
            tags.append(name)
    return tags


def validation_details(exc: PydanticValidationError) -> List[Dict[str, Any]]:
    """JSON-safe error list for a pydantic ValidationError"""
    return [
        {"loc": list(error["loc"]), "msg": error["msg"], "type": error["type"]}
        for error in exc.errors()
    ]


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class TranslationFilters(BaseModel):
    """
    Normalized search criteria. Every field is optional; an empty
    filter set matches every translation key.
    """
    keyword: Optional[str] = None  # full-text search in translation values
    key: Optional[str] = None  # full-text search in key names
    locale: Optional[str] = Field(default=None, max_length=16)
    tags: List[str] = Field(default_factory=list)  # OR semantics
    page: int = Field(default=1, ge=1)
    per_page: int = Field(default=settings.DEFAULT_PER_PAGE, ge=1, le=settings.MAX_PER_PAGE)

    strip_text = field_validator("keyword", "key", "locale", mode="before")(_blank_to_none)

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, value):
        return normalize_tags(value)

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "TranslationFilters":
        """
        Build filters from raw request parameters.

        ``tag`` is accepted as an alias when ``tags`` is absent. Unknown
        parameters are ignored.

        Raises:
            ValidationError: If pagination or any field is malformed
        """
        data = {name: value for name, value in params.items() if value is not None}
        alias = data.pop("tag", None)
        if "tags" not in data and alias is not None:
            data["tags"] = alias

        try:
            return cls(**data)
        except PydanticValidationError as e:
            raise ValidationError("Invalid search filters", details=validation_details(e)) from e


class ExportFilters(BaseModel):
    """Criteria for full and streaming export. Locale is mandatory."""
    locale: str = Field(..., min_length=1, max_length=16)
    tags: List[str] = Field(default_factory=list)  # OR semantics
    chunk_size: int = Field(
        default=settings.EXPORT_CHUNK_SIZE, ge=1, le=settings.MAX_EXPORT_CHUNK_SIZE
    )

    @field_validator("locale", mode="before")
    @classmethod
    def _strip_locale(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, value):
        return normalize_tags(value)

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "ExportFilters":
        data = {name: value for name, value in params.items() if value is not None}
        try:
            return cls(**data)
        except PydanticValidationError as e:
            raise ValidationError("Invalid export filters", details=validation_details(e)) from e


def _clean_locale_values(values: Optional[Dict[str, str]]) -> Optional[Dict[str, str]]:
    if values is None:
        return None

    cleaned = {}
    for code, text in values.items():
        code = code.strip()
        if not code or len(code) > 16:
            raise ValueError(f"invalid locale code: {code!r}")
        cleaned[code] = text
    return cleaned


def _clean_key_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None

    value = value.strip()
    if not value:
        raise ValueError("key_name must not be blank")
    return value


class TranslationCreate(BaseModel):
    """Schema for creating a translation key"""
    key_name: str = Field(..., min_length=1, max_length=255)
    values: Dict[str, str] = Field(..., min_length=1)  # locale code -> text
    tags: List[str] = Field(default_factory=list)

    clean_key_name = field_validator("key_name")(_clean_key_name)
    clean_values = field_validator("values")(_clean_locale_values)

    @field_validator("tags", mode="before")
    @classmethod
    def _clean_tags(cls, value):
        return normalize_tags(value)


class TranslationUpdate(BaseModel):
    """
    Schema for updating a translation key.
    Only fields present in the request are applied (see exclude_unset).
    """
    key_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    values: Optional[Dict[str, str]] = None
    tags: Optional[List[str]] = None

    # null key_name means "keep the current name"
    clean_key_name = field_validator("key_name")(_clean_key_name)
    clean_values = field_validator("values")(_clean_locale_values)

    @field_validator("tags", mode="before")
    @classmethod
    def _clean_tags(cls, value):
        # explicit null clears the tags, same as []
        return normalize_tags(value)


class TagResponse(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class LocaleResponse(BaseModel):
    id: int
    code: str
    name: str

    class Config:
        from_attributes = True


class TranslationResponse(BaseModel):
    id: int
    value: str
    status: TranslationStatus
    locale: LocaleResponse
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TranslationKeyResponse(BaseModel):
    """Translation key expanded with tags and translations"""
    id: int
    key_name: str
    description: Optional[str] = None
    tags: List[TagResponse] = []
    translations: List[TranslationResponse] = []

    class Config:
        from_attributes = True


class TranslationPage(BaseModel):
    """Paginated search envelope"""
    data: List[TranslationKeyResponse]
    current_page: int
    per_page: int
    total: int
    last_page: int

    class Config:
        from_attributes = True


class DeleteResponse(BaseModel):
    deleted: bool
