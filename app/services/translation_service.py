"""
Translation Service - search and mutation of translation keys
Keys, their per-locale values and tags are written in one transaction per call;
locales and tags are created on first use.
"""
import logging
import math
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Any

from sqlalchemy import func
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.core.exceptions import (
    ConflictError,
    NotFoundError,
    QueryFailureError,
    ValidationError,
)
from app.core.fulltext import fulltext_match
from app.core.monitoring import monitor_performance
from app.models.locale import Locale
from app.models.tag import Tag, translation_key_tags
from app.models.translation import Translation, TranslationStatus
from app.models.translation_key import TranslationKey
from app.schemas.translation import TranslationFilters

logger = logging.getLogger(__name__)

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
    "mysql": mysql.insert,
}


def _dialect_insert(dialect_name: str, table):
    try:
        return _INSERT_BY_DIALECT[dialect_name](table)
    except KeyError:
        raise QueryFailureError(f"Unsupported database dialect: {dialect_name}")


def insert_ignoring_conflict(dialect_name: str, table, values: Dict[str, Any], unique_column: str):
    """
    INSERT that silently does nothing when ``unique_column`` already holds the value.
    Safe under concurrent callers: the unique constraint decides the winner.
    """
    stmt = _dialect_insert(dialect_name, table).values(**values)
    if dialect_name == "mysql":
        # no-op assignment keeps the existing row
        return stmt.on_duplicate_key_update({unique_column: table.c[unique_column]})
    return stmt.on_conflict_do_nothing(index_elements=[unique_column])


def upsert_translation_stmt(dialect_name: str, translation_key_id: int, locale_id: int, value: str):
    """INSERT ... ON CONFLICT (key, locale) DO UPDATE for one translation value."""
    table = Translation.__table__
    stmt = _dialect_insert(dialect_name, table).values(
        translation_key_id=translation_key_id,
        locale_id=locale_id,
        value=value,
        status=TranslationStatus.APPROVED,
    )
    if dialect_name == "mysql":
        return stmt.on_duplicate_key_update(
            value=stmt.inserted.value,
            status=stmt.inserted.status,
            updated_at=func.now(),
        )
    return stmt.on_conflict_do_update(
        index_elements=["translation_key_id", "locale_id"],
        set_={
            "value": stmt.excluded.value,
            "status": stmt.excluded.status,
            "updated_at": func.now(),
        },
    )


@dataclass
class SearchPage:
    """One page of search results plus the pre-pagination total"""
    data: List[TranslationKey]
    current_page: int
    per_page: int
    total: int

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.per_page))


class TranslationService:
    """
    Search and mutation engine for translation keys.
    One instance per request/session; holds no state besides the session.
    """

    def __init__(self, db: Session):
        self.db = db

    @property
    def dialect_name(self) -> str:
        return self.db.get_bind().dialect.name

    # ------------------------------------------------------------------ search

    @monitor_performance
    def search(self, filters: TranslationFilters) -> SearchPage:
        """
        Search translation keys.

        Joins are only added for the filters that are set. The translations
        join is shared by the keyword and locale filters. Tags use OR
        semantics: a key matches if it carries any of the given tags.

        Args:
            filters: Normalized search filters (includes page/per_page)

        Returns:
            SearchPage ordered by key id, with tags and matching translations
            loaded for the page rows only
        """
        dialect = self.dialect_name
        query = self.db.query(TranslationKey)
        translations_joined = False

        if filters.keyword:
            query = query.join(
                Translation, Translation.translation_key_id == TranslationKey.id
            ).filter(fulltext_match(Translation.value, filters.keyword, dialect))
            translations_joined = True

        if filters.key:
            query = query.filter(fulltext_match(TranslationKey.key_name, filters.key, dialect))

        if filters.locale:
            if not translations_joined:
                query = query.join(
                    Translation, Translation.translation_key_id == TranslationKey.id
                )
            query = query.join(Locale, Locale.id == Translation.locale_id).filter(
                Locale.code == filters.locale
            )

        if filters.tags:
            query = (
                query.join(
                    translation_key_tags,
                    translation_key_tags.c.translation_key_id == TranslationKey.id,
                )
                .join(Tag, Tag.id == translation_key_tags.c.tag_id)
                .filter(Tag.name.in_(filters.tags))
            )

        # joins fan out rows
        query = query.distinct()
        total = query.count()

        keys = (
            query.options(*self._page_loaders(filters, dialect))
            .populate_existing()
            .order_by(TranslationKey.id)
            .offset((filters.page - 1) * filters.per_page)
            .limit(filters.per_page)
            .all()
        )

        logger.info(
            f"Translation search: filters={filters.model_dump(exclude_defaults=True)} "
            f"total={total} page={filters.page} returned={len(keys)}"
        )
        return SearchPage(
            data=keys,
            current_page=filters.page,
            per_page=filters.per_page,
            total=total,
        )

    @staticmethod
    def _page_loaders(filters: TranslationFilters, dialect: str) -> list:
        """
        Eager loaders for the page rows. Translations are narrowed to the
        requested locale and keyword when those filters are set.
        """
        criteria = []
        if filters.locale:
            criteria.append(Translation.locale.has(Locale.code == filters.locale))
        if filters.keyword:
            criteria.append(fulltext_match(Translation.value, filters.keyword, dialect))

        relation = TranslationKey.translations
        if criteria:
            relation = relation.and_(*criteria)

        return [
            selectinload(TranslationKey.tags),
            selectinload(relation).selectinload(Translation.locale),
        ]

    def find_key_with_relations(self, key_id: int) -> TranslationKey:
        """
        Get one translation key with all tags and translations.

        Raises:
            NotFoundError: If the key does not exist
        """
        key = (
            self.db.query(TranslationKey)
            .options(
                selectinload(TranslationKey.tags),
                selectinload(TranslationKey.translations).selectinload(Translation.locale),
            )
            .populate_existing()
            .filter(TranslationKey.id == key_id)
            .first()
        )
        if key is None:
            raise NotFoundError(f"Translation key {key_id} not found")
        return key

    # ---------------------------------------------------------------- mutation

    @monitor_performance
    def create(
        self,
        key_name: str,
        values_by_locale: Dict[str, str],
        tags: Optional[Iterable[str]] = None,
    ) -> TranslationKey:
        """
        Create a translation key with its localized values and tags.

        Args:
            key_name: Unique key name (e.g. 'auth.login.title')
            values_by_locale: {locale_code: text}, at least one entry
            tags: Tag names to attach

        Returns:
            The new key with tags and translations loaded

        Raises:
            ValidationError: If no values are given
            ConflictError: If key_name already exists
        """
        if not values_by_locale:
            raise ValidationError(
                "At least one locale value is required",
                details=[{"loc": ["values"], "msg": "must not be empty", "type": "missing"}],
            )
        if self._key_name_taken(key_name):
            raise ConflictError(f"Translation key '{key_name}' already exists")

        with self._transaction(key_name=key_name):
            key = TranslationKey(key_name=key_name, description=None)
            self.db.add(key)
            self.db.flush()
            key_id = key.id

            if tags:
                self._sync_tags(key, tags)
            self._upsert_values(key_id, values_by_locale)

        logger.info(f"Created translation key {key_id} '{key_name}' ({len(values_by_locale)} locales)")
        return self.find_key_with_relations(key_id)

    @monitor_performance
    def update(self, key_id: int, payload: Dict[str, Any]) -> TranslationKey:
        """
        Update a translation key.

        Only keys present in ``payload`` are touched:
        - key_name: rename (must stay unique)
        - tags: replace associations with exactly this set ([] or None clears)
        - values: merge {locale_code: text}; locales not listed keep their value

        Raises:
            NotFoundError: If the key does not exist
            ConflictError: If the new key_name belongs to another key
        """
        key = self.db.query(TranslationKey).filter(TranslationKey.id == key_id).first()
        if key is None:
            raise NotFoundError(f"Translation key {key_id} not found")

        new_name = payload.get("key_name")
        if new_name is not None and new_name != key.key_name:
            if self._key_name_taken(new_name, exclude_id=key_id):
                raise ConflictError(f"Translation key '{new_name}' already exists")

        with self._transaction(key_name=new_name, exclude_id=key_id):
            if new_name is not None:
                key.key_name = new_name
                self.db.flush()

            if "tags" in payload:
                self._sync_tags(key, payload["tags"] or [])

            if payload.get("values"):
                self._upsert_values(key_id, payload["values"])

        logger.info(f"Updated translation key {key_id}: fields={sorted(payload)}")
        return self.find_key_with_relations(key_id)

    @monitor_performance
    def delete(self, key_id: int) -> bool:
        """
        Delete a translation key. Translations and tag links go with it via
        ON DELETE CASCADE; shared tags and locales stay.

        Returns:
            True if a row was removed, False if the id did not exist
        """
        with self._transaction():
            deleted = (
                self.db.query(TranslationKey)
                .filter(TranslationKey.id == key_id)
                .delete(synchronize_session=False)
            )

        logger.info(f"Delete translation key {key_id}: deleted={bool(deleted)}")
        return bool(deleted)

    # ----------------------------------------------------------------- helpers

    def get_or_create_locale(self, code: str) -> Locale:
        """Idempotent: concurrent callers for the same code get the same row."""
        locale = self.db.query(Locale).filter(Locale.code == code).first()
        if locale:
            return locale

        self.db.execute(insert_ignoring_conflict(
            self.dialect_name, Locale.__table__, {"code": code, "name": code.upper()}, "code"
        ))
        return self.db.query(Locale).filter(Locale.code == code).one()

    def get_or_create_tag(self, name: str) -> Tag:
        """Idempotent: concurrent callers for the same name get the same row."""
        tag = self.db.query(Tag).filter(Tag.name == name).first()
        if tag:
            return tag

        self.db.execute(insert_ignoring_conflict(
            self.dialect_name, Tag.__table__, {"name": name}, "name"
        ))
        return self.db.query(Tag).filter(Tag.name == name).one()

    def _sync_tags(self, key: TranslationKey, names: Iterable[str]) -> None:
        # a tag set: one association per distinct trimmed name
        unique_names = dict.fromkeys(name.strip() for name in names)
        key.tags = [self.get_or_create_tag(name) for name in unique_names if name]
        self.db.flush()

    def _upsert_values(self, key_id: int, values_by_locale: Dict[str, str]) -> None:
        dialect = self.dialect_name
        for code, value in values_by_locale.items():
            locale = self.get_or_create_locale(code)
            self.db.execute(upsert_translation_stmt(dialect, key_id, locale.id, str(value)))

    def _key_name_taken(self, key_name: str, exclude_id: Optional[int] = None) -> bool:
        query = self.db.query(TranslationKey.id).filter(TranslationKey.key_name == key_name)
        if exclude_id is not None:
            query = query.filter(TranslationKey.id != exclude_id)
        return query.first() is not None

    @contextmanager
    def _transaction(self, key_name: Optional[str] = None, exclude_id: Optional[int] = None):
        """
        Commit on success, roll back everything on failure.
        Storage errors surface as QueryFailureError, or ConflictError when the
        unique key_name constraint was hit by a concurrent writer.
        """
        try:
            yield
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Integrity error, transaction rolled back: {e.orig}", exc_info=True)
            if key_name is not None and self._key_name_taken(key_name, exclude_id=exclude_id):
                raise ConflictError(f"Translation key '{key_name}' already exists") from e
            raise QueryFailureError("Database constraint violated") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error, transaction rolled back: {e}", exc_info=True)
            raise QueryFailureError("Database operation failed") from e
        except Exception:
            self.db.rollback()
            raise
