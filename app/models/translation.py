"""
Translation model - localized value of one key in one locale
"""
import enum

from sqlalchemy import (
    Column, Integer, Text, DateTime, Enum, ForeignKey, Index, UniqueConstraint, func,
)
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.core.fulltext import pg_document


class TranslationStatus(str, enum.Enum):
    DRAFT = "draft"
    APPROVED = "approved"


class Translation(Base):
    """Current value for a (translation key, locale) pair"""

    __tablename__ = "translations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    translation_key_id = Column(
        Integer, ForeignKey("translation_keys.id", ondelete="CASCADE"), nullable=False
    )
    locale_id = Column(
        Integer, ForeignKey("locales.id", ondelete="CASCADE"), nullable=False, index=True
    )
    value = Column(Text, nullable=False)
    status = Column(
        Enum(
            TranslationStatus,
            name="translation_status",
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=False,
        default=TranslationStatus.APPROVED,
        server_default=TranslationStatus.APPROVED.value,
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    # Relationships
    translation_key = relationship("TranslationKey", back_populates="translations")
    locale = relationship("Locale", back_populates="translations")

    # One current value per key per locale
    __table_args__ = (
        UniqueConstraint("translation_key_id", "locale_id", name="uq_translation"),
        Index(
            "ft_translations_value", "value", mysql_prefix="FULLTEXT"
        ).ddl_if(dialect="mysql"),
    )

    def __repr__(self):
        return f"<Translation(key_id={self.translation_key_id}, locale_id={self.locale_id})>"


# GIN index on the same expression fulltext_match() searches
Index(
    "ft_translations_value_gin",
    pg_document(Translation.value),
    postgresql_using="gin",
).ddl_if(dialect="postgresql")
