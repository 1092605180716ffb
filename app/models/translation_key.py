"""
TranslationKey model - canonical identifier of one translatable string
"""
from sqlalchemy import Column, Integer, String, Text, Index
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.core.fulltext import pg_document
from app.models.tag import Tag, translation_key_tags


class TranslationKey(Base):
    """
    Translation key (e.g. auth.login.title).

    Owns its Translation rows and tag associations; both are removed by the
    database (ON DELETE CASCADE) when the key is deleted.
    """

    __tablename__ = "translation_keys"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key_name = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)

    # Relationships
    tags = relationship(
        Tag,
        secondary=translation_key_tags,
        order_by=Tag.id,
        passive_deletes=True,
    )
    translations = relationship(
        "Translation",
        back_populates="translation_key",
        order_by="Translation.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index(
            "ft_translation_keys_key_name", "key_name", mysql_prefix="FULLTEXT"
        ).ddl_if(dialect="mysql"),
    )

    def __repr__(self):
        return f"<TranslationKey(id={self.id}, key_name={self.key_name})>"


# GIN index on the same expression fulltext_match() searches
Index(
    "ft_translation_keys_key_name_gin",
    pg_document(TranslationKey.key_name),
    postgresql_using="gin",
).ddl_if(dialect="postgresql")
