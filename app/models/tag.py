"""
Tag model - free-form label used to group translation keys (web, mobile, auth...)
"""
from sqlalchemy import Column, Integer, String, Table, ForeignKey

from app.core.database import Base


# Many-to-many join; owned by the translation key side
translation_key_tags = Table(
    "translation_key_tags",
    Base.metadata,
    Column(
        "translation_key_id",
        Integer,
        ForeignKey("translation_keys.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id",
        Integer,
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    ),
)


class Tag(Base):
    """Categorization label shared by any number of keys"""

    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True, index=True)

    def __repr__(self):
        return f"<Tag(name={self.name})>"
