"""
Locale model - a language/region code such as "en" or "pt-BR"
"""
from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from app.core.database import Base


class Locale(Base):
    """Target language for translations. Created lazily on first use."""

    __tablename__ = "locales"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(16), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=False)

    translations = relationship("Translation", back_populates="locale", passive_deletes=True)

    def __repr__(self):
        return f"<Locale(code={self.code})>"
