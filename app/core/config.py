"""
Application configuration using Pydantic Settings
"""
from typing import List
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings"""

    # App
    APP_NAME: str = "Translation Management Service"
    DEBUG: bool = False
    ENVIRONMENT: str = "production"
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    # Database
    DATABASE_URL: str = Field(default="sqlite:///./translations.db")
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_RECYCLE: int = 3600  # seconds
    DB_CONNECT_TIMEOUT: int = 10  # seconds
    DB_STATEMENT_TIMEOUT_MS: int = 30000  # PostgreSQL only

    # Search
    DEFAULT_PER_PAGE: int = 20
    MAX_PER_PAGE: int = 100

    # Export
    EXPORT_CHUNK_SIZE: int = 1000
    MAX_EXPORT_CHUNK_SIZE: int = 10000

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
