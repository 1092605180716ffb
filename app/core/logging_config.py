"""
Logging setup
"""
import logging
import logging.config

from app.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = None) -> None:
    """
    Configure root logging once at startup.

    Args:
        level: Override for settings.LOG_LEVEL
    """
    level = (level or settings.LOG_LEVEL).upper()

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": LOG_FORMAT},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {"level": level, "handlers": ["console"]},
        "loggers": {
            # SQL echo only when debugging
            "sqlalchemy.engine": {"level": "INFO" if settings.DEBUG else "WARNING"},
            "uvicorn.access": {"level": "WARNING"},
        },
    })
