"""
Health check utilities
"""
from typing import Dict, Any
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
import logging

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def check_database(session_factory) -> Dict[str, Any]:
    """
    Check database connectivity.

    Args:
        session_factory: Callable returning a new Session

    Returns:
        Dictionary with status and details
    """
    try:
        db = session_factory()
        try:
            db.execute(text("SELECT 1"))
            return {
                "status": "healthy",
                "message": "Database connection successful"
            }
        finally:
            db.close()
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return {
            "status": "unhealthy",
            "message": f"Database connection failed: {str(e)}"
        }


def get_health_status(session_factory) -> Dict[str, Any]:
    """
    Get overall health status.

    Returns:
        Dictionary with health status of all components
    """
    db_status = check_database(session_factory)

    return {
        "status": db_status["status"],
        "version": VERSION,
        "environment": settings.ENVIRONMENT,
        "components": {
            "database": db_status,
        }
    }
