"""
Monitoring utilities: metric/error log lines and a timing decorator
"""
from typing import Dict, Any, Optional
from datetime import datetime, timezone
from functools import wraps
import logging
import time

logger = logging.getLogger(__name__)


def track_error(
    error_type: str,
    metadata: Optional[Dict[str, Any]] = None
):
    """
    Track error for monitoring.

    Args:
        error_type: Type of error
        metadata: Additional metadata
    """
    error_data = {
        "error_type": error_type,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "metadata": metadata or {},
    }

    logger.error(f"Error tracked: {error_data}")


def track_metric(
    metric_name: str,
    value: float,
    tags: Optional[Dict[str, str]] = None
):
    """
    Track metric for monitoring.

    Args:
        metric_name: Name of metric
        value: Metric value
        tags: Additional tags
    """
    metric_data = {
        "metric": metric_name,
        "value": round(value, 6),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "tags": tags or {},
    }

    logger.info(f"Metric: {metric_data}")


def monitor_performance(func):
    """
    Decorator logging the duration of a service call and any error it raises.

    Usage:
        @monitor_performance
        def search(self, filters):
            ...
    """
    name = func.__qualname__

    @wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.perf_counter()

        try:
            result = func(*args, **kwargs)
        except Exception as e:
            duration = time.perf_counter() - start_time
            track_error(
                f"{name}.error",
                metadata={"error": str(e), "type": type(e).__name__, "duration": duration}
            )
            track_metric(f"{name}.duration", duration, tags={"status": "error"})
            raise

        track_metric(f"{name}.duration", time.perf_counter() - start_time, tags={"status": "success"})
        return result

    return wrapper
