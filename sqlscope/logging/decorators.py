"""Decorators and utilities for operation logging."""

import functools
import time
import logging
from typing import Any, Callable, Optional

from ..errors import ExplorerError

logger = logging.getLogger("sqlscope.operations")


def logged_operation(name: Optional[str] = None):
    """Decorator for logging service operations.

    Logs the start at DEBUG, completion with its duration at INFO, and
    failures at WARNING (expected errors such as a bad query) or ERROR
    (anything else). Exceptions are always re-raised.

    Usage:
        @logged_operation()
        def tables(self):
            ...

    Args:
        name: Operation name to log (defaults to the function name)

    Returns:
        Decorated function
    """
    def decorator(func: Callable) -> Callable:
        operation = name or func.__name__

        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            logger.debug("%s started", operation)
            start_time = time.time()
            try:
                result = func(*args, **kwargs)
            except ExplorerError as e:
                duration_ms = int((time.time() - start_time) * 1000)
                logger.warning("%s failed after %dms: [%s] %s", operation, duration_ms, e.code, e.message)
                raise
            except Exception as e:
                duration_ms = int((time.time() - start_time) * 1000)
                logger.error("%s crashed after %dms: %s: %s", operation, duration_ms, type(e).__name__, e)
                raise
            duration_ms = int((time.time() - start_time) * 1000)
            logger.info("%s completed in %dms", operation, duration_ms)
            return result

        return wrapper
    return decorator
