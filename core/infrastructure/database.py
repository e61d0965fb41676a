"""
Database utilities.
"""

import contextlib
import logging
from typing import Iterator

from django.db import DatabaseError

from core.domain.exceptions import PersistenceError

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def persistence_errors(operation: str) -> Iterator[None]:
    """
    Translate database failures into PersistenceError.

    Domain exceptions raised inside the block pass through untouched, so
    a business outcome is never disguised as a storage failure and a
    storage failure is never reported as a business outcome.

    Usage:
        with persistence_errors("license save"):
            # Database operations
            pass

    Args:
        operation: Short description used in the error message

    Raises:
        PersistenceError: If the database raised an error
    """
    try:
        yield
    except DatabaseError as e:
        logger.error("Database error during %s: %s", operation, e, exc_info=True)
        raise PersistenceError(f"License storage failed during {operation}") from e
