"""
Lemonade Backend: Service Base Class
=====================================

What:  Shared plumbing for every service that talks to the database.
How:   A service is constructed with a session factory. Each public operation
       runs inside `self.unit_of_work(...)`, which is `session_scope()` plus
       translation of unexpected SQLAlchemy failures into `DatabaseError`.
       Application errors (`LemonadeError`) raised inside the block pass
       through unchanged after the rollback.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lemonade.database import session_scope
from lemonade.exceptions import DatabaseError, ValidationError

logger = logging.getLogger(__name__)


def coerce_uuid(value: Any, field: str) -> uuid.UUID:
    """
    Accept a UUID or anything whose str() is a UUID.

    Raises:
        ValidationError: The value is not a well-formed UUID.
    """
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        raise ValidationError(message=f"{field} must be a UUID (got {value!r})", field=field)


class DatabaseService:
    """Base for services that own their units of work."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def unit_of_work(self, operation: str) -> AsyncIterator[AsyncSession]:
        """
        Run one operation in its own transaction.

        Args:
            operation: Short label used in logs and error context,
                       e.g. "create beverage type".

        Raises:
            DatabaseError: A SQLAlchemy error escaped the block. Everything
                           staged in the block has been rolled back.
        """
        try:
            async with session_scope(self._session_factory) as session:
                yield session
        except SQLAlchemyError as e:
            logger.error("Database error during %s: %s", operation, str(e), exc_info=True)
            raise DatabaseError(
                message=f"Could not {operation}. Please try again.",
                context={"operation": operation, "error_type": type(e).__name__},
            )
