"""
Shared repository plumbing.

- handle_db_errors maps SQLAlchemy errors to domain repository errors
- BaseRepository holds the session and picks the dialect-specific insert
"""

import logging
from collections.abc import Callable
from functools import wraps
from typing import Any

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from toolchat.domain.exceptions import RepositoryError

logger = logging.getLogger(__name__)


def handle_db_errors(entity_type: str = "Entity") -> Callable[..., Any]:
    """
    Decorator to convert SQLAlchemy errors to domain exceptions.

    Args:
        entity_type: Name of the entity type for error messages
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await func(*args, **kwargs)
            except SQLAlchemyError as e:
                raise RepositoryError(
                    f"Database error while operating on {entity_type}",
                    original_error=e,
                ) from e

        return wrapper

    return decorator


class BaseRepository:
    """Holds the session shared by a repository's operations."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @property
    def dialect_name(self) -> str:
        return self._session.get_bind().dialect.name

    def _upsert(self, model: Any) -> Any:
        """INSERT statement supporting ON CONFLICT for the bound dialect."""
        if self.dialect_name == "postgresql":
            return pg_insert(model)
        if self.dialect_name == "sqlite":
            return sqlite_insert(model)
        raise RepositoryError(f"Upsert is not supported for dialect '{self.dialect_name}'")

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()
