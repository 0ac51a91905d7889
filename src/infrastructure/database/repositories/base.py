from contextlib import asynccontextmanager
from typing import ClassVar
from collections.abc import AsyncGenerator
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.application.interfaces.repositories import AbstractRepository, MODEL_TYPE
from src.core.exceptions import ConflictError, DenialReason
from src.core.logging import get_logger

logger = get_logger(__name__)


class SQLAlchemyRepository(AbstractRepository[MODEL_TYPE]):
    model: ClassVar[type[MODEL_TYPE]]

    def __init__(self, session: AsyncSession):
        self._session = session

    @asynccontextmanager
    async def unit_of_work(self) -> AsyncGenerator[AsyncSession]:
        """
        Commit everything done inside the block at once, or nothing.
        Store-level conflicts from concurrent writers surface as a retryable ConflictError.
        """
        try:
            yield self._session
            await self._session.commit()
        except (IntegrityError, OperationalError) as e:
            await self._session.rollback()
            logger.warning('Transaction aborted by the store: %s', e)
            raise ConflictError(
                'The conversation was modified concurrently, retry the request',
                DenialReason.CONCURRENT_MODIFICATION,
                retryable=True,
            ) from e
        except Exception:
            await self._session.rollback()
            raise

    async def get_by_id(self, id: UUID, include_relations: list[str] | None = None) -> MODEL_TYPE | None:
        """Get record by id"""
        query = select(self.model).where(self.model.id == id)
        if include_relations:
            for relation in include_relations:
                query = query.options(selectinload(getattr(self.model, relation)))
        result = await self._session.execute(query)
        return result.scalar_one_or_none()

    async def get_by_filter(self, include_relations: list[str] | None = None, **filters) -> list[MODEL_TYPE]:
        """Get records by filters with optional related data loading"""
        query = select(self.model)

        if include_relations:
            for relation in include_relations:
                query = query.options(selectinload(getattr(self.model, relation)))

        for key, value in filters.items():
            query = query.where(getattr(self.model, key) == value)

        result = await self._session.execute(query)
        return list(result.scalars().all())

    def add_object(self, obj: MODEL_TYPE) -> None:
        """Add an object to the session without committing"""
        self._session.add(obj)

    async def delete_object(self, obj: MODEL_TYPE) -> None:
        """Delete an object and flush so follow-up statements see the row gone"""
        await self._session.delete(obj)
        await self._session.flush()

    async def flush(self) -> None:
        """Flush pending changes to the database without committing"""
        await self._session.flush()
