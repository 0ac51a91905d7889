from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import TypeVar
from uuid import UUID

from src.infrastructure.database.models.BaseModel import BaseModel as DBModel

MODEL_TYPE = TypeVar('MODEL_TYPE', bound=DBModel)
SessionType = TypeVar('SessionType')


class AbstractRepository[MODEL_TYPE](ABC):
    """
    Abstract repository class defining the base interface for working with models
    """

    @abstractmethod
    def unit_of_work(self) -> AbstractAsyncContextManager[SessionType]:
        """Runs the enclosed operations as one atomic commit"""
        raise NotImplementedError

    @abstractmethod
    async def get_by_id(self, id: UUID, include_relations: list[str] | None = None) -> MODEL_TYPE | None:
        """Gets a record by id with optional related data"""
        raise NotImplementedError

    @abstractmethod
    async def get_by_filter(self, include_relations: list[str] | None = None, **filters) -> list[MODEL_TYPE]:
        """Gets records by specified filters with optional related data"""
        raise NotImplementedError

    @abstractmethod
    def add_object(self, obj: MODEL_TYPE) -> None:
        """Adds an object to the current unit of work"""
        raise NotImplementedError

    @abstractmethod
    async def delete_object(self, obj: MODEL_TYPE) -> None:
        """Deletes an object within the current unit of work"""
        raise NotImplementedError
