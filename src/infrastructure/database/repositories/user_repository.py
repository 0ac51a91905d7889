from uuid import UUID
from sqlalchemy import select

from src.infrastructure.database.repositories.base import SQLAlchemyRepository
from src.infrastructure.database.models.users import Users


class UserRepository(SQLAlchemyRepository[Users]):
    """Repository for managing users"""

    model: Users = Users

    async def get_many(self, user_ids: list[UUID]) -> list[Users]:
        """Get every existing user among `user_ids`"""
        if not user_ids:
            return []
        result = await self._session.execute(select(self.model).where(self.model.id.in_(user_ids)))
        return list(result.scalars().all())
