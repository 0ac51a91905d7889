from collections.abc import Mapping
from uuid import UUID
from sqlalchemy import select, and_, delete, func, insert, update

from src.infrastructure.database.repositories.base import SQLAlchemyRepository
from src.infrastructure.database.models.roles import Roles, RoleCounters, user_conversation_roles
from src.infrastructure.database.models.user_conversation import UserConversation


class RoleRepository(SQLAlchemyRepository[Roles]):
    """Roles, their levels and the role/member links of a conversation"""

    model: Roles = Roles

    # -------------- RANK COUNTER --------------

    async def create_counter(self, conversation_id: UUID) -> RoleCounters:
        counter = RoleCounters(conversation_id=conversation_id, last_level=0)
        self.add_object(counter)
        await self.flush()
        return counter

    async def lock_counter(self, conversation_id: UUID) -> RoleCounters:
        """
        Lock the conversation's counter row until the end of the transaction.
        Every level mutation takes this lock first, so they are serialized per conversation.
        """
        query = (
            select(RoleCounters)
            .where(RoleCounters.conversation_id == conversation_id)
            .with_for_update()
        )
        result = await self._session.execute(query)
        counter = result.scalar_one_or_none()
        if counter is None:
            counter = await self.create_counter(conversation_id)
        return counter

    async def resync_counter(self, counter: RoleCounters) -> int:
        """Recompute the counter from the live role count, never trust the cached value"""
        counter.last_level = await self.count_leveled(counter.conversation_id)
        await self.flush()
        return counter.last_level

    # -------------- ROLES --------------

    async def count_leveled(self, conversation_id: UUID) -> int:
        query = select(func.count(Roles.id)).where(
            and_(Roles.conversation_id == conversation_id, Roles.level.is_not(None))
        )
        result = await self._session.execute(query)
        return result.scalar_one()

    async def get_roles(self, conversation_id: UUID) -> list[Roles]:
        """All roles of a conversation in one read, highest rank first and the default role last"""
        query = (
            select(Roles)
            .where(Roles.conversation_id == conversation_id)
            .order_by(Roles.level.is_(None), Roles.level.asc())
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(query)
        return list(result.scalars().all())

    async def get_role(self, conversation_id: UUID, role_id: UUID) -> Roles | None:
        query = select(Roles).where(and_(Roles.id == role_id, Roles.conversation_id == conversation_id))
        result = await self._session.execute(query)
        return result.scalar_one_or_none()

    async def get_levels(self, conversation_id: UUID) -> dict[UUID, int]:
        """Snapshot `{role_id: level}` of every leveled role"""
        query = select(Roles.id, Roles.level).where(
            and_(Roles.conversation_id == conversation_id, Roles.level.is_not(None))
        )
        result = await self._session.execute(query)
        return {role_id: level for role_id, level in result.all()}

    async def create_role(
        self,
        conversation_id: UUID,
        name: str,
        level: int | None,
        permissions: list[str] | None = None,
    ) -> Roles:
        role = Roles(
            conversation_id=conversation_id,
            name=name,
            level=level,
            permissions=list(permissions or []),
        )
        self.add_object(role)
        await self.flush()
        return role

    async def delete_role(self, role: Roles) -> None:
        await self._session.execute(
            delete(user_conversation_roles).where(user_conversation_roles.c.role_id == role.id)
        )
        await self.delete_object(role)

    async def apply_levels(self, assignments: Mapping[UUID, int]) -> None:
        """
        Write a batch of new levels.

        Each changed row is first parked on the negated target level, which no
        live role can hold, so (conversation_id, level) stays unique after
        every single statement.
        """
        if not assignments:
            return

        for role_id, level in assignments.items():
            await self._session.execute(update(Roles).where(Roles.id == role_id).values(level=-level))
        for role_id, level in assignments.items():
            await self._session.execute(update(Roles).where(Roles.id == role_id).values(level=level))

    # -------------- ROLE MEMBERS --------------

    async def get_member_role_ids(self, membership_ids: list[UUID]) -> dict[UUID, set[UUID]]:
        """Explicitly held role ids per membership; the default role is never listed"""
        held: dict[UUID, set[UUID]] = {membership_id: set() for membership_id in membership_ids}
        if not membership_ids:
            return held

        query = select(user_conversation_roles.c.membership_id, user_conversation_roles.c.role_id).where(
            user_conversation_roles.c.membership_id.in_(membership_ids)
        )
        result = await self._session.execute(query)
        for membership_id, role_id in result.all():
            held[membership_id].add(role_id)
        return held

    async def get_role_members(self, role_id: UUID) -> list[UserConversation]:
        query = (
            select(UserConversation)
            .join(user_conversation_roles, user_conversation_roles.c.membership_id == UserConversation.id)
            .where(user_conversation_roles.c.role_id == role_id)
        )
        result = await self._session.execute(query)
        return list(result.scalars().all())

    async def attach_members(self, role_id: UUID, membership_ids: list[UUID]) -> None:
        if not membership_ids:
            return
        await self._session.execute(
            insert(user_conversation_roles),
            [{'membership_id': membership_id, 'role_id': role_id} for membership_id in membership_ids],
        )

    async def detach_member(self, role_id: UUID, membership_id: UUID) -> bool:
        result = await self._session.execute(
            delete(user_conversation_roles).where(
                and_(
                    user_conversation_roles.c.role_id == role_id,
                    user_conversation_roles.c.membership_id == membership_id,
                )
            )
        )
        return result.rowcount > 0
