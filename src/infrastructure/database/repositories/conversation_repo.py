from uuid import UUID
from sqlalchemy import select, and_, delete, func
from sqlalchemy.orm import selectinload

from src.infrastructure.database.repositories.base import SQLAlchemyRepository
from src.infrastructure.database.models.conversations import Conversations
from src.infrastructure.database.models.user_conversation import UserConversation
from src.infrastructure.database.models.roles import RoleCounters, Roles, user_conversation_roles
from src.infrastructure.database.enums.ConversationType import ConversationType


class ConversationRepository(SQLAlchemyRepository[Conversations]):
    """Conversations and their memberships"""

    model: Conversations = Conversations

    async def add_participant(self, user_id: UUID, conversation_id: UUID) -> UserConversation:
        """Add a participant to a conversation"""
        participant = UserConversation(
            user_id=user_id,
            conversation_id=conversation_id,
        )
        self.add_object(participant)
        await self.flush()
        return participant

    async def remove_participant(self, participant: UserConversation) -> None:
        """Remove a participant together with every role they hold"""
        await self._session.execute(
            delete(user_conversation_roles).where(user_conversation_roles.c.membership_id == participant.id)
        )
        await self.delete_object(participant)

    async def get_participant(self, user_id: UUID, conversation_id: UUID) -> UserConversation | None:
        """Get participant record"""
        query = select(UserConversation).where(
            and_(
                UserConversation.user_id == user_id,
                UserConversation.conversation_id == conversation_id
            )
        )
        result = await self._session.execute(query)
        return result.scalar_one_or_none()

    async def get_participants_by_user_ids(
        self, conversation_id: UUID, user_ids: list[UUID]
    ) -> dict[UUID, UserConversation]:
        """Get the memberships of `user_ids`, keyed by user id; non-members are absent"""
        if not user_ids:
            return {}
        query = select(UserConversation).where(
            and_(
                UserConversation.conversation_id == conversation_id,
                UserConversation.user_id.in_(user_ids),
            )
        )
        result = await self._session.execute(query)
        return {participant.user_id: participant for participant in result.scalars().all()}

    async def get_participants(
        self, conversation_id: UUID, include_user: bool = True
    ) -> list[UserConversation]:
        """Get all participants of a conversation in join order"""
        query = (
            select(UserConversation)
            .where(UserConversation.conversation_id == conversation_id)
            .order_by(UserConversation.created_at.asc())
        )

        if include_user:
            query = query.options(selectinload(UserConversation.user))

        result = await self._session.execute(query)
        return list(result.scalars().all())

    async def find_direct_conversation(self, user_id: UUID, other_user_id: UUID) -> Conversations | None:
        """Find the direct conversation between two users, if any"""
        query = (
            select(self.model)
            .join(UserConversation, UserConversation.conversation_id == self.model.id)
            .where(self.model.conversation_type == ConversationType.DIRECT)
            .where(UserConversation.user_id.in_([user_id, other_user_id]))
            .group_by(self.model.id)
            .having(func.count(UserConversation.user_id.distinct()) == 2)  # noqa: PLR2004
        )
        result = await self._session.execute(query)
        return result.scalars().first()

    async def count_user_conversations(self, user_id: UUID, conversation_type: ConversationType) -> int:
        """Number of conversations of one type the user is a member of"""
        query = (
            select(func.count(UserConversation.id))
            .join(self.model, UserConversation.conversation_id == self.model.id)
            .where(
                and_(
                    UserConversation.user_id == user_id,
                    self.model.conversation_type == conversation_type,
                )
            )
        )
        result = await self._session.execute(query)
        return result.scalar_one()

    async def delete_conversation(self, conversation: Conversations) -> None:
        """Delete a conversation with its memberships, roles, role grants and rank counter"""
        role_ids = select(Roles.id).where(Roles.conversation_id == conversation.id)
        await self._session.execute(
            delete(user_conversation_roles).where(user_conversation_roles.c.role_id.in_(role_ids))
        )
        await self._session.execute(delete(UserConversation).where(UserConversation.conversation_id == conversation.id))
        await self._session.execute(delete(Roles).where(Roles.conversation_id == conversation.id))
        await self._session.execute(delete(RoleCounters).where(RoleCounters.conversation_id == conversation.id))
        await self.delete_object(conversation)
