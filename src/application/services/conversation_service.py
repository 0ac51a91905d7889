from uuid import UUID

from src.application.authorization.gate import Action
from src.application.services.authorization_service import AuthorizationService
from src.core.config import settings
from src.core.exceptions import (
    ConflictError,
    DenialReason,
    ForbiddenError,
    NotFoundError,
    RequestValidationError,
)
from src.core.logging import get_logger
from src.infrastructure.database.enums.ConversationType import ConversationType
from src.infrastructure.database.models.conversations import Conversations
from src.infrastructure.database.models.user_conversation import UserConversation
from src.infrastructure.database.repositories.conversation_repo import ConversationRepository
from src.infrastructure.database.repositories.role_repository import RoleRepository
from src.infrastructure.database.repositories.user_repository import UserRepository

logger = get_logger(__name__)


class ConversationService:
    def __init__(
        self,
        conversation_repository: ConversationRepository,
        user_repository: UserRepository,
        role_repository: RoleRepository,
        authorization_service: AuthorizationService,
    ):
        self._conversation_repo = conversation_repository
        self._user_repo = user_repository
        self._role_repo = role_repository
        self._authz = authorization_service

    async def _init_roles(self, conversation_id: UUID) -> None:
        """Every conversation starts with its default role and an empty level counter"""
        await self._role_repo.create_role(
            conversation_id,
            settings.DEFAULT_ROLE_NAME,
            None,
            settings.DEFAULT_ROLE_PERMISSIONS,
        )
        await self._role_repo.create_counter(conversation_id)

    async def _ensure_below_limit(self, user_id: UUID, conversation_type: ConversationType) -> None:
        limit = {
            ConversationType.DIRECT: settings.MAX_DIRECT_CONVERSATIONS,
            ConversationType.GROUP: settings.MAX_GROUP_CONVERSATIONS,
        }[conversation_type]
        count = await self._conversation_repo.count_user_conversations(user_id, conversation_type)
        if count >= limit:
            raise ForbiddenError(
                f'Maximum {limit} {conversation_type.value} conversations allowed',
                DenialReason.CONVERSATION_LIMIT_REACHED,
            )

    async def _get_visible(self, user_id: UUID, conversation_id: UUID) -> tuple[Conversations, UserConversation | None]:
        """
        Conversation and the caller's membership.
        Hidden conversations look nonexistent to non-members.
        """
        conversation = await self._authz.get_conversation(conversation_id)
        membership = await self._conversation_repo.get_participant(user_id, conversation.id)
        if membership is None and conversation.is_hidden:
            raise NotFoundError('Conversation not found', DenialReason.CONVERSATION_NOT_FOUND)
        return conversation, membership

    async def create_group_conversation(
        self,
        owner_id: UUID,
        name: str,
        is_private: bool = False,
        member_ids: list[UUID] | None = None,
    ) -> Conversations:
        """Create a group owned by `owner_id`; unknown member ids are skipped"""
        name = name.strip()
        if not name:
            raise RequestValidationError('Conversation name must not be empty')

        async with self._conversation_repo.unit_of_work():
            if await self._user_repo.get_by_id(owner_id) is None:
                raise NotFoundError('User not found', DenialReason.USER_NOT_FOUND)
            await self._ensure_below_limit(owner_id, ConversationType.GROUP)

            conversation = Conversations(
                name=name,
                conversation_type=ConversationType.GROUP,
                is_private=is_private,
                owner_id=owner_id,
            )
            self._conversation_repo.add_object(conversation)
            await self._conversation_repo.flush()

            await self._conversation_repo.add_participant(owner_id, conversation.id)

            invited = {member_id for member_id in member_ids or [] if member_id != owner_id}
            for user in await self._user_repo.get_many(list(invited)):
                await self._conversation_repo.add_participant(user.id, conversation.id)
                invited.discard(user.id)
            for missing_id in invited:
                logger.warning('User %s not found, skipping', missing_id)

            await self._init_roles(conversation.id)

        logger.info('Group conversation %s created by %s', conversation.id, owner_id)
        return conversation

    async def create_direct_conversation(self, user_id: UUID, other_user_id: UUID) -> Conversations:
        """Create the one direct conversation two users may share"""
        if user_id == other_user_id:
            raise RequestValidationError('Cannot start a direct conversation with yourself')

        async with self._conversation_repo.unit_of_work():
            users = await self._user_repo.get_many([user_id, other_user_id])
            if len(users) != 2:  # noqa: PLR2004
                raise NotFoundError('User not found', DenialReason.USER_NOT_FOUND)
            await self._ensure_below_limit(user_id, ConversationType.DIRECT)

            if await self._conversation_repo.find_direct_conversation(user_id, other_user_id) is not None:
                raise ConflictError(
                    'Direct conversation already exists', DenialReason.DIRECT_CONVERSATION_EXISTS
                )

            conversation = Conversations(
                conversation_type=ConversationType.DIRECT,
                is_private=True,
            )
            self._conversation_repo.add_object(conversation)
            await self._conversation_repo.flush()

            await self._conversation_repo.add_participant(user_id, conversation.id)
            await self._conversation_repo.add_participant(other_user_id, conversation.id)
            await self._init_roles(conversation.id)

        logger.info('Direct conversation %s created between %s and %s', conversation.id, user_id, other_user_id)
        return conversation

    async def get_conversation(self, user_id: UUID, conversation_id: UUID) -> Conversations:
        """Members see any conversation, everyone else only public groups"""
        conversation, _ = await self._get_visible(user_id, conversation_id)
        return conversation

    async def get_members(self, user_id: UUID, conversation_id: UUID) -> list[UserConversation]:
        """Members of a conversation in join order, visible to members only"""
        conversation, membership = await self._get_visible(user_id, conversation_id)
        if membership is None:
            raise ForbiddenError('You are not a member of this conversation', DenialReason.NOT_A_MEMBER)
        return await self._conversation_repo.get_participants(conversation.id)

    async def join_conversation(self, user_id: UUID, conversation_id: UUID) -> UserConversation:
        """Join a public group as a plain member"""
        async with self._conversation_repo.unit_of_work():
            conversation, membership = await self._get_visible(user_id, conversation_id)
            if membership is not None:
                raise ConflictError('User is already a member', DenialReason.ALREADY_MEMBER)

            membership = await self._conversation_repo.add_participant(user_id, conversation.id)

        logger.info('User %s joined conversation %s', user_id, conversation_id)
        return membership

    async def leave_conversation(self, user_id: UUID, conversation_id: UUID) -> None:
        """Leave a group; the owner cannot leave their own group"""
        async with self._conversation_repo.unit_of_work():
            conversation, membership = await self._get_visible(user_id, conversation_id)
            if membership is None:
                raise ForbiddenError('You are not a member of this conversation', DenialReason.NOT_A_MEMBER)
            if conversation.is_direct:
                raise ForbiddenError(
                    'Direct conversations cannot be left', DenialReason.DIRECT_CONVERSATION_IMMUTABLE
                )
            if conversation.owner_id == user_id:
                raise ForbiddenError('The owner cannot leave the conversation', DenialReason.OWNER_CANNOT_LEAVE)

            await self._conversation_repo.remove_participant(membership)

        logger.info('User %s left conversation %s', user_id, conversation_id)

    async def rename_conversation(self, actor_id: UUID, conversation_id: UUID, name: str) -> Conversations:
        name = name.strip()
        if not name:
            raise RequestValidationError('Conversation name must not be empty')

        async with self._conversation_repo.unit_of_work():
            conversation = await self._authz.get_conversation(conversation_id)
            await self._authz.ensure(Action.RENAME_CONVERSATION, actor_id, conversation)
            conversation.name = name
            await self._conversation_repo.flush()

        logger.info('Conversation %s renamed by %s', conversation_id, actor_id)
        return conversation

    async def update_avatar(self, actor_id: UUID, conversation_id: UUID, avatar_url: str | None) -> Conversations:
        """Set or clear (None) the conversation avatar"""
        async with self._conversation_repo.unit_of_work():
            conversation = await self._authz.get_conversation(conversation_id)
            await self._authz.ensure(Action.UPDATE_AVATAR, actor_id, conversation)
            conversation.avatar_url = avatar_url
            await self._conversation_repo.flush()

        logger.info('Conversation %s avatar updated by %s', conversation_id, actor_id)
        return conversation

    async def delete_conversation(self, actor_id: UUID, conversation_id: UUID) -> None:
        """Delete a group with everything in it; only its owner may do this"""
        async with self._conversation_repo.unit_of_work():
            conversation = await self._authz.get_conversation(conversation_id)
            await self._authz.ensure(Action.DELETE_CONVERSATION, actor_id, conversation)
            await self._conversation_repo.delete_conversation(conversation)

        logger.info('Conversation %s deleted by %s', conversation_id, actor_id)
