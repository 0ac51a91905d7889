from datetime import datetime
from uuid import UUID

from src.application.authorization.gate import Action
from src.application.services.authorization_service import AuthorizationService
from src.core.config import settings
from src.core.exceptions import DenialReason, RequestValidationError
from src.core.logging import get_logger
from src.infrastructure.database.models.BaseModel import get_datetime_UTC, to_naive_UTC
from src.infrastructure.database.models.user_conversation import UserConversation
from src.infrastructure.database.repositories.conversation_repo import ConversationRepository

logger = get_logger(__name__)


def validate_mute_until(muted_until: datetime, now: datetime) -> datetime:
    """
    Check the mute deadline against the allowed window and return it in storage format.
    The lower bound tolerates a small clock skew between client and server.
    """
    muted_until = to_naive_UTC(muted_until)
    duration = (muted_until - now).total_seconds()
    if duration < settings.MUTE_MIN_SECONDS - settings.MUTE_CLOCK_SKEW_SECONDS:
        raise RequestValidationError(
            f'Mute must last at least {settings.MUTE_MIN_SECONDS} seconds', DenialReason.MUTE_OUT_OF_BOUNDS
        )
    if duration > settings.MUTE_MAX_SECONDS:
        raise RequestValidationError(
            f'Mute must not last more than {settings.MUTE_MAX_SECONDS} seconds', DenialReason.MUTE_OUT_OF_BOUNDS
        )
    return muted_until


class MemberService:
    """Moderation of conversation members"""

    def __init__(
        self,
        conversation_repository: ConversationRepository,
        authorization_service: AuthorizationService,
    ):
        self._conversation_repo = conversation_repository
        self._authz = authorization_service

    async def mute_member(
        self,
        actor_id: UUID,
        conversation_id: UUID,
        member_id: UUID,
        muted_until: datetime | None,
        now: datetime | None = None,
    ) -> UserConversation:
        """Mute a member until `muted_until`, or lift the mute when it is None"""
        now = to_naive_UTC(now) if now else get_datetime_UTC()
        if muted_until is not None:
            muted_until = validate_mute_until(muted_until, now)
        action = Action.UNMUTE_MEMBER if muted_until is None else Action.MUTE_MEMBER

        async with self._conversation_repo.unit_of_work():
            conversation = await self._authz.get_conversation(conversation_id)
            await self._authz.ensure(action, actor_id, conversation, member_id, now=now)

            membership = await self._conversation_repo.get_participant(member_id, conversation.id)
            membership.muted_until = muted_until
            await self._conversation_repo.flush()

        if muted_until is None:
            logger.info('Member %s unmuted in conversation %s', member_id, conversation_id)
        else:
            logger.info('Member %s muted in conversation %s until %s', member_id, conversation_id, muted_until)
        return membership

    async def kick_member(self, actor_id: UUID, conversation_id: UUID, member_id: UUID) -> None:
        """Remove a member from the conversation together with the roles they hold"""
        async with self._conversation_repo.unit_of_work():
            conversation = await self._authz.get_conversation(conversation_id)
            await self._authz.ensure(Action.KICK_MEMBER, actor_id, conversation, member_id)

            membership = await self._conversation_repo.get_participant(member_id, conversation.id)
            await self._conversation_repo.remove_participant(membership)

        logger.info('Member %s kicked from conversation %s by %s', member_id, conversation_id, actor_id)
