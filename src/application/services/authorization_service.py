from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

from src.application.authorization.gate import Action, AuthorizationGate, Decision
from src.application.authorization.snapshots import ConversationSnapshot, MemberSnapshot, RoleSnapshot
from src.core.exceptions import DenialReason, NotFoundError
from src.infrastructure.database.models.conversations import Conversations
from src.infrastructure.database.repositories.conversation_repo import ConversationRepository
from src.infrastructure.database.repositories.role_repository import RoleRepository


class AuthorizationService:
    """
    Loads the snapshots the gate decides on.

    Every role of the conversation is read in a single statement and all
    member and target-role snapshots are derived from that read, so a
    decision never mixes levels from before and after a reorder.
    """

    def __init__(
        self,
        conversation_repository: ConversationRepository,
        role_repository: RoleRepository,
        gate: AuthorizationGate | None = None,
    ):
        self._conversation_repo = conversation_repository
        self._role_repo = role_repository
        self._gate = gate or AuthorizationGate()

    async def get_conversation(self, conversation_id: UUID) -> Conversations:
        conversation = await self._conversation_repo.get_by_id(conversation_id)
        if conversation is None:
            raise NotFoundError('Conversation not found', DenialReason.CONVERSATION_NOT_FOUND)
        return conversation

    async def authorize(  # noqa: PLR0913
        self,
        action: Action,
        actor_id: UUID,
        conversation_id: UUID,
        target_id: UUID | None = None,
        *,
        target_role_ids: Sequence[UUID] = (),
        now: datetime | None = None,
    ) -> Decision:
        """Decision for `actor_id` performing `action`; never raises for denials"""
        conversation = await self._conversation_repo.get_by_id(conversation_id)
        if conversation is None:
            return Decision.not_found(DenialReason.CONVERSATION_NOT_FOUND, 'Conversation not found')

        return await self.authorize_in(
            action, actor_id, conversation, target_id, target_role_ids=target_role_ids, now=now
        )

    async def authorize_in(  # noqa: PLR0913
        self,
        action: Action,
        actor_id: UUID,
        conversation: Conversations,
        target_id: UUID | None = None,
        *,
        target_role_ids: Sequence[UUID] = (),
        now: datetime | None = None,
    ) -> Decision:
        """Same as `authorize` for an already loaded conversation"""
        roles = {role.id: RoleSnapshot.from_model(role) for role in await self._role_repo.get_roles(conversation.id)}
        default_roles = tuple(role for role in roles.values() if role.is_default)

        user_ids = [actor_id] if target_id is None else [actor_id, target_id]
        memberships = await self._conversation_repo.get_participants_by_user_ids(conversation.id, user_ids)
        held = await self._role_repo.get_member_role_ids([m.id for m in memberships.values()])

        members: dict[UUID, MemberSnapshot] = {}
        for user_id, membership in memberships.items():
            member_roles = tuple(roles[role_id] for role_id in held[membership.id] if role_id in roles)
            members[user_id] = MemberSnapshot.from_model(
                membership, member_roles + default_roles, conversation.owner_id
            )

        return self._gate.authorize(
            action,
            ConversationSnapshot.from_model(conversation),
            members.get(actor_id),
            target=members.get(target_id) if target_id is not None else None,
            target_roles=[roles.get(role_id) for role_id in target_role_ids],
            now=now,
        )

    async def ensure(  # noqa: PLR0913
        self,
        action: Action,
        actor_id: UUID,
        conversation: Conversations,
        target_id: UUID | None = None,
        *,
        target_role_ids: Sequence[UUID] = (),
        now: datetime | None = None,
    ) -> Decision:
        """Raise NotFoundError/ForbiddenError unless the action is allowed"""
        decision = await self.authorize_in(
            action, actor_id, conversation, target_id, target_role_ids=target_role_ids, now=now
        )
        return decision.ensure_allowed()
