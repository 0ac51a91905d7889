from uuid import UUID

from src.application.authorization.gate import Action
from src.application.authorization.permissions import parse_permissions
from src.application.authorization.reorder import (
    next_level,
    plan_delete_shift,
    plan_reorder,
    validate_reorder_request,
)
from src.application.services.authorization_service import AuthorizationService
from src.core.config import settings
from src.core.exceptions import ConflictError, DenialReason, NotFoundError, RequestValidationError
from src.core.logging import get_logger
from src.infrastructure.database.models.roles import Roles
from src.infrastructure.database.repositories.conversation_repo import ConversationRepository
from src.infrastructure.database.repositories.role_repository import RoleRepository

logger = get_logger(__name__)


def _clean_role_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise RequestValidationError('Role name must not be empty')
    if name.casefold() == settings.DEFAULT_ROLE_NAME.casefold():
        raise ConflictError(
            f'"{settings.DEFAULT_ROLE_NAME}" is reserved for the default role', DenialReason.RESERVED_ROLE_NAME
        )
    return name


class RoleService:
    """Role CRUD, level allocation and role membership for conversations"""

    def __init__(
        self,
        role_repository: RoleRepository,
        conversation_repository: ConversationRepository,
        authorization_service: AuthorizationService,
    ):
        self._role_repo = role_repository
        self._conversation_repo = conversation_repository
        self._authz = authorization_service

    async def get_roles(self, actor_id: UUID, conversation_id: UUID) -> list[Roles]:
        """All roles of a conversation, highest rank first and the default role last"""
        conversation = await self._authz.get_conversation(conversation_id)
        await self._authz.ensure(Action.VIEW_ROLES, actor_id, conversation)
        return await self._role_repo.get_roles(conversation.id)

    async def get_member_roles(self, actor_id: UUID, conversation_id: UUID, member_id: UUID) -> list[Roles]:
        """Roles held by a member, the implicit default role included"""
        conversation = await self._authz.get_conversation(conversation_id)
        await self._authz.ensure(Action.VIEW_ROLES, actor_id, conversation, member_id)

        membership = await self._conversation_repo.get_participant(member_id, conversation.id)
        if membership is None:
            raise NotFoundError('Member not found', DenialReason.MEMBER_NOT_FOUND)

        held = (await self._role_repo.get_member_role_ids([membership.id]))[membership.id]
        return [role for role in await self._role_repo.get_roles(conversation.id) if role.is_default or role.id in held]

    async def create_role(self, actor_id: UUID, conversation_id: UUID, name: str) -> Roles:
        """Create a role at the bottom of the hierarchy (level = leveled role count + 1)"""
        async with self._role_repo.unit_of_work():
            conversation = await self._authz.get_conversation(conversation_id)
            counter = await self._role_repo.lock_counter(conversation.id)
            await self._authz.ensure(Action.CREATE_ROLE, actor_id, conversation)

            name = _clean_role_name(name)
            level = next_level(await self._role_repo.count_leveled(conversation.id))
            role = await self._role_repo.create_role(conversation.id, name, level)
            counter.last_level = level

        logger.info('Role %s created in conversation %s at level %d', role.id, conversation_id, level)
        return role

    async def delete_role(self, actor_id: UUID, conversation_id: UUID, role_id: UUID) -> None:
        """Delete a role and shift every lower role up by one level"""
        async with self._role_repo.unit_of_work():
            conversation = await self._authz.get_conversation(conversation_id)
            counter = await self._role_repo.lock_counter(conversation.id)
            await self._authz.ensure(Action.DELETE_ROLE, actor_id, conversation, target_role_ids=[role_id])

            role = await self._role_repo.get_role(conversation.id, role_id)
            deleted_level = role.level
            levels = await self._role_repo.get_levels(conversation.id)
            levels.pop(role.id)

            await self._role_repo.delete_role(role)
            await self._role_repo.apply_levels(plan_delete_shift(levels, deleted_level))
            await self._role_repo.resync_counter(counter)

        logger.info('Role %s at level %d deleted from conversation %s', role_id, deleted_level, conversation_id)

    async def reorder_role_levels(self, actor_id: UUID, conversation_id: UUID, role_ids: list[UUID]) -> list[Roles]:
        """Move the given roles to the top of the window they span, in the given order"""
        validate_reorder_request(role_ids)

        async with self._role_repo.unit_of_work():
            conversation = await self._authz.get_conversation(conversation_id)
            counter = await self._role_repo.lock_counter(conversation.id)
            await self._authz.ensure(Action.REORDER_ROLES, actor_id, conversation, target_role_ids=role_ids)

            levels = await self._role_repo.get_levels(conversation.id)
            changes = plan_reorder(levels, role_ids)
            await self._role_repo.apply_levels(changes)
            await self._role_repo.resync_counter(counter)

            roles = await self._role_repo.get_roles(conversation.id)

        logger.info('Reordered %d roles in conversation %s', len(changes), conversation_id)
        return [role for role in roles if not role.is_default]

    async def update_role_metadata(
        self,
        actor_id: UUID,
        conversation_id: UUID,
        role_id: UUID,
        name: str | None = None,
        permissions: list[str] | None = None,
    ) -> Roles:
        """Rename a role and/or replace its permission set"""
        if name is None and permissions is None:
            raise RequestValidationError('Nothing to update, provide a name or permissions')

        if permissions is not None:
            try:
                parsed = sorted(p.value for p in parse_permissions(permissions))
            except ValueError as e:
                raise RequestValidationError(f'Unknown permission: {e}') from e

        async with self._role_repo.unit_of_work():
            conversation = await self._authz.get_conversation(conversation_id)
            await self._authz.ensure(Action.UPDATE_ROLE, actor_id, conversation, target_role_ids=[role_id])

            role = await self._role_repo.get_role(conversation.id, role_id)
            if name is not None:
                role.name = _clean_role_name(name)
            if permissions is not None:
                role.permissions = parsed
            await self._role_repo.flush()

        logger.info('Role %s metadata updated in conversation %s', role_id, conversation_id)
        return role

    async def add_role_members(
        self, actor_id: UUID, conversation_id: UUID, role_id: UUID, member_ids: list[UUID]
    ) -> list[UUID]:
        """Give a role to several members at once; returns the role's member user ids"""
        if not member_ids:
            raise RequestValidationError('At least one member id is required')
        if len(set(member_ids)) != len(member_ids):
            raise RequestValidationError('Member ids must be unique', DenialReason.DUPLICATE_IDS)

        async with self._role_repo.unit_of_work():
            conversation = await self._authz.get_conversation(conversation_id)
            for member_id in member_ids:
                await self._authz.ensure(
                    Action.ADD_ROLE_MEMBER, actor_id, conversation, member_id, target_role_ids=[role_id]
                )

            memberships = await self._conversation_repo.get_participants_by_user_ids(conversation.id, member_ids)
            held = await self._role_repo.get_member_role_ids([m.id for m in memberships.values()])
            if any(role_id in held[membership.id] for membership in memberships.values()):
                raise ConflictError('One or more members already hold this role', DenialReason.ALREADY_HOLDS_ROLE)

            await self._role_repo.attach_members(role_id, [memberships[member_id].id for member_id in member_ids])
            members = await self._role_repo.get_role_members(role_id)

        logger.info('Role %s given to %d members in conversation %s', role_id, len(member_ids), conversation_id)
        return [member.user_id for member in members]

    async def remove_role_member(
        self, actor_id: UUID, conversation_id: UUID, role_id: UUID, member_id: UUID
    ) -> None:
        async with self._role_repo.unit_of_work():
            conversation = await self._authz.get_conversation(conversation_id)
            await self._authz.ensure(
                Action.REMOVE_ROLE_MEMBER, actor_id, conversation, member_id, target_role_ids=[role_id]
            )

            membership = await self._conversation_repo.get_participant(member_id, conversation.id)
            removed = await self._role_repo.detach_member(role_id, membership.id)
            if not removed:
                raise NotFoundError('Member does not hold this role', DenialReason.MEMBER_NOT_FOUND)

        logger.info('Role %s removed from member %s in conversation %s', role_id, member_id, conversation_id)
