"""
Authorization gate for privileged conversation actions.

The gate is a pure decision procedure over snapshots. Checks run in a fixed
order and stop at the first denial:

    membership -> targets exist -> direct conversation immutability
    -> default role protection -> self-service shortcuts -> muted
    -> owner-only actions -> permission -> owner immunity
    -> rank domination -> admin immunity

Structural checks come before permission and rank so that their denial is the
same for every actor, the owner included.
"""

import enum
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from src.application.authorization import permissions as resolver
from src.application.authorization import ranks
from src.application.authorization.snapshots import ConversationSnapshot, MemberSnapshot, RoleSnapshot
from src.core.exceptions import DenialReason, ForbiddenError, NotFoundError
from src.core.logging import get_logger
from src.infrastructure.database.enums.Permissions import Permissions
from src.infrastructure.database.models.BaseModel import get_datetime_UTC

logger = get_logger(__name__)


class Action(str, enum.Enum):
    RENAME_CONVERSATION = 'conversation:rename'
    UPDATE_AVATAR = 'conversation:avatar'
    DELETE_CONVERSATION = 'conversation:delete'

    VIEW_ROLES = 'role:view'
    CREATE_ROLE = 'role:create'
    UPDATE_ROLE = 'role:update'
    DELETE_ROLE = 'role:delete'
    REORDER_ROLES = 'role:reorder'
    ADD_ROLE_MEMBER = 'role:member:add'
    REMOVE_ROLE_MEMBER = 'role:member:remove'

    MUTE_MEMBER = 'member:mute'
    UNMUTE_MEMBER = 'member:unmute'
    KICK_MEMBER = 'member:kick'

    SEND_MESSAGE = 'message:send'
    DELETE_MESSAGE = 'message:delete'


_MANAGE_ROLE = frozenset({Permissions.MANAGE_ROLE, Permissions.ADMIN})

REQUIRED_PERMISSIONS: dict[Action, frozenset[Permissions]] = {
    Action.RENAME_CONVERSATION: frozenset({Permissions.MANAGE_CHAT, Permissions.ADMIN}),
    Action.UPDATE_AVATAR: frozenset({Permissions.MANAGE_CHAT, Permissions.ADMIN}),
    # No permission grants it, see OWNER_ONLY_ACTIONS
    Action.DELETE_CONVERSATION: frozenset(),
    Action.VIEW_ROLES: _MANAGE_ROLE,
    Action.CREATE_ROLE: _MANAGE_ROLE,
    Action.UPDATE_ROLE: _MANAGE_ROLE,
    Action.DELETE_ROLE: _MANAGE_ROLE,
    Action.REORDER_ROLES: _MANAGE_ROLE,
    Action.ADD_ROLE_MEMBER: _MANAGE_ROLE,
    Action.REMOVE_ROLE_MEMBER: _MANAGE_ROLE,
    Action.MUTE_MEMBER: frozenset({Permissions.MUTE_MEMBER, Permissions.ADMIN}),
    Action.UNMUTE_MEMBER: frozenset({Permissions.MUTE_MEMBER, Permissions.ADMIN}),
    Action.KICK_MEMBER: frozenset({Permissions.KICK_MEMBER, Permissions.ADMIN}),
    Action.SEND_MESSAGE: frozenset({Permissions.SEND_MESSAGE, Permissions.MANAGE_MESSAGE, Permissions.ADMIN}),
    Action.DELETE_MESSAGE: frozenset({Permissions.MANAGE_MESSAGE, Permissions.ADMIN}),
}

ROLE_ACTIONS = frozenset({
    Action.VIEW_ROLES,
    Action.CREATE_ROLE,
    Action.UPDATE_ROLE,
    Action.DELETE_ROLE,
    Action.REORDER_ROLES,
    Action.ADD_ROLE_MEMBER,
    Action.REMOVE_ROLE_MEMBER,
})

# Rejected outright on direct conversations
DIRECT_IMMUTABLE_ACTIONS = ROLE_ACTIONS | {
    Action.RENAME_CONVERSATION,
    Action.UPDATE_AVATAR,
    Action.DELETE_CONVERSATION,
}

OWNER_ONLY_ACTIONS = frozenset({Action.DELETE_CONVERSATION})

# Actions that address existing roles; the default role is off limits for all of them
ROLE_TARGET_ACTIONS = frozenset({
    Action.UPDATE_ROLE,
    Action.DELETE_ROLE,
    Action.REORDER_ROLES,
    Action.ADD_ROLE_MEMBER,
    Action.REMOVE_ROLE_MEMBER,
})

TARGET_MEMBER_ACTIONS = frozenset({
    Action.MUTE_MEMBER,
    Action.UNMUTE_MEMBER,
    Action.KICK_MEMBER,
    Action.ADD_ROLE_MEMBER,
    Action.REMOVE_ROLE_MEMBER,
})

OWNER_IMMUNE_ACTIONS = frozenset({Action.MUTE_MEMBER, Action.KICK_MEMBER})
ADMIN_IMMUNE_ACTIONS = frozenset({Action.MUTE_MEMBER, Action.KICK_MEMBER})


class DecisionCode(str, enum.Enum):
    OK = 'ok'
    FORBIDDEN = 'forbidden'
    NOT_FOUND = 'not_found'


@dataclass(frozen=True, slots=True)
class Decision:
    allowed: bool
    code: DecisionCode
    message: str
    reason: DenialReason | None = None

    @classmethod
    def allow(cls, message: str = 'Permission granted') -> "Decision":
        return cls(allowed=True, code=DecisionCode.OK, message=message)

    @classmethod
    def forbid(cls, reason: DenialReason, message: str) -> "Decision":
        return cls(allowed=False, code=DecisionCode.FORBIDDEN, message=message, reason=reason)

    @classmethod
    def not_found(cls, reason: DenialReason, message: str) -> "Decision":
        return cls(allowed=False, code=DecisionCode.NOT_FOUND, message=message, reason=reason)

    def ensure_allowed(self) -> "Decision":
        """Raise the matching application error for a denial"""
        if self.code == DecisionCode.NOT_FOUND:
            raise NotFoundError(self.message, self.reason)
        if self.code == DecisionCode.FORBIDDEN:
            raise ForbiddenError(self.message, self.reason)
        return self


class AuthorizationGate:
    def authorize(  # noqa: PLR0911, PLR0913
        self,
        action: Action,
        conversation: ConversationSnapshot,
        actor: MemberSnapshot | None,
        *,
        target: MemberSnapshot | None = None,
        target_roles: Sequence[RoleSnapshot | None] = (),
        now: datetime | None = None,
    ) -> Decision:
        """
        Decide whether `actor` may perform `action`.

        `target` is the member acted upon (or the message author for
        DELETE_MESSAGE). A `None` entry in `target_roles` is a requested
        role that does not exist in the conversation.
        """
        decision = self._evaluate(action, conversation, actor, target, target_roles, now or get_datetime_UTC())
        if not decision.allowed:
            logger.info(
                'Denied %s in conversation %s: %s',
                action.value,
                conversation.id,
                decision.reason.value,
            )
        return decision

    def _evaluate(  # noqa: PLR0911, PLR0912, PLR0913
        self,
        action: Action,
        conversation: ConversationSnapshot,
        actor: MemberSnapshot | None,
        target: MemberSnapshot | None,
        target_roles: Sequence[RoleSnapshot | None],
        now: datetime,
    ) -> Decision:
        if actor is None:
            if conversation.is_hidden:
                return Decision.not_found(DenialReason.CONVERSATION_NOT_FOUND, 'Conversation not found')
            return Decision.forbid(
                DenialReason.NOT_A_MEMBER, 'You must be a member of this conversation'
            )

        if action in TARGET_MEMBER_ACTIONS and target is None:
            return Decision.not_found(DenialReason.MEMBER_NOT_FOUND, 'Member not found')

        if action in ROLE_TARGET_ACTIONS and (not target_roles or None in target_roles):
            return Decision.not_found(DenialReason.ROLE_NOT_FOUND, 'Role not found')

        if action in DIRECT_IMMUTABLE_ACTIONS and conversation.is_direct:
            return Decision.forbid(
                DenialReason.DIRECT_CONVERSATION_IMMUTABLE, 'Direct conversations cannot be modified'
            )

        if action in ROLE_TARGET_ACTIONS and any(role.is_default for role in target_roles):
            return Decision.forbid(DenialReason.DEFAULT_ROLE_PROTECTED, 'The default role cannot be modified')

        if action in (Action.VIEW_ROLES, Action.DELETE_MESSAGE) and target is not None:
            if target.user_id == actor.user_id:
                return Decision.allow('Members can act on their own resources')

        if action == Action.SEND_MESSAGE and actor.is_muted(now):
            if not actor.is_owner and not resolver.is_admin(actor):
                return Decision.forbid(DenialReason.MUTED, 'You cannot perform this action while muted')

        if action in OWNER_ONLY_ACTIONS and not actor.is_owner:
            return Decision.forbid(DenialReason.OWNER_ONLY, 'Only the conversation owner can do this')

        required = REQUIRED_PERMISSIONS[action]
        if not actor.is_owner and not resolver.has_any(actor, required):
            names = ' or '.join(sorted(p.value for p in required))
            return Decision.forbid(DenialReason.MISSING_PERMISSION, f'Missing permission: {names}')

        if action in OWNER_IMMUNE_ACTIONS and target is not None and target.is_owner:
            return Decision.forbid(DenialReason.OWNER_IMMUNE, 'The conversation owner cannot be targeted')

        if action in TARGET_MEMBER_ACTIONS and not ranks.outranks(actor, target):
            return Decision.forbid(
                DenialReason.RANK_VIOLATION, 'You cannot act on a member with higher or equal rank'
            )

        if action in ROLE_TARGET_ACTIONS and not all(ranks.outranks_role(actor, role.rank) for role in target_roles):
            return Decision.forbid(
                DenialReason.RANK_VIOLATION, 'You cannot modify a role with higher or equal rank'
            )

        if action in ADMIN_IMMUNE_ACTIONS and resolver.is_admin(target):
            return Decision.forbid(DenialReason.ADMIN_IMMUNE, 'Members with admin permission cannot be targeted')

        return Decision.allow()
