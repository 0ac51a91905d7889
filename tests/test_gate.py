from datetime import datetime, timedelta
from uuid import uuid4

import pytest

from src.application.authorization.gate import Action, AuthorizationGate, DecisionCode
from src.application.authorization.ranks import DEFAULT, Leveled
from src.application.authorization.snapshots import ConversationSnapshot, MemberSnapshot, RoleSnapshot
from src.core.exceptions import DenialReason, ForbiddenError, NotFoundError
from src.infrastructure.database.enums.ConversationType import ConversationType
from src.infrastructure.database.enums.Permissions import Permissions

NOW = datetime(2026, 1, 1, 12, 0, 0)

EVERYONE = RoleSnapshot(
    id=uuid4(),
    name="everyone",
    rank=DEFAULT,
    permissions=frozenset({Permissions.VIEW_CHAT, Permissions.SEND_MESSAGE}),
)


def make_role(level: int, *permissions: Permissions) -> RoleSnapshot:
    return RoleSnapshot(id=uuid4(), name=f"level-{level}", rank=Leveled(level), permissions=frozenset(permissions))


def make_member(*roles: RoleSnapshot, is_owner: bool = False, muted_until: datetime | None = None) -> MemberSnapshot:
    return MemberSnapshot(user_id=uuid4(), roles=roles + (EVERYONE,), is_owner=is_owner, muted_until=muted_until)


@pytest.fixture
def gate():
    return AuthorizationGate()


@pytest.fixture
def group():
    return ConversationSnapshot(id=uuid4(), kind=ConversationType.GROUP, owner_id=uuid4())


@pytest.fixture
def private_group():
    return ConversationSnapshot(id=uuid4(), kind=ConversationType.GROUP, is_private=True, owner_id=uuid4())


@pytest.fixture
def direct():
    return ConversationSnapshot(id=uuid4(), kind=ConversationType.DIRECT, is_private=True)


def authorize(gate, action, conversation, actor, target=None, target_roles=()):
    return gate.authorize(action, conversation, actor, target=target, target_roles=target_roles, now=NOW)


# -------------- MEMBERSHIP --------------


def test_non_member_of_public_group_is_forbidden(gate, group):
    decision = authorize(gate, Action.CREATE_ROLE, group, None)

    assert not decision.allowed
    assert decision.code == DecisionCode.FORBIDDEN
    assert decision.reason == DenialReason.NOT_A_MEMBER


@pytest.mark.parametrize("conversation", ["private_group", "direct"])
def test_hidden_conversation_answers_not_found(gate, conversation, request):
    decision = authorize(gate, Action.VIEW_ROLES, request.getfixturevalue(conversation), None)

    assert decision.code == DecisionCode.NOT_FOUND
    assert decision.reason == DenialReason.CONVERSATION_NOT_FOUND


def test_missing_target_member(gate, group):
    owner = make_member(is_owner=True)

    decision = authorize(gate, Action.KICK_MEMBER, group, owner, target=None)

    assert decision.code == DecisionCode.NOT_FOUND
    assert decision.reason == DenialReason.MEMBER_NOT_FOUND


def test_missing_target_role(gate, group):
    owner = make_member(is_owner=True)

    decision = authorize(gate, Action.DELETE_ROLE, group, owner, target_roles=[None])

    assert decision.code == DecisionCode.NOT_FOUND
    assert decision.reason == DenialReason.ROLE_NOT_FOUND


# -------------- PERMISSIONS --------------


def test_owner_passes_permission_checks_without_roles(gate, group):
    owner = make_member(is_owner=True)

    assert authorize(gate, Action.CREATE_ROLE, group, owner).allowed
    assert authorize(gate, Action.RENAME_CONVERSATION, group, owner).allowed


def test_member_without_permission_is_forbidden(gate, group):
    decision = authorize(gate, Action.CREATE_ROLE, group, make_member())

    assert decision.reason == DenialReason.MISSING_PERMISSION


def test_admin_permission_bypasses_permission_checks(gate, group):
    admin = make_member(make_role(1, Permissions.ADMIN))

    assert authorize(gate, Action.RENAME_CONVERSATION, group, admin).allowed
    assert authorize(gate, Action.CREATE_ROLE, group, admin).allowed


def test_default_role_permissions_apply_to_every_member(gate, group):
    assert authorize(gate, Action.SEND_MESSAGE, group, make_member()).allowed


# -------------- RANKS --------------


def test_rank_violation_despite_permission(gate, group):
    actor = make_member(make_role(5, Permissions.MUTE_MEMBER))
    target = make_member(make_role(2))

    decision = authorize(gate, Action.MUTE_MEMBER, group, actor, target=target)

    assert decision.code == DecisionCode.FORBIDDEN
    assert decision.reason == DenialReason.RANK_VIOLATION


def test_equal_rank_cannot_act(gate, group):
    shared = make_role(3, Permissions.KICK_MEMBER)

    decision = authorize(gate, Action.KICK_MEMBER, group, make_member(shared), target=make_member(shared))

    assert decision.reason == DenialReason.RANK_VIOLATION


def test_higher_rank_can_mute(gate, group):
    actor = make_member(make_role(1, Permissions.MUTE_MEMBER))
    target = make_member(make_role(2))

    assert authorize(gate, Action.MUTE_MEMBER, group, actor, target=target).allowed


def test_admin_target_is_immune_despite_rank(gate, group):
    actor = make_member(make_role(1, Permissions.MUTE_MEMBER))
    target = make_member(make_role(4, Permissions.ADMIN))

    decision = authorize(gate, Action.MUTE_MEMBER, group, actor, target=target)

    assert decision.reason == DenialReason.ADMIN_IMMUNE


def test_admin_target_is_immune_even_to_the_owner(gate, group):
    owner = make_member(is_owner=True)
    target = make_member(make_role(4, Permissions.ADMIN))

    decision = authorize(gate, Action.KICK_MEMBER, group, owner, target=target)

    assert decision.reason == DenialReason.ADMIN_IMMUNE


def test_owner_is_immune(gate, group):
    actor = make_member(make_role(1, Permissions.ADMIN))
    owner = make_member(is_owner=True)

    assert authorize(gate, Action.KICK_MEMBER, group, actor, target=owner).reason == DenialReason.OWNER_IMMUNE
    assert authorize(gate, Action.MUTE_MEMBER, group, actor, target=owner).reason == DenialReason.OWNER_IMMUNE


def test_cannot_modify_role_at_or_above_own_rank(gate, group):
    actor = make_member(make_role(3, Permissions.MANAGE_ROLE))

    assert authorize(gate, Action.UPDATE_ROLE, group, actor, target_roles=[make_role(2)]).reason == (
        DenialReason.RANK_VIOLATION
    )
    assert authorize(gate, Action.UPDATE_ROLE, group, actor, target_roles=[make_role(3)]).reason == (
        DenialReason.RANK_VIOLATION
    )
    assert authorize(gate, Action.UPDATE_ROLE, group, actor, target_roles=[make_role(4)]).allowed


def test_reorder_requires_outranking_every_role(gate, group):
    actor = make_member(make_role(3, Permissions.MANAGE_ROLE))

    decision = authorize(
        gate, Action.REORDER_ROLES, group, actor, target_roles=[make_role(7), make_role(2)]
    )

    assert decision.reason == DenialReason.RANK_VIOLATION


# -------------- STRUCTURAL PROTECTION --------------


@pytest.mark.parametrize(
    "action",
    [Action.UPDATE_ROLE, Action.DELETE_ROLE, Action.REORDER_ROLES, Action.ADD_ROLE_MEMBER, Action.REMOVE_ROLE_MEMBER],
)
def test_default_role_is_protected_even_from_the_owner(gate, group, action):
    owner = make_member(is_owner=True)
    target = make_member()

    decision = authorize(gate, action, group, owner, target=target, target_roles=[EVERYONE, make_role(5)])

    assert decision.code == DecisionCode.FORBIDDEN
    assert decision.reason == DenialReason.DEFAULT_ROLE_PROTECTED


@pytest.mark.parametrize(
    "action",
    [Action.RENAME_CONVERSATION, Action.UPDATE_AVATAR, Action.DELETE_CONVERSATION, Action.CREATE_ROLE, Action.VIEW_ROLES],
)
def test_direct_conversations_are_immutable(gate, direct, action):
    actor = make_member(make_role(1, Permissions.ADMIN))

    decision = authorize(gate, action, direct, actor)

    assert decision.reason == DenialReason.DIRECT_CONVERSATION_IMMUTABLE


def test_only_the_owner_can_delete_a_conversation(gate, group):
    admin = make_member(make_role(1, Permissions.ADMIN, Permissions.MANAGE_CHAT))
    owner = make_member(is_owner=True)

    decision = authorize(gate, Action.DELETE_CONVERSATION, group, admin)

    assert decision.code == DecisionCode.FORBIDDEN
    assert decision.reason == DenialReason.OWNER_ONLY
    assert authorize(gate, Action.DELETE_CONVERSATION, group, owner).allowed


# -------------- SELF SERVICE AND MUTES --------------


def test_members_can_view_their_own_roles(gate, group):
    actor = make_member()

    assert authorize(gate, Action.VIEW_ROLES, group, actor, target=actor).allowed
    assert not authorize(gate, Action.VIEW_ROLES, group, actor, target=make_member()).allowed


def test_members_can_delete_their_own_messages(gate, group):
    author = make_member()

    assert authorize(gate, Action.DELETE_MESSAGE, group, author, target=author).allowed
    assert authorize(gate, Action.DELETE_MESSAGE, group, author, target=make_member()).reason == (
        DenialReason.MISSING_PERMISSION
    )


def test_muted_member_cannot_send_messages(gate, group):
    muted = make_member(muted_until=NOW + timedelta(minutes=5))

    assert authorize(gate, Action.SEND_MESSAGE, group, muted).reason == DenialReason.MUTED


def test_expired_mute_no_longer_applies(gate, group):
    formerly_muted = make_member(muted_until=NOW - timedelta(seconds=1))

    assert authorize(gate, Action.SEND_MESSAGE, group, formerly_muted).allowed


def test_muted_admin_can_still_send_messages(gate, group):
    admin = make_member(make_role(1, Permissions.ADMIN), muted_until=NOW + timedelta(minutes=5))

    assert authorize(gate, Action.SEND_MESSAGE, group, admin).allowed


# -------------- DECISIONS --------------


def test_ensure_allowed_raises_matching_errors(gate, group, private_group):
    with pytest.raises(ForbiddenError) as exc:
        authorize(gate, Action.CREATE_ROLE, group, make_member()).ensure_allowed()
    assert exc.value.reason == DenialReason.MISSING_PERMISSION

    with pytest.raises(NotFoundError):
        authorize(gate, Action.CREATE_ROLE, private_group, None).ensure_allowed()

    decision = authorize(gate, Action.CREATE_ROLE, group, make_member(is_owner=True))
    assert decision.ensure_allowed() is decision
