from uuid import uuid4

import pytest

from src.core.config import settings
from src.core.exceptions import ConflictError, DenialReason, ForbiddenError, NotFoundError, RequestValidationError
from src.infrastructure.database.enums.ConversationType import ConversationType
from src.infrastructure.database.enums.Permissions import Permissions


async def test_create_group_conversation(make_user, services):
    owner, alice = await make_user("owner"), await make_user("alice")

    conversation = await services.conversations.create_group_conversation(
        owner.id, "  Book club ", member_ids=[alice.id, owner.id, uuid4()]
    )

    assert conversation.name == "Book club"
    assert conversation.conversation_type == ConversationType.GROUP
    assert conversation.owner_id == owner.id
    members = await services.conversations.get_members(owner.id, conversation.id)
    assert {m.user_id for m in members} == {owner.id, alice.id}

    default = (await services.roles.get_roles(owner.id, conversation.id))[-1]
    assert default.name == "everyone"
    assert default.is_default
    assert sorted(default.permissions) == ["send_message", "view_chat"]


async def test_create_direct_conversation(make_user, services):
    alice, bob = await make_user("alice"), await make_user("bob")

    conversation = await services.conversations.create_direct_conversation(alice.id, bob.id)

    assert conversation.conversation_type == ConversationType.DIRECT
    assert conversation.is_private
    assert conversation.owner_id is None

    with pytest.raises(ConflictError) as exc:
        await services.conversations.create_direct_conversation(bob.id, alice.id)
    assert exc.value.reason == DenialReason.DIRECT_CONVERSATION_EXISTS


async def test_direct_conversation_validation(make_user, services):
    alice = await make_user("alice")

    with pytest.raises(RequestValidationError):
        await services.conversations.create_direct_conversation(alice.id, alice.id)
    with pytest.raises(NotFoundError):
        await services.conversations.create_direct_conversation(alice.id, uuid4())


async def test_direct_conversation_roles_are_immutable(make_user, services):
    alice, bob = await make_user("alice"), await make_user("bob")
    conversation = await services.conversations.create_direct_conversation(alice.id, bob.id)
    conversation_id = conversation.id

    with pytest.raises(ForbiddenError) as exc:
        await services.roles.create_role(alice.id, conversation_id, "boss")
    assert exc.value.reason == DenialReason.DIRECT_CONVERSATION_IMMUTABLE

    with pytest.raises(ForbiddenError) as exc:
        await services.conversations.rename_conversation(alice.id, conversation_id, "ours")
    assert exc.value.reason == DenialReason.DIRECT_CONVERSATION_IMMUTABLE


async def test_join_and_leave(make_group, make_user, services):
    group = await make_group()
    alice = await make_user("alice")

    await group.add_member(alice)
    assert alice.id in await group.member_ids()

    with pytest.raises(ConflictError) as exc:
        await group.add_member(alice)
    assert exc.value.reason == DenialReason.ALREADY_MEMBER

    await services.conversations.leave_conversation(alice.id, group.id)
    assert alice.id not in await group.member_ids()


async def test_owner_cannot_leave(make_group, services):
    group = await make_group()

    with pytest.raises(ForbiddenError) as exc:
        await services.conversations.leave_conversation(group.owner.id, group.id)

    assert exc.value.reason == DenialReason.OWNER_CANNOT_LEAVE


async def test_private_group_is_hidden_from_outsiders(make_group, make_user, services):
    group = await make_group(is_private=True)
    outsider = await make_user("outsider")

    for attempt in (
        services.conversations.get_conversation(outsider.id, group.id),
        services.conversations.join_conversation(outsider.id, group.id),
        services.roles.get_roles(outsider.id, group.id),
    ):
        with pytest.raises(NotFoundError) as exc:
            await attempt
        assert exc.value.reason == DenialReason.CONVERSATION_NOT_FOUND


async def test_public_group_is_visible_but_closed_to_outsiders(make_group, make_user, services):
    group = await make_group()
    outsider = await make_user("outsider")

    conversation = await services.conversations.get_conversation(outsider.id, group.id)
    assert conversation.id == group.id

    with pytest.raises(ForbiddenError) as exc:
        await services.conversations.get_members(outsider.id, group.id)
    assert exc.value.reason == DenialReason.NOT_A_MEMBER


async def test_unknown_conversation(make_user, services):
    user = await make_user()

    with pytest.raises(NotFoundError):
        await services.conversations.get_conversation(user.id, uuid4())


async def test_rename_and_avatar_require_manage_chat(make_group, make_user, services):
    group = await make_group()
    editor, member = await make_user("editor"), await make_user("member")
    await group.add_member(editor)
    await group.add_member(member)
    editors = await group.add_role("editors", (Permissions.MANAGE_CHAT,))
    await group.grant(editors, editor)

    renamed = await services.conversations.rename_conversation(editor.id, group.id, "New name")
    assert renamed.name == "New name"

    updated = await services.conversations.update_avatar(editor.id, group.id, "https://cdn.example.com/a.png")
    assert updated.avatar_url == "https://cdn.example.com/a.png"

    with pytest.raises(ForbiddenError) as exc:
        await services.conversations.rename_conversation(member.id, group.id, "Hijacked")
    assert exc.value.reason == DenialReason.MISSING_PERMISSION


async def test_owner_deletes_group_with_its_roles(make_group, make_user, services):
    group = await make_group()
    alice = await make_user("alice")
    await group.add_member(alice)
    crew = await group.add_role("crew")
    await group.grant(crew, alice)

    await services.conversations.delete_conversation(group.owner.id, group.id)

    with pytest.raises(NotFoundError) as exc:
        await services.conversations.get_conversation(group.owner.id, group.id)
    assert exc.value.reason == DenialReason.CONVERSATION_NOT_FOUND
    assert await services.role_repo.get_roles(group.id) == []
    assert await services.conversation_repo.get_participants(group.id) == []


async def test_only_the_owner_can_delete_a_group(make_group, make_user, services):
    group = await make_group()
    admin = await make_user("admin")
    await group.add_member(admin)
    admins = await group.add_role("admins", (Permissions.ADMIN, Permissions.MANAGE_CHAT))
    await group.grant(admins, admin)

    with pytest.raises(ForbiddenError) as exc:
        await services.conversations.delete_conversation(admin.id, group.id)

    assert exc.value.reason == DenialReason.OWNER_ONLY
    assert admin.id in await group.member_ids()


async def test_deleting_hidden_or_direct_conversations(make_group, make_user, services):
    private = await make_group(is_private=True)
    alice, bob = await make_user("alice"), await make_user("bob")
    direct = await services.conversations.create_direct_conversation(alice.id, bob.id)
    direct_id = direct.id

    with pytest.raises(NotFoundError):
        await services.conversations.delete_conversation(alice.id, private.id)

    with pytest.raises(ForbiddenError) as exc:
        await services.conversations.delete_conversation(alice.id, direct_id)
    assert exc.value.reason == DenialReason.DIRECT_CONVERSATION_IMMUTABLE


async def test_group_conversation_limit(make_group, make_user, services, monkeypatch):
    monkeypatch.setattr(settings, "MAX_GROUP_CONVERSATIONS", 2)
    owner = await make_user("owner")
    await make_group(owner=owner)
    joined = await make_group()
    await joined.add_member(owner)

    with pytest.raises(ForbiddenError) as exc:
        await services.conversations.create_group_conversation(owner.id, "one too many")
    assert exc.value.reason == DenialReason.CONVERSATION_LIMIT_REACHED

    await services.conversations.leave_conversation(owner.id, joined.id)
    conversation = await services.conversations.create_group_conversation(owner.id, "fits again")
    assert conversation.owner_id == owner.id


async def test_direct_conversation_limit(make_user, services, monkeypatch):
    monkeypatch.setattr(settings, "MAX_DIRECT_CONVERSATIONS", 1)
    alice, bob, carol = await make_user("alice"), await make_user("bob"), await make_user("carol")
    await services.conversations.create_direct_conversation(alice.id, bob.id)

    with pytest.raises(ForbiddenError) as exc:
        await services.conversations.create_direct_conversation(alice.id, carol.id)
    assert exc.value.reason == DenialReason.CONVERSATION_LIMIT_REACHED

    # Direct conversations do not count towards the group limit
    group = await services.conversations.create_group_conversation(alice.id, "still allowed")
    assert group.owner_id == alice.id
