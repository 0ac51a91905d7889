from typing import TYPE_CHECKING, Iterable

from src.infrastructure.database.enums.Permissions import Permissions

if TYPE_CHECKING:
    from src.application.authorization.snapshots import MemberSnapshot


def parse_permissions(values: Iterable[str | Permissions]) -> frozenset[Permissions]:
    """Raises ValueError on names outside the vocabulary"""
    return frozenset(Permissions(value) for value in values)


def effective_permissions(member: "MemberSnapshot") -> frozenset[Permissions]:
    """Union of the permissions of every held role, the default role included"""
    permissions: set[Permissions] = set()
    for role in member.roles:
        permissions |= role.permissions
    return frozenset(permissions)


def is_admin(member: "MemberSnapshot") -> bool:
    return Permissions.ADMIN in effective_permissions(member)


def has_any(member: "MemberSnapshot", required: Iterable[Permissions]) -> bool:
    """`admin` bypasses every check, otherwise one of `required` must be held"""
    held = effective_permissions(member)
    if Permissions.ADMIN in held:
        return True
    return not held.isdisjoint(required)
