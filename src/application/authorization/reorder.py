"""
Level allocation and reordering for leveled roles.

Every function here is pure: it takes the current `{role_id: level}` map of
a conversation's leveled roles and returns only the roles whose level must
change. Applying the result keeps the levels exactly `{1..N}`.
"""

from collections.abc import Iterable, Mapping, Sequence
from uuid import UUID

from src.core.exceptions import DenialReason, NotFoundError, RequestValidationError

MIN_REORDER_ROLES = 2


def next_level(leveled_count: int) -> int:
    """New roles always go to the bottom, gaps are never reused"""
    return leveled_count + 1


def plan_delete_shift(levels: Mapping[UUID, int], deleted_level: int) -> dict[UUID, int]:
    """Close the gap left by a deleted role"""
    return {role_id: level - 1 for role_id, level in levels.items() if level > deleted_level}


def validate_reorder_request(ordered_ids: Sequence[UUID]) -> None:
    if len(ordered_ids) < MIN_REORDER_ROLES:
        raise RequestValidationError(f'At least {MIN_REORDER_ROLES} roles are required to reorder')

    if len(set(ordered_ids)) != len(ordered_ids):
        raise RequestValidationError('Role ids must be unique', DenialReason.DUPLICATE_IDS)


def plan_reorder(levels: Mapping[UUID, int], ordered_ids: Sequence[UUID]) -> dict[UUID, int]:
    """
    Re-pack the window [lo, hi] spanned by the selected roles.

    Selected roles take lo, lo+1, ... in the given order. Unselected roles
    strictly inside the window follow them, keeping their relative order.
    Roles outside the window are untouched.
    """
    validate_reorder_request(ordered_ids)

    missing = [role_id for role_id in ordered_ids if role_id not in levels]
    if missing:
        raise NotFoundError('One or more roles not found in this conversation', DenialReason.ROLE_NOT_FOUND)

    selected = [levels[role_id] for role_id in ordered_ids]
    lo, hi = min(selected), max(selected)

    targets = {role_id: lo + offset for offset, role_id in enumerate(ordered_ids)}

    others = sorted(
        (role_id for role_id, level in levels.items() if lo < level < hi and role_id not in targets),
        key=levels.__getitem__,
    )
    for level, role_id in enumerate(others, start=lo + len(ordered_ids)):
        targets[role_id] = level

    return {role_id: level for role_id, level in targets.items() if levels[role_id] != level}


def is_dense(levels: Iterable[int]) -> bool:
    ordered = sorted(levels)
    return ordered == list(range(1, len(ordered) + 1))
