from uuid import uuid4

import pytest

from src.application.authorization.reorder import (
    is_dense,
    next_level,
    plan_delete_shift,
    plan_reorder,
)
from src.core.exceptions import DenialReason, NotFoundError, RequestValidationError


@pytest.fixture
def roles():
    """Twenty roles at levels 1..20, `roles[n]` is the role at level n"""
    return {level: uuid4() for level in range(1, 21)}


@pytest.fixture
def levels(roles):
    return {role_id: level for level, role_id in roles.items()}


def apply(levels, changes):
    return {**levels, **changes}


def test_next_level_goes_to_the_bottom():
    assert next_level(0) == 1
    assert next_level(4) == 5


def test_delete_shift_closes_the_gap():
    a, b, c, d = uuid4(), uuid4(), uuid4(), uuid4()
    remaining = {a: 1, c: 3, d: 4}

    changes = plan_delete_shift(remaining, deleted_level=2)

    assert changes == {c: 2, d: 3}
    assert is_dense(apply(remaining, changes).values())
    assert b not in changes


def test_delete_of_the_last_role_changes_nothing():
    a, b = uuid4(), uuid4()
    assert plan_delete_shift({a: 1, b: 2}, deleted_level=3) == {}


def test_moves_bottom_role_to_the_top(roles, levels):
    changes = plan_reorder(levels, [roles[20], roles[1]])
    result = apply(levels, changes)

    assert result[roles[20]] == 1
    assert result[roles[1]] == 2
    for level in range(2, 20):
        assert result[roles[level]] == level + 1
    assert is_dense(result.values())


def test_moves_a_block_into_the_middle(roles, levels):
    changes = plan_reorder(levels, [roles[20], roles[19], roles[18], roles[17], roles[4]])
    result = apply(levels, changes)

    assert [result[roles[level]] for level in (20, 19, 18, 17, 4)] == [4, 5, 6, 7, 8]
    for level in range(5, 17):
        assert result[roles[level]] == level + 4
    for level in (1, 2, 3):
        assert roles[level] not in changes
    assert is_dense(result.values())


def test_window_outside_roles_are_untouched(roles, levels):
    changes = plan_reorder(levels, [roles[19], roles[8]])
    result = apply(levels, changes)

    assert result[roles[19]] == 8
    assert result[roles[8]] == 9
    for level in range(9, 19):
        assert result[roles[level]] == level + 1
    for level in [*range(1, 8), 20]:
        assert roles[level] not in changes
    assert is_dense(result.values())


def test_already_ordered_selection_is_a_no_op(roles, levels):
    assert plan_reorder(levels, [roles[3], roles[4], roles[5]]) == {}


def test_reorder_is_idempotent(roles, levels):
    order = [roles[12], roles[2], roles[7]]
    once = apply(levels, plan_reorder(levels, order))

    assert plan_reorder(once, order) == {}


def test_selected_roles_keep_the_requested_order(roles, levels):
    order = [roles[10], roles[3], roles[15], roles[6]]
    result = apply(levels, plan_reorder(levels, order))

    assert [result[role_id] for role_id in order] == [3, 4, 5, 6]


def test_unselected_roles_keep_their_relative_order(roles, levels):
    result = apply(levels, plan_reorder(levels, [roles[18], roles[5]]))

    inside = [roles[level] for level in range(6, 18)]
    assert [result[role_id] for role_id in inside] == sorted(result[role_id] for role_id in inside)


def test_requires_at_least_two_roles(roles, levels):
    with pytest.raises(RequestValidationError) as exc:
        plan_reorder(levels, [roles[1]])
    assert exc.value.reason == DenialReason.INVALID_REQUEST


def test_rejects_duplicate_ids(roles, levels):
    with pytest.raises(RequestValidationError) as exc:
        plan_reorder(levels, [roles[1], roles[2], roles[1]])
    assert exc.value.reason == DenialReason.DUPLICATE_IDS


def test_rejects_unknown_roles(roles, levels):
    with pytest.raises(NotFoundError) as exc:
        plan_reorder(levels, [roles[1], uuid4()])
    assert exc.value.reason == DenialReason.ROLE_NOT_FOUND


def test_is_dense():
    assert is_dense([])
    assert is_dense([2, 1, 3])
    assert not is_dense([1, 3])
    assert not is_dense([1, 1, 2])
