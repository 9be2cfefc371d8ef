"""Membership policy tests — pure size rule and join planning.

Tests cover:
    - decide() for every size from 0 to 9
    - plan_join() grows 3..7, splits 2-member seeds, skips full/tiny groups
    - Groups already containing the joiner are left alone
    - A split never reuses or alters the source member set
"""

from uuid import uuid4

import pytest

from meetup.core.domain_types import GroupId, MembershipAction, UserId
from meetup.core.membership_policy import (
    MAX_GROUP_SIZE, decide, plan_join,
)
from meetup.core.membership_state import GroupRecord


def _users(n: int) -> frozenset[UserId]:
    return frozenset(UserId(uuid4()) for _ in range(n))


def _group(n: int) -> GroupRecord:
    return GroupRecord(GroupId(uuid4()), _users(n))


# --- decide -------------------------------------------------------------------

@pytest.mark.parametrize("size, expected", [
    (0, MembershipAction.SKIP),
    (1, MembershipAction.SKIP),
    (2, MembershipAction.SPLIT_AND_GROW),
    (3, MembershipAction.ADD_TO_EXISTING),
    (5, MembershipAction.ADD_TO_EXISTING),
    (7, MembershipAction.ADD_TO_EXISTING),
    (8, MembershipAction.SKIP),
    (9, MembershipAction.SKIP),
])
def test_decide_by_size(size, expected):
    assert decide(_users(size)) is expected


def test_decide_accepts_plain_set():
    assert decide(set(_users(4))) is MembershipAction.ADD_TO_EXISTING


# --- plan_join ----------------------------------------------------------------

def test_plan_grows_mid_sized_group():
    user = UserId(uuid4())
    group = _group(5)

    plan = plan_join([group], user)

    assert plan.splits == ()
    assert len(plan.additions) == 1
    addition = plan.additions[0]
    assert addition.group_id == group.id
    assert addition.members == group.members | {user}
    assert len(addition.members) == 6


def test_plan_splits_two_member_seed():
    user = UserId(uuid4())
    seed = _group(2)

    plan = plan_join([seed], user)

    assert plan.additions == ()
    assert len(plan.splits) == 1
    split = plan.splits[0]
    assert split.source_group_id == seed.id
    assert split.members == seed.members | {user}
    assert len(seed.members) == 2


def test_plan_skips_full_group():
    plan = plan_join([_group(MAX_GROUP_SIZE)], UserId(uuid4()))
    assert plan.is_empty


def test_plan_skips_tiny_groups():
    plan = plan_join([_group(0), _group(1)], UserId(uuid4()))
    assert plan.is_empty


def test_plan_skips_group_already_containing_user():
    user = UserId(uuid4())
    group = GroupRecord(GroupId(uuid4()), _users(4) | {user})
    seed = GroupRecord(GroupId(uuid4()), _users(1) | {user})

    plan = plan_join([group, seed], user)

    assert plan.is_empty


def test_plan_mixed_groups_keeps_link_order():
    user = UserId(uuid4())
    a, b, c, d = _group(2), _group(5), _group(8), _group(3)

    plan = plan_join([a, b, c, d], user)

    assert [x.group_id for x in plan.additions] == [b.id, d.id]
    assert [x.source_group_id for x in plan.splits] == [a.id]


def test_planned_groups_never_exceed_max_size():
    user = UserId(uuid4())
    groups = [_group(n) for n in range(0, 10)]

    plan = plan_join(groups, user)

    sizes = [len(a.members) for a in plan.additions]
    sizes += [len(s.members) for s in plan.splits]
    assert sizes
    assert max(sizes) <= MAX_GROUP_SIZE


def test_empty_plan_for_no_groups():
    assert plan_join([], UserId(uuid4())).is_empty
