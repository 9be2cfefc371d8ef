"""Membership Policy — size-based split/grow/skip rule for gathering sub-groups.

Invariants:
    - decide() is PURE: looks only at the member set it is given
    - Size 2 -> SPLIT_AND_GROW, size 3..7 -> ADD_TO_EXISTING, anything else -> SKIP
    - A split never touches the source group; it yields a new member set of size 3
    - No planned group ever exceeds MAX_GROUP_SIZE
    - plan_join() skips groups that already contain the joining user

Design Decisions:
    - Policy returns an action descriptor, shell applies the writes (same shape as
      the other pure evaluators in core/)
    - Sizes 0 and 1 are SKIP: only 2-member seeds split and only 3+ groups grow
"""

from collections.abc import Iterable
from dataclasses import dataclass

from meetup.core.domain_types import GroupId, MembershipAction, UserId
from meetup.core.membership_state import GroupRecord


SPLIT_SEED_SIZE: int = 2
MAX_GROUP_SIZE: int = 8


def decide(group_members: frozenset[UserId] | set[UserId]) -> MembershipAction:
    """Decide what a join does to a group with these members."""
    size = len(group_members)
    if size >= MAX_GROUP_SIZE:
        return MembershipAction.SKIP
    if size == SPLIT_SEED_SIZE:
        return MembershipAction.SPLIT_AND_GROW
    if size > SPLIT_SEED_SIZE:
        return MembershipAction.ADD_TO_EXISTING
    return MembershipAction.SKIP


@dataclass(frozen=True)
class GroupAddition:
    """Existing group rewritten with the joining user added."""
    group_id: GroupId
    members: frozenset[UserId]
    expected_version: int = 0


@dataclass(frozen=True)
class GroupSplit:
    """New group cloned from a 2-member seed plus the joining user."""
    source_group_id: GroupId
    members: frozenset[UserId]


@dataclass(frozen=True)
class JoinPlan:
    additions: tuple[GroupAddition, ...] = ()
    splits: tuple[GroupSplit, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.additions and not self.splits


def plan_join(groups: Iterable[GroupRecord], user_id: UserId) -> JoinPlan:
    """Apply decide() to every linked group for one joining user."""
    additions: list[GroupAddition] = []
    splits: list[GroupSplit] = []
    for group in groups:
        if user_id in group.members:
            continue
        action = decide(group.members)
        if action is MembershipAction.ADD_TO_EXISTING:
            additions.append(
                GroupAddition(
                    group.id, group.members | {user_id}, group.version,
                ),
            )
        elif action is MembershipAction.SPLIT_AND_GROW:
            splits.append(GroupSplit(group.id, group.members | {user_id}))
    return JoinPlan(tuple(additions), tuple(splits))
