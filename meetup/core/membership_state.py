"""Membership State — immutable records for gatherings, groups and join/leave outcomes.

Invariants:
    - Member sets are frozensets; every change builds a new set that the shell writes back
    - GroupRecord.version is the store revision it was read at (conditional writes)
    - GatheringRecord.groups preserves link order (oldest first), no duplicates
    - Records are snapshots of a store read; they never talk to the store themselves
"""

from dataclasses import dataclass, field
from datetime import datetime

from meetup.core.domain_types import ActivityId, GatheringId, GroupId, UserId


@dataclass(frozen=True)
class GroupRecord:
    id: GroupId
    members: frozenset[UserId]
    version: int = 0

    @property
    def size(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class GatheringRecord:
    id: GatheringId
    name: str
    members: frozenset[UserId] = frozenset()
    groups: tuple[GroupId, ...] = ()
    activity_id: ActivityId | None = None
    date: datetime | None = None

    def has_member(self, user_id: UserId) -> bool:
        return user_id in self.members


@dataclass(frozen=True)
class JoinResult:
    """Outcome of join_gathering: new membership plus every group written."""
    gathering_id: GatheringId
    members: frozenset[UserId]
    groups: tuple[GroupId, ...]
    updated_groups: tuple[GroupRecord, ...] = ()
    created_groups: tuple[GroupRecord, ...] = ()
    missing_groups: tuple[GroupId, ...] = field(default_factory=tuple)

    @property
    def mutated_groups(self) -> tuple[GroupRecord, ...]:
        return self.updated_groups + self.created_groups


@dataclass(frozen=True)
class LeaveResult:
    gathering_id: GatheringId
    members: frozenset[UserId]
