"""Boundary Protocols — contracts between the group-assignment core and the stores.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - Every method is point-wise atomic: one document, one commit
    - No multi-document transaction is assumed (see services/gathering_locks.py)
    - update_* / delete return False when the document does not exist
    - GroupRepository.update_members with expected_version writes only if the stored
      version still matches (False on a stale read); every group write bumps version

Design Decisions:
    - Protocol over ABC: structural subtyping, SQL repositories and test fakes
      satisfy it without inheriting
    - Async in Protocol: implementations do IO; core pure functions never await
"""

from datetime import datetime
from typing import Protocol

from meetup.core.domain_types import ActivityId, GatheringId, GroupId, UserId
from meetup.core.membership_state import GatheringRecord, GroupRecord


class GroupRepository(Protocol):
    """Contract for group persistence — implemented by shell."""
    async def create(self, members: frozenset[UserId]) -> GroupRecord: ...
    async def get(self, group_id: GroupId) -> GroupRecord | None: ...
    async def find(self, member: UserId | None = None) -> list[GroupRecord]: ...
    async def update_members(
        self,
        group_id: GroupId,
        members: frozenset[UserId],
        expected_version: int | None = None,
    ) -> bool: ...
    async def delete(self, group_id: GroupId) -> bool: ...


class GatheringRepository(Protocol):
    """Contract for gathering persistence — implemented by shell."""
    async def create(
        self,
        name: str,
        activity_id: ActivityId | None,
        date: datetime | None,
        groups: tuple[GroupId, ...] = (),
    ) -> GatheringRecord: ...
    async def get(self, gathering_id: GatheringId) -> GatheringRecord | None: ...
    async def find(
        self, member: UserId | None = None,
    ) -> list[GatheringRecord]: ...
    async def update_members(
        self, gathering_id: GatheringId, members: frozenset[UserId],
    ) -> bool: ...
    async def update_groups(
        self, gathering_id: GatheringId, groups: tuple[GroupId, ...],
    ) -> bool: ...
    async def update_details(
        self, gathering_id: GatheringId, **fields: object,
    ) -> bool: ...
    async def delete(self, gathering_id: GatheringId) -> bool: ...
