"""Group Service — CRUD for groups outside the join workflow.

Invariants:
    - A group is never created, replaced or shrunk to an empty member set
    - remove_member removes exactly the named member (equality filter), never an
      arbitrary element
    - Every mutation builds a new frozenset and writes it back
    - add/remove write conditionally on the version read; a concurrent write (e.g. a
      join growing the same group) forces a re-read, never a lost update
    - Re-reads bounded by max_attempts, then ContentionError
"""

import logging
from collections.abc import Callable

from meetup.core.domain_types import GroupId, ResourceType, UserId
from meetup.core.errors import (
    AlreadyMemberError, ContentionError, EmptyMembersError, NotAMemberError,
    NotFoundError,
)
from meetup.core.membership_state import GroupRecord
from meetup.core.repository_protocols import GroupRepository

logger = logging.getLogger(__name__)

_RETRY_AFTER_SECONDS = 0.5


class GroupService:
    """Group CRUD over a GroupRepository."""

    def __init__(self, groups: GroupRepository, max_attempts: int = 3):
        self.groups = groups
        self.max_attempts = max_attempts

    async def create(self, members: frozenset[UserId]) -> GroupRecord:
        if not members:
            raise EmptyMembersError()
        group = await self.groups.create(frozenset(members))
        logger.info("Group created", extra={"group_id": group.id})
        return group

    async def get(self, group_id: GroupId) -> GroupRecord:
        group = await self.groups.get(group_id)
        if group is None:
            raise NotFoundError(ResourceType.GROUP, group_id)
        return group

    async def find(self, member: UserId | None = None) -> list[GroupRecord]:
        return await self.groups.find(member)

    async def members(self, group_id: GroupId) -> frozenset[UserId]:
        return (await self.get(group_id)).members

    async def replace_members(
        self, group_id: GroupId, members: frozenset[UserId],
    ) -> GroupRecord:
        """Blind overwrite; bumps the version so in-flight conditional writers re-read."""
        if not members:
            raise EmptyMembersError()
        await self.get(group_id)
        members = frozenset(members)
        if not await self.groups.update_members(group_id, members):
            raise NotFoundError(ResourceType.GROUP, group_id)
        return await self.get(group_id)

    async def add_member(self, group_id: GroupId, member: UserId) -> GroupRecord:
        def _add(group: GroupRecord) -> frozenset[UserId]:
            if member in group.members:
                raise AlreadyMemberError(member, ResourceType.GROUP, group_id)
            return group.members | {member}
        return await self._rewrite(group_id, _add)

    async def remove_member(
        self, group_id: GroupId, member: UserId,
    ) -> GroupRecord:
        def _remove(group: GroupRecord) -> frozenset[UserId]:
            if member not in group.members:
                raise NotAMemberError(member, ResourceType.GROUP, group_id)
            remaining = frozenset(m for m in group.members if m != member)
            if not remaining:
                raise EmptyMembersError()
            return remaining
        return await self._rewrite(group_id, _remove)

    async def delete(self, group_id: GroupId) -> None:
        if not await self.groups.delete(group_id):
            raise NotFoundError(ResourceType.GROUP, group_id)
        logger.info("Group deleted", extra={"group_id": group_id})

    async def _rewrite(
        self,
        group_id: GroupId,
        change: Callable[[GroupRecord], frozenset[UserId]],
    ) -> GroupRecord:
        """Read, apply change, write only if nobody wrote in between."""
        for attempt in range(1, self.max_attempts + 1):
            group = await self.get(group_id)
            members = change(group)
            if await self.groups.update_members(
                group_id, members, group.version,
            ):
                return GroupRecord(group_id, members, group.version + 1)
            logger.warning(
                "Group changed since read, retrying",
                extra={"group_id": group_id, "attempt": attempt},
            )
        raise ContentionError(
            group_id, _RETRY_AFTER_SECONDS, self.max_attempts,
            resource_type=ResourceType.GROUP,
        )
