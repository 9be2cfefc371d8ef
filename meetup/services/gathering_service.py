"""Gathering Service — CRUD for gatherings; membership changes go through the engine.

Invariants:
    - Every group id linked to a gathering refers to an existing group at link time
    - A gathering starts with no members; members change only via join/leave
    - Deleting a gathering never deletes its groups
    - Writes to gathering.groups and deletes run under the gathering lock, so they never
      interleave with a join reading and re-writing the same document
"""

import logging
from datetime import datetime

from meetup.core.domain_types import (
    ActivityId, GatheringId, GroupId, ResourceType, UserId,
)
from meetup.core.errors import NotFoundError
from meetup.core.membership_state import GatheringRecord
from meetup.core.repository_protocols import (
    GatheringRepository, GroupRepository,
)
from meetup.services.gathering_locks import GatheringLockRegistry

logger = logging.getLogger(__name__)


class GatheringService:
    """Gathering CRUD over gathering/group repositories."""

    def __init__(
        self,
        gatherings: GatheringRepository,
        groups: GroupRepository,
        locks: GatheringLockRegistry,
        lock_timeout_seconds: float = 5.0,
        max_attempts: int = 3,
    ):
        self.gatherings = gatherings
        self.groups = groups
        self.locks = locks
        self.lock_timeout_seconds = lock_timeout_seconds
        self.max_attempts = max_attempts

    async def create(
        self,
        name: str,
        activity_id: ActivityId | None = None,
        date: datetime | None = None,
        groups: tuple[GroupId, ...] = (),
    ) -> GatheringRecord:
        await self._require_groups(groups)
        gathering = await self.gatherings.create(name, activity_id, date, groups)
        logger.info(
            f"Gathering '{name}' created",
            extra={"gathering_id": gathering.id},
        )
        return gathering

    async def get(self, gathering_id: GatheringId) -> GatheringRecord:
        gathering = await self.gatherings.get(gathering_id)
        if gathering is None:
            raise NotFoundError(ResourceType.GATHERING, gathering_id)
        return gathering

    async def find(
        self, member: UserId | None = None,
    ) -> list[GatheringRecord]:
        return await self.gatherings.find(member)

    async def members(self, gathering_id: GatheringId) -> frozenset[UserId]:
        return (await self.get(gathering_id)).members

    async def update(
        self, gathering_id: GatheringId, **fields: object,
    ) -> GatheringRecord:
        if fields and not await self.gatherings.update_details(
            gathering_id, **fields,
        ):
            raise NotFoundError(ResourceType.GATHERING, gathering_id)
        return await self.get(gathering_id)

    async def assign_groups(
        self, gathering_id: GatheringId, groups: tuple[GroupId, ...],
    ) -> GatheringRecord:
        return await self._locked(
            gathering_id, lambda: self._assign_groups(gathering_id, groups),
        )

    async def delete(self, gathering_id: GatheringId) -> str:
        return await self._locked(
            gathering_id, lambda: self._delete(gathering_id),
        )

    async def _locked(self, gathering_id, workflow):
        return await self.locks.run(
            gathering_id, workflow,
            self.lock_timeout_seconds, self.max_attempts,
        )

    async def _assign_groups(
        self, gathering_id: GatheringId, groups: tuple[GroupId, ...],
    ) -> GatheringRecord:
        await self.get(gathering_id)
        await self._require_groups(groups)
        if not await self.gatherings.update_groups(gathering_id, groups):
            raise NotFoundError(ResourceType.GATHERING, gathering_id)
        return await self.get(gathering_id)

    async def _delete(self, gathering_id: GatheringId) -> str:
        gathering = await self.get(gathering_id)
        await self.gatherings.delete(gathering_id)
        logger.info(
            f"Gathering '{gathering.name}' deleted",
            extra={"gathering_id": gathering_id},
        )
        return gathering.name

    async def _require_groups(self, groups: tuple[GroupId, ...]) -> None:
        for group_id in groups:
            if await self.groups.get(group_id) is None:
                raise NotFoundError(ResourceType.GROUP, group_id)
