"""Group Assignment Engine — join/leave workflows that keep gatherings and groups consistent.

Invariants:
    - Every workflow on one gathering runs under that gathering's lock
      (read gathering -> read groups -> write groups/gathering is never interleaved
      with another gathering writer)
    - Join: membership checked before ANY write; AlreadyMemberError leaves the stores untouched
    - Join: all linked groups are read before the first write; the policy decides, this
      module only applies the JoinPlan
    - Join: group writes are conditional on the version read; a stale group is re-read
      and re-planned, a vanished group is skipped and reported in missing_groups
    - Join: gathering.members and gathering.groups are written LAST, so a join that
      fails part way never leaves the user recorded as a member
    - Split: source group never written; new group ids appended to gathering.groups in
      a single write
    - Leave: only gathering.members changes; group memberships are sticky
    - ContentionError retried up to max_attempts; StoreError and domain errors propagate
      on first occurrence

Design Decisions:
    - Impureim sandwich: load records, plan_join() (pure), write results
    - Group additions applied before splits: a group contention failure happens before
      any new group exists, and the retried join skips groups that already hold the user
"""

import logging

from meetup.core.domain_types import GatheringId, GroupId, ResourceType, UserId
from meetup.core.errors import (
    AlreadyMemberError, ContentionError, NotAMemberError, NotFoundError,
)
from meetup.core.membership_policy import GroupAddition, GroupSplit, plan_join
from meetup.core.membership_state import (
    GatheringRecord, GroupRecord, JoinResult, LeaveResult,
)
from meetup.core.repository_protocols import (
    GatheringRepository, GroupRepository,
)
from meetup.services.gathering_locks import GatheringLockRegistry

logger = logging.getLogger(__name__)


class GroupAssignmentEngine:
    """Applies the membership policy when users join or leave gatherings."""

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

    async def join_gathering(
        self, gathering_id: GatheringId, user_id: UserId,
    ) -> JoinResult:
        return await self.locks.run(
            gathering_id, lambda: self._join(gathering_id, user_id),
            self.lock_timeout_seconds, self.max_attempts,
        )

    async def leave_gathering(
        self, gathering_id: GatheringId, user_id: UserId,
    ) -> LeaveResult:
        return await self.locks.run(
            gathering_id, lambda: self._leave(gathering_id, user_id),
            self.lock_timeout_seconds, self.max_attempts,
        )

    # ─── Workflows (lock held) ───────────────────────────────────

    async def _load_gathering(self, gathering_id: GatheringId) -> GatheringRecord:
        gathering = await self.gatherings.get(gathering_id)
        if gathering is None:
            raise NotFoundError(ResourceType.GATHERING, gathering_id)
        return gathering

    async def _load_groups(
        self, group_ids: tuple[GroupId, ...],
    ) -> tuple[list[GroupRecord], list[GroupId]]:
        found: list[GroupRecord] = []
        missing: list[GroupId] = []
        for group_id in group_ids:
            group = await self.groups.get(group_id)
            if group is None:
                missing.append(group_id)
            else:
                found.append(group)
        return found, missing

    async def _join(
        self, gathering_id: GatheringId, user_id: UserId,
    ) -> JoinResult:
        gathering = await self._load_gathering(gathering_id)
        if gathering.has_member(user_id):
            raise AlreadyMemberError(
                user_id, ResourceType.GATHERING, gathering_id,
            )
        linked, missing = await self._load_groups(gathering.groups)

        plan = plan_join(linked, user_id)
        splits: list[GroupSplit] = list(plan.splits)
        updated: list[GroupRecord] = []
        for addition in plan.additions:
            grown = await self._grow(
                gathering_id, addition, user_id, splits, missing,
            )
            if grown is not None:
                updated.append(grown)

        created: list[GroupRecord] = []
        for split in splits:
            group = await self.groups.create(split.members)
            created.append(group)
            logger.info(
                f"Split group {split.source_group_id} into new group",
                extra={
                    "gathering_id": gathering_id,
                    "group_id": group.id,
                    "user_id": user_id,
                },
            )

        if missing:
            logger.warning(
                f"{len(missing)} linked group(s) no longer exist, skipped",
                extra={"gathering_id": gathering_id},
            )

        members = gathering.members | {user_id}
        if not await self.gatherings.update_members(gathering_id, members):
            raise NotFoundError(ResourceType.GATHERING, gathering_id)
        groups = gathering.groups
        if created:
            groups = groups + tuple(g.id for g in created)
            if not await self.gatherings.update_groups(gathering_id, groups):
                raise NotFoundError(ResourceType.GATHERING, gathering_id)

        logger.info(
            f"User joined gathering ({len(updated)} grown, {len(created)} split)",
            extra={"gathering_id": gathering_id, "user_id": user_id},
        )
        return JoinResult(
            gathering_id=gathering_id,
            members=members,
            groups=groups,
            updated_groups=tuple(updated),
            created_groups=tuple(created),
            missing_groups=tuple(missing),
        )

    async def _grow(
        self,
        gathering_id: GatheringId,
        addition: GroupAddition,
        user_id: UserId,
        splits: list[GroupSplit],
        missing: list[GroupId],
    ) -> GroupRecord | None:
        """Write one planned addition, re-planning on a stale read.

        Returns the written group, or None when nothing was written: the group
        vanished (appended to `missing`) or the fresh read no longer calls for
        growth (a re-planned split is appended to `splits`).
        """
        for attempt in range(1, self.max_attempts + 1):
            if await self.groups.update_members(
                addition.group_id, addition.members, addition.expected_version,
            ):
                logger.info(
                    "Added member to group",
                    extra={
                        "gathering_id": gathering_id,
                        "group_id": addition.group_id,
                        "user_id": user_id,
                    },
                )
                return GroupRecord(
                    addition.group_id, addition.members,
                    addition.expected_version + 1,
                )
            fresh = await self.groups.get(addition.group_id)
            if fresh is None:
                missing.append(addition.group_id)
                return None
            logger.warning(
                "Group changed since read, re-planning",
                extra={
                    "gathering_id": gathering_id,
                    "group_id": addition.group_id,
                    "attempt": attempt,
                },
            )
            replanned = plan_join([fresh], user_id)
            if not replanned.additions:
                splits.extend(replanned.splits)
                return None
            addition = replanned.additions[0]
        raise ContentionError(
            addition.group_id, self.lock_timeout_seconds, self.max_attempts,
            resource_type=ResourceType.GROUP,
        )

    async def _leave(
        self, gathering_id: GatheringId, user_id: UserId,
    ) -> LeaveResult:
        gathering = await self._load_gathering(gathering_id)
        if not gathering.has_member(user_id):
            raise NotAMemberError(
                user_id, ResourceType.GATHERING, gathering_id,
            )
        members = gathering.members - {user_id}
        if not await self.gatherings.update_members(gathering_id, members):
            raise NotFoundError(ResourceType.GATHERING, gathering_id)
        logger.info(
            "User left gathering",
            extra={"gathering_id": gathering_id, "user_id": user_id},
        )
        return LeaveResult(gathering_id=gathering_id, members=members)
