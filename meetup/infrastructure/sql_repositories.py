"""SQL Repositories — SQLAlchemy implementations of the group/gathering store protocols.

Invariants:
    - Every public method is one document write + one commit (point-wise atomic)
    - Reads use populate_existing so a record never reflects a stale identity-map copy
    - Group member writes are one conditional UPDATE (version check + bump), so a
      write based on a stale read matches no row
    - SQLAlchemy failures roll back and surface as StoreError (never retried here)
    - Records returned are frozen snapshots (core/membership_state.py), not ORM objects

Design Decisions:
    - Id sets serialized as sorted lists of strings: stable JSON, portable across
      PostgreSQL and SQLite
    - Membership filtering done in Python after the read: JSON containment
      operators differ per dialect
"""

import logging
from datetime import datetime
from typing import Iterable
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from meetup.core.domain_types import ActivityId, GatheringId, GroupId, UserId
from meetup.core.membership_state import GatheringRecord, GroupRecord
from meetup.infrastructure.database import store_operation
from meetup.models.gathering import Gathering
from meetup.models.group import Group

logger = logging.getLogger(__name__)

_GATHERING_DETAIL_FIELDS = frozenset({"name", "activity_id", "date"})


def dump_ids(ids: Iterable[UUID]) -> list[str]:
    return sorted(str(i) for i in ids)


def load_ids(raw: list | None) -> frozenset:
    return frozenset(UUID(str(i)) for i in (raw or []))


def group_record(row: Group) -> GroupRecord:
    return GroupRecord(
        id=GroupId(row.id), members=load_ids(row.members), version=row.version,
    )


def gathering_record(row: Gathering) -> GatheringRecord:
    return GatheringRecord(
        id=GatheringId(row.id),
        name=row.name,
        members=load_ids(row.members),
        groups=tuple(GroupId(UUID(str(g))) for g in (row.groups or [])),
        activity_id=ActivityId(row.activity_id) if row.activity_id else None,
        date=row.date,
    )


class SqlGroupRepository:
    """GroupRepository backed by the `groups` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _row(self, group_id: GroupId) -> Group | None:
        return await self.db.get(Group, group_id, populate_existing=True)

    async def create(self, members: frozenset[UserId]) -> GroupRecord:
        async with store_operation(self.db, "create_group"):
            row = Group(members=dump_ids(members))
            self.db.add(row)
            await self.db.commit()
            await self.db.refresh(row)
            return group_record(row)

    async def get(self, group_id: GroupId) -> GroupRecord | None:
        async with store_operation(self.db, "read_group"):
            row = await self._row(group_id)
            return group_record(row) if row else None

    async def find(self, member: UserId | None = None) -> list[GroupRecord]:
        async with store_operation(self.db, "read_groups"):
            result = await self.db.execute(
                select(Group)
                .order_by(Group.updated_at.desc())
                .execution_options(populate_existing=True),
            )
            records = [group_record(row) for row in result.scalars().all()]
        if member is None:
            return records
        return [r for r in records if member in r.members]

    async def update_members(
        self,
        group_id: GroupId,
        members: frozenset[UserId],
        expected_version: int | None = None,
    ) -> bool:
        """Single UPDATE; with expected_version it matches only an unchanged row."""
        stmt = update(Group).where(Group.id == group_id)
        if expected_version is not None:
            stmt = stmt.where(Group.version == expected_version)
        stmt = stmt.values(
            members=dump_ids(members), version=Group.version + 1,
        ).execution_options(synchronize_session=False)
        async with store_operation(self.db, "update_group"):
            result = await self.db.execute(stmt)
            await self.db.commit()
        return result.rowcount == 1

    async def delete(self, group_id: GroupId) -> bool:
        async with store_operation(self.db, "delete_group"):
            row = await self._row(group_id)
            if row is None:
                return False
            await self.db.delete(row)
            await self.db.commit()
            return True


class SqlGatheringRepository:
    """GatheringRepository backed by the `gatherings` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _row(self, gathering_id: GatheringId) -> Gathering | None:
        return await self.db.get(
            Gathering, gathering_id, populate_existing=True,
        )

    async def create(
        self,
        name: str,
        activity_id: ActivityId | None,
        date: datetime | None,
        groups: tuple[GroupId, ...] = (),
    ) -> GatheringRecord:
        async with store_operation(self.db, "create_gathering"):
            row = Gathering(
                name=name,
                members=[],
                groups=[str(g) for g in dict.fromkeys(groups)],
                activity_id=activity_id,
                date=date,
            )
            self.db.add(row)
            await self.db.commit()
            await self.db.refresh(row)
            return gathering_record(row)

    async def get(self, gathering_id: GatheringId) -> GatheringRecord | None:
        async with store_operation(self.db, "read_gathering"):
            row = await self._row(gathering_id)
            return gathering_record(row) if row else None

    async def find(
        self, member: UserId | None = None,
    ) -> list[GatheringRecord]:
        async with store_operation(self.db, "read_gatherings"):
            result = await self.db.execute(
                select(Gathering)
                .order_by(Gathering.created_at.desc())
                .execution_options(populate_existing=True),
            )
            records = [gathering_record(row) for row in result.scalars().all()]
        if member is None:
            return records
        return [r for r in records if r.has_member(member)]

    async def update_members(
        self, gathering_id: GatheringId, members: frozenset[UserId],
    ) -> bool:
        async with store_operation(self.db, "update_gathering"):
            row = await self._row(gathering_id)
            if row is None:
                return False
            row.members = dump_ids(members)
            await self.db.commit()
            return True

    async def update_groups(
        self, gathering_id: GatheringId, groups: tuple[GroupId, ...],
    ) -> bool:
        async with store_operation(self.db, "update_gathering"):
            row = await self._row(gathering_id)
            if row is None:
                return False
            row.groups = [str(g) for g in dict.fromkeys(groups)]
            await self.db.commit()
            return True

    async def update_details(
        self, gathering_id: GatheringId, **fields: object,
    ) -> bool:
        unknown = set(fields) - _GATHERING_DETAIL_FIELDS
        if unknown:
            raise ValueError(f"Not a gathering detail field: {sorted(unknown)}")
        async with store_operation(self.db, "update_gathering"):
            row = await self._row(gathering_id)
            if row is None:
                return False
            for key, value in fields.items():
                setattr(row, key, value)
            await self.db.commit()
            return True

    async def delete(self, gathering_id: GatheringId) -> bool:
        async with store_operation(self.db, "delete_gathering"):
            row = await self._row(gathering_id)
            if row is None:
                return False
            await self.db.delete(row)
            await self.db.commit()
            return True
