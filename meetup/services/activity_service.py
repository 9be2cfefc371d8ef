"""Activity Service — CRUD for activities bound to locations.

Invariants:
    - An activity references an existing location
    - (name, location_id, date) is unique
"""

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from meetup.core.domain_types import ActivityId, LocationId, ResourceType
from meetup.core.errors import BadValuesError, NotFoundError
from meetup.infrastructure.database import store_operation
from meetup.models.activity import Activity
from meetup.services.location_service import LocationService

logger = logging.getLogger(__name__)

_UPDATABLE = frozenset({"name", "description", "location_id", "date"})


class ActivityService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.locations = LocationService(db)

    async def create(
        self,
        name: str,
        description: str,
        location_id: LocationId,
        date: datetime,
    ) -> Activity:
        await self.locations.get(location_id)
        if await self._duplicate(name, location_id, date):
            raise BadValuesError("this activity already exists")
        async with store_operation(self.db, "create_activity"):
            activity = Activity(
                name=name, description=description,
                location_id=location_id, date=date,
            )
            self.db.add(activity)
            await self.db.commit()
            await self.db.refresh(activity)
        logger.info(f"Activity '{name}' created")
        return activity

    async def find(
        self,
        name: str | None = None,
        location_id: LocationId | None = None,
    ) -> list[Activity]:
        query = select(Activity).order_by(Activity.date)
        if name:
            query = query.where(Activity.name == name)
        if location_id:
            query = query.where(Activity.location_id == location_id)
        async with store_operation(self.db, "read_activities"):
            result = await self.db.execute(query)
            return list(result.scalars().all())

    async def get(self, activity_id: ActivityId) -> Activity:
        async with store_operation(self.db, "read_activity"):
            activity = await self.db.get(Activity, activity_id)
        if activity is None:
            raise NotFoundError(ResourceType.ACTIVITY, activity_id)
        return activity

    async def update(self, activity_id: ActivityId, **fields: object) -> Activity:
        activity = await self.get(activity_id)
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise BadValuesError(f"cannot update {sorted(unknown)}")
        if fields.get("location_id"):
            await self.locations.get(fields["location_id"])
        async with store_operation(self.db, "update_activity"):
            for key, value in fields.items():
                setattr(activity, key, value)
            await self.db.commit()
        return activity

    async def delete(self, activity_id: ActivityId) -> str:
        activity = await self.get(activity_id)
        name = activity.name
        async with store_operation(self.db, "delete_activity"):
            await self.db.delete(activity)
            await self.db.commit()
        return name

    async def _duplicate(
        self, name: str, location_id: LocationId, date: datetime,
    ) -> bool:
        async with store_operation(self.db, "read_activity"):
            result = await self.db.execute(
                select(Activity.id)
                .where(Activity.name == name)
                .where(Activity.location_id == location_id)
                .where(Activity.date == date),
            )
            return result.first() is not None
