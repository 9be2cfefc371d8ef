"""Location Service — GeoJSON points and nearby search.

Invariants:
    - Coordinates validated before any write (core/geo_distance.py)
    - Identical (longitude, latitude) points are not duplicated, on create or update
    - A location referenced by an activity is never deleted
    - nearby() excludes the origin and sorts nearest first
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from meetup.core.domain_types import LocationId, ResourceType
from meetup.core.errors import BadValuesError, NotFoundError
from meetup.core.geo_distance import coordinates_error, haversine_meters
from meetup.infrastructure.database import store_operation
from meetup.models.activity import Activity
from meetup.models.location import Location

logger = logging.getLogger(__name__)


class LocationService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, longitude: float, latitude: float) -> Location:
        self._validate(longitude, latitude)
        if await self._exists(longitude, latitude):
            raise BadValuesError(
                f"location ({longitude}, {latitude}) already exists",
            )
        async with store_operation(self.db, "create_location"):
            location = Location(
                type="Point", longitude=longitude, latitude=latitude,
            )
            self.db.add(location)
            await self.db.commit()
            await self.db.refresh(location)
        return location

    async def find(self) -> list[Location]:
        async with store_operation(self.db, "read_locations"):
            result = await self.db.execute(
                select(Location).order_by(Location.created_at),
            )
            return list(result.scalars().all())

    async def get(self, location_id: LocationId) -> Location:
        async with store_operation(self.db, "read_location"):
            location = await self.db.get(Location, location_id)
        if location is None:
            raise NotFoundError(ResourceType.LOCATION, location_id)
        return location

    async def update(
        self,
        location_id: LocationId,
        longitude: float | None = None,
        latitude: float | None = None,
    ) -> Location:
        location = await self.get(location_id)
        new_lon = location.longitude if longitude is None else longitude
        new_lat = location.latitude if latitude is None else latitude
        self._validate(new_lon, new_lat)
        if await self._exists(new_lon, new_lat, exclude=location_id):
            raise BadValuesError(
                f"location ({new_lon}, {new_lat}) already exists",
            )
        async with store_operation(self.db, "update_location"):
            location.longitude = new_lon
            location.latitude = new_lat
            await self.db.commit()
        return location

    async def delete(self, location_id: LocationId) -> None:
        location = await self.get(location_id)
        async with store_operation(self.db, "read_activities"):
            result = await self.db.execute(
                select(Activity.id)
                .where(Activity.location_id == location_id)
                .limit(1),
            )
            in_use = result.first() is not None
        if in_use:
            raise BadValuesError(
                f"location {location_id} is used by an activity",
            )
        async with store_operation(self.db, "delete_location"):
            await self.db.delete(location)
            await self.db.commit()

    async def nearby(
        self, location_id: LocationId, meters: float,
    ) -> list[tuple[Location, float]]:
        """Locations within `meters` of the given one, nearest first."""
        origin = await self.get(location_id)
        found = []
        for other in await self.find():
            if other.id == origin.id:
                continue
            distance = haversine_meters(origin.coordinates, other.coordinates)
            if distance <= meters:
                found.append((other, distance))
        return sorted(found, key=lambda pair: pair[1])

    @staticmethod
    def _validate(longitude: float, latitude: float) -> None:
        reason = coordinates_error(longitude, latitude)
        if reason:
            raise BadValuesError(reason)

    async def _exists(
        self,
        longitude: float,
        latitude: float,
        exclude: LocationId | None = None,
    ) -> bool:
        stmt = (
            select(Location.id)
            .where(Location.longitude == longitude)
            .where(Location.latitude == latitude)
        )
        if exclude is not None:
            stmt = stmt.where(Location.id != exclude)
        async with store_operation(self.db, "read_location"):
            result = await self.db.execute(stmt)
            return result.first() is not None
