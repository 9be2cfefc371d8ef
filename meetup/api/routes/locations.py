"""Locations Routes — point CRUD and nearby search.

Invariants:
    - Out-of-range coordinates -> 400 BAD_VALUES (LocationService)
    - /nearby defaults to settings.nearby_default_meters
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from meetup.config import get_settings
from meetup.core.domain_types import LocationId
from meetup.infrastructure.database import get_db
from meetup.schemas.location import (
    LocationCreate, LocationResponse, LocationUpdate, NearbyLocation,
)
from meetup.services.location_service import LocationService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/locations", tags=["locations"])


@router.get("", response_model=list[LocationResponse])
async def list_locations(db: AsyncSession = Depends(get_db)):
    return await LocationService(db).find()


@router.post(
    "", response_model=LocationResponse, status_code=status.HTTP_201_CREATED,
)
async def create_location(
    body: LocationCreate, db: AsyncSession = Depends(get_db),
):
    return await LocationService(db).create(body.longitude, body.latitude)


@router.get("/{location_id}", response_model=LocationResponse)
async def get_location(location_id: UUID, db: AsyncSession = Depends(get_db)):
    return await LocationService(db).get(LocationId(location_id))


@router.patch("/{location_id}", response_model=LocationResponse)
async def update_location(
    location_id: UUID,
    body: LocationUpdate,
    db: AsyncSession = Depends(get_db),
):
    return await LocationService(db).update(
        LocationId(location_id), body.longitude, body.latitude,
    )


@router.delete("/{location_id}")
async def delete_location(
    location_id: UUID, db: AsyncSession = Depends(get_db),
):
    await LocationService(db).delete(LocationId(location_id))
    return {"message": "Location deleted"}


@router.get("/{location_id}/nearby", response_model=list[NearbyLocation])
async def get_nearby_locations(
    location_id: UUID,
    distance: float | None = Query(None, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """Locations within `distance` meters, nearest first."""
    meters = distance if distance is not None else get_settings().nearby_default_meters
    found = await LocationService(db).nearby(LocationId(location_id), meters)
    return [
        NearbyLocation(
            id=loc.id, type=loc.type,
            longitude=loc.longitude, latitude=loc.latitude,
            distance_meters=round(d, 1),
        )
        for loc, d in found
    ]
