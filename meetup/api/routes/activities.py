"""Activities Routes."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from meetup.core.domain_types import ActivityId, LocationId
from meetup.infrastructure.database import get_db
from meetup.schemas.activity import (
    ActivityCreate, ActivityResponse, ActivityUpdate,
)
from meetup.services.activity_service import ActivityService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/activities", tags=["activities"])


@router.get("", response_model=list[ActivityResponse])
async def list_activities(
    name: str | None = Query(None),
    location_id: UUID | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await ActivityService(db).find(
        name, LocationId(location_id) if location_id else None,
    )


@router.post(
    "", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED,
)
async def create_activity(
    body: ActivityCreate, db: AsyncSession = Depends(get_db),
):
    return await ActivityService(db).create(
        body.name, body.description, LocationId(body.location_id), body.date,
    )


@router.get("/{activity_id}", response_model=ActivityResponse)
async def get_activity(activity_id: UUID, db: AsyncSession = Depends(get_db)):
    return await ActivityService(db).get(ActivityId(activity_id))


@router.patch("/{activity_id}", response_model=ActivityResponse)
async def update_activity(
    activity_id: UUID,
    body: ActivityUpdate,
    db: AsyncSession = Depends(get_db),
):
    fields = {
        k: v for k, v in body.model_dump(exclude_unset=True).items()
        if v is not None
    }
    return await ActivityService(db).update(ActivityId(activity_id), **fields)


@router.delete("/{activity_id}")
async def delete_activity(
    activity_id: UUID, db: AsyncSession = Depends(get_db),
):
    name = await ActivityService(db).delete(ActivityId(activity_id))
    return {"message": f"Activity '{name}' deleted"}
