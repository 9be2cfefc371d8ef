"""Gatherings Routes — gathering CRUD plus the join/leave entry points.

Invariants:
    - join/leave act for the user in X-User-Id and go through GroupAssignmentEngine only
    - NotFoundError -> 404, AlreadyMemberError -> 409, NotAMemberError -> 404,
      ContentionError -> 409 + Retry-After (global handler)
    - Membership is never edited through PATCH (GatheringUpdate forbids it)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from meetup.api.dependencies import (
    get_assignment_engine, get_current_user_id, get_gathering_service,
)
from meetup.core.domain_types import ActivityId, GatheringId, GroupId, UserId
from meetup.infrastructure.database import get_db
from meetup.schemas.gathering import (
    GatheringCreate, GatheringGroupsUpdate, GatheringResponse, GatheringUpdate,
    JoinResponse, LeaveResponse,
)
from meetup.services.activity_service import ActivityService
from meetup.services.gathering_service import GatheringService
from meetup.services.group_assignment import GroupAssignmentEngine

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/gatherings", tags=["gatherings"])


@router.get("", response_model=list[GatheringResponse])
async def list_gatherings(
    member: UUID | None = Query(None),
    service: GatheringService = Depends(get_gathering_service),
):
    """List gatherings, optionally only those containing `member`."""
    gatherings = await service.find(UserId(member) if member else None)
    return [GatheringResponse.from_record(g) for g in gatherings]


@router.post(
    "", response_model=GatheringResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_gathering(
    body: GatheringCreate,
    service: GatheringService = Depends(get_gathering_service),
    db: AsyncSession = Depends(get_db),
):
    if body.activity_id:
        await ActivityService(db).get(ActivityId(body.activity_id))
    gathering = await service.create(
        body.name,
        ActivityId(body.activity_id) if body.activity_id else None,
        body.date,
        tuple(GroupId(g) for g in body.groups),
    )
    return GatheringResponse.from_record(gathering)


@router.get("/{gathering_id}", response_model=GatheringResponse)
async def get_gathering(
    gathering_id: UUID,
    service: GatheringService = Depends(get_gathering_service),
):
    gathering = await service.get(GatheringId(gathering_id))
    return GatheringResponse.from_record(gathering)


@router.get("/{gathering_id}/members", response_model=list[UUID])
async def get_gathering_members(
    gathering_id: UUID,
    service: GatheringService = Depends(get_gathering_service),
):
    members = await service.members(GatheringId(gathering_id))
    return sorted(members, key=str)


@router.patch("/{gathering_id}", response_model=GatheringResponse)
async def update_gathering(
    gathering_id: UUID,
    body: GatheringUpdate,
    service: GatheringService = Depends(get_gathering_service),
    db: AsyncSession = Depends(get_db),
):
    fields = body.model_dump(exclude_unset=True)
    if fields.get("activity_id"):
        await ActivityService(db).get(ActivityId(fields["activity_id"]))
    gathering = await service.update(GatheringId(gathering_id), **fields)
    return GatheringResponse.from_record(gathering)


@router.put("/{gathering_id}/groups", response_model=GatheringResponse)
async def assign_gathering_groups(
    gathering_id: UUID,
    body: GatheringGroupsUpdate,
    service: GatheringService = Depends(get_gathering_service),
):
    """Replace the gathering's linked groups (every id must exist)."""
    gathering = await service.assign_groups(
        GatheringId(gathering_id), tuple(GroupId(g) for g in body.groups),
    )
    return GatheringResponse.from_record(gathering)


@router.delete("/{gathering_id}")
async def delete_gathering(
    gathering_id: UUID,
    service: GatheringService = Depends(get_gathering_service),
):
    name = await service.delete(GatheringId(gathering_id))
    return {"message": f"Gathering '{name}' deleted"}


@router.post("/{gathering_id}/join", response_model=JoinResponse)
async def join_gathering(
    gathering_id: UUID,
    user_id: UserId = Depends(get_current_user_id),
    engine: GroupAssignmentEngine = Depends(get_assignment_engine),
):
    """Join as the acting user; grows or splits linked groups per the policy."""
    result = await engine.join_gathering(GatheringId(gathering_id), user_id)
    return JoinResponse.from_result(result)


@router.post("/{gathering_id}/leave", response_model=LeaveResponse)
async def leave_gathering(
    gathering_id: UUID,
    user_id: UserId = Depends(get_current_user_id),
    engine: GroupAssignmentEngine = Depends(get_assignment_engine),
):
    """Leave as the acting user; group memberships are left as they are."""
    result = await engine.leave_gathering(GatheringId(gathering_id), user_id)
    return LeaveResponse.from_result(result)
