"""Groups Routes — group CRUD outside the join workflow.

Invariants:
    - Routes never contain business logic (delegate to GroupService)
    - Empty member lists rejected at the schema boundary and again by the service
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from meetup.api.dependencies import get_group_service
from meetup.core.domain_types import GroupId, UserId
from meetup.schemas.group import (
    GroupCreate, GroupMemberAdd, GroupResponse, GroupUpdate,
)
from meetup.services.group_service import GroupService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/groups", tags=["groups"])


@router.get("", response_model=list[GroupResponse])
async def list_groups(
    member: UUID | None = Query(None),
    service: GroupService = Depends(get_group_service),
):
    """List groups, optionally only those containing `member`."""
    groups = await service.find(UserId(member) if member else None)
    return [GroupResponse.from_record(g) for g in groups]


@router.post(
    "", response_model=GroupResponse, status_code=status.HTTP_201_CREATED,
)
async def create_group(
    body: GroupCreate, service: GroupService = Depends(get_group_service),
):
    group = await service.create(frozenset(UserId(m) for m in body.members))
    return GroupResponse.from_record(group)


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group(
    group_id: UUID, service: GroupService = Depends(get_group_service),
):
    return GroupResponse.from_record(await service.get(GroupId(group_id)))


@router.patch("/{group_id}", response_model=GroupResponse)
async def update_group(
    group_id: UUID,
    body: GroupUpdate,
    service: GroupService = Depends(get_group_service),
):
    """Replace the member set."""
    group = await service.replace_members(
        GroupId(group_id), frozenset(UserId(m) for m in body.members),
    )
    return GroupResponse.from_record(group)


@router.post("/{group_id}/members", response_model=GroupResponse)
async def add_group_member(
    group_id: UUID,
    body: GroupMemberAdd,
    service: GroupService = Depends(get_group_service),
):
    group = await service.add_member(GroupId(group_id), UserId(body.member))
    return GroupResponse.from_record(group)


@router.delete("/{group_id}/members/{member}", response_model=GroupResponse)
async def remove_group_member(
    group_id: UUID,
    member: UUID,
    service: GroupService = Depends(get_group_service),
):
    group = await service.remove_member(GroupId(group_id), UserId(member))
    return GroupResponse.from_record(group)


@router.delete("/{group_id}")
async def delete_group(
    group_id: UUID, service: GroupService = Depends(get_group_service),
):
    await service.delete(GroupId(group_id))
    return {"message": "Group deleted"}
