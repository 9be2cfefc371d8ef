"""Gathering Schemas — gathering CRUD and join/leave bodies.

Invariants:
    - GatheringCreate.name: 1-200 chars, stripped, non-empty
    - GatheringUpdate forbids members/groups (those change via join/leave and PUT /groups)
    - JoinResponse lists every group the join wrote (updated + created)
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from meetup.core.membership_state import GatheringRecord, JoinResult, LeaveResult
from meetup.schemas.group import GroupResponse


def _sorted_ids(ids) -> list[UUID]:
    return sorted(ids, key=str)


class GatheringCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    activity_id: UUID | None = None
    date: datetime | None = None
    groups: list[UUID] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v


class GatheringUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(None, min_length=1, max_length=200)
    activity_id: UUID | None = None
    date: datetime | None = None

    @field_validator("name")
    @classmethod
    def name_not_null(cls, v: str | None) -> str:
        if v is None or not v.strip():
            raise ValueError("name cannot be null or whitespace")
        return v.strip()


class GatheringGroupsUpdate(BaseModel):
    groups: list[UUID]


class GatheringResponse(BaseModel):
    id: UUID
    name: str
    members: list[UUID]
    groups: list[UUID]
    activity_id: UUID | None = None
    date: datetime | None = None

    @classmethod
    def from_record(cls, record: GatheringRecord) -> "GatheringResponse":
        return cls(
            id=record.id,
            name=record.name,
            members=_sorted_ids(record.members),
            groups=list(record.groups),
            activity_id=record.activity_id,
            date=record.date,
        )


class JoinResponse(BaseModel):
    gathering_id: UUID
    members: list[UUID]
    groups: list[UUID]
    updated_groups: list[GroupResponse]
    created_groups: list[GroupResponse]
    missing_groups: list[UUID] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: JoinResult) -> "JoinResponse":
        return cls(
            gathering_id=result.gathering_id,
            members=_sorted_ids(result.members),
            groups=list(result.groups),
            updated_groups=[
                GroupResponse.from_record(g) for g in result.updated_groups
            ],
            created_groups=[
                GroupResponse.from_record(g) for g in result.created_groups
            ],
            missing_groups=list(result.missing_groups),
        )


class LeaveResponse(BaseModel):
    gathering_id: UUID
    members: list[UUID]

    @classmethod
    def from_result(cls, result: LeaveResult) -> "LeaveResponse":
        return cls(
            gathering_id=result.gathering_id,
            members=_sorted_ids(result.members),
        )
