"""Group Schemas — group CRUD request/response bodies.

Invariants:
    - GroupCreate/GroupUpdate reject empty member lists
"""

from uuid import UUID

from pydantic import BaseModel, Field

from meetup.core.membership_state import GroupRecord


class GroupCreate(BaseModel):
    members: list[UUID] = Field(min_length=1)


class GroupUpdate(BaseModel):
    members: list[UUID] = Field(min_length=1)


class GroupMemberAdd(BaseModel):
    member: UUID


class GroupResponse(BaseModel):
    id: UUID
    members: list[UUID]

    @classmethod
    def from_record(cls, record: GroupRecord) -> "GroupResponse":
        return cls(id=record.id, members=sorted(record.members, key=str))
