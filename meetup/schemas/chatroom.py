"""Chatroom Schemas."""

from uuid import UUID

from pydantic import BaseModel, Field


class ChatroomCreate(BaseModel):
    group_id: UUID
    messages: list[UUID] = Field(default_factory=list)


class ChatroomUpdate(BaseModel):
    group_id: UUID


class ChatroomCopy(BaseModel):
    group_id: UUID


class ChatroomMessageAdd(BaseModel):
    message_id: UUID


class ChatroomResponse(BaseModel):
    id: UUID
    group_id: UUID
    messages: list[UUID]

    @classmethod
    def from_model(cls, chatroom) -> "ChatroomResponse":
        return cls(
            id=chatroom.id,
            group_id=chatroom.group_id,
            messages=[UUID(str(m)) for m in chatroom.messages or []],
        )
