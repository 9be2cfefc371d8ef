"""Message Schemas — only `content` is accepted on update (extra fields rejected)."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class MessageCreate(BaseModel):
    content: str = Field(max_length=5000)


class MessageUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    content: str = Field(max_length=5000)


class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    author_id: UUID
    content: str
    date: datetime
