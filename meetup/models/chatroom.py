"""Chatroom ORM — message stream attached to one group.

Invariants:
    - Always references a Group (group_id FK)
    - messages: JSON list of message id strings, newest first, no duplicates
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from meetup.db.base import Base


class Chatroom(Base):
    __tablename__ = "chatrooms"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    group_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False,
    )
    messages: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
