"""Gathering ORM — event-scoped container of members and linked sub-groups.

Invariants:
    - members: JSON list of user id strings, no duplicates
    - groups: JSON list of group id strings in link order; the gathering owns the
      association (groups carry no back-reference)
    - Deleting a gathering never deletes its groups

Design Decisions:
    - JSON id lists over association tables: each gathering is read and written
      as one document, matching the point-wise atomic store contract
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from meetup.db.base import Base


class Gathering(Base):
    __tablename__ = "gatherings"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    members: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    groups: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    activity_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("activities.id", ondelete="SET NULL"),
        nullable=True,
    )
    date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
