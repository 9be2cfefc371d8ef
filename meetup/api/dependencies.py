"""Route Dependencies — acting user resolution and service construction.

Invariants:
    - The acting user comes from the X-User-Id header and must exist in `users`
    - One GatheringLockRegistry per app (app.state.gathering_locks), shared by the engine
      and GatheringService (every gathering membership/groups writer)
    - Services are built per request around the request's DB session

Design Decisions:
    - Header identity: session/password authentication is out of scope; an upstream
      gateway is expected to set X-User-Id
    - Explicit service objects injected via Depends, no module-level singletons
"""

from uuid import UUID

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from meetup.config import get_settings
from meetup.core.domain_types import UserId
from meetup.core.errors import NotFoundError, UnauthenticatedError
from meetup.infrastructure.database import get_db
from meetup.infrastructure.sql_repositories import (
    SqlGatheringRepository, SqlGroupRepository,
)
from meetup.services.gathering_locks import GatheringLockRegistry
from meetup.services.gathering_service import GatheringService
from meetup.services.group_assignment import GroupAssignmentEngine
from meetup.services.group_service import GroupService
from meetup.services.user_service import UserService


async def get_current_user_id(
    x_user_id: str | None = Header(None),
    db: AsyncSession = Depends(get_db),
) -> UserId:
    """Resolve and verify the acting user."""
    if not x_user_id:
        raise UnauthenticatedError("missing X-User-Id header")
    try:
        user_id = UserId(UUID(x_user_id))
    except ValueError:
        raise UnauthenticatedError("X-User-Id is not a valid id")
    try:
        await UserService(db).get(user_id)
    except NotFoundError:
        raise UnauthenticatedError(f"unknown user {user_id}")
    return user_id


def get_lock_registry(request: Request) -> GatheringLockRegistry:
    return request.app.state.gathering_locks


def get_group_service(db: AsyncSession = Depends(get_db)) -> GroupService:
    return GroupService(
        SqlGroupRepository(db),
        max_attempts=get_settings().gathering_lock_max_attempts,
    )


def get_gathering_service(
    db: AsyncSession = Depends(get_db),
    locks: GatheringLockRegistry = Depends(get_lock_registry),
) -> GatheringService:
    settings = get_settings()
    return GatheringService(
        SqlGatheringRepository(db),
        SqlGroupRepository(db),
        locks,
        lock_timeout_seconds=settings.gathering_lock_timeout_seconds,
        max_attempts=settings.gathering_lock_max_attempts,
    )


def get_assignment_engine(
    db: AsyncSession = Depends(get_db),
    locks: GatheringLockRegistry = Depends(get_lock_registry),
) -> GroupAssignmentEngine:
    settings = get_settings()
    return GroupAssignmentEngine(
        SqlGatheringRepository(db),
        SqlGroupRepository(db),
        locks,
        lock_timeout_seconds=settings.gathering_lock_timeout_seconds,
        max_attempts=settings.gathering_lock_max_attempts,
    )
