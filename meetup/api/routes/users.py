"""Users Routes — minimal user directory; update/delete act on the X-User-Id user."""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from meetup.api.dependencies import get_current_user_id
from meetup.core.domain_types import UserId
from meetup.infrastructure.database import get_db
from meetup.schemas.user import UserCreate, UserResponse, UserUpdate
from meetup.services.user_service import UserService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("", response_model=list[UserResponse])
async def list_users(db: AsyncSession = Depends(get_db)):
    return await UserService(db).find()


@router.get("/{username}", response_model=UserResponse)
async def get_user(username: str, db: AsyncSession = Depends(get_db)):
    return await UserService(db).get_by_username(username)


@router.post(
    "", response_model=UserResponse, status_code=status.HTTP_201_CREATED,
)
async def create_user(body: UserCreate, db: AsyncSession = Depends(get_db)):
    return await UserService(db).create(body.username)


@router.patch("", response_model=UserResponse)
async def update_user(
    body: UserUpdate,
    user_id: UserId = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await UserService(db).update(user_id, body.username)


@router.delete("")
async def delete_user(
    user_id: UserId = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await UserService(db).delete(user_id)
    return {"message": "User deleted"}
