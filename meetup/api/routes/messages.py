"""Messages Routes — author is always the X-User-Id user.

Invariants:
    - Non-authors get 403 on update/delete
    - Updates accept only `content` (extra fields -> 400 VALIDATION_ERROR)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from meetup.api.dependencies import get_current_user_id
from meetup.core.domain_types import MessageId, UserId
from meetup.infrastructure.database import get_db
from meetup.schemas.message import (
    MessageCreate, MessageResponse, MessageUpdate,
)
from meetup.services.message_service import MessageService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/messages", tags=["messages"])


@router.get("", response_model=list[MessageResponse])
async def list_messages(
    author: UUID | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await MessageService(db).find(UserId(author) if author else None)


@router.post(
    "", response_model=MessageResponse, status_code=status.HTTP_201_CREATED,
)
async def create_message(
    body: MessageCreate,
    user_id: UserId = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await MessageService(db).create(body.content, user_id)


@router.patch("/{message_id}", response_model=MessageResponse)
async def update_message(
    message_id: UUID,
    body: MessageUpdate,
    user_id: UserId = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await MessageService(db).update(
        MessageId(message_id), body.content, user_id,
    )


@router.delete("/{message_id}")
async def delete_message(
    message_id: UUID,
    user_id: UserId = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await MessageService(db).delete(MessageId(message_id), user_id)
    return {"message": "Message deleted"}
