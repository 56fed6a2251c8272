from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from farmportal.core.database import get_db
from farmportal.schemas.common import MessageResponse
from farmportal.schemas.catalog import (
    MessageCreate,
    MessageOut,
    NotificationOut,
    UnreadCountResponse,
)
from farmportal.services.messaging_service import messaging_service

router = APIRouter()


# ============== Messages ==============

@router.post("/messages", response_model=MessageOut, status_code=201)
async def send_message(body: MessageCreate, db: AsyncSession = Depends(get_db)):
    """Send a message; the recipient gets a notification"""
    return await messaging_service.send_message(db, body.model_dump())


@router.get("/messages", response_model=List[MessageOut])
async def list_messages(
    user_id: str = Query(..., alias="userId"),
    db: AsyncSession = Depends(get_db)
):
    return await messaging_service.messages_for(db, user_id)


@router.post("/messages/{message_id}/read", response_model=MessageResponse)
async def mark_message_read(message_id: str, db: AsyncSession = Depends(get_db)):
    await messaging_service.mark_message_read(db, message_id)
    return {"message": "Message marked as read"}


# ============== Notifications ==============

@router.get("/notifications", response_model=List[NotificationOut])
async def list_notifications(
    user_id: str = Query(..., alias="userId"),
    db: AsyncSession = Depends(get_db)
):
    return await messaging_service.notifications_for(db, user_id)


@router.get("/notifications/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    user_id: str = Query(..., alias="userId"),
    db: AsyncSession = Depends(get_db)
):
    return {"count": await messaging_service.unread_count(db, user_id)}


@router.post("/notifications/{notification_id}/read", response_model=MessageResponse)
async def mark_notification_read(notification_id: str, db: AsyncSession = Depends(get_db)):
    await messaging_service.mark_notification_read(db, notification_id)
    return {"message": "Notification marked as read"}
