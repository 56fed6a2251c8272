from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from farmportal.api.dependencies import get_current_admin
from farmportal.core.database import get_db
from farmportal.schemas.common import MessageResponse
from farmportal.schemas.catalog import (
    AnnouncementCreate,
    AnnouncementUpdate,
    AnnouncementResponse,
    TraineeReplyCreate,
    AdminReplyCreate,
    AnnouncementReplyResponse,
)
from farmportal.services.announcement_service import announcement_service
from farmportal.services.trainee_service import trainee_service

router = APIRouter()


@router.get("", response_model=List[AnnouncementResponse])
async def list_announcements(
    sponsor_id: Optional[str] = Query(None, alias="sponsorId"),
    db: AsyncSession = Depends(get_db)
):
    """Active announcements visible to a sponsor's trainees"""
    return await announcement_service.list_announcements(db, sponsor_id)


@router.get("/all", response_model=List[AnnouncementResponse])
async def list_all_announcements(
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await announcement_service.list_all(db)


@router.post("", response_model=AnnouncementResponse, status_code=201)
async def create_announcement(
    body: AnnouncementCreate,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await announcement_service.create_announcement(db, body.model_dump())


@router.patch("/{announcement_id}", response_model=AnnouncementResponse)
async def update_announcement(
    announcement_id: str,
    body: AnnouncementUpdate,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await announcement_service.update_announcement(
        db, announcement_id, body.model_dump(exclude_unset=True)
    )


@router.delete("/{announcement_id}", response_model=MessageResponse)
async def delete_announcement(
    announcement_id: str,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    await announcement_service.delete_announcement(db, announcement_id)
    return {"message": "Announcement deleted successfully"}


# ============== Replies ==============

@router.get("/{announcement_id}/replies", response_model=List[AnnouncementReplyResponse])
async def list_replies(announcement_id: str, db: AsyncSession = Depends(get_db)):
    return await announcement_service.list_replies(db, announcement_id)


@router.post("/{announcement_id}/replies", response_model=AnnouncementReplyResponse, status_code=201)
async def add_trainee_reply(
    announcement_id: str,
    body: TraineeReplyCreate,
    db: AsyncSession = Depends(get_db)
):
    trainee = await trainee_service.get_trainee(db, body.trainee_id)
    return await announcement_service.add_trainee_reply(
        db, announcement_id, body.message, trainee.id, trainee.full_name
    )


@router.post("/{announcement_id}/replies/admin", response_model=AnnouncementReplyResponse, status_code=201)
async def add_admin_reply(
    announcement_id: str,
    body: AdminReplyCreate,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """Admin reply; answering a trainee's reply notifies that trainee"""
    return await announcement_service.add_admin_reply(db, announcement_id, body.message, body.reply_to_id)
