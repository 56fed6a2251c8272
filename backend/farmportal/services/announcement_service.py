"""Announcements, their replies, and the notification sent when an admin answers a trainee"""

from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from farmportal.core.exceptions import ResourceNotFoundError, ValidationError
from farmportal.core.logging_config import logger
from farmportal.models import Announcement, AnnouncementReply, NotificationType, ReplyRole
from farmportal.repositories import announcement_repository, announcement_reply_repository
from farmportal.services.messaging_service import messaging_service

ADMIN_SENDER_ID = "admin"
ADMIN_SENDER_NAME = "Admin"
REPLY_PREVIEW_LENGTH = 50


def preview(text: str, length: int = REPLY_PREVIEW_LENGTH) -> str:
    return text[:length] + ("..." if len(text) > length else "")


class AnnouncementService:

    async def list_announcements(self, db: AsyncSession, sponsor_id: Optional[str] = None) -> List[Announcement]:
        """Active announcements, newest first; a sponsor sees its own plus the global ones"""
        announcements = await announcement_repository.find_by(db, order_by="-created_at", is_active=True)
        if sponsor_id:
            announcements = [a for a in announcements if a.sponsor_id in (None, sponsor_id)]
        return announcements

    async def list_all(self, db: AsyncSession) -> List[Announcement]:
        return await announcement_repository.list_all(db, order_by="-created_at")

    async def get_announcement(self, db: AsyncSession, announcement_id: str) -> Announcement:
        announcement = await announcement_repository.get(db, announcement_id)
        if not announcement:
            raise ResourceNotFoundError("Announcement", announcement_id)
        return announcement

    async def create_announcement(self, db: AsyncSession, data: Dict[str, Any], from_name: str = ADMIN_SENDER_NAME) -> Announcement:
        data.setdefault("from_name", from_name)
        announcement = await announcement_repository.create(db, **data)
        await db.commit()
        logger.info(f"[Announcements] Created '{announcement.title}'")
        return await announcement_repository.get(db, announcement.id)

    async def update_announcement(self, db: AsyncSession, announcement_id: str, data: Dict[str, Any]) -> Announcement:
        await self.get_announcement(db, announcement_id)
        if data:
            await announcement_repository.update(db, announcement_id, **data)
            await db.commit()
        return await announcement_repository.get(db, announcement_id)

    async def delete_announcement(self, db: AsyncSession, announcement_id: str) -> None:
        await self.get_announcement(db, announcement_id)
        await announcement_reply_repository.delete_where(db, announcement_id=announcement_id)
        await announcement_repository.delete(db, announcement_id)
        await db.commit()

    # ==================== REPLIES ====================

    async def list_replies(self, db: AsyncSession, announcement_id: str) -> List[AnnouncementReply]:
        return await announcement_reply_repository.find_by(
            db, order_by="created_at", announcement_id=announcement_id
        )

    async def add_trainee_reply(
        self,
        db: AsyncSession,
        announcement_id: str,
        message: str,
        trainee_id: str,
        trainee_name: str,
    ) -> AnnouncementReply:
        await self.get_announcement(db, announcement_id)
        reply = await announcement_reply_repository.create(
            db,
            announcement_id=announcement_id,
            message=message,
            from_id=trainee_id,
            from_name=trainee_name,
            from_role=ReplyRole.TRAINEE,
        )
        await db.commit()
        return await announcement_reply_repository.get(db, reply.id)

    async def add_admin_reply(
        self,
        db: AsyncSession,
        announcement_id: str,
        message: str,
        reply_to_id: Optional[str] = None,
    ) -> AnnouncementReply:
        """Admin reply; answering a trainee reply notifies that trainee"""
        await self.get_announcement(db, announcement_id)

        original = None
        if reply_to_id:
            original = await announcement_reply_repository.get(db, reply_to_id)
            if not original or original.announcement_id != announcement_id:
                raise ValidationError("Reply to answer was not found on this announcement", field="replyToId")

        reply = await announcement_reply_repository.create(
            db,
            announcement_id=announcement_id,
            message=message,
            from_id=ADMIN_SENDER_ID,
            from_name=ADMIN_SENDER_NAME,
            from_role=ReplyRole.ADMIN,
            reply_to_id=reply_to_id,
        )

        if original is not None and original.from_role == ReplyRole.TRAINEE:
            await messaging_service.notify(
                db,
                user_id=original.from_id,
                type=NotificationType.ADMIN_REPLY,
                title="Admin Response",
                message=f'{ADMIN_SENDER_NAME} replied to your response: "{preview(message)}"',
                announcement_id=announcement_id,
                reply_id=reply.id,
                from_id=ADMIN_SENDER_ID,
                from_name=ADMIN_SENDER_NAME,
            )
            logger.info(f"[Announcements] Notified trainee {original.from_id} of admin reply")

        await db.commit()
        return await announcement_reply_repository.get(db, reply.id)


announcement_service = AnnouncementService()
