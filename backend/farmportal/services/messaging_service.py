"""
Messages between trainees and resource persons, and in-app notifications.

Every message produces a notification for its recipient in the same
transaction.
"""

from typing import Any, Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from farmportal.core.exceptions import ResourceNotFoundError
from farmportal.core.logging_config import logger
from farmportal.models import Message, Notification, NotificationType
from farmportal.repositories import message_repository, notification_repository


class MessagingService:

    # ==================== MESSAGES ====================

    async def send_message(self, db: AsyncSession, data: Dict[str, Any]) -> Message:
        message = await message_repository.create(db, is_read=False, **data)
        await notification_repository.create(
            db,
            user_id=message.to_id,
            type=NotificationType.MESSAGE,
            title=f"New message from {message.from_name} ({message.from_tag_number})",
            message=f"{message.subject} - From: {message.from_email}",
            message_id=message.id,
            from_id=message.from_id,
            from_name=message.from_name,
            from_email=message.from_email,
            from_tag_number=message.from_tag_number,
            is_read=False,
        )
        await db.commit()
        logger.info(f"[Messages] {message.from_id} -> {message.to_id}: {message.subject}")
        return await message_repository.get(db, message.id)

    async def messages_for(self, db: AsyncSession, user_id: str) -> List[Message]:
        return await message_repository.find_by(db, order_by="-created_at", to_id=user_id)

    async def mark_message_read(self, db: AsyncSession, message_id: str) -> None:
        if not await message_repository.update(db, message_id, is_read=True):
            raise ResourceNotFoundError("Message", message_id)
        await db.commit()

    # ==================== NOTIFICATIONS ====================

    async def notify(self, db: AsyncSession, **values: Any) -> Notification:
        """Create a notification without committing"""
        values.setdefault("is_read", False)
        return await notification_repository.create(db, **values)

    async def notifications_for(self, db: AsyncSession, user_id: str) -> List[Notification]:
        return await notification_repository.find_by(db, order_by="-created_at", user_id=user_id)

    async def unread_count(self, db: AsyncSession, user_id: str) -> int:
        return await notification_repository.count(db, user_id=user_id, is_read=False)

    async def mark_notification_read(self, db: AsyncSession, notification_id: str) -> None:
        if not await notification_repository.update(db, notification_id, is_read=True):
            raise ResourceNotFoundError("Notification", notification_id)
        await db.commit()


messaging_service = MessagingService()
