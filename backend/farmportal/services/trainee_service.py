"""Trainee administration and self-service lookups"""

from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from farmportal.core.exceptions import AuthenticationError, ResourceNotFoundError
from farmportal.core.logging_config import logger
from farmportal.core.security import verify_password
from farmportal.models import Trainee, is_pending_value
from farmportal.repositories import trainee_repository
from farmportal.services.allocation_policy import derive_allocation_status

ALLOCATION_FIELDS = ("tag_number", "room_number", "room_block", "bed_space")


class TraineeService:

    async def list_trainees(self, db: AsyncSession, sponsor_id: Optional[str] = None) -> List[Trainee]:
        if sponsor_id:
            return await trainee_repository.find_by(db, order_by="-created_at", sponsor_id=sponsor_id)
        return await trainee_repository.list_all(db, order_by="-created_at")

    async def get_trainee(self, db: AsyncSession, trainee_id: str) -> Trainee:
        trainee = await trainee_repository.get(db, trainee_id)
        if not trainee:
            raise ResourceNotFoundError("Trainee", trainee_id)
        return trainee

    async def get_by_email(self, db: AsyncSession, email: str) -> Trainee:
        trainee = await trainee_repository.get_by_email(db, email)
        if not trainee:
            raise ResourceNotFoundError("Trainee", email)
        return trainee

    async def authenticate(self, db: AsyncSession, email: str, password: str) -> Trainee:
        """Check a trainee's password; unknown email and wrong password fail the same way"""
        email = email.strip().lower()
        trainee = await trainee_repository.get_by_email(db, email)
        if not trainee or not trainee.is_active or not verify_password(password, trainee.password_hash):
            logger.log_auth_event("trainee_login", success=False, user_email=email, reason="Invalid credentials")
            raise AuthenticationError("Invalid email or password")
        logger.log_auth_event("trainee_login", success=True, user_email=email)
        return trainee

    async def update_trainee(self, db: AsyncSession, trainee_id: str, data: Dict[str, Any]) -> Trainee:
        """
        Partial update. Touching an allocation field re-derives the
        allocation status unless the caller sets one explicitly.
        """
        trainee = await self.get_trainee(db, trainee_id)

        if any(field in data for field in ALLOCATION_FIELDS) and "allocation_status" not in data:
            room = data.get("room_number", trainee.room_number)
            tag = data.get("tag_number", trainee.tag_number)
            data["allocation_status"] = derive_allocation_status(
                not is_pending_value(room), not is_pending_value(tag)
            )

        if data:
            await trainee_repository.update(db, trainee_id, **data)
            await db.commit()
        return await trainee_repository.get(db, trainee_id)

    async def delete_trainee(self, db: AsyncSession, trainee_id: str) -> None:
        """Delete the record; the next reconciliation frees its tag and bed"""
        if not await trainee_repository.delete(db, trainee_id):
            raise ResourceNotFoundError("Trainee", trainee_id)
        await db.commit()
        logger.info(f"[Trainees] Deleted {trainee_id}")


trainee_service = TraineeService()
