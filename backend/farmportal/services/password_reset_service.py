"""
Password reset for trainees.

Tokens are random, emailed as a link, and stored only as sha256 digests.
They expire after PASSWORD_RESET_TTL_MINUTES and are deleted when used.
"""

from datetime import datetime, timedelta
from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from farmportal.core.config import settings
from farmportal.core.exceptions import EmailDeliveryError, ResourceNotFoundError, ValidationError
from farmportal.core.logging_config import logger
from farmportal.core.security import generate_reset_token, get_password_hash, hash_token
from farmportal.models import PasswordResetToken
from farmportal.repositories import password_reset_repository, trainee_repository
from farmportal.services.email_service import email_service


class PasswordResetService:

    async def request_reset(self, db: AsyncSession, email: str) -> Dict[str, Any]:
        email = email.strip().lower()
        trainee = await trainee_repository.get_by_email(db, email)
        if not trainee:
            raise ResourceNotFoundError("Account", message="No account found with this email address")

        token = generate_reset_token()
        await password_reset_repository.create(
            db,
            token_hash=hash_token(token),
            email=email,
            trainee_id=trainee.id,
            expires_at=datetime.utcnow() + timedelta(minutes=settings.PASSWORD_RESET_TTL_MINUTES),
        )
        await self._cleanup_expired(db)
        await db.commit()

        reset_url = f"{settings.FRONTEND_URL.rstrip('/')}/reset-password?token={token}"
        if not await email_service.send_password_reset_email(email, reset_url):
            raise EmailDeliveryError("Failed to send password reset email. Please try again.")

        logger.log_auth_event("password_reset_requested", success=True, user_email=email)
        return {"message": "Password reset link sent to your email address", "email": email}

    async def _lookup(self, db: AsyncSession, token: str) -> PasswordResetToken:
        record = await password_reset_repository.get(db, hash_token(token or ""))
        if not record:
            raise ValidationError("Invalid or expired reset token", field="token")
        if datetime.utcnow() > record.expires_at:
            await password_reset_repository.delete(db, record.token_hash)
            await db.commit()
            raise ValidationError("Reset token has expired", field="token")
        return record

    async def verify_token(self, db: AsyncSession, token: str) -> Dict[str, Any]:
        record = await self._lookup(db, token)
        return {"message": "Token is valid", "email": record.email}

    async def reset_password(self, db: AsyncSession, token: str, new_password: str) -> Dict[str, Any]:
        if len(new_password or "") < settings.PASSWORD_MIN_LENGTH:
            raise ValidationError(
                f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters long",
                field="newPassword",
            )
        record = await self._lookup(db, token)

        if not await trainee_repository.update(db, record.trainee_id, password_hash=get_password_hash(new_password)):
            raise ResourceNotFoundError("Trainee", record.trainee_id)
        await password_reset_repository.delete(db, record.token_hash)
        await db.commit()

        logger.log_auth_event("password_reset", success=True, user_email=record.email)
        return {"message": "Password reset successfully"}

    async def _cleanup_expired(self, db: AsyncSession) -> int:
        expired = [
            r.token_hash for r in await password_reset_repository.list_all(db)
            if datetime.utcnow() > r.expires_at
        ]
        if not expired:
            return 0
        return await password_reset_repository.delete_where(db, token_hash=expired)


password_reset_service = PasswordResetService()
