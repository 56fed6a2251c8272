"""
Verification Service - six-digit email codes stored in the database

One live code per identifier: issuing a new code deletes the old one.
Codes expire after VERIFICATION_CODE_TTL_MINUTES and are single use. A used
code is kept (is_used=True, used_at) so registration completion can check
that the email was verified recently.
"""

import secrets
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from farmportal.core.config import settings
from farmportal.core.exceptions import ValidationError
from farmportal.core.logging_config import logger
from farmportal.models import VerificationCode
from farmportal.repositories import verification_code_repository


def generate_code() -> str:
    """Uniform over 100000..999999"""
    return str(secrets.randbelow(900000) + 100000)


class VerificationService:

    async def issue_code(self, db: AsyncSession, identifier: str, password_hash: Optional[str] = None) -> str:
        identifier = identifier.strip().lower()
        code = generate_code()

        await verification_code_repository.delete_where(db, identifier=identifier)
        await verification_code_repository.create(
            db,
            identifier=identifier,
            code=code,
            expires_at=datetime.utcnow() + timedelta(minutes=settings.VERIFICATION_CODE_TTL_MINUTES),
            is_used=False,
            password_hash=password_hash,
        )
        await db.commit()
        return code

    async def verify_code(self, db: AsyncSession, identifier: str, code: str) -> bool:
        """Consume ``code``; raises ValidationError with the user-facing reason"""
        identifier = identifier.strip().lower()
        record = await verification_code_repository.first_by(
            db, order_by="-created_at", identifier=identifier, is_used=False
        )

        if not record:
            raise ValidationError("No verification code found for this email", field="code")

        if record.is_expired:
            await verification_code_repository.delete(db, record.id)
            await db.commit()
            raise ValidationError("Verification code has expired", field="code")

        if not secrets.compare_digest(record.code, str(code).strip()):
            raise ValidationError("Invalid verification code", field="code")

        # Conditional so two concurrent verifications cannot both consume the code
        won = await verification_code_repository.claim(
            db, record.id,
            expected={"is_used": False},
            is_used=True,
            used_at=datetime.utcnow(),
        )
        await db.commit()
        if not won:
            raise ValidationError("No verification code found for this email", field="code")

        logger.info(f"[Verification] {identifier} verified")
        return True

    async def get_verified(self, db: AsyncSession, identifier: str) -> Optional[VerificationCode]:
        """The code consumed for ``identifier`` within EMAIL_VERIFIED_WINDOW_MINUTES, if any"""
        record = await verification_code_repository.first_by(
            db, order_by="-used_at", identifier=identifier.strip().lower(), is_used=True
        )
        if not record or not record.used_at:
            return None
        window = timedelta(minutes=settings.EMAIL_VERIFIED_WINDOW_MINUTES)
        if datetime.utcnow() - record.used_at > window:
            return None
        return record

    async def is_email_verified(self, db: AsyncSession, identifier: str) -> bool:
        return await self.get_verified(db, identifier) is not None

    async def consume_verification(self, db: AsyncSession, identifier: str) -> int:
        """Drop every code for ``identifier`` once it has been used to register"""
        return await verification_code_repository.delete_where(db, identifier=identifier.strip().lower())

    async def cleanup_expired(self, db: AsyncSession) -> int:
        codes = await verification_code_repository.find_by(db, is_used=False)
        expired = [c.id for c in codes if c.is_expired]
        if not expired:
            return 0
        removed = await verification_code_repository.delete_where(db, id=expired)
        await db.commit()
        logger.info(f"[Verification] Removed {removed} expired codes")
        return removed


verification_service = VerificationService()
