"""
Trainee registration: account -> email code -> profile.

step1     validates the password pair, stores a fresh code (with the password
          hash) and emails it
verify    consumes the code
complete  requires a recently verified email and an active sponsor, then
          creates the trainee with nothing allocated yet
"""

from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from farmportal.core.config import settings
from farmportal.core.exceptions import ConflictError, EmailDeliveryError, ValidationError
from farmportal.core.logging_config import logger
from farmportal.core.security import get_password_hash
from farmportal.models import AllocationStatus, PENDING, Trainee
from farmportal.repositories import trainee_repository
from farmportal.services.email_service import email_service
from farmportal.services.sponsor_service import sponsor_service
from farmportal.services.verification_service import verification_service


class RegistrationService:

    async def start(self, db: AsyncSession, email: str, password: str, confirm_password: str) -> Dict[str, Any]:
        email = email.strip().lower()

        if password != confirm_password:
            raise ValidationError("Passwords do not match", field="confirmPassword")
        if len(password) < settings.PASSWORD_MIN_LENGTH:
            raise ValidationError(
                f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters long",
                field="password",
            )
        if await trainee_repository.get_by_email(db, email):
            raise ValidationError("Email already registered", field="email")

        code = await verification_service.issue_code(db, email, password_hash=get_password_hash(password))

        if not await email_service.send_verification_email(email, code):
            raise EmailDeliveryError()

        response: Dict[str, Any] = {
            "message": "Verification code sent to your email address",
            "email": email,
        }
        # Only expose the code when nothing could have delivered it
        if not settings.is_production and not settings.smtp_configured:
            response["devCode"] = code
        return response

    async def verify(self, db: AsyncSession, email: str, code: str) -> Dict[str, Any]:
        await verification_service.verify_code(db, email, code)
        return {"message": "Email verified successfully"}

    async def complete(self, db: AsyncSession, profile: Dict[str, Any]) -> Trainee:
        email = profile["email"].strip().lower()

        verified = await verification_service.get_verified(db, email)
        if not verified:
            raise ValidationError("Email has not been verified", field="email")

        sponsor = await sponsor_service.get_active_sponsor(db)
        if not sponsor:
            raise ValidationError("No active sponsor for registration")

        if await trainee_repository.get_by_email(db, email):
            raise ConflictError("Email already registered")

        values = dict(profile)
        values.update(
            email=email,
            sponsor_id=sponsor.id,
            batch_id=values.get("batch_id") or sponsor.batch_id,
            password_hash=verified.password_hash,
            email_verified=True,
            tag_number=PENDING,
            room_number=PENDING,
            room_block=PENDING,
            bed_space=PENDING,
            allocation_status=AllocationStatus.PENDING,
        )
        trainee = await trainee_repository.create(db, **values)
        await verification_service.consume_verification(db, email)
        await db.commit()

        logger.log_auth_event("register", success=True, user_email=email, sponsor_id=sponsor.id)
        return await trainee_repository.get(db, trainee.id)


registration_service = RegistrationService()
