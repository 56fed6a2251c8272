"""
Unit Tests for RegistrationService and PasswordResetService
Email goes through the development fallback (no SMTP configured in tests).
"""
import sys
from datetime import datetime, timedelta

import pytest

from farmportal.core.config import settings
from farmportal.core.exceptions import ConflictError, ResourceNotFoundError, ValidationError
from farmportal.core.security import hash_token, verify_password
from farmportal.models import AllocationStatus, Gender, PENDING
from farmportal.repositories import password_reset_repository, trainee_repository
from farmportal.services.password_reset_service import PasswordResetService, password_reset_service
from farmportal.services.registration_service import registration_service
from farmportal.services.verification_service import verification_service

reset_module = sys.modules[PasswordResetService.__module__]

PROFILE = {
    "first_name": "Ada",
    "surname": "Obi",
    "gender": Gender.FEMALE,
    "state": "Kaduna",
}


async def register(db, email: str, password: str = "secret123"):
    started = await registration_service.start(db, email, password, password)
    await registration_service.verify(db, email, started["devCode"])
    return await registration_service.complete(db, {**PROFILE, "email": email})


class TestRegistrationService:

    @pytest.mark.asyncio
    async def test_start_returns_dev_code_without_smtp(self, db_session):
        result = await registration_service.start(db_session, "Ada@CSSFarms.org", "secret123", "secret123")

        assert result["email"] == "ada@cssfarms.org"
        assert result["message"] == "Verification code sent to your email address"
        assert len(result["devCode"]) == 6

    @pytest.mark.asyncio
    async def test_smtp_user_alone_still_returns_dev_code(self, db_session, monkeypatch):
        monkeypatch.setattr(settings, "SMTP_USER", "mailer@cssfarms.org")

        result = await registration_service.start(db_session, "ada@cssfarms.org", "secret123", "secret123")

        assert len(result["devCode"]) == 6

    @pytest.mark.asyncio
    async def test_password_mismatch(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            await registration_service.start(db_session, "ada@cssfarms.org", "secret123", "secret124")

        assert exc_info.value.message == "Passwords do not match"

    @pytest.mark.asyncio
    async def test_short_password(self, db_session):
        with pytest.raises(ValidationError):
            await registration_service.start(db_session, "ada@cssfarms.org", "abc", "abc")

    @pytest.mark.asyncio
    async def test_complete_creates_pending_trainee(self, db_session, make_sponsor):
        sponsor = await make_sponsor(is_active=True)

        trainee = await register(db_session, "ada@cssfarms.org")

        assert trainee.sponsor_id == sponsor.id
        assert trainee.email_verified is True
        assert trainee.tag_number == PENDING
        assert trainee.room_number == PENDING
        assert trainee.allocation_status == AllocationStatus.PENDING
        assert verify_password("secret123", trainee.password_hash)
        # The consumed code is gone once it has been used to register
        assert await verification_service.is_email_verified(db_session, "ada@cssfarms.org") is False

    @pytest.mark.asyncio
    async def test_complete_requires_verification(self, db_session, make_sponsor):
        await make_sponsor(is_active=True)
        await registration_service.start(db_session, "ada@cssfarms.org", "secret123", "secret123")

        with pytest.raises(ValidationError) as exc_info:
            await registration_service.complete(db_session, {**PROFILE, "email": "ada@cssfarms.org"})

        assert exc_info.value.message == "Email has not been verified"

    @pytest.mark.asyncio
    async def test_complete_requires_active_sponsor(self, db_session):
        started = await registration_service.start(db_session, "ada@cssfarms.org", "secret123", "secret123")
        await registration_service.verify(db_session, "ada@cssfarms.org", started["devCode"])

        with pytest.raises(ValidationError) as exc_info:
            await registration_service.complete(db_session, {**PROFILE, "email": "ada@cssfarms.org"})

        assert exc_info.value.message == "No active sponsor for registration"

    @pytest.mark.asyncio
    async def test_registered_email_cannot_start_again(self, db_session, make_sponsor):
        await make_sponsor(is_active=True)
        await register(db_session, "ada@cssfarms.org")

        with pytest.raises(ValidationError):
            await registration_service.start(db_session, "ada@cssfarms.org", "secret123", "secret123")

    @pytest.mark.asyncio
    async def test_complete_twice(self, db_session, make_sponsor, make_trainee):
        await make_sponsor(is_active=True)
        started = await registration_service.start(db_session, "ada@cssfarms.org", "secret123", "secret123")
        await registration_service.verify(db_session, "ada@cssfarms.org", started["devCode"])
        await make_trainee(email="ada@cssfarms.org")

        with pytest.raises(ConflictError):
            await registration_service.complete(db_session, {**PROFILE, "email": "ada@cssfarms.org"})


class TestPasswordResetService:

    @pytest.fixture
    def fixed_token(self, monkeypatch):
        monkeypatch.setattr(reset_module, "generate_reset_token", lambda: "reset-token-123")
        return "reset-token-123"

    @pytest.mark.asyncio
    async def test_reset_flow(self, db_session, make_trainee, fixed_token):
        trainee = await make_trainee(email="ada@cssfarms.org")

        requested = await password_reset_service.request_reset(db_session, "ADA@cssfarms.org")
        assert requested["email"] == "ada@cssfarms.org"
        assert await password_reset_repository.get(db_session, hash_token(fixed_token)) is not None

        verified = await password_reset_service.verify_token(db_session, fixed_token)
        assert verified["email"] == "ada@cssfarms.org"

        await password_reset_service.reset_password(db_session, fixed_token, "new-secret")

        trainee = await trainee_repository.get(db_session, trainee.id)
        assert verify_password("new-secret", trainee.password_hash)
        # Tokens are single use
        with pytest.raises(ValidationError):
            await password_reset_service.verify_token(db_session, fixed_token)

    @pytest.mark.asyncio
    async def test_unknown_email(self, db_session):
        with pytest.raises(ResourceNotFoundError) as exc_info:
            await password_reset_service.request_reset(db_session, "nobody@cssfarms.org")

        assert exc_info.value.message == "No account found with this email address"

    @pytest.mark.asyncio
    async def test_expired_token(self, db_session, make_trainee, fixed_token):
        await make_trainee(email="ada@cssfarms.org")
        await password_reset_service.request_reset(db_session, "ada@cssfarms.org")
        await password_reset_repository.update(
            db_session, hash_token(fixed_token), expires_at=datetime.utcnow() - timedelta(minutes=1)
        )
        await db_session.commit()

        with pytest.raises(ValidationError) as exc_info:
            await password_reset_service.verify_token(db_session, fixed_token)

        assert exc_info.value.message == "Reset token has expired"

    @pytest.mark.asyncio
    async def test_short_new_password(self, db_session, make_trainee, fixed_token):
        await make_trainee(email="ada@cssfarms.org")
        await password_reset_service.request_reset(db_session, "ada@cssfarms.org")

        with pytest.raises(ValidationError):
            await password_reset_service.reset_password(db_session, fixed_token, "abc")
