"""
Unit Tests for VerificationService
"""
from datetime import datetime, timedelta

import pytest

from farmportal.core.exceptions import ValidationError
from farmportal.repositories import verification_code_repository
from farmportal.services.verification_service import generate_code, verification_service

EMAIL = "trainee@cssfarms.org"


class TestGenerateCode:

    def test_six_digits(self):
        for _ in range(50):
            code = generate_code()
            assert len(code) == 6
            assert code.isdigit()
            assert 100000 <= int(code) <= 999999


class TestVerificationCodes:

    @pytest.mark.asyncio
    async def test_issue_and_verify(self, db_session):
        code = await verification_service.issue_code(db_session, EMAIL)

        assert await verification_service.verify_code(db_session, EMAIL, code) is True
        assert await verification_service.is_email_verified(db_session, EMAIL) is True

    @pytest.mark.asyncio
    async def test_identifier_is_case_insensitive(self, db_session):
        code = await verification_service.issue_code(db_session, "Trainee@CSSFarms.org")

        assert await verification_service.verify_code(db_session, EMAIL, code) is True

    @pytest.mark.asyncio
    async def test_new_code_replaces_old_one(self, db_session):
        await verification_service.issue_code(db_session, EMAIL)
        await verification_service.issue_code(db_session, EMAIL)

        assert await verification_code_repository.count(db_session, identifier=EMAIL) == 1

    @pytest.mark.asyncio
    async def test_missing_code(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            await verification_service.verify_code(db_session, EMAIL, "123456")

        assert exc_info.value.message == "No verification code found for this email"

    @pytest.mark.asyncio
    async def test_wrong_code(self, db_session):
        code = await verification_service.issue_code(db_session, EMAIL)
        wrong = "100000" if code != "100000" else "100001"

        with pytest.raises(ValidationError) as exc_info:
            await verification_service.verify_code(db_session, EMAIL, wrong)

        assert exc_info.value.message == "Invalid verification code"
        # A wrong guess does not burn the code
        assert await verification_service.verify_code(db_session, EMAIL, code) is True

    @pytest.mark.asyncio
    async def test_expired_code_is_removed(self, db_session):
        code = await verification_service.issue_code(db_session, EMAIL)
        record = await verification_code_repository.first_by(db_session, identifier=EMAIL)
        await verification_code_repository.update(
            db_session, record.id, expires_at=datetime.utcnow() - timedelta(minutes=1)
        )
        await db_session.commit()

        with pytest.raises(ValidationError) as exc_info:
            await verification_service.verify_code(db_session, EMAIL, code)

        assert exc_info.value.message == "Verification code has expired"
        assert await verification_code_repository.count(db_session, identifier=EMAIL) == 0

    @pytest.mark.asyncio
    async def test_code_is_single_use(self, db_session):
        code = await verification_service.issue_code(db_session, EMAIL)
        await verification_service.verify_code(db_session, EMAIL, code)

        with pytest.raises(ValidationError) as exc_info:
            await verification_service.verify_code(db_session, EMAIL, code)

        assert exc_info.value.message == "No verification code found for this email"

    @pytest.mark.asyncio
    async def test_verification_window(self, db_session):
        code = await verification_service.issue_code(db_session, EMAIL)
        await verification_service.verify_code(db_session, EMAIL, code)
        record = await verification_code_repository.first_by(db_session, identifier=EMAIL)
        await verification_code_repository.update(
            db_session, record.id, used_at=datetime.utcnow() - timedelta(hours=2)
        )
        await db_session.commit()

        assert await verification_service.is_email_verified(db_session, EMAIL) is False

    @pytest.mark.asyncio
    async def test_password_hash_travels_with_code(self, db_session):
        code = await verification_service.issue_code(db_session, EMAIL, password_hash="hashed")
        await verification_service.verify_code(db_session, EMAIL, code)

        verified = await verification_service.get_verified(db_session, EMAIL)

        assert verified.password_hash == "hashed"

    @pytest.mark.asyncio
    async def test_cleanup_expired(self, db_session):
        await verification_service.issue_code(db_session, EMAIL)
        await verification_service.issue_code(db_session, "other@cssfarms.org")
        record = await verification_code_repository.first_by(db_session, identifier=EMAIL)
        await verification_code_repository.update(
            db_session, record.id, expires_at=datetime.utcnow() - timedelta(minutes=1)
        )
        await db_session.commit()

        assert await verification_service.cleanup_expired(db_session) == 1
        assert await verification_code_repository.count(db_session) == 1
