"""
Unit Tests for the registration wizard
Most tests drive the wizard with a scripted client; the last one runs it against the app.
"""
import sys

import pytest
from httpx import ASGITransport

from farmportal.client.api_client import PortalAPIError, PortalClient
from farmportal.client.registration_wizard import (
    CheckStatus,
    RegistrationWizard,
    ValidationProgress,
    WizardError,
    WizardStep,
    failed_check_for,
)
from farmportal.main import app
from farmportal.services.email_validation_service import EmailValidationService


class ScriptedClient:
    """Stands in for PortalClient; records calls and raises what it is told to"""

    def __init__(self, validate_error=None, step1_error=None, verify_error=None, complete_error=None):
        self.calls = []
        self.validate_error = validate_error
        self.step1_error = step1_error
        self.verify_error = verify_error
        self.complete_error = complete_error

    async def validate_email(self, email):
        self.calls.append(("validate_email", email))
        if self.validate_error:
            raise self.validate_error
        return {"deliverable": True, "message": "Email is valid and available for registration"}

    async def register_step1(self, email, password, confirm_password):
        self.calls.append(("register_step1", email))
        if self.step1_error:
            raise self.step1_error
        return {"message": "Verification code sent to your email address", "email": email, "devCode": "123456"}

    async def verify_code(self, email, code):
        self.calls.append(("verify_code", code))
        if self.verify_error:
            raise self.verify_error
        return {"message": "Email verified successfully"}

    async def complete_registration(self, profile):
        self.calls.append(("complete_registration", profile))
        if self.complete_error:
            raise self.complete_error
        return {"message": "Registration completed successfully",
                "trainee": {"id": "t-1", "email": profile["email"], "tagNumber": "pending"}}


class TestFailedCheckFor:

    @pytest.mark.parametrize("message,check", [
        ("This email is already registered as a trainee", "duplicate"),
        ("Email domain has no MX records (cannot receive email)", "mx"),
        ("Email appears undeliverable per verification provider", "deliverability"),
        ("Invalid email format", "format"),
        (None, "format"),
    ])
    def test_mapping(self, message, check):
        assert failed_check_for(message) == check


class TestValidationProgress:

    def test_fail_marks_earlier_passed_and_later_skipped(self):
        progress = ValidationProgress()

        progress.fail("mx")

        assert progress.checks == {
            "format": CheckStatus.PASSED,
            "duplicate": CheckStatus.PASSED,
            "mx": CheckStatus.FAILED,
            "deliverability": CheckStatus.SKIPPED,
            "sending": CheckStatus.SKIPPED,
        }
        assert progress.completed == 2
        assert progress.percent == 40


class TestAccountStep:

    @pytest.mark.asyncio
    async def test_success_moves_to_verify(self):
        changes = []
        client = ScriptedClient()
        wizard = RegistrationWizard(client, on_change=lambda w: changes.append(w.step))

        assert await wizard.submit_account(" Ada@CSSFarms.org ", "secret123", "secret123") is True

        assert wizard.step == WizardStep.VERIFY
        assert wizard.email == "ada@cssfarms.org"
        assert wizard.dev_code == "123456"
        assert wizard.progress.percent == 100
        assert changes[-1] == WizardStep.VERIFY
        assert [name for name, _ in client.calls] == ["validate_email", "register_step1"]

    @pytest.mark.asyncio
    async def test_password_mismatch_makes_no_requests(self):
        client = ScriptedClient()
        wizard = RegistrationWizard(client)

        assert await wizard.submit_account("ada@cssfarms.org", "secret123", "secret999") is False

        assert wizard.error == "Passwords do not match"
        assert wizard.step == WizardStep.ACCOUNT
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_bad_format_fails_locally(self):
        client = ScriptedClient()
        wizard = RegistrationWizard(client)

        assert await wizard.submit_account("not-an-email", "secret123", "secret123") is False

        assert wizard.error == "Invalid email format"
        assert wizard.progress.checks["format"] == CheckStatus.FAILED
        assert wizard.progress.checks["sending"] == CheckStatus.SKIPPED
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_duplicate_email(self):
        client = ScriptedClient(
            validate_error=PortalAPIError(400, "This email is already registered as a trainee")
        )
        wizard = RegistrationWizard(client)

        assert await wizard.submit_account("ada@cssfarms.org", "secret123", "secret123") is False

        assert wizard.error == "This email is already registered as a trainee"
        assert wizard.progress.checks["format"] == CheckStatus.PASSED
        assert wizard.progress.checks["duplicate"] == CheckStatus.FAILED
        assert wizard.progress.checks["mx"] == CheckStatus.SKIPPED
        assert wizard.step == WizardStep.ACCOUNT

    @pytest.mark.asyncio
    async def test_sending_failure(self):
        client = ScriptedClient(step1_error=PortalAPIError(500, "Failed to send verification email"))
        wizard = RegistrationWizard(client)

        assert await wizard.submit_account("ada@cssfarms.org", "secret123", "secret123") is False

        assert wizard.progress.checks["deliverability"] == CheckStatus.PASSED
        assert wizard.progress.checks["sending"] == CheckStatus.FAILED
        assert wizard.step == WizardStep.ACCOUNT


class TestLaterSteps:

    @pytest.fixture
    async def at_verify(self):
        client = ScriptedClient()
        wizard = RegistrationWizard(client)
        await wizard.submit_account("ada@cssfarms.org", "secret123", "secret123")
        return wizard, client

    @pytest.mark.asyncio
    async def test_wrong_step(self):
        wizard = RegistrationWizard(ScriptedClient())

        with pytest.raises(WizardError):
            await wizard.submit_code("123456")

    @pytest.mark.asyncio
    async def test_invalid_code_stays_on_verify(self, at_verify):
        wizard, client = at_verify
        client.verify_error = PortalAPIError(400, "Invalid verification code")

        assert await wizard.submit_code("000000") is False

        assert wizard.error == "Invalid verification code"
        assert wizard.step == WizardStep.VERIFY

    @pytest.mark.asyncio
    async def test_back_to_account(self, at_verify):
        wizard, _ = at_verify

        wizard.back()

        assert wizard.step == WizardStep.ACCOUNT
        assert wizard.dev_code is None

    @pytest.mark.asyncio
    async def test_profile_completes(self, at_verify):
        wizard, client = at_verify
        await wizard.submit_code(" 123456 ")

        assert await wizard.submit_profile({"firstName": "Ada", "surname": "Obi", "gender": "female"}) is True

        assert wizard.step == WizardStep.COMPLETE
        assert wizard.trainee["email"] == "ada@cssfarms.org"
        assert client.calls[-1][1]["email"] == "ada@cssfarms.org"

    @pytest.mark.asyncio
    async def test_profile_error(self, at_verify):
        wizard, client = at_verify
        await wizard.submit_code("123456")
        client.complete_error = PortalAPIError(400, "No active sponsor for registration")

        assert await wizard.submit_profile({"firstName": "Ada", "surname": "Obi", "gender": "female"}) is False

        assert wizard.error == "No active sponsor for registration"
        assert wizard.step == WizardStep.PROFILE


class TestAgainstApp:

    @pytest.mark.asyncio
    async def test_full_registration(self, client, make_sponsor, monkeypatch):
        async def fake_lookup(domain, timeout=None):
            return [f"mx1.{domain}"]
        monkeypatch.setattr(sys.modules[EmailValidationService.__module__], "lookup_mx", fake_lookup)
        await make_sponsor(is_active=True)

        async with PortalClient("http://test/api", transport=ASGITransport(app=app)) as portal:
            wizard = RegistrationWizard(portal)

            assert await wizard.submit_account("ada@cssfarms.org", "secret123", "secret123") is True
            assert await wizard.submit_code(wizard.dev_code) is True
            assert await wizard.submit_profile({"firstName": "Ada", "surname": "Obi", "gender": "female"}) is True

        assert wizard.trainee["tagNumber"] == "pending"

    @pytest.mark.asyncio
    async def test_api_error_carries_server_message(self, client):
        async with PortalClient("http://test/api", transport=ASGITransport(app=app)) as portal:
            with pytest.raises(PortalAPIError) as exc_info:
                await portal.admin_me()

        assert exc_info.value.status == 401
        assert exc_info.value.message == "Not authenticated"
