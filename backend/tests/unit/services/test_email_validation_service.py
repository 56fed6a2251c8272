"""
Unit Tests for EmailValidationService
MX lookups are patched; the deliverability provider runs against httpx.MockTransport.
"""
import sys

import httpx
import pytest

from farmportal.core.config import settings
from farmportal.core.exceptions import ValidationError
from farmportal.models import IdStatus, IdType
from farmportal.repositories import generated_id_repository, staff_repository
from farmportal.services.email_validation_service import EmailValidationService

# The package re-exports the singleton under the module name, so reach the module directly
validation_module = sys.modules[EmailValidationService.__module__]


@pytest.fixture
def mx_found(monkeypatch):
    async def fake_lookup(domain, timeout=None):
        return [f"mx1.{domain}"]
    monkeypatch.setattr(validation_module, "lookup_mx", fake_lookup)


@pytest.fixture
def mx_missing(monkeypatch):
    async def fake_lookup(domain, timeout=None):
        return []
    monkeypatch.setattr(validation_module, "lookup_mx", fake_lookup)


def provider(verdict: str = None, status_code: int = 200):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(status_code, json={"result": verdict})

    return EmailValidationService(transport=httpx.MockTransport(handler)), calls


class TestFormat:

    @pytest.mark.parametrize("email", [None, "", "no-at-sign"])
    def test_missing_email(self, email):
        with pytest.raises(ValidationError) as exc_info:
            EmailValidationService().check_format(email)
        assert exc_info.value.message == "Valid email is required"

    @pytest.mark.parametrize("email", ["a@b", "two@@cssfarms.org", "spaces in@cssfarms.org"])
    def test_malformed_email(self, email):
        with pytest.raises(ValidationError) as exc_info:
            EmailValidationService().check_format(email)
        assert exc_info.value.message == "Invalid email format"

    def test_normalizes(self):
        assert EmailValidationService().check_format("  Trainee@CSSFarms.org ") == "trainee@cssfarms.org"


class TestValidate:

    @pytest.mark.asyncio
    async def test_valid_email(self, db_session, mx_found):
        result = await EmailValidationService().validate(db_session, "new.trainee@cssfarms.org")

        assert result == {"deliverable": True, "message": "Email is valid and available for registration"}

    @pytest.mark.asyncio
    async def test_registered_trainee(self, db_session, mx_found, make_trainee):
        trainee = await make_trainee()

        with pytest.raises(ValidationError) as exc_info:
            await EmailValidationService().validate(db_session, trainee.email.upper())

        assert exc_info.value.message == "This email is already registered as a trainee"

    @pytest.mark.asyncio
    async def test_registered_staff(self, db_session, mx_found):
        await generated_id_repository.create(
            db_session, id="ST-0C0S0S1", type=IdType.STAFF, sequence=1, status=IdStatus.ACTIVATED
        )
        await staff_repository.create(
            db_session, id="ST-0C0S0S1", first_name="Ada", surname="Obi", email="ada@cssfarms.org"
        )
        await db_session.commit()

        with pytest.raises(ValidationError) as exc_info:
            await EmailValidationService().validate(db_session, "ada@cssfarms.org")

        assert exc_info.value.message == "This email is already registered as a staff member"

    @pytest.mark.asyncio
    async def test_domain_without_mx(self, db_session, mx_missing):
        with pytest.raises(ValidationError) as exc_info:
            await EmailValidationService().validate(db_session, "someone@nomail-domain.org")

        assert exc_info.value.message == "Email domain has no MX records (cannot receive email)"

    @pytest.mark.asyncio
    async def test_duplicate_checked_before_mx(self, db_session, mx_missing, make_trainee):
        trainee = await make_trainee()

        with pytest.raises(ValidationError) as exc_info:
            await EmailValidationService().validate(db_session, trainee.email)

        assert "already registered" in exc_info.value.message


class TestDeliverabilityProvider:

    @pytest.mark.asyncio
    async def test_skipped_without_api_key(self, monkeypatch):
        monkeypatch.setattr(settings, "KICKBOX_API_KEY", "")
        service, calls = provider("undeliverable")

        assert await service.check_deliverability("someone@cssfarms.org") is None
        assert calls == []

    @pytest.mark.asyncio
    async def test_undeliverable(self, monkeypatch):
        monkeypatch.setattr(settings, "KICKBOX_API_KEY", "test-key")
        service, calls = provider("undeliverable")

        with pytest.raises(ValidationError) as exc_info:
            await service.check_deliverability("someone@cssfarms.org")

        assert exc_info.value.message == "Email appears undeliverable per verification provider"
        assert calls[0].url.params["email"] == "someone@cssfarms.org"
        assert calls[0].url.params["apikey"] == "test-key"

    @pytest.mark.asyncio
    async def test_risky_is_accepted(self, monkeypatch):
        monkeypatch.setattr(settings, "KICKBOX_API_KEY", "test-key")
        service, _ = provider("risky")

        assert await service.check_deliverability("someone@cssfarms.org") == "risky"

    @pytest.mark.asyncio
    async def test_provider_error_falls_back_to_mx(self, monkeypatch):
        monkeypatch.setattr(settings, "KICKBOX_API_KEY", "test-key")
        service, _ = provider("undeliverable", status_code=500)

        assert await service.check_deliverability("someone@cssfarms.org") is None

    @pytest.mark.asyncio
    async def test_provider_unreachable(self, monkeypatch):
        monkeypatch.setattr(settings, "KICKBOX_API_KEY", "test-key")

        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        service = EmailValidationService(transport=httpx.MockTransport(handler))

        assert await service.check_deliverability("someone@cssfarms.org") is None
