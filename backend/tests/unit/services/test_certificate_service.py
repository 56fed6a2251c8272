"""
Unit Tests for CertificateService
Tests for: certificate ids, file names, HTML rendering, recipients
"""
from datetime import date

import pytest

from farmportal.core.exceptions import ResourceNotFoundError, ValidationError
from farmportal.repositories import staff_repository
from farmportal.services.certificate_service import (
    CERTIFICATE_ID_PATTERN,
    certificate_filename,
    certificate_service,
    generate_certificate_id,
    render_certificate,
)

RECIPIENT = {
    "id": "t-1",
    "role": "trainee",
    "firstName": "Ada",
    "middleName": None,
    "surname": "Obi",
    "tagNumber": "T-001",
    "certificateId": "CERT-LQ2ZK3-ABC123",
}


class TestRendering:

    def test_certificate_ids(self):
        first = generate_certificate_id()

        assert CERTIFICATE_ID_PATTERN.match(first)
        assert first != generate_certificate_id()

    def test_filename_is_header_safe(self):
        assert certificate_filename("Ngozi Ada", "Obi", "CERT-1-A") == "certificate-Ngozi_Ada-Obi-CERT-1-A.html"

    def test_render(self):
        page = render_certificate(RECIPIENT, issued=date(2024, 1, 1))

        assert "Certificate of Completion" in page
        assert '<div class="name">Ada Obi</div>' in page
        assert '<div class="role">Trainee</div>' in page
        assert "Certificate ID: CERT-LQ2ZK3-ABC123" in page
        assert "Tag Number: T-001" in page
        assert "Date Issued: 01 January 2024" in page
        assert "Valid Until: 31 December 2024" in page

    def test_render_escapes_names_and_skips_missing_tag(self):
        page = render_certificate({**RECIPIENT, "firstName": "<script>", "tagNumber": None})

        assert "<script>" not in page
        assert "&lt;script&gt;" in page
        assert "Tag Number" not in page


class TestCertificateService:

    @pytest.mark.asyncio
    async def test_recipients_list_staff_before_trainees(self, db_session, make_trainee):
        trainee = await make_trainee(tag_number="T-001")
        await make_trainee()
        await staff_repository.create(
            db_session, id="ST-0C0S0S1", first_name="Musa", surname="Bello", email="musa@cssfarms.org"
        )
        await db_session.commit()

        recipients = await certificate_service.list_recipients(db_session)

        assert [r["role"] for r in recipients] == ["staff", "trainee", "trainee"]
        assert recipients[0]["id"] == "ST-0C0S0S1"
        assert recipients[1]["id"] == trainee.id
        assert recipients[1]["tagNumber"] == "T-001"
        assert recipients[2]["tagNumber"] is None
        assert all(CERTIFICATE_ID_PATTERN.match(r["certificateId"]) for r in recipients)

    @pytest.mark.asyncio
    async def test_certificate_for_keeps_the_listed_id(self, db_session, make_trainee):
        trainee = await make_trainee(first_name="Ada", surname="Obi")

        filename, page = await certificate_service.certificate_for(
            db_session, "trainee", trainee.id, "CERT-LQ2ZK3-ABC123"
        )

        assert filename == "certificate-Ada-Obi-CERT-LQ2ZK3-ABC123.html"
        assert "Certificate ID: CERT-LQ2ZK3-ABC123" in page

    @pytest.mark.asyncio
    async def test_certificate_for_rejects_bad_input(self, db_session, make_trainee):
        trainee = await make_trainee()

        with pytest.raises(ValidationError):
            await certificate_service.certificate_for(db_session, "visitor", trainee.id)
        with pytest.raises(ValidationError):
            await certificate_service.certificate_for(db_session, "trainee", trainee.id, "not-an-id")
        with pytest.raises(ResourceNotFoundError):
            await certificate_service.certificate_for(db_session, "staff", "ST-0C0S0S9")
