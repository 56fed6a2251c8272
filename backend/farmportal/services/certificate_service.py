"""
Certificate Service - completion certificates for trainees, staff and resource persons

Certificates are rendered on demand as standalone HTML documents. Nothing is
stored: a certificate id is drawn when the recipient list is built and the
admin screen passes it back when downloading, so preview and download agree.
"""

import html
import re
import secrets
import string
import time
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from farmportal.core.exceptions import ResourceNotFoundError, ValidationError
from farmportal.core.logging_config import logger
from farmportal.models import is_pending_value
from farmportal.repositories import resource_person_repository, staff_repository, trainee_repository

ROLE_LABELS = {
    "staff": "Staff Member",
    "resource_person": "Resource Person",
    "trainee": "Trainee",
}

CERTIFICATE_ID_PATTERN = re.compile(r"^CERT-[0-9A-Z]+-[0-9A-Z]+$")
CERTIFICATE_VALID_DAYS = 365

_BASE36 = string.digits + string.ascii_uppercase


def _base36(number: int) -> str:
    digits = ""
    while True:
        number, remainder = divmod(number, 36)
        digits = _BASE36[remainder] + digits
        if number == 0:
            return digits


def generate_certificate_id() -> str:
    """CERT-<millisecond timestamp>-<6 random characters>, base 36"""
    random_part = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"CERT-{_base36(int(time.time() * 1000))}-{random_part}"


def certificate_filename(first_name: str, surname: str, certificate_id: str) -> str:
    # Header-safe: names may carry spaces or non-ASCII letters
    stem = re.sub(r"[^A-Za-z0-9_-]+", "_", f"certificate-{first_name}-{surname}-{certificate_id}")
    return f"{stem}.html"


def render_certificate(recipient: Dict[str, Any], issued: Optional[date] = None) -> str:
    issued = issued or date.today()
    valid_until = issued + timedelta(days=CERTIFICATE_VALID_DAYS)
    full_name = " ".join(
        part for part in (recipient["firstName"], recipient.get("middleName"), recipient["surname"]) if part
    )
    tag_line = ""
    if recipient.get("tagNumber"):
        tag_line = f'<div class="certificate-id">Tag Number: {html.escape(recipient["tagNumber"])}</div>'

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Certificate - {html.escape(recipient["firstName"])} {html.escape(recipient["surname"])}</title>
  <style>
    body {{ font-family: Arial, sans-serif; margin: 0; padding: 40px; }}
    .certificate {{ border: 3px solid #1e40af; padding: 40px; text-align: center; min-height: 600px;
                    background: linear-gradient(135deg, #f0f9ff 0%, #e0f2fe 100%); }}
    .header {{ border-bottom: 2px solid #1e40af; padding-bottom: 20px; margin-bottom: 40px; }}
    .title {{ font-size: 36px; font-weight: bold; color: #1e40af; margin: 0; }}
    .subtitle {{ font-size: 18px; color: #374151; margin: 10px 0 0 0; }}
    .content {{ font-size: 20px; color: #374151; line-height: 1.6; margin: 40px 0; }}
    .name {{ font-size: 28px; font-weight: bold; color: #1e40af; margin: 20px 0; }}
    .role {{ font-size: 24px; color: #059669; font-weight: bold; margin: 20px 0; }}
    .certificate-id {{ font-family: monospace; font-size: 16px; color: #6b7280; margin: 20px 0; }}
    .footer {{ border-top: 2px solid #1e40af; padding-top: 20px; margin-top: 40px; font-size: 14px; color: #6b7280; }}
  </style>
</head>
<body>
  <div class="certificate">
    <div class="header">
      <h1 class="title">Certificate of Completion</h1>
      <p class="subtitle">CSS Farms Training Portal</p>
    </div>
    <div class="content">
      <p>This is to certify that</p>
      <div class="name">{html.escape(full_name)}</div>
      <p>has successfully completed the training program as a</p>
      <div class="role">{ROLE_LABELS.get(recipient["role"], html.escape(recipient["role"]))}</div>
      <div class="certificate-id">Certificate ID: {html.escape(recipient["certificateId"])}</div>
      {tag_line}
    </div>
    <div class="footer">
      <div class="date">Date Issued: {issued.strftime("%d %B %Y")}</div>
      <div class="date">Valid Until: {valid_until.strftime("%d %B %Y")}</div>
    </div>
  </div>
</body>
</html>
"""


def _recipient(person: Any, role: str, certificate_id: Optional[str] = None) -> Dict[str, Any]:
    tag_number = getattr(person, "tag_number", None)
    return {
        "id": person.id,
        "role": role,
        "firstName": person.first_name,
        "middleName": person.middle_name,
        "surname": person.surname,
        "tagNumber": None if is_pending_value(tag_number) else tag_number,
        "certificateId": certificate_id or generate_certificate_id(),
    }


class CertificateService:

    def _repository(self, role: str):
        repositories = {
            "staff": staff_repository,
            "resource_person": resource_person_repository,
            "trainee": trainee_repository,
        }
        if role not in repositories:
            raise ValidationError(f"Unknown certificate role: {role}", field="role")
        return repositories[role]

    async def list_recipients(self, db: AsyncSession) -> List[Dict[str, Any]]:
        """Everyone who can receive a certificate: staff, then resource persons, then trainees"""
        recipients: List[Dict[str, Any]] = []
        for role in ("staff", "resource_person", "trainee"):
            people = await self._repository(role).list_all(db, order_by="created_at")
            recipients.extend(_recipient(person, role) for person in people)
        logger.info(f"[Certificates] {len(recipients)} recipients listed")
        return recipients

    async def certificate_for(
        self,
        db: AsyncSession,
        role: str,
        person_id: str,
        certificate_id: Optional[str] = None,
    ) -> Tuple[str, str]:
        """(filename, html) for one recipient"""
        if certificate_id is not None and not CERTIFICATE_ID_PATTERN.match(certificate_id):
            raise ValidationError("Invalid certificate ID", field="certificateId")

        person = await self._repository(role).get(db, person_id)
        if not person:
            raise ResourceNotFoundError(ROLE_LABELS[role], person_id)

        recipient = _recipient(person, role, certificate_id)
        filename = certificate_filename(recipient["firstName"], recipient["surname"], recipient["certificateId"])
        logger.info(f"[Certificates] {recipient['certificateId']} rendered for {role} {person_id}")
        return filename, render_certificate(recipient)


certificate_service = CertificateService()
