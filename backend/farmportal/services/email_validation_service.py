"""
Email validation for registration: format, duplicates, MX records and an
optional Kickbox deliverability check.

Each failed check raises ValidationError with the message shown to the user.
Only the MX lookup and the provider call carry timeouts
(EMAIL_VALIDATION_TIMEOUT); provider failures are ignored in favour of the
MX result.
"""

from typing import Any, Dict, List, Optional

import dns.asyncresolver
import dns.exception
import httpx
from email_validator import validate_email, EmailNotValidError
from sqlalchemy.ext.asyncio import AsyncSession

from farmportal.core.config import settings
from farmportal.core.exceptions import ValidationError
from farmportal.core.logging_config import logger
from farmportal.repositories import (
    trainee_repository,
    staff_repository,
    resource_person_repository,
)


DUPLICATE_MESSAGES = (
    (trainee_repository, "This email is already registered as a trainee"),
    (staff_repository, "This email is already registered as a staff member"),
    (resource_person_repository, "This email is already registered as a resource person"),
)


async def lookup_mx(domain: str, timeout: Optional[float] = None) -> List[str]:
    """MX exchanges for ``domain``, best priority first; [] when none resolve"""
    try:
        answer = await dns.asyncresolver.resolve(
            domain, "MX", lifetime=timeout or settings.EMAIL_VALIDATION_TIMEOUT
        )
    except dns.exception.DNSException as e:
        logger.debug(f"[EmailValidation] MX lookup for {domain} failed: {type(e).__name__}")
        return []
    records = sorted(answer, key=lambda r: r.preference)
    return [str(r.exchange).rstrip(".") for r in records]


class EmailValidationService:

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        # Injectable so tests can mock the provider
        self._transport = transport

    def check_format(self, email: Optional[str]) -> str:
        """Normalized address, or ValidationError"""
        if not email or not isinstance(email, str) or "@" not in email:
            raise ValidationError("Valid email is required", field="email")
        try:
            result = validate_email(email.strip(), check_deliverability=False)
        except EmailNotValidError:
            raise ValidationError("Invalid email format", field="email")
        return result.normalized.lower()

    async def check_duplicates(self, db: AsyncSession, email: str) -> None:
        for repository, message in DUPLICATE_MESSAGES:
            if await repository.get_by_email(db, email):
                raise ValidationError(message, field="email")

    async def check_mx(self, domain: str) -> List[str]:
        records = await lookup_mx(domain)
        if not records:
            raise ValidationError("Email domain has no MX records (cannot receive email)", field="email")
        return records

    async def check_deliverability(self, email: str) -> Optional[str]:
        """Provider verdict (deliverable/undeliverable/risky/unknown), None when skipped"""
        if not settings.KICKBOX_API_KEY:
            return None

        try:
            async with httpx.AsyncClient(
                timeout=settings.EMAIL_VALIDATION_TIMEOUT,
                transport=self._transport,
            ) as client:
                response = await client.get(
                    settings.KICKBOX_API_URL,
                    params={"email": email, "apikey": settings.KICKBOX_API_KEY},
                )
            if response.status_code != 200:
                logger.warning(f"[EmailValidation] Provider returned {response.status_code}, relying on MX")
                return None
            verdict = response.json().get("result")
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"[EmailValidation] Provider check failed, relying on MX: {e}")
            return None

        if verdict == "undeliverable":
            raise ValidationError("Email appears undeliverable per verification provider", field="email")
        return verdict

    async def validate(self, db: AsyncSession, email: Optional[str]) -> Dict[str, Any]:
        """Run every check in order; first failure wins"""
        normalized = self.check_format(email)
        await self.check_duplicates(db, normalized)
        await self.check_mx(normalized.split("@", 1)[1])
        verdict = await self.check_deliverability(normalized)

        logger.info(f"[EmailValidation] {normalized} accepted (provider={verdict or 'skipped'})")
        return {"deliverable": True, "message": "Email is valid and available for registration"}


email_validation_service = EmailValidationService()
