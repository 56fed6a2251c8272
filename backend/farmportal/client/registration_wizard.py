"""
Trainee self-registration wizard.

    ACCOUNT  -> email + password; email checks, then the code is sent
    VERIFY   -> 6-digit code from the email
    PROFILE  -> personal details; creates the trainee under the active sponsor
    COMPLETE

Each email check is tracked separately so a UI can show which one failed.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional

from email_validator import EmailNotValidError, validate_email

from farmportal.client.api_client import PortalAPIError, PortalClient


class WizardStep(str, Enum):
    ACCOUNT = "account"
    VERIFY = "verify"
    PROFILE = "profile"
    COMPLETE = "complete"


class CheckStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


# In the order the server runs them; "sending" is the verification email itself
VALIDATION_CHECKS = ("format", "duplicate", "mx", "deliverability", "sending")

CHECK_LABELS = {
    "format": "Email format",
    "duplicate": "Not already registered",
    "mx": "Domain accepts mail",
    "deliverability": "Mailbox deliverable",
    "sending": "Sending verification code",
}


class WizardError(Exception):
    """Action not allowed in the current step"""


def failed_check_for(message: str) -> str:
    """Map a validation error message to the check that produced it"""
    text = (message or "").lower()
    if "already registered" in text:
        return "duplicate"
    if "mx" in text:
        return "mx"
    if "undeliverable" in text:
        return "deliverability"
    return "format"


@dataclass
class ValidationProgress:
    checks: Dict[str, CheckStatus] = field(
        default_factory=lambda: {name: CheckStatus.PENDING for name in VALIDATION_CHECKS}
    )

    def mark(self, name: str, status: CheckStatus) -> None:
        self.checks[name] = status

    def fail(self, name: str) -> None:
        """Checks before ``name`` passed, ``name`` failed, the rest never ran"""
        index = VALIDATION_CHECKS.index(name)
        for position, check in enumerate(VALIDATION_CHECKS):
            if position < index:
                self.checks[check] = CheckStatus.PASSED
            elif position == index:
                self.checks[check] = CheckStatus.FAILED
            else:
                self.checks[check] = CheckStatus.SKIPPED

    @property
    def completed(self) -> int:
        return sum(1 for s in self.checks.values() if s == CheckStatus.PASSED)

    @property
    def percent(self) -> int:
        return int(self.completed * 100 / len(VALIDATION_CHECKS))


class RegistrationWizard:

    def __init__(
        self,
        client: PortalClient,
        on_change: Optional[Callable[["RegistrationWizard"], None]] = None,
    ):
        self.client = client
        self.on_change = on_change
        self.step = WizardStep.ACCOUNT
        self.email: Optional[str] = None
        self.progress = ValidationProgress()
        self.error: Optional[str] = None
        self.dev_code: Optional[str] = None
        self.trainee: Optional[Dict[str, Any]] = None

    def _changed(self) -> None:
        if self.on_change:
            self.on_change(self)

    def _require_step(self, step: WizardStep) -> None:
        if self.step != step:
            raise WizardError(f"Expected step {step.value}, wizard is at {self.step.value}")

    def _fail(self, message: str) -> bool:
        self.error = message
        self._changed()
        return False

    # ==================== ACCOUNT ====================

    async def submit_account(self, email: str, password: str, confirm_password: str) -> bool:
        self._require_step(WizardStep.ACCOUNT)
        self.progress = ValidationProgress()
        self.error = None

        if password != confirm_password:
            return self._fail("Passwords do not match")

        self.progress.mark("format", CheckStatus.RUNNING)
        self._changed()
        try:
            email = validate_email(email.strip(), check_deliverability=False).normalized.lower()
        except EmailNotValidError:
            self.progress.fail("format")
            return self._fail("Invalid email format")

        # Duplicate, MX and deliverability run server-side in one request
        for name in ("duplicate", "mx", "deliverability"):
            self.progress.mark(name, CheckStatus.RUNNING)
        self.progress.mark("format", CheckStatus.PASSED)
        self._changed()
        try:
            await self.client.validate_email(email)
        except PortalAPIError as e:
            if e.status == 400:
                self.progress.fail(failed_check_for(e.message))
            return self._fail(e.message)

        self.progress.fail("sending")
        self.progress.mark("sending", CheckStatus.RUNNING)
        self._changed()
        try:
            result = await self.client.register_step1(email, password, confirm_password)
        except PortalAPIError as e:
            self.progress.mark("sending", CheckStatus.FAILED)
            return self._fail(e.message)

        self.progress.mark("sending", CheckStatus.PASSED)
        self.email = email
        self.dev_code = result.get("devCode")
        self.step = WizardStep.VERIFY
        self._changed()
        return True

    # ==================== VERIFY ====================

    async def submit_code(self, code: str) -> bool:
        self._require_step(WizardStep.VERIFY)
        self.error = None
        try:
            await self.client.verify_code(self.email, code.strip())
        except PortalAPIError as e:
            return self._fail(e.message)

        self.step = WizardStep.PROFILE
        self._changed()
        return True

    def back(self) -> None:
        """Return to ACCOUNT to change the email; a new code will be sent"""
        if self.step == WizardStep.VERIFY:
            self.step = WizardStep.ACCOUNT
            self.dev_code = None
            self.error = None
            self._changed()

    # ==================== PROFILE ====================

    async def submit_profile(self, profile: Dict[str, Any]) -> bool:
        self._require_step(WizardStep.PROFILE)
        self.error = None
        try:
            result = await self.client.complete_registration({**profile, "email": self.email})
        except PortalAPIError as e:
            return self._fail(e.message)

        self.trainee = result["trainee"]
        self.step = WizardStep.COMPLETE
        self._changed()
        return True
