"""Async HTTP client, registration wizard and admin dashboard for the portal API"""

from farmportal.client.api_client import PortalAPIError, PortalClient
from farmportal.client.dashboard import AdminDashboard, MutationInProgressError, summarize_sync
from farmportal.client.registration_wizard import (
    CheckStatus,
    RegistrationWizard,
    WizardError,
    WizardStep,
)

__all__ = [
    "PortalAPIError",
    "PortalClient",
    "AdminDashboard",
    "MutationInProgressError",
    "summarize_sync",
    "CheckStatus",
    "RegistrationWizard",
    "WizardError",
    "WizardStep",
]
