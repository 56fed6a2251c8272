from farmportal.services.allocation_service import AllocationService, allocation_service
from farmportal.services.id_lifecycle_service import IdLifecycleService, id_lifecycle_service

# Registration and email
from farmportal.services.email_service import EmailService, email_service
from farmportal.services.email_validation_service import EmailValidationService, email_validation_service
from farmportal.services.verification_service import VerificationService, verification_service
from farmportal.services.registration_service import RegistrationService, registration_service
from farmportal.services.password_reset_service import PasswordResetService, password_reset_service

# Entity management
from farmportal.services.sponsor_service import SponsorService, sponsor_service
from farmportal.services.trainee_service import TraineeService, trainee_service
from farmportal.services.evaluation_service import EvaluationService, evaluation_service
from farmportal.services.messaging_service import MessagingService, messaging_service
from farmportal.services.exam_service import ExamService, exam_service
from farmportal.services.announcement_service import AnnouncementService, announcement_service
from farmportal.services.settings_service import SettingsService, settings_service
from farmportal.services.certificate_service import CertificateService, certificate_service

__all__ = [
    # Core
    "AllocationService",
    "allocation_service",
    "IdLifecycleService",
    "id_lifecycle_service",
    # Registration and email
    "EmailService",
    "email_service",
    "EmailValidationService",
    "email_validation_service",
    "VerificationService",
    "verification_service",
    "RegistrationService",
    "registration_service",
    "PasswordResetService",
    "password_reset_service",
    # Entity management
    "SponsorService",
    "sponsor_service",
    "TraineeService",
    "trainee_service",
    "EvaluationService",
    "evaluation_service",
    "MessagingService",
    "messaging_service",
    "ExamService",
    "exam_service",
    "AnnouncementService",
    "announcement_service",
    "SettingsService",
    "settings_service",
    "CertificateService",
    "certificate_service",
]
