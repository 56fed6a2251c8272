# Re-export all models for convenient imports
from farmportal.models.trainee import (
    Trainee,
    Gender,
    AllocationStatus,
    VerificationMethod,
    PENDING,
    is_pending_value,
)
from farmportal.models.room import Room, RoomStatus
from farmportal.models.tag_number import TagNumber, TagStatus
from farmportal.models.generated_id import GeneratedId, IdType, IdStatus
from farmportal.models.sponsor import Sponsor, Batch
from farmportal.models.registration import StaffRegistration, ResourcePersonRegistration
from farmportal.models.communication import (
    Notification,
    NotificationType,
    Message,
    MessageType,
    MessagePriority,
)
from farmportal.models.evaluation import EvaluationQuestion, EvaluationResponse, QuestionType
from farmportal.models.exam import Exam, ExamQuestion, ExamAttempt, ExamAnswer, ExamQuestionType, AttemptStatus
from farmportal.models.announcement import Announcement, AnnouncementReply, ReplyRole
from farmportal.models.system_setting import SystemSetting
from farmportal.models.verification import VerificationCode, PasswordResetToken

__all__ = [
    # Trainees & allocation
    "Trainee",
    "Gender",
    "AllocationStatus",
    "VerificationMethod",
    "PENDING",
    "is_pending_value",
    "Room",
    "RoomStatus",
    "TagNumber",
    "TagStatus",
    # Ids & registrations
    "GeneratedId",
    "IdType",
    "IdStatus",
    "StaffRegistration",
    "ResourcePersonRegistration",
    # Reference data
    "Sponsor",
    "Batch",
    "SystemSetting",
    # Communication
    "Notification",
    "NotificationType",
    "Message",
    "MessageType",
    "MessagePriority",
    "Announcement",
    "AnnouncementReply",
    "ReplyRole",
    # Evaluation & exams
    "EvaluationQuestion",
    "EvaluationResponse",
    "QuestionType",
    "Exam",
    "ExamQuestion",
    "ExamAttempt",
    "ExamAnswer",
    "ExamQuestionType",
    "AttemptStatus",
    # Verification
    "VerificationCode",
    "PasswordResetToken",
]
