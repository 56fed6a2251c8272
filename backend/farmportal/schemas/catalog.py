"""
Schemas for sponsors, batches, evaluations, messages, notifications, exams,
announcements, settings and certificate recipients
"""

from pydantic import Field
from typing import Any, Dict, List, Optional, Union
from datetime import datetime

from farmportal.models import (
    AttemptStatus,
    ExamQuestionType,
    MessagePriority,
    MessageType,
    NotificationType,
    QuestionType,
    ReplyRole,
)
from farmportal.schemas.common import CamelModel


# ============== Sponsors & Batches ==============

class SponsorCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    is_active: bool = False
    batch_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class SponsorUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    is_active: Optional[bool] = None
    batch_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class SponsorResponse(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    is_active: bool
    batch_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_at: datetime


class BatchCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    year: Optional[int] = None
    description: Optional[str] = None
    is_active: bool = True


class BatchUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    year: Optional[int] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None


class BatchResponse(CamelModel):
    id: str
    name: str
    year: Optional[int] = None
    description: Optional[str] = None
    is_active: bool
    created_at: datetime


# ============== Evaluations ==============

class EvaluationQuestionCreate(CamelModel):
    question: str = Field(..., min_length=1)
    type: QuestionType
    options: Optional[List[str]] = None
    is_published: bool = False


class EvaluationQuestionUpdate(CamelModel):
    question: Optional[str] = Field(None, min_length=1)
    type: Optional[QuestionType] = None
    options: Optional[List[str]] = None
    is_published: Optional[bool] = None


class EvaluationQuestionResponse(CamelModel):
    id: str
    question: str
    type: QuestionType
    options: Optional[List[str]] = None
    is_published: bool
    created_at: datetime


class EvaluationAnswer(CamelModel):
    question_id: str
    answer: Union[int, float, str]


class EvaluationSubmitRequest(CamelModel):
    trainee_id: str
    responses: List[EvaluationAnswer] = Field(..., min_length=1)


class EvaluationResponseOut(CamelModel):
    id: str
    trainee_id: str
    trainee_name: Optional[str] = None
    trainee_email: Optional[str] = None
    question_id: str
    question: Optional[str] = None
    answer: Any
    submitted_at: datetime


class SubmissionStatusResponse(CamelModel):
    submitted: bool


# ============== Messages & Notifications ==============

class MessageCreate(CamelModel):
    from_id: str
    from_name: str
    from_email: str
    from_tag_number: str
    from_room: Optional[str] = None
    to_id: str
    to_name: str
    to_email: str
    subject: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    trainee_sponsor_id: Optional[str] = None
    message_type: MessageType = MessageType.TRAINEE_TO_RP
    priority: MessagePriority = MessagePriority.NORMAL


class MessageOut(MessageCreate):
    id: str
    is_read: bool
    created_at: datetime


class NotificationOut(CamelModel):
    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    announcement_id: Optional[str] = None
    reply_id: Optional[str] = None
    message_id: Optional[str] = None
    from_id: str
    from_name: str
    from_email: Optional[str] = None
    from_tag_number: Optional[str] = None
    is_read: bool
    created_at: datetime


class UnreadCountResponse(CamelModel):
    count: int


# ============== Exams ==============

class ExamCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    duration: int = Field(..., ge=1, description="Minutes")
    is_active: bool = True
    sponsor_id: Optional[str] = None


class ExamUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    duration: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None
    sponsor_id: Optional[str] = None


class ExamResponse(CamelModel):
    id: str
    title: str
    description: Optional[str] = None
    duration: int
    is_active: bool
    sponsor_id: Optional[str] = None
    created_at: datetime


class ExamQuestionCreate(CamelModel):
    question_text: str = Field(..., min_length=1)
    question_type: ExamQuestionType
    options: Optional[List[str]] = None
    correct_answer: str = Field(..., min_length=1)
    points: int = Field(1, ge=0)
    order_index: int = 0


class ExamQuestionUpdate(CamelModel):
    question_text: Optional[str] = Field(None, min_length=1)
    question_type: Optional[ExamQuestionType] = None
    options: Optional[List[str]] = None
    correct_answer: Optional[str] = Field(None, min_length=1)
    points: Optional[int] = Field(None, ge=0)
    order_index: Optional[int] = None


class PublicExamQuestion(CamelModel):
    """Question as shown to a trainee: no correct answer"""
    id: str
    exam_id: str
    question_text: str
    question_type: ExamQuestionType
    options: Optional[List[str]] = None
    points: int
    order_index: int


class ExamQuestionResponse(PublicExamQuestion):
    correct_answer: str


class StartAttemptRequest(CamelModel):
    trainee_id: str = Field(..., min_length=1)


class AttemptAnswer(CamelModel):
    question_id: str
    answer: Optional[str] = None


class SubmitAttemptRequest(CamelModel):
    answers: List[AttemptAnswer]


class GradeAttemptRequest(CamelModel):
    overrides: Dict[str, int] = Field(default_factory=dict)


class ExamAttemptResponse(CamelModel):
    id: str
    exam_id: str
    trainee_id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    score: Optional[int] = None
    total_points: Optional[int] = None
    status: AttemptStatus


# ============== Announcements ==============

class AnnouncementCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    sponsor_id: Optional[str] = None
    is_active: bool = True


class AnnouncementUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    message: Optional[str] = Field(None, min_length=1)
    sponsor_id: Optional[str] = None
    is_active: Optional[bool] = None


class AnnouncementResponse(CamelModel):
    id: str
    title: str
    message: str
    from_name: str
    sponsor_id: Optional[str] = None
    is_active: bool
    created_at: datetime


class TraineeReplyCreate(CamelModel):
    message: str = Field(..., min_length=1)
    trainee_id: str


class AdminReplyCreate(CamelModel):
    message: str = Field(..., min_length=1)
    reply_to_id: Optional[str] = None


class AnnouncementReplyResponse(CamelModel):
    id: str
    announcement_id: str
    message: str
    from_name: str
    from_id: str
    from_role: ReplyRole
    reply_to_id: Optional[str] = None
    created_at: datetime


# ============== Settings ==============

class SettingUpsert(CamelModel):
    key: str = Field(..., min_length=1, max_length=100)
    value: str


class SettingResponse(CamelModel):
    key: str
    value: str
    updated_at: Optional[datetime] = None


# ============== Certificates ==============

class CertificateRecipient(CamelModel):
    id: str
    role: str
    first_name: str
    middle_name: Optional[str] = None
    surname: str
    tag_number: Optional[str] = None
    certificate_id: str
