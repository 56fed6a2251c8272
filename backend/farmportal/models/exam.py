from sqlalchemy import Column, String, Boolean, DateTime, Integer, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from farmportal.core.database import Base
from farmportal.core.types import GUID, ValueEnum, generate_uuid


class ExamQuestionType(str, enum.Enum):
    MCQ = "mcq"
    TRUE_FALSE = "true_false"
    FILL_BLANK = "fill_blank"


class AttemptStatus(str, enum.Enum):
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    GRADED = "graded"


class Exam(Base):
    """Computer based test"""
    __tablename__ = "exams"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    duration = Column(Integer, nullable=False)  # minutes
    is_active = Column(Boolean, default=True, nullable=False)
    sponsor_id = Column(GUID, nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    questions = relationship("ExamQuestion", back_populates="exam", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Exam {self.title}>"


class ExamQuestion(Base):
    __tablename__ = "examQuestions"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    exam_id = Column(GUID, ForeignKey("exams.id", ondelete="CASCADE"), nullable=False, index=True)
    question_text = Column(Text, nullable=False)
    question_type = Column(ValueEnum(ExamQuestionType, 16), nullable=False)
    options = Column(JSON, nullable=True)
    correct_answer = Column(String(500), nullable=False)
    points = Column(Integer, default=1, nullable=False)
    order_index = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    exam = relationship("Exam", back_populates="questions")


class ExamAttempt(Base):
    __tablename__ = "examAttempts"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    exam_id = Column(GUID, ForeignKey("exams.id", ondelete="CASCADE"), nullable=False, index=True)
    trainee_id = Column(GUID, nullable=False, index=True)
    start_time = Column(DateTime, default=datetime.utcnow, nullable=False)
    end_time = Column(DateTime, nullable=True)
    score = Column(Integer, nullable=True)
    total_points = Column(Integer, nullable=True)
    status = Column(ValueEnum(AttemptStatus, 16), default=AttemptStatus.IN_PROGRESS, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<ExamAttempt {self.exam_id} by {self.trainee_id} {self.status}>"


class ExamAnswer(Base):
    __tablename__ = "examAnswers"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    attempt_id = Column(GUID, ForeignKey("examAttempts.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(GUID, nullable=False)
    answer = Column(Text, nullable=False)
    is_correct = Column(Boolean, nullable=True)
    points_awarded = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
