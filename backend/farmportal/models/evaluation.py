from sqlalchemy import Column, String, Boolean, DateTime, Text, JSON
from datetime import datetime
import enum

from farmportal.core.database import Base
from farmportal.core.types import GUID, ValueEnum, generate_uuid


class QuestionType(str, enum.Enum):
    YES_NO = "yes_no"
    SINGLE_CHOICE = "single_choice"
    EXPRESSION = "expression"
    RATING = "rating"


class EvaluationQuestion(Base):
    """Post-training evaluation question"""
    __tablename__ = "evaluation_questions"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    question = Column(Text, nullable=False)
    type = Column(ValueEnum(QuestionType, 24), nullable=False)
    options = Column(JSON, nullable=True)
    is_published = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<EvaluationQuestion {self.type}>"


class EvaluationResponse(Base):
    """One trainee's answer to one evaluation question"""
    __tablename__ = "evaluation_responses"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    trainee_id = Column(GUID, nullable=False, index=True)
    trainee_name = Column(String(255), nullable=True)
    trainee_email = Column(String(255), nullable=True)
    question_id = Column(GUID, nullable=False, index=True)
    question = Column(Text, nullable=True)
    # Text for yes_no/single_choice/expression, a number for rating
    answer = Column(JSON, nullable=False)

    submitted_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<EvaluationResponse {self.trainee_id}:{self.question_id}>"
