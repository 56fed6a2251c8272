from sqlalchemy import Column, String, DateTime
from datetime import datetime
import enum

from farmportal.core.database import Base
from farmportal.core.types import GUID, ValueEnum, generate_uuid


class TagStatus(str, enum.Enum):
    AVAILABLE = "available"
    ASSIGNED = "assigned"


class TagNumber(Base):
    """Physical tag handed to a trainee"""
    __tablename__ = "tagNumbers"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    tag_no = Column(String(50), unique=True, index=True, nullable=False)
    status = Column(ValueEnum(TagStatus, 16), default=TagStatus.AVAILABLE, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<TagNumber {self.tag_no} {self.status}>"
