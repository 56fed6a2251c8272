from sqlalchemy import Column, String, Integer, DateTime, Text
from datetime import datetime
import enum

from farmportal.core.database import Base
from farmportal.core.types import ValueEnum


class IdType(str, enum.Enum):
    STAFF = "staff"
    RESOURCE_PERSON = "resource_person"


class IdStatus(str, enum.Enum):
    """
    available -> assigned -> activated
    assigned/activated -> available (freed by admin)
    any -> deactivated (terminal)
    """
    AVAILABLE = "available"
    ASSIGNED = "assigned"
    ACTIVATED = "activated"
    DEACTIVATED = "deactivated"


class GeneratedId(Base):
    """Sequential staff/resource-person id issued before registration"""
    __tablename__ = "generatedIds"

    # The formatted id itself, e.g. ST-0C0S0S12
    id = Column(String(32), primary_key=True)
    type = Column(ValueEnum(IdType, 24), nullable=False, index=True)
    sequence = Column(Integer, nullable=False)
    status = Column(ValueEnum(IdStatus, 16), default=IdStatus.AVAILABLE, nullable=False, index=True)

    assigned_to = Column(String(255), nullable=True, index=True)
    assigned_at = Column(DateTime, nullable=True)
    activated_at = Column(DateTime, nullable=True)

    # Audit trail for freed ids
    usage_count = Column(Integer, default=0, nullable=False)
    last_assigned_to = Column(String(255), nullable=True)
    last_assigned_at = Column(DateTime, nullable=True)
    freed_at = Column(DateTime, nullable=True)
    freed_reason = Column(Text, nullable=True)

    deactivated_at = Column(DateTime, nullable=True)
    deactivation_reason = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<GeneratedId {self.id} {self.status}>"
