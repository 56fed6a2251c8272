from sqlalchemy import Column, String, Boolean, DateTime, Integer, Text
from datetime import datetime

from farmportal.core.database import Base
from farmportal.core.types import GUID, generate_uuid


class Sponsor(Base):
    """Programme sponsor. At most one is active and open for registration."""
    __tablename__ = "sponsors"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=False, nullable=False)
    batch_id = Column(GUID, nullable=True)
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Sponsor {self.name} active={self.is_active}>"


class Batch(Base):
    """Training cohort"""
    __tablename__ = "batches"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    year = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Batch {self.name}>"
