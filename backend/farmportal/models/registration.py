from sqlalchemy import Column, String, Boolean, DateTime, Text
from datetime import datetime

from farmportal.core.database import Base


class StaffRegistration(Base):
    """Staff member, keyed by the generated ST- id they activated"""
    __tablename__ = "staff_registrations"

    id = Column(String(32), primary_key=True)
    first_name = Column(String(100), nullable=False)
    surname = Column(String(100), nullable=False)
    middle_name = Column(String(100), nullable=True)
    email = Column(String(255), index=True, nullable=False)
    phone = Column(String(30), nullable=True)
    department = Column(String(150), nullable=True)
    position = Column(String(150), nullable=True)
    is_verified = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<StaffRegistration {self.id} {self.email}>"


class ResourcePersonRegistration(Base):
    """Resource person, keyed by the generated RP- id they activated"""
    __tablename__ = "resource_person_registrations"

    id = Column(String(32), primary_key=True)
    first_name = Column(String(100), nullable=False)
    surname = Column(String(100), nullable=False)
    middle_name = Column(String(100), nullable=True)
    email = Column(String(255), index=True, nullable=False)
    phone = Column(String(30), nullable=True)
    specialization = Column(String(200), nullable=True)
    organization = Column(String(200), nullable=True)
    bio = Column(Text, nullable=True)
    is_verified = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<ResourcePersonRegistration {self.id} {self.email}>"
