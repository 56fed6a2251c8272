from sqlalchemy import Column, String, Boolean, DateTime, Date, Index
from datetime import datetime
import enum

from farmportal.core.database import Base
from farmportal.core.types import GUID, ValueEnum, generate_uuid


# Sentinel stored in tag/room fields until something is allocated
PENDING = "pending"


class Gender(str, enum.Enum):
    MALE = "male"
    FEMALE = "female"


class AllocationStatus(str, enum.Enum):
    """Where a trainee is in the room/tag allocation pipeline"""
    PENDING = "pending"
    ALLOCATED = "allocated"
    NO_ROOMS = "no_rooms"
    NO_TAGS = "no_tags"


class VerificationMethod(str, enum.Enum):
    EMAIL = "email"
    PHONE = "phone"


def is_pending_value(value) -> bool:
    """Empty, missing and the literal sentinel all mean 'nothing allocated'"""
    return value is None or str(value).strip() == "" or str(value).strip().lower() == PENDING


class Trainee(Base):
    """Registered trainee and their room/tag allocation"""
    __tablename__ = "trainees"

    id = Column(GUID, primary_key=True, default=generate_uuid)

    # Identity
    first_name = Column(String(100), nullable=False)
    surname = Column(String(100), nullable=False)
    middle_name = Column(String(100), nullable=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(30), nullable=True)
    gender = Column(ValueEnum(Gender, 16), nullable=False)
    date_of_birth = Column(Date, nullable=True)
    state = Column(String(100), nullable=True)
    lga = Column(String(100), nullable=True)
    password_hash = Column(String(255), nullable=True)

    sponsor_id = Column(GUID, index=True, nullable=True)
    batch_id = Column(GUID, index=True, nullable=True)

    # Allocation ("pending" until assigned)
    tag_number = Column(String(50), default=PENDING, index=True, nullable=True)
    room_number = Column(String(50), default=PENDING, nullable=True)
    room_block = Column(String(50), default=PENDING, nullable=True)
    bed_space = Column(String(20), default=PENDING, nullable=True)
    # Nullable: rows created before allocation tracking carry no status until migrated
    allocation_status = Column(ValueEnum(AllocationStatus), default=AllocationStatus.PENDING, nullable=True)

    verification_method = Column(ValueEnum(VerificationMethod, 16), default=VerificationMethod.EMAIL)
    email_verified = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_trainees_room", "room_number", "room_block"),
    )

    @property
    def full_name(self) -> str:
        parts = [self.first_name, self.middle_name, self.surname]
        return " ".join(p for p in parts if p)

    @property
    def has_room(self) -> bool:
        return not is_pending_value(self.room_number)

    @property
    def has_tag(self) -> bool:
        return not is_pending_value(self.tag_number)

    def __repr__(self):
        return f"<Trainee {self.email} tag={self.tag_number} room={self.room_block}/{self.room_number}>"
