from sqlalchemy import Column, String, Integer, DateTime, UniqueConstraint
from datetime import datetime
import enum

from farmportal.core.database import Base
from farmportal.core.types import GUID, ValueEnum, generate_uuid


class RoomStatus(str, enum.Enum):
    AVAILABLE = "available"
    PARTIALLY_OCCUPIED = "partially_occupied"
    OCCUPIED = "occupied"
    FULLY_OCCUPIED = "fully_occupied"  # legacy spelling of OCCUPIED
    MAINTENANCE = "maintenance"


class Room(Base):
    """Hostel room. capacity is resolved from bed_space whenever the room is written."""
    __tablename__ = "rooms"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    room_number = Column(String(50), nullable=False)
    block = Column(String(50), nullable=False, index=True)
    bed_space = Column(String(20), nullable=False, default="1")
    capacity = Column(Integer, nullable=False, default=1)
    status = Column(ValueEnum(RoomStatus), default=RoomStatus.AVAILABLE, nullable=False)
    current_occupancy = Column(Integer, default=0, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("block", "room_number", name="uq_rooms_block_number"),
    )

    def __repr__(self):
        return f"<Room {self.block}/{self.room_number} {self.status}>"
