from sqlalchemy import Column, String, Boolean, DateTime, Text
from datetime import datetime
import enum

from farmportal.core.database import Base
from farmportal.core.types import GUID, ValueEnum, generate_uuid


class NotificationType(str, enum.Enum):
    ADMIN_REPLY = "admin_reply"
    ANNOUNCEMENT = "announcement"
    MESSAGE = "message"


class MessageType(str, enum.Enum):
    TRAINEE_TO_RP = "trainee_to_rp"
    RP_TO_TRAINEE = "rp_to_trainee"
    ADMIN_BROADCAST = "admin_broadcast"


class MessagePriority(str, enum.Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class Notification(Base):
    """In-app notification for a trainee or resource person"""
    __tablename__ = "notifications"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(String(64), index=True, nullable=False)
    type = Column(ValueEnum(NotificationType, 24), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)

    announcement_id = Column(GUID, nullable=True)
    reply_id = Column(GUID, nullable=True)
    message_id = Column(GUID, nullable=True)
    from_id = Column(String(64), nullable=False)
    from_name = Column(String(255), nullable=False)
    from_email = Column(String(255), nullable=True)
    from_tag_number = Column(String(50), nullable=True)

    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Notification {self.type} for {self.user_id}>"


class Message(Base):
    """Direct message between a trainee and a resource person"""
    __tablename__ = "messages"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    from_id = Column(String(64), nullable=False, index=True)
    from_name = Column(String(255), nullable=False)
    from_email = Column(String(255), nullable=False)
    from_tag_number = Column(String(50), nullable=False)
    from_room = Column(String(50), nullable=True)

    to_id = Column(String(64), nullable=False, index=True)
    to_name = Column(String(255), nullable=False)
    to_email = Column(String(255), nullable=False)

    subject = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    trainee_sponsor_id = Column(GUID, nullable=True)
    message_type = Column(ValueEnum(MessageType, 24), default=MessageType.TRAINEE_TO_RP, nullable=False)
    priority = Column(ValueEnum(MessagePriority, 16), default=MessagePriority.NORMAL, nullable=False)

    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Message {self.from_id} -> {self.to_id}: {self.subject}>"
