from sqlalchemy import Column, String, Boolean, DateTime, Text, ForeignKey
from datetime import datetime
import enum

from farmportal.core.database import Base
from farmportal.core.types import GUID, ValueEnum, generate_uuid


class ReplyRole(str, enum.Enum):
    ADMIN = "admin"
    TRAINEE = "trainee"


class Announcement(Base):
    """Announcement shown on trainee dashboards; sponsor_id None means everyone"""
    __tablename__ = "announcements"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    from_name = Column(String(255), nullable=False, default="Admin")
    sponsor_id = Column(GUID, nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Announcement {self.title}>"


class AnnouncementReply(Base):
    __tablename__ = "announcementReplies"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    announcement_id = Column(GUID, ForeignKey("announcements.id", ondelete="CASCADE"), nullable=False, index=True)
    message = Column(Text, nullable=False)
    from_name = Column(String(255), nullable=False)
    from_id = Column(String(64), nullable=False)
    from_role = Column(ValueEnum(ReplyRole, 16), nullable=False)
    # Set when an admin answers a specific trainee reply
    reply_to_id = Column(GUID, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
