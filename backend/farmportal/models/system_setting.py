from sqlalchemy import Column, String, DateTime, Text
from datetime import datetime

from farmportal.core.database import Base


class SystemSetting(Base):
    """Admin-editable key/value setting"""
    __tablename__ = "systemSettings"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<SystemSetting {self.key}>"
