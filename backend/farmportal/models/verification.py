from sqlalchemy import Column, String, Boolean, DateTime
from datetime import datetime

from farmportal.core.database import Base
from farmportal.core.types import GUID, generate_uuid


class VerificationCode(Base):
    """Six-digit email code; one live code per identifier, single use"""
    __tablename__ = "verification_codes"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    identifier = Column(String(255), index=True, nullable=False)
    code = Column(String(6), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    is_used = Column(Boolean, default=False, nullable=False)
    used_at = Column(DateTime, nullable=True)
    # bcrypt hash of the password chosen at step 1, carried to registration completion
    password_hash = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    @property
    def is_expired(self) -> bool:
        return datetime.utcnow() > self.expires_at

    def __repr__(self):
        return f"<VerificationCode {self.identifier} used={self.is_used}>"


class PasswordResetToken(Base):
    __tablename__ = "passwordResetTokens"

    token_hash = Column(String(64), primary_key=True)
    email = Column(String(255), index=True, nullable=False)
    trainee_id = Column(GUID, nullable=False)
    expires_at = Column(DateTime, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
