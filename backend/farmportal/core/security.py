from datetime import datetime, timedelta
from typing import Optional, Dict, Any
from jose import JWTError, ExpiredSignatureError, jwt
import bcrypt
import hashlib
import secrets

from farmportal.core.config import settings
from farmportal.core.exceptions import AuthenticationError, SessionExpiredError


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against a bcrypt hash"""
    if not plain_password or not hashed_password:
        return False
    # Bcrypt has a 72 byte limit - truncate password if necessary
    password_bytes = plain_password.encode('utf-8')[:72]
    try:
        return bcrypt.checkpw(password_bytes, hashed_password.encode('utf-8'))
    except ValueError:
        # Malformed hash in configuration
        return False


def get_password_hash(password: str) -> str:
    """Hash password with configurable rounds (BCRYPT_ROUNDS)"""
    password_bytes = password.encode('utf-8')[:72]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS))
    return hashed.decode('utf-8')


def _create_session_token(subject: str, role: str, session_type: str, expires_delta: timedelta) -> str:
    to_encode = {
        "sub": subject,
        "role": role,
        "exp": datetime.utcnow() + expires_delta,
        "type": session_type,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def _decode_session_token(token: Optional[str], role: str, session_type: str) -> Dict[str, Any]:
    if not token:
        raise AuthenticationError("Not authenticated")
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise SessionExpiredError()
    except JWTError:
        raise SessionExpiredError()

    if payload.get("type") != session_type or payload.get("role") != role:
        raise SessionExpiredError()
    return payload


def create_admin_session_token(email: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create the signed token stored in the admin session cookie"""
    return _create_session_token(
        email, "admin", "admin_session",
        expires_delta or timedelta(hours=settings.ADMIN_SESSION_HOURS),
    )


def decode_admin_session_token(token: Optional[str]) -> Dict[str, Any]:
    """Decode the admin session cookie, raising AuthenticationError on any problem"""
    return _decode_session_token(token, "admin", "admin_session")


def create_trainee_session_token(trainee_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """The trainee session cookie carries the trainee id, so an email change keeps the session"""
    return _create_session_token(
        trainee_id, "trainee", "trainee_session",
        expires_delta or timedelta(hours=settings.TRAINEE_SESSION_HOURS),
    )


def decode_trainee_session_token(token: Optional[str]) -> Dict[str, Any]:
    return _decode_session_token(token, "trainee", "trainee_session")


def generate_reset_token() -> str:
    """Generate a URL-safe password reset token"""
    return secrets.token_urlsafe(32)


def hash_token(token: str) -> str:
    """Tokens are stored as sha256 digests, never in the clear"""
    return hashlib.sha256(token.encode('utf-8')).hexdigest()
