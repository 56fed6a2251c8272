"""
Unit Tests for Security Module
Tests for: password hashing, admin session tokens, reset tokens, error bodies
"""
import pytest
from datetime import datetime, timedelta
from jose import jwt

from farmportal.core.config import settings
from farmportal.core.exceptions import (
    AuthenticationError,
    ResourceNotFoundError,
    SessionExpiredError,
    ValidationError,
    error_response,
)
from farmportal.core.security import (
    create_admin_session_token,
    create_trainee_session_token,
    decode_admin_session_token,
    decode_trainee_session_token,
    generate_reset_token,
    get_password_hash,
    hash_token,
    verify_password,
)


class TestPasswordHashing:
    """Test password hashing functions"""

    def test_hash_password_returns_different_value(self):
        password = "testpassword123"
        hashed = get_password_hash(password)

        assert hashed != password
        assert hashed.startswith("$2")

    def test_hash_password_different_each_time(self):
        password = "testpassword123"

        # Bcrypt generates different salts
        assert get_password_hash(password) != get_password_hash(password)

    def test_verify_password_correct(self):
        hashed = get_password_hash("testpassword123")

        assert verify_password("testpassword123", hashed) is True

    def test_verify_password_incorrect(self):
        hashed = get_password_hash("testpassword123")

        assert verify_password("wrongpassword", hashed) is False

    def test_verify_password_empty_or_malformed(self):
        assert verify_password("", get_password_hash("x")) is False
        assert verify_password("x", "") is False
        assert verify_password("x", "not-a-bcrypt-hash") is False

    def test_long_password_truncated_to_72_bytes(self):
        long_password = "a" * 100
        hashed = get_password_hash(long_password)

        assert verify_password("a" * 72, hashed) is True


class TestAdminSessionToken:
    """Test the admin session cookie token"""

    def test_round_trip(self):
        token = create_admin_session_token("admin@cssfarms.org")

        payload = decode_admin_session_token(token)

        assert payload["sub"] == "admin@cssfarms.org"
        assert payload["role"] == "admin"
        assert payload["type"] == "admin_session"

    def test_missing_token(self):
        with pytest.raises(AuthenticationError) as exc_info:
            decode_admin_session_token(None)

        assert exc_info.value.message == "Not authenticated"
        assert not isinstance(exc_info.value, SessionExpiredError)

    def test_expired_token(self):
        token = create_admin_session_token("admin@cssfarms.org", expires_delta=timedelta(seconds=-1))

        with pytest.raises(SessionExpiredError) as exc_info:
            decode_admin_session_token(token)

        assert exc_info.value.message == "Session expired"
        assert exc_info.value.status_code == 401

    def test_tampered_token(self):
        token = create_admin_session_token("admin@cssfarms.org")

        with pytest.raises(SessionExpiredError):
            decode_admin_session_token(token[:-2] + "xx")

    def test_wrong_token_type(self):
        token = jwt.encode(
            {"sub": "someone", "role": "admin", "type": "access", "exp": datetime.utcnow() + timedelta(hours=1)},
            settings.SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
        )

        with pytest.raises(SessionExpiredError):
            decode_admin_session_token(token)


class TestTraineeSessionToken:
    """The trainee cookie is signed the same way but never passes as an admin session"""

    def test_round_trip(self):
        payload = decode_trainee_session_token(create_trainee_session_token("trainee-1"))

        assert payload["sub"] == "trainee-1"
        assert payload["role"] == "trainee"
        assert payload["type"] == "trainee_session"

    def test_sessions_do_not_cross(self):
        with pytest.raises(SessionExpiredError):
            decode_admin_session_token(create_trainee_session_token("trainee-1"))
        with pytest.raises(SessionExpiredError):
            decode_trainee_session_token(create_admin_session_token("admin@cssfarms.org"))

    def test_expired_token(self):
        token = create_trainee_session_token("trainee-1", expires_delta=timedelta(seconds=-1))

        with pytest.raises(SessionExpiredError):
            decode_trainee_session_token(token)


class TestResetTokens:

    def test_tokens_are_unique(self):
        assert generate_reset_token() != generate_reset_token()

    def test_hash_is_stable_sha256(self):
        assert hash_token("abc") == hash_token("abc")
        assert len(hash_token("abc")) == 64
        assert hash_token("abc") != "abc"


class TestErrorResponse:

    def test_body_with_details(self):
        body = error_response(ValidationError("Invalid email format", field="email"))

        assert body == {
            "message": "Invalid email format",
            "code": "VALIDATION_ERROR",
            "details": {"field": "email"},
        }

    def test_body_without_details(self):
        assert error_response(ResourceNotFoundError("Account", message="No account found")) == {
            "message": "No account found",
            "code": "ACCOUNT_NOT_FOUND",
        }
