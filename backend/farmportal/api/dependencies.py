from typing import Any, Dict

from fastapi import Request

from farmportal.core.config import settings
from farmportal.core.logging_config import set_user_id
from farmportal.core.security import decode_admin_session_token, decode_trainee_session_token


def session_cookie_options() -> dict:
    # Cross-site cookies (separate frontend host) need secure + SameSite=None
    return {
        "httponly": True,
        "secure": settings.is_production,
        "samesite": "none" if settings.is_production else "lax",
        "path": "/",
    }


async def get_current_admin(request: Request) -> Dict[str, Any]:
    """
    Admin session from the HTTP-only cookie.

    Raises AuthenticationError ("Not authenticated") without a cookie and
    SessionExpiredError ("Session expired") for a bad or expired one.
    """
    payload = decode_admin_session_token(request.cookies.get(settings.ADMIN_COOKIE_NAME))
    set_user_id(payload.get("sub", ""))
    return {"email": payload.get("sub"), "role": payload.get("role")}


async def get_current_trainee_id(request: Request) -> str:
    """Trainee id from the trainee session cookie; same errors as the admin session"""
    payload = decode_trainee_session_token(request.cookies.get(settings.TRAINEE_COOKIE_NAME))
    set_user_id(payload.get("sub", ""))
    return payload["sub"]
