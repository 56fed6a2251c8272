from fastapi import APIRouter, Depends, Request, Response

from farmportal.api.dependencies import get_current_admin, session_cookie_options
from farmportal.core.config import settings
from farmportal.core.exceptions import AuthenticationError
from farmportal.core.logging_config import logger
from farmportal.core.rate_limiter import login_rate_limit
from farmportal.core.security import create_admin_session_token, verify_password
from farmportal.schemas.common import MessageResponse
from farmportal.schemas.registration import AdminLoginRequest, AdminLoginResponse, AdminUser

router = APIRouter()


@router.post("/login", response_model=AdminLoginResponse)
@login_rate_limit()
async def admin_login(
    request: Request,
    response: Response,
    credentials: AdminLoginRequest
):
    """Check the configured admin credentials and set the session cookie (rate limited)"""
    client_ip = request.client.host if request.client else "unknown"
    email = credentials.email.strip().lower()

    if (
        not settings.ADMIN_EMAIL
        or email != settings.ADMIN_EMAIL.strip().lower()
        or not verify_password(credentials.password, settings.ADMIN_PASSWORD_HASH)
    ):
        logger.log_auth_event("admin_login", success=False, user_email=email,
                              reason="Invalid credentials", client_ip=client_ip)
        raise AuthenticationError("Invalid credentials")

    token = create_admin_session_token(email)
    response.set_cookie(
        key=settings.ADMIN_COOKIE_NAME,
        value=token,
        max_age=settings.ADMIN_SESSION_HOURS * 3600,
        **session_cookie_options(),
    )

    logger.log_auth_event("admin_login", success=True, user_email=email, client_ip=client_ip)
    return {"message": "Login successful", "user": AdminUser(email=email, role="admin")}


@router.get("/me", response_model=AdminUser)
async def admin_me(admin: dict = Depends(get_current_admin)):
    return admin


@router.post("/logout", response_model=MessageResponse)
async def admin_logout(request: Request, response: Response):
    if request.cookies.get(settings.ADMIN_COOKIE_NAME):
        response.delete_cookie(settings.ADMIN_COOKIE_NAME, **session_cookie_options())
        logger.log_auth_event("admin_logout", success=True)
    return {"message": "Logged out"}
