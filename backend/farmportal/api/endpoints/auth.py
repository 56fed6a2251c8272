from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from farmportal.core.database import get_db
from farmportal.core.rate_limiter import password_reset_rate_limit
from farmportal.schemas.common import MessageResponse
from farmportal.schemas.registration import (
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    VerifyResetTokenResponse,
    ResetPasswordRequest,
)
from farmportal.services.password_reset_service import password_reset_service

router = APIRouter()


@router.post("/forgot-password", response_model=ForgotPasswordResponse)
@password_reset_rate_limit()
async def forgot_password(
    request: Request,
    body: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db)
):
    """Email a reset link to a registered trainee (rate limited)"""
    return await password_reset_service.request_reset(db, body.email)


@router.get("/verify-reset-token/{token}", response_model=VerifyResetTokenResponse)
async def verify_reset_token(token: str, db: AsyncSession = Depends(get_db)):
    return await password_reset_service.verify_token(db, token)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(body: ResetPasswordRequest, db: AsyncSession = Depends(get_db)):
    return await password_reset_service.reset_password(db, body.token, body.new_password)
