from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from farmportal.core.database import get_db
from farmportal.core.logging_config import logger
from farmportal.core.rate_limiter import registration_rate_limit
from farmportal.schemas.common import MessageResponse
from farmportal.schemas.registration import (
    RegisterStep1Request,
    RegisterStep1Response,
    RegisterVerifyRequest,
    TraineeProfile,
    EmailValidateRequest,
    EmailValidateResponse,
)
from farmportal.schemas.allocation import RegistrationCompleteResponse, TraineeSummary
from farmportal.services.email_validation_service import email_validation_service
from farmportal.services.registration_service import registration_service

router = APIRouter()


@router.post("/register/step1", response_model=RegisterStep1Response, response_model_exclude_none=True)
@registration_rate_limit()
async def register_step1(
    request: Request,
    body: RegisterStep1Request,
    db: AsyncSession = Depends(get_db)
):
    """Validate the password pair and email a verification code (rate limited)"""
    client_ip = request.client.host if request.client else "unknown"
    result = await registration_service.start(db, body.email, body.password, body.confirm_password)
    logger.log_auth_event("register_step1", success=True, user_email=result["email"], client_ip=client_ip)
    return result


@router.post("/register/verify", response_model=MessageResponse)
async def register_verify(
    body: RegisterVerifyRequest,
    db: AsyncSession = Depends(get_db)
):
    return await registration_service.verify(db, body.email, body.code)


@router.post("/register/complete", response_model=RegistrationCompleteResponse)
async def register_complete(
    body: TraineeProfile,
    db: AsyncSession = Depends(get_db)
):
    """Create the trainee under the active sponsor once the email is verified"""
    trainee = await registration_service.complete(db, body.model_dump())
    return {
        "message": "Registration completed successfully",
        "trainee": TraineeSummary.model_validate(trainee),
    }


@router.post("/email/validate", response_model=EmailValidateResponse)
async def validate_email(
    body: EmailValidateRequest,
    db: AsyncSession = Depends(get_db)
):
    """Format, duplicate, MX and deliverability checks; 400 with the first failure"""
    return await email_validation_service.validate(db, body.email)
