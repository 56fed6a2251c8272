from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from farmportal.api.dependencies import get_current_admin, get_current_trainee_id, session_cookie_options
from farmportal.core.config import settings
from farmportal.core.database import get_db
from farmportal.core.rate_limiter import login_rate_limit
from farmportal.core.security import create_trainee_session_token
from farmportal.schemas.common import MessageResponse
from farmportal.schemas.allocation import (
    TraineeLoginRequest,
    TraineeLoginResponse,
    TraineeResponse,
    TraineeUpdate,
)
from farmportal.services.trainee_service import trainee_service

router = APIRouter()


@router.get("", response_model=List[TraineeResponse])
async def list_trainees(
    sponsor_id: Optional[str] = Query(None, alias="sponsorId"),
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await trainee_service.list_trainees(db, sponsor_id)


# ==================== TRAINEE SESSION ====================
# Declared before /{trainee_id} so "login" and "me" are not captured as ids

@router.post("/login", response_model=TraineeLoginResponse)
@login_rate_limit()
async def trainee_login(
    request: Request,
    response: Response,
    credentials: TraineeLoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Check the trainee's password and set the trainee session cookie (rate limited)"""
    trainee = await trainee_service.authenticate(db, credentials.email, credentials.password)
    response.set_cookie(
        key=settings.TRAINEE_COOKIE_NAME,
        value=create_trainee_session_token(trainee.id),
        max_age=settings.TRAINEE_SESSION_HOURS * 3600,
        **session_cookie_options(),
    )
    return {"message": "Login successful", "trainee": TraineeResponse.model_validate(trainee)}


@router.get("/me", response_model=TraineeResponse)
async def get_my_record(
    db: AsyncSession = Depends(get_db),
    trainee_id: str = Depends(get_current_trainee_id)
):
    """The signed-in trainee's own record"""
    return await trainee_service.get_trainee(db, trainee_id)


@router.post("/logout", response_model=MessageResponse)
async def trainee_logout(request: Request, response: Response):
    if request.cookies.get(settings.TRAINEE_COOKIE_NAME):
        response.delete_cookie(settings.TRAINEE_COOKIE_NAME, **session_cookie_options())
    return {"message": "Logged out"}


# ==================== ADMIN ====================

@router.get("/{trainee_id}", response_model=TraineeResponse)
async def get_trainee(
    trainee_id: str,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await trainee_service.get_trainee(db, trainee_id)


@router.patch("/{trainee_id}", response_model=TraineeResponse)
async def update_trainee(
    trainee_id: str,
    body: TraineeUpdate,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await trainee_service.update_trainee(db, trainee_id, body.model_dump(exclude_unset=True))


@router.delete("/{trainee_id}", response_model=MessageResponse)
async def delete_trainee(
    trainee_id: str,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    await trainee_service.delete_trainee(db, trainee_id)
    return {"message": "Trainee deleted successfully"}
