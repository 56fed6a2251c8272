from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from farmportal.api.dependencies import get_current_admin
from farmportal.core.database import get_db
from farmportal.core.exceptions import ResourceNotFoundError
from farmportal.schemas.catalog import SettingUpsert, SettingResponse
from farmportal.services.settings_service import settings_service

router = APIRouter()


@router.get("/settings/{key}", response_model=SettingResponse)
async def get_setting(key: str, db: AsyncSession = Depends(get_db)):
    setting = await settings_service.get_setting(db, key)
    if not setting:
        raise ResourceNotFoundError("Setting", key)
    return setting


@router.post("/settings", response_model=SettingResponse)
async def upsert_setting(
    body: SettingUpsert,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await settings_service.upsert_setting(db, body.key, body.value)


@router.get("/statistics", response_model=Dict[str, Any])
async def statistics(
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """Dashboard overview: trainees, sponsors, exams, allocation and id counts"""
    return await settings_service.statistics(db)
