"""System settings (key/value) and the admin statistics overview"""

from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from farmportal.models import SystemSetting
from farmportal.repositories import (
    exam_repository,
    setting_repository,
    sponsor_repository,
    trainee_repository,
)
from farmportal.services.allocation_service import allocation_service
from farmportal.services.id_lifecycle_service import id_lifecycle_service


class SettingsService:

    async def get_setting(self, db: AsyncSession, key: str) -> Optional[SystemSetting]:
        return await setting_repository.get(db, key)

    async def upsert_setting(self, db: AsyncSession, key: str, value: str) -> SystemSetting:
        if not await setting_repository.update(db, key, value=value):
            await setting_repository.create(db, key=key, value=value)
        await db.commit()
        return await setting_repository.get(db, key)

    async def statistics(self, db: AsyncSession) -> Dict[str, Any]:
        return {
            "totalTrainees": await trainee_repository.count(db),
            "activeSponsors": await sponsor_repository.count(db, is_active=True),
            "totalExams": await exam_repository.count(db),
            "activeExams": await exam_repository.count(db, is_active=True),
            "allocation": await allocation_service.allocation_summary(db),
            "ids": await id_lifecycle_service.get_id_statistics(db),
        }


settings_service = SettingsService()
