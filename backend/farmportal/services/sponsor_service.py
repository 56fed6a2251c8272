"""
Sponsor and batch management.

At most one sponsor is active: activating one first deactivates every
sponsor, then sets the chosen one, in a single transaction.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from farmportal.core.exceptions import ResourceNotFoundError
from farmportal.core.logging_config import logger
from farmportal.models import Sponsor, Batch
from farmportal.repositories import sponsor_repository, batch_repository


class SponsorService:

    # ==================== SPONSORS ====================

    async def list_sponsors(self, db: AsyncSession) -> List[Sponsor]:
        return await sponsor_repository.list_all(db, order_by="-created_at")

    async def get_sponsor(self, db: AsyncSession, sponsor_id: str) -> Sponsor:
        sponsor = await sponsor_repository.get(db, sponsor_id)
        if not sponsor:
            raise ResourceNotFoundError("Sponsor", sponsor_id)
        return sponsor

    async def get_active_sponsor(self, db: AsyncSession) -> Optional[Sponsor]:
        return await sponsor_repository.first_by(db, order_by="-updated_at", is_active=True)

    async def _deactivate_all(self, db: AsyncSession) -> int:
        return await sponsor_repository.update_where(db, {"is_active": True}, is_active=False)

    async def create_sponsor(self, db: AsyncSession, data: Dict[str, Any]) -> Sponsor:
        if data.get("is_active"):
            await self._deactivate_all(db)
        sponsor = await sponsor_repository.create(db, **data)
        await db.commit()
        logger.info(f"[Sponsors] Created {sponsor.name} (active={sponsor.is_active})")
        return await sponsor_repository.get(db, sponsor.id)

    async def update_sponsor(self, db: AsyncSession, sponsor_id: str, data: Dict[str, Any]) -> Sponsor:
        await self.get_sponsor(db, sponsor_id)
        if data.get("is_active"):
            deactivated = await self._deactivate_all(db)
            logger.info(f"[Sponsors] Deactivated {deactivated} sponsor(s) before activating {sponsor_id}")
        if data:
            await sponsor_repository.update(db, sponsor_id, **data)
        await db.commit()
        return await sponsor_repository.get(db, sponsor_id)

    async def delete_sponsor(self, db: AsyncSession, sponsor_id: str) -> None:
        if not await sponsor_repository.delete(db, sponsor_id):
            raise ResourceNotFoundError("Sponsor", sponsor_id)
        await db.commit()
        logger.info(f"[Sponsors] Deleted {sponsor_id}")

    # ==================== BATCHES ====================

    async def list_batches(self, db: AsyncSession) -> List[Batch]:
        return await batch_repository.list_all(db, order_by="-created_at")

    async def create_batch(self, db: AsyncSession, data: Dict[str, Any]) -> Batch:
        batch = await batch_repository.create(db, **data)
        await db.commit()
        return await batch_repository.get(db, batch.id)

    async def update_batch(self, db: AsyncSession, batch_id: str, data: Dict[str, Any]) -> Batch:
        if not await batch_repository.get(db, batch_id):
            raise ResourceNotFoundError("Batch", batch_id)
        if data:
            await batch_repository.update(db, batch_id, **data)
            await db.commit()
        return await batch_repository.get(db, batch_id)

    async def delete_batch(self, db: AsyncSession, batch_id: str) -> None:
        if not await batch_repository.delete(db, batch_id):
            raise ResourceNotFoundError("Batch", batch_id)
        await db.commit()


sponsor_service = SponsorService()
