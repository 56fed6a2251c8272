from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from farmportal.api.dependencies import get_current_admin
from farmportal.core.database import get_db
from farmportal.schemas.common import MessageResponse
from farmportal.schemas.catalog import (
    SponsorCreate,
    SponsorUpdate,
    SponsorResponse,
    BatchCreate,
    BatchUpdate,
    BatchResponse,
)
from farmportal.services.sponsor_service import sponsor_service

router = APIRouter()


# ============== Sponsors ==============

@router.get("/sponsors", response_model=List[SponsorResponse])
async def list_sponsors(db: AsyncSession = Depends(get_db)):
    return await sponsor_service.list_sponsors(db)


@router.get("/sponsors/active", response_model=Optional[SponsorResponse])
async def get_active_sponsor(db: AsyncSession = Depends(get_db)):
    """The sponsor currently open for registration, or null"""
    return await sponsor_service.get_active_sponsor(db)


@router.post("/sponsors", response_model=SponsorResponse, status_code=201)
async def create_sponsor(
    body: SponsorCreate,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await sponsor_service.create_sponsor(db, body.model_dump())


@router.patch("/sponsors/{sponsor_id}", response_model=SponsorResponse)
async def update_sponsor(
    sponsor_id: str,
    body: SponsorUpdate,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """Partial update; isActive=true deactivates every other sponsor"""
    return await sponsor_service.update_sponsor(db, sponsor_id, body.model_dump(exclude_unset=True))


@router.delete("/sponsors/{sponsor_id}", response_model=MessageResponse)
async def delete_sponsor(
    sponsor_id: str,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    await sponsor_service.delete_sponsor(db, sponsor_id)
    return {"message": "Sponsor deleted successfully"}


# ============== Batches ==============

@router.get("/batches", response_model=List[BatchResponse])
async def list_batches(db: AsyncSession = Depends(get_db)):
    return await sponsor_service.list_batches(db)


@router.post("/batches", response_model=BatchResponse, status_code=201)
async def create_batch(
    body: BatchCreate,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await sponsor_service.create_batch(db, body.model_dump())


@router.patch("/batches/{batch_id}", response_model=BatchResponse)
async def update_batch(
    batch_id: str,
    body: BatchUpdate,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await sponsor_service.update_batch(db, batch_id, body.model_dump(exclude_unset=True))


@router.delete("/batches/{batch_id}", response_model=MessageResponse)
async def delete_batch(
    batch_id: str,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    await sponsor_service.delete_batch(db, batch_id)
    return {"message": "Batch deleted successfully"}
