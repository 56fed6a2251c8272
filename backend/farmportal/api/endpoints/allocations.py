from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from farmportal.api.dependencies import get_current_admin
from farmportal.core.database import get_db
from farmportal.core.logging_config import logger
from farmportal.models import AllocationStatus, TagStatus
from farmportal.schemas.allocation import (
    TraineeResponse,
    RoomCreate,
    RoomUpdate,
    RoomResponse,
    TagCreate,
    TagResponse,
    SyncResponse,
    CleanupResponse,
    FixStatusResponse,
    MigrateResponse,
    RoomAllocationResponse,
    DeleteResultResponse,
)
from farmportal.services.allocation_service import allocation_service

router = APIRouter()


# ============== Rooms ==============

@router.get("/rooms", response_model=List[RoomResponse])
async def list_rooms(
    block: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await allocation_service.list_rooms(db, block)


@router.post("/rooms", response_model=RoomResponse, status_code=201)
async def create_room(
    body: RoomCreate,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await allocation_service.create_room(
        db, body.room_number, body.block, body.bed_space, body.status
    )


@router.patch("/rooms/{room_id}", response_model=RoomResponse)
async def update_room(
    room_id: str,
    body: RoomUpdate,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await allocation_service.update_room(db, room_id, **body.model_dump(exclude_unset=True))


@router.delete("/rooms/{room_id}", response_model=DeleteResultResponse)
async def delete_room(
    room_id: str,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """Delete a room; its occupants go back to pending"""
    reset = await allocation_service.delete_room(db, room_id)
    return {"message": "Room deleted successfully", "trainees_reset": reset}


# ============== Tag numbers ==============

@router.get("/tags", response_model=List[TagResponse])
async def list_tags(
    status: Optional[TagStatus] = None,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await allocation_service.list_tags(db, status)


@router.post("/tags", response_model=List[TagResponse], status_code=201)
async def create_tags(
    body: TagCreate,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """Bulk create; blanks and existing tag numbers are skipped"""
    return await allocation_service.create_tags(db, body.tag_numbers)


@router.delete("/tags/{tag_id}", response_model=DeleteResultResponse)
async def delete_tag(
    tag_id: str,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    reset = await allocation_service.delete_tag(db, tag_id)
    return {"message": "Tag number deleted successfully", "trainees_reset": reset}


# ============== Allocation maintenance ==============

@router.post("/allocations/sync", response_model=SyncResponse)
async def synchronize_allocations(
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """Reconcile rooms and tags with trainees, then allocate whatever is free"""
    logger.info(f"[Allocation] Sync requested by {admin['email']}")
    result = await allocation_service.synchronize_allocations(db)
    return result.to_dict()


@router.post("/allocations/cleanup-rooms", response_model=CleanupResponse)
async def cleanup_rooms(
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await allocation_service.cleanup_invalid_room_assignments(db)


@router.post("/allocations/cleanup-tags", response_model=CleanupResponse)
async def cleanup_tags(
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await allocation_service.cleanup_invalid_tag_assignments(db)


@router.post("/allocations/fix-status", response_model=FixStatusResponse)
async def fix_status(
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await allocation_service.fix_allocation_status(db)


@router.post("/allocations/migrate", response_model=MigrateResponse)
async def migrate_trainees(
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await allocation_service.migrate_existing_trainees(db)


@router.get("/allocations/summary", response_model=Dict[str, int])
async def allocation_summary(
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await allocation_service.allocation_summary(db)


@router.get("/allocations/trainees", response_model=List[TraineeResponse])
async def trainees_by_status(
    status: AllocationStatus = Query(...),
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await allocation_service.get_trainees_by_status(db, status)


@router.post("/allocations/trainees/{trainee_id}/room", response_model=RoomAllocationResponse)
async def allocate_room(
    trainee_id: str,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    allocation = await allocation_service.allocate_room(db, trainee_id)
    if allocation is None:
        return {"allocated": False, "message": "No available rooms for this trainee"}
    return {"allocated": True, "message": "Room allocated successfully", **allocation}
