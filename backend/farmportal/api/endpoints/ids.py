from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from farmportal.api.dependencies import get_current_admin
from farmportal.core.database import get_db
from farmportal.core.exceptions import ResourceNotFoundError, ValidationError
from farmportal.models import IdType
from farmportal.repositories import resource_person_repository, staff_repository
from farmportal.schemas.common import MessageResponse
from farmportal.schemas.ids import (
    GenerateIdsRequest,
    GenerateIdsResponse,
    GeneratedIdResponse,
    IdEmailRequest,
    IdValidationResponse,
    IdAvailabilityResponse,
    IdReasonRequest,
    IdStatisticsResponse,
    FinalizeIdRequest,
    StaffResponse,
    ResourcePersonResponse,
)
from farmportal.services.id_lifecycle_service import id_lifecycle_service, parse_generated_id

router = APIRouter()


def _id_type_of(generated_id: str) -> IdType:
    parsed = parse_generated_id(generated_id)
    if not parsed:
        raise ValidationError(f"Malformed ID: {generated_id}", field="id")
    return parsed[0]


# ============== Generated ids ==============

@router.get("/ids", response_model=List[GeneratedIdResponse])
async def list_ids(
    type: Optional[IdType] = None,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await id_lifecycle_service.list_generated_ids(db, type)


@router.post("/ids/generate", response_model=GenerateIdsResponse, status_code=201)
async def generate_ids(
    body: GenerateIdsRequest,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return {"ids": await id_lifecycle_service.generate_new_ids(db, body.type, body.count)}


@router.get("/ids/statistics", response_model=IdStatisticsResponse)
async def id_statistics(
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await id_lifecycle_service.get_id_statistics(db)


@router.get("/ids/{generated_id}", response_model=GeneratedIdResponse)
async def get_id(
    generated_id: str,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    record = await id_lifecycle_service.get_detailed_id_info(db, generated_id)
    if not record:
        raise ResourceNotFoundError("Generated ID", generated_id)
    return record


@router.get("/ids/{generated_id}/availability", response_model=IdAvailabilityResponse,
            response_model_exclude_none=True)
async def id_availability(
    generated_id: str,
    type: Optional[IdType] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    """Whether the id can still be used for a new registration"""
    id_type = type or _id_type_of(generated_id)
    return await id_lifecycle_service.validate_id_availability(db, generated_id, id_type)


@router.post("/ids/{generated_id}/validate", response_model=IdValidationResponse,
             response_model_exclude_none=True)
async def validate_id(
    generated_id: str,
    body: IdEmailRequest,
    db: AsyncSession = Depends(get_db)
):
    return await id_lifecycle_service.validate_and_activate_id(db, generated_id, body.email)


@router.post("/ids/{generated_id}/activate", response_model=GeneratedIdResponse)
async def activate_id(
    generated_id: str,
    body: IdEmailRequest,
    db: AsyncSession = Depends(get_db)
):
    """Reserve the id for the email (available -> assigned)"""
    return await id_lifecycle_service.activate_id(db, generated_id, body.email)


@router.post("/ids/{generated_id}/finalize")
async def finalize_id(
    generated_id: str,
    body: FinalizeIdRequest,
    db: AsyncSession = Depends(get_db)
):
    """Complete registration for an assigned id (assigned -> activated)"""
    id_type = _id_type_of(generated_id)
    person = await id_lifecycle_service.finalize_id_activation(
        db, generated_id, body.email, body.profile_for(id_type)
    )
    schema = StaffResponse if id_type == IdType.STAFF else ResourcePersonResponse
    return {
        "message": "ID activated successfully",
        "person": schema.model_validate(person).model_dump(by_alias=True, mode="json"),
    }


@router.post("/ids/{generated_id}/free", response_model=GeneratedIdResponse)
async def free_id(
    generated_id: str,
    body: IdReasonRequest,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    reason = body.reason or "Manually freed by admin"
    return await id_lifecycle_service.admin_free_id(db, generated_id, reason)


@router.post("/ids/{generated_id}/deactivate", response_model=GeneratedIdResponse)
async def deactivate_id(
    generated_id: str,
    body: IdReasonRequest,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    reason = body.reason or "Deactivated by admin"
    return await id_lifecycle_service.admin_deactivate_id(db, generated_id, reason)


# ============== Staff & resource persons ==============

@router.get("/staff", response_model=List[StaffResponse])
async def list_staff(
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await staff_repository.list_all(db, order_by="-created_at")


@router.delete("/staff/{staff_id}", response_model=MessageResponse)
async def delete_staff(
    staff_id: str,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """Delete the staff record and return its id to the pool"""
    await id_lifecycle_service.delete_staff_and_free_id(db, staff_id)
    return {"message": "Staff deleted and ID freed successfully"}


@router.get("/resource-persons", response_model=List[ResourcePersonResponse])
async def list_resource_persons(
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    return await resource_person_repository.list_all(db, order_by="-created_at")


@router.delete("/resource-persons/{rp_id}", response_model=MessageResponse)
async def delete_resource_person(
    rp_id: str,
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    await id_lifecycle_service.delete_resource_person_and_free_id(db, rp_id)
    return {"message": "Resource person deleted and ID freed successfully"}
