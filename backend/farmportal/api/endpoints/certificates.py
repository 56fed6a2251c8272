from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from farmportal.api.dependencies import get_current_admin
from farmportal.core.database import get_db
from farmportal.schemas.catalog import CertificateRecipient
from farmportal.services.certificate_service import certificate_service

router = APIRouter()


@router.get("/certificates/recipients", response_model=List[CertificateRecipient])
async def list_certificate_recipients(
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """Staff, resource persons and trainees, each with a fresh certificate id"""
    return await certificate_service.list_recipients(db)


@router.get("/certificates/{role}/{person_id}")
async def download_certificate(
    role: str,
    person_id: str,
    certificate_id: Optional[str] = Query(None, alias="certificateId"),
    db: AsyncSession = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """One certificate as an HTML attachment; pass the listed certificateId to keep it stable"""
    filename, content = await certificate_service.certificate_for(db, role, person_id, certificate_id)
    return Response(
        content=content,
        media_type="text/html",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
