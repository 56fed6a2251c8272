"""
ID Lifecycle Service - staff and resource-person ids

States:
    available -> assigned -> activated
    assigned/activated -> available   (freed by admin or user deletion)
    any -> deactivated                (terminal)

Ids look like ST-0C0S0S{n} / RP-0C0S0S{n}. The id is the primary key, so
two generators racing for the same number collide on insert and the loser
retries with the next number. Status transitions are conditional UPDATEs
against the current status.
"""

import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from farmportal.core.exceptions import ConflictError, IdLifecycleError, ResourceNotFoundError, ValidationError
from farmportal.core.logging_config import logger
from farmportal.models import GeneratedId, IdStatus, IdType
from farmportal.repositories import (
    generated_id_repository,
    resource_person_repository,
    staff_repository,
)


ID_PREFIXES = {
    IdType.STAFF: "ST",
    IdType.RESOURCE_PERSON: "RP",
}
ID_INFIX = "0C0S0S"
ID_PATTERN = re.compile(r"^(ST|RP)-0C0S0S(\d+)$")

MAX_GENERATION_ATTEMPTS = 5
MAX_BULK_GENERATION = 100

TYPE_LABELS = {
    IdType.STAFF: "Staff",
    IdType.RESOURCE_PERSON: "Resource Person",
}


def format_generated_id(id_type: IdType, number: int) -> str:
    return f"{ID_PREFIXES[id_type]}-{ID_INFIX}{number}"


def parse_generated_id(value: str) -> Optional[Tuple[IdType, int]]:
    """'ST-0C0S0S12' -> (IdType.STAFF, 12); None for anything malformed"""
    match = ID_PATTERN.match((value or "").strip())
    if not match:
        return None
    id_type = IdType.STAFF if match.group(1) == "ST" else IdType.RESOURCE_PERSON
    return id_type, int(match.group(2))


class IdLifecycleService:
    """Generates, assigns, activates and frees staff/resource-person ids"""

    def _registration_repository(self, id_type: IdType):
        return staff_repository if id_type == IdType.STAFF else resource_person_repository

    async def _require(self, db: AsyncSession, generated_id: str) -> GeneratedId:
        record = await generated_id_repository.get(db, generated_id)
        if not record:
            raise ResourceNotFoundError("Generated ID", generated_id)
        return record

    # ==================== GENERATION ====================

    async def _generate(self, db: AsyncSession, id_type: IdType) -> str:
        for attempt in range(1, MAX_GENERATION_ATTEMPTS + 1):
            number = await generated_id_repository.max_sequence(db, id_type) + 1
            new_id = format_generated_id(id_type, number)
            try:
                await generated_id_repository.create(
                    db,
                    id=new_id,
                    type=id_type,
                    sequence=number,
                    status=IdStatus.AVAILABLE,
                    usage_count=0,
                )
                await db.commit()
            except IntegrityError:
                await db.rollback()
                logger.warning(f"[IDs] {new_id} taken concurrently (attempt {attempt}), retrying")
                continue

            logger.info(f"[IDs] Generated {new_id}")
            return new_id

        raise ConflictError(f"Failed to generate {TYPE_LABELS[id_type]} ID")

    async def generate_staff_id(self, db: AsyncSession) -> str:
        return await self._generate(db, IdType.STAFF)

    async def generate_resource_person_id(self, db: AsyncSession) -> str:
        return await self._generate(db, IdType.RESOURCE_PERSON)

    async def generate_new_ids(self, db: AsyncSession, id_type: IdType, count: int = 1) -> List[str]:
        if count < 1 or count > MAX_BULK_GENERATION:
            raise ValidationError(f"Count must be between 1 and {MAX_BULK_GENERATION}", field="count")
        return [await self._generate(db, id_type) for _ in range(count)]

    # ==================== ACTIVATION ====================

    async def validate_and_activate_id(self, db: AsyncSession, generated_id: str, email: str) -> Dict[str, Any]:
        """Check whether ``email`` may claim ``generated_id``; never raises for business rules"""
        email = email.strip().lower()
        record = await generated_id_repository.get(db, generated_id.strip())
        if not record:
            return {"isValid": False, "message": "ID does not exist or has not been generated."}

        if record.status == IdStatus.ASSIGNED and (record.assigned_to or "").lower() != email:
            return {"isValid": False, "message": "This ID is already assigned to another person."}

        if record.status == IdStatus.ACTIVATED:
            return {"isValid": False, "message": "This ID is already activated and cannot be used again."}

        if record.status == IdStatus.DEACTIVATED:
            return {"isValid": False, "message": "This ID has been deactivated and cannot be used."}

        if await generated_id_repository.exists(db, assigned_to=email, status=IdStatus.ACTIVATED):
            return {
                "isValid": False,
                "message": "You already have an activated ID. Each person can only have one ID.",
            }

        return {"isValid": True, "message": "ID is valid and available for activation.", "idData": record}

    async def activate_id(self, db: AsyncSession, generated_id: str, email: str) -> GeneratedId:
        """available -> assigned for ``email``; repeating the call for the same email is a no-op"""
        email = email.strip().lower()
        record = await self._require(db, generated_id)

        if record.status == IdStatus.ASSIGNED and (record.assigned_to or "").lower() == email:
            return record

        won = await generated_id_repository.claim(
            db, generated_id,
            expected={"status": IdStatus.AVAILABLE},
            status=IdStatus.ASSIGNED,
            assigned_to=email,
            assigned_at=datetime.utcnow(),
        )
        await db.commit()
        if not won:
            raise IdLifecycleError("This ID is no longer available.", generated_id)

        logger.info(f"[IDs] {generated_id} assigned to {email}")
        return await generated_id_repository.get(db, generated_id)

    async def finalize_id_activation(
        self,
        db: AsyncSession,
        generated_id: str,
        email: str,
        profile: Dict[str, Any],
    ):
        """assigned -> activated, and create the staff/resource-person record keyed by the id"""
        email = email.strip().lower()
        record = await self._require(db, generated_id)
        repository = self._registration_repository(record.type)

        if await repository.exists(db, id=generated_id):
            raise ConflictError(f"ID {generated_id} is already in use by another person.")

        won = await generated_id_repository.claim(
            db, generated_id,
            expected={"status": IdStatus.ASSIGNED, "assigned_to": email},
            status=IdStatus.ACTIVATED,
            activated_at=datetime.utcnow(),
        )
        if not won:
            await db.rollback()
            raise IdLifecycleError("ID must be assigned to you before it can be activated.", generated_id)

        person = await repository.create(db, id=generated_id, email=email, **profile)
        await db.commit()

        logger.info(f"[IDs] {generated_id} activated for {email}")
        return person

    # ==================== ADMIN ====================

    async def admin_free_id(self, db: AsyncSession, generated_id: str, reason: str = "Manually freed by admin") -> GeneratedId:
        """Return an assigned or activated id to the pool; deactivated ids stay retired"""
        record = await self._require(db, generated_id)
        if record.status == IdStatus.DEACTIVATED:
            raise IdLifecycleError("Deactivated IDs cannot be freed.", generated_id)
        if record.status == IdStatus.AVAILABLE:
            return record

        won = await generated_id_repository.claim(
            db, generated_id,
            expected={"status": record.status},
            status=IdStatus.AVAILABLE,
            assigned_to=None,
            assigned_at=None,
            freed_at=datetime.utcnow(),
            freed_reason=reason,
            last_assigned_to=record.assigned_to,
            last_assigned_at=record.assigned_at,
            usage_count=(record.usage_count or 0) + 1,
        )
        if not won:
            await db.rollback()
            raise IdLifecycleError("ID changed while it was being freed, try again.", generated_id)
        await db.commit()
        logger.info(f"[IDs] {generated_id} freed: {reason}")
        return await generated_id_repository.get(db, generated_id)

    async def admin_deactivate_id(self, db: AsyncSession, generated_id: str, reason: str = "Deactivated by admin") -> GeneratedId:
        await self._require(db, generated_id)
        await generated_id_repository.update(
            db, generated_id,
            status=IdStatus.DEACTIVATED,
            deactivated_at=datetime.utcnow(),
            deactivation_reason=reason,
        )
        await db.commit()
        logger.info(f"[IDs] {generated_id} deactivated: {reason}")
        return await generated_id_repository.get(db, generated_id)

    async def _delete_person_and_free_id(self, db: AsyncSession, id_type: IdType, person_id: str) -> bool:
        repository = self._registration_repository(id_type)
        deleted = await repository.delete(db, person_id)
        if not deleted:
            raise ResourceNotFoundError(TYPE_LABELS[id_type], person_id)

        record = await generated_id_repository.first_by(db, id=person_id, type=id_type)
        if record:
            await generated_id_repository.update(
                db, person_id,
                status=IdStatus.AVAILABLE,
                assigned_to=None,
                assigned_at=None,
                freed_at=datetime.utcnow(),
                freed_reason="User deleted by admin",
                last_assigned_to=record.assigned_to,
                last_assigned_at=record.assigned_at,
                usage_count=(record.usage_count or 0) + 1,
            )
        await db.commit()
        logger.info(f"[IDs] Deleted {TYPE_LABELS[id_type].lower()} {person_id}, id freed for reuse")
        return True

    async def delete_staff_and_free_id(self, db: AsyncSession, staff_id: str) -> bool:
        return await self._delete_person_and_free_id(db, IdType.STAFF, staff_id)

    async def delete_resource_person_and_free_id(self, db: AsyncSession, rp_id: str) -> bool:
        return await self._delete_person_and_free_id(db, IdType.RESOURCE_PERSON, rp_id)

    # ==================== QUERIES ====================

    async def is_id_in_use(self, db: AsyncSession, generated_id: str, id_type: IdType) -> bool:
        return await self._registration_repository(id_type).exists(db, id=generated_id)

    async def validate_id_availability(self, db: AsyncSession, generated_id: str, id_type: IdType) -> Dict[str, Any]:
        record = await generated_id_repository.first_by(db, id=generated_id, type=id_type)
        if not record:
            return {
                "isAvailable": False,
                "error": f"ID {generated_id} does not exist in the system. "
                         f"Please generate a new {TYPE_LABELS[id_type]} ID first.",
            }

        if record.status == IdStatus.ASSIGNED:
            return {
                "isAvailable": False,
                "error": f"ID {generated_id} is already assigned to {record.assigned_to or 'another person'}.",
                "currentUser": record.assigned_to,
            }

        if record.status == IdStatus.ACTIVATED:
            return {
                "isAvailable": False,
                "error": f"ID {generated_id} is already activated and cannot be used for registration.",
            }

        if record.status == IdStatus.DEACTIVATED:
            return {
                "isAvailable": False,
                "error": f"ID {generated_id} has been deactivated.",
            }

        if await self.is_id_in_use(db, generated_id, id_type):
            return {
                "isAvailable": False,
                "error": f"ID {generated_id} is already in use by another person.",
            }

        return {"isAvailable": True}

    async def get_detailed_id_info(self, db: AsyncSession, generated_id: str) -> Optional[GeneratedId]:
        return await generated_id_repository.get(db, generated_id)

    async def list_generated_ids(self, db: AsyncSession, id_type: Optional[IdType] = None) -> List[GeneratedId]:
        """Newest first"""
        if id_type:
            return await generated_id_repository.find_by(db, order_by="-created_at", type=id_type)
        return await generated_id_repository.list_all(db, order_by="-created_at")

    async def get_id_statistics(self, db: AsyncSession) -> Dict[str, Any]:
        records = await generated_id_repository.list_all(db)

        def tally(rows: List[GeneratedId]) -> Dict[str, int]:
            return {
                "total": len(rows),
                "available": sum(1 for r in rows if r.status == IdStatus.AVAILABLE),
                "assigned": sum(1 for r in rows if r.status == IdStatus.ASSIGNED),
                "activated": sum(1 for r in rows if r.status == IdStatus.ACTIVATED),
                "deactivated": sum(1 for r in rows if r.status == IdStatus.DEACTIVATED),
                "freed": sum(1 for r in rows if r.freed_at is not None),
            }

        stats = tally(records)
        stats["byType"] = {
            id_type.value: tally([r for r in records if r.type == id_type])
            for id_type in IdType
        }
        return stats


id_lifecycle_service = IdLifecycleService()
