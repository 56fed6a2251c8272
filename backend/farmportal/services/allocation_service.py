"""
Allocation Service - room/tag reconciliation and allocation

Handles:
- synchronize_allocations: bring room status, tag status and trainee
  allocation fields back into agreement, then allocate tags and rooms
- cleanup of trainees pointing at deleted rooms/tags
- allocation status repair and legacy migration
- room/tag writes (capacity is resolved here, once, when a room is written)

Every batch operation works on plain snapshots of the rows so that a
per-record rollback never leaves expired ORM objects behind. Tag and room
claims are conditional UPDATEs: a claim only succeeds if the row still holds
the value this run read, so concurrent runs cannot hand out the same tag or
bed twice. The trainee write that follows a claim is conditional as well and
commits in the same transaction; if another run got to the trainee first,
the rollback returns the tag or bed.
"""

import time
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from farmportal.core.exceptions import ConflictError, ResourceNotFoundError, ValidationError
from farmportal.core.logging_config import logger
from farmportal.models import (
    AllocationStatus,
    Gender,
    PENDING,
    Room,
    RoomStatus,
    TagNumber,
    TagStatus,
    Trainee,
    is_pending_value,
)
from farmportal.repositories import room_repository, tag_repository, trainee_repository
from farmportal.services.allocation_policy import (
    block_matches_gender,
    derive_allocation_status,
    derive_room_status,
    is_occupied_status,
    normalize_block,
    resolve_bed_capacity,
    room_key,
)


ProgressCallback = Callable[[int, int, str], None]


def _report(on_progress: Optional[ProgressCallback], current: int, total: int, status: str) -> None:
    if on_progress is not None:
        on_progress(current, total, status)


# ==================== SNAPSHOTS ====================

@dataclass
class TraineeSnapshot:
    id: str
    name: str
    gender: Optional[Gender]
    tag_number: Optional[str]
    room_number: Optional[str]
    room_block: Optional[str]
    bed_space: Optional[str]
    allocation_status: Optional[AllocationStatus]

    @classmethod
    def from_model(cls, trainee: Trainee) -> "TraineeSnapshot":
        return cls(
            id=trainee.id,
            name=f"{trainee.first_name} {trainee.surname}",
            gender=trainee.gender,
            tag_number=trainee.tag_number,
            room_number=trainee.room_number,
            room_block=trainee.room_block,
            bed_space=trainee.bed_space,
            allocation_status=trainee.allocation_status,
        )

    @property
    def has_room(self) -> bool:
        return not is_pending_value(self.room_number)

    @property
    def has_tag(self) -> bool:
        return not is_pending_value(self.tag_number)

    @property
    def room_location(self):
        return room_key(self.room_block, self.room_number)


@dataclass
class RoomSnapshot:
    id: str
    room_number: str
    block: str
    bed_space: str
    capacity: int
    status: RoomStatus
    # occupancy: trainees actually in the room; stored_occupancy: what the row says
    occupancy: int
    stored_occupancy: Optional[int]
    claimable: bool = True

    @classmethod
    def from_model(cls, room: Room, occupancy: Optional[int] = None) -> "RoomSnapshot":
        stored = room.current_occupancy
        return cls(
            id=room.id,
            room_number=room.room_number,
            block=room.block,
            bed_space=room.bed_space,
            capacity=room.capacity or resolve_bed_capacity(room.bed_space),
            status=room.status,
            occupancy=(stored or 0) if occupancy is None else occupancy,
            stored_occupancy=stored,
        )

    @property
    def free_beds(self) -> int:
        return self.capacity - self.occupancy


@dataclass
class TagSnapshot:
    id: str
    tag_no: str
    status: TagStatus

    @classmethod
    def from_model(cls, tag: TagNumber) -> "TagSnapshot":
        return cls(id=tag.id, tag_no=tag.tag_no, status=tag.status)


@dataclass
class SyncResult:
    allocated: int = 0
    no_rooms: int = 0
    no_tags: int = 0
    rooms_updated: int = 0
    tags_updated: int = 0
    inconsistencies: int = 0
    summary: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allocated": self.allocated,
            "noRooms": self.no_rooms,
            "noTags": self.no_tags,
            "roomsUpdated": self.rooms_updated,
            "tagsUpdated": self.tags_updated,
            "inconsistencies": self.inconsistencies,
            "summary": self.summary,
        }


def build_summary(
    trainees: List[TraineeSnapshot],
    rooms: List[RoomSnapshot],
    tags: List[TagSnapshot],
) -> Dict[str, int]:
    statuses = Counter(t.allocation_status for t in trainees)
    return {
        "totalTrainees": len(trainees),
        "allocatedTrainees": statuses[AllocationStatus.ALLOCATED],
        "pendingTrainees": statuses[AllocationStatus.PENDING],
        "noRoomsTrainees": statuses[AllocationStatus.NO_ROOMS],
        "noTagsTrainees": statuses[AllocationStatus.NO_TAGS],
        "totalRooms": len(rooms),
        "availableRooms": sum(1 for r in rooms if r.status == RoomStatus.AVAILABLE),
        "occupiedRooms": sum(1 for r in rooms if is_occupied_status(r.status)),
        "partiallyOccupiedRooms": sum(1 for r in rooms if r.status == RoomStatus.PARTIALLY_OCCUPIED),
        "maintenanceRooms": sum(1 for r in rooms if r.status == RoomStatus.MAINTENANCE),
        "totalTags": len(tags),
        "availableTags": sum(1 for t in tags if t.status == TagStatus.AVAILABLE),
        "assignedTags": sum(1 for t in tags if t.status == TagStatus.ASSIGNED),
    }


class AllocationService:
    """Room/tag reconciliation and allocation"""

    # ==================== LOADING ====================

    async def _load_trainees(self, db: AsyncSession) -> List[TraineeSnapshot]:
        rows = await trainee_repository.list_all(db, order_by=["created_at", "id"])
        return [TraineeSnapshot.from_model(t) for t in rows]

    async def _load_rooms(self, db: AsyncSession, trainees: List[TraineeSnapshot]) -> List[RoomSnapshot]:
        occupancy = Counter(t.room_location for t in trainees if t.has_room)
        rows = await room_repository.list_all(db, order_by=["created_at", "block", "room_number"])
        return [
            RoomSnapshot.from_model(r, occupancy.get(room_key(r.block, r.room_number), 0))
            for r in rows
        ]

    async def _load_tags(self, db: AsyncSession) -> List[TagSnapshot]:
        rows = await tag_repository.list_all(db, order_by=["created_at", "tag_no"])
        return [TagSnapshot.from_model(t) for t in rows]

    async def _set_trainee(self, db: AsyncSession, trainee: TraineeSnapshot, **values: Any) -> None:
        """Write trainee fields, commit, and mirror them onto the snapshot"""
        await trainee_repository.update(db, trainee.id, **values)
        await db.commit()
        for name, value in values.items():
            setattr(trainee, name, value)

    async def _claim_trainee(self, db: AsyncSession, trainee: TraineeSnapshot, guard: str, **values: Any) -> bool:
        """
        Write trainee fields only if ``guard`` still holds the value this run
        read, committing together with any claim already made in the open
        transaction. A lost claim rolls everything back and reloads the snapshot.
        """
        won = await trainee_repository.claim(
            db, trainee.id, expected={guard: getattr(trainee, guard)}, **values
        )
        if not won:
            await db.rollback()
            row = await trainee_repository.get(db, trainee.id)
            if row is not None:
                for name, value in vars(TraineeSnapshot.from_model(row)).items():
                    setattr(trainee, name, value)
            logger.info(f"[Allocation] {trainee.name} changed concurrently, skipped")
            return False

        await db.commit()
        for name, value in values.items():
            setattr(trainee, name, value)
        return True

    # ==================== SYNCHRONIZE ====================

    async def synchronize_allocations(
        self,
        db: AsyncSession,
        on_progress: Optional[ProgressCallback] = None,
    ) -> SyncResult:
        """
        Full reconciliation run:

        1. load trainees, rooms and tags
        2. recompute room occupancy/status, write only what changed
        3. make tag status agree with who holds each tag
        4. hand out tags to trainees that need one (FIFO)
        5. hand out rooms to tagged trainees without one
        6. report counts and a summary of the final state
        """
        started = time.perf_counter()
        result = SyncResult()

        _report(on_progress, 0, 0, "Loading trainees, rooms and tags...")
        trainees = await self._load_trainees(db)
        rooms = await self._load_rooms(db, trainees)
        tags = await self._load_tags(db)
        logger.info(
            f"[Allocation] Sync started: {len(trainees)} trainees, {len(rooms)} rooms, {len(tags)} tags"
        )

        _report(on_progress, 0, len(rooms), "Reconciling room status...")
        await self._reconcile_rooms(db, rooms, result)

        _report(on_progress, 0, len(tags), "Reconciling tag status...")
        await self._reconcile_tags(db, trainees, tags, result)

        _report(on_progress, 0, len(trainees), "Allocating tag numbers...")
        await self._allocate_tags(db, trainees, tags, result, on_progress)

        _report(on_progress, 0, len(trainees), "Allocating rooms...")
        await self._allocate_rooms(db, trainees, rooms, result, on_progress)

        result.summary = build_summary(trainees, rooms, tags)
        _report(on_progress, len(trainees), len(trainees), "Synchronization completed!")

        logger.log_reconciliation(
            "synchronize_allocations",
            result.to_dict(),
            duration_ms=(time.perf_counter() - started) * 1000,
        )
        return result

    async def _reconcile_rooms(self, db: AsyncSession, rooms: List[RoomSnapshot], result: SyncResult) -> None:
        for room in rooms:
            if room.status == RoomStatus.MAINTENANCE:
                target_status = RoomStatus.MAINTENANCE
            else:
                target_status = derive_room_status(room.capacity, room.occupancy)

            if room.status == target_status and room.stored_occupancy == room.occupancy:
                continue

            try:
                won = await room_repository.claim(
                    db, room.id,
                    expected={"current_occupancy": room.stored_occupancy, "status": room.status},
                    status=target_status,
                    current_occupancy=room.occupancy,
                )
                await db.commit()
            except Exception as e:
                await db.rollback()
                room.claimable = False
                result.inconsistencies += 1
                logger.log_error_with_context(e, "allocation.reconcile_rooms", room_id=room.id)
                continue

            if not won:
                # Another run moved the row since we read it; the next run settles it
                room.claimable = False
                logger.info(f"[Allocation] Room {room.block}/{room.room_number} changed concurrently, left as is")
                continue

            logger.debug(
                f"[Allocation] Room {room.block}/{room.room_number}: "
                f"{room.status} -> {target_status}, occupancy {room.stored_occupancy} -> {room.occupancy}"
            )
            room.status = target_status
            room.stored_occupancy = room.occupancy
            result.rooms_updated += 1

    async def _reconcile_tags(
        self,
        db: AsyncSession,
        trainees: List[TraineeSnapshot],
        tags: List[TagSnapshot],
        result: SyncResult,
    ) -> None:
        holders: Dict[str, List[str]] = defaultdict(list)
        for trainee in trainees:
            if trainee.has_tag:
                holders[trainee.tag_number].append(trainee.id)

        for tag in tags:
            held_by = holders.get(tag.tag_no, [])
            if len(held_by) > 1:
                result.inconsistencies += 1
                logger.warning(f"[Allocation] Tag {tag.tag_no} is held by {len(held_by)} trainees: {held_by}")

            if held_by and tag.status != TagStatus.ASSIGNED:
                target = TagStatus.ASSIGNED
            elif not held_by and tag.status == TagStatus.ASSIGNED:
                target = TagStatus.AVAILABLE
            else:
                continue

            try:
                if target == TagStatus.AVAILABLE and await trainee_repository.exists(db, tag_number=tag.tag_no):
                    # Handed out after our trainees were loaded
                    continue
                won = await tag_repository.claim(db, tag.id, expected={"status": tag.status}, status=target)
                await db.commit()
            except Exception as e:
                await db.rollback()
                result.inconsistencies += 1
                logger.log_error_with_context(e, "allocation.reconcile_tags", tag_no=tag.tag_no)
                continue

            if won:
                logger.debug(f"[Allocation] Tag {tag.tag_no}: {tag.status} -> {target}")
                tag.status = target
                result.tags_updated += 1
            else:
                logger.warning(f"[Allocation] Tag {tag.tag_no} changed concurrently, left as is")

    async def _claim_next_tag(self, db: AsyncSession, available: List[TagSnapshot]) -> Optional[TagSnapshot]:
        """Claim the first tag still available; the claim is left uncommitted for the trainee write"""
        while available:
            tag = available.pop(0)
            won = await tag_repository.claim(
                db, tag.id, expected={"status": TagStatus.AVAILABLE}, status=TagStatus.ASSIGNED
            )
            if won:
                return tag
            await db.rollback()
            logger.info(f"[Allocation] Tag {tag.tag_no} was claimed elsewhere, trying the next one")
        return None

    async def _allocate_tags(
        self,
        db: AsyncSession,
        trainees: List[TraineeSnapshot],
        tags: List[TagSnapshot],
        result: SyncResult,
        on_progress: Optional[ProgressCallback],
    ) -> None:
        needing = [
            t for t in trainees
            if t.allocation_status == AllocationStatus.PENDING or not t.has_tag
        ]
        available = [t for t in tags if t.status == TagStatus.AVAILABLE]
        logger.info(f"[Allocation] {len(needing)} trainees need a tag, {len(available)} tags available")

        for index, trainee in enumerate(needing, start=1):
            _report(on_progress, index, len(needing), f"Tag for {trainee.name}...")
            try:
                if trainee.has_tag:
                    # Pending trainee who already holds a real tag keeps it
                    if trainee.allocation_status != AllocationStatus.ALLOCATED:
                        await self._claim_trainee(
                            db, trainee, "tag_number", allocation_status=AllocationStatus.ALLOCATED
                        )
                    continue

                tag = await self._claim_next_tag(db, available)
                if tag is None:
                    if trainee.allocation_status == AllocationStatus.NO_TAGS or await self._claim_trainee(
                        db, trainee, "tag_number", allocation_status=AllocationStatus.NO_TAGS
                    ):
                        result.no_tags += 1
                    continue

                try:
                    won = await self._claim_trainee(
                        db, trainee, "tag_number",
                        tag_number=tag.tag_no,
                        allocation_status=AllocationStatus.ALLOCATED,
                    )
                except Exception:
                    await db.rollback()
                    available.insert(0, tag)
                    raise

                if not won:
                    # Rolled back with the trainee write, so the tag is free again
                    available.insert(0, tag)
                    continue

                tag.status = TagStatus.ASSIGNED
                result.allocated += 1
                logger.info(f"[Allocation] Tag {tag.tag_no} -> {trainee.name}")

            except Exception as e:
                await db.rollback()
                result.inconsistencies += 1
                logger.log_error_with_context(e, "allocation.allocate_tags", trainee_id=trainee.id)

    async def _claim_room(
        self,
        db: AsyncSession,
        trainee: TraineeSnapshot,
        rooms: List[RoomSnapshot],
    ) -> Optional[Tuple[RoomSnapshot, int, RoomStatus]]:
        """
        First room in the trainee's gender blocks with a free bed, claimed by CAS
        on occupancy. Returns the room with its new occupancy and status; the
        claim is left uncommitted for the trainee write.
        """
        for room in rooms:
            if not room.claimable or room.status == RoomStatus.MAINTENANCE:
                continue
            if not block_matches_gender(room.block, trainee.gender) or room.free_beds <= 0:
                continue

            new_occupancy = room.occupancy + 1
            new_status = derive_room_status(room.capacity, new_occupancy)
            won = await room_repository.claim(
                db, room.id,
                expected={"current_occupancy": room.stored_occupancy},
                current_occupancy=new_occupancy,
                status=new_status,
            )
            if won:
                return room, new_occupancy, new_status
            await db.rollback()

            # Lost the race: resync this room from the row and move on
            fresh = await room_repository.get(db, room.id)
            if fresh is None:
                room.claimable = False
            else:
                room.stored_occupancy = fresh.current_occupancy
                room.occupancy = fresh.current_occupancy or 0
                room.status = fresh.status
            logger.info(f"[Allocation] Room {room.block}/{room.room_number} changed concurrently, trying the next one")
        return None

    async def _assign_room(self, db: AsyncSession, trainee: TraineeSnapshot, rooms: List[RoomSnapshot]) -> Optional[RoomSnapshot]:
        """Claim a bed and move the trainee in; None when no bed is free or another run placed the trainee"""
        claimed = await self._claim_room(db, trainee, rooms)
        if claimed is None:
            return None
        room, occupancy, status = claimed
        try:
            won = await self._claim_trainee(
                db, trainee, "room_number",
                room_number=room.room_number,
                room_block=room.block,
                bed_space=room.bed_space,
                allocation_status=derive_allocation_status(True, trainee.has_tag),
            )
        except Exception:
            await db.rollback()
            raise
        if not won:
            return None

        room.occupancy = occupancy
        room.stored_occupancy = occupancy
        room.status = status
        return room

    async def _allocate_rooms(
        self,
        db: AsyncSession,
        trainees: List[TraineeSnapshot],
        rooms: List[RoomSnapshot],
        result: SyncResult,
        on_progress: Optional[ProgressCallback],
    ) -> None:
        needing = [
            t for t in trainees
            if not t.has_room and (
                t.allocation_status == AllocationStatus.ALLOCATED
                or (t.allocation_status == AllocationStatus.NO_ROOMS and t.has_tag)
            )
        ]
        logger.info(f"[Allocation] {len(needing)} trainees need a room")

        for index, trainee in enumerate(needing, start=1):
            _report(on_progress, index, len(needing), f"Room for {trainee.name}...")
            try:
                room = await self._assign_room(db, trainee, rooms)
                if room is None:
                    if trainee.has_room:
                        continue
                    if trainee.allocation_status == AllocationStatus.NO_ROOMS or await self._claim_trainee(
                        db, trainee, "room_number", allocation_status=AllocationStatus.NO_ROOMS
                    ):
                        result.no_rooms += 1
                    continue

                result.rooms_updated += 1
                logger.info(f"[Allocation] Room {room.block}/{room.room_number} -> {trainee.name}")

            except Exception as e:
                await db.rollback()
                result.inconsistencies += 1
                logger.log_error_with_context(e, "allocation.allocate_rooms", trainee_id=trainee.id)

    # ==================== SINGLE TRAINEE ====================

    async def allocate_room(self, db: AsyncSession, trainee_id: str) -> Optional[Dict[str, str]]:
        """Give one trainee the first free bed in their blocks; None if nothing is free"""
        trainee_row = await trainee_repository.get(db, trainee_id)
        if not trainee_row:
            raise ResourceNotFoundError("Trainee", trainee_id)
        if trainee_row.has_room:
            raise ValidationError("Trainee already has a room")

        trainees = await self._load_trainees(db)
        rooms = await self._load_rooms(db, trainees)
        trainee = next(t for t in trainees if t.id == trainee_id)

        room = await self._assign_room(db, trainee, rooms)
        if room is None:
            if trainee.has_room:
                raise ValidationError("Trainee already has a room")
            return None
        logger.info(f"[Allocation] Room {room.block}/{room.room_number} -> {trainee.name}")
        return {"roomNumber": room.room_number, "roomBlock": room.block, "bedSpace": room.bed_space}

    # ==================== CLEANUPS ====================

    async def cleanup_invalid_room_assignments(
        self,
        db: AsyncSession,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Dict[str, int]:
        """Reset trainees whose room no longer exists"""
        _report(on_progress, 0, 0, "Fetching trainees...")
        trainees = await self._load_trainees(db)
        _report(on_progress, 0, 0, "Fetching rooms...")
        rooms = await room_repository.list_all(db)
        valid_rooms = {room_key(r.block, r.room_number) for r in rooms}

        cleaned = errors = 0
        total = len(trainees)
        _report(on_progress, 0, total, "Checking room assignments...")

        for index, trainee in enumerate(trainees, start=1):
            _report(on_progress, index, total, f"Checking {trainee.name}...")
            if not trainee.has_room or is_pending_value(trainee.room_block):
                continue
            if trainee.room_location in valid_rooms:
                continue

            logger.info(
                f"[Allocation] {trainee.name} points at missing room {trainee.room_block}/{trainee.room_number}"
            )
            try:
                await self._set_trainee(
                    db, trainee,
                    room_number=PENDING,
                    room_block=PENDING,
                    bed_space=PENDING,
                    allocation_status=derive_allocation_status(False, trainee.has_tag),
                )
                cleaned += 1
            except Exception as e:
                await db.rollback()
                errors += 1
                logger.log_error_with_context(e, "allocation.cleanup_rooms", trainee_id=trainee.id)

        _report(on_progress, total, total, "Cleanup completed!")
        counts = {"cleaned": cleaned, "errors": errors}
        logger.log_reconciliation("cleanup_invalid_room_assignments", counts)
        return counts

    async def cleanup_invalid_tag_assignments(
        self,
        db: AsyncSession,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Dict[str, int]:
        """Reset trainees whose tag number no longer exists"""
        _report(on_progress, 0, 0, "Fetching trainees...")
        trainees = await self._load_trainees(db)
        _report(on_progress, 0, 0, "Fetching tag numbers...")
        valid_tags = {t.tag_no for t in await tag_repository.list_all(db)}

        cleaned = errors = 0
        total = len(trainees)
        _report(on_progress, 0, total, "Checking tag assignments...")

        for index, trainee in enumerate(trainees, start=1):
            _report(on_progress, index, total, f"Checking {trainee.name}...")
            if not trainee.has_tag or trainee.tag_number in valid_tags:
                continue

            logger.info(f"[Allocation] {trainee.name} holds missing tag {trainee.tag_number}")
            try:
                await self._set_trainee(
                    db, trainee,
                    tag_number=PENDING,
                    allocation_status=derive_allocation_status(trainee.has_room, False),
                )
                cleaned += 1
            except Exception as e:
                await db.rollback()
                errors += 1
                logger.log_error_with_context(e, "allocation.cleanup_tags", trainee_id=trainee.id)

        _report(on_progress, total, total, "Cleanup completed!")
        counts = {"cleaned": cleaned, "errors": errors}
        logger.log_reconciliation("cleanup_invalid_tag_assignments", counts)
        return counts

    async def fix_allocation_status(
        self,
        db: AsyncSession,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Dict[str, int]:
        """Recompute every trainee's allocation status from what they hold"""
        trainees = await self._load_trainees(db)
        fixed = errors = 0
        total = len(trainees)

        for index, trainee in enumerate(trainees, start=1):
            _report(on_progress, index, total, f"Checking {trainee.name}...")
            correct = derive_allocation_status(trainee.has_room, trainee.has_tag)
            if trainee.allocation_status == correct:
                continue
            try:
                await self._set_trainee(db, trainee, allocation_status=correct)
                fixed += 1
            except Exception as e:
                await db.rollback()
                errors += 1
                logger.log_error_with_context(e, "allocation.fix_status", trainee_id=trainee.id)

        counts = {"fixed": fixed, "errors": errors}
        logger.log_reconciliation("fix_allocation_status", counts)
        return counts

    async def migrate_existing_trainees(
        self,
        db: AsyncSession,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Dict[str, int]:
        """Give legacy trainees without an allocation status one, and a bed space placeholder"""
        trainees = await self._load_trainees(db)
        migrated = errors = 0
        total = len(trainees)

        for index, trainee in enumerate(trainees, start=1):
            _report(on_progress, index, total, f"Migrating {trainee.name}...")
            if trainee.allocation_status is not None:
                continue
            try:
                await self._set_trainee(
                    db, trainee,
                    allocation_status=derive_allocation_status(trainee.has_room, trainee.has_tag),
                    bed_space=trainee.bed_space or PENDING,
                )
                migrated += 1
            except Exception as e:
                await db.rollback()
                errors += 1
                logger.log_error_with_context(e, "allocation.migrate", trainee_id=trainee.id)

        counts = {"migrated": migrated, "errors": errors}
        logger.log_reconciliation("migrate_existing_trainees", counts)
        return counts

    # ==================== QUERIES ====================

    async def get_trainees_by_status(self, db: AsyncSession, status: AllocationStatus) -> List[Trainee]:
        return await trainee_repository.find_by(db, order_by="created_at", allocation_status=status)

    async def allocation_summary(self, db: AsyncSession) -> Dict[str, int]:
        trainees = await self._load_trainees(db)
        rooms = [RoomSnapshot.from_model(r) for r in await room_repository.list_all(db)]
        tags = await self._load_tags(db)
        return build_summary(trainees, rooms, tags)

    # ==================== ROOMS ====================

    async def list_rooms(self, db: AsyncSession, block: Optional[str] = None) -> List[Room]:
        rooms = await room_repository.list_all(db, order_by=["block", "room_number"])
        if block:
            rooms = [r for r in rooms if normalize_block(r.block) == normalize_block(block)]
        return rooms

    async def create_room(
        self,
        db: AsyncSession,
        room_number: str,
        block: str,
        bed_space: Any,
        status: Optional[RoomStatus] = None,
    ) -> Room:
        room_number = str(room_number).strip()
        block = str(block).strip()
        if not room_number or not block:
            raise ValidationError("Room number and block are required")
        if await room_repository.get_by_location(db, block, room_number):
            raise ConflictError(f"Room {room_number} already exists in {block}")

        room = await room_repository.create(
            db,
            room_number=room_number,
            block=block,
            bed_space=str(bed_space).strip(),
            capacity=resolve_bed_capacity(bed_space),
            status=status or RoomStatus.AVAILABLE,
            current_occupancy=0,
        )
        await db.commit()
        logger.info(f"[Allocation] Created room {block}/{room_number} (capacity {room.capacity})")
        return room

    async def update_room(self, db: AsyncSession, room_id: str, **changes: Any) -> Room:
        room = await room_repository.get(db, room_id)
        if not room:
            raise ResourceNotFoundError("Room", room_id)

        values = {k: v for k, v in changes.items() if v is not None}
        if "bed_space" in values:
            values["bed_space"] = str(values["bed_space"]).strip()
            values["capacity"] = resolve_bed_capacity(values["bed_space"])
        if values:
            await room_repository.update(db, room_id, **values)
            await db.commit()
        return await room_repository.get(db, room_id)

    async def delete_room(self, db: AsyncSession, room_id: str) -> int:
        """Delete a room and return its former occupants to the pending pool"""
        room = await room_repository.get(db, room_id)
        if not room:
            raise ResourceNotFoundError("Room", room_id)

        occupants = [TraineeSnapshot.from_model(t) for t in await trainee_repository.in_room(db, room.room_number, room.block)]
        for trainee in occupants:
            await trainee_repository.update(
                db, trainee.id,
                room_number=PENDING,
                room_block=PENDING,
                bed_space=PENDING,
                allocation_status=derive_allocation_status(False, trainee.has_tag),
            )
        await room_repository.delete(db, room_id)
        await db.commit()

        logger.info(f"[Allocation] Deleted room {room.block}/{room.room_number}, reset {len(occupants)} trainees")
        return len(occupants)

    # ==================== TAGS ====================

    async def list_tags(self, db: AsyncSession, status: Optional[TagStatus] = None) -> List[TagNumber]:
        if status:
            return await tag_repository.find_by(db, order_by="tag_no", status=status)
        return await tag_repository.list_all(db, order_by="tag_no")

    async def create_tags(self, db: AsyncSession, tag_numbers: List[str]) -> List[TagNumber]:
        """Create tags, skipping blanks and ones that already exist"""
        created = []
        seen = set()
        for raw in tag_numbers:
            tag_no = str(raw).strip()
            if not tag_no or tag_no in seen:
                continue
            seen.add(tag_no)
            if await tag_repository.get_by_tag_no(db, tag_no):
                continue
            created.append(await tag_repository.create(db, tag_no=tag_no, status=TagStatus.AVAILABLE))
        await db.commit()
        logger.info(f"[Allocation] Created {len(created)} tag numbers")
        return created

    async def delete_tag(self, db: AsyncSession, tag_id: str) -> int:
        """Delete a tag and clear it from whoever holds it"""
        tag = await tag_repository.get(db, tag_id)
        if not tag:
            raise ResourceNotFoundError("Tag number", tag_id)

        holders = [TraineeSnapshot.from_model(t) for t in await trainee_repository.find_by(db, tag_number=tag.tag_no)]
        for trainee in holders:
            await trainee_repository.update(
                db, trainee.id,
                tag_number=PENDING,
                allocation_status=derive_allocation_status(trainee.has_room, False),
            )
        await tag_repository.delete(db, tag_id)
        await db.commit()

        logger.info(f"[Allocation] Deleted tag {tag.tag_no}, reset {len(holders)} trainees")
        return len(holders)


allocation_service = AllocationService()
