"""
Allocation policy - pure functions shared by reconciliation, room writes and
the admin endpoints. No I/O here.
"""

import re
from typing import Optional, Tuple, Union

from farmportal.models.room import RoomStatus
from farmportal.models.trainee import AllocationStatus, Gender


BED_SPACE_WORDS = {
    "single": 1,
    "double": 2,
}

# Gender -> hostel blocks, in allocation order
GENDER_BLOCKS = {
    Gender.MALE: ("A", "B"),
    Gender.FEMALE: ("C", "D"),
}

_LEADING_INT = re.compile(r"^\s*(\d+)")
_BLOCK_PREFIX = re.compile(r"^\s*block[\s\-_]*", re.IGNORECASE)


def resolve_bed_capacity(bed_space: Union[str, int, None]) -> int:
    """
    Resolve a bed space label to a capacity.

    Numeric labels ("1", "2", "6", "4 beds") use their leading integer,
    "single" is 1, "double" is 2, anything else is 1.
    """
    if bed_space is None:
        return 1
    if isinstance(bed_space, int):
        return bed_space if bed_space > 0 else 1

    text = str(bed_space).strip().lower()
    if text in BED_SPACE_WORDS:
        return BED_SPACE_WORDS[text]

    match = _LEADING_INT.match(text)
    if match:
        value = int(match.group(1))
        return value if value > 0 else 1
    return 1


def derive_room_status(capacity: int, occupancy: int) -> RoomStatus:
    """Room status from capacity and the number of trainees in it"""
    if capacity <= 1:
        return RoomStatus.OCCUPIED if occupancy >= 1 else RoomStatus.AVAILABLE
    if occupancy >= capacity:
        return RoomStatus.OCCUPIED
    if occupancy > 0:
        return RoomStatus.PARTIALLY_OCCUPIED
    return RoomStatus.AVAILABLE


def is_occupied_status(status: Optional[RoomStatus]) -> bool:
    return status in (RoomStatus.OCCUPIED, RoomStatus.FULLY_OCCUPIED)


def normalize_block(block: Optional[str]) -> str:
    """'BlockA', 'Block A', 'block-a' and 'A' all normalize to 'A'"""
    if not block:
        return ""
    return _BLOCK_PREFIX.sub("", str(block)).strip().upper()


def block_matches_gender(block: Optional[str], gender: Union[Gender, str, None]) -> bool:
    if gender is None:
        return False
    try:
        gender = Gender(gender)
    except ValueError:
        return False
    return normalize_block(block) in GENDER_BLOCKS[gender]


def derive_allocation_status(has_room: bool, has_tag: bool) -> AllocationStatus:
    """
    Single source of truth for a trainee's allocation status.

    room + tag -> allocated
    room only  -> no_tags
    tag only   -> no_rooms
    neither    -> pending
    """
    if has_room and has_tag:
        return AllocationStatus.ALLOCATED
    if has_room:
        return AllocationStatus.NO_TAGS
    if has_tag:
        return AllocationStatus.NO_ROOMS
    return AllocationStatus.PENDING


def room_key(block: Optional[str], room_number: Optional[str]) -> Tuple[str, str]:
    """Identity used to match trainees to rooms; exact, as stored"""
    return (str(block or ""), str(room_number or ""))
