"""Trainee, room, tag and allocation maintenance schemas"""

from pydantic import Field
from typing import Dict, List, Optional, Union
from datetime import date, datetime

from farmportal.models import AllocationStatus, Gender, RoomStatus, TagStatus
from farmportal.schemas.common import CamelModel


# ============== Trainees ==============

class TraineeResponse(CamelModel):
    id: str
    first_name: str
    surname: str
    middle_name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    gender: Gender
    date_of_birth: Optional[date] = None
    state: Optional[str] = None
    lga: Optional[str] = None
    sponsor_id: Optional[str] = None
    batch_id: Optional[str] = None
    tag_number: Optional[str] = None
    room_number: Optional[str] = None
    room_block: Optional[str] = None
    bed_space: Optional[str] = None
    allocation_status: Optional[AllocationStatus] = None
    email_verified: bool = False
    is_active: bool = True
    created_at: datetime


class TraineeLoginRequest(CamelModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class TraineeLoginResponse(CamelModel):
    message: str
    trainee: TraineeResponse


class TraineeSummary(CamelModel):
    """Returned by registration completion"""
    id: str
    email: str
    tag_number: Optional[str] = None


class RegistrationCompleteResponse(CamelModel):
    message: str
    trainee: TraineeSummary


class TraineeUpdate(CamelModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    surname: Optional[str] = Field(None, min_length=1, max_length=100)
    middle_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    gender: Optional[Gender] = None
    date_of_birth: Optional[date] = None
    state: Optional[str] = None
    lga: Optional[str] = None
    sponsor_id: Optional[str] = None
    batch_id: Optional[str] = None
    tag_number: Optional[str] = None
    room_number: Optional[str] = None
    room_block: Optional[str] = None
    bed_space: Optional[str] = None
    allocation_status: Optional[AllocationStatus] = None
    is_active: Optional[bool] = None


# ============== Rooms ==============

class RoomCreate(CamelModel):
    room_number: str = Field(..., min_length=1, max_length=50)
    block: str = Field(..., min_length=1, max_length=50)
    # Raw label: "1", "2", "single", "double", "6"
    bed_space: Union[str, int] = "1"
    status: Optional[RoomStatus] = None


class RoomUpdate(CamelModel):
    room_number: Optional[str] = Field(None, min_length=1, max_length=50)
    block: Optional[str] = Field(None, min_length=1, max_length=50)
    bed_space: Optional[Union[str, int]] = None
    status: Optional[RoomStatus] = None


class RoomResponse(CamelModel):
    id: str
    room_number: str
    block: str
    bed_space: str
    capacity: int
    status: RoomStatus
    current_occupancy: Optional[int] = 0
    created_at: datetime


# ============== Tags ==============

class TagCreate(CamelModel):
    tag_numbers: List[str] = Field(..., min_length=1)


class TagResponse(CamelModel):
    id: str
    tag_no: str
    status: TagStatus
    created_at: datetime


# ============== Maintenance ==============

class SyncResponse(CamelModel):
    allocated: int
    no_rooms: int
    no_tags: int
    rooms_updated: int
    tags_updated: int
    inconsistencies: int
    summary: Dict[str, int]


class CleanupResponse(CamelModel):
    cleaned: int
    errors: int


class FixStatusResponse(CamelModel):
    fixed: int
    errors: int


class MigrateResponse(CamelModel):
    migrated: int
    errors: int


class RoomAllocationResponse(CamelModel):
    allocated: bool
    message: str
    room_number: Optional[str] = None
    room_block: Optional[str] = None
    bed_space: Optional[str] = None


class DeleteResultResponse(CamelModel):
    message: str
    trainees_reset: int
