"""Generated id lifecycle and staff/resource-person registration schemas"""

from pydantic import EmailStr, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

from farmportal.models import IdStatus, IdType
from farmportal.schemas.common import CamelModel


class GenerateIdsRequest(CamelModel):
    type: IdType
    count: int = Field(1, ge=1, le=100)


class GenerateIdsResponse(CamelModel):
    ids: List[str]


class GeneratedIdResponse(CamelModel):
    id: str
    type: IdType
    sequence: int
    status: IdStatus
    assigned_to: Optional[str] = None
    assigned_at: Optional[datetime] = None
    activated_at: Optional[datetime] = None
    usage_count: int = 0
    last_assigned_to: Optional[str] = None
    last_assigned_at: Optional[datetime] = None
    freed_at: Optional[datetime] = None
    freed_reason: Optional[str] = None
    deactivated_at: Optional[datetime] = None
    deactivation_reason: Optional[str] = None
    created_at: datetime


class IdEmailRequest(CamelModel):
    email: EmailStr


class IdValidationResponse(CamelModel):
    is_valid: bool
    message: str
    id_data: Optional[GeneratedIdResponse] = None


class IdAvailabilityResponse(CamelModel):
    is_available: bool
    error: Optional[str] = None
    current_user: Optional[str] = None


class IdReasonRequest(CamelModel):
    reason: Optional[str] = Field(None, max_length=255)


class IdStatisticsResponse(CamelModel):
    total: int
    available: int
    assigned: int
    activated: int
    deactivated: int
    freed: int
    by_type: Dict[str, Dict[str, int]]


class FinalizeIdRequest(CamelModel):
    """Profile for the staff member or resource person activating the id"""
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    surname: str = Field(..., min_length=1, max_length=100)
    middle_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    # Staff
    department: Optional[str] = Field(None, max_length=150)
    position: Optional[str] = Field(None, max_length=150)
    # Resource person
    specialization: Optional[str] = Field(None, max_length=200)
    organization: Optional[str] = Field(None, max_length=200)
    bio: Optional[str] = None

    def profile_for(self, id_type: IdType) -> Dict[str, Any]:
        common = self.model_dump(include={"first_name", "surname", "middle_name", "phone"})
        if id_type == IdType.STAFF:
            return {**common, **self.model_dump(include={"department", "position"})}
        return {**common, **self.model_dump(include={"specialization", "organization", "bio"})}


class StaffResponse(CamelModel):
    id: str
    first_name: str
    surname: str
    middle_name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    created_at: datetime


class ResourcePersonResponse(CamelModel):
    id: str
    first_name: str
    surname: str
    middle_name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    specialization: Optional[str] = None
    organization: Optional[str] = None
    bio: Optional[str] = None
    created_at: datetime
