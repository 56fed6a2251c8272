# Pydantic schemas (camelCase JSON)
from farmportal.schemas.common import CamelModel, MessageResponse
from farmportal.schemas.registration import (
    RegisterStep1Request,
    RegisterStep1Response,
    RegisterVerifyRequest,
    TraineeProfile,
    EmailValidateRequest,
    EmailValidateResponse,
    AdminLoginRequest,
    AdminLoginResponse,
)
from farmportal.schemas.allocation import (
    TraineeResponse,
    RoomResponse,
    TagResponse,
    SyncResponse,
)
from farmportal.schemas.ids import GeneratedIdResponse, IdValidationResponse, IdAvailabilityResponse

__all__ = [
    "CamelModel",
    "MessageResponse",
    "RegisterStep1Request",
    "RegisterStep1Response",
    "RegisterVerifyRequest",
    "TraineeProfile",
    "EmailValidateRequest",
    "EmailValidateResponse",
    "AdminLoginRequest",
    "AdminLoginResponse",
    "TraineeResponse",
    "RoomResponse",
    "TagResponse",
    "SyncResponse",
    "GeneratedIdResponse",
    "IdValidationResponse",
    "IdAvailabilityResponse",
]
