"""
Registration, email validation, admin session and password reset schemas
"""

from pydantic import EmailStr, Field
from typing import Optional
from datetime import date

from farmportal.models import Gender, VerificationMethod
from farmportal.schemas.common import CamelModel


# ============== Registration ==============

class RegisterStep1Request(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    confirm_password: str


class RegisterStep1Response(CamelModel):
    message: str
    email: str
    dev_code: Optional[str] = None


class RegisterVerifyRequest(CamelModel):
    email: EmailStr
    code: str = Field(..., min_length=6, max_length=6, pattern=r"^\d{6}$")


class TraineeProfile(CamelModel):
    """Profile submitted at the last registration step"""
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    surname: str = Field(..., min_length=1, max_length=100)
    middle_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    gender: Gender
    date_of_birth: Optional[date] = None
    state: Optional[str] = Field(None, max_length=100)
    lga: Optional[str] = Field(None, max_length=100)
    batch_id: Optional[str] = None
    verification_method: VerificationMethod = VerificationMethod.EMAIL


class EmailValidateRequest(CamelModel):
    # Plain str so malformed addresses get the service's own message
    email: Optional[str] = None


class EmailValidateResponse(CamelModel):
    deliverable: bool
    message: str


# ============== Admin session ==============

class AdminLoginRequest(CamelModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class AdminUser(CamelModel):
    email: str
    role: str


class AdminLoginResponse(CamelModel):
    message: str
    user: AdminUser


# ============== Password reset ==============

class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ForgotPasswordResponse(CamelModel):
    message: str
    email: str


class VerifyResetTokenResponse(CamelModel):
    message: str
    email: str


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1)
    new_password: str
