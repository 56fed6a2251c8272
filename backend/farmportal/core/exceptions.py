"""
Custom Exceptions for the training portal
=========================================

Raise these from services and endpoints instead of HTTPException so the
API layer can render one consistent ``{"message": ...}`` body.

Usage:
    from farmportal.core.exceptions import ResourceNotFoundError

    trainee = await trainee_repository.get(db, trainee_id)
    if not trainee:
        raise ResourceNotFoundError("Trainee", trainee_id)
"""

from typing import Optional, Any, Dict

class PortalError(Exception):
    """Base exception for all portal errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(PortalError):
    """Admin session missing, invalid or expired"""

    status_code = 401

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message, code="AUTH_FAILED")

class SessionExpiredError(AuthenticationError):
    """Admin session token failed verification"""

    def __init__(self):
        super().__init__("Session expired")
        self.code = "SESSION_EXPIRED"

class AuthorizationError(PortalError):
    """Caller not allowed to perform this action"""

    status_code = 403

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, code="NOT_AUTHORIZED")

# ============================================
# Resource Errors
# ============================================

class ResourceNotFoundError(PortalError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: Optional[str] = None, message: Optional[str] = None):
        super().__init__(
            message or f"{resource_type} not found",
            code=f"{resource_type.upper().replace(' ', '_')}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id} if resource_id else None
        )

class ConflictError(PortalError):
    """Resource already exists or is in an incompatible state"""

    status_code = 409

    def __init__(self, message: str):
        super().__init__(message, code="CONFLICT")

# ============================================
# Validation Errors
# ============================================

class ValidationError(PortalError):
    """Request data failed a business rule"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message,
            code="VALIDATION_ERROR",
            details={"field": field} if field else None
        )

class IdLifecycleError(PortalError):
    """A generated id transition was rejected"""

    status_code = 400

    def __init__(self, message: str, generated_id: Optional[str] = None):
        super().__init__(
            message,
            code="ID_LIFECYCLE_ERROR",
            details={"id": generated_id} if generated_id else None
        )

# ============================================
# External Service Errors
# ============================================

class EmailDeliveryError(PortalError):
    """Outbound email could not be sent"""

    status_code = 500

    def __init__(self, message: str = "Failed to send verification email. Please try again."):
        super().__init__(message, code="EMAIL_DELIVERY_FAILED")


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: PortalError) -> Dict[str, Any]:
    """Convert exception to the API error body"""
    body: Dict[str, Any] = {"message": error.message, "code": error.code}
    if error.details:
        body["details"] = error.details
    return body
