from datetime import datetime

from fastapi import APIRouter

from farmportal.api.endpoints import (
    admin_auth,
    allocations,
    announcements,
    auth,
    certificates,
    evaluations,
    exams,
    ids,
    messages,
    registration,
    settings,
    sponsors,
    trainees,
)

api_router = APIRouter()


@api_router.get("/health", tags=["Health"])
async def health_check():
    """Liveness check for the load balancer"""
    return {"status": "ok", "timestamp": datetime.utcnow().isoformat()}


api_router.include_router(registration.router, tags=["Registration"])
api_router.include_router(admin_auth.router, prefix="/admin", tags=["Admin"])
api_router.include_router(auth.router, prefix="/auth", tags=["Password Reset"])
api_router.include_router(sponsors.router, tags=["Sponsors"])
api_router.include_router(trainees.router, prefix="/trainees", tags=["Trainees"])
api_router.include_router(allocations.router, tags=["Allocation"])
api_router.include_router(ids.router, tags=["IDs"])
api_router.include_router(evaluations.router, prefix="/evaluations", tags=["Evaluations"])
api_router.include_router(messages.router, tags=["Messages"])
api_router.include_router(exams.router, prefix="/exams", tags=["Exams"])
api_router.include_router(announcements.router, prefix="/announcements", tags=["Announcements"])
api_router.include_router(settings.router, tags=["Settings"])
api_router.include_router(certificates.router, tags=["Certificates"])
