from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from slowapi.errors import RateLimitExceeded

from farmportal.core.config import settings
from farmportal.core.database import init_db, close_db
from farmportal.core.exceptions import PortalError, error_response
from farmportal.core.logging_config import logger
from farmportal.core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from farmportal.core.rate_limiter import limiter, rate_limit_exceeded_handler
from farmportal.api.router import api_router


def validate_critical_config() -> None:
    """Fail fast on configuration the portal cannot run without in production"""
    errors = []
    warnings = []

    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD_HASH:
        warnings.append("ADMIN_EMAIL/ADMIN_PASSWORD_HASH not set - admin login disabled")

    if not settings.smtp_configured:
        warnings.append("No SMTP credentials - verification codes are only logged")

    if settings.is_production:
        if settings.SECRET_KEY == "change-me-in-production":
            errors.append("SECRET_KEY is using the default value")
        if not settings.smtp_configured:
            errors.append("SMTP credentials are required in production")

    if errors:
        for err in errors:
            logger.critical(f"[Startup] CRITICAL: {err}")
        raise RuntimeError(f"Missing critical configuration: {', '.join(errors)}")

    for warn in warnings:
        logger.warning(f"[Startup] WARNING: {warn}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("=" * 60)
    logger.info(f"Starting {settings.APP_NAME}...")
    logger.info(f"Environment: {settings.NODE_ENV}")
    logger.info("=" * 60)

    validate_critical_config()
    await init_db()
    logger.info("[Startup] Database tables ready")

    yield

    logger.info(f"Shutting down {settings.APP_NAME}...")
    await close_db()


app = FastAPI(
    title=settings.APP_NAME,
    description="Trainee registration, hostel allocation and staff ID management",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    redirect_slashes=False
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Last added runs first
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Response-Time"],
)


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    if exc.status_code >= 500:
        logger.log_error_with_context(exc, f"{request.method} {request.url.path}")
    return JSONResponse(status_code=exc.status_code, content=error_response(exc))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"message": "Validation error", "errors": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


app.include_router(api_router, prefix="/api")


def run() -> None:
    import uvicorn
    uvicorn.run(
        "farmportal.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=not settings.is_production
    )


if __name__ == "__main__":
    run()
