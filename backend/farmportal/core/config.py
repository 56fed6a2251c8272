from pydantic_settings import BaseSettings
from typing import List, Any, Dict
import json


def parse_cors_origins(v: Any) -> List[str]:
    """Parse CORS origins from string or list"""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        if v.startswith('['):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        return [origin.strip() for origin in v.split(',') if origin.strip()]
    return []


# Well-known SMTP endpoints for EMAIL_SERVICE (mirrors the nodemailer "service" shortcut)
EMAIL_SERVICE_HOSTS: Dict[str, Dict[str, Any]] = {
    "gmail": {"host": "smtp.gmail.com", "port": 465, "secure": True},
    "outlook": {"host": "smtp-mail.outlook.com", "port": 587, "secure": False},
    "hotmail": {"host": "smtp-mail.outlook.com", "port": 587, "secure": False},
    "yahoo": {"host": "smtp.mail.yahoo.com", "port": 465, "secure": True},
    "zoho": {"host": "smtp.zoho.com", "port": 465, "secure": True},
    "sendgrid": {"host": "smtp.sendgrid.net", "port": 587, "secure": False},
    "mailgun": {"host": "smtp.mailgun.org", "port": 587, "secure": False},
}


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "CSS Farms Training Portal"
    APP_VERSION: str = "1.0.0"
    NODE_ENV: str = "development"
    HOST: str = "0.0.0.0"
    PORT: int = 5000

    # ==========================================
    # Database
    # ==========================================
    DATABASE_URL: str = "sqlite+aiosqlite:///./farmportal.db"
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # ==========================================
    # Security / Admin and trainee sessions
    # ==========================================
    SECRET_KEY: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    ADMIN_EMAIL: str = ""
    ADMIN_PASSWORD_HASH: str = ""  # bcrypt hash, never the plain password
    ADMIN_SESSION_HOURS: int = 24
    ADMIN_COOKIE_NAME: str = "adminToken"
    TRAINEE_SESSION_HOURS: int = 24
    TRAINEE_COOKIE_NAME: str = "traineeToken"
    BCRYPT_ROUNDS: int = 12

    # ==========================================
    # Email
    # ==========================================
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_SECURE: bool = False
    SMTP_USER: str = ""
    SMTP_PASS: str = ""
    EMAIL_USER: str = ""
    EMAIL_PASS: str = ""
    EMAIL_SERVICE: str = ""
    EMAIL_FROM: str = ""
    EMAIL_FROM_NAME: str = "CSS Farms Training Portal"
    EMAIL_SEND_TIMEOUT: int = 30

    # ==========================================
    # Email deliverability
    # ==========================================
    KICKBOX_API_KEY: str = ""
    KICKBOX_API_URL: str = "https://api.kickbox.com/v2/verify"
    EMAIL_VALIDATION_TIMEOUT: float = 5.0

    # ==========================================
    # Verification codes / password reset
    # ==========================================
    VERIFICATION_CODE_TTL_MINUTES: int = 10
    EMAIL_VERIFIED_WINDOW_MINUTES: int = 60
    PASSWORD_RESET_TTL_MINUTES: int = 60
    PASSWORD_MIN_LENGTH: int = 6
    FRONTEND_URL: str = "http://localhost:5000"

    # ==========================================
    # CORS (comma-separated string, parsed to list)
    # ==========================================
    CORS_ORIGIN: str = "http://localhost:5000,http://localhost:5173"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return parse_cors_origins(self.CORS_ORIGIN)

    # ==========================================
    # Rate Limiting
    # ==========================================
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URI: str = "memory://"
    RATE_LIMIT_DEFAULT: str = "200/minute"
    RATE_LIMIT_REGISTRATION: str = "5/minute"
    RATE_LIMIT_LOGIN: str = "5/minute"
    RATE_LIMIT_PASSWORD_RESET: str = "3/minute"

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""
    LOG_JSON: bool = False

    @property
    def is_production(self) -> bool:
        return self.NODE_ENV == "production"

    @property
    def smtp_configured(self) -> bool:
        """True when a complete mail transport (user and password) can be resolved"""
        from farmportal.services.email_service import resolve_transport

        return resolve_transport(self) is not None

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


# Create settings instance
settings = Settings()
