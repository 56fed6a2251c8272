"""
Logging for the training portal.

Every record carries the request id and admin email of the request that
produced it (via context variables set by the middleware). Development gets
short readable lines; production, or LOG_JSON=true, gets one JSON object per
line. LOG_FILE adds a size-rotated file with the same records.
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from farmportal.core.config import settings

request_id_var: ContextVar[str] = ContextVar("request_id", default="")
user_id_var: ContextVar[str] = ContextVar("user_id", default="")

# LogRecord attributes that are not caller-supplied ``extra`` fields
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName", "request_id", "user_id"}

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

NOISY_LOGGERS = ("httpx", "httpcore", "aiosmtplib", "sqlalchemy.engine", "uvicorn.access")


def get_request_id() -> str:
    return request_id_var.get()


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def get_user_id() -> str:
    return user_id_var.get()


def set_user_id(user_id: str) -> None:
    user_id_var.set(user_id)


def generate_request_id() -> str:
    return uuid.uuid4().hex[:8]


class RequestContextFilter(logging.Filter):
    """Stamps request_id / user_id onto each record ("-" outside a request)"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        record.user_id = get_user_id() or "-"
        return True


class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.utcfromtimestamp(record.created).isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        if getattr(record, "request_id", "-") != "-":
            entry["request_id"] = record.request_id
        if getattr(record, "user_id", "-") != "-":
            entry["user_id"] = record.user_id
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }
        entry.update(
            (key, value) for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        )
        return json.dumps(entry, default=str)


class PortalLogger(logging.Logger):
    """Logger with one helper per kind of event the portal records"""

    def log_request(self, method: str, path: str, status_code: int,
                    duration_ms: float, **kwargs) -> None:
        # 4xx are the caller's problem, 5xx are ours
        if status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO
        self.log(
            level,
            f"{method} {path} -> {status_code} ({duration_ms:.1f}ms)",
            extra={
                "event_type": "http_request",
                "http_method": method,
                "http_path": path,
                "http_status": status_code,
                "duration_ms": round(duration_ms, 2),
                **kwargs
            }
        )

    def log_auth_event(self, event: str, success: bool, user_email: str = None,
                       reason: str = None, **kwargs) -> None:
        """Admin logins, registrations and password resets"""
        text = f"[Auth] {event} {'ok' if success else 'rejected'}"
        if user_email:
            text += f" for {user_email}"
        if reason:
            text += f": {reason}"
        self.log(
            logging.INFO if success else logging.WARNING,
            text,
            extra={
                "event_type": "auth",
                "auth_event": event,
                "auth_success": success,
                "user_email": user_email,
                "failure_reason": reason,
                **kwargs
            }
        )

    def log_reconciliation(self, operation: str, counts: Dict[str, Any],
                           duration_ms: Optional[float] = None) -> None:
        """One line per allocation maintenance run with its counters"""
        flat = ", ".join(f"{k}={v}" for k, v in counts.items() if not isinstance(v, dict))
        timing = f" in {duration_ms:.0f}ms" if duration_ms is not None else ""
        self.info(
            f"[Allocation] {operation}: {flat}{timing}",
            extra={
                "event_type": "reconciliation",
                "operation": operation,
                "counts": counts,
                "duration_ms": duration_ms,
            }
        )

    def log_email_event(self, event: str, recipient: str, success: bool,
                        transport: str = None, **kwargs) -> None:
        via = f" via {transport}" if transport else ""
        self.log(
            logging.INFO if success else logging.WARNING,
            f"[Email] '{event}' to {recipient} {'sent' if success else 'failed'}{via}",
            extra={
                "event_type": "email",
                "email_event": event,
                "email_recipient": recipient,
                "email_success": success,
                "email_transport": transport,
                **kwargs
            }
        )

    def log_error_with_context(self, error: Exception, context: str = None,
                               **kwargs) -> None:
        self.error(
            f"{context or 'unhandled'}: {type(error).__name__}: {error}",
            exc_info=error,
            extra={
                "event_type": "error",
                "error_type": type(error).__name__,
                "error_context": context,
                **kwargs
            }
        )


def _formatters(use_json: bool):
    """(console, file) formatters"""
    if use_json:
        formatter = JSONFormatter()
        return formatter, formatter
    return (
        logging.Formatter("%(levelname)-8s [%(request_id)s] %(message)s"),
        logging.Formatter(
            "%(asctime)s %(levelname)-8s [%(request_id)s] [%(user_id)s] "
            "%(module)s.%(funcName)s:%(lineno)d %(message)s"
        ),
    )


def setup_logging() -> PortalLogger:
    """Configure the "farmportal" logger from settings; safe to call again"""
    logging.setLoggerClass(PortalLogger)
    logger = logging.getLogger("farmportal")
    logger.__class__ = PortalLogger
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    use_json = settings.LOG_JSON or settings.is_production
    console_formatter, file_formatter = _formatters(use_json)
    context = RequestContextFilter()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(console_formatter)
    console.addFilter(context)
    logger.addHandler(console)

    if settings.LOG_FILE:
        path = Path(settings.LOG_FILE)
        path.parent.mkdir(parents=True, exist_ok=True)
        rotating = RotatingFileHandler(path, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS)
        rotating.setFormatter(file_formatter)
        rotating.addFilter(context)
        logger.addHandler(rotating)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.debug(f"Logging ready (env={settings.NODE_ENV}, json={use_json})")
    return logger


logger: PortalLogger = setup_logging()
