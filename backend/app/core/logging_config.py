"""
StudentTrack - Logging

One named logger for the whole service. Every structured event goes through
StudentTrackLogger.event(), which keeps its fields on the record under
``fields``: production renders them as JSON lines, development appends them
as ``key=value`` pairs after the message.
"""

import logging
import sys
import json
import uuid
from datetime import datetime
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional
from contextvars import ContextVar

from app.core.config import settings


LOGGER_NAME = "studenttrack"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

request_id_var: ContextVar[str] = ContextVar('request_id', default='')
user_id_var: ContextVar[str] = ContextVar('user_id', default='')


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def set_user_id(user_id: str) -> None:
    user_id_var.set(user_id)


def generate_request_id() -> str:
    return uuid.uuid4().hex[:8]


def _record_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return getattr(record, "fields", None) or {}


class JSONFormatter(logging.Formatter):
    """One JSON object per line"""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "message": record.getMessage(),
            "request_id": request_id_var.get() or None,
            "user_id": user_id_var.get() or None,
        }
        entry.update(_record_fields(record))
        if record.exc_info:
            entry["traceback"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """``LEVEL | [request] [user] message key=value ...``"""

    def __init__(self):
        super().__init__("%(asctime)s | %(levelname)-8s | [%(request_id)s] [%(user_id)s] %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        record.request_id = request_id_var.get() or '-'
        record.user_id = user_id_var.get() or '-'
        line = super().format(record)
        fields = _record_fields(record)
        if fields:
            line += " " + " ".join(f"{key}={value}" for key, value in fields.items())
        return line


class StudentTrackLogger(logging.Logger):
    """Logger with the structured events this service emits"""

    def event(self, level: int, message: str, event_type: str,
              exc_info: Any = None, **fields: Any) -> None:
        self.log(level, message, exc_info=exc_info,
                 extra={"fields": {"event_type": event_type, **fields}})

    def log_request(self, method: str, path: str, status_code: int,
                    duration_ms: float, **fields: Any) -> None:
        self.event(
            logging.INFO,
            f"HTTP {method} {path} - {status_code} ({duration_ms:.2f}ms)",
            "http_request",
            http_method=method,
            http_path=path,
            http_status=status_code,
            duration_ms=round(duration_ms, 2),
            **fields
        )

    def log_auth_event(self, event: str, success: bool, username: Optional[str] = None,
                       reason: Optional[str] = None, **fields: Any) -> None:
        """Failed attempts are logged at WARNING"""
        message = f"Auth {event}: {'success' if success else 'failed'}"
        if username:
            message += f" - {username}"
        if reason:
            message += f" - {reason}"
        self.event(
            logging.INFO if success else logging.WARNING,
            message,
            "auth",
            auth_event=event,
            auth_success=success,
            auth_username=username,
            failure_reason=reason,
            **fields
        )

    def log_error_with_context(self, error: Exception, context: Optional[str] = None,
                               **fields: Any) -> None:
        """Errors that were handled but must stay visible to operators"""
        self.event(
            logging.ERROR,
            f"Error in {context}: {type(error).__name__}: {error}",
            "error",
            exc_info=error,
            error_type=type(error).__name__,
            error_context=context,
            **fields
        )


def _file_handler(formatter: logging.Formatter) -> RotatingFileHandler:
    log_file = Path(settings.LOG_FILE)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(log_file, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    return handler


def setup_logging() -> StudentTrackLogger:
    logging.setLoggerClass(StudentTrackLogger)

    logger = logging.getLogger(LOGGER_NAME)
    logger.__class__ = StudentTrackLogger  # getLogger may hand back a pre-existing plain Logger
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    logger.handlers.clear()

    formatter = JSONFormatter() if settings.ENVIRONMENT == "production" else TextFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if settings.LOG_FILE:
        logger.addHandler(_file_handler(formatter))

    for noisy in ("uvicorn.access", "sqlalchemy.engine", "aiosqlite"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger


logger: StudentTrackLogger = setup_logging()
