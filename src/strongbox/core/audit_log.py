# Core - Audit Logging
#
# Append-only structured audit log for identity and record events.
# Every registration, login attempt, token rejection and record mutation
# is logged with a timestamp, event id and caller context.
# Plaintext passwords, full tokens and key material are never logged.

import logging
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import uuid4

import structlog

AUDIT_LOGGER_NAME = "strongbox.audit"


class EventType(str, Enum):
    """Types of events that can be logged."""
    # Identity Events
    USER_REGISTERED = "user.registered"
    USER_LOGIN = "user.login"
    USER_LOGIN_FAILED = "user.login.failed"
    TOKEN_REJECTED = "token.rejected"

    # Record Events
    RECORD_CREATED = "record.created"
    RECORD_UPDATED = "record.updated"
    RECORD_DELETED = "record.deleted"
    RECORD_ACCESS_DENIED = "record.access.denied"

    # Failures
    CIPHER_ERROR = "cipher.error"
    STORAGE_ERROR = "storage.error"

    # System Events
    SYSTEM_START = "system.start"
    SYSTEM_STOP = "system.stop"


class EventSeverity(str, Enum):
    """
    Severity levels for audit events.

    - INFO: Normal activity (logged only)
    - ALERT: Suspicious activity (failed login, foreign record access)
    - CRITICAL: Internal failure (cipher, storage)
    """
    INFO = "info"
    ALERT = "alert"
    CRITICAL = "critical"

    def to_log_level(self) -> int:
        level_map = {
            EventSeverity.INFO: logging.INFO,
            EventSeverity.ALERT: logging.WARNING,
            EventSeverity.CRITICAL: logging.ERROR,
        }
        return level_map[self]


class AuditLogger:
    """
    Append-only audit logger for security events.

    Features:
    - Structured JSON logging (structlog)
    - Automatic timestamp and event ID
    - Daily log file under ``log_dir``
    """

    def __init__(self, log_dir: Optional[Path] = None, level: str = "INFO"):
        """
        Initialize audit logger.

        Args:
            log_dir: Directory for audit logs (default: ./audit_logs)
            level: Minimum stdlib log level name for the audit file
        """
        self.log_dir = Path(log_dir) if log_dir else Path("./audit_logs")
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.level = logging.getLevelName(level.upper()) if isinstance(level, str) else level
        if not isinstance(self.level, int):
            self.level = logging.INFO

        structlog.configure(
            processors=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer()
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        self._setup_file_handler()
        self.logger = structlog.get_logger(AUDIT_LOGGER_NAME)

    def _setup_file_handler(self):
        """Attach a daily log file handler to the audit logger."""
        today = datetime.now().strftime("%Y-%m-%d")
        self.log_file = self.log_dir / f"audit_{today}.log"

        std_logger = logging.getLogger(AUDIT_LOGGER_NAME)
        std_logger.setLevel(self.level)

        target = str(self.log_file.resolve())
        for handler in std_logger.handlers:
            if isinstance(handler, logging.FileHandler) and handler.baseFilename == target:
                return

        file_handler = logging.FileHandler(self.log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(self.level)
        file_handler.setFormatter(logging.Formatter('%(message)s'))  # structlog renders JSON
        std_logger.addHandler(file_handler)

    def close(self):
        """Detach and close this logger's file handler."""
        std_logger = logging.getLogger(AUDIT_LOGGER_NAME)
        target = str(self.log_file.resolve())
        for handler in list(std_logger.handlers):
            if isinstance(handler, logging.FileHandler) and handler.baseFilename == target:
                std_logger.removeHandler(handler)
                handler.close()

    def log_event(
        self,
        event_type: EventType,
        severity: EventSeverity,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        user_context: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Log an audit event.

        Args:
            event_type: Type of event (from EventType enum)
            severity: Severity level (from EventSeverity enum)
            message: Human-readable event description
            details: Additional event details (never secrets)
            user_context: Caller context (identity id, username)

        Returns:
            str: Event ID (UUID) for reference
        """
        event_id = str(uuid4())

        event_data = {
            "event_id": event_id,
            "event_type": event_type.value,
            "severity": severity.value,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "details": details or {},
            "user_context": user_context or {},
        }

        self.logger.log(severity.to_log_level(), "audit_event", **event_data)

        return event_id

    def log_identity_event(
        self,
        event_type: EventType,
        username: str,
        identity_id: Optional[str] = None,
        severity: EventSeverity = EventSeverity.INFO,
        details: Optional[Dict[str, Any]] = None
    ) -> str:
        """Log a registration/login event for ``username``."""
        context = {"username": username}
        if identity_id:
            context["identity_id"] = identity_id

        return self.log_event(
            event_type=event_type,
            severity=severity,
            message=f"Identity: {event_type.value} - {username}",
            details=details,
            user_context=context,
        )

    def log_record_event(
        self,
        event_type: EventType,
        record_id: str,
        caller_id: str,
        severity: EventSeverity = EventSeverity.INFO,
        details: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Log a record event.

        Only ids are logged, never record contents.
        """
        event_details = dict(details or {})
        event_details["record_id"] = record_id

        return self.log_event(
            event_type=event_type,
            severity=severity,
            message=f"Record: {event_type.value}",
            details=event_details,
            user_context={"identity_id": caller_id},
        )


# Process-wide default, used by the entry point when nothing is injected
_audit_logger: Optional[AuditLogger] = None


def get_audit_logger() -> AuditLogger:
    """Get the default audit logger (singleton pattern)."""
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditLogger()
    return _audit_logger


def configure_audit_logger(log_dir: Optional[Path] = None, level: str = "INFO") -> AuditLogger:
    """Replace the default audit logger (called once at startup)."""
    global _audit_logger
    _audit_logger = AuditLogger(log_dir=log_dir, level=level)
    return _audit_logger
