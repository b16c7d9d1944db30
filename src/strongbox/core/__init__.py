# Core Module - Shared Utilities
#
# Core module provides shared functionality across all Strongbox modules:
# - Audit logging
# - SQLite connection helper

from .audit_log import (
    AuditLogger,
    EventSeverity,
    EventType,
    configure_audit_logger,
    get_audit_logger,
)
from .db import connect, transaction

__all__ = [
    # Audit Logging
    "AuditLogger",
    "EventType",
    "EventSeverity",
    "get_audit_logger",
    "configure_audit_logger",
    # SQLite
    "connect",
    "transaction",
]
