# Strongbox - Main Package
#
# Password manager backend: authenticated users store secrets whose
# password field is encrypted at rest, scoped strictly to their owner.

__version__ = "0.1.0"
__author__ = "Strongbox Team"
__description__ = "Password manager backend with encrypted record storage"

from .core import (
    EventType,
    EventSeverity,
    get_audit_logger,
)

__all__ = [
    "__version__",
    "EventType",
    "EventSeverity",
    "get_audit_logger",
]
