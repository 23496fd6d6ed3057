# Password Vault - Main Package
#
# Per-user password entries: validated value objects, an owner-gated
# aggregate, AES-256-GCM encryption and SQLite / in-memory storage.

__version__ = "0.1.0"
__description__ = "Per-user encrypted password vault"

from .core import EventSeverity, EventType, get_audit_logger

__all__ = [
    "__version__",
    "EventType",
    "EventSeverity",
    "get_audit_logger",
]
