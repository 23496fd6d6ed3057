# Core Module - Shared Utilities
#
# Shared functionality for the vault package:
# - Audit logging
# - SQLite connections, transactions and schema migrations

from .audit_log import (
    AuditLogger,
    EventSeverity,
    EventType,
    get_audit_logger,
    set_audit_logger,
)
from .db import apply_migrations, connect, schema_version, transaction

__all__ = [
    "AuditLogger",
    "EventType",
    "EventSeverity",
    "get_audit_logger",
    "set_audit_logger",
    "connect",
    "transaction",
    "schema_version",
    "apply_migrations",
]
