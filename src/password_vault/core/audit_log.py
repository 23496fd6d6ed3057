# Vault Audit Logging
#
# Append-only, structured (JSON) audit log for every access to a password
# entry: creation, reads, reveals, updates, deletions and denied attempts.
# One file per day: <audit_dir>/audit_YYYY-MM-DD.log
#
# Plaintext passwords and ciphertext must never be passed to the logger.

import logging
import os
import socket
import sys
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import uuid4

import structlog

AUDIT_LOGGER_NAME = "password_vault.audit"


class EventType(str, Enum):
    """What happened to a password entry (dotted names, stable on disk)."""

    ENTRY_CREATED = "vault.entry.created"
    ENTRY_UPDATED = "vault.entry.updated"
    ENTRY_ACCESSED = "vault.entry.accessed"
    ENTRY_LISTED = "vault.entry.listed"
    ENTRY_DELETED = "vault.entry.deleted"
    ACCESS_DENIED = "vault.access.denied"
    VAULT_ERROR = "vault.error"


class EventSeverity(str, Enum):
    """
    Severity levels for vault events.

    - INFO: normal activity
    - INVESTIGATE: unusual but harmless (e.g. lookup of a missing entry)
    - ALERT: a guard rejected the request (e.g. non-owner access)
    - CRITICAL: an adapter failed
    """
    INFO = "info"
    INVESTIGATE = "investigate"
    ALERT = "alert"
    CRITICAL = "critical"


class AuditLogger:
    """
    Writes one JSON line per vault event to the day's audit file.

    structlog renders the record; every line carries an event id and a UTC
    timestamp. Events logged without a user fall back to the OS account and
    host that ran the process.
    """

    def __init__(self, log_dir: Optional[Path] = None):
        self.log_dir = Path(log_dir) if log_dir else Path("./audit_logs")
        self.log_dir.mkdir(parents=True, exist_ok=True)

        structlog.configure(
            processors=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                structlog.processors.TimeStamper(fmt="iso", utc=True),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        self.log_file = self._setup_file_handler()
        self.logger = structlog.get_logger(AUDIT_LOGGER_NAME)

    def _setup_file_handler(self) -> Path:
        """Route the audit logger to today's file, replacing any previous audit file handler."""
        today = datetime.now(timezone.utc).strftime("%Y-%m-%d")
        log_file = self.log_dir / f"audit_{today}.log"

        std_logger = _detach_audit_handlers()

        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(message)s"))  # structlog renders JSON
        file_handler.is_vault_audit_handler = True

        std_logger.addHandler(file_handler)
        std_logger.setLevel(logging.INFO)
        return log_file

    def log_event(
        self,
        event_type: EventType,
        severity: EventSeverity,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        user_context: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Append one event to the audit file.

        ``details`` holds entry ids, categories and field names, never secrets.
        ``user_context`` identifies the actor; when omitted the OS account is
        recorded instead.

        Returns the generated event id (a UUID string).
        """
        event_id = str(uuid4())
        self.logger.info(
            "vault_event",
            event_id=event_id,
            event_type=event_type.value,
            severity=severity.value,
            message=message,
            timestamp=datetime.now(timezone.utc).isoformat(),
            details=details or {},
            user_context=user_context or _process_user_context(),
        )
        return event_id

    def log_vault_event(
        self,
        event_type: EventType,
        message: str,
        user_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        severity: EventSeverity = EventSeverity.INFO,
    ) -> str:
        """Log an event on behalf of a vault user."""
        user_context = {"user_id": user_id} if user_id is not None else None
        return self.log_event(
            event_type=event_type,
            severity=severity,
            message=f"Vault: {message}",
            details=details,
            user_context=user_context,
        )

    def close(self) -> None:
        _detach_audit_handlers()


def _detach_audit_handlers() -> logging.Logger:
    """Remove and close file handlers installed by any AuditLogger."""
    std_logger = logging.getLogger(AUDIT_LOGGER_NAME)
    for handler in [h for h in std_logger.handlers if getattr(h, "is_vault_audit_handler", False)]:
        std_logger.removeHandler(handler)
        handler.close()
    return std_logger


def _process_user_context() -> Dict[str, Any]:
    return {
        "os_user": os.environ.get("USER", os.environ.get("USERNAME")),
        "hostname": socket.gethostname(),
        "platform": sys.platform,
    }


_audit_logger: Optional[AuditLogger] = None


def get_audit_logger() -> AuditLogger:
    """Return the process-wide audit logger, creating it under ./audit_logs on first use."""
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditLogger()
    return _audit_logger


def set_audit_logger(instance: Optional[AuditLogger]) -> None:
    """Replace the singleton (startup wiring and tests)."""
    global _audit_logger
    _audit_logger = instance
