"""
Vault Exception Classes

One exception per violated invariant. Validation errors are raised by value
objects at construction time, the ownership error by the PasswordEntry
aggregate, and port errors by the encryption and repository adapters.
"""

from typing import Any, Dict, Optional


class DomainException(Exception):
    """Base exception for password vault operations"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


# ── Value object validation ─────────────────────────────────────────


class InvalidSiteNameException(DomainException):
    """Raised when a site name is empty or too long"""
    pass


class InvalidSiteUrlException(DomainException):
    """Raised when a site URL cannot be parsed"""
    pass


class InvalidUsernameException(DomainException):
    """Raised when a username is empty"""
    pass


class InvalidEncryptedPasswordException(DomainException):
    """Raised when an encrypted password is empty or malformed"""
    pass


class InvalidCategoryException(DomainException):
    """Raised when a category is not one of the known categories"""
    pass


class InvalidNotesException(DomainException):
    """Raised when notes exceed the maximum length"""
    pass


class InvalidTagException(DomainException):
    """Raised when a tag is empty, too long or uses forbidden characters"""
    pass


class InvalidPasswordEntryIdException(DomainException):
    """Raised when a password entry id is empty"""
    pass


class InvalidTimestampException(DomainException):
    """Raised when a created/updated timestamp is not a valid instant"""
    pass


# ── Aggregate ───────────────────────────────────────────────────────


class UnauthorizedPasswordEntryAccessException(DomainException):
    """Raised when a user acts on a password entry they do not own"""

    def __init__(self, entry_id: Optional[str] = None, user_id: Optional[str] = None):
        details = {}
        if entry_id is not None:
            details["entry_id"] = entry_id
        if user_id is not None:
            details["user_id"] = user_id
        super().__init__("User is not authorized to access this password entry", details)


# ── Ports ───────────────────────────────────────────────────────────


class VaultPortError(DomainException):
    """Base exception for encryption and repository adapters"""
    pass


class PasswordEntryNotFoundError(VaultPortError):
    """Raised when a password entry does not exist (or is not visible to the caller)"""

    def __init__(self, entry_id: str):
        super().__init__(f"Password entry not found: {entry_id}", {"entry_id": entry_id})


class StorageUnavailableError(VaultPortError):
    """Raised when the backing store cannot be reached or fails"""

    def __init__(self, operation: str, message: str):
        super().__init__(message, {"operation": operation})


class ConcurrentModificationError(VaultPortError):
    """Raised when saving an entry whose stored version moved on"""

    def __init__(self, entry_id: str, expected_version: int, actual_version: Optional[int]):
        super().__init__(
            f"Password entry {entry_id} was modified concurrently "
            f"(expected version {expected_version}, found {actual_version})",
            {
                "entry_id": entry_id,
                "expected_version": expected_version,
                "actual_version": actual_version,
            },
        )


class PasswordEncryptionError(VaultPortError):
    """Raised when a password cannot be encrypted"""
    pass


class PasswordDecryptionError(VaultPortError):
    """Raised when ciphertext is tampered, corrupted or bound to another key"""
    pass
