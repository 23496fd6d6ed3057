# Vault Application Services
#
# One class per use case, each exposing run(). Use cases only orchestrate:
# primitives in, value objects built (validation happens there), ports
# called, aggregate mutated through its owner-gated methods, primitives out.
#
# Every successful operation is written to the audit log. Ownership
# violations are audited as vault.access.denied and re-raised unchanged.

import math
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterator, List, Optional

from ..core import EventSeverity, EventType, get_audit_logger
from .exceptions import (
    PasswordEncryptionError,
    PasswordEntryNotFoundError,
    UnauthorizedPasswordEntryAccessException,
    VaultPortError,
)
from .password_entry import PasswordEntry
from .ports import ListCriteria, PasswordEncryptionService, PasswordEntryRepository
from .value_objects import (
    Category,
    Notes,
    PasswordEntryId,
    SiteName,
    SiteUrl,
    Tags,
    Username,
)


# ── Requests / responses ────────────────────────────────────────────


@dataclass
class CreatePasswordEntryRequest:
    user_id: str
    site_name: str
    username: str
    password: str
    category: str
    site_url: Optional[str] = None
    notes: Optional[str] = None
    tags: Optional[List[str]] = None


@dataclass
class UpdatePasswordEntryRequest:
    """
    Partial update. ``None`` leaves a field untouched; an empty string clears
    site_url/notes and an empty list clears tags.
    """

    entry_id: str
    user_id: str
    site_name: Optional[str] = None
    site_url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    category: Optional[str] = None
    notes: Optional[str] = None
    tags: Optional[List[str]] = None


@dataclass
class ListPasswordEntriesRequest:
    user_id: str
    page: int = 1
    limit: int = 20
    sort_by: str = "siteName"
    sort_order: str = "asc"
    category: Optional[str] = None


@dataclass
class PasswordEntryResponse:
    """Entry as returned after create/update. Never carries the password."""

    id: str
    site_name: str
    site_url: Optional[str]
    username: str
    category: str
    notes: Optional[str]
    tags: List[str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entry(cls, entry: PasswordEntry) -> "PasswordEntryResponse":
        return cls(
            id=entry.id.value,
            site_name=entry.site_name.value,
            site_url=entry.site_url.value,
            username=entry.username.value,
            category=entry.category.value.value,
            notes=entry.notes.value,
            tags=entry.tags.to_string_list(),
            created_at=entry.created_at.value,
            updated_at=entry.updated_at.value,
        )


@dataclass
class PasswordEntryDTO:
    """Listing row. The password stays encrypted."""

    id: str
    user_id: str
    site_name: str
    site_url: Optional[str]
    username: str
    encrypted_password: str
    category: str
    notes: Optional[str]
    tags: List[str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entry(cls, entry: PasswordEntry) -> "PasswordEntryDTO":
        data = entry.to_primitives()
        return cls(
            id=data["id"],
            user_id=data["userId"],
            site_name=data["siteName"],
            site_url=data["siteUrl"],
            username=data["username"],
            encrypted_password=data["encryptedPassword"],
            category=data["category"],
            notes=data["notes"],
            tags=data["tags"],
            created_at=data["createdAt"],
            updated_at=data["updatedAt"],
        )


@dataclass
class PaginationMetadata:
    page: int
    limit: int
    total: int
    total_pages: int


@dataclass
class ListPasswordEntriesResponse:
    data: List[PasswordEntryDTO] = field(default_factory=list)
    pagination: Optional[PaginationMetadata] = None


# ── Use cases ───────────────────────────────────────────────────────


class _VaultUseCase:
    """Shared repository access and audit plumbing."""

    def __init__(self, repository: PasswordEntryRepository, audit_logger=None):
        self._repository = repository
        self.logger = audit_logger or get_audit_logger()

    @contextmanager
    def _audited(self, action: str, user_id: str, entry_id: Optional[str] = None) -> Iterator[None]:
        """Audit denied access and adapter failures raised inside the block, then re-raise."""
        details = {"action": action}
        if entry_id is not None:
            details["entry_id"] = entry_id
        try:
            yield
        except UnauthorizedPasswordEntryAccessException:
            self.logger.log_vault_event(
                event_type=EventType.ACCESS_DENIED,
                severity=EventSeverity.ALERT,
                message=f"Access denied ({action})",
                user_id=user_id,
                details=details,
            )
            raise
        except PasswordEntryNotFoundError:
            self.logger.log_vault_event(
                event_type=EventType.VAULT_ERROR,
                severity=EventSeverity.INVESTIGATE,
                message=f"Password entry not found ({action})",
                user_id=user_id,
                details=details,
            )
            raise
        except VaultPortError as e:
            self.logger.log_vault_event(
                event_type=EventType.VAULT_ERROR,
                severity=EventSeverity.CRITICAL,
                message=f"Failed to {action} password entry: {e.message}",
                user_id=user_id,
                details={**details, **e.details},
            )
            raise

    def _load(self, entry_id: str) -> PasswordEntry:
        entry = self._repository.find_by_id(PasswordEntryId(entry_id))
        if entry is None:
            raise PasswordEntryNotFoundError(entry_id)
        return entry


class PasswordEntryCreator(_VaultUseCase):
    """Create and store a new password entry."""

    def __init__(
        self,
        repository: PasswordEntryRepository,
        encryption_service: PasswordEncryptionService,
        audit_logger=None,
    ):
        super().__init__(repository, audit_logger)
        self._encryption = encryption_service

    def run(self, request: CreatePasswordEntryRequest) -> PasswordEntryResponse:
        """
        Args:
            request: Primitives for the new entry, including the plaintext password

        Returns:
            PasswordEntryResponse (without the password)

        Raises:
            Invalid*Exception: a field failed validation
            PasswordEncryptionError: the password could not be encrypted
            StorageUnavailableError: the entry could not be stored
        """
        site_name = SiteName(request.site_name)
        site_url = SiteUrl(request.site_url) if request.site_url else None
        username = Username(request.username)
        category = Category.from_string(request.category)
        notes = Notes(request.notes) if request.notes else None
        tags = Tags.from_strings(request.tags) if request.tags else None

        with self._audited("create", request.user_id):
            encrypted_password = self._encryption.encrypt(request.password, request.user_id)
            entry = PasswordEntry.create(
                request.user_id,
                site_name,
                username,
                encrypted_password,
                category,
                site_url=site_url,
                notes=notes,
                tags=tags,
            )
            self._repository.save(entry)

        self.logger.log_vault_event(
            event_type=EventType.ENTRY_CREATED,
            message=f"Password entry created: {entry.site_name}",
            user_id=request.user_id,
            details={"entry_id": entry.id.value, "category": str(entry.category)},
        )
        return PasswordEntryResponse.from_entry(entry)


class PasswordEntriesLister(_VaultUseCase):
    """List one page of a user's entries."""

    DEFAULT_PAGE = 1
    DEFAULT_LIMIT = 20
    DEFAULT_SORT_BY = "siteName"
    DEFAULT_SORT_ORDER = "asc"

    def __init__(self, repository: PasswordEntryRepository, audit_logger=None):
        super().__init__(repository, audit_logger)

    def run(self, request: ListPasswordEntriesRequest) -> ListPasswordEntriesResponse:
        """
        Raises:
            ValueError: page, limit, sort_by or sort_order out of range
            InvalidCategoryException: category filter is not a known category
        """
        category = str(Category.from_string(request.category)) if request.category else None
        criteria = ListCriteria(
            page=request.page if request.page is not None else self.DEFAULT_PAGE,
            limit=request.limit if request.limit is not None else self.DEFAULT_LIMIT,
            sort_by=request.sort_by or self.DEFAULT_SORT_BY,
            sort_order=request.sort_order or self.DEFAULT_SORT_ORDER,
            category=category,
        )

        with self._audited("list", request.user_id):
            entries = self._repository.search(request.user_id, criteria)
            total = self._repository.count_by_user_id(request.user_id, criteria.category)

        pagination = PaginationMetadata(
            page=criteria.page,
            limit=criteria.limit,
            total=total,
            total_pages=math.ceil(total / criteria.limit),
        )

        self.logger.log_vault_event(
            event_type=EventType.ENTRY_LISTED,
            message=f"Listed {len(entries)} of {total} password entries",
            user_id=request.user_id,
            details={"page": criteria.page, "category": criteria.category},
        )
        return ListPasswordEntriesResponse(
            data=[PasswordEntryDTO.from_entry(entry) for entry in entries],
            pagination=pagination,
        )


class PasswordEntryUpdater(_VaultUseCase):
    """Apply a partial update to an owned entry."""

    def __init__(
        self,
        repository: PasswordEntryRepository,
        encryption_service: Optional[PasswordEncryptionService],
        audit_logger=None,
    ):
        super().__init__(repository, audit_logger)
        self._encryption = encryption_service

    def run(self, request: UpdatePasswordEntryRequest) -> PasswordEntryResponse:
        """
        Raises:
            PasswordEntryNotFoundError: no entry with that id
            UnauthorizedPasswordEntryAccessException: entry belongs to someone else
            PasswordEncryptionError: a new password was given but no encryption service
            ConcurrentModificationError: entry changed since it was loaded
        """
        user_id = request.user_id
        changed: List[str] = []

        with self._audited("update", user_id, request.entry_id):
            if request.password is not None and self._encryption is None:
                raise PasswordEncryptionError("No encryption service configured for password updates")

            entry = self._load(request.entry_id)
            entry.ensure_belongs_to_user(user_id)

            if request.site_name is not None:
                entry.update_site_name(SiteName(request.site_name), user_id)
                changed.append("site_name")
            if request.site_url is not None:
                entry.update_site_url(SiteUrl(request.site_url), user_id)
                changed.append("site_url")
            if request.username is not None:
                entry.update_username(Username(request.username), user_id)
                changed.append("username")
            if request.password is not None:
                entry.update_password(self._encryption.encrypt(request.password, user_id), user_id)
                changed.append("password")
            if request.category is not None:
                entry.update_category(Category.from_string(request.category), user_id)
                changed.append("category")
            if request.notes is not None:
                entry.update_notes(Notes(request.notes), user_id)
                changed.append("notes")
            if request.tags is not None:
                entry.update_tags(Tags.from_strings(request.tags), user_id)
                changed.append("tags")

            if changed:
                self._repository.save(entry)

        if changed:
            self.logger.log_vault_event(
                event_type=EventType.ENTRY_UPDATED,
                message=f"Password entry updated: {entry.site_name}",
                user_id=user_id,
                details={"entry_id": entry.id.value, "fields": changed},
            )
        return PasswordEntryResponse.from_entry(entry)


class PasswordEntryRevealer(_VaultUseCase):
    """Decrypt the password of an owned entry."""

    def __init__(
        self,
        repository: PasswordEntryRepository,
        encryption_service: PasswordEncryptionService,
        audit_logger=None,
    ):
        super().__init__(repository, audit_logger)
        self._encryption = encryption_service

    def run(self, entry_id: str, user_id: str) -> str:
        """
        Returns:
            The plaintext password

        Raises:
            PasswordEntryNotFoundError: no entry with that id
            UnauthorizedPasswordEntryAccessException: entry belongs to someone else
            PasswordDecryptionError: stored ciphertext is corrupted or foreign
        """
        with self._audited("reveal", user_id, entry_id):
            entry = self._load(entry_id)
            entry.ensure_belongs_to_user(user_id)
            plain_password = self._encryption.decrypt(entry.encrypted_password, user_id)

        self.logger.log_vault_event(
            event_type=EventType.ENTRY_ACCESSED,
            message=f"Password revealed: {entry.site_name}",
            user_id=user_id,
            details={"entry_id": entry_id},
        )
        return plain_password


class PasswordEntryDeleter(_VaultUseCase):
    """Delete an owned entry."""

    def __init__(self, repository: PasswordEntryRepository, audit_logger=None):
        super().__init__(repository, audit_logger)

    def run(self, entry_id: str, user_id: str) -> None:
        """
        Raises:
            PasswordEntryNotFoundError: nothing was deleted (missing or not owned)
        """
        with self._audited("delete", user_id, entry_id):
            if not self._repository.delete(PasswordEntryId(entry_id), user_id):
                raise PasswordEntryNotFoundError(entry_id)

        self.logger.log_vault_event(
            event_type=EventType.ENTRY_DELETED,
            message="Password entry deleted",
            user_id=user_id,
            details={"entry_id": entry_id},
        )
