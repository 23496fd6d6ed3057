# Vault Ports - Encryption and Repository Contracts
#
# Abstract capabilities the PasswordEntry core depends on but does not
# implement. Concrete adapters live in encryption.py and repository.py.

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from .exceptions import PasswordEntryNotFoundError
from .password_entry import PasswordEntry
from .value_objects import EncryptedPassword, PasswordEntryId

SORT_FIELDS = ("siteName", "createdAt", "category")
SORT_ORDERS = ("asc", "desc")


class PasswordEncryptionService(ABC):
    """
    Turns plaintext passwords into EncryptedPassword values and back.

    Key material is scoped to the owning user and to the adapter; it is
    never stored on the aggregate.
    """

    @abstractmethod
    def encrypt(self, plain_password: str, user_id: str) -> EncryptedPassword:
        """Encrypt a plaintext password for the given owner."""
        pass

    @abstractmethod
    def decrypt(self, encrypted_password: EncryptedPassword, user_id: str) -> str:
        """
        Recover the plaintext password.

        Raises:
            PasswordDecryptionError: tampered/corrupted data or wrong key/owner
        """
        pass


@dataclass(frozen=True)
class ListCriteria:
    """Filtering, sorting and 1-based pagination for owner listings."""

    MAX_LIMIT = 100

    page: int = 1
    limit: int = 20
    sort_by: str = "siteName"
    sort_order: str = "asc"
    category: Optional[str] = None

    def __post_init__(self):
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")
        if not 1 <= self.limit <= self.MAX_LIMIT:
            raise ValueError(f"limit must be between 1 and {self.MAX_LIMIT}, got {self.limit}")
        if self.sort_by not in SORT_FIELDS:
            raise ValueError(f"sort_by must be one of {', '.join(SORT_FIELDS)}, got {self.sort_by!r}")
        if self.sort_order not in SORT_ORDERS:
            raise ValueError(f"sort_order must be 'asc' or 'desc', got {self.sort_order!r}")
        if self.category:
            object.__setattr__(self, "category", self.category.upper())

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class PasswordEntryRepository(ABC):
    """
    Stores PasswordEntry aggregates keyed by id and owner.

    save() uses compare-and-swap on the entry's persistence version: it
    succeeds only when the stored version equals ``entry.version`` and
    raises ConcurrentModificationError otherwise.
    """

    @abstractmethod
    def save(self, entry: PasswordEntry) -> None:
        """Insert or update an entry."""
        pass

    @abstractmethod
    def find_by_id(
        self, entry_id: PasswordEntryId, user_id: Optional[str] = None
    ) -> Optional[PasswordEntry]:
        """Return the entry, or None. With user_id, other owners' entries are hidden."""
        pass

    @abstractmethod
    def find_by_user_id(self, user_id: str) -> List[PasswordEntry]:
        """Return all entries owned by user_id."""
        pass

    @abstractmethod
    def search(self, user_id: str, criteria: ListCriteria) -> List[PasswordEntry]:
        """Return one page of the owner's entries."""
        pass

    @abstractmethod
    def count_by_user_id(self, user_id: str, category: Optional[str] = None) -> int:
        """Count the owner's entries, optionally within one category."""
        pass

    @abstractmethod
    def delete(self, entry_id: PasswordEntryId, user_id: str) -> bool:
        """Delete an owned entry. Returns False when missing or not owned."""
        pass

    def get(self, entry_id: PasswordEntryId, user_id: str) -> PasswordEntry:
        """Like find_by_id() scoped to user_id, but raises when absent."""
        entry = self.find_by_id(entry_id, user_id)
        if entry is None:
            raise PasswordEntryNotFoundError(entry_id.value)
        return entry
