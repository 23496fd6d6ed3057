# Vault Module - Password Entries
#
# PasswordEntry aggregate, its value objects and exceptions, the encryption
# and repository ports with their adapters, and the application use cases.

from .encryption import AesGcmPasswordEncryptionService
from .exceptions import (
    ConcurrentModificationError,
    DomainException,
    PasswordDecryptionError,
    PasswordEncryptionError,
    PasswordEntryNotFoundError,
    StorageUnavailableError,
    UnauthorizedPasswordEntryAccessException,
    VaultPortError,
)
from .password_entry import PasswordEntry
from .ports import ListCriteria, PasswordEncryptionService, PasswordEntryRepository
from .repository import InMemoryPasswordEntryRepository, SqlitePasswordEntryRepository
from .use_cases import (
    CreatePasswordEntryRequest,
    ListPasswordEntriesRequest,
    PasswordEntriesLister,
    PasswordEntryCreator,
    PasswordEntryDeleter,
    PasswordEntryRevealer,
    PasswordEntryUpdater,
    UpdatePasswordEntryRequest,
)
from .value_objects import (
    Category,
    CategoryType,
    CreatedAt,
    EncryptedPassword,
    Notes,
    PasswordEntryId,
    SiteName,
    SiteUrl,
    Tag,
    Tags,
    UpdatedAt,
    Username,
)

__all__ = [
    "PasswordEntry",
    "PasswordEntryId",
    "SiteName",
    "SiteUrl",
    "Username",
    "EncryptedPassword",
    "Category",
    "CategoryType",
    "Notes",
    "Tag",
    "Tags",
    "CreatedAt",
    "UpdatedAt",
    "PasswordEncryptionService",
    "PasswordEntryRepository",
    "ListCriteria",
    "AesGcmPasswordEncryptionService",
    "InMemoryPasswordEntryRepository",
    "SqlitePasswordEntryRepository",
    "PasswordEntryCreator",
    "PasswordEntriesLister",
    "PasswordEntryUpdater",
    "PasswordEntryRevealer",
    "PasswordEntryDeleter",
    "CreatePasswordEntryRequest",
    "ListPasswordEntriesRequest",
    "UpdatePasswordEntryRequest",
    "DomainException",
    "UnauthorizedPasswordEntryAccessException",
    "VaultPortError",
    "PasswordEntryNotFoundError",
    "StorageUnavailableError",
    "ConcurrentModificationError",
    "PasswordEncryptionError",
    "PasswordDecryptionError",
]
