# Vault Domain - Value Objects
#
# Immutable, self-validating wrappers for every field of a PasswordEntry.
# Each value object normalizes its raw primitive in __post_init__ (trim,
# case-fold, empty -> None), validates the normalized form, and raises the
# exception named after its type when the input is invalid.
#
# Value objects are compared by value: two instances holding the same
# normalized value are equal and hash the same.

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Tuple, Union
from urllib.parse import urlsplit

from .exceptions import (
    InvalidCategoryException,
    InvalidEncryptedPasswordException,
    InvalidNotesException,
    InvalidPasswordEntryIdException,
    InvalidSiteNameException,
    InvalidSiteUrlException,
    InvalidTagException,
    InvalidTimestampException,
    InvalidUsernameException,
)

_TAG_PATTERN = re.compile(r"^[a-z0-9_-]+$")
_SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*$")

# Schemes whose URLs are only meaningful with a host component
_HOST_REQUIRED_SCHEMES = {"http", "https", "ftp", "ws", "wss"}


def _trimmed(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    return value.strip()


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PasswordEntryId:
    """UUID-v4 identifier of a password entry."""

    value: str

    def __post_init__(self):
        if not isinstance(self.value, str) or not self.value.strip():
            raise InvalidPasswordEntryIdException("PasswordEntryId cannot be empty")

    @classmethod
    def generate(cls) -> "PasswordEntryId":
        return cls(str(uuid.uuid4()))

    def __str__(self) -> str:
        return self.value


# ---------------------------------------------------------------------------
# Text fields
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SiteName:
    """Display name of the site or application, e.g. "GitHub"."""

    MAX_LENGTH = 100

    value: str

    def __post_init__(self):
        normalized = _trimmed(self.value)
        if not isinstance(normalized, str) or not normalized:
            raise InvalidSiteNameException("Site name cannot be empty")
        if len(normalized) > self.MAX_LENGTH:
            raise InvalidSiteNameException(
                f"Site name cannot exceed {self.MAX_LENGTH} characters",
                {"length": len(normalized)},
            )
        object.__setattr__(self, "value", normalized)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Username:
    """Login name used on the site (often an email address)."""

    value: str

    def __post_init__(self):
        normalized = _trimmed(self.value)
        if not isinstance(normalized, str) or not normalized:
            raise InvalidUsernameException("Username cannot be empty")
        object.__setattr__(self, "value", normalized)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SiteUrl:
    """
    Optional URL of the site.

    An absent URL is represented by ``value is None`` rather than by a
    missing field, so every entry always has a SiteUrl. Empty and blank
    strings normalize to the absent state.
    """

    value: Optional[str] = None

    def __post_init__(self):
        normalized = _trimmed(self.value) or None
        if normalized is not None:
            if not isinstance(normalized, str):
                raise InvalidSiteUrlException("Invalid URL format")
            self._ensure_parseable(normalized)
        object.__setattr__(self, "value", normalized)

    @staticmethod
    def _ensure_parseable(url: str) -> None:
        try:
            parts = urlsplit(url)
            # Accessing .port validates the port number
            parts.port
        except ValueError:
            raise InvalidSiteUrlException("Invalid URL format", {"url": url})

        if not parts.scheme or not _SCHEME_PATTERN.match(parts.scheme):
            raise InvalidSiteUrlException("Invalid URL format: missing scheme", {"url": url})
        if any(ch.isspace() for ch in parts.netloc):
            raise InvalidSiteUrlException("Invalid URL format: malformed host", {"url": url})
        if parts.scheme.lower() in _HOST_REQUIRED_SCHEMES and not parts.hostname:
            raise InvalidSiteUrlException("Invalid URL format: missing host", {"url": url})
        if not parts.netloc and not parts.path:
            raise InvalidSiteUrlException("Invalid URL format", {"url": url})

    @classmethod
    def empty(cls) -> "SiteUrl":
        return cls(None)

    def is_empty(self) -> bool:
        return self.value is None

    @property
    def domain(self) -> Optional[str]:
        """Hostname of the URL, or None when absent."""
        if not self.value:
            return None
        try:
            return urlsplit(self.value).hostname or None
        except ValueError:
            return None

    def __str__(self) -> str:
        return self.value or ""


@dataclass(frozen=True)
class Notes:
    """
    Free-form notes attached to an entry.

    Blank notes normalize to ``None`` (the empty state). Inner newlines are
    kept as-is.
    """

    MAX_LENGTH = 1000

    value: Optional[str] = None

    def __post_init__(self):
        normalized = _trimmed(self.value) or None
        if normalized is not None:
            if not isinstance(normalized, str):
                raise InvalidNotesException("Notes must be text")
            if len(normalized) > self.MAX_LENGTH:
                raise InvalidNotesException(
                    f"Notes cannot exceed {self.MAX_LENGTH} characters",
                    {"length": len(normalized)},
                )
        object.__setattr__(self, "value", normalized)

    @classmethod
    def empty(cls) -> "Notes":
        return cls(None)

    def is_empty(self) -> bool:
        return self.value is None

    def __str__(self) -> str:
        return self.value or ""


# ---------------------------------------------------------------------------
# Encrypted payload
# ---------------------------------------------------------------------------


@dataclass(frozen=True, repr=False)
class EncryptedPassword:
    """
    Opaque ciphertext produced by a PasswordEncryptionService.

    The textual form embeds everything needed to decrypt it (salt, IV,
    auth tag, ciphertext). Only a structural length check happens here;
    actual decryption is the final validation.
    """

    MIN_LENGTH = 32

    value: str

    def __post_init__(self):
        if not isinstance(self.value, str) or not self.value.strip():
            raise InvalidEncryptedPasswordException("Encrypted password cannot be empty")
        if len(self.value) < self.MIN_LENGTH:
            raise InvalidEncryptedPasswordException(
                "Encrypted password format is invalid: too short",
                {"length": len(self.value)},
            )

    def is_valid(self) -> bool:
        return len(self.value) >= self.MIN_LENGTH

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"EncryptedPassword(<{len(self.value)} chars>)"


# ---------------------------------------------------------------------------
# Category
# ---------------------------------------------------------------------------


class CategoryType(str, Enum):
    """Fixed set of entry categories."""

    PERSONAL = "PERSONAL"
    WORK = "WORK"
    FINANCE = "FINANCE"
    SOCIAL = "SOCIAL"
    EMAIL = "EMAIL"
    SHOPPING = "SHOPPING"
    OTHER = "OTHER"

    @classmethod
    def labels(cls) -> List[str]:
        return [member.value for member in cls]


@dataclass(frozen=True)
class Category:
    """Entry category. Use from_string() for case-insensitive input."""

    value: CategoryType

    def __post_init__(self):
        if not self.value:
            raise InvalidCategoryException("Category cannot be empty")
        try:
            member = CategoryType(self.value)
        except ValueError:
            raise InvalidCategoryException(
                f"Invalid category: {self.value}. "
                f"Valid values are: {', '.join(CategoryType.labels())}"
            )
        object.__setattr__(self, "value", member)

    @classmethod
    def from_string(cls, value: str) -> "Category":
        if not isinstance(value, str) or not value:
            raise InvalidCategoryException("Category cannot be empty")
        return cls(value.upper())

    @classmethod
    def personal(cls) -> "Category":
        return cls(CategoryType.PERSONAL)

    @classmethod
    def work(cls) -> "Category":
        return cls(CategoryType.WORK)

    @classmethod
    def finance(cls) -> "Category":
        return cls(CategoryType.FINANCE)

    @classmethod
    def social(cls) -> "Category":
        return cls(CategoryType.SOCIAL)

    @classmethod
    def email(cls) -> "Category":
        return cls(CategoryType.EMAIL)

    @classmethod
    def shopping(cls) -> "Category":
        return cls(CategoryType.SHOPPING)

    @classmethod
    def other(cls) -> "Category":
        return cls(CategoryType.OTHER)

    def is_personal(self) -> bool:
        return self.value is CategoryType.PERSONAL

    def is_work(self) -> bool:
        return self.value is CategoryType.WORK

    def is_finance(self) -> bool:
        return self.value is CategoryType.FINANCE

    def is_social(self) -> bool:
        return self.value is CategoryType.SOCIAL

    def is_email(self) -> bool:
        return self.value is CategoryType.EMAIL

    def is_shopping(self) -> bool:
        return self.value is CategoryType.SHOPPING

    def is_other(self) -> bool:
        return self.value is CategoryType.OTHER

    def __str__(self) -> str:
        return self.value.value


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Tag:
    """Lower-case label such as "2fa" or "shared-account"."""

    MAX_LENGTH = 30

    value: str

    def __post_init__(self):
        if not isinstance(self.value, str):
            raise InvalidTagException("Tag cannot be empty")
        normalized = self.value.lower().strip()
        if not normalized:
            raise InvalidTagException("Tag cannot be empty")
        if len(normalized) > self.MAX_LENGTH:
            raise InvalidTagException(
                f"Tag cannot exceed {self.MAX_LENGTH} characters",
                {"length": len(normalized)},
            )
        if any(ch.isspace() for ch in normalized):
            raise InvalidTagException("Tag cannot contain spaces", {"tag": normalized})
        if not _TAG_PATTERN.match(normalized):
            raise InvalidTagException(
                "Tag can only contain lowercase letters, numbers, hyphens, and underscores",
                {"tag": normalized},
            )
        object.__setattr__(self, "value", normalized)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, eq=False)
class Tags:
    """
    Collection of unique tags.

    Duplicates collapse on construction (first occurrence wins, order is
    otherwise preserved). Equality ignores order. add() and remove() return
    new collections.
    """

    value: Tuple[Tag, ...] = field(default_factory=tuple)

    def __post_init__(self):
        seen = set()
        unique = []
        for item in self.value:
            tag = item if isinstance(item, Tag) else Tag(item)
            if tag.value not in seen:
                seen.add(tag.value)
                unique.append(tag)
        object.__setattr__(self, "value", tuple(unique))

    @classmethod
    def empty(cls) -> "Tags":
        return cls(())

    @classmethod
    def from_strings(cls, values: Iterable[str]) -> "Tags":
        return cls(tuple(Tag(v) for v in values))

    def is_empty(self) -> bool:
        return not self.value

    def count(self) -> int:
        return len(self.value)

    def contains(self, tag: Tag) -> bool:
        return tag in self.value

    def contains_string(self, value: str) -> bool:
        return self.contains(Tag(value))

    def add(self, tag: Tag) -> "Tags":
        if self.contains(tag):
            return self
        return Tags(self.value + (tag,))

    def remove(self, tag: Tag) -> "Tags":
        return Tags(tuple(t for t in self.value if t != tag))

    def to_string_list(self) -> List[str]:
        return [tag.value for tag in self.value]

    def __len__(self) -> int:
        return len(self.value)

    def __iter__(self) -> Iterator[Tag]:
        return iter(self.value)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Tags):
            return NotImplemented
        return frozenset(self.value) == frozenset(other.value)

    def __hash__(self) -> int:
        return hash(frozenset(self.value))

    def __str__(self) -> str:
        return ", ".join(self.to_string_list())


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


def _to_instant(value: Union[datetime, str], label: str) -> datetime:
    """Coerce a datetime or ISO-8601 string into an aware UTC datetime."""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            raise InvalidTimestampException(f"{label} must be a valid date", {"value": value})
    if not isinstance(value, datetime):
        raise InvalidTimestampException(f"{label} must be a valid date")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True, order=True)
class _Timestamp:
    value: datetime

    def __post_init__(self):
        object.__setattr__(self, "value", _to_instant(self.value, type(self).__name__))

    @classmethod
    def now(cls):
        return cls(datetime.now(timezone.utc))

    def is_after(self, other: "_Timestamp") -> bool:
        return self.value > other.value

    def is_before(self, other: "_Timestamp") -> bool:
        return self.value < other.value

    def isoformat(self) -> str:
        return self.value.isoformat()

    def __str__(self) -> str:
        return self.value.isoformat()


@dataclass(frozen=True, order=True)
class CreatedAt(_Timestamp):
    """Instant the entry was created. Never changes."""


@dataclass(frozen=True, order=True)
class UpdatedAt(_Timestamp):
    """Instant of the last successful mutation."""
