# Vault Domain - PasswordEntry Aggregate Root
#
# A stored credential (site, username, encrypted password, metadata) owned by
# exactly one user. Every mutation is owner-gated: the acting user id is
# checked before the single field is swapped and updated_at is refreshed.
#
# The owner is kept as a plain string, not as a user type from an
# authentication context.

from typing import Any, Dict, Optional

from .exceptions import InvalidTimestampException, UnauthorizedPasswordEntryAccessException
from .value_objects import (
    Category,
    CreatedAt,
    EncryptedPassword,
    Notes,
    PasswordEntryId,
    SiteName,
    SiteUrl,
    Tags,
    UpdatedAt,
    Username,
)


class PasswordEntry:
    """
    Aggregate root for one stored credential.

    Business rules:
    - Only the owner (user_id) can modify the entry
    - The password is only ever held encrypted
    - Fields are replaced wholesale with already-validated value objects
    - updated_at never precedes created_at and never moves backwards

    ``version`` is persistence metadata used by repositories for
    compare-and-swap; it is not part of to_primitives().
    """

    def __init__(
        self,
        id: PasswordEntryId,
        user_id: str,
        site_name: SiteName,
        site_url: SiteUrl,
        username: Username,
        encrypted_password: EncryptedPassword,
        category: Category,
        notes: Notes,
        tags: Tags,
        created_at: CreatedAt,
        updated_at: UpdatedAt,
        version: int = 0,
    ):
        if updated_at.value < created_at.value:
            raise InvalidTimestampException(
                "UpdatedAt cannot be earlier than CreatedAt",
                {"created_at": created_at.isoformat(), "updated_at": updated_at.isoformat()},
            )

        self._id = id
        self._user_id = user_id
        self._site_name = site_name
        self._site_url = site_url
        self._username = username
        self._encrypted_password = encrypted_password
        self._category = category
        self._notes = notes
        self._tags = tags
        self._created_at = created_at
        self._updated_at = updated_at
        self._version = version

    @classmethod
    def create(
        cls,
        user_id: str,
        site_name: SiteName,
        username: Username,
        encrypted_password: EncryptedPassword,
        category: Category,
        site_url: Optional[SiteUrl] = None,
        notes: Optional[Notes] = None,
        tags: Optional[Tags] = None,
    ) -> "PasswordEntry":
        """
        Create a new password entry with a fresh id.

        Args:
            user_id: Owner of the entry
            site_name: Name of the site/app
            username: Login for the site
            encrypted_password: Output of a PasswordEncryptionService
            category: Entry category
            site_url: Optional URL (defaults to SiteUrl.empty())
            notes: Optional notes (defaults to Notes.empty())
            tags: Optional tags (defaults to Tags.empty())

        Returns:
            New PasswordEntry with created_at == updated_at == now
        """
        created_at = CreatedAt.now()
        return cls(
            id=PasswordEntryId.generate(),
            user_id=user_id,
            site_name=site_name,
            site_url=site_url if site_url is not None else SiteUrl.empty(),
            username=username,
            encrypted_password=encrypted_password,
            category=category,
            notes=notes if notes is not None else Notes.empty(),
            tags=tags if tags is not None else Tags.empty(),
            created_at=created_at,
            updated_at=UpdatedAt(created_at.value),
        )

    @classmethod
    def from_primitives(cls, data: Dict[str, Any], version: int = 0) -> "PasswordEntry":
        """Rebuild an entry from to_primitives() output (repository use)."""
        return cls(
            id=PasswordEntryId(data["id"]),
            user_id=data["userId"],
            site_name=SiteName(data["siteName"]),
            site_url=SiteUrl(data.get("siteUrl")),
            username=Username(data["username"]),
            encrypted_password=EncryptedPassword(data["encryptedPassword"]),
            category=Category(data["category"]),
            notes=Notes(data.get("notes")),
            tags=Tags.from_strings(data.get("tags") or []),
            created_at=CreatedAt(data["createdAt"]),
            updated_at=UpdatedAt(data["updatedAt"]),
            version=version,
        )

    # ── Read access ─────────────────────────────────────────────────

    @property
    def id(self) -> PasswordEntryId:
        return self._id

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def site_name(self) -> SiteName:
        return self._site_name

    @property
    def site_url(self) -> SiteUrl:
        return self._site_url

    @property
    def username(self) -> Username:
        return self._username

    @property
    def encrypted_password(self) -> EncryptedPassword:
        return self._encrypted_password

    @property
    def category(self) -> Category:
        return self._category

    @property
    def notes(self) -> Notes:
        return self._notes

    @property
    def tags(self) -> Tags:
        return self._tags

    @property
    def created_at(self) -> CreatedAt:
        return self._created_at

    @property
    def updated_at(self) -> UpdatedAt:
        return self._updated_at

    @property
    def version(self) -> int:
        return self._version

    def mark_persisted(self, version: int) -> None:
        """Record the version a repository stored this entry under."""
        self._version = version

    # ── Ownership ───────────────────────────────────────────────────

    def belongs_to_user(self, user_id: str) -> bool:
        return self._user_id == user_id

    def ensure_belongs_to_user(self, user_id: str) -> None:
        """
        Raises:
            UnauthorizedPasswordEntryAccessException: user_id is not the owner
        """
        if not self.belongs_to_user(user_id):
            raise UnauthorizedPasswordEntryAccessException(self._id.value, user_id)

    # ── Owner-gated mutators ────────────────────────────────────────

    def update_site_name(self, new_site_name: SiteName, user_id: str) -> None:
        self.ensure_belongs_to_user(user_id)
        self._site_name = new_site_name
        self._touch()

    def update_site_url(self, new_site_url: SiteUrl, user_id: str) -> None:
        self.ensure_belongs_to_user(user_id)
        self._site_url = new_site_url
        self._touch()

    def update_username(self, new_username: Username, user_id: str) -> None:
        self.ensure_belongs_to_user(user_id)
        self._username = new_username
        self._touch()

    def update_password(self, new_encrypted_password: EncryptedPassword, user_id: str) -> None:
        self.ensure_belongs_to_user(user_id)
        self._encrypted_password = new_encrypted_password
        self._touch()

    def update_category(self, new_category: Category, user_id: str) -> None:
        self.ensure_belongs_to_user(user_id)
        self._category = new_category
        self._touch()

    def update_notes(self, new_notes: Notes, user_id: str) -> None:
        self.ensure_belongs_to_user(user_id)
        self._notes = new_notes
        self._touch()

    def update_tags(self, new_tags: Tags, user_id: str) -> None:
        self.ensure_belongs_to_user(user_id)
        self._tags = new_tags
        self._touch()

    def _touch(self) -> None:
        now = UpdatedAt.now()
        # Clock steps backwards must not make updated_at regress
        if now.value > self._updated_at.value:
            self._updated_at = now

    # ── Persistence projection ──────────────────────────────────────

    def to_primitives(self) -> Dict[str, Any]:
        return {
            "id": self._id.value,
            "userId": self._user_id,
            "siteName": self._site_name.value,
            "siteUrl": self._site_url.value,
            "username": self._username.value,
            "encryptedPassword": self._encrypted_password.value,
            "category": self._category.value.value,
            "notes": self._notes.value,
            "tags": self._tags.to_string_list(),
            "createdAt": self._created_at.value,
            "updatedAt": self._updated_at.value,
        }

    # ── Identity ────────────────────────────────────────────────────

    def __eq__(self, other) -> bool:
        if not isinstance(other, PasswordEntry):
            return NotImplemented
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __repr__(self) -> str:
        return (
            f"PasswordEntry(id={self._id.value!r}, user_id={self._user_id!r}, "
            f"site_name={self._site_name.value!r}, category={self._category})"
        )
