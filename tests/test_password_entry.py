"""
Tests for the PasswordEntry aggregate.

Covers: create() defaults, ownership guard on every mutator, updated_at
refresh and monotonicity, primitives round trip, identity-based equality.
"""

from datetime import datetime, timedelta, timezone

import pytest

from password_vault.vault import (
    Category,
    CreatedAt,
    EncryptedPassword,
    Notes,
    PasswordEntry,
    PasswordEntryId,
    SiteName,
    SiteUrl,
    Tags,
    UpdatedAt,
    Username,
)
from password_vault.vault.exceptions import (
    InvalidTimestampException,
    UnauthorizedPasswordEntryAccessException,
)

from conftest import FAKE_CIPHERTEXT


def _backdate(entry: PasswordEntry, seconds: int = 60) -> PasswordEntry:
    """Rebuild the entry with timestamps in the past so a touch is observable."""
    data = entry.to_primitives()
    past = datetime.now(timezone.utc) - timedelta(seconds=seconds)
    data["createdAt"] = past
    data["updatedAt"] = past
    return PasswordEntry.from_primitives(data)


# ── Creation ────────────────────────────────────────────────────────


class TestCreate:

    def test_defaults_for_optional_fields(self, entry_factory):
        entry = entry_factory()

        assert entry.site_url.is_empty()
        assert entry.notes.is_empty()
        assert entry.tags.is_empty()
        assert entry.version == 0

    def test_timestamps_equal_on_creation(self, entry_factory):
        entry = entry_factory()
        assert entry.created_at.value == entry.updated_at.value

    def test_each_entry_gets_new_id(self, entry_factory):
        assert entry_factory().id != entry_factory().id

    def test_optional_fields_are_kept(self, entry_factory):
        entry = entry_factory(
            site_url="https://github.com",
            notes="work account",
            tags=["dev", "2fa"],
            category=Category.work(),
        )

        assert entry.site_url.value == "https://github.com"
        assert entry.notes.value == "work account"
        assert entry.tags.to_string_list() == ["dev", "2fa"]
        assert entry.category.is_work()

    def test_rejects_updated_before_created(self):
        with pytest.raises(InvalidTimestampException):
            PasswordEntry(
                id=PasswordEntryId.generate(),
                user_id="user-1",
                site_name=SiteName("GitHub"),
                site_url=SiteUrl.empty(),
                username=Username("alice"),
                encrypted_password=EncryptedPassword(FAKE_CIPHERTEXT),
                category=Category.personal(),
                notes=Notes.empty(),
                tags=Tags.empty(),
                created_at=CreatedAt("2024-06-01T00:00:00+00:00"),
                updated_at=UpdatedAt("2024-05-01T00:00:00+00:00"),
            )


# ── Ownership ───────────────────────────────────────────────────────


class TestOwnership:

    def test_belongs_to_user(self, entry_factory):
        entry = entry_factory(user_id="alice")
        assert entry.belongs_to_user("alice")
        assert not entry.belongs_to_user("bob")

    def test_ensure_belongs_to_user_raises_for_stranger(self, entry_factory):
        entry = entry_factory(user_id="alice")

        with pytest.raises(UnauthorizedPasswordEntryAccessException) as exc_info:
            entry.ensure_belongs_to_user("bob")

        assert exc_info.value.message == "User is not authorized to access this password entry"
        assert exc_info.value.details == {"entry_id": entry.id.value, "user_id": "bob"}

    @pytest.mark.parametrize("method, value", [
        ("update_site_name", SiteName("Other")),
        ("update_site_url", SiteUrl("https://other.example")),
        ("update_username", Username("mallory")),
        ("update_password", EncryptedPassword("y" * 40)),
        ("update_category", Category.finance()),
        ("update_notes", Notes("hijacked")),
        ("update_tags", Tags.from_strings(["stolen"])),
    ])
    def test_stranger_cannot_mutate(self, entry_factory, method, value):
        entry = _backdate(entry_factory(user_id="alice"))
        before = entry.to_primitives()

        with pytest.raises(UnauthorizedPasswordEntryAccessException):
            getattr(entry, method)(value, "mallory")

        assert entry.to_primitives() == before

    def test_rename_by_other_user_keeps_site_name(self):
        entry = PasswordEntry.create(
            "U1",
            SiteName("Google"),
            Username("a@b.com"),
            EncryptedPassword("e" * 64),
            Category.email(),
        )

        with pytest.raises(UnauthorizedPasswordEntryAccessException):
            entry.update_site_name(SiteName("GitHub"), "U2")

        assert entry.site_name.value == "Google"

    def test_owner_passes_guard(self, entry_factory):
        entry_factory(user_id="alice").ensure_belongs_to_user("alice")


# ── Mutators ────────────────────────────────────────────────────────


class TestMutators:

    @pytest.mark.parametrize("method, value, attr", [
        ("update_site_name", SiteName("GitLab"), "site_name"),
        ("update_site_url", SiteUrl("https://gitlab.com"), "site_url"),
        ("update_username", Username("bob"), "username"),
        ("update_password", EncryptedPassword("z" * 48), "encrypted_password"),
        ("update_category", Category.work(), "category"),
        ("update_notes", Notes("rotated"), "notes"),
        ("update_tags", Tags.from_strings(["ops"]), "tags"),
    ])
    def test_owner_update_swaps_field_and_touches(self, entry_factory, method, value, attr):
        entry = _backdate(entry_factory(user_id="alice"))
        created = entry.created_at

        getattr(entry, method)(value, "alice")

        assert getattr(entry, attr) == value
        assert entry.updated_at.value > created.value
        assert entry.created_at == created

    def test_clearing_optional_fields(self, entry_factory):
        entry = entry_factory(user_id="alice", site_url="https://x.example", notes="n", tags=["a"])

        entry.update_site_url(SiteUrl.empty(), "alice")
        entry.update_notes(Notes.empty(), "alice")
        entry.update_tags(Tags.empty(), "alice")

        assert entry.site_url.is_empty()
        assert entry.notes.is_empty()
        assert entry.tags.is_empty()

    def test_updated_at_never_moves_backwards(self, entry_factory):
        data = entry_factory(user_id="alice").to_primitives()
        future = datetime.now(timezone.utc) + timedelta(days=1)
        data["createdAt"] = future
        data["updatedAt"] = future
        entry = PasswordEntry.from_primitives(data)

        entry.update_notes(Notes("clock skew"), "alice")

        assert entry.updated_at.value == future


# ── Primitives ──────────────────────────────────────────────────────


class TestPrimitives:

    def test_keys_and_values(self, entry_factory):
        entry = entry_factory(
            user_id="alice",
            site_url="https://github.com",
            tags=["dev"],
            category=Category.work(),
        )

        data = entry.to_primitives()

        assert set(data) == {
            "id", "userId", "siteName", "siteUrl", "username", "encryptedPassword",
            "category", "notes", "tags", "createdAt", "updatedAt",
        }
        assert data["userId"] == "alice"
        assert data["category"] == "WORK"
        assert data["notes"] is None
        assert data["tags"] == ["dev"]
        assert isinstance(data["createdAt"], datetime)

    def test_round_trip(self, entry_factory):
        entry = entry_factory(site_url="https://github.com", notes="hi", tags=["a", "b"])

        rebuilt = PasswordEntry.from_primitives(entry.to_primitives(), version=3)

        assert rebuilt.to_primitives() == entry.to_primitives()
        assert rebuilt.version == 3

    def test_from_primitives_accepts_iso_strings(self, entry_factory):
        data = entry_factory().to_primitives()
        data["createdAt"] = "2024-01-01T00:00:00+00:00"
        data["updatedAt"] = "2024-01-02T00:00:00+00:00"

        entry = PasswordEntry.from_primitives(data)

        assert entry.updated_at.is_after(entry.created_at)


# ── Identity ────────────────────────────────────────────────────────


class TestIdentity:

    def test_equal_by_id(self, entry_factory):
        entry = entry_factory()
        copy = PasswordEntry.from_primitives(entry.to_primitives())
        copy.update_notes(Notes("different"), entry.user_id)

        assert copy == entry
        assert hash(copy) == hash(entry)

    def test_different_ids_not_equal(self, entry_factory):
        assert entry_factory() != entry_factory()

    def test_mark_persisted(self, entry_factory):
        entry = entry_factory()
        entry.mark_persisted(2)
        assert entry.version == 2
