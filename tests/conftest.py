"""
Shared pytest fixtures for the Password Vault test suite.

Autouse fixtures below isolate tests from live data:
  - Audit logger -> temp directory (prevents test events in ./audit_logs)
  - PASSWORD_VAULT_* environment -> cleared (prevents a developer .env leaking in)
"""

import pytest

from password_vault.core import audit_log as audit_mod
from password_vault.vault import (
    AesGcmPasswordEncryptionService,
    Category,
    EncryptedPassword,
    InMemoryPasswordEntryRepository,
    Notes,
    PasswordEntry,
    SiteName,
    SiteUrl,
    SqlitePasswordEntryRepository,
    Tags,
    Username,
)

# Low iteration count keeps key derivation fast in tests
TEST_ITERATIONS = 1_000
TEST_SECRET = "test-master-secret"

# Any string of at least 32 characters is a structurally valid ciphertext
FAKE_CIPHERTEXT = "c2FsdA==:aXY=:dGFn:" + "Y2lwaGVydGV4dA" * 3


@pytest.fixture(autouse=True)
def _isolate_audit_logs(tmp_path):
    """Point the global AuditLogger at a temp directory for every test."""
    old_logger = audit_mod._audit_logger
    logger = audit_mod.AuditLogger(log_dir=tmp_path / "audit_logs")
    audit_mod.set_audit_logger(logger)

    yield logger

    logger.close()
    audit_mod.set_audit_logger(old_logger)


@pytest.fixture(autouse=True)
def _clean_vault_env(monkeypatch):
    """Remove PASSWORD_VAULT_* variables so settings start from defaults."""
    import os

    for key in list(os.environ):
        if key.startswith("PASSWORD_VAULT_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def audit_logger(_isolate_audit_logs):
    return _isolate_audit_logs


@pytest.fixture
def encryption_service():
    return AesGcmPasswordEncryptionService(TEST_SECRET, iterations=TEST_ITERATIONS)


@pytest.fixture(params=["memory", "sqlite"])
def repository(request, tmp_path):
    """Each repository test runs once per adapter."""
    if request.param == "memory":
        return InMemoryPasswordEntryRepository()
    return SqlitePasswordEntryRepository(tmp_path / "vault.db")


def make_entry(
    user_id: str = "user-1",
    site_name: str = "GitHub",
    username: str = "alice@example.com",
    category: Category = None,
    site_url: str = None,
    notes: str = None,
    tags=None,
) -> PasswordEntry:
    """Build a fresh, unsaved entry with a placeholder ciphertext."""
    return PasswordEntry.create(
        user_id,
        SiteName(site_name),
        Username(username),
        EncryptedPassword(FAKE_CIPHERTEXT),
        category or Category.personal(),
        site_url=SiteUrl(site_url),
        notes=Notes(notes),
        tags=Tags.from_strings(tags or []),
    )


@pytest.fixture
def entry_factory():
    return make_entry
