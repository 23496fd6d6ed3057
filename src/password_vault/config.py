# Password Vault - Settings
#
# Settings come from explicit arguments first, then the process environment
# (optionally populated from a .env file via python-dotenv), then defaults.
#
#   PASSWORD_VAULT_DB_PATH            SQLite file (default data/password_vault.db)
#   PASSWORD_VAULT_AUDIT_DIR          audit log directory (default ./audit_logs)
#   PASSWORD_VAULT_MASTER_SECRET      secret all encryption keys derive from
#   PASSWORD_VAULT_PBKDF2_ITERATIONS  key derivation cost (default 600000)
#   PASSWORD_VAULT_STORAGE            "sqlite" or "memory" (default sqlite)

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

ENV_PREFIX = "PASSWORD_VAULT_"

DEFAULT_DB_PATH = Path("data/password_vault.db")
DEFAULT_AUDIT_DIR = Path("./audit_logs")
DEFAULT_PBKDF2_ITERATIONS = 600_000
STORAGE_BACKENDS = ("sqlite", "memory")


class ConfigurationError(Exception):
    """Raised when a setting is missing or malformed"""

    def __init__(self, message: str, key: Optional[str] = None):
        self.key = key
        super().__init__(message)


@dataclass(frozen=True)
class VaultSettings:
    db_path: Path = DEFAULT_DB_PATH
    audit_dir: Path = DEFAULT_AUDIT_DIR
    master_secret: Optional[str] = None
    pbkdf2_iterations: int = DEFAULT_PBKDF2_ITERATIONS
    storage: str = "sqlite"

    def require_master_secret(self) -> str:
        """Return the master secret or fail if it was never configured."""
        if not self.master_secret:
            raise ConfigurationError(
                f"{ENV_PREFIX}MASTER_SECRET is not set", key="MASTER_SECRET"
            )
        return self.master_secret


def _env(name: str) -> str:
    return os.environ.get(ENV_PREFIX + name, "").strip()


def _parse_iterations(raw: Union[str, int]) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"{ENV_PREFIX}PBKDF2_ITERATIONS must be an integer, got {raw!r}",
            key="PBKDF2_ITERATIONS",
        )
    if value < 1:
        raise ConfigurationError(
            f"{ENV_PREFIX}PBKDF2_ITERATIONS must be positive, got {value}",
            key="PBKDF2_ITERATIONS",
        )
    return value


def load_settings(
    env_file: Optional[Union[str, Path]] = None,
    *,
    db_path: Optional[Union[str, Path]] = None,
    audit_dir: Optional[Union[str, Path]] = None,
    master_secret: Optional[str] = None,
    pbkdf2_iterations: Optional[int] = None,
    storage: Optional[str] = None,
) -> VaultSettings:
    """
    Build VaultSettings.

    Args:
        env_file: .env file to load (default: search from the working directory).
            Variables already present in the environment are not overridden.
        db_path, audit_dir, master_secret, pbkdf2_iterations, storage:
            Explicit overrides that win over the environment.

    Raises:
        ConfigurationError: malformed iteration count or unknown storage backend
    """
    load_dotenv(dotenv_path=env_file, override=False)

    backend = (storage or _env("STORAGE") or "sqlite").lower()
    if backend not in STORAGE_BACKENDS:
        raise ConfigurationError(
            f"{ENV_PREFIX}STORAGE must be one of {', '.join(STORAGE_BACKENDS)}, got {backend!r}",
            key="STORAGE",
        )

    return VaultSettings(
        db_path=Path(db_path or _env("DB_PATH") or DEFAULT_DB_PATH),
        audit_dir=Path(audit_dir or _env("AUDIT_DIR") or DEFAULT_AUDIT_DIR),
        master_secret=master_secret or _env("MASTER_SECRET") or None,
        pbkdf2_iterations=_parse_iterations(
            pbkdf2_iterations
            if pbkdf2_iterations is not None
            else (_env("PBKDF2_ITERATIONS") or DEFAULT_PBKDF2_ITERATIONS)
        ),
        storage=backend,
    )
