"""
Tests for settings loading.

Covers: defaults, environment variables, .env files (without overriding the
real environment), explicit overrides, validation errors.
"""

from pathlib import Path

import pytest

from password_vault.config import (
    DEFAULT_PBKDF2_ITERATIONS,
    ConfigurationError,
    VaultSettings,
    load_settings,
)


@pytest.fixture
def no_env_file(tmp_path):
    """A .env path that does not exist, so no developer file is picked up."""
    return tmp_path / "missing.env"


class TestDefaults:

    def test_defaults(self, no_env_file):
        settings = load_settings(no_env_file)

        assert settings.db_path == Path("data/password_vault.db")
        assert settings.audit_dir == Path("./audit_logs")
        assert settings.master_secret is None
        assert settings.pbkdf2_iterations == DEFAULT_PBKDF2_ITERATIONS
        assert settings.storage == "sqlite"

    def test_missing_master_secret(self):
        with pytest.raises(ConfigurationError) as exc_info:
            VaultSettings().require_master_secret()
        assert exc_info.value.key == "MASTER_SECRET"


class TestEnvironment:

    def test_reads_prefixed_variables(self, monkeypatch, tmp_path, no_env_file):
        monkeypatch.setenv("PASSWORD_VAULT_DB_PATH", str(tmp_path / "v.db"))
        monkeypatch.setenv("PASSWORD_VAULT_AUDIT_DIR", str(tmp_path / "audit"))
        monkeypatch.setenv("PASSWORD_VAULT_MASTER_SECRET", "from-env")
        monkeypatch.setenv("PASSWORD_VAULT_PBKDF2_ITERATIONS", "1234")
        monkeypatch.setenv("PASSWORD_VAULT_STORAGE", "MEMORY")

        settings = load_settings(no_env_file)

        assert settings.db_path == tmp_path / "v.db"
        assert settings.audit_dir == tmp_path / "audit"
        assert settings.require_master_secret() == "from-env"
        assert settings.pbkdf2_iterations == 1234
        assert settings.storage == "memory"

    def test_env_file(self, monkeypatch, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text(
            "PASSWORD_VAULT_MASTER_SECRET=from-file\nPASSWORD_VAULT_STORAGE=memory\n",
            encoding="utf-8",
        )
        # load_dotenv writes into os.environ; let monkeypatch restore it
        monkeypatch.setenv("PASSWORD_VAULT_MASTER_SECRET", "")
        monkeypatch.delenv("PASSWORD_VAULT_MASTER_SECRET")
        monkeypatch.setenv("PASSWORD_VAULT_STORAGE", "")
        monkeypatch.delenv("PASSWORD_VAULT_STORAGE")

        settings = load_settings(env_file)

        assert settings.master_secret == "from-file"
        assert settings.storage == "memory"

    def test_environment_wins_over_env_file(self, monkeypatch, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("PASSWORD_VAULT_MASTER_SECRET=from-file\n", encoding="utf-8")
        monkeypatch.setenv("PASSWORD_VAULT_MASTER_SECRET", "from-env")

        assert load_settings(env_file).master_secret == "from-env"

    def test_explicit_arguments_win(self, monkeypatch, no_env_file, tmp_path):
        monkeypatch.setenv("PASSWORD_VAULT_MASTER_SECRET", "from-env")
        monkeypatch.setenv("PASSWORD_VAULT_STORAGE", "sqlite")

        settings = load_settings(
            no_env_file,
            master_secret="explicit",
            storage="memory",
            pbkdf2_iterations=10,
            db_path=tmp_path / "x.db",
        )

        assert settings.master_secret == "explicit"
        assert settings.storage == "memory"
        assert settings.pbkdf2_iterations == 10
        assert settings.db_path == tmp_path / "x.db"


class TestValidation:

    @pytest.mark.parametrize("raw", ["many", "0", "-5"])
    def test_bad_iterations(self, monkeypatch, no_env_file, raw):
        monkeypatch.setenv("PASSWORD_VAULT_PBKDF2_ITERATIONS", raw)
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(no_env_file)
        assert exc_info.value.key == "PBKDF2_ITERATIONS"

    def test_unknown_storage(self, no_env_file):
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(no_env_file, storage="postgres")
        assert exc_info.value.key == "STORAGE"
