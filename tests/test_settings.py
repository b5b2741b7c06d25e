"""Unit tests for settings loading."""

import os

import pytest
import yaml
from pydantic import ValidationError

from config.settings import (
    DatabaseSettings,
    InstallationSettings,
    MonitoringSettings,
    load_settings,
)
from sync_operations.config import SyncConfig
from sync_ops_exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep SULU_SYNC_* variables of the host out of the tests."""
    for name in list(os.environ):
        if name.startswith("SULU_SYNC_"):
            monkeypatch.delenv(name)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "sulu-sync.yaml"
    path.write_text(yaml.safe_dump({
        "secret": "abc123",
        "database": {"host": "db", "name": "sulu", "user": "sulu", "password": "hunter2"},
        "installation": {"install_root": "/var/www/sulu", "console_command": "php bin/adminconsole"},
        "tools": {"archive_timeout": 600},
        "transfer": {"timeout": 30, "work_dir": "/var/tmp/sulu"},
    }))
    return path


class TestLoadSettings:
    """Tests for load_settings."""

    def test_defaults(self):
        settings = load_settings()

        assert settings.secret == ""
        assert settings.database.port == 3306
        assert settings.installation.asset_dirs == ["var/uploads", "uploads"]
        assert settings.tools.archive_timeout == 300.0
        assert settings.monitoring.log_level == "INFO"

    def test_from_yaml(self, config_file):
        settings = load_settings(str(config_file))

        assert settings.secret == "abc123"
        assert settings.database.host == "db"
        assert settings.installation.console_command == ["php", "bin/adminconsole"]
        assert settings.tools.archive_timeout == 600
        assert settings.transfer.work_dir == "/var/tmp/sulu"

    def test_from_environment(self, monkeypatch):
        """Should read SULU_SYNC_* variables."""
        monkeypatch.setenv("SULU_SYNC_SECRET", "fromenv")
        monkeypatch.setenv("SULU_SYNC_DATABASE_NAME", "sulu_live")
        monkeypatch.setenv("SULU_SYNC_TOOLS_MYSQL_BINARY", "/usr/bin/mariadb")

        settings = load_settings()

        assert settings.secret == "fromenv"
        assert settings.database.name == "sulu_live"
        assert settings.tools.mysql_binary == "/usr/bin/mariadb"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_settings(str(tmp_path / "missing.yaml"))

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("database: [unclosed\n")

        with pytest.raises(ConfigurationError):
            load_settings(str(path))

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- secret\n")

        with pytest.raises(ConfigurationError):
            load_settings(str(path))

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_settings(str(path)).secret == ""


class TestSyncSettings:
    """Tests for SyncSettings helpers."""

    def test_with_overrides(self, config_file):
        settings = load_settings(str(config_file))

        assert settings.with_overrides(secret="other").secret == "other"
        assert settings.with_overrides(secret=None).secret == "abc123"

    def test_to_yaml_masks_secrets(self, config_file):
        """Should hide the password and the secret."""
        rendered = load_settings(str(config_file)).to_yaml()
        data = yaml.safe_load(rendered)

        assert "hunter2" not in rendered
        assert "abc123" not in rendered
        assert data["database"]["password"] == "****"
        assert data["secret"] == "****"
        assert data["database"]["host"] == "db"

    def test_to_yaml_unmasked(self, config_file):
        rendered = load_settings(str(config_file)).to_yaml(mask_secrets=False)
        assert "hunter2" in rendered

    def test_to_sync_config(self, config_file):
        config = SyncConfig.from_settings(load_settings(str(config_file)))

        assert config.install_root == "/var/www/sulu"
        assert config.console_command == ["php", "bin/adminconsole"]
        assert config.archive_timeout == 600
        assert config.download_timeout == 30
        assert config.work_dir == "/var/tmp/sulu"

    def test_database_params(self, config_file):
        params = load_settings(str(config_file)).database.to_params()

        assert params.connection_args() == ["-h", "db", "-P", "3306", "-u", "sulu", "-phunter2", "sulu"]


class TestSectionSettings:

    def test_log_level_normalized(self):
        assert MonitoringSettings(log_level="debug").log_level == "DEBUG"

    def test_log_level_invalid(self):
        with pytest.raises(ValidationError):
            MonitoringSettings(log_level="loud")

    def test_console_command_string(self):
        assert InstallationSettings(console_command="php bin/console").console_command == ["php", "bin/console"]

    def test_database_port_unset(self):
        assert DatabaseSettings(name="sulu", user="sulu", port=None).to_params().port == 3306
