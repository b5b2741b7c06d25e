"""
Pydantic Settings for Sulu Sync Operations

This module provides strongly-typed configuration settings using Pydantic,
with support for environment variables and YAML configuration files.
"""

from typing import Any, Dict, List, Optional, Union
from pathlib import Path
import os

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_yaml import to_yaml_str

from sync_ops_exceptions import ConfigurationError
from sync_operations.models.parameters import DatabaseParams


class DatabaseSettings(BaseSettings):
    """
    Connection settings for the installation's relational database.

    These mirror the database parameters of the application itself; the dump
    and load tools are invoked with exactly these values.
    """
    host: str = Field("127.0.0.1", description="Hostname or IP address of the database server")
    port: Optional[int] = Field(3306, description="Port of the database server (3306 if unset)")
    name: str = Field("", description="Name of the database to dump or replace")
    user: str = Field("", description="Database user")
    password: Optional[str] = Field(None, description="Database password (may be empty)")

    model_config = SettingsConfigDict(env_prefix="SULU_SYNC_DATABASE_", case_sensitive=False)

    def to_params(self) -> DatabaseParams:
        """Convert to the parameter object used by export and import."""
        return DatabaseParams(
            host=self.host,
            port=self.port,
            name=self.name,
            user=self.user,
            password=self.password
        )


class InstallationSettings(BaseSettings):
    """
    Layout of the local installation.

    - install_root is the project directory (the parent of ``app/``)
    - the publish directory must be served by the web server, since the
      importing side downloads the artifacts from there
    - uploads moved to ``var/uploads`` in the newer directory layout; the
      first existing candidate is used
    """
    install_root: str = Field(".", description="Root directory of the installation")
    publish_subdir: str = Field("web", description="Web-reachable directory the export is written to")
    asset_dirs: List[str] = Field(default_factory=lambda: ["var/uploads", "uploads"],
                                  description="Candidate uploads directories, preferred first")
    console_command: List[str] = Field(default_factory=lambda: ["php", "bin/console"],
                                       description="Command that runs the application console")
    content_root_path: str = Field("/cmf", description="Content repository path to export")

    model_config = SettingsConfigDict(env_prefix="SULU_SYNC_INSTALLATION_", case_sensitive=False)

    @field_validator("console_command", mode="before")
    @classmethod
    def split_console_command(cls, v):
        """Allow the console command to be written as a single string."""
        if isinstance(v, str):
            return v.split()
        return v


class ToolSettings(BaseSettings):
    """
    External tool binaries and their timeouts.

    A timeout of None lets the tool run until it exits.
    """
    mysqldump_binary: str = Field("mysqldump", description="Database dump tool")
    mysql_binary: str = Field("mysql", description="Database load tool")
    tar_binary: str = Field("tar", description="Archive tool")
    content_tool_timeout: Optional[float] = Field(None, description="Timeout for console sub-commands in seconds")
    database_tool_timeout: Optional[float] = Field(None, description="Timeout for database dump/load in seconds")
    archive_timeout: Optional[float] = Field(300.0, description="Timeout for creating/extracting the uploads archive")

    model_config = SettingsConfigDict(env_prefix="SULU_SYNC_TOOLS_", case_sensitive=False)


class TransferSettings(BaseSettings):
    """HTTP download settings used by the importing side."""
    timeout: float = Field(60.0, description="HTTP connect/read timeout in seconds")
    chunk_size: int = Field(64 * 1024, description="Bytes read per streamed chunk")
    work_dir: Optional[str] = Field(None, description="Staging directory (system temp dir if unset)")

    model_config = SettingsConfigDict(env_prefix="SULU_SYNC_TRANSFER_", case_sensitive=False)


class MonitoringSettings(BaseSettings):
    """Logging and progress display settings."""
    log_level: str = Field("INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)")
    progress_bars: bool = Field(True, description="Draw tqdm progress bars (log lines otherwise)")

    model_config = SettingsConfigDict(env_prefix="SULU_SYNC_MONITORING_", case_sensitive=False)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        level = str(v).upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level


class SyncSettings(BaseSettings):
    """
    Main settings class that consolidates all configuration categories.

    Usage:
        # Load from environment variables and defaults
        settings = SyncSettings()

        # Load from YAML file
        settings = SyncSettings.from_yaml('sync.yaml')

        # Access nested settings
        host = settings.database.host
        timeout = settings.tools.archive_timeout
    """
    secret: str = Field("", description="Shared secret naming the export artifacts")
    database: DatabaseSettings = Field(default_factory=DatabaseSettings,
                                       description="Database connection settings")
    installation: InstallationSettings = Field(default_factory=InstallationSettings,
                                               description="Local installation layout")
    tools: ToolSettings = Field(default_factory=ToolSettings,
                                description="External tool binaries and timeouts")
    transfer: TransferSettings = Field(default_factory=TransferSettings,
                                       description="HTTP download settings")
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings,
                                           description="Logging and progress settings")

    model_config = SettingsConfigDict(
        env_prefix="SULU_SYNC_",
        case_sensitive=False,
        env_nested_delimiter="__"
    )

    @classmethod
    def from_yaml(cls, yaml_file: Union[str, Path]) -> "SyncSettings":
        """Load settings from YAML file"""
        with open(yaml_file, 'r') as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"{yaml_file} must contain a mapping at the top level")
        return cls(**data)

    def with_overrides(self, **overrides: Any) -> "SyncSettings":
        """Copy of these settings with top-level values replaced (None values are ignored)."""
        update: Dict[str, Any] = {k: v for k, v in overrides.items() if v is not None}
        return self.model_copy(update=update)

    def to_yaml(self, mask_secrets: bool = True) -> str:
        """Render the effective settings as YAML."""
        settings = self
        if mask_secrets:
            database = self.database.model_copy(
                update={"password": "****" if self.database.password else None}
            )
            settings = self.model_copy(update={
                "database": database,
                "secret": "****" if self.secret else ""
            })
        return to_yaml_str(settings)


def load_settings(config_path: Optional[str] = None) -> SyncSettings:
    """
    Load settings from file and/or environment variables.

    - If config_path is provided, loads settings from the YAML file
      (environment variables fill in whatever the file leaves out)
    - Otherwise, creates a new settings instance from environment variables

    Args:
        config_path: Path to YAML configuration file, or None

    Returns:
        SyncSettings object with loaded configuration

    Raises:
        ConfigurationError: If the file does not exist or cannot be parsed

    Example:
        # Load from specific config file
        settings = load_settings("/etc/sulu-sync.yaml")

        # Load from environment variables and defaults
        settings = load_settings()
    """
    if config_path is None:
        return SyncSettings()
    if not os.path.exists(config_path):
        raise ConfigurationError(f"Configuration file not found: {config_path}")
    try:
        return SyncSettings.from_yaml(config_path)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Cannot parse {config_path}: {e}") from e
