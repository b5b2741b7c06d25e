"""
Sync Operations Configuration

Centralized configuration for export and import operations, providing
a single source of truth for all tunable parameters related to the
installation layout, the external tools and the HTTP transfer.

This configuration can be customized by external projects to match their
specific requirements and deployment environments.
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, Any, List, Optional, TYPE_CHECKING
from pathlib import Path
import logging
import tempfile

if TYPE_CHECKING:
    from config.settings import SyncSettings

logger = logging.getLogger(__name__)


@dataclass
class SyncConfig:
    """
    Configuration for export and import operations.

    Installation Settings:
        install_root: Root directory of the installation (parent of ``app/``)
        publish_subdir: Web-reachable directory, relative to the root (default: web)
        asset_dirs: Candidate upload directories, preferred first
            (default: var/uploads, then the legacy uploads)
        console_command: Argv prefix of the application console (default: php bin/console)
        content_root_path: Content repository path that is exported (default: /cmf)

    Tool Settings:
        mysqldump_binary / mysql_binary / tar_binary: Executables to run
        content_tool_timeout: Timeout for console sub-commands (None = unbounded)
        database_tool_timeout: Timeout for dump/load (None = unbounded)
        archive_timeout: Timeout for tar create/extract (default: 300)

    Transfer Settings:
        download_timeout: HTTP connect/read timeout in seconds (default: 60)
        download_chunk_size: Bytes per streamed chunk (default: 64KB)
        work_dir: Staging directory for downloads (None = system temp dir)

    Example:
        ```python
        config = SyncConfig(
            install_root="/var/www/sulu",
            archive_timeout=600,
            download_timeout=120
        )
        exporter = Exporter(config)
        ```
    """

    # Installation Settings
    install_root: str = "."
    publish_subdir: str = "web"
    asset_dirs: List[str] = field(default_factory=lambda: ["var/uploads", "uploads"])
    console_command: List[str] = field(default_factory=lambda: ["php", "bin/console"])
    content_root_path: str = "/cmf"

    # Tool Settings
    mysqldump_binary: str = "mysqldump"
    mysql_binary: str = "mysql"
    tar_binary: str = "tar"
    content_tool_timeout: Optional[float] = None
    database_tool_timeout: Optional[float] = None
    archive_timeout: Optional[float] = 300.0  # 5 minutes

    # Transfer Settings
    download_timeout: float = 60.0
    download_chunk_size: int = 64 * 1024
    work_dir: Optional[str] = None

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.validate()

    def validate(self) -> None:
        """
        Validate configuration parameters.

        Raises:
            ValueError: If any configuration parameter is invalid
        """
        if not self.install_root:
            raise ValueError("install_root must be set")
        if not self.publish_subdir:
            raise ValueError("publish_subdir must be set")
        if not self.asset_dirs:
            raise ValueError("asset_dirs must name at least one directory")
        if not self.console_command:
            raise ValueError("console_command must not be empty")
        if not self.content_root_path.startswith("/"):
            raise ValueError("content_root_path must be an absolute repository path")

        for name in ("content_tool_timeout", "database_tool_timeout", "archive_timeout"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ValueError(f"{name} must be positive")

        if self.download_timeout <= 0:
            raise ValueError("download_timeout must be positive")
        if self.download_chunk_size <= 0:
            raise ValueError("download_chunk_size must be positive")
        if self.download_chunk_size > 16 * 1024 * 1024:
            logger.warning(f"Large download chunk size ({self.download_chunk_size} bytes) may cause memory issues")

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'SyncConfig':
        """
        Create configuration from a dictionary.

        Args:
            config_dict: Dictionary containing configuration parameters

        Returns:
            SyncConfig instance
        """
        config_dict = dict(config_dict)
        if isinstance(config_dict.get('console_command'), str):
            config_dict['console_command'] = config_dict['console_command'].split()
        return cls(**config_dict)

    @classmethod
    def from_settings(cls, settings: "SyncSettings") -> 'SyncConfig':
        """
        Create configuration from loaded application settings.

        Args:
            settings: Settings loaded from YAML and/or environment variables

        Returns:
            SyncConfig instance
        """
        installation = settings.installation
        tools = settings.tools
        transfer = settings.transfer
        return cls(
            install_root=installation.install_root,
            publish_subdir=installation.publish_subdir,
            asset_dirs=list(installation.asset_dirs),
            console_command=list(installation.console_command),
            content_root_path=installation.content_root_path,
            mysqldump_binary=tools.mysqldump_binary,
            mysql_binary=tools.mysql_binary,
            tar_binary=tools.tar_binary,
            content_tool_timeout=tools.content_tool_timeout,
            database_tool_timeout=tools.database_tool_timeout,
            archive_timeout=tools.archive_timeout,
            download_timeout=transfer.timeout,
            download_chunk_size=transfer.chunk_size,
            work_dir=transfer.work_dir,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a dictionary."""
        return asdict(self)

    def get_work_dir(self) -> Path:
        """Get the staging directory for downloads."""
        return Path(self.work_dir) if self.work_dir else Path(tempfile.gettempdir())

    def __repr__(self) -> str:
        """String representation of configuration."""
        return (
            f"SyncConfig("
            f"install_root={self.install_root}, "
            f"publish_dir={self.publish_subdir}, "
            f"console={' '.join(self.console_command)}, "
            f"archive_timeout={self.archive_timeout}"
            f")"
        )
