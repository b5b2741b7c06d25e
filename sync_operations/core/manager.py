"""
Sync Manager

Main entry point for export and import operations. Wires the exporter,
importer, fetcher and process runner to one configuration, one set of
database credentials and one secret.
"""

import logging
from typing import Optional, TYPE_CHECKING

from sync_ops_exceptions import ConfigurationError
from ..config import SyncConfig
from ..models.entities import ExportResult, ImportResult
from ..models.parameters import DatabaseParams, ImportParams, validate_secret_value
from ..utils.cancellation import CancellationToken
from ..utils.paths import InstallationPaths
from ..utils.progress import NullProgressSink, ProgressSink
from .exporter import Exporter
from .fetcher import RemoteFetcher
from .importer import Importer
from .process_runner import ProcessRunner

if TYPE_CHECKING:
    from config.settings import SyncSettings

logger = logging.getLogger(__name__)


class SyncManager:
    """
    Manages export and import of one installation.

    The same secret must be configured on the exporting and the importing
    installation. Two runs sharing a secret (and a publish or staging
    directory) must not overlap: nothing locks the secret-named files.

    Example:
        ```python
        manager = SyncManager(
            secret="abc123",
            database=DatabaseParams(name="sulu", user="sulu", password="secret"),
            config=SyncConfig(install_root="/var/www/sulu")
        )

        # On the live system
        manager.export()

        # On the staging system
        manager.import_site(ImportParams(remote_host="https://live.example.com"))
        ```
    """

    def __init__(
        self,
        secret: str,
        database: DatabaseParams,
        config: Optional[SyncConfig] = None,
        runner: Optional[ProcessRunner] = None,
        fetcher: Optional[RemoteFetcher] = None,
        progress: Optional[ProgressSink] = None
    ):
        """
        Initialize SyncManager.

        Args:
            secret: Shared correlation token
            database: Credentials of the local database
            config: Sync configuration (uses defaults if None)
            runner: Runs the external tools
            fetcher: Downloads artifacts on import
            progress: Receives progress events

        Raises:
            ConfigurationError: If the secret is not usable
        """
        try:
            validate_secret_value(secret)
        except ValueError as e:
            raise ConfigurationError(f"Invalid secret: {e}") from e

        self._secret = secret
        self._database = database
        self._config = config or SyncConfig()
        self._progress = progress or NullProgressSink()
        self._runner = runner or ProcessRunner()
        self._paths = InstallationPaths.from_config(self._config)

        self._exporter = Exporter(self._config, self._runner, self._progress)
        self._importer = Importer(
            self._config,
            self._runner,
            fetcher or RemoteFetcher(self._config, progress=self._progress),
            self._progress
        )

        logger.info(f"SyncManager initialized for {self._paths.install_root}")

    @classmethod
    def from_settings(
        cls,
        settings: "SyncSettings",
        progress: Optional[ProgressSink] = None
    ) -> "SyncManager":
        """
        Build a manager from loaded application settings.

        Raises:
            ConfigurationError: If the secret or database settings are missing
        """
        if not settings.secret:
            raise ConfigurationError(
                "No secret configured (set SULU_SYNC_SECRET or 'secret' in the config file)"
            )
        try:
            database = settings.database.to_params()
            config = SyncConfig.from_settings(settings)
        except ValueError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e
        return cls(settings.secret, database, config, progress=progress)

    @property
    def secret(self) -> str:
        return self._secret

    @property
    def paths(self) -> InstallationPaths:
        return self._paths

    def export(self, cancellation: Optional[CancellationToken] = None) -> ExportResult:
        """
        Export this installation into its publish directory.

        Raises:
            SyncError: If any export step fails
        """
        return self._exporter.export(
            self._secret,
            self._database,
            paths=self._paths,
            cancellation=cancellation
        )

    def import_site(
        self,
        params: ImportParams,
        cancellation: Optional[CancellationToken] = None
    ) -> ImportResult:
        """
        Replace this installation with the remote export.

        Raises:
            SyncError: If any download or import step fails
        """
        return self._importer.import_site(
            self._secret,
            self._database,
            params.remote_host,
            skip_assets=params.skip_assets,
            paths=self._paths,
            work_dir=self._config.get_work_dir(),
            cancellation=cancellation
        )
