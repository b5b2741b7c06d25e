"""
Importer

Replaces the local installation's content tree and database (and optionally
merges its uploads) with the artifacts of a remote export.

Ordering is the core correctness property: every required artifact is
downloaded completely before the first destructive step runs. After that the
steps run in order content tree, database, uploads, and the first failure
stops the import. There is no rollback: if importing the content dump fails
after the purge succeeded, the installation is left without a content tree.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Union

from ..config import SyncConfig
from ..exceptions import RestoreError, SyncError
from ..models.entities import ArtifactKind, BackupSet, ImportResult, TransferResult
from ..models.parameters import DatabaseParams, validate_secret_value
from ..utils.cancellation import CancellationToken
from ..utils.paths import InstallationPaths
from ..utils.progress import NullProgressSink, ProgressSink, StepCounter
from .addressing import build_import_set, normalize_base_url
from .fetcher import RemoteFetcher
from .process_runner import ProcessRunner
from .tools import ToolCommands

logger = logging.getLogger(__name__)


class Importer:
    """
    Import a remote export into the local installation.

    Example:
        ```python
        importer = Importer(SyncConfig(install_root="/var/www/sulu"))
        result = importer.import_site(
            secret="abc123",
            database=DatabaseParams(name="sulu", user="sulu"),
            remote_host="https://live.example.com",
            skip_assets=False
        )
        ```
    """

    def __init__(
        self,
        config: Optional[SyncConfig] = None,
        runner: Optional[ProcessRunner] = None,
        fetcher: Optional[RemoteFetcher] = None,
        progress: Optional[ProgressSink] = None
    ):
        """
        Initialize the importer.

        Args:
            config: Sync configuration (uses defaults if None)
            runner: Runs the external tools (a real ProcessRunner if None)
            fetcher: Downloads the artifacts (a RemoteFetcher sharing the
                progress sink if None)
            progress: Receives step and byte events (discarded if None)
        """
        self._config = config or SyncConfig()
        self._runner = runner or ProcessRunner()
        self._progress = progress or NullProgressSink()
        self._fetcher = fetcher or RemoteFetcher(self._config, progress=self._progress)
        self._commands = ToolCommands(self._config)

    @staticmethod
    def planned_steps(skip_assets: bool) -> int:
        """One step per downloaded file plus one per import step."""
        return 4 if skip_assets else 6

    def import_site(
        self,
        secret: str,
        database: DatabaseParams,
        remote_host: str,
        skip_assets: bool = False,
        paths: Optional[InstallationPaths] = None,
        work_dir: Optional[Union[str, Path]] = None,
        cancellation: Optional[CancellationToken] = None
    ) -> ImportResult:
        """
        Fetch the remote artifacts, then replace content tree, database and uploads.

        Args:
            secret: Shared correlation token (must match the remote export)
            database: Credentials of the local database
            remote_host: Base URL (or bare host) of the exporting installation
            skip_assets: Neither download nor extract the uploads archive
            paths: Local installation layout (derived from the config if None)
            work_dir: Staging directory (config value or system temp dir if None)
            cancellation: Checked between steps

        Returns:
            ImportResult describing the downloads

        Raises:
            FetchError: If any artifact could not be downloaded; nothing local
                has been changed in that case
            ExternalToolFailure: If purge, import, load or extraction fails
            RestoreError: If a staged artifact is unusable or the uploads
                directory cannot be created
            OperationCancelledError: If cancelled between steps
        """
        start_time = datetime.now()
        validate_secret_value(secret)
        base_url = normalize_base_url(remote_host)
        paths = paths or InstallationPaths.from_config(self._config)
        include_assets = not skip_assets
        backup_set = build_import_set(
            secret,
            base_url,
            work_dir if work_dir is not None else self._config.get_work_dir(),
            include_assets
        )

        try:
            steps = StepCounter(self._progress, self.planned_steps(skip_assets))

            # Nothing below this call may run unless every artifact is staged
            self._check_cancelled(cancellation, "download", secret)
            steps.start("Downloading files...")
            transfers = self._fetcher.fetch_all(
                base_url,
                secret,
                include_assets=include_assets,
                work_dir=work_dir,
                steps=steps
            )
            staged = self._verify_staged(transfers, backup_set)

            self._check_cancelled(cancellation, "content", secret)
            steps.start("Importing PHPCR repository...")
            self._import_content(staged[ArtifactKind.CONTENT_DUMP], paths)
            steps.advance()

            self._check_cancelled(cancellation, "database", secret)
            steps.start("Importing database...")
            self._runner.run(
                self._commands.database_load(database),
                timeout=self._config.database_tool_timeout,
                stdin_path=staged[ArtifactKind.DATABASE_DUMP],
                redact=ToolCommands.database_secrets(database)
            )
            steps.advance()

            if include_assets:
                self._check_cancelled(cancellation, "uploads", secret)
                steps.start("Importing uploads...")
                self._import_assets(staged[ArtifactKind.ASSET_ARCHIVE], paths, secret)
                steps.advance()

            steps.finish()

        except SyncError as e:
            if e.secret is None:
                e.secret = secret
            logger.error(f"Import failed: {e}")
            raise

        execution_time_ms = (datetime.now() - start_time).total_seconds() * 1000
        logger.info(f"Import for secret '{secret}' completed in {execution_time_ms / 1000:.1f}s")

        return ImportResult(
            secret=secret,
            remote_base_url=base_url,
            transfers=transfers,
            assets_imported=include_assets,
            execution_time_ms=execution_time_ms
        )

    def _verify_staged(
        self,
        transfers: List[TransferResult],
        backup_set: BackupSet
    ) -> Dict[ArtifactKind, Path]:
        """
        Check that every required artifact is on disk before anything is purged.

        Raises:
            RestoreError: If an artifact is missing, or the content dump is empty
        """
        secret = backup_set.secret
        staged = {t.kind: Path(t.destination) for t in transfers}

        for artifact in backup_set.required_artifacts:
            path = staged.get(artifact.kind)
            if path is None or not path.is_file():
                raise RestoreError(
                    f"Staged {artifact.kind.label} artifact {artifact.filename} is missing",
                    step="download",
                    secret=secret
                )

        if staged[ArtifactKind.CONTENT_DUMP].stat().st_size == 0:
            raise RestoreError(
                f"Staged content dump {staged[ArtifactKind.CONTENT_DUMP]} is empty; "
                f"refusing to purge the content repository",
                step="content",
                secret=secret
            )
        return staged

    def _import_content(self, dump: Path, paths: InstallationPaths) -> None:
        """Purge the content tree, then load the staged dump."""
        self._runner.run(
            self._commands.content_purge(),
            timeout=self._config.content_tool_timeout,
            cwd=paths.install_root
        )
        logger.warning("Content repository purged; importing staged dump")
        self._runner.run(
            self._commands.content_import(dump),
            timeout=self._config.content_tool_timeout,
            cwd=paths.install_root
        )

    def _import_assets(self, archive: Path, paths: InstallationPaths, secret: str) -> None:
        """Merge the staged archive into the local uploads directory."""
        asset_dir = paths.resolve_asset_dir()
        try:
            asset_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RestoreError(
                f"Cannot create uploads directory {asset_dir}: {e}",
                step="uploads",
                secret=secret
            ) from e

        self._runner.run(
            self._commands.archive_extract(archive, asset_dir),
            timeout=self._config.archive_timeout
        )

    @staticmethod
    def _check_cancelled(cancellation: Optional[CancellationToken], step: str, secret: str) -> None:
        if cancellation is not None:
            cancellation.raise_if_cancelled(step, secret)
