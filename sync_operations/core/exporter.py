"""
Exporter

Produces the three export artifacts (content tree dump, database dump,
uploads archive) in the web-reachable publish directory of the installation.

Steps run in a fixed order and the first failure ends the export. Artifacts
produced by earlier steps are left in place: an export is not atomic across
its three files.
"""

import logging
from datetime import datetime
from typing import Optional

from ..config import SyncConfig
from ..exceptions import ExportError, SyncError
from ..models.entities import ArtifactKind, ExportResult
from ..models.parameters import DatabaseParams, validate_secret_value
from ..utils.cancellation import CancellationToken
from ..utils.paths import InstallationPaths
from ..utils.progress import NullProgressSink, ProgressSink, StepCounter
from .addressing import build_export_set
from .process_runner import ProcessRunner
from .tools import ToolCommands

logger = logging.getLogger(__name__)


class Exporter:
    """
    Export an installation into secret-keyed files.

    Example:
        ```python
        exporter = Exporter(SyncConfig(install_root="/var/www/sulu"))
        result = exporter.export(
            secret="abc123",
            database=DatabaseParams(name="sulu", user="sulu", password="secret")
        )
        # /var/www/sulu/web/abc123.phpcr, abc123.sql, abc123.tar.gz
        ```
    """

    TOTAL_STEPS = 3

    def __init__(
        self,
        config: Optional[SyncConfig] = None,
        runner: Optional[ProcessRunner] = None,
        progress: Optional[ProgressSink] = None
    ):
        """
        Initialize the exporter.

        Args:
            config: Sync configuration (uses defaults if None)
            runner: Runs the external tools (a real ProcessRunner if None)
            progress: Receives step events (discarded if None)
        """
        self._config = config or SyncConfig()
        self._runner = runner or ProcessRunner()
        self._progress = progress or NullProgressSink()
        self._commands = ToolCommands(self._config)

    def export(
        self,
        secret: str,
        database: DatabaseParams,
        paths: Optional[InstallationPaths] = None,
        cancellation: Optional[CancellationToken] = None
    ) -> ExportResult:
        """
        Write ``<secret>.phpcr``, ``<secret>.sql`` and ``<secret>.tar.gz``.

        Args:
            secret: Shared correlation token
            database: Credentials of the local database
            paths: Installation layout (derived from the config if None)
            cancellation: Checked between steps

        Returns:
            ExportResult with the produced files

        Raises:
            ExternalToolFailure: If one of the tools fails or times out
            ExportError: If the publish or uploads directory is unusable
            OperationCancelledError: If cancelled between steps
        """
        start_time = datetime.now()
        validate_secret_value(secret)
        paths = paths or InstallationPaths.from_config(self._config)

        try:
            try:
                publish_dir = paths.ensure_publish_dir()
            except OSError as e:
                raise ExportError(
                    f"Cannot create publish directory {paths.publish_dir}: {e}",
                    secret=secret
                ) from e

            backup_set = build_export_set(secret, publish_dir)
            targets = {artifact.kind: artifact.source for artifact in backup_set.artifacts}
            steps = StepCounter(self._progress, self.TOTAL_STEPS)

            logger.info(f"Exporting installation {paths.install_root} to {publish_dir}")

            self._check_cancelled(cancellation, "content", secret)
            steps.start("Exporting PHPCR repository...")
            self._runner.run(
                self._commands.content_export(targets[ArtifactKind.CONTENT_DUMP]),
                timeout=self._config.content_tool_timeout,
                cwd=paths.install_root
            )
            steps.advance()

            self._check_cancelled(cancellation, "database", secret)
            steps.start("Exporting database...")
            self._runner.run(
                self._commands.database_dump(database),
                timeout=self._config.database_tool_timeout,
                stdout_path=targets[ArtifactKind.DATABASE_DUMP],
                redact=ToolCommands.database_secrets(database)
            )
            steps.advance()

            self._check_cancelled(cancellation, "uploads", secret)
            steps.start("Exporting uploads...")
            asset_dir = paths.resolve_asset_dir()
            if not asset_dir.is_dir():
                raise ExportError(
                    f"No uploads directory found (tried {', '.join(self._config.asset_dirs)})",
                    secret=secret
                )
            self._runner.run(
                self._commands.archive_create(targets[ArtifactKind.ASSET_ARCHIVE], asset_dir),
                timeout=self._config.archive_timeout
            )
            steps.advance()
            steps.finish()

        except SyncError as e:
            if e.secret is None:
                e.secret = secret
            logger.error(f"Export failed: {e}")
            raise

        execution_time_ms = (datetime.now() - start_time).total_seconds() * 1000
        logger.info(f"Export for secret '{secret}' completed in {execution_time_ms / 1000:.1f}s")

        return ExportResult(
            secret=secret,
            publish_dir=publish_dir,
            artifacts={kind: publish_dir / backup_set.get(kind).filename for kind in backup_set.kinds},
            execution_time_ms=execution_time_ms
        )

    @staticmethod
    def _check_cancelled(cancellation: Optional[CancellationToken], step: str, secret: str) -> None:
        if cancellation is not None:
            cancellation.raise_if_cancelled(step, secret)
