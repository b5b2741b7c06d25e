"""
External Tool Commands

Builds the argv lists of the external tools that export and import drive:

- the application console (content repository export, purge and import)
- ``mysqldump`` / ``mysql`` for the relational database
- ``tar`` for the uploads archive

Only the command lines are built here; running them is the ProcessRunner's job.
"""

from pathlib import Path
from typing import List, Union

from ..config import SyncConfig
from ..models.parameters import DatabaseParams

PathLike = Union[str, Path]

CONTENT_EXPORT_COMMAND = "doctrine:phpcr:workspace:export"
CONTENT_PURGE_COMMAND = "doctrine:phpcr:workspace:purge"
CONTENT_IMPORT_COMMAND = "doctrine:phpcr:workspace:import"


class ToolCommands:
    """
    Argv builders for the external tools.

    Example:
        ```python
        commands = ToolCommands(SyncConfig(install_root="/var/www/sulu"))
        commands.content_export("/var/www/sulu/web/abc123.phpcr")
        # ['php', 'bin/console', 'doctrine:phpcr:workspace:export',
        #  '-p', '/cmf', '/var/www/sulu/web/abc123.phpcr']
        ```
    """

    def __init__(self, config: SyncConfig):
        self.config = config

    # Content repository

    def content_export(self, target: PathLike) -> List[str]:
        """Dump the content tree below the configured root path to ``target``."""
        return [
            *self.config.console_command,
            CONTENT_EXPORT_COMMAND,
            "-p", self.config.content_root_path,
            str(target),
        ]

    def content_purge(self) -> List[str]:
        """Delete the whole content tree without asking for confirmation."""
        return [*self.config.console_command, CONTENT_PURGE_COMMAND, "--force"]

    def content_import(self, source: PathLike) -> List[str]:
        """Load a content tree dump."""
        return [*self.config.console_command, CONTENT_IMPORT_COMMAND, str(source)]

    # Relational database

    def database_dump(self, database: DatabaseParams) -> List[str]:
        """Dump the database to standard output."""
        return [self.config.mysqldump_binary, *database.connection_args()]

    def database_load(self, database: DatabaseParams) -> List[str]:
        """Load SQL from standard input into the database."""
        return [self.config.mysql_binary, *database.connection_args()]

    @staticmethod
    def database_secrets(database: DatabaseParams) -> List[str]:
        """Argument values that must not appear in logs or error messages."""
        if not database.has_password:
            return []
        return [database.password, f"-p{database.password}"]

    # Uploads archive

    def archive_create(self, archive: PathLike, asset_dir: PathLike) -> List[str]:
        """Gzip-compressed tar of the contents of ``asset_dir``."""
        return [self.config.tar_binary, "-czf", str(archive), "-C", str(asset_dir), "."]

    def archive_extract(self, archive: PathLike, asset_dir: PathLike) -> List[str]:
        """
        Extract into ``asset_dir``, merging only missing entries.

        ``--skip-old-files`` leaves existing files in place; tar never removes
        existing directories. GNU tar rejects it together with
        ``--no-overwrite-dir``.
        """
        return [
            self.config.tar_binary,
            "-xzf", str(archive),
            "-C", str(asset_dir),
            "--skip-old-files",
        ]
