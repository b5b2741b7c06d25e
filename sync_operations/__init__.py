"""
Sync Operations Module

Provides the export/import handshake between two deployments of a
content-management installation.

Features:
- Export of the content repository, database and uploads into the web directory
- Secret-keyed artifact names shared by the exporting and importing side
- Sequential, all-or-nothing download of the artifacts over HTTP
- Ordered replacement of content tree, database and (optionally) uploads
- Typed progress events with tqdm and logging renderers
- Comprehensive error handling with context-carrying exceptions
- Type-safe parameters and configuration

Typical usage from external projects:

    from sync_operations import (
        SyncConfig,
        SyncManager,
        DatabaseParams,
        ImportParams,
        TqdmProgressSink
    )

    config = SyncConfig(install_root="/var/www/sulu")
    manager = SyncManager(
        secret="abc123",
        database=DatabaseParams(name="sulu", user="sulu", password="secret"),
        config=config,
        progress=TqdmProgressSink()
    )

    # On the live system
    manager.export()

    # On the staging system
    manager.import_site(ImportParams(remote_host="https://live.example.com"))
"""

# Configuration
from .config import SyncConfig

# Core
from .core import (
    SyncManager,
    Exporter,
    Importer,
    RemoteFetcher,
    ProcessRunner,
    ProcessResult,
    ToolCommands,
    artifact_filename,
    build_export_set,
    build_import_set
)

# Models
from .models.entities import (
    ArtifactKind,
    Artifact,
    BackupSet,
    TransferResult,
    ExportResult,
    ImportResult
)

from .models.parameters import (
    DatabaseParams,
    ImportParams
)

# Exceptions
from .exceptions import (
    SyncError,
    ExternalToolFailure,
    ToolTimeoutError,
    FetchError,
    PartialDownloadFailure,
    ExportError,
    RestoreError,
    OperationCancelledError
)

# Utilities
from .utils import (
    ProgressSink,
    NullProgressSink,
    RecordingProgressSink,
    LoggingProgressSink,
    TqdmProgressSink,
    InstallationPaths,
    CancellationToken
)

__all__ = [
    # Core
    'SyncManager',
    'Exporter',
    'Importer',
    'RemoteFetcher',
    'ProcessRunner',
    'ProcessResult',
    'ToolCommands',
    'artifact_filename',
    'build_export_set',
    'build_import_set',

    # Configuration
    'SyncConfig',

    # Enums
    'ArtifactKind',

    # Entities
    'Artifact',
    'BackupSet',
    'TransferResult',
    'ExportResult',
    'ImportResult',

    # Parameters
    'DatabaseParams',
    'ImportParams',

    # Exceptions
    'SyncError',
    'ExternalToolFailure',
    'ToolTimeoutError',
    'FetchError',
    'PartialDownloadFailure',
    'ExportError',
    'RestoreError',
    'OperationCancelledError',

    # Utilities
    'ProgressSink',
    'NullProgressSink',
    'RecordingProgressSink',
    'LoggingProgressSink',
    'TqdmProgressSink',
    'InstallationPaths',
    'CancellationToken'
]
