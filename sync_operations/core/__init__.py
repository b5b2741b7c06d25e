"""
Sync Operations Core

Core classes for export and import operations including the process runner,
artifact addressing, the remote fetcher and orchestration.
"""

from .manager import SyncManager
from .exporter import Exporter
from .importer import Importer
from .fetcher import RemoteFetcher
from .process_runner import ProcessRunner, ProcessResult
from .tools import ToolCommands
from .addressing import (
    artifact_filename,
    artifact_url,
    normalize_base_url,
    build_export_set,
    build_import_set
)

__all__ = [
    'SyncManager',
    'Exporter',
    'Importer',
    'RemoteFetcher',
    'ProcessRunner',
    'ProcessResult',
    'ToolCommands',
    'artifact_filename',
    'artifact_url',
    'normalize_base_url',
    'build_export_set',
    'build_import_set'
]
