"""
Sync Operation Models

Exports all data models, entities, and parameters for sync operations.
"""

from .entities import (
    ArtifactKind,
    Artifact,
    BackupSet,
    TransferResult,
    ExportResult,
    ImportResult
)

from .parameters import (
    DatabaseParams,
    ImportParams,
    validate_secret_value
)

__all__ = [
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
    'validate_secret_value'
]
