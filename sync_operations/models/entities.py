"""
Sync Operation Entities

Defines data models for export and import operations, including the three
artifact kinds, the per-invocation backup set, per-artifact transfer outcomes
and operation results.

These models use Pydantic for validation and provide a type-safe interface
for sync operations.
"""

from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, field_validator


class ArtifactKind(str, Enum):
    """
    The three artifacts produced by an export.

    Kinds:
        CONTENT_DUMP: Dump of the content repository tree
        DATABASE_DUMP: Plain SQL dump of the relational database
        ASSET_ARCHIVE: Gzip-compressed tar of the uploads directory

    The declaration order is the fixed processing order on both sides.
    """
    CONTENT_DUMP = "CONTENT_DUMP"
    DATABASE_DUMP = "DATABASE_DUMP"
    ASSET_ARCHIVE = "ASSET_ARCHIVE"

    @property
    def extension(self) -> str:
        """File extension, including the leading dot."""
        return ARTIFACT_EXTENSIONS[self]

    @property
    def label(self) -> str:
        """Short human-readable label used in progress messages."""
        return ARTIFACT_LABELS[self]


ARTIFACT_EXTENSIONS: Dict[ArtifactKind, str] = {
    ArtifactKind.CONTENT_DUMP: ".phpcr",
    ArtifactKind.DATABASE_DUMP: ".sql",
    ArtifactKind.ASSET_ARCHIVE: ".tar.gz",
}

ARTIFACT_LABELS: Dict[ArtifactKind, str] = {
    ArtifactKind.CONTENT_DUMP: "PHPCR repository",
    ArtifactKind.DATABASE_DUMP: "database",
    ArtifactKind.ASSET_ARCHIVE: "uploads",
}


class Artifact(BaseModel):
    """
    One artifact of a backup set.

    Attributes:
        kind: Which of the three artifacts this is
        filename: Logical file name, always ``<secret><extension>``
        source: Where the artifact comes from (publish path on export,
            remote URL on import)
        destination: Local staging path (import side only)
        required: Whether the operation needs this artifact (the asset
            archive is optional when assets are skipped)

    Example:
        ```python
        artifact = Artifact(
            kind=ArtifactKind.DATABASE_DUMP,
            filename="abc123.sql",
            source="http://live.example.com/abc123.sql",
            destination=Path("/tmp/abc123.sql")
        )
        ```
    """
    kind: ArtifactKind = Field(..., description="Artifact kind")
    filename: str = Field(..., description="Logical file name")
    source: str = Field(..., description="Publish path or remote URL")
    destination: Optional[Path] = Field(default=None, description="Local staging path")
    required: bool = Field(default=True, description="Whether the artifact is mandatory")


class BackupSet(BaseModel):
    """
    Ordered collection of the artifacts belonging to one secret.

    Built fresh for every export or import invocation and never persisted.

    Attributes:
        secret: Correlation token shared by export and import
        artifacts: Artifacts in processing order
    """
    secret: str = Field(..., description="Shared correlation token")
    artifacts: List[Artifact] = Field(default_factory=list, description="Artifacts in order")

    @field_validator("artifacts")
    @classmethod
    def validate_order(cls, v):
        """Artifacts must be unique and follow the fixed processing order."""
        order = list(ArtifactKind)
        kinds = [artifact.kind for artifact in v]
        if len(set(kinds)) != len(kinds):
            raise ValueError("a backup set may contain each artifact kind only once")
        if kinds != sorted(kinds, key=order.index):
            raise ValueError("artifacts must be ordered content, database, assets")
        return v

    def get(self, kind: ArtifactKind) -> Optional[Artifact]:
        """Return the artifact of the given kind, or None if not in the set."""
        for artifact in self.artifacts:
            if artifact.kind == kind:
                return artifact
        return None

    @property
    def kinds(self) -> List[ArtifactKind]:
        """Kinds contained in this set, in order."""
        return [artifact.kind for artifact in self.artifacts]

    @property
    def required_artifacts(self) -> List[Artifact]:
        """Artifacts the operation needs, in order."""
        return [artifact for artifact in self.artifacts if artifact.required]

    def __len__(self) -> int:
        return len(self.artifacts)


class TransferResult(BaseModel):
    """
    Outcome of downloading a single artifact.

    Attributes:
        kind: Artifact kind
        url: Remote URL that was requested
        destination: Local file written
        bytes_transferred: Bytes written to disk
        expected_bytes: Content-Length announced by the server, if any
    """
    kind: ArtifactKind = Field(..., description="Artifact kind")
    url: str = Field(..., description="Requested URL")
    destination: Path = Field(..., description="Local staging file")
    bytes_transferred: int = Field(default=0, ge=0, description="Bytes written")
    expected_bytes: Optional[int] = Field(default=None, ge=0, description="Announced size")


class ExportResult(BaseModel):
    """
    Result of a successful export.

    Attributes:
        secret: Secret the artifacts are keyed by
        publish_dir: Directory the artifacts were written to
        artifacts: Paths of the produced files, by kind
        execution_time_ms: Time taken in milliseconds
    """
    secret: str = Field(..., description="Transaction secret")
    publish_dir: Path = Field(..., description="Publish directory")
    artifacts: Dict[ArtifactKind, Path] = Field(default_factory=dict, description="Produced files")
    execution_time_ms: float = Field(default=0.0, ge=0.0, description="Execution time in milliseconds")

class ImportResult(BaseModel):
    """
    Result of a successful import.

    Attributes:
        secret: Secret the artifacts were fetched by
        remote_base_url: Base URL the artifacts were fetched from
        transfers: Per-artifact download outcomes, in fetch order
        assets_imported: Whether the asset archive was extracted
        execution_time_ms: Time taken in milliseconds
    """
    secret: str = Field(..., description="Transaction secret")
    remote_base_url: str = Field(..., description="Remote base URL")
    transfers: List[TransferResult] = Field(default_factory=list, description="Download outcomes")
    assets_imported: bool = Field(default=False, description="Whether assets were extracted")
    execution_time_ms: float = Field(default=0.0, ge=0.0, description="Execution time in milliseconds")

    @property
    def bytes_downloaded(self) -> int:
        """Total bytes downloaded across all artifacts."""
        return sum(t.bytes_transferred for t in self.transfers)