"""
Artifact Addressing

Derives the file names, publish paths, remote URLs and staging paths of
the three artifacts from the shared secret.

All functions are pure: the same inputs always give the same names, and a
second export with the same secret overwrites the first one's files.
"""

from pathlib import Path
from typing import Union
from urllib.parse import quote

from ..models.entities import Artifact, ArtifactKind, BackupSet
from ..models.parameters import validate_secret_value


def artifact_filename(secret: str, kind: ArtifactKind) -> str:
    """
    File name of an artifact: ``<secret><extension>``.

    Args:
        secret: Shared correlation token
        kind: Artifact kind

    Returns:
        e.g. ``abc123.phpcr``, ``abc123.sql`` or ``abc123.tar.gz``

    Raises:
        ValueError: If the secret is not usable as a file stem
    """
    validate_secret_value(secret)
    return f"{secret}{kind.extension}"


def normalize_base_url(host: str) -> str:
    """
    Turn the operator-supplied remote host into a base URL.

    A bare host (``live.example.com``) gets ``http://`` prepended; trailing
    slashes are removed so that artifact names can be appended with ``/``.
    """
    host = host.strip()
    if not host:
        raise ValueError("remote host must not be empty")
    if "://" not in host:
        host = f"http://{host}"
    return host.rstrip("/")


def artifact_url(base_url: str, secret: str, kind: ArtifactKind) -> str:
    """
    Remote URL of an artifact below the exporting installation's web root.

    The file name is percent-encoded, so a secret containing ``#`` or ``?``
    still addresses the file the export wrote.
    """
    return f"{normalize_base_url(base_url)}/{quote(artifact_filename(secret, kind))}"


def build_export_set(secret: str, publish_dir: Union[str, Path]) -> BackupSet:
    """
    Backup set of an export: all three artifacts, written to the publish directory.

    Args:
        secret: Shared correlation token
        publish_dir: Web-reachable directory the files are written to
    """
    publish_dir = Path(publish_dir)
    return BackupSet(
        secret=secret,
        artifacts=[
            Artifact(
                kind=kind,
                filename=artifact_filename(secret, kind),
                source=str(publish_dir / artifact_filename(secret, kind)),
            )
            for kind in ArtifactKind
        ]
    )


def build_import_set(
    secret: str,
    base_url: str,
    work_dir: Union[str, Path],
    include_assets: bool = True
) -> BackupSet:
    """
    Backup set of an import.

    The asset archive is marked as not required when ``include_assets`` is
    false; only required artifacts are fetched and checked before import.

    Args:
        secret: Shared correlation token
        base_url: Base URL (or bare host) of the exporting installation
        work_dir: Local staging directory
        include_assets: Whether to fetch the asset archive
    """
    work_dir = Path(work_dir)
    return BackupSet(
        secret=secret,
        artifacts=[
            Artifact(
                kind=kind,
                filename=artifact_filename(secret, kind),
                source=artifact_url(base_url, secret, kind),
                destination=work_dir / artifact_filename(secret, kind),
                required=include_assets or kind != ArtifactKind.ASSET_ARCHIVE,
            )
            for kind in ArtifactKind
        ]
    )
