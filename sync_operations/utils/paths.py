"""
Installation Path Utilities

Resolves the directories of an installation that export and import work
on: the web-reachable publish directory and the uploads directory, which
moved from ``uploads/`` to ``var/uploads/`` in the newer directory layout.
"""

import logging
from pathlib import Path
from typing import List, Sequence

logger = logging.getLogger(__name__)


class InstallationPaths:
    """
    Directory layout of one installation.

    Example:
        ```python
        paths = InstallationPaths("/var/www/sulu", publish_subdir="web")
        paths.publish_dir        # /var/www/sulu/web
        paths.resolve_asset_dir()  # /var/www/sulu/var/uploads if it exists
        ```
    """

    def __init__(
        self,
        install_root,
        publish_subdir: str = "web",
        asset_dirs: Sequence[str] = ("var/uploads", "uploads")
    ):
        """
        Initialize installation paths.

        Args:
            install_root: Root directory of the installation
            publish_subdir: Web-reachable directory relative to the root
            asset_dirs: Candidate upload directories, preferred first
        """
        if not asset_dirs:
            raise ValueError("asset_dirs must name at least one directory")
        self.install_root = Path(install_root).resolve()
        self.publish_subdir = publish_subdir
        self.asset_dirs: List[str] = list(asset_dirs)

    @classmethod
    def from_config(cls, config) -> "InstallationPaths":
        """Build paths from a SyncConfig."""
        return cls(config.install_root, config.publish_subdir, config.asset_dirs)

    @property
    def publish_dir(self) -> Path:
        """Directory the export artifacts are written to."""
        return self.install_root / self.publish_subdir

    def asset_candidates(self) -> List[Path]:
        """Candidate upload directories as absolute paths, preferred first."""
        return [self.install_root / relative for relative in self.asset_dirs]

    def resolve_asset_dir(self) -> Path:
        """
        Return the uploads directory of this installation.

        The first candidate that exists wins; if none exists the last one
        (the legacy layout) is returned.
        """
        candidates = self.asset_candidates()
        for candidate in candidates:
            if candidate.exists():
                logger.debug(f"Resolved asset directory: {candidate}")
                return candidate
        logger.debug(f"No asset directory exists, falling back to {candidates[-1]}")
        return candidates[-1]

    def ensure_publish_dir(self) -> Path:
        """
        Create the publish directory if it does not exist.

        Raises:
            OSError: If the directory cannot be created
        """
        self.publish_dir.mkdir(parents=True, exist_ok=True)
        return self.publish_dir

    def __repr__(self) -> str:
        return f"InstallationPaths(root={self.install_root}, publish={self.publish_subdir})"
