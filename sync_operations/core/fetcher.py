"""
Remote Fetcher

Downloads the artifacts of an export from the remote installation's web
directory into a local staging directory.

Artifacts are fetched one after another in the fixed order content dump,
database dump, uploads archive. The first failure ends the whole fetch;
later artifacts are never requested, and a fetch where any required
artifact is missing is a failed fetch.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

import requests

from ..config import SyncConfig
from ..exceptions import FetchError, PartialDownloadFailure
from ..models.entities import Artifact, TransferResult
from ..utils.progress import (
    Completed,
    NullProgressSink,
    Progress,
    ProgressSink,
    Redirected,
    SizeKnown,
    StepCounter,
)
from .addressing import build_import_set

logger = logging.getLogger(__name__)


class RemoteFetcher:
    """
    Fetch export artifacts over plain HTTP.

    There is no authentication and no checksum verification: the secret in
    the file names is the only thing that ties a download to an export.

    Example:
        ```python
        fetcher = RemoteFetcher(SyncConfig(), progress=TqdmProgressSink())
        results = fetcher.fetch_all(
            "https://live.example.com",
            secret="abc123",
            include_assets=True,
            work_dir="/tmp"
        )
        ```
    """

    USER_AGENT = "sulu-sync/0.1"

    def __init__(
        self,
        config: Optional[SyncConfig] = None,
        session: Optional[requests.Session] = None,
        progress: Optional[ProgressSink] = None
    ):
        """
        Initialize the fetcher.

        Args:
            config: Sync configuration (timeouts, chunk size, staging directory)
            session: HTTP session to use (a new requests.Session if None)
            progress: Receives byte-level events (discarded if None)
        """
        self._config = config or SyncConfig()
        self._session = session
        self._progress = progress or NullProgressSink()

    @property
    def session(self) -> requests.Session:
        """HTTP session, created on first use."""
        if self._session is None:
            self._session = requests.Session()
            self._session.headers["User-Agent"] = self.USER_AGENT
        return self._session

    def fetch_all(
        self,
        base_url: str,
        secret: str,
        include_assets: bool = True,
        work_dir: Optional[Union[str, Path]] = None,
        steps: Optional[StepCounter] = None
    ) -> List[TransferResult]:
        """
        Download every required artifact, stopping at the first failure.

        Args:
            base_url: Base URL (or bare host) of the exporting installation
            secret: Shared correlation token
            include_assets: Whether to fetch the uploads archive
            work_dir: Staging directory (config value or system temp dir if None)
            steps: Step counter advanced once per downloaded artifact

        Returns:
            One TransferResult per downloaded artifact, in fetch order

        Raises:
            FetchError: If any artifact could not be downloaded completely
        """
        work_dir = Path(work_dir) if work_dir is not None else self._config.get_work_dir()
        artifacts = build_import_set(secret, base_url, work_dir, include_assets).required_artifacts

        try:
            work_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FetchError(
                f"Cannot create staging directory {work_dir}: {e}",
                secret=secret
            ) from e

        logger.info(
            f"Fetching {len(artifacts)} artifacts for secret '{secret}' "
            f"from {artifacts[0].source.rsplit('/', 1)[0]}"
        )

        results: List[TransferResult] = []
        for artifact in artifacts:
            results.append(self.fetch(artifact, secret))
            if steps is not None:
                steps.advance()

        logger.info(f"Fetched {sum(r.bytes_transferred for r in results)} bytes into {work_dir}")
        return results

    def fetch(self, artifact: Artifact, secret: Optional[str] = None) -> TransferResult:
        """
        Download one artifact to its staging path.

        A partially written file is removed on failure.

        Args:
            artifact: Artifact with a remote source and local destination
            secret: Secret used for error context

        Returns:
            Successful TransferResult

        Raises:
            FetchError: On connection errors, timeouts and non-2xx responses
            PartialDownloadFailure: If the body is shorter than Content-Length
        """
        if artifact.destination is None:
            raise ValueError(f"Artifact {artifact.filename} has no staging destination")

        url = artifact.source
        destination = Path(artifact.destination)
        kind = artifact.kind
        received = 0
        expected: Optional[int] = None

        logger.debug(f"GET {url} -> {destination}")

        try:
            response = self.session.get(url, stream=True, timeout=self._config.download_timeout)
            try:
                if response.history:
                    self._progress.emit(Redirected(kind, response.url))
                    logger.info(f"{url} redirected to {response.url}")

                if not 200 <= response.status_code < 300:
                    raise FetchError(
                        f"HTTP {response.status_code} while downloading {artifact.filename}",
                        artifact_kind=kind.value,
                        url=url,
                        status_code=response.status_code,
                        secret=secret
                    )

                expected = self._content_length(response)
                if expected is not None:
                    self._progress.emit(SizeKnown(kind, expected))

                with open(destination, "wb") as fh:
                    for chunk in response.iter_content(chunk_size=self._config.download_chunk_size):
                        if not chunk:
                            continue
                        fh.write(chunk)
                        received += len(chunk)
                        self._progress.emit(Progress(kind, received))
            finally:
                response.close()

        except FetchError:
            logger.error(f"Download of {url} failed")
            raise
        except requests.RequestException as e:
            self._discard(destination)
            logger.error(f"Download of {url} failed: {e}")
            raise FetchError(
                f"Could not download {artifact.filename}: {e}",
                artifact_kind=kind.value,
                url=url,
                secret=secret
            ) from e
        except OSError as e:
            self._discard(destination)
            logger.error(f"Could not write {destination}: {e}")
            raise FetchError(
                f"Could not write {destination}: {e}",
                artifact_kind=kind.value,
                url=url,
                secret=secret
            ) from e

        if expected is not None and received < expected:
            self._discard(destination)
            logger.error(f"Download of {url} interrupted after {received} of {expected} bytes")
            raise PartialDownloadFailure(
                f"Download of {artifact.filename} interrupted after {received} of {expected} bytes",
                expected_bytes=expected,
                received_bytes=received,
                artifact_kind=kind.value,
                url=url,
                secret=secret
            )

        self._progress.emit(Completed(kind, received))
        logger.debug(f"Downloaded {received} bytes from {url}")

        return TransferResult(
            kind=kind,
            url=url,
            destination=destination,
            bytes_transferred=received,
            expected_bytes=expected
        )

    @staticmethod
    def _content_length(response) -> Optional[int]:
        """
        Announced body size, if it can be compared with the bytes written.

        requests transparently decodes gzip/deflate, in which case the header
        describes the encoded size and is ignored.
        """
        encoding = response.headers.get("Content-Encoding", "identity").lower()
        if encoding not in ("", "identity"):
            return None
        value = response.headers.get("Content-Length")
        try:
            return int(value) if value is not None else None
        except ValueError:
            return None

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
