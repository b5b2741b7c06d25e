"""Shared fixtures for sync operation tests."""

from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

import pytest
import requests

from sync_operations.config import SyncConfig
from sync_operations.core.process_runner import ProcessResult
from sync_operations.exceptions import ExternalToolFailure
from sync_operations.models.parameters import DatabaseParams
from sync_operations.utils.paths import InstallationPaths
from sync_operations.utils.progress import RecordingProgressSink


class FakeResponse:
    """Minimal stand-in for a streamed requests.Response."""

    def __init__(
        self,
        body: bytes = b"",
        status_code: int = 200,
        headers: Optional[Dict[str, str]] = None,
        url: str = "",
        history: Optional[list] = None,
        chunks: Optional[List[bytes]] = None,
        error_after_chunks: Optional[Exception] = None
    ):
        self.status_code = status_code
        self.headers = dict(headers or {})
        self.url = url
        self.history = history or []
        self.closed = False
        self._chunks = chunks if chunks is not None else ([body] if body else [])
        self._error = error_after_chunks

    def iter_content(self, chunk_size=1):
        for chunk in self._chunks:
            yield chunk
        if self._error is not None:
            raise self._error

    def close(self):
        self.closed = True


class FakeSession:
    """
    Serves canned responses by URL and records every request made.

    A value in ``routes`` may be a FakeResponse or an exception to raise.
    Unknown URLs get a 404.
    """

    def __init__(self, routes: Optional[Dict[str, Union[FakeResponse, Exception]]] = None):
        self.routes = dict(routes or {})
        self.requested: List[str] = []
        self.headers: Dict[str, str] = {}

    def get(self, url, stream=False, timeout=None):
        self.requested.append(url)
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(status_code=404, url=url)
        if isinstance(route, Exception):
            raise route
        if not route.url:
            route.url = url
        return route


class FakeRunner:
    """
    Records commands instead of running them.

    ``fail_when`` decides, per command, whether to raise ExternalToolFailure.
    A command with ``stdout_path`` gets ``stdout_bytes`` written to that file.
    """

    def __init__(
        self,
        fail_when: Optional[Callable[[List[str]], bool]] = None,
        stdout_bytes: bytes = b"-- dump\n"
    ):
        self.calls: List[Dict] = []
        self.fail_when = fail_when
        self.stdout_bytes = stdout_bytes

    def run(self, command, timeout=None, stdin_path=None, stdout_path=None,
            cwd=None, check=True, redact=()):
        command = [str(arg) for arg in command]
        self.calls.append({
            "command": command,
            "timeout": timeout,
            "stdin_path": stdin_path,
            "stdout_path": stdout_path,
            "cwd": cwd,
            "redact": list(redact),
        })
        if self.fail_when is not None and self.fail_when(command):
            raise ExternalToolFailure(
                "Command exited with status 1",
                command_line=" ".join(command),
                tool=Path(command[0]).name,
                exit_status=1
            )
        if stdout_path is not None:
            Path(stdout_path).write_bytes(self.stdout_bytes)
        return ProcessResult(command_line=" ".join(command), returncode=0)

    @property
    def commands(self) -> List[List[str]]:
        return [call["command"] for call in self.calls]

    def invoked(self, fragment: str) -> bool:
        """Check if any recorded command contains the given argument."""
        return any(fragment in command for command in self.commands)


def fail_on(fragment: str) -> Callable[[List[str]], bool]:
    """Predicate for FakeRunner that fails commands containing ``fragment``."""
    return lambda command: fragment in command


@pytest.fixture
def installation(tmp_path):
    """Installation root with a web directory and some uploads."""
    root = tmp_path / "site"
    (root / "web").mkdir(parents=True)
    uploads = root / "var" / "uploads" / "media"
    uploads.mkdir(parents=True)
    (uploads / "logo.png").write_bytes(b"\x89PNG")
    return root


@pytest.fixture
def config(installation, tmp_path):
    """Configuration pointing at the temporary installation."""
    return SyncConfig(
        install_root=str(installation),
        work_dir=str(tmp_path / "staging")
    )


@pytest.fixture
def paths(config):
    return InstallationPaths.from_config(config)


@pytest.fixture
def database():
    return DatabaseParams(host="db", port=3306, name="sulu", user="sulu", password="secret")


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def sink():
    return RecordingProgressSink()


@pytest.fixture
def remote_routes():
    """Successful responses for every artifact of secret abc123 on live.example.com."""
    base = "http://live.example.com"
    return {
        f"{base}/abc123.phpcr": FakeResponse(b"<sv:node/>", headers={"Content-Length": "10"}),
        f"{base}/abc123.sql": FakeResponse(b"INSERT 1;", headers={"Content-Length": "9"}),
        f"{base}/abc123.tar.gz": FakeResponse(b"\x1f\x8barchive", headers={"Content-Length": "9"}),
    }


@pytest.fixture
def connection_error():
    return requests.ConnectionError("Connection refused")
