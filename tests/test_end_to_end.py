"""
Export on one installation, import on another.

The console and database tools are replaced by small scripts; tar is the
real one. Downloads are served from the exporting installation's web
directory through a fake HTTP session.
"""

import shutil
import stat
import sys
from pathlib import Path

import pytest

from conftest import FakeResponse, FakeSession
from sync_operations import (
    DatabaseParams,
    ExternalToolFailure,
    ImportParams,
    RecordingProgressSink,
    RemoteFetcher,
    SyncConfig,
    SyncManager,
)
from sync_operations.core.process_runner import ProcessRunner
from sync_operations.core.tools import ToolCommands

pytestmark = pytest.mark.skipif(
    shutil.which("tar") is None or sys.platform == "win32",
    reason="needs a POSIX shell and tar"
)

CONSOLE = """
import sys
from pathlib import Path

args = sys.argv[1:]
with open({log!r}, "a") as fh:
    fh.write(" ".join(args) + "\\n")
if args[0] == "doctrine:phpcr:workspace:export":
    Path(args[-1]).write_text("<sv:node name='cmf'/>")
"""

MYSQLDUMP = """
import sys
sys.stdout.write("-- dump of " + sys.argv[-1] + "\\n")
"""

MYSQL = """
import sys
with open({out!r}, "wb") as fh:
    fh.write(sys.stdin.buffer.read())
with open({out!r} + ".args", "w") as fh:
    fh.write("\\n".join(sys.argv[1:]))
"""


def _tool(directory: Path, name: str, source: str) -> str:
    """Write a Python script plus a shell wrapper that can be used as a binary."""
    script = directory / f"{name}.py"
    script.write_text(source)
    wrapper = directory / name
    wrapper.write_text(f'#!/bin/sh\nexec "{sys.executable}" "{script}" "$@"\n')
    wrapper.chmod(wrapper.stat().st_mode | stat.S_IXUSR)
    return str(wrapper)


def _serve(web_dir: Path) -> FakeSession:
    routes = {
        f"http://live.example.com/{path.name}": FakeResponse(
            path.read_bytes(), headers={"Content-Length": str(path.stat().st_size)}
        )
        for path in web_dir.iterdir()
    }
    return FakeSession(routes)


@pytest.fixture
def tools(tmp_path):
    directory = tmp_path / "bin"
    directory.mkdir()
    return {
        "console_log": directory / "console.log",
        "loaded_sql": directory / "loaded.sql",
        "console": _tool(directory, "console", CONSOLE.format(log=str(directory / "console.log"))),
        "mysqldump": _tool(directory, "mysqldump", MYSQLDUMP),
        "mysql": _tool(directory, "mysql", MYSQL.format(out=str(directory / "loaded.sql"))),
    }


def _config(root: Path, tools, work_dir: Path = None) -> SyncConfig:
    return SyncConfig(
        install_root=str(root),
        console_command=[tools["console"]],
        mysqldump_binary=tools["mysqldump"],
        mysql_binary=tools["mysql"],
        archive_timeout=60,
        work_dir=str(work_dir) if work_dir else None
    )


def test_export_then_import(tmp_path, installation, tools):
    database = DatabaseParams(name="sulu", user="sulu", password="p@ss;rm")

    # Exporting side
    (installation / "var" / "uploads" / "media" / "new.jpg").write_bytes(b"remote")
    export = SyncManager("abc123", database, _config(installation, tools)).export()

    web = installation.resolve() / "web"
    assert sorted(p.name for p in web.iterdir()) == ["abc123.phpcr", "abc123.sql", "abc123.tar.gz"]
    assert export.artifacts
    assert (web / "abc123.sql").read_text() == "-- dump of sulu\n"

    # Importing side: an existing upload with the same name must survive
    target = tmp_path / "staging-site"
    existing = target / "var" / "uploads" / "media"
    existing.mkdir(parents=True)
    (existing / "logo.png").write_bytes(b"local")
    (existing / "local-only.txt").write_text("keep")

    sink = RecordingProgressSink()
    config = _config(target, tools, work_dir=tmp_path / "work")
    manager = SyncManager(
        "abc123",
        database,
        config,
        fetcher=RemoteFetcher(config, session=_serve(web), progress=sink),
        progress=sink
    )
    result = manager.import_site(ImportParams(remote_host="live.example.com"))

    assert result.assets_imported
    console_calls = tools["console_log"].read_text().splitlines()
    assert console_calls[0].startswith("doctrine:phpcr:workspace:export -p /cmf ")
    assert console_calls[1] == "doctrine:phpcr:workspace:purge --force"
    assert console_calls[2].startswith("doctrine:phpcr:workspace:import ")
    assert tools["loaded_sql"].read_text() == "-- dump of sulu\n"
    assert "-pp@ss;rm" in Path(str(tools["loaded_sql"]) + ".args").read_text().splitlines()

    assert (existing / "logo.png").read_bytes() == b"local"
    assert (existing / "local-only.txt").read_text() == "keep"
    assert (existing / "new.jpg").read_bytes() == b"remote"
    assert len(sink.step_messages) == 4


def test_export_with_failing_console(tmp_path, installation, tools):
    """Should stop with exit status information when the console fails."""
    failing = _tool(tmp_path / "bin", "broken", "import sys\nsys.stderr.write('no repository')\nsys.exit(4)\n")
    config = _config(installation, tools)
    config.console_command = [failing]

    with pytest.raises(ExternalToolFailure) as exc_info:
        SyncManager("abc123", DatabaseParams(name="sulu", user="sulu"), config).export()

    assert exc_info.value.exit_status == 4
    assert "no repository" in exc_info.value.stderr
    assert not (installation / "web" / "abc123.sql").exists()


def test_archive_extract_merges_into_existing_uploads(tmp_path):
    """Should accept the extract command line and keep existing files and directories."""
    source = tmp_path / "remote-uploads"
    (source / "media").mkdir(parents=True)
    (source / "media" / "logo.png").write_bytes(b"remote")
    (source / "media" / "new.jpg").write_bytes(b"new")

    target = tmp_path / "local-uploads"
    (target / "media").mkdir(parents=True)
    (target / "media" / "logo.png").write_bytes(b"local")
    (target / "private").mkdir()
    (target / "private" / "notes.txt").write_text("keep")

    commands = ToolCommands(SyncConfig(install_root=str(tmp_path)))
    archive = tmp_path / "abc123.tar.gz"
    runner = ProcessRunner()
    runner.run(commands.archive_create(archive, source), timeout=60)
    result = runner.run(commands.archive_extract(archive, target), timeout=60)

    assert result.success
    assert (target / "media" / "logo.png").read_bytes() == b"local"
    assert (target / "media" / "new.jpg").read_bytes() == b"new"
    assert (target / "private" / "notes.txt").read_text() == "keep"
