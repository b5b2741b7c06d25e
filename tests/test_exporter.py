"""Unit tests for the Exporter."""

import shutil

import pytest

from conftest import FakeRunner, fail_on
from sync_operations.core.exporter import Exporter
from sync_operations.exceptions import ExportError, ExternalToolFailure, OperationCancelledError
from sync_operations.models.entities import ArtifactKind
from sync_operations.utils.cancellation import CancellationToken
from sync_operations.utils.progress import StepAdvanced, StepsFinished, StepsPlanned


class TestExporter:
    """Tests for Exporter.export."""

    def test_runs_steps_in_order(self, config, paths, database, runner, sink, installation):
        """Should dump content, then database, then archive the uploads."""
        exporter = Exporter(config, runner, sink)
        result = exporter.export("abc123", database, paths)

        web = installation.resolve() / "web"
        assert [c["command"][0] for c in runner.calls] == ["php", "mysqldump", "tar"]
        assert runner.calls[0]["command"][-1] == str(web / "abc123.phpcr")
        assert runner.calls[1]["stdout_path"] == str(web / "abc123.sql")
        assert runner.calls[2]["command"][2] == str(web / "abc123.tar.gz")

        assert result.secret == "abc123"
        assert result.publish_dir == web
        assert result.artifacts == {
            ArtifactKind.CONTENT_DUMP: web / "abc123.phpcr",
            ArtifactKind.DATABASE_DUMP: web / "abc123.sql",
            ArtifactKind.ASSET_ARCHIVE: web / "abc123.tar.gz",
        }

    def test_step_messages(self, config, paths, database, runner, sink):
        Exporter(config, runner, sink).export("abc123", database, paths)

        assert sink.step_messages == [
            "Exporting PHPCR repository...",
            "Exporting database...",
            "Exporting uploads...",
        ]
        assert sink.of_type(StepsPlanned)[0].total == 3
        assert [e.current for e in sink.of_type(StepAdvanced)] == [1, 2, 3]
        assert len(sink.of_type(StepsFinished)) == 1

    def test_archives_resolved_asset_dir(self, config, paths, database, runner, installation):
        """Should archive the contents of var/uploads relative to that directory."""
        Exporter(config, runner).export("abc123", database, paths)

        tar = runner.calls[2]["command"]
        assert tar[3:] == ["-C", str(installation.resolve() / "var" / "uploads"), "."]
        assert runner.calls[2]["timeout"] == config.archive_timeout

    def test_password_redacted(self, config, paths, database, runner):
        Exporter(config, runner).export("abc123", database, paths)
        assert runner.calls[1]["redact"] == ["secret", "-psecret"]

    def test_content_runs_in_install_root(self, config, paths, database, runner, installation):
        Exporter(config, runner).export("abc123", database, paths)
        assert runner.calls[0]["cwd"] == installation.resolve()

    def test_stops_at_first_failure(self, config, paths, database, sink):
        """Should not dump the database or archive uploads when the content export fails."""
        runner = FakeRunner(fail_when=fail_on("doctrine:phpcr:workspace:export"))

        with pytest.raises(ExternalToolFailure) as exc_info:
            Exporter(config, runner, sink).export("abc123", database, paths)

        assert len(runner.calls) == 1
        assert exc_info.value.secret == "abc123"
        assert sink.step_messages == ["Exporting PHPCR repository..."]

    def test_database_failure_leaves_earlier_artifacts(self, config, paths, database):
        runner = FakeRunner(fail_when=lambda command: command[0] == "mysqldump")

        with pytest.raises(ExternalToolFailure):
            Exporter(config, runner).export("abc123", database, paths)

        assert not runner.invoked("-czf")

    def test_missing_uploads_directory(self, config, paths, database, runner, installation):
        """Should fail before running tar when no uploads directory exists."""
        shutil.rmtree(installation / "var")

        with pytest.raises(ExportError):
            Exporter(config, runner).export("abc123", database, paths)

        assert not runner.invoked("-czf")

    def test_legacy_uploads_directory(self, config, paths, database, runner, installation):
        shutil.rmtree(installation / "var")
        (installation / "uploads").mkdir()

        Exporter(config, runner).export("abc123", database, paths)

        assert runner.calls[2]["command"][4] == str(installation.resolve() / "uploads")

    def test_creates_publish_dir(self, config, paths, database, runner, installation):
        shutil.rmtree(installation / "web")

        Exporter(config, runner).export("abc123", database, paths)

        assert (installation / "web").is_dir()

    def test_invalid_secret(self, config, paths, database, runner):
        with pytest.raises(ValueError):
            Exporter(config, runner).export("../abc", database, paths)
        assert runner.calls == []

    def test_cancelled_before_start(self, config, paths, database, runner):
        token = CancellationToken()
        token.cancel("test")

        with pytest.raises(OperationCancelledError) as exc_info:
            Exporter(config, runner).export("abc123", database, paths, cancellation=token)

        assert runner.calls == []
        assert exc_info.value.context == {"reason": "test"}

    def test_cancelled_between_steps(self, config, paths, database):
        """Should finish the running step and stop before the next one."""
        token = CancellationToken()

        def cancel_after_content(command):
            if "doctrine:phpcr:workspace:export" in command:
                token.cancel()
            return False

        runner = FakeRunner(fail_when=cancel_after_content)

        with pytest.raises(OperationCancelledError):
            Exporter(config, runner).export("abc123", database, paths, cancellation=token)

        assert len(runner.calls) == 1
