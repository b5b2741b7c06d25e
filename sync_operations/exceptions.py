"""
Sync Operations Exceptions

Defines a granular exception hierarchy for export and import operations,
providing specific exception types for the different failure scenarios so
that callers can tell a failed external tool from a failed download.
"""

from typing import Optional, Dict, Any

from sync_ops_exceptions import SyncOpsError, OperationTimeoutError


class SyncError(SyncOpsError):
    """
    Base exception for all export and import operations.

    This is the parent class for all sync-related exceptions, providing
    common context attributes that are useful for debugging and error reporting.

    Attributes:
        message: Human-readable error message
        secret: Secret of the export/import transaction involved (if applicable)
        context: Additional context information as key-value pairs

    Example:
        ```python
        try:
            exporter.export(secret, database, paths)
        except SyncError as e:
            logger.error(f"Export failed for secret {e.secret}: {e.message}")
            logger.error(f"Context: {e.context}")
        ```
    """

    def __init__(
        self,
        message: str,
        secret: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.secret = secret
        self.context = context or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.secret:
            parts.append(f"Secret: {self.secret}")
        if self.context:
            parts.append(f"Context: {self.context}")
        return " | ".join(parts)


class ExternalToolFailure(SyncError):
    """
    An external command exited with a non-zero status.

    Raised by the process runner for the console sub-commands, the database
    dump/load tools and the archive tool.

    Additional Attributes:
        command_line: Shell-escaped rendering of the command that was run
        tool: Name of the executable (or console sub-command)
        exit_status: Exit status of the process (127 if it could not be started)
        stderr: Tail of the captured standard error output

    Example:
        ```python
        raise ExternalToolFailure(
            message="Command exited with status 2",
            command_line="mysqldump -h db -P 3306 -u app app",
            tool="mysqldump",
            exit_status=2
        )
        ```
    """

    def __init__(
        self,
        message: str,
        command_line: Optional[str] = None,
        tool: Optional[str] = None,
        exit_status: Optional[int] = None,
        stderr: Optional[str] = None,
        secret: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, secret, context)
        self.command_line = command_line
        self.tool = tool
        self.exit_status = exit_status
        self.stderr = stderr or ""

    def __str__(self) -> str:
        parts = [self.message]
        if self.tool:
            parts.append(f"Tool: {self.tool}")
        if self.exit_status is not None:
            parts.append(f"Exit status: {self.exit_status}")
        if self.command_line:
            parts.append(f"Command: {self.command_line}")
        if self.stderr:
            parts.append(f"Stderr: {self.stderr}")
        if self.secret:
            parts.append(f"Secret: {self.secret}")
        return " | ".join(parts)


class ToolTimeoutError(ExternalToolFailure, OperationTimeoutError):
    """
    An external command was killed after exceeding its timeout.

    Additional Attributes:
        timeout: The timeout in seconds that was exceeded
    """

    def __init__(
        self,
        message: str,
        timeout: float,
        command_line: Optional[str] = None,
        tool: Optional[str] = None,
        secret: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message,
            command_line=command_line,
            tool=tool,
            exit_status=None,
            secret=secret,
            context=context
        )
        self.timeout = timeout


class FetchError(SyncError):
    """
    Failed to download an artifact from the remote installation.

    Raised for connection errors, non-2xx responses and interrupted streams.
    The message always tells the operator to check that the remote export
    was run with the same secret.

    Additional Attributes:
        artifact_kind: Kind of the artifact that failed (e.g. "DATABASE_DUMP")
        url: URL that was being fetched
        status_code: HTTP status code if a response was received

    Example:
        ```python
        raise FetchError(
            message="HTTP 404 while downloading abc123.sql",
            artifact_kind="DATABASE_DUMP",
            url="http://live.example.com/abc123.sql",
            status_code=404
        )
        ```
    """

    HINT = (
        "Please make sure you have executed 'export' on the remote host before "
        "and that you use the same secret."
    )

    def __init__(
        self,
        message: str,
        artifact_kind: Optional[str] = None,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        secret: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, secret, context)
        self.artifact_kind = artifact_kind
        self.url = url
        self.status_code = status_code

    def __str__(self) -> str:
        parts = [self.message]
        if self.artifact_kind:
            parts.append(f"Artifact: {self.artifact_kind}")
        if self.url:
            parts.append(f"URL: {self.url}")
        if self.secret:
            parts.append(f"Secret: {self.secret}")
        parts.append(self.HINT)
        return " | ".join(parts)


class PartialDownloadFailure(FetchError):
    """
    The response body ended before the announced Content-Length was reached.

    Additional Attributes:
        expected_bytes: Size announced by the server
        received_bytes: Bytes actually written to disk
    """

    def __init__(
        self,
        message: str,
        expected_bytes: int,
        received_bytes: int,
        artifact_kind: Optional[str] = None,
        url: Optional[str] = None,
        secret: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, artifact_kind, url, None, secret, context)
        self.expected_bytes = expected_bytes
        self.received_bytes = received_bytes


class ExportError(SyncError):
    """
    Export failed for a reason other than an external tool.

    Raised, for example, when the publish directory cannot be created.
    """
    pass


class RestoreError(SyncError):
    """
    Import failed for a reason other than an external tool or a download.

    Additional Attributes:
        step: Name of the import step that failed

    Example:
        ```python
        raise RestoreError(
            message="Staged content dump is empty",
            step="content",
            secret="abc123"
        )
        ```
    """

    def __init__(
        self,
        message: str,
        step: Optional[str] = None,
        secret: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, secret, context)
        self.step = step


class OperationCancelledError(SyncError):
    """Raised between steps when the caller cancelled the operation."""
    pass
