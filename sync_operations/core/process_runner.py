"""
Process Runner

Runs the external tools (application console, database dump/load, tar)
as subprocesses with an optional timeout.

Commands are argv lists executed without a shell. Redirection to and from
files is done by opening the files here, so no argument can ever be
interpreted by a shell.
"""

import logging
import shlex
import subprocess
from contextlib import ExitStack
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

from ..exceptions import ExternalToolFailure, ToolTimeoutError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass
class ProcessResult:
    """
    Outcome of one subprocess run.

    Attributes:
        command_line: Shell-escaped rendering of the command (for diagnostics only)
        returncode: Exit status, None if the process was killed on timeout
        stderr: Captured standard error (decoded, possibly truncated)
        timed_out: Whether the timeout was exceeded
    """
    command_line: str
    returncode: Optional[int]
    stderr: str = ""
    timed_out: bool = False

    @property
    def success(self) -> bool:
        """Check if the process exited with status 0."""
        return not self.timed_out and self.returncode == 0


def render_command_line(
    command: Sequence[str],
    stdin_path: Optional[PathLike] = None,
    stdout_path: Optional[PathLike] = None,
    redact: Iterable[str] = ()
) -> str:
    """
    Render an argv list as a shell-escaped command line.

    Args:
        command: Program and arguments
        stdin_path: File fed to standard input, rendered as ``< file``
        stdout_path: File receiving standard output, rendered as ``> file``
        redact: Argument values to replace with ``****``

    Returns:
        Command line that a shell would parse back into the same argv
    """
    hidden = {value for value in redact if value}
    parts = ["****" if arg in hidden else arg for arg in command]
    line = shlex.join(parts)
    if stdin_path is not None:
        line += f" < {shlex.quote(str(stdin_path))}"
    if stdout_path is not None:
        line += f" > {shlex.quote(str(stdout_path))}"
    return line


class ProcessRunner:
    """
    Run external commands and turn failures into ExternalToolFailure.

    The runner holds no state between calls; it can be replaced by a mock in
    tests (anything with a compatible ``run`` method works).

    Example:
        ```python
        runner = ProcessRunner()
        runner.run(
            ["mysqldump", "-h", "db", "-P", "3306", "-u", "app", "app"],
            stdout_path="/var/www/web/abc123.sql"
        )

        runner.run(["tar", "-czf", "out.tar.gz", "-C", "uploads", "."], timeout=300)
        ```
    """

    # Amount of stderr kept in error messages
    STDERR_TAIL_CHARS = 2000

    def run(
        self,
        command: Sequence[str],
        timeout: Optional[float] = None,
        stdin_path: Optional[PathLike] = None,
        stdout_path: Optional[PathLike] = None,
        cwd: Optional[PathLike] = None,
        check: bool = True,
        redact: Iterable[str] = ()
    ) -> ProcessResult:
        """
        Run a command to completion.

        Args:
            command: Program and arguments (no shell is involved)
            timeout: Seconds after which the process is killed (None = wait forever)
            stdin_path: File to feed to standard input
            stdout_path: File to write standard output to (truncated first)
            cwd: Working directory of the process
            check: Raise on failure instead of returning the result
            redact: Argument values (e.g. passwords) hidden in logs and errors

        Returns:
            ProcessResult of the run

        Raises:
            ToolTimeoutError: If the timeout was exceeded (and check is set)
            ExternalToolFailure: If the command exited non-zero or could not
                be started (and check is set)
        """
        if not command:
            raise ValueError("command must not be empty")

        redact = list(redact)
        command = [str(arg) for arg in command]
        tool = Path(command[0]).name
        command_line = render_command_line(command, stdin_path, stdout_path, redact)

        logger.debug(f"Running: {command_line}" + (f" (timeout {timeout}s)" if timeout else ""))

        try:
            with ExitStack() as stack:
                stdin = stack.enter_context(open(stdin_path, "rb")) if stdin_path is not None else subprocess.DEVNULL
                stdout = stack.enter_context(open(stdout_path, "wb")) if stdout_path is not None else subprocess.DEVNULL
                completed = subprocess.run(
                    command,
                    stdin=stdin,
                    stdout=stdout,
                    stderr=subprocess.PIPE,
                    cwd=str(cwd) if cwd is not None else None,
                    timeout=timeout,
                    check=False
                )
        except subprocess.TimeoutExpired as e:
            result = ProcessResult(
                command_line=command_line,
                returncode=None,
                stderr=self._decode(e.stderr, redact),
                timed_out=True
            )
            logger.error(f"{tool} timed out after {timeout} seconds")
            if check:
                raise ToolTimeoutError(
                    f"Command timed out after {timeout} seconds",
                    timeout=timeout,
                    command_line=command_line,
                    tool=tool
                ) from e
            return result
        except OSError as e:
            # The executable or one of the redirection files is missing or unusable
            exit_status = 127 if isinstance(e, FileNotFoundError) else 126
            result = ProcessResult(command_line=command_line, returncode=exit_status, stderr=str(e))
            logger.error(f"Could not start {tool}: {e}")
            if check:
                raise ExternalToolFailure(
                    f"Could not start command: {e}",
                    command_line=command_line,
                    tool=tool,
                    exit_status=exit_status
                ) from e
            return result

        result = ProcessResult(
            command_line=command_line,
            returncode=completed.returncode,
            stderr=self._decode(completed.stderr, redact)
        )

        if not result.success:
            logger.error(f"{tool} exited with status {completed.returncode}")
            if check:
                raise ExternalToolFailure(
                    f"Command exited with status {completed.returncode}",
                    command_line=command_line,
                    tool=tool,
                    exit_status=completed.returncode,
                    stderr=result.stderr
                )
        else:
            logger.debug(f"{tool} finished successfully")

        return result

    def _decode(self, data: Optional[bytes], redact: Iterable[str]) -> str:
        """Decode captured stderr, keep only its tail and hide secrets."""
        if not data:
            return ""
        text = data.decode("utf-8", errors="replace").strip()
        for value in redact:
            if value:
                text = text.replace(value, "****")
        if len(text) > self.STDERR_TAIL_CHARS:
            text = "..." + text[-self.STDERR_TAIL_CHARS:]
        return text
