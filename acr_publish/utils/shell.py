"""Safe subprocess execution utilities.

Provides shell command execution with:
- ANSI escape code stripping (keeps tool output readable in error messages)
- Proper error handling and reporting
- Standard input piping (secrets never go on the command line)
- Cancellation and deadline support through CancelScope
"""

import os
import re
import shlex
import shutil
import signal
import subprocess
import time
from pathlib import Path

from acr_publish.exceptions import CancellationError
from acr_publish.utils.cancel import CancelScope

# How often a running command checks its cancel scope, in seconds
POLL_INTERVAL = 0.1


class ShellError(Exception):
    """Exception raised when a shell command fails.

    Attributes:
        cmd: The command that failed
        returncode: Exit code of the failed command
        stdout: Standard output (ANSI stripped)
        stderr: Standard error (ANSI stripped)
    """

    def __init__(
        self,
        cmd: str,
        returncode: int,
        stdout: str,
        stderr: str,
    ) -> None:
        self.cmd = cmd
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(f"Command failed with exit code {returncode}: {cmd}")

    @property
    def output(self) -> str:
        """Combined stdout and stderr of the failed command."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)

    def __str__(self) -> str:
        parts = [f"Command failed: {self.cmd}"]
        parts.append(f"Exit code: {self.returncode}")
        if self.stderr:
            parts.append(f"Stderr: {self.stderr}")
        if self.stdout:
            parts.append(f"Stdout: {self.stdout}")
        return "\n".join(parts)


# Regex pattern for ANSI escape sequences
# Matches: ESC[...m, ESC[...;...m, and other control sequences
ANSI_PATTERN = re.compile(
    r"\x1b\[[0-9;]*[a-zA-Z]|\x1b\][^\x07]*\x07|\x1b[PX^_][^\x1b]*\x1b\\"
)

# Additional pattern for control characters that might slip through
CONTROL_CHARS_PATTERN = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences and control characters from text.

    docker and az both colorize output when they think they are attached
    to a terminal; the raw codes would otherwise end up in error details.

    Args:
        text: Input text potentially containing ANSI codes

    Returns:
        Clean text with all ANSI sequences removed
    """
    if not text:
        return ""
    result = ANSI_PATTERN.sub("", text)
    result = CONTROL_CHARS_PATTERN.sub("", result)
    return result


def _kill(proc: subprocess.Popen[str]) -> None:
    # The child leads its own session; wrappers like az start grandchildren
    # that hold the output pipes open
    if os.name == "posix":
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
    else:
        proc.kill()
    # Reap the child and close its pipes
    proc.communicate()


def run(
    cmd: str | list[str],
    cwd: Path | None = None,
    check: bool = True,
    timeout: float | None = 300,
    env: dict[str, str] | None = None,
    input: str | None = None,
    scope: CancelScope | None = None,
    strip_output: bool = True,
    display: str | None = None,
) -> subprocess.CompletedProcess[str]:
    """Execute a command under an optional cancel scope.

    Key properties:
    - Always uses shell=False to prevent shell injection
    - ``input`` is written to the process's stdin, otherwise stdin is closed
    - Cancelling the scope, passing its deadline, or exceeding ``timeout``
      kills the process group and raises CancellationError
    - Strips ANSI codes from output by default

    Args:
        cmd: Command to execute (string or list of arguments)
        cwd: Working directory for the command
        check: Whether to raise ShellError on non-zero exit
        timeout: Maximum execution time for this command in seconds
        env: Additional environment variables
        input: Text to feed to the command's standard input
        scope: Cancel scope shared by the whole invocation
        strip_output: Whether to strip ANSI codes from output
        display: Printable form of the command used in errors, for argv
            that carries a secret

    Returns:
        CompletedProcess with stdout/stderr (ANSI stripped if requested)

    Raises:
        ShellError: If command fails and check=True
        CancellationError: If the scope is cancelled/expired or timeout passes
    """
    cmd_list = shlex.split(cmd) if isinstance(cmd, str) else list(cmd)
    cmd_str = display if display is not None else " ".join(cmd_list)

    if scope is None:
        scope = CancelScope()
    if scope.done:
        raise CancellationError(
            "Operation cancelled before command started",
            cmd=cmd_str,
            timed_out=scope.expired,
        )

    merged_env = {**os.environ}
    if env:
        merged_env.update(env)

    started = time.monotonic()
    try:
        proc = subprocess.Popen(
            cmd_list,
            cwd=cwd,
            stdin=subprocess.PIPE if input is not None else subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            env=merged_env,
            start_new_session=True,
        )
    except FileNotFoundError:
        # Report a missing executable the way a shell would
        missing = subprocess.CompletedProcess(
            cmd_list, 127, stdout="", stderr=f"{cmd_list[0]}: command not found"
        )
        if check:
            raise ShellError(
                cmd=cmd_str,
                returncode=missing.returncode,
                stdout=missing.stdout,
                stderr=missing.stderr,
            ) from None
        return missing

    pending_input = input
    while True:
        if scope.done:
            _kill(proc)
            raise CancellationError(
                "Operation timed out" if scope.expired else "Operation cancelled",
                cmd=cmd_str,
                timed_out=scope.expired,
            )
        if timeout is not None and time.monotonic() - started >= timeout:
            _kill(proc)
            raise CancellationError(
                f"Command timed out after {timeout}s",
                cmd=cmd_str,
                timed_out=True,
            )
        try:
            stdout, stderr = proc.communicate(input=pending_input, timeout=POLL_INTERVAL)
            break
        except subprocess.TimeoutExpired:
            # communicate() refuses input once communication has started
            pending_input = None

    if strip_output:
        stdout = strip_ansi(stdout) if stdout else ""
        stderr = strip_ansi(stderr) if stderr else ""

    result = subprocess.CompletedProcess(
        cmd_list, proc.returncode, stdout=stdout or "", stderr=stderr or ""
    )

    if check and result.returncode != 0:
        raise ShellError(
            cmd=cmd_str,
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )

    return result


def is_command_available(cmd: str) -> bool:
    """Check if a command is available in PATH.

    Args:
        cmd: Command name to check

    Returns:
        True if command is available
    """
    return shutil.which(cmd) is not None
