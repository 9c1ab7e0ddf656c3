"""Exception types raised by streamextract.

Stream, stage and filesystem failures are raised as the original exception
object (``httpx.ReadError``, ``zlib.error``, ``tarfile.ReadError``,
``OSError``...). The classes below cover the conditions streamextract
detects itself.
"""

from pathlib import Path


class StreamExtractError(Exception):
    """Base class for errors raised by streamextract."""


class UnknownFormatError(StreamExtractError, ValueError):
    """No known archive signature or file extension matched."""


class IncompletePipelineError(StreamExtractError):
    """The source stream stopped flowing before the pipeline settled."""


class StagingCleanupError(StreamExtractError):
    """The zip staging directory could not be removed after a successful extraction.

    Attributes:
        staging (Path): The staging directory left behind.
        destination (Path): Where the archive was extracted. The extraction
            itself succeeded, so callers may still use it.
    """

    def __init__(self, staging: Path, destination: Path) -> None:
        super().__init__(f"Failed to remove staging directory {staging}")
        self.staging = staging
        self.destination = destination


class CommandError(StreamExtractError):
    """A child process failed to start or exited with a nonzero code.

    Attributes:
        command (str): The command as it was given.
        returncode (int | None): Exit code, or None if the process never started.
        stdout (str): Captured output, if any.
        stderr (str): Captured error output, if any.
    """

    def __init__(self, command: str, returncode: int | None, stdout: str = "", stderr: str = "") -> None:
        if returncode is None:
            message = f'Command "{command}" could not be started'
        else:
            message = f'Command "{command}" failed with code {returncode}'
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
