"""streamextract package initializer.

Package-level public surface of `streamextract`, a small library that
extracts archives while they stream in and splits process output into
lines:

- __version__: Package version string.
- ByteStream: Pausable push source over bytes from an iterable, a file or an
  httpx response.
- extract / extract_tar / extract_zip: Archive extraction entry points.
- on_line: Deliver the lines of a stream to a callback.
- Pipeline, Stage: Building blocks for custom stream pipelines.
- cli: The CLI entrypoint (click group) exposed for programmatic use.

Importing the package does no I/O; work happens only when the exported
functions are called.

Example:
    from streamextract import ByteStream, extract
    with open("coder-cli-linux-amd64.tar.gz", "rb") as f:
        extract(ByteStream.from_file(f), "bin/")
"""

# Public version string
__version__ = "0.1.0"

from .ArchiveEngine import extract, detect_format, format_for_name
from .Errors import (
    CommandError,
    IncompletePipelineError,
    StagingCleanupError,
    StreamExtractError,
    UnknownFormatError,
)
from .FileIO import ByteStream, StreamState
from .Lines import LineSplitter, on_line, split
from .Pipeline import FileSinkStage, GunzipStage, Pipeline, Stage, StageState
from .Process import exec_command, spawn, wrap_exit
from .Protocols import PipelineStage
from .TarArchive import TarExtractStage, extract_tar
from .Target import get_asset_url, get_target
from .TempDirs import make_temp_dir, remove_temp_dir
from .ZipArchive import extract_zip, unzip

# Expose the CLI command object so callers can reuse or register it in other tools.
from .CLI import cli

# Define the public API
__all__ = [
    "__version__",
    "ByteStream",
    "CommandError",
    "FileSinkStage",
    "GunzipStage",
    "IncompletePipelineError",
    "LineSplitter",
    "Pipeline",
    "PipelineStage",
    "Stage",
    "StageState",
    "StagingCleanupError",
    "StreamExtractError",
    "StreamState",
    "TarExtractStage",
    "UnknownFormatError",
    "cli",
    "detect_format",
    "exec_command",
    "extract",
    "extract_tar",
    "extract_zip",
    "format_for_name",
    "get_asset_url",
    "get_target",
    "make_temp_dir",
    "on_line",
    "remove_temp_dir",
    "spawn",
    "split",
    "unzip",
    "wrap_exit",
]
