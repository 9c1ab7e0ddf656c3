"""ZIP archive extraction from a stream.

Zip archives cannot be extracted as a stream: the central directory sits at
the end of the file and members are located from it. The incoming stream is
therefore written to a staging file first, extracted with the stdlib
`zipfile` module, and the staging directory removed afterwards whatever
the outcome.
"""

import os
import shutil
import stat
import zipfile
from pathlib import Path

from .Errors import StagingCleanupError
from .FileIO import ByteStream
from .Output import discard
from .Pipeline import FileSinkStage, Pipeline
from .Protocols import LogSink
from .TempDirs import make_temp_dir

ZIP_STAGING = "zip-staging"
STAGED_ARCHIVE_NAME = "archive.zip"


def unzip(archive_path: Path | str, destination: Path | str) -> list[Path]:
    """
    Extract every member of a ZIP file into `destination`.

    Unix permission bits recorded in the archive are restored, so
    executables stay executable. `zipfile` already sanitizes member names
    (absolute paths and ``..`` components cannot escape `destination`).

    Args:
        archive_path (Path | str): The ZIP file.
        destination (Path | str): Target directory.

    Returns:
        list[Path]: Paths of the extracted entries.

    Raises:
        zipfile.BadZipFile: If the file is not a valid ZIP archive.
        RuntimeError: If a member is encrypted.
    """
    extracted = []
    with zipfile.ZipFile(archive_path) as archive:
        for info in archive.infolist():
            target = Path(archive.extract(info, destination))
            # The high 16 bits of external_attr hold st_mode for archives
            # created on Unix; zero otherwise.
            mode = info.external_attr >> 16
            if mode and not info.is_dir():
                os.chmod(target, stat.S_IMODE(mode))
            extracted.append(target)
    return extracted


def extract_zip(stream: ByteStream, destination: Path | str, log: LogSink | None = None) -> Path:
    """
    Extract a ZIP stream into `destination` through a staging file.

    The stream is paused on entry, piped into a file inside a fresh
    ``<tmp>/coder/zip-staging/tmp-XXXXXX`` directory and resumed once
    wired. When the write completes the file is unzipped. The staging
    directory is removed in every case; each call only ever removes its own
    directory, so concurrent extractions do not interfere.

    Args:
        stream (ByteStream): Source of the ZIP archive.
        destination (Path | str): Target directory, created with its parents.
        log (LogSink | None): Optional write-line function for debug output.

    Returns:
        Path: `destination`.

    Raises:
        BaseException: The source error or write ``OSError`` (the staged file
            is closed), or the extraction error, raised after cleanup.
        StagingCleanupError: If the extraction succeeded but the staging
            directory could not be removed. A cleanup failure after a failed
            extraction is only logged, so the original error is the one raised.
    """
    log = log or discard
    stream.pause()

    destination = Path(destination)
    destination.mkdir(parents=True, exist_ok=True)

    staging = make_temp_dir(ZIP_STAGING)
    try:
        archive_path = staging / STAGED_ARCHIVE_NAME
        log(f"Staging zip stream at {archive_path}")
        sink = Pipeline(stream, FileSinkStage(archive_path)).run()
        log(f"Staged {sink.bytes_written} bytes, extracting to {destination}")
        unzip(archive_path, destination)
    except BaseException:
        try:
            shutil.rmtree(staging)
        except OSError as cleanup_error:
            log(f"Failed to remove staging directory {staging}: {cleanup_error}")
        raise

    try:
        shutil.rmtree(staging)
    except OSError as cleanup_error:
        raise StagingCleanupError(staging, destination) from cleanup_error

    return destination
