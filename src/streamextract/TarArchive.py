"""Streaming tar.gz extraction.

The archive is never written to disk: bytes flow from the source stream
through a gzip decompressor into `TarExtractStage`, which hands them to
`tarfile` in stream mode (``r|``) and extracts members as they arrive.

`tarfile` pulls its input with ``read()`` while the pipeline pushes it with
``feed()``. The stage bridges the two with a worker thread reading from a
bounded queue; a full queue blocks `feed`, which is the pipeline's
backpressure.
"""

import io
import queue
import tarfile
import threading
from pathlib import Path

from .FileIO import ByteStream
from .Output import discard
from .Pipeline import GunzipStage, Pipeline, Stage
from .Protocols import LogSink

# Chunks buffered between the pipeline and the tarfile worker.
QUEUE_DEPTH = 16
# How long `feed` waits on a full queue before checking the worker is alive.
PUT_INTERVAL = 0.05


class _EndOfInput:
    pass


class _Aborted(Exception):
    """Raised inside the worker when the stage is failed from outside."""


_EOF = _EndOfInput()


class _QueueReader(io.RawIOBase):
    """Read-only file object over the chunks queued by the stage."""

    def __init__(self, chunks: queue.Queue) -> None:
        self._chunks = chunks
        self._buffer = b""
        self._eof = False

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        while not self._buffer and not self._eof:
            item = self._chunks.get()
            if item is _EOF:
                self._eof = True
            elif isinstance(item, _Aborted):
                raise _Aborted(str(item))
            else:
                self._buffer = item

        size = min(len(b), len(self._buffer))
        b[:size] = self._buffer[:size]
        self._buffer = self._buffer[size:]
        return size


class TarExtractStage(Stage):
    """Terminal stage extracting an uncompressed tar stream into a directory.

    Members are extracted with the ``data`` filter: absolute paths, paths
    escaping the destination and special files are refused.

    Attributes:
        destination (Path): Directory the members are extracted into.
        members (list[str]): Names of the members extracted so far.
    """

    def __init__(self, destination: Path | str, log: LogSink | None = None) -> None:
        super().__init__()
        self.destination = Path(destination)
        self.members: list[str] = []
        self._log = log or discard
        self._chunks: queue.Queue = queue.Queue(maxsize=QUEUE_DEPTH)
        self._worker_error: BaseException | None = None
        self._worker = threading.Thread(target=self._extract, name="tar-extract", daemon=True)
        self._worker.start()

    def _extract(self) -> None:
        try:
            with tarfile.open(fileobj=_QueueReader(self._chunks), mode="r|") as archive:
                for member in archive:
                    archive.extract(member, self.destination, filter="data")
                    self.members.append(member.name)
        except BaseException as error:
            self._worker_error = error

    def _put(self, item) -> None:
        # Once the worker is gone (end of archive reached, or failed) nothing
        # will read the queue again; drop the item instead of blocking.
        while self._worker.is_alive():
            try:
                self._chunks.put(item, timeout=PUT_INTERVAL)
                return
            except queue.Full:
                continue

    def transform(self, data: bytes) -> None:
        self._put(bytes(data))
        if self._worker_error is not None:
            raise self._worker_error
        return None

    def flush(self) -> None:
        self._put(_EOF)
        self._worker.join()
        if self._worker_error is not None:
            raise self._worker_error
        self._log(f"Extracted {len(self.members)} members to {self.destination}")
        return None

    def close(self, error: BaseException) -> None:
        self._put(_Aborted(f"Extraction aborted: {error}"))
        self._worker.join()


def extract_tar(stream: ByteStream, destination: Path | str, log: LogSink | None = None) -> Path:
    """Extract a tar.gz stream into `destination`.

    The stream is paused on entry and resumed only once the whole pipeline
    ``stream -> gunzip -> tar`` is wired. A stream error fails the
    decompressor, which fails the tar stage; the tar worker is stopped and
    joined before the error is raised.

    Args:
        stream (ByteStream): Source of the compressed archive.
        destination (Path | str): Target directory, created with its parents.
        log (LogSink | None): Optional write-line function for debug output.

    Returns:
        Path: `destination`.

    Raises:
        BaseException: The source error, ``zlib.error`` or ``EOFError`` for a
            bad gzip payload, ``tarfile.TarError`` for a bad archive, or the
            ``OSError`` of a failed write.
    """
    log = log or discard
    stream.pause()

    destination = Path(destination)
    destination.mkdir(parents=True, exist_ok=True)
    log(f"Extracting tar.gz stream to {destination}")

    pipeline = Pipeline(stream, GunzipStage(log=log), TarExtractStage(destination, log=log))
    pipeline.run()

    return destination
