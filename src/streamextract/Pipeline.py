"""Pipeline stages and the pipeline runner.

A stage consumes pushed bytes through `feed`, is told about the end of its
input through `finish`, and is destroyed through `fail`. Stages are chained
with `Stage.pipe`: whatever a stage produces is fed to the next one, and a
failure is forwarded to the next one with the same error. That cascade is
what guarantees that a truncated download or a corrupt payload can never
leave a downstream stage waiting for input forever.

`Pipeline` wires a ByteStream through a chain of stages, resumes it and
turns the outcome of the terminal stage into a return value or an exception.
"""

import zlib
from enum import Enum
from pathlib import Path
from typing import BinaryIO

from .Errors import IncompletePipelineError
from .Events import EventEmitter
from .FileIO import ByteStream
from .Output import discard
from .Protocols import LogSink, PipelineStage

# zlib window bits accepting a gzip header and trailer.
GZIP_WBITS = 16 + zlib.MAX_WBITS
GZIP_MAGIC = b"\x1f\x8b"
# Largest slice of decompressed output passed on at once.
MAX_OUTPUT_SIZE = 64 * 1024


class StageState(Enum):
    OPEN = "open"
    FINISHED = "finished"
    FAILED = "failed"


class Stage(EventEmitter):
    """Base class for pipeline stages.

    Subclasses override `transform`, `flush` and `close`; the base class owns
    the state machine, the forwarding to the next stage and the ``finish`` /
    ``error`` events.

    Attributes:
        state (StageState): ``open`` until the stage finishes or fails.
        error (BaseException | None): The error the stage failed with.
        downstream (PipelineStage | None): The next stage, if any.
    """

    def __init__(self) -> None:
        super().__init__()
        self.state = StageState.OPEN
        self.error: BaseException | None = None
        self.downstream: PipelineStage | None = None

    def pipe(self, stage: PipelineStage) -> PipelineStage:
        """Send this stage's output and failures to `stage`; return `stage`."""
        self.downstream = stage
        return stage

    def transform(self, data: bytes) -> bytes | None:
        """Process one chunk and return the bytes to pass on, if any."""
        return data

    def flush(self) -> bytes | None:
        """Process the end of input and return the last bytes to pass on."""
        return None

    def close(self, error: BaseException) -> None:
        """Release resources after a failure."""

    def push(self, data: bytes) -> None:
        """Pass `data` on to the next stage."""
        if data and self.downstream is not None:
            self.downstream.feed(data)

    def feed(self, data: bytes) -> None:
        if self.state is not StageState.OPEN:
            return
        try:
            output = self.transform(data)
        except Exception as error:
            self.fail(error)
            return
        if output:
            self.push(output)

    def finish(self) -> None:
        if self.state is not StageState.OPEN:
            return
        try:
            output = self.flush()
        except Exception as error:
            self.fail(error)
            return

        self.state = StageState.FINISHED
        if self.downstream is not None:
            if output:
                self.downstream.feed(output)
            self.downstream.finish()
        self.emit("finish")

    def fail(self, error: BaseException) -> None:
        if self.state is not StageState.OPEN:
            return
        self.state = StageState.FAILED
        self.error = error
        try:
            self.close(error)
        finally:
            self.emit("error", error)
            if self.downstream is not None:
                self.downstream.fail(error)


class GunzipStage(Stage):
    """Decompress a gzip stream.

    Concatenated gzip members are decoded one after the other, as gzip(1)
    does. Bytes after a member that do not start a new one (the zero padding
    some tools append to a tarball, for instance) end the input and are
    dropped. Input ending in the middle of a member is an error.

    Output is produced in slices of at most `MAX_OUTPUT_SIZE` bytes, each
    passed on before the next is decompressed, so a highly compressed chunk
    cannot outrun the backpressure of the next stage.

    Attributes:
        members (int): Number of members fully decoded.
        ignored (int): Number of trailing bytes dropped.
    """

    def __init__(self, log: LogSink | None = None) -> None:
        super().__init__()
        self._decompressor = zlib.decompressobj(GZIP_WBITS)
        self._held = b""
        self._log = log or discard
        self.members = 0
        self.ignored = 0

    def _inflate(self, data: bytes) -> bytes:
        """Decode `data` into the current member; return what follows the member."""
        while True:
            output = self._decompressor.decompress(data, MAX_OUTPUT_SIZE)
            self.push(output)
            if self._decompressor.eof:
                self.members += 1
                return self._decompressor.unused_data
            data = self._decompressor.unconsumed_tail
            # A full slice may leave output pending inside zlib.
            if not data and len(output) < MAX_OUTPUT_SIZE:
                return b""

    def transform(self, data: bytes) -> None:
        data = self._held + data
        self._held = b""
        while data:
            if self._decompressor.eof:
                if self.ignored or not data.startswith(GZIP_MAGIC[:len(data)]):
                    self.ignored += len(data)
                    return None
                if len(data) < len(GZIP_MAGIC):
                    # Too short to tell whether a new member starts here.
                    self._held = data
                    return None
                self._decompressor = zlib.decompressobj(GZIP_WBITS)
            data = self._inflate(data)
        return None

    def flush(self) -> bytes:
        if not self._decompressor.eof:
            raise EOFError("Compressed stream ended before the end-of-stream marker was reached")
        self.ignored += len(self._held)
        self._held = b""
        if self.ignored:
            self._log(f"Ignored {self.ignored} trailing bytes after the last gzip member")
        self._log(f"Decompressed {self.members} gzip member(s)")
        return self._decompressor.flush()


class FileSinkStage(Stage):
    """Terminal stage writing everything it receives to a file.

    The file is created when the stage is constructed, closed when the
    input ends, and closed as well when the stage fails.
    """

    def __init__(self, path: Path | str) -> None:
        super().__init__()
        self.path = Path(path)
        self.bytes_written = 0
        self._file: BinaryIO = open(self.path, "wb")

    def transform(self, data: bytes) -> None:
        self.bytes_written += self._file.write(data)
        return None

    def flush(self) -> None:
        self._file.close()
        return None

    def close(self, error: BaseException) -> None:
        self._file.close()


class Pipeline:
    """A ByteStream wired through one or more stages.

    Constructing a pipeline pauses the stream and wires it: the stream into
    the first stage, each stage into the next. Nothing flows until `run`.

    Attributes:
        stream (ByteStream): The source.
        stages (tuple[Stage, ...]): The stages, first to terminal.
    """

    def __init__(self, stream: ByteStream, *stages: Stage) -> None:
        if not stages:
            raise ValueError("A pipeline needs at least one stage")
        self.stream = stream
        self.stages = stages

        stream.pause()
        stream.pipe(stages[0])
        for upstream, downstream in zip(stages, stages[1:]):
            upstream.pipe(downstream)

        # A failed terminal stage will never consume anything again; stop
        # pulling from the source instead of draining it for nothing.
        self.terminal.on("error", lambda _error: stream.pause())

    @property
    def terminal(self) -> Stage:
        return self.stages[-1]

    def run(self) -> Stage:
        """Resume the stream and wait for the terminal stage to settle.

        Returns:
            Stage: The terminal stage, finished.

        Raises:
            BaseException: The error the terminal stage failed with. This is
                the original exception, whether it came from the source
                stream or from any stage along the way.
            IncompletePipelineError: If the stream stopped flowing (paused
                by a listener) before the terminal stage settled. The stages
                are failed with this error so they release their resources.
        """
        self.stream.resume()

        if self.terminal.state is StageState.OPEN:
            error = IncompletePipelineError(
                f"Stream stopped while {self.stream.state.value} before the pipeline completed")
            for stage in self.stages:
                stage.fail(error)

        if self.terminal.state is StageState.FAILED:
            raise self.terminal.error
        return self.terminal
