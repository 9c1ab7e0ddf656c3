"""Pipeline protocol definitions.

This module declares the interfaces the rest of the package is written
against: `PipelineStage`, which every stage of an extraction pipeline
implements, and `Extractor`, the shape of the tar and zip extraction entry
points. Keeping them here decouples the stream wiring from the concrete
stages (decompression, tar extraction, file sinks, line splitting).
"""

from pathlib import Path
from typing import Callable, Protocol

# A write-line function. Callers inject one to receive debug output.
LogSink = Callable[[str], None]

# Called once per discovered line, newline stripped.
LineCallback = Callable[[str], None]


class PipelineStage(Protocol):
    """Protocol describing a stage that consumes pushed bytes.

    Implementations forward what they produce to the next stage's `feed`,
    and forward failures to the next stage's `fail`.
    """

    def feed(self, data: bytes) -> None:
        """Consume one chunk of bytes.

        Args:
            data (bytes): The next chunk, in arrival order.
        """
        ...

    def finish(self) -> None:
        """Signal that no more bytes will arrive.

        Notes:
            Implementations flush anything they hold, then finish the next
            stage.
        """
        ...

    def fail(self, error: BaseException) -> None:
        """Destroy the stage with `error`.

        Args:
            error (BaseException): The failure, usually coming from upstream.

        Notes:
            Implementations must release their resources and fail the next
            stage with the same error, so nothing downstream keeps waiting
            for input that will never come.
        """
        ...


class Extractor(Protocol):
    """Callable extracting a byte stream into a directory."""

    def __call__(self, stream, destination: Path | str, log: LogSink | None = None) -> Path:
        ...
