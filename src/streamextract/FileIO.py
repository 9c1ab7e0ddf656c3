"""Push-based byte streams.

Provides ByteStream, an adapter turning any source of byte chunks (an
iterable, a binary file object such as a child process's stdout, or an
httpx streaming response) into a push source with an explicit
paused/flowing gate and ``data``/``end``/``error`` events. Pipeline stages
and the line splitter subscribe to those events; the stream is only pumped
once the consumer has finished wiring and calls `resume`.

Classes:
    StreamState: The gate and terminal states of a ByteStream.
    ByteStream: Pausable push source over a chunk iterator.
"""

import codecs
from collections import deque
from enum import Enum
from typing import IO, Any, Callable, Iterable, Iterator

import httpx

from .Events import EventEmitter

DEFAULT_CHUNK_SIZE = 64 * 1024  # 64 KiB


class StreamState(Enum):
    PAUSED = "paused"
    FLOWING = "flowing"
    ENDED = "ended"
    ERRORED = "errored"


class ByteStream(EventEmitter):
    """Pausable push source of byte chunks.

    The stream starts paused. Nothing is read from the source until `resume`
    is called, which pumps chunks on the calling thread and delivers each one
    to the ``data`` listeners in order. Pumping stops when the source is
    exhausted (``end`` is emitted), when the source raises (``error`` is
    emitted) or when a listener calls `pause`.

    Notes:
        The stream does not own its source. It never closes a file or a
        response; callers do that once they are done with it.

        An error raised by the source with no ``error`` listener registered
        is raised from `resume` so it can never go unnoticed. Exceptions
        raised by listeners are not stream errors and propagate unchanged.

    Attributes:
        state (StreamState): Current state of the stream.
        error (BaseException | None): The source error once ``errored``.
        bytes_read (int): Total bytes pulled from the source so far.
    """

    def __init__(self, chunks: Iterable[bytes]) -> None:
        """Create a paused stream over `chunks`.

        Args:
            chunks (Iterable[bytes]): Source of raw chunks. Iterated lazily;
                exceptions raised while iterating become stream errors.
        """
        super().__init__()
        self.state = StreamState.PAUSED
        self.error: BaseException | None = None
        self.bytes_read = 0

        self._chunks: Iterator[bytes] = iter(chunks)
        # Chunks already pulled by `peek` and not yet delivered.
        self._pending: deque[bytes] = deque()
        self._pending_error: BaseException | None = None
        self._exhausted = False
        self._pumping = False
        self._decoder: codecs.IncrementalDecoder | None = None

    @classmethod
    def from_iterable(cls, chunks: Iterable[bytes]) -> "ByteStream":
        return cls(chunks)

    @classmethod
    def from_bytes(cls, data: bytes, chunk_size: int = DEFAULT_CHUNK_SIZE) -> "ByteStream":
        """Create a stream delivering `data` in `chunk_size` pieces."""
        return cls(data[i:i + chunk_size] for i in range(0, len(data), chunk_size))

    @classmethod
    def from_file(cls, fileobj: IO[bytes], chunk_size: int = DEFAULT_CHUNK_SIZE) -> "ByteStream":
        """Create a stream reading from a binary file object.

        Args:
            fileobj (IO[bytes]): Any readable binary file, including the
                ``stdout`` pipe of a ``subprocess.Popen``.
            chunk_size (int): Maximum bytes per chunk.

        Notes:
            ``read1`` is preferred when available: it returns whatever is
            available after at most one raw read, so output of a long-running
            process is delivered as it is produced instead of once
            `chunk_size` bytes have accumulated.
        """
        read: Callable[[int], bytes] = getattr(fileobj, "read1", fileobj.read)

        def chunks() -> Iterator[bytes]:
            while chunk := read(chunk_size):
                yield chunk

        return cls(chunks())

    @classmethod
    def from_response(cls, response: httpx.Response, chunk_size: int = DEFAULT_CHUNK_SIZE) -> "ByteStream":
        """Create a stream over the body of an httpx streaming response.

        Network failures while reading the body (``httpx.ReadError``,
        ``httpx.RemoteProtocolError``...) surface as stream errors.
        """
        return cls(response.iter_bytes(chunk_size))

    @property
    def paused(self) -> bool:
        return self.state is StreamState.PAUSED

    def set_encoding(self, encoding: str) -> "ByteStream":
        """Deliver ``data`` as text decoded with `encoding`.

        An incremental decoder is used so a multi-byte character split across
        two chunks is decoded once both halves have arrived. Invalid input is
        replaced with U+FFFD.
        """
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        return self

    def pipe(self, stage: Any) -> Any:
        """Wire this stream into `stage` and return the stage.

        Chunks go to ``stage.feed``, the end of the stream to ``stage.finish``
        and a source error to ``stage.fail``. The stream is not resumed.
        """
        self.on("data", stage.feed)
        self.on("end", stage.finish)
        self.on("error", stage.fail)
        return stage

    def pause(self) -> None:
        if self.state is StreamState.FLOWING:
            self.state = StreamState.PAUSED

    def resume(self) -> None:
        """Open the gate and pump the source until it ends, errors or is paused.

        Calling `resume` from inside a listener while the stream is already
        being pumped only reopens the gate; the outer pump keeps going.

        Raises:
            BaseException: The source error, if no ``error`` listener is
                registered.
        """
        if self.state is not StreamState.PAUSED:
            return
        self.state = StreamState.FLOWING
        if not self._pumping:
            self._pump()

    def peek(self, size: int) -> bytes:
        """Return up to `size` leading bytes without consuming them.

        Chunks read here are replayed to the ``data`` listeners on `resume`,
        so peeking at the magic bytes of an archive loses nothing.

        Args:
            size (int): Number of bytes wanted.

        Returns:
            bytes: At most `size` bytes; fewer if the source is shorter or
            failed. A source error is held back and emitted on `resume`.

        Raises:
            RuntimeError: If the stream is flowing or has already settled.
        """
        if self.state is not StreamState.PAUSED:
            raise RuntimeError(f"Cannot peek a stream that is {self.state.value}")

        buffered = sum(len(chunk) for chunk in self._pending)
        while buffered < size and not self._exhausted and self._pending_error is None:
            try:
                chunk = next(self._chunks)
            except StopIteration:
                self._exhausted = True
            except Exception as error:
                self._pending_error = error
            else:
                self._pending.append(chunk)
                buffered += len(chunk)

        return b"".join(self._pending)[:size]

    def _next_chunk(self) -> bytes:
        if self._pending:
            return self._pending.popleft()
        if self._pending_error is not None:
            error, self._pending_error = self._pending_error, None
            raise error
        if self._exhausted:
            raise StopIteration
        return next(self._chunks)

    def _pump(self) -> None:
        self._pumping = True
        try:
            while self.state is StreamState.FLOWING:
                try:
                    chunk = self._next_chunk()
                except StopIteration:
                    self._exhausted = True
                    self._end()
                    break
                except Exception as error:
                    self._fail(error)
                    break

                self.bytes_read += len(chunk)
                self._deliver(chunk)
        finally:
            self._pumping = False

    def _deliver(self, chunk: bytes) -> None:
        if self._decoder is None:
            if chunk:
                self.emit("data", chunk)
            return
        text = self._decoder.decode(chunk)
        if text:
            self.emit("data", text)

    def _end(self) -> None:
        if self._decoder is not None:
            tail = self._decoder.decode(b"", final=True)
            if tail:
                self.emit("data", tail)
        self.state = StreamState.ENDED
        self.emit("end")

    def _fail(self, error: BaseException) -> None:
        self.state = StreamState.ERRORED
        self.error = error
        if not self.emit("error", error):
            raise error
