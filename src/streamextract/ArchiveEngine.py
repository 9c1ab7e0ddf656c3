"""Archive format detection and dispatch.

Picks the extractor for a stream from an explicit format name, a file name
or URL, or the magic bytes at the start of the stream, then runs it.
"""

from pathlib import Path
from urllib.parse import urlparse

from .Errors import UnknownFormatError
from .FileIO import ByteStream
from .Protocols import Extractor, LogSink
from .TarArchive import extract_tar
from .ZipArchive import extract_zip

TAR_GZ = "tar.gz"
ZIP = "zip"

# Archive file signatures, from Wikipedia
SIGNATURES = {
    # zip
    b"PK\x03\x04": ZIP,
    b"PK\x05\x06": ZIP,  # Empty archive
    b"PK\x07\x08": ZIP,  # Spanned archive
    # gzip, assumed to wrap a tar
    b"\x1f\x8b": TAR_GZ,
}

EXTENSIONS = {
    ".tar.gz": TAR_GZ,
    ".tgz": TAR_GZ,
    ".zip": ZIP,
}

EXTRACTORS: dict[str, Extractor] = {
    TAR_GZ: extract_tar,
    ZIP: extract_zip,
}

# Enough to cover every signature above.
MAGIC_SIZE = 8


def detect_format(magic_bytes: bytes) -> str:
    for signature, fmt in SIGNATURES.items():
        if magic_bytes.startswith(signature):
            return fmt
    raise UnknownFormatError(f"Unknown File Format with signature: {magic_bytes.hex().upper()}")


def format_for_name(name: str) -> str | None:
    """Guess the format from a file name or URL; None if the extension is unknown."""
    path = urlparse(name).path if "://" in name else name
    lowered = path.lower()
    for extension, fmt in EXTENSIONS.items():
        if lowered.endswith(extension):
            return fmt
    return None


def get_extractor(fmt: str) -> Extractor:
    try:
        return EXTRACTORS[fmt]
    except KeyError:
        raise UnknownFormatError(f"Unsupported archive format: {fmt}") from None


def extract(stream: ByteStream, destination: Path | str, fmt: str | None = None,
            log: LogSink | None = None) -> Path:
    """Extract `stream` into `destination`.

    Args:
        stream (ByteStream): Paused source of the archive.
        destination (Path | str): Target directory.
        fmt (str | None): ``"tar.gz"`` or ``"zip"``. When omitted the format
            is sniffed from the first bytes of the stream; the peeked bytes
            are replayed, nothing is lost.
        log (LogSink | None): Optional write-line function for debug output.

    Returns:
        Path: `destination`.

    Raises:
        UnknownFormatError: If `fmt` is unsupported or the signature is unknown.
    """
    if fmt is None:
        fmt = detect_format(stream.peek(MAGIC_SIZE))
        if log:
            log(f"Detected File Format: {fmt}")
    return get_extractor(fmt)(stream, destination, log=log)
