"""Splitting streams into lines.

Use `on_line` with the stdout of a long-running child process to log its
output as it arrives rather than once it exits.
"""

from .FileIO import ByteStream
from .Protocols import LineCallback


class LineSplitter:
    """Turn arbitrarily chunked text into complete lines.

    Attributes:
        buffer (str): Text received since the last newline.
    """

    def __init__(self, callback: LineCallback) -> None:
        self.callback = callback
        self.buffer = ""

    def feed(self, text: str) -> None:
        lines = (self.buffer + text).split("\n")
        # The last item is either empty (the text ended with a newline) or a
        # partial line that has to wait for the rest of its data.
        self.buffer = lines.pop()
        for line in lines:
            self.callback(line)

    def finish(self) -> None:
        line, self.buffer = self.buffer, ""
        self.callback(line)


def on_line(stream: ByteStream, callback: LineCallback) -> None:
    """Call `callback` with every line of `stream`, then return.

    The stream is decoded as UTF-8 and resumed; this function returns once
    the stream has ended (or paused). Newlines are stripped, carriage returns
    are kept.

    The callback always fires at least once, with whatever was left when the
    stream ended, even if that is an empty string. A stream with no output at
    all therefore produces a single ``""``.

    No ``error`` listener is registered: a stream error stays the stream's
    concern and is raised from here only if nobody else listens for it.
    """
    splitter = LineSplitter(callback)
    stream.set_encoding("utf-8")
    stream.on("data", splitter.feed)
    stream.on("end", splitter.finish)
    stream.resume()


def split(text: str, delimiter: str) -> tuple[str, str]:
    """Split `text` at the first `delimiter`.

    The first item is stripped of surrounding whitespace. If the delimiter is
    missing, the first item is all of `text` and the second is empty.
    """
    index = text.find(delimiter)
    if index == -1:
        return text, ""
    return text[:index].strip(), text[index + len(delimiter):]
