"""
Unit tests for the line splitter
================================

Tests for streamextract/Lines.py including:
- Ordering and the end-of-stream flush
- Chunking invariance (including split multi-byte characters)
- Stream errors staying on the stream's error channel
- The split() helper
"""

import pytest

from streamextract import ByteStream, LineSplitter, on_line, split


def collect(chunks):
    lines = []
    on_line(ByteStream.from_iterable(chunks), lines.append)
    return lines


class TestOnLine:
    """Test on_line over ByteStreams"""

    def test_lines_in_order_then_single_flush(self):
        """Every line once, in order, then the (empty) remainder"""
        lines = collect([b"a\nb\nc\n"])

        assert lines == ["a", "b", "c", ""]
        assert [line for line in lines if line] == ["a", "b", "c"]

    def test_empty_stream_fires_once(self):
        assert collect([]) == [""]

    def test_partial_last_line_emitted_once(self):
        assert collect([b"one\ntw", b"o"]) == ["one", "two"]

    @pytest.mark.parametrize("size", [1, 2, 3, 5, 8, 13, 1024])
    def test_chunking_invariance(self, size):
        """The same bytes chunked differently yield the same lines"""
        data = "first\nsecond line\n\nthird ✓ línea\r\nlast".encode("utf-8")
        chunks = [data[i:i + size] for i in range(0, len(data), size)]

        assert collect(chunks) == collect([data])
        assert collect([data]) == ["first", "second line", "", "third ✓ línea\r", "last"]

    def test_carriage_returns_are_kept(self):
        assert collect([b"dos\r\nline\r\n"]) == ["dos\r", "line\r", ""]

    def test_stream_error_raised_when_unobserved(self):
        """Without an error listener the stream error reaches the caller"""

        def source():
            yield b"complete\npartial"
            raise ConnectionResetError("connection lost")

        lines = []
        with pytest.raises(ConnectionResetError):
            on_line(ByteStream(source()), lines.append)

        # No end, so no flush of the partial line.
        assert lines == ["complete"]

    def test_stream_error_left_to_stream_listener(self):
        def source():
            yield b"one\n"
            raise ConnectionResetError("connection lost")

        errors = []
        lines = []
        stream = ByteStream(source())
        stream.on("error", errors.append)

        on_line(stream, lines.append)

        assert lines == ["one"]
        assert isinstance(errors[0], ConnectionResetError)


class TestLineSplitter:
    """Test LineSplitter driven directly"""

    def test_feed_and_finish(self):
        lines = []
        splitter = LineSplitter(lines.append)

        splitter.feed("ab")
        splitter.feed("c\nde")
        assert lines == ["abc"]
        assert splitter.buffer == "de"

        splitter.finish()
        assert lines == ["abc", "de"]
        assert splitter.buffer == ""


class TestSplit:
    """Test the split() helper"""

    def test_split_at_first_delimiter(self):
        assert split("  key : value: more", ":") == ("key", " value: more")

    def test_missing_delimiter(self):
        assert split("no delimiter here", "=") == ("no delimiter here", "")

    def test_multi_character_delimiter_removed_whole(self):
        assert split("name => coder-cli => v1", "=>") == ("name", " coder-cli => v1")
