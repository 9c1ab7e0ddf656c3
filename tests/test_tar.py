"""
Tests for streaming tar.gz extraction
=====================================

Tests for streamextract/TarArchive.py including:
- Tree equality and the returned destination
- Mid-stream errors failing fast, with no worker left running
- Corrupt and malicious archives
"""

import gzip
import os
import tarfile
import threading
import zlib
from concurrent.futures import ThreadPoolExecutor

import pytest

from streamextract import ByteStream, extract_tar

TIMEOUT = 10


def tar_workers():
    return [thread for thread in threading.enumerate() if thread.name == "tar-extract"]


class TestExtractTar:
    """Test extract_tar on well-formed archives"""

    @pytest.mark.parametrize("chunk_size", [7, 512, 64 * 1024])
    def test_tree_matches_archive(self, tmp_path, make_tar_gz, sample_files, tree, chunk_size):
        destination = tmp_path / "out" / "nested"
        stream = ByteStream.from_bytes(make_tar_gz(sample_files), chunk_size=chunk_size)

        result = extract_tar(stream, destination)

        assert result == destination
        assert tree(destination) == sample_files
        assert tar_workers() == []

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_executable_bit_kept(self, tmp_path, make_tar_gz, sample_files):
        extract_tar(ByteStream.from_bytes(make_tar_gz(sample_files)), tmp_path)

        assert os.stat(tmp_path / "coder").st_mode & 0o100
        assert not os.stat(tmp_path / "README.md").st_mode & 0o100

    def test_log_sink_receives_progress(self, tmp_path, make_tar_gz, sample_files):
        lines = []
        extract_tar(ByteStream.from_bytes(make_tar_gz(sample_files)), tmp_path, log=lines.append)

        assert lines[0].startswith("Extracting tar.gz stream")
        assert lines[-1] == f"Extracted {len(sample_files)} members to {tmp_path}"

    def test_zero_padding_after_gzip_trailer(self, tmp_path, make_tar_gz, sample_files, tree):
        payload = make_tar_gz(sample_files) + b"\x00" * 512

        extract_tar(ByteStream.from_bytes(payload, chunk_size=100), tmp_path)

        assert tree(tmp_path) == sample_files
        assert tar_workers() == []


class TestExtractTarFailures:
    """Test extract_tar error propagation"""

    def test_mid_stream_error_rejects_without_hanging(self, tmp_path, make_tar_gz, sample_files):
        """A source error surfaces promptly and the tar worker is stopped"""
        payload = make_tar_gz(sample_files)

        def source():
            yield payload[: len(payload) // 2]
            raise ConnectionResetError("download interrupted")

        with ThreadPoolExecutor(max_workers=1) as pool:
            future = pool.submit(extract_tar, ByteStream(source()), tmp_path / "out")
            with pytest.raises(ConnectionResetError, match="download interrupted"):
                future.result(timeout=TIMEOUT)

        assert tar_workers() == []

    def test_truncated_gzip(self, tmp_path, make_tar_gz, sample_files):
        payload = make_tar_gz(sample_files)

        with pytest.raises(EOFError):
            extract_tar(ByteStream.from_bytes(payload[:-40], chunk_size=100), tmp_path)
        assert tar_workers() == []

    def test_not_gzip(self, tmp_path):
        with pytest.raises(zlib.error):
            extract_tar(ByteStream.from_bytes(b"this is plain text, not gzip"), tmp_path)
        assert tar_workers() == []

    def test_gzip_but_not_tar(self, tmp_path):
        with pytest.raises(tarfile.ReadError):
            extract_tar(ByteStream.from_bytes(gzip.compress(b"hello world " * 100)), tmp_path)
        assert tar_workers() == []

    def test_path_traversal_refused(self, tmp_path, make_tar_gz):
        destination = tmp_path / "out"
        payload = make_tar_gz({"../escaped.txt": b"gotcha"})

        with pytest.raises(tarfile.TarError):
            extract_tar(ByteStream.from_bytes(payload), destination)
        assert not (tmp_path / "escaped.txt").exists()
        assert tar_workers() == []
