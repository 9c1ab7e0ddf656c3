"""Shared fixtures: archive builders and an isolated system temp directory."""

import io
import tarfile
import tempfile
import zipfile

import pytest


SAMPLE_FILES = {
    "coder": b"#!/bin/sh\necho coder\n",
    "README.md": b"# coder-cli\n",
    "docs/usage.txt": b"usage: coder [command]\n" * 200,
    "docs/nested/deep.bin": bytes(range(256)) * 64,
}
EXECUTABLES = {"coder"}


@pytest.fixture(autouse=True)
def system_tmp(tmp_path, monkeypatch):
    """Point `tempfile.gettempdir()` at a per-test directory."""
    root = tmp_path / "systmp"
    root.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(root))
    return root


@pytest.fixture
def sample_files():
    return dict(SAMPLE_FILES)


@pytest.fixture
def make_tar_gz():
    """Return a builder producing tar.gz bytes from a {name: content} mapping."""

    def build(files, executables=EXECUTABLES):
        buffer = io.BytesIO()
        with tarfile.open(fileobj=buffer, mode="w:gz") as archive:
            for name, content in files.items():
                info = tarfile.TarInfo(name)
                info.size = len(content)
                info.mode = 0o755 if name in executables else 0o644
                archive.addfile(info, io.BytesIO(content))
        return buffer.getvalue()

    return build


@pytest.fixture
def make_zip():
    """Return a builder producing zip bytes from a {name: content} mapping."""

    def build(files, executables=EXECUTABLES):
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for name, content in files.items():
                info = zipfile.ZipInfo(name)
                info.compress_type = zipfile.ZIP_DEFLATED
                mode = 0o755 if name in executables else 0o644
                info.external_attr = (0o100000 | mode) << 16
                archive.writestr(info, content)
        return buffer.getvalue()

    return build


def read_tree(root):
    """Map every regular file under `root` to its content, keyed by posix path."""
    return {
        path.relative_to(root).as_posix(): path.read_bytes()
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


@pytest.fixture
def tree():
    return read_tree
