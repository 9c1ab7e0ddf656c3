"""Namespaced temporary directories.

All directories live under ``<system temp>/coder/<name>/`` so they never
collide with unrelated temporary files and a whole namespace can be removed
at once.
"""

import shutil
import tempfile
from pathlib import Path

TEMP_NAMESPACE = "coder"


def temp_root(name: str) -> Path:
    """Return ``<system temp>/coder/<name>``."""
    return Path(tempfile.gettempdir()) / TEMP_NAMESPACE / name


def make_temp_dir(name: str) -> Path:
    """Create a uniquely named directory ``<system temp>/coder/<name>/tmp-XXXXXX``.

    Parent directories are created as needed; uniqueness comes from
    `tempfile.mkdtemp`.
    """
    root = temp_root(name)
    root.mkdir(parents=True, exist_ok=True)
    return Path(tempfile.mkdtemp(prefix="tmp-", dir=root))


def remove_temp_dir(name: str) -> None:
    """Recursively delete ``<system temp>/coder/<name>``.

    A namespace that does not exist is not an error.
    """
    try:
        shutil.rmtree(temp_root(name))
    except FileNotFoundError:
        pass
