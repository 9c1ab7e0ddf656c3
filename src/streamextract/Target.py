"""Release asset naming for the current system.

Example binary names:
    coder-cli-darwin-amd64.zip
    coder-cli-linux-amd64.tar.gz
    coder-cli-windows.zip
"""

import platform
import sys

RELEASES_URL = "https://github.com/cdr/coder-cli/releases"
ASSET_PREFIX = "coder-cli-"

# Release names use amd64/amd32 where the machine reports x86_64/x64/x32.
ARCH_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "x64": "amd64",
    "x32": "amd32",
    "aarch64": "arm64",
}


def get_target(system: str | None = None, machine: str | None = None) -> str:
    """Return ``<platform>-<arch>`` for the running system, or ``windows``.

    Args:
        system (str | None): A `sys.platform` value; defaults to the current one.
        machine (str | None): A `platform.machine` value; defaults to the current one.
    """
    system = system or sys.platform
    # Windows releases do not include the arch.
    if system == "win32":
        return "windows"

    machine = (machine or platform.machine()).lower()
    arch = ARCH_ALIASES.get(machine, machine)
    return f"{system}-{arch}"


def archive_format(system: str | None = None) -> str:
    """Linux releases ship as tar.gz, everything else as zip."""
    return "tar.gz" if (system or sys.platform) == "linux" else "zip"


def get_asset_filename(system: str | None = None, machine: str | None = None) -> str:
    return f"{ASSET_PREFIX}{get_target(system, machine)}.{archive_format(system)}"


def get_asset_url(version: str, system: str | None = None, machine: str | None = None) -> str:
    """Return the URL to fetch the CLI archive for `version` (or ``latest``)."""
    filename = get_asset_filename(system, machine)
    if version == "latest":
        return f"{RELEASES_URL}/latest/download/{filename}"
    return f"{RELEASES_URL}/download/{version}/{filename}"
