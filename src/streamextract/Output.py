"""Console output shared by the CLI and the debug sink.

The core never writes output on its own; functions that can report progress
take a `log` write-line function. `debug` is the sink the CLI hands them:
it prints to stderr only when the ``CODER_DEBUG`` environment variable is set.
"""

import os

from rich.console import Console

DEBUG_ENV = "CODER_DEBUG"

# Single console instance for the CLI UI; stderr keeps stdout clean for output.
console = Console(stderr=True)


def debug_enabled() -> bool:
    return bool(os.environ.get(DEBUG_ENV))


def debug(line: str) -> None:
    """Print `line` to the console when debugging is enabled."""
    if debug_enabled():
        console.print(line, markup=False, highlight=False)


def discard(line: str) -> None:
    """Sink that drops every line."""
