"""Running child processes.

`exec_command` is for short commands whose full output is needed before
continuing. `spawn` is for long-running ones whose output should be logged
line by line as it is produced.
"""

import subprocess
from typing import Sequence

from .Errors import CommandError
from .FileIO import ByteStream
from .Lines import on_line
from .Protocols import LineCallback


def exec_command(command: str) -> tuple[str, str]:
    """Run a shell command to completion and return its stdout and stderr.

    Raises:
        CommandError: If the command exits with a nonzero code. The captured
            output is attached to the error.
    """
    result = subprocess.run(command, shell=True, capture_output=True, text=True)
    if result.returncode != 0:
        raise CommandError(command, result.returncode, result.stdout, result.stderr)
    return result.stdout, result.stderr


def wrap_exit(proc: subprocess.Popen) -> None:
    """Wait for `proc` and raise if it did not exit cleanly.

    Raises:
        CommandError: If the exit code is nonzero.
    """
    code = proc.wait()
    if code != 0:
        raise CommandError(_describe(proc.args), code)


def spawn(args: Sequence[str] | str, on_output: LineCallback | None = None, **popen_kwargs) -> None:
    """Run a command, streaming its combined stdout/stderr to `on_output`.

    stderr is merged into stdout so a single pipe is read and neither can
    fill up while the other is being drained.

    Args:
        args (Sequence[str] | str): Command to run, as for `subprocess.Popen`.
        on_output (LineCallback | None): Called once per output line, at
            least once. Output is discarded when omitted.
        **popen_kwargs: Extra `subprocess.Popen` arguments (cwd, env...).

    Raises:
        CommandError: If the command cannot be started (``returncode`` is
            None and the ``OSError`` is chained) or exits nonzero.
    """
    try:
        proc = subprocess.Popen(
            args,
            stdout=subprocess.PIPE if on_output else subprocess.DEVNULL,
            stderr=subprocess.STDOUT,
            **popen_kwargs,
        )
    except OSError as error:  # Catches ENOENT for example.
        raise CommandError(_describe(args), None) from error

    with proc:
        if on_output:
            on_line(ByteStream.from_file(proc.stdout), on_output)
        wrap_exit(proc)


def _describe(args) -> str:
    if isinstance(args, str):
        return args
    return " ".join(str(arg) for arg in args)
