"""
Tests for child process helpers
===============================

Tests for streamextract/Process.py. Commands run the current interpreter so
the tests do not depend on shell utilities.
"""

import subprocess
import sys

import pytest

from streamextract import CommandError, exec_command, spawn, wrap_exit

PYTHON = sys.executable
posix_only = pytest.mark.skipif(sys.platform == "win32", reason="POSIX shell quoting and newlines")


@posix_only
class TestExecCommand:
    """Test exec_command"""

    def test_returns_output(self):
        stdout, stderr = exec_command(f'"{PYTHON}" -c "import sys; print(1); sys.stderr.write(\'warn\')"')

        assert stdout == "1\n"
        assert stderr == "warn"

    def test_nonzero_exit(self):
        with pytest.raises(CommandError) as excinfo:
            exec_command(f'"{PYTHON}" -c "import sys; sys.stderr.write(\'bad\'); sys.exit(3)"')

        assert excinfo.value.returncode == 3
        assert excinfo.value.stderr == "bad"
        assert "failed with code 3" in str(excinfo.value)


class TestWrapExit:
    """Test wrap_exit"""

    def test_clean_exit(self):
        wrap_exit(subprocess.Popen([PYTHON, "-c", "pass"]))

    def test_nonzero_exit(self):
        with pytest.raises(CommandError) as excinfo:
            wrap_exit(subprocess.Popen([PYTHON, "-c", "raise SystemExit(2)"]))

        assert excinfo.value.returncode == 2


@posix_only
class TestSpawn:
    """Test spawn with line streaming"""

    def test_lines_streamed(self):
        lines = []
        spawn([PYTHON, "-c", "print('first'); print('second', end='')"], on_output=lines.append)

        assert lines == ["first", "second"]

    def test_stderr_merged(self):
        lines = []
        spawn([PYTHON, "-u", "-c", "import sys; print('out'); sys.stderr.write('err\\n')"], on_output=lines.append)

        assert lines == ["out", "err", ""]

    def test_no_output_fires_once(self):
        lines = []
        spawn([PYTHON, "-c", "pass"], on_output=lines.append)

        assert lines == [""]

    def test_nonzero_exit_after_output(self):
        lines = []
        with pytest.raises(CommandError) as excinfo:
            spawn([PYTHON, "-c", "print('partial'); raise SystemExit(5)"], on_output=lines.append)

        assert excinfo.value.returncode == 5
        assert lines == ["partial", ""]

    def test_missing_executable(self):
        with pytest.raises(CommandError) as excinfo:
            spawn(["streamextract-definitely-missing-binary"])

        assert excinfo.value.returncode is None
        assert isinstance(excinfo.value.__cause__, FileNotFoundError)

    def test_output_discarded_without_callback(self):
        spawn([PYTHON, "-c", "print('ignored')"])
