"""Shared test fixtures and utilities.

Common fakes and helpers for the OpenTime test suite.
"""

from __future__ import annotations

import io
import os
import tempfile
from contextlib import contextmanager, redirect_stderr, redirect_stdout
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from opentime.preferences import CommandResult, CommandRunner, CompanionPreferences


# -----------------------------------------------------------------------------
# Output capture helpers
# -----------------------------------------------------------------------------


@contextmanager
def capture_stdout():
    """Context manager that captures stdout and yields a StringIO buffer."""
    buf = io.StringIO()
    with redirect_stdout(buf):
        yield buf


@contextmanager
def capture_output():
    """Capture stdout and stderr; yields (out, err) buffers."""
    out, err = io.StringIO(), io.StringIO()
    with redirect_stdout(out), redirect_stderr(err):
        yield out, err


# -----------------------------------------------------------------------------
# Companion app fakes
# -----------------------------------------------------------------------------


@dataclass
class FakeRunner(CommandRunner):
    """Answers ``defaults read`` calls from a dict; missing keys exit 1.

    Example usage:
        runner = FakeRunner(values={"opentime.exportMode": "Per Item"})
        read_preferences(runner)
    """

    values: Dict[str, str] = field(default_factory=dict)
    installed: bool = True
    calls: List[Tuple[str, ...]] = field(default_factory=list)

    def run(self, cmd: Sequence[str], timeout: Optional[float] = None) -> CommandResult:
        self.calls.append(tuple(cmd))
        if not self.installed:
            return CommandResult(stdout="", stderr="Domain does not exist", returncode=1)
        if len(cmd) == 3:
            return CommandResult(stdout="{\n}\n", stderr="", returncode=0)
        key = cmd[3]
        if key not in self.values:
            return CommandResult(stdout="", stderr="does not exist", returncode=1)
        return CommandResult(stdout=self.values[key] + "\n", stderr="", returncode=0)


def fixed_preferences(mode: str = "single", filename: str = "elysium-schedule", folder: Optional[str] = None):
    """Preference reader stub for FolderExporter."""
    prefs = CompanionPreferences(export_mode=mode, single_filename=filename, folder_path=folder)
    return lambda: prefs


# -----------------------------------------------------------------------------
# File helpers
# -----------------------------------------------------------------------------


def write_text(path: str, content: str) -> str:
    """Write text to ``path``, creating parent folders."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(content)
    return path


def read_text(path: str) -> str:
    with open(path, encoding="utf-8") as fh:
        return fh.read()


# -----------------------------------------------------------------------------
# Temporary directory mixin
# -----------------------------------------------------------------------------


class TempDirMixin:
    """Mixin providing a temporary directory that's cleaned up after each test.

    Usage:
        class MyTest(TempDirMixin, unittest.TestCase):
            def test_something(self):
                path = os.path.join(self.tmpdir, "file.txt")
                ...
    """

    tmpdir: str

    def setUp(self):
        super().setUp()
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        import shutil
        shutil.rmtree(self.tmpdir, ignore_errors=True)
        super().tearDown()
