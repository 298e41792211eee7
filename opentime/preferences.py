"""Companion app preference bridge.

The companion app keeps its export settings in the macOS defaults database.
They are read with ``defaults read gingabox.Elysium <key>``; a missing key
(non-zero exit) falls back to the documented default.
"""
from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence

from .constants import (
    COMPANION_DOMAIN,
    DEFAULT_SINGLE_FILENAME,
    OT_EXTENSION,
    PER_ITEM_MODE_VALUE,
    PREF_CUSTOM_PATH,
    PREF_EXPORT_MODE,
    PREF_FILENAME,
)
from .model import ExportMode

LOG = logging.getLogger(__name__)

DEFAULTS_TIMEOUT = 5.0


@dataclass
class CommandResult:
    stdout: str
    stderr: str
    returncode: int


class CommandRunner:
    """Simple abstraction to allow faking subprocess calls in tests."""

    def run(self, cmd: Sequence[str], timeout: Optional[float] = None) -> CommandResult:  # pragma: no cover - interface
        raise NotImplementedError


class SubprocessRunner(CommandRunner):
    def run(self, cmd: Sequence[str], timeout: Optional[float] = None) -> CommandResult:
        try:
            proc = subprocess.run(  # noqa: S603 - cmd is controlled by caller
                list(cmd),
                capture_output=True,
                text=True,
                timeout=timeout,
            )
            return CommandResult(stdout=proc.stdout, stderr=proc.stderr, returncode=proc.returncode)
        except subprocess.TimeoutExpired as exc:
            stdout = exc.stdout.decode(errors="ignore") if isinstance(exc.stdout, bytes) else (exc.stdout or "")
            return CommandResult(stdout=stdout, stderr="timeout", returncode=124)
        except FileNotFoundError:
            return CommandResult(stdout="", stderr=f"{cmd[0]}: not found", returncode=127)


@dataclass
class CompanionPreferences:
    export_mode: str = ExportMode.SINGLE.value
    single_filename: str = DEFAULT_SINGLE_FILENAME
    folder_path: Optional[str] = None


def _read_key(runner: CommandRunner, key: Optional[str] = None) -> Optional[str]:
    cmd = ["defaults", "read", COMPANION_DOMAIN]
    if key:
        cmd.append(key)
    res = runner.run(cmd, timeout=DEFAULTS_TIMEOUT)
    if res.returncode != 0:
        LOG.debug("defaults read %s %s failed (%s): %s", COMPANION_DOMAIN, key or "", res.returncode, res.stderr.strip())
        return None
    return res.stdout.strip()


def read_preferences(runner: Optional[CommandRunner] = None) -> CompanionPreferences:
    """Read export mode, single-file name and custom folder from the companion app."""
    runner = runner or SubprocessRunner()
    prefs = CompanionPreferences()

    mode = _read_key(runner, PREF_EXPORT_MODE)
    if mode is not None:
        prefs.export_mode = ExportMode.PER_ITEM.value if mode == PER_ITEM_MODE_VALUE else ExportMode.SINGLE.value

    filename = _read_key(runner, PREF_FILENAME)
    if filename:
        prefs.single_filename = filename

    folder = _read_key(runner, PREF_CUSTOM_PATH)
    if folder:
        prefs.folder_path = folder

    return prefs


def is_installed(runner: Optional[CommandRunner] = None) -> bool:
    """True when the companion app's defaults domain exists."""
    return _read_key(runner or SubprocessRunner()) is not None


def export_mode_description(prefs: CompanionPreferences) -> str:
    if prefs.export_mode == ExportMode.PER_ITEM.value:
        return "Per Item (elysium-{type}-{title}.ot)"
    return f"Single File ({prefs.single_filename}{OT_EXTENSION})"
