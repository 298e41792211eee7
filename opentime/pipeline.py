"""Vault scan pipeline: find notes, parse them, export the items."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

from core.cli_errors import CLIError, ConfigError, ExitCode, NotFoundError
from core.pipeline import BaseProducer, RequestConsumer, SafeProcessor

from .constants import RE_FRONTMATTER_DATE
from .exporter import ExportReport, FolderExporter
from .model import BaseItem
from .parsers import DayPlannerParser, FrontmatterParser, NoteParser, SourceFile, TasksParser
from .preferences import CompanionPreferences, read_preferences
from .settings import ExportSettings

LOG = logging.getLogger(__name__)

NOTE_EXTENSION = ".md"


def filter_files(paths: Iterable[str], include: List[str], exclude: List[str]) -> List[str]:
    """Apply folder scope: excludes win, then includes (none = everything)."""

    def under(path: str, folder: str) -> bool:
        return path == folder or path.startswith(folder + "/")

    kept: List[str] = []
    for path in paths:
        if any(under(path, folder) for folder in exclude):
            continue
        if include and not any(under(path, folder) for folder in include):
            continue
        kept.append(path)
    return kept


def frontmatter_date(content: str) -> Optional[str]:
    """``date: YYYY-MM-DD`` from the leading frontmatter block, if present."""
    m = RE_FRONTMATTER_DATE.match((content or "").replace("\r\n", "\n"))
    return m.group(1) if m else None


def build_parsers(settings: ExportSettings) -> List[NoteParser]:
    """Enabled parsers in run order: tasks, time blocks, frontmatter."""
    parsers: List[NoteParser] = []
    if settings.enable_tasks_parser:
        parsers.append(TasksParser(settings.id_prefix))
    if settings.enable_day_planner_parser:
        parsers.append(DayPlannerParser(settings.id_prefix, settings.default_event_duration, settings.default_timezone))
    if settings.enable_frontmatter_parser:
        parsers.append(FrontmatterParser(settings.id_prefix, settings.default_timezone))
    return parsers


def parse_note(
    content: str,
    source: str,
    settings: ExportSettings,
    parsers: Optional[List[NoteParser]] = None,
) -> List[BaseItem]:
    src = SourceFile.of(source)
    date = frontmatter_date(content)
    items: List[BaseItem] = []
    for parser in build_parsers(settings) if parsers is None else parsers:
        items.extend(parser.parse(content, src, date))
    return items


def list_notes(vault_root: str) -> List[str]:
    """Vault-relative paths of all markdown notes, sorted."""
    found: List[str] = []
    for dirpath, dirnames, filenames in os.walk(vault_root):
        dirnames[:] = [d for d in dirnames if not d.startswith(".")]
        for name in filenames:
            if name.endswith(NOTE_EXTENSION):
                rel = os.path.relpath(os.path.join(dirpath, name), vault_root)
                found.append(rel.replace(os.sep, "/"))
    return sorted(found)


def collect_items(vault_root: str, settings: ExportSettings, files: Optional[List[str]] = None) -> List[BaseItem]:
    """Parse notes under ``vault_root`` in path order.

    With ``files`` only those vault-relative notes are read and the folder
    scope is not applied.
    """
    if files is None:
        files = filter_files(list_notes(vault_root), settings.include_list, settings.exclude_list)
    parsers = build_parsers(settings)
    items: List[BaseItem] = []
    for rel in files:
        try:
            with open(os.path.join(vault_root, rel), encoding="utf-8") as fh:
                content = fh.read()
        except (OSError, UnicodeDecodeError) as exc:
            LOG.warning("Skipping unreadable note %s: %s", rel, exc)
            continue
        found = parse_note(content, rel, settings, parsers)
        LOG.debug("%s: %d items", rel, len(found))
        items.extend(found)
    return items


def resolve_folder(
    explicit: Optional[str],
    settings: ExportSettings,
    preferences: Callable[[], CompanionPreferences] = read_preferences,
) -> str:
    """Destination folder: flag, then settings, then the companion app's custom path."""
    if explicit:
        return os.path.expanduser(explicit)
    if settings.folder_path:
        return settings.folder_path
    return preferences().folder_path or ""


@dataclass
class ExportRequest:
    vault_root: str
    folder: str
    settings: ExportSettings
    files: Optional[List[str]] = None


ExportRequestConsumer = RequestConsumer[ExportRequest]


@dataclass
class ExportResult:
    items: List[BaseItem] = field(default_factory=list)
    report: Optional[ExportReport] = None
    message: str = ""


class ExportProcessor(SafeProcessor[ExportRequest, ExportResult]):
    """Scan, parse and export with automatic error handling."""

    def __init__(self, exporter: Optional[FolderExporter] = None) -> None:
        self._exporter = exporter or FolderExporter()

    def _process_safe(self, payload: ExportRequest) -> ExportResult:
        if not payload.folder:
            raise ConfigError(
                "Companion folder not configured",
                hint="Pass --folder, set folder_path in settings, or set the app's custom path",
            )
        if not os.path.isdir(payload.vault_root):
            raise NotFoundError(f"Vault not found: {payload.vault_root}")
        for rel in payload.files or []:
            if not os.path.isfile(os.path.join(payload.vault_root, rel)):
                raise NotFoundError(f"Note not found: {rel}")

        items = collect_items(payload.vault_root, payload.settings, payload.files)
        if not items:
            where = "this file" if payload.files else "the vault"
            return ExportResult(items=[], message=f"No calendar items found in {where}")

        report = self._exporter.export_items(items, payload.folder, payload.settings.default_timezone)
        if not report.ok():
            raise CLIError(report.message or "Export failed", ExitCode.ERROR)
        return ExportResult(items=items, report=report, message=report.message)


class ExportProducer(BaseProducer):
    """Print the export outcome."""

    def __init__(self, verbose: bool = False) -> None:
        self.verbose = verbose

    def _produce_success(self, payload: ExportResult, diagnostics: Optional[Dict[str, Any]]) -> None:
        print(payload.message)
        if payload.report is None:
            return
        if self.verbose:
            self.print_logs([f"  wrote {p}" for p in payload.report.paths])
        if payload.report.errors:
            self.print_logs([f"  failed: {e}" for e in payload.report.errors])
