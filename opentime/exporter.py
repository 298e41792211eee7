"""Folder exporter: write items into the companion app's watched folder.

Two layouts are supported, picked by the companion app's preference:

- single file: merge into one ``{filename}.ot`` keyed by item id, keeping
  items the app created itself and replacing stale copies of ours;
- per item: one ``elysium-{type}-{slug}.ot`` file per item.

Writes go to a temp file in the destination folder and are moved into place
with ``os.replace`` so a crash never leaves a truncated document behind.
"""
from __future__ import annotations

import datetime as _dt
import logging
import os
import re
import tempfile
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from .constants import (
    FILE_NAMESPACE,
    FILENAME_SLUG_MAX,
    GENERATOR_NAME,
    OPENTIME_VERSION,
    OT_EXTENSION,
    PACKAGE_VERSION,
)
from .decoder import read_document_file
from .errors import DocumentDecodeError
from .model import BaseItem, ExportMode, OpenTimeDocument
from .preferences import CompanionPreferences, read_preferences
from .serializer import dump_document

LOG = logging.getLogger(__name__)

_RE_SPACES = re.compile(r"[\s_]+")
_RE_NOT_SLUG = re.compile(r"[^a-z0-9-]")
_RE_HYPHENS = re.compile(r"-+")


def sanitized_filename(title: str, item_type: str) -> str:
    """Per-item file name: ``elysium-{type}-{slug}.ot``.

    >>> sanitized_filename("Review PR #123!", "task")
    'elysium-task-review-pr-123.ot'
    """
    slug = (title or "").lower().strip()
    slug = _RE_SPACES.sub("-", slug)
    slug = _RE_NOT_SLUG.sub("", slug)
    slug = _RE_HYPHENS.sub("-", slug).strip("-")
    if len(slug) > FILENAME_SLUG_MAX:
        slug = slug[:FILENAME_SLUG_MAX].rstrip("-")
    return f"{FILE_NAMESPACE}-{str(item_type).lower()}-{slug or 'untitled'}{OT_EXTENSION}"


def utc_timestamp(now: Optional[_dt.datetime] = None) -> str:
    """ISO8601 UTC with milliseconds and a ``Z`` suffix."""
    moment = (now or _dt.datetime.now(_dt.timezone.utc)).astimezone(_dt.timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def merge_items(prior: Iterable[BaseItem], fresh: Iterable[BaseItem]) -> List[BaseItem]:
    """Union by id: prior items first in file order, new ids appended, new data wins."""
    merged: Dict[str, BaseItem] = {}
    for item in prior:
        merged[item.id] = item
    for item in fresh:
        merged[item.id] = item
    return list(merged.values())


def write_atomic(path: str, text: str) -> None:
    folder = os.path.dirname(path) or "."
    fd, tmp = tempfile.mkstemp(prefix=".", suffix=".tmp", dir=folder)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
        os.replace(tmp, path)
    except BaseException:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


@dataclass
class ExportReport:
    """Outcome of one export operation."""

    mode: str
    attempted: int = 0
    succeeded: int = 0
    paths: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    message: str = ""

    def ok(self) -> bool:
        return self.succeeded > 0 or not self.errors

    @property
    def partial(self) -> bool:
        return 0 < self.succeeded < self.attempted


class FolderExporter:
    """Exports items into the companion app's folder."""

    def __init__(
        self,
        version: str = PACKAGE_VERSION,
        preferences: Optional[Callable[[], CompanionPreferences]] = None,
        clock: Optional[Callable[[], _dt.datetime]] = None,
    ):
        self.version = version
        self._preferences = preferences or read_preferences
        self._clock = clock

    @property
    def generated_by(self) -> str:
        return f"{GENERATOR_NAME} {self.version}"

    def new_document(self, items: List[BaseItem], timezone: Optional[str]) -> OpenTimeDocument:
        return OpenTimeDocument(
            opentime_version=OPENTIME_VERSION,
            default_timezone=timezone,
            generated_by=self.generated_by,
            created_at=utc_timestamp(self._clock() if self._clock else None),
            items=list(items),
        )

    def export_items(self, items: List[BaseItem], folder: str, timezone: Optional[str] = None) -> ExportReport:
        """Export per the companion app's export mode preference."""
        if not folder:
            return _config_failure(len(items))
        prefs = self._preferences()
        if prefs.export_mode == ExportMode.PER_ITEM.value:
            return self.export_per_item(items, folder, timezone)
        return self.export_single_file(items, folder, timezone, prefs.single_filename)

    def export_single_file(
        self,
        items: List[BaseItem],
        folder: str,
        timezone: Optional[str],
        filename: str,
    ) -> ExportReport:
        report = ExportReport(mode=ExportMode.SINGLE.value, attempted=len(items))
        if not folder:
            return _config_failure(len(items))
        name = filename if filename.endswith(OT_EXTENSION) else f"{filename}{OT_EXTENSION}"
        path = os.path.join(folder.rstrip("/") or "/", name)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            prior = self._prior_items(path)
            doc = self.new_document(merge_items(prior, items), timezone)
            write_atomic(path, dump_document(doc))
        except OSError as exc:
            LOG.error("Failed to export %s: %s", path, exc)
            report.errors.append(str(exc))
            report.message = f"Failed to export: {exc}"
            return report
        report.succeeded = len(items)
        report.paths.append(path)
        report.message = f"Exported {len(items)} items to {name}"
        LOG.info("Merged %d new items with %d existing into %s", len(items), len(prior), path)
        return report

    def _prior_items(self, path: str) -> List[BaseItem]:
        if not os.path.exists(path):
            return []
        try:
            return read_document_file(path).items
        except DocumentDecodeError as exc:
            LOG.warning("Existing file %s could not be decoded, overwriting: %s", path, exc)
            return []
        except UnicodeDecodeError as exc:
            LOG.warning("Existing file %s is not UTF-8 text, overwriting: %s", path, exc)
            return []

    def export_per_item(self, items: List[BaseItem], folder: str, timezone: Optional[str]) -> ExportReport:
        report = ExportReport(mode=ExportMode.PER_ITEM.value, attempted=len(items))
        if not folder:
            return _config_failure(len(items))
        for item in items:
            filename = sanitized_filename(item.title, item.type)
            if self.export_document(self.new_document([item], timezone), folder, filename):
                report.succeeded += 1
                report.paths.append(os.path.join(folder.rstrip("/") or "/", filename))
            else:
                report.errors.append(f"{item.id}: failed to write {filename}")
        if report.succeeded == report.attempted:
            report.message = f"Exported {report.succeeded} items"
        elif report.succeeded:
            report.message = f"Exported {report.succeeded}/{report.attempted} items (some failed)"
        else:
            report.message = "Failed to export items"
        return report

    def export_item(self, item: BaseItem, folder: str, timezone: Optional[str] = None) -> bool:
        """Write one item to its own per-item file."""
        filename = sanitized_filename(item.title, item.type)
        return self.export_document(self.new_document([item], timezone), folder, filename)

    def export_document(self, doc: OpenTimeDocument, folder: str, filename: str) -> bool:
        if not folder:
            LOG.error("Companion folder path not configured")
            return False
        path = os.path.join(folder.rstrip("/") or "/", filename)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            write_atomic(path, dump_document(doc))
        except OSError as exc:
            LOG.error("Failed to write %s: %s", path, exc)
            return False
        return True

    @staticmethod
    def check_folder_access(path: str) -> bool:
        """Best-effort check that ``path`` is writable or can be created."""
        if not path:
            return False
        try:
            if os.path.exists(path):
                return os.path.isdir(path) and os.access(path, os.W_OK)
            os.makedirs(path, exist_ok=True)
            return True
        except OSError:
            return False


def _config_failure(attempted: int = 0) -> ExportReport:
    return ExportReport(
        mode="config",
        attempted=attempted,
        errors=["Companion folder not configured"],
        message="Companion folder not configured. Set folder_path in settings or the app's custom path.",
    )
