"""OpenTime export.

Parse schedule items out of a notes vault (checkbox tasks, time blocks,
frontmatter) and write them as OpenTime documents into a companion app's
watched folder.
"""
from __future__ import annotations

from .constants import PACKAGE_VERSION as __version__
from .decoder import load_document
from .exporter import ExportReport, FolderExporter, sanitized_filename
from .ids import generate_id
from .model import (
    AppointmentItem,
    EventItem,
    GoalItem,
    HabitItem,
    OpenTimeDocument,
    ProjectItem,
    ReminderItem,
    TaskItem,
    item_class_for,
)
from .serializer import dump_document

__all__ = [
    "__version__",
    "GoalItem",
    "TaskItem",
    "HabitItem",
    "ReminderItem",
    "EventItem",
    "AppointmentItem",
    "ProjectItem",
    "OpenTimeDocument",
    "item_class_for",
    "generate_id",
    "dump_document",
    "load_document",
    "FolderExporter",
    "ExportReport",
    "sanitized_filename",
]
