"""Note parsers.

Each parser takes the text of one note plus its vault path and returns
OpenTime items. All three share the ``NoteParser`` interface so a scan can
run them in a fixed order: tasks, time blocks, frontmatter.
"""
from __future__ import annotations

from .base import NoteParser, SourceFile
from .day_planner import DayPlannerParser, parse_time_blocks
from .frontmatter import FrontmatterParser, extract_frontmatter, parse_frontmatter
from .tasks import TasksParser, parse_tasks

__all__ = [
    "NoteParser",
    "SourceFile",
    "TasksParser",
    "DayPlannerParser",
    "FrontmatterParser",
    "parse_tasks",
    "parse_time_blocks",
    "parse_frontmatter",
    "extract_frontmatter",
]
