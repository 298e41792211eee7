"""Checkbox task parser (Tasks plugin emoji syntax)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Union

from ..constants import (
    DEFAULT_ID_PREFIX,
    DEFAULT_SCHEDULED_TIME,
    PRIORITY_PATTERNS,
    RE_CREATED,
    RE_DONE,
    RE_DUE,
    RE_HASHTAG,
    RE_RECURRING,
    RE_SCHEDULED,
    RE_START,
    RE_TASK_LINE,
)
from ..ids import generate_id
from ..model import ObsidianExtension, TaskItem, TaskStatus
from .base import NoteParser, SourceFile

_STRIPPED_MARKERS = (RE_DUE, RE_SCHEDULED, RE_START, RE_DONE, RE_CREATED, RE_RECURRING)


@dataclass
class ParsedTask:
    title: str
    completed: bool
    line_number: int
    original_text: str
    due_date: Optional[str] = None
    scheduled_date: Optional[str] = None
    start_date: Optional[str] = None
    done_date: Optional[str] = None
    recurrence: Optional[str] = None
    priority: Optional[int] = None
    tags: Optional[List[str]] = None


def _group(pattern, text: str) -> Optional[str]:
    m = pattern.search(text)
    return m.group(1) if m else None


def parse_task_line(line: str, line_number: int) -> Optional[ParsedTask]:
    """Parse a single checkbox line; None when the line is not a task."""
    m = RE_TASK_LINE.match(line)
    if not m:
        return None
    checkbox, body = m.group(2), m.group(3)

    priority = None
    for level, pattern in PRIORITY_PATTERNS:
        if pattern.search(body):
            priority = level
            break

    tags = RE_HASHTAG.findall(body)

    title = body
    for pattern in _STRIPPED_MARKERS:
        title = pattern.sub("", title, count=1)
    for _level, pattern in PRIORITY_PATTERNS:
        title = pattern.sub("", title, count=1)
    title = RE_HASHTAG.sub("", title).strip()

    return ParsedTask(
        title=title,
        completed=checkbox.lower() == "x",
        line_number=line_number,
        original_text=line,
        due_date=_group(RE_DUE, body),
        scheduled_date=_group(RE_SCHEDULED, body),
        start_date=_group(RE_START, body),
        done_date=_group(RE_DONE, body),
        recurrence=_group(RE_RECURRING, body),
        priority=priority,
        tags=tags or None,
    )


class TasksParser(NoteParser):
    """Turns ``- [ ]`` / ``- [x]`` lines into task items."""

    def parse_file(self, content: str, source: Union[SourceFile, str]) -> List[TaskItem]:
        src = SourceFile.of(source)
        tasks: List[TaskItem] = []
        for index, line in enumerate(self._lines(content), start=1):
            parsed = parse_task_line(line, index)
            if parsed:
                tasks.append(self._to_item(parsed, src))
        return tasks

    def parse(self, content, source, date=None):
        return self.parse_file(content, source)

    def _to_item(self, parsed: ParsedTask, src: SourceFile) -> TaskItem:
        return TaskItem(
            id=generate_id(f"{self.id_prefix}_task", parsed.title),
            title=parsed.title,
            status=(TaskStatus.DONE if parsed.completed else TaskStatus.TODO).value,
            due=parsed.due_date,
            scheduled_start=f"{parsed.scheduled_date}T{DEFAULT_SCHEDULED_TIME}" if parsed.scheduled_date else None,
            priority=parsed.priority,
            tags=parsed.tags,
            x_obsidian=ObsidianExtension(
                source_file=src.path,
                line_number=parsed.line_number,
                original_text=parsed.original_text,
            ),
        )


def parse_tasks(content: str, path: str, id_prefix: str = DEFAULT_ID_PREFIX) -> List[TaskItem]:
    """Parse checkbox tasks from note text."""
    return TasksParser(id_prefix).parse_file(content, path)
