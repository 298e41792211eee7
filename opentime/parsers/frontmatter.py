"""Frontmatter parser.

A note whose leading ``---`` block describes a task, event, goal, or habit
becomes exactly one item. The block is decoded with PyYAML; dates that YAML
types natively are turned back into ISO strings.
"""
from __future__ import annotations

import datetime as _dt
import re
from typing import Any, Dict, List, Optional, Union

import yaml

from core.yamlio import load_text

from ..constants import (
    DEFAULT_EVENT_END,
    DEFAULT_EVENT_START,
    DEFAULT_ID_PREFIX,
    DEFAULT_TIMEZONE,
    RE_FRONTMATTER,
    STATUS_SYNONYMS,
)
from ..ids import generate_id
from ..model import (
    BaseItem,
    EventItem,
    GoalItem,
    HabitFrequency,
    HabitItem,
    HabitPattern,
    ItemType,
    ObsidianExtension,
    TaskItem,
    TaskStatus,
)
from .base import NoteParser, SourceFile

_RE_TAG_SPLIT = re.compile(r"[,\s]+")


def extract_frontmatter(content: str) -> Optional[Dict[str, Any]]:
    """Return the leading frontmatter block as a dict, or None."""
    text = (content or "").replace("\r\n", "\n")
    m = RE_FRONTMATTER.match(text)
    if not m:
        return None
    try:
        data = load_text(m.group(1))
    except (yaml.YAMLError, ValueError):
        # impossible timestamps such as 2025-02-30 fail in the constructor
        return None
    return data if isinstance(data, dict) else None


def _text(value: Any) -> Optional[str]:
    """Scalar frontmatter value as a string; YAML dates back to ISO form."""
    if value is None or value == "":
        return None
    if isinstance(value, (_dt.datetime, _dt.date)):
        return value.isoformat()
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _day(value: Any) -> Optional[str]:
    """Calendar day of a frontmatter ``date``, dropping any time part."""
    if isinstance(value, _dt.datetime):
        return value.date().isoformat()
    text = _text(value)
    return text.replace("T", " ").split(" ", 1)[0] if text else None


def _clock(value: Any) -> Optional[str]:
    """HH:MM from a frontmatter time; YAML reads ``09:00`` as 540."""
    if value is None or value == "":
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        hours, minutes = divmod(value, 60)
        return f"{hours:02d}:{minutes:02d}"
    return str(value)


def _number(value: Any, kind=float):
    if value is None or isinstance(value, bool):
        return None
    try:
        return kind(value)
    except (TypeError, ValueError):
        return None


def _tags(value: Any) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        tags = [str(t) for t in value if t is not None and str(t).strip()]
    else:
        tags = [t for t in _RE_TAG_SPLIT.split(str(value)) if t]
    return tags or None


def determine_type(fm: Dict[str, Any]) -> Optional[str]:
    """Explicit ``type`` first, then inference from the fields present."""
    if fm.get("type"):
        return str(fm["type"]).strip().lower()
    if fm.get("due") or fm.get("status"):
        return ItemType.TASK.value
    if fm.get("start") and fm.get("end"):
        return ItemType.EVENT.value
    if fm.get("date") and (fm.get("startTime") or fm.get("endTime")):
        return ItemType.EVENT.value
    if fm.get("target_date") or "progress" in fm:
        return ItemType.GOAL.value
    if fm.get("frequency"):
        return ItemType.HABIT.value
    return None


def normalize_status(value: Any) -> str:
    return STATUS_SYNONYMS.get(str(value or "").strip().lower(), TaskStatus.TODO.value)


def normalize_frequency(value: Any) -> str:
    freq = str(value or "").strip().lower()
    return freq if freq in {f.value for f in HabitFrequency} else HabitFrequency.DAILY.value


class FrontmatterParser(NoteParser):
    """Lifts a note's frontmatter into a single item."""

    def __init__(self, id_prefix: str = DEFAULT_ID_PREFIX, default_timezone: str = DEFAULT_TIMEZONE):
        super().__init__(id_prefix)
        self.default_timezone = default_timezone

    def parse_file(self, content: str, source: Union[SourceFile, str]) -> Optional[BaseItem]:
        fm = extract_frontmatter(content)
        if not fm:
            return None
        item_type = determine_type(fm)
        if not item_type:
            return None
        src = SourceFile.of(source)
        title = _text(fm.get("title")) or src.basename

        builder = {
            ItemType.TASK.value: self._to_task,
            ItemType.EVENT.value: self._to_event,
            ItemType.GOAL.value: self._to_goal,
            ItemType.HABIT.value: self._to_habit,
        }.get(item_type)
        if builder is None:
            return None
        return builder(fm, title, src)

    def parse(self, content, source, date=None):
        item = self.parse_file(content, source)
        return [item] if item is not None else []

    def _common(self, fm: Dict[str, Any], src: SourceFile) -> Dict[str, Any]:
        return {
            "tags": _tags(fm.get("tags")),
            "notes": _text(fm.get("notes")),
            "x_obsidian": ObsidianExtension(source_file=src.path),
        }

    def _to_task(self, fm: Dict[str, Any], title: str, src: SourceFile) -> TaskItem:
        return TaskItem(
            id=generate_id(f"{self.id_prefix}_task", title),
            title=title,
            status=normalize_status(fm.get("status")),
            due=_text(fm.get("due")),
            scheduled_start=_text(fm.get("scheduled")),
            priority=_number(fm.get("priority"), int),
            **self._common(fm, src),
        )

    def _to_event(self, fm: Dict[str, Any], title: str, src: SourceFile) -> Optional[EventItem]:
        if fm.get("start") and fm.get("end"):
            start, end = _text(fm["start"]), _text(fm["end"])
        elif fm.get("date"):
            day = _day(fm["date"])
            start_time = _clock(fm.get("startTime")) or DEFAULT_EVENT_START
            end_time = _clock(fm.get("endTime")) or DEFAULT_EVENT_END
            start, end = f"{day}T{start_time}:00", f"{day}T{end_time}:00"
        else:
            return None
        all_day = fm.get("allDay")
        return EventItem(
            id=generate_id(f"{self.id_prefix}_ev", title),
            title=title,
            start=start,
            end=end,
            all_day=all_day if isinstance(all_day, bool) else None,
            location=_text(fm.get("location")),
            timezone=self.default_timezone,
            **self._common(fm, src),
        )

    def _to_goal(self, fm: Dict[str, Any], title: str, src: SourceFile) -> GoalItem:
        return GoalItem(
            id=generate_id(f"{self.id_prefix}_goal", title),
            title=title,
            target_date=_text(fm.get("target_date")),
            progress=_number(fm.get("progress")),
            **self._common(fm, src),
        )

    def _to_habit(self, fm: Dict[str, Any], title: str, src: SourceFile) -> HabitItem:
        freq = fm.get("frequency")
        return HabitItem(
            id=generate_id(f"{self.id_prefix}_habit", title),
            title=title,
            pattern=HabitPattern(freq=normalize_frequency(freq)) if freq else None,
            **self._common(fm, src),
        )


def parse_frontmatter(
    content: str,
    path: str,
    *,
    id_prefix: str = DEFAULT_ID_PREFIX,
    default_timezone: str = DEFAULT_TIMEZONE,
) -> Optional[BaseItem]:
    """Parse the frontmatter item of a note, if any."""
    return FrontmatterParser(id_prefix, default_timezone).parse_file(content, path)
