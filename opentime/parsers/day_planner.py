"""Time block parser (Day Planner syntax).

Lines such as ``10:00 - 12:00 Deep work`` or ``- 09:00 Standup`` in a dated
note become events. The date comes from the caller or from a ``YYYY-MM-DD``
in the note's file name; undated notes produce nothing.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Union

from ..constants import (
    DEFAULT_EVENT_DURATION,
    DEFAULT_ID_PREFIX,
    DEFAULT_TIMEZONE,
    RE_ISO_DATE,
    RE_SINGLE_TIME,
    RE_TIME_RANGE,
)
from ..ids import generate_id
from ..model import EventItem, ObsidianExtension
from .base import NoteParser, SourceFile


@dataclass
class TimeBlock:
    title: str
    start_time: str            # HH:MM
    line_number: int
    original_text: str
    end_time: Optional[str] = None


def normalize_time(value: str) -> str:
    hours, minutes = value.split(":", 1)
    return f"{int(hours):02d}:{minutes}"


def add_minutes(value: str, minutes: int) -> str:
    """Add minutes to HH:MM, wrapping past midnight."""
    h, m = (int(x) for x in value.split(":", 1))
    total = h * 60 + m + int(minutes)
    return f"{(total // 60) % 24:02d}:{total % 60:02d}"


def date_from_name(name: str) -> Optional[str]:
    m = RE_ISO_DATE.search(name or "")
    return m.group(1) if m else None


def parse_time_block(line: str, line_number: int) -> Optional[TimeBlock]:
    m = RE_TIME_RANGE.match(line)
    if m:
        return TimeBlock(
            title=m.group(4).strip(),
            start_time=normalize_time(m.group(2)),
            end_time=normalize_time(m.group(3)),
            line_number=line_number,
            original_text=line,
        )
    m = RE_SINGLE_TIME.match(line)
    if m:
        return TimeBlock(
            title=m.group(3).strip(),
            start_time=normalize_time(m.group(2)),
            line_number=line_number,
            original_text=line,
        )
    return None


class DayPlannerParser(NoteParser):
    """Turns timed lines in a dated note into event items."""

    def __init__(
        self,
        id_prefix: str = DEFAULT_ID_PREFIX,
        default_duration: int = DEFAULT_EVENT_DURATION,
        default_timezone: str = DEFAULT_TIMEZONE,
    ):
        super().__init__(id_prefix)
        self.default_duration = default_duration
        self.default_timezone = default_timezone

    def parse_file(self, content: str, source: Union[SourceFile, str], date: Optional[str] = None) -> List[EventItem]:
        src = SourceFile.of(source)
        day = date or date_from_name(src.basename)
        if not day:
            return []
        events: List[EventItem] = []
        for index, line in enumerate(self._lines(content), start=1):
            block = parse_time_block(line, index)
            if block:
                events.append(self._to_item(block, src, day))
        return events

    def parse(self, content, source, date=None):
        return self.parse_file(content, source, date)

    def _to_item(self, block: TimeBlock, src: SourceFile, day: str) -> EventItem:
        end_time = block.end_time or add_minutes(block.start_time, self.default_duration)
        return EventItem(
            id=generate_id(f"{self.id_prefix}_ev", f"{day}_{block.start_time}"),
            title=block.title,
            start=f"{day}T{block.start_time}:00",
            end=f"{day}T{end_time}:00",
            timezone=self.default_timezone,
            x_obsidian=ObsidianExtension(
                source_file=src.path,
                line_number=block.line_number,
                original_text=block.original_text,
            ),
        )


def parse_time_blocks(
    content: str,
    path: str,
    date: Optional[str] = None,
    *,
    id_prefix: str = DEFAULT_ID_PREFIX,
    default_duration: int = DEFAULT_EVENT_DURATION,
    default_timezone: str = DEFAULT_TIMEZONE,
) -> List[EventItem]:
    """Parse time blocks from note text."""
    return DayPlannerParser(id_prefix, default_duration, default_timezone).parse_file(content, path, date)
