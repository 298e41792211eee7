"""Render an item as a markdown line for pasting back into a note."""
from __future__ import annotations

from .constants import EMOJI_ATTENDEES, EMOJI_DUE, EMOJI_RECURRING, EMOJI_REMINDER, EMOJI_SCHEDULED
from .model import (
    AppointmentItem,
    BaseItem,
    EventItem,
    GoalItem,
    HabitFrequency,
    HabitItem,
    ProjectItem,
    ReminderItem,
    TaskItem,
)


def _clock(stamp: str) -> str:
    """HH:MM part of an ISO datetime, or '' if there is none."""
    _day, sep, rest = (stamp or "").partition("T")
    return rest[:5] if sep else ""


def item_to_markdown(item: BaseItem) -> str:
    if isinstance(item, GoalItem):
        target = f" (Target: {item.target_date})" if item.target_date else ""
        return f"## Goal: {item.title}{target}"
    if isinstance(item, ProjectItem):
        target = f" (Target: {item.target_date})" if item.target_date else ""
        return f"## Project: {item.title}{target}"
    if isinstance(item, TaskItem):
        line = f"- [ ] {item.title}"
        if item.due:
            line += f" {EMOJI_DUE} {item.due}"
        if item.scheduled_start:
            line += f" {EMOJI_SCHEDULED} {item.scheduled_start.split('T')[0]}"
        return line
    if isinstance(item, HabitItem):
        freq = (item.pattern.freq if item.pattern else None) or HabitFrequency.DAILY.value
        return f"- [ ] {item.title} {EMOJI_RECURRING} {freq}"
    if isinstance(item, ReminderItem):
        # 2025-01-15T14:30:00 -> 2025-01-15 @ 14:30
        when = item.time.replace("T", " @ ", 1)[:-3]
        return f"- {EMOJI_REMINDER} {item.title} @ {when}"
    if isinstance(item, EventItem):
        where = f" ({item.location})" if item.location else ""
        return f"- {_clock(item.start)} - {_clock(item.end)} {item.title}{where}"
    if isinstance(item, AppointmentItem):
        who = f" {EMOJI_ATTENDEES} {', '.join(item.attendees)}" if item.attendees else ""
        return f"- {_clock(item.start)} - {_clock(item.end)} {item.title}{who}"
    return f"- {item.title}"
