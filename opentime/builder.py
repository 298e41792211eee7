"""Build a complete item from loose form-style fields.

Mirrors the note app's "create item" form: fields arrive as plain strings
(comma-separated tags, separate date and time), are validated for the chosen
type, and come back as a ready-to-export item linked to its note.
"""
from __future__ import annotations

import posixpath
from dataclasses import dataclass
from typing import List, Optional

from .constants import DEFAULT_SCHEDULED_TIME
from .errors import ItemValidationError, UnknownItemTypeError
from .ids import generate_id
from .model import (
    AppointmentItem,
    BaseItem,
    ElysiumExtension,
    EventItem,
    GoalItem,
    HabitFrequency,
    HabitItem,
    HabitPattern,
    HabitStreak,
    HabitWindow,
    ItemType,
    ObsidianExtension,
    ProjectItem,
    ReminderItem,
    TaskItem,
    TaskStatus,
)
from .settings import ExportSettings

UNKNOWN_SOURCE = "unknown"


@dataclass
class ItemDraft:
    title: str = ""
    tags: str = ""
    notes: str = ""
    target_date: str = ""          # goal, project
    due_date: str = ""             # task
    scheduled_date: str = ""       # task
    priority: int = 0              # task, 0 = none
    habit_frequency: str = HabitFrequency.DAILY.value
    window_start: str = ""         # habit HH:MM
    window_end: str = ""
    reminder_date: str = ""
    reminder_time: str = ""
    start_date: str = ""           # event, appointment
    start_time: str = ""
    end_date: str = ""
    end_time: str = ""
    location: str = ""
    attendees: str = ""
    source_file: str = ""
    folder_path: Optional[str] = None


def split_csv(value: str) -> List[str]:
    return [part.strip() for part in (value or "").split(",") if part.strip()]


def _stamp(day: str, clock: str) -> str:
    return f"{day}T{clock}:00"


def build_item(item_type: str, draft: ItemDraft, settings: Optional[ExportSettings] = None) -> BaseItem:
    """Validate ``draft`` for ``item_type`` and return the new item.

    Raises:
        ItemValidationError: a required field is empty.
        UnknownItemTypeError: ``item_type`` is not one of the seven types.
    """
    settings = settings or ExportSettings()
    kind = str(item_type or "").strip().lower()
    if kind not in {t.value for t in ItemType}:
        raise UnknownItemTypeError(f"Unknown item type: {item_type!r}")
    title = (draft.title or "").strip()
    if not title:
        raise ItemValidationError("Please enter a title")

    source_file = draft.source_file or UNKNOWN_SOURCE
    folder = draft.folder_path if draft.folder_path is not None else posixpath.dirname(draft.source_file or "")
    tags = split_csv(draft.tags)
    vault = settings.default_vault_name or None
    base = dict(
        id=generate_id(f"{settings.id_prefix}_{kind}", title),
        title=title,
        tags=tags or None,
        notes=(draft.notes or "").strip() or None,
        x_obsidian=ObsidianExtension(source_file=source_file, vault_name=vault),
        x_elysium=ElysiumExtension(
            obsidian_enabled=True,
            obsidian_vault_name=vault,
            obsidian_folder_path=folder or None,
            obsidian_behavior=settings.default_behavior,
        ),
    )

    if kind == ItemType.GOAL.value:
        return GoalItem(target_date=draft.target_date or None, progress=0.0, **base)

    if kind == ItemType.TASK.value:
        return TaskItem(
            status=TaskStatus.TODO.value,
            due=draft.due_date or None,
            scheduled_start=f"{draft.scheduled_date}T{DEFAULT_SCHEDULED_TIME}" if draft.scheduled_date else None,
            priority=draft.priority if draft.priority and draft.priority > 0 else None,
            **base,
        )

    if kind == ItemType.HABIT.value:
        window = None
        if draft.window_start or draft.window_end:
            window = HabitWindow(start_time=draft.window_start or None, end_time=draft.window_end or None)
        return HabitItem(
            pattern=HabitPattern(freq=draft.habit_frequency or HabitFrequency.DAILY.value),
            window=window,
            streak=HabitStreak(current=0, longest=0),
            **base,
        )

    if kind == ItemType.REMINDER.value:
        if not draft.reminder_date or not draft.reminder_time:
            raise ItemValidationError("Please set reminder date and time")
        return ReminderItem(time=_stamp(draft.reminder_date, draft.reminder_time), **base)

    if kind in (ItemType.EVENT.value, ItemType.APPOINTMENT.value):
        if not draft.start_date or not draft.start_time:
            raise ItemValidationError("Please set start date and time")
        start = _stamp(draft.start_date, draft.start_time)
        end = _stamp(draft.end_date or draft.start_date, draft.end_time or draft.start_time)
        if kind == ItemType.EVENT.value:
            return EventItem(
                start=start,
                end=end,
                timezone=settings.default_timezone,
                location=draft.location or None,
                **base,
            )
        return AppointmentItem(
            start=start,
            end=end,
            attendees=split_csv(draft.attendees),
            location=draft.location or None,
            **base,
        )

    return ProjectItem(target_date=draft.target_date or None, progress=0.0, children=[], **base)
