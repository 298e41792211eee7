"""Data model for OpenTime schedule items.

Seven item variants share a common set of fields. Each variant carries a
class-level ``type`` tag; unknown keys read from disk are kept verbatim in
``extras`` so they survive a read-merge-write cycle.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Type, Union

from .constants import OPENTIME_VERSION
from .errors import UnknownItemTypeError


class ItemType(str, Enum):
    GOAL = "goal"
    TASK = "task"
    HABIT = "habit"
    REMINDER = "reminder"
    EVENT = "event"
    APPOINTMENT = "appointment"
    PROJECT = "project"


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    CANCELLED = "cancelled"


class HabitFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    CUSTOM = "custom"


class StepStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class RepeatsPer(str, Enum):
    DAY = "Day"
    WEEK = "Week"
    MONTH = "Month"
    YEAR = "Year"


class RepeatsEndType(str, Enum):
    NEVER = "Never"
    AFTER = "After"
    ON_DATE = "On Date"


class ExportMode(str, Enum):
    SINGLE = "single"
    PER_ITEM = "per-item"


class LinkBehavior(str, Enum):
    REPLACE = "replace"
    ALONGSIDE = "alongside"


# -----------------------------------------------------------------------------
# Sub-records
# -----------------------------------------------------------------------------


@dataclass
class Step:
    """Checklist entry inside an item."""

    id: str
    title: str
    completed: bool = False
    order: int = 0
    status: str = StepStatus.PENDING.value
    due_date: Optional[str] = None     # YYYY-MM-DD


@dataclass
class RepeatsSettings:
    """Recurrence block.

    ``end_count`` only applies when ``end_type`` is ``After``, ``end_date``
    only when it is ``On Date``, and ``weekdays`` only when ``per`` is
    ``Week``. Irrelevant values are kept but never written out.
    """

    enabled: bool = False
    count: Optional[int] = None
    per: Optional[str] = None
    weekdays: Optional[List[str]] = None
    end_type: Optional[str] = None
    end_count: Optional[int] = None
    end_date: Optional[str] = None

    def relevant(self) -> Dict[str, Any]:
        """Return the fields that apply given ``per`` and ``end_type``."""
        out: Dict[str, Any] = {"enabled": self.enabled}
        if self.count is not None:
            out["count"] = self.count
        if self.per is not None:
            out["per"] = self.per
        if self.weekdays and self.per == RepeatsPer.WEEK.value:
            out["weekdays"] = list(self.weekdays)
        if self.end_type is not None:
            out["end_type"] = self.end_type
        if self.end_count is not None and self.end_type == RepeatsEndType.AFTER.value:
            out["end_count"] = self.end_count
        if self.end_date is not None and self.end_type == RepeatsEndType.ON_DATE.value:
            out["end_date"] = self.end_date
        return out


@dataclass
class Link:
    kind: str   # url|ref
    value: str


@dataclass
class HabitPattern:
    freq: Optional[str] = None
    days_of_week: Optional[List[str]] = None


@dataclass
class HabitWindow:
    start_time: Optional[str] = None   # HH:MM
    end_time: Optional[str] = None


@dataclass
class HabitStreak:
    current: Optional[int] = None
    longest: Optional[int] = None


@dataclass
class ObsidianExtension:
    """Where in the vault an item came from."""

    source_file: str
    folder_path: Optional[str] = None
    line_number: Optional[int] = None
    original_text: Optional[str] = None
    vault_name: Optional[str] = None


@dataclass
class ElysiumExtension:
    """Marks an item as linked to a note in the vault."""

    obsidian_enabled: bool = True
    obsidian_vault_name: Optional[str] = None
    obsidian_folder_path: Optional[str] = None
    obsidian_source_file: Optional[str] = None
    obsidian_behavior: Optional[str] = None


# -----------------------------------------------------------------------------
# Items
# -----------------------------------------------------------------------------


@dataclass(kw_only=True)
class BaseItem:
    type: ClassVar[str] = ""

    id: str
    title: str
    tags: Optional[List[str]] = None
    categories: Optional[List[str]] = None
    notes: Optional[str] = None
    steps: Optional[List[Step]] = None
    links: Optional[List[Link]] = None
    x_obsidian: Optional[ObsidianExtension] = None
    x_elysium: Optional[ElysiumExtension] = None
    extras: Dict[str, Any] = field(default_factory=dict)


COMMON_FIELDS: Tuple[str, ...] = tuple(f.name for f in fields(BaseItem))

# Scalar field kinds shared by every variant that declares them
INT_FIELDS = frozenset({"estimate_minutes", "actual_minutes", "priority"})
FLOAT_FIELDS = frozenset({"progress"})
BOOL_FIELDS = frozenset({"all_day"})
STR_LIST_FIELDS = frozenset({"tags", "categories", "attendees", "children"})


@dataclass(kw_only=True)
class GoalItem(BaseItem):
    type: ClassVar[str] = ItemType.GOAL.value
    kind: ClassVar[str] = "goal"

    target_date: Optional[str] = None
    progress: Optional[float] = None
    project_id: Optional[str] = None
    estimate_minutes: Optional[int] = None
    repeats: Optional[RepeatsSettings] = None


@dataclass(kw_only=True)
class TaskItem(BaseItem):
    type: ClassVar[str] = ItemType.TASK.value

    status: str = TaskStatus.TODO.value
    due: Optional[str] = None
    scheduled_start: Optional[str] = None
    estimate_minutes: Optional[int] = None
    actual_minutes: Optional[int] = None
    priority: Optional[int] = None
    goal_id: Optional[str] = None
    project_id: Optional[str] = None
    repeats: Optional[RepeatsSettings] = None


@dataclass(kw_only=True)
class HabitItem(BaseItem):
    type: ClassVar[str] = ItemType.HABIT.value

    pattern: Optional[HabitPattern] = None
    window: Optional[HabitWindow] = None
    streak: Optional[HabitStreak] = None
    goal_id: Optional[str] = None
    project_id: Optional[str] = None
    estimate_minutes: Optional[int] = None
    repeats: Optional[RepeatsSettings] = None


@dataclass(kw_only=True)
class ReminderItem(BaseItem):
    type: ClassVar[str] = ItemType.REMINDER.value

    time: str
    repeat: Optional[str] = None
    link: Optional[str] = None


@dataclass(kw_only=True)
class EventItem(BaseItem):
    type: ClassVar[str] = ItemType.EVENT.value

    start: str
    end: str
    all_day: Optional[bool] = None
    timezone: Optional[str] = None
    location: Optional[str] = None
    recurrence: Optional[str] = None
    goal_id: Optional[str] = None
    project_id: Optional[str] = None


@dataclass(kw_only=True)
class AppointmentItem(BaseItem):
    type: ClassVar[str] = ItemType.APPOINTMENT.value

    start: str
    end: str
    attendees: List[str] = field(default_factory=list)
    location: Optional[str] = None
    provider: Optional[str] = None
    goal_id: Optional[str] = None
    project_id: Optional[str] = None


@dataclass(kw_only=True)
class ProjectItem(BaseItem):
    type: ClassVar[str] = ItemType.PROJECT.value
    kind: ClassVar[str] = "project"

    children: Optional[List[str]] = None
    progress: Optional[float] = None
    target_date: Optional[str] = None
    estimate_minutes: Optional[int] = None


OpenTimeItem = Union[GoalItem, TaskItem, HabitItem, ReminderItem, EventItem, AppointmentItem, ProjectItem]

ITEM_CLASSES: Dict[str, Type[BaseItem]] = {
    cls.type: cls
    for cls in (GoalItem, TaskItem, HabitItem, ReminderItem, EventItem, AppointmentItem, ProjectItem)
}


def item_class_for(item_type: str) -> Type[BaseItem]:
    """Return the item class for a type tag (case-insensitive)."""
    cls = ITEM_CLASSES.get(str(item_type or "").strip().lower())
    if cls is None:
        raise UnknownItemTypeError(f"Unknown item type: {item_type!r}")
    return cls


def is_item(obj: Any) -> bool:
    return isinstance(obj, BaseItem) and obj.type in ITEM_CLASSES


def variant_fields(item: BaseItem) -> List[str]:
    """Variant-specific field names of an item, in declaration order."""
    return [f.name for f in fields(item) if f.name not in COMMON_FIELDS]


@dataclass
class OpenTimeDocument:
    """Versioned container of items plus export metadata."""

    opentime_version: str = OPENTIME_VERSION
    default_timezone: Optional[str] = None
    generated_by: Optional[str] = None
    created_at: Optional[str] = None   # ISO8601
    items: List[BaseItem] = field(default_factory=list)
