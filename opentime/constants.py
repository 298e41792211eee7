"""Constants for OpenTime export.

Format version, source-syntax patterns, and companion app defaults.
"""
from __future__ import annotations

import re

PACKAGE_VERSION = "1.0.0"
OPENTIME_VERSION = "0.2"
OT_EXTENSION = ".ot"
HEADER_COMMENT = ("# OpenTime File", "# Generated by OpenTime Export")
GENERATOR_NAME = "OpenTime Export"

# -----------------------------------------------------------------------------
# Parser defaults
# -----------------------------------------------------------------------------

DEFAULT_ID_PREFIX = "obs"
DEFAULT_TIMEZONE = "UTC"
DEFAULT_EVENT_DURATION = 30  # minutes
DEFAULT_SCHEDULED_TIME = "09:00:00"
DEFAULT_EVENT_START = "09:00"
DEFAULT_EVENT_END = "10:00"
ID_SLUG_MAX = 40

# -----------------------------------------------------------------------------
# Checkbox tasks (Tasks plugin emoji syntax)
# -----------------------------------------------------------------------------

EMOJI_DUE = "\U0001f4c5"        # calendar
EMOJI_SCHEDULED = "⏳"      # hourglass
EMOJI_START = "\U0001f6eb"      # airplane departure
EMOJI_DONE = "✅"           # check mark
EMOJI_CREATED = "➕"        # plus
EMOJI_RECURRING = "\U0001f501"  # repeat
EMOJI_REMINDER = "⏰"       # alarm clock
EMOJI_ATTENDEES = "\U0001f465"  # people

RE_TASK_LINE = re.compile(r"^(\s*)-\s*\[([ xX])\]\s*(.+)$")
RE_DUE = re.compile(EMOJI_DUE + r"\s*(\d{4}-\d{2}-\d{2})")
RE_SCHEDULED = re.compile(EMOJI_SCHEDULED + r"\s*(\d{4}-\d{2}-\d{2})")
RE_START = re.compile(EMOJI_START + r"\s*(\d{4}-\d{2}-\d{2})")
RE_DONE = re.compile(EMOJI_DONE + r"\s*(\d{4}-\d{2}-\d{2})")
RE_CREATED = re.compile(EMOJI_CREATED + r"\s*(\d{4}-\d{2}-\d{2})")
RE_RECURRING = re.compile(EMOJI_RECURRING + r"\s*(\S+)")
RE_HASHTAG = re.compile(r"#([a-zA-Z0-9_-]+)")

# Checked in order; the first class that matches wins
PRIORITY_PATTERNS = (
    (9, re.compile("[⏫\U0001f53a]️?")),  # high: double up arrow, red triangle
    (5, re.compile("\U0001f53c️?")),          # medium: up triangle
    (1, re.compile("[\U0001f53d⏬]️?")),  # low: down triangle, double down arrow
)

# -----------------------------------------------------------------------------
# Time blocks (Day Planner syntax)
# -----------------------------------------------------------------------------

RE_TIME_RANGE = re.compile(r"^(\s*)-?\s*(\d{1,2}:\d{2})\s*-\s*(\d{1,2}:\d{2})\s+(.+)$")
RE_SINGLE_TIME = re.compile(r"^(\s*)-?\s*(\d{1,2}:\d{2})\s+(.+)$")
RE_ISO_DATE = re.compile(r"(\d{4}-\d{2}-\d{2})")

# -----------------------------------------------------------------------------
# Frontmatter
# -----------------------------------------------------------------------------

RE_FRONTMATTER = re.compile(r"^---\n(.*?)\n---", re.S)
RE_FRONTMATTER_DATE = re.compile(r"^---\n.*?date:\s*(\d{4}-\d{2}-\d{2}).*?\n---", re.S)

STATUS_SYNONYMS = {
    "todo": "todo",
    "in_progress": "in_progress",
    "in-progress": "in_progress",
    "inprogress": "in_progress",
    "done": "done",
    "complete": "done",
    "completed": "done",
    "cancelled": "cancelled",
    "canceled": "cancelled",
}

# -----------------------------------------------------------------------------
# Companion app (Elysium)
# -----------------------------------------------------------------------------

COMPANION_DOMAIN = "gingabox.Elysium"
PREF_EXPORT_MODE = "opentime.exportMode"
PREF_FILENAME = "opentime.filename"
PREF_CUSTOM_PATH = "opentime.customPath"
PER_ITEM_MODE_VALUE = "Per Item"
DEFAULT_SINGLE_FILENAME = "elysium-schedule"
FILE_NAMESPACE = "elysium"
FILENAME_SLUG_MAX = 50
