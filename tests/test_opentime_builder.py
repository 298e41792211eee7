"""Tests for building items from form-style drafts."""
from __future__ import annotations

import unittest

from opentime.builder import ItemDraft, build_item, split_csv
from opentime.errors import ItemValidationError, UnknownItemTypeError
from opentime.model import AppointmentItem, EventItem, GoalItem, HabitItem, ProjectItem, ReminderItem, TaskItem
from opentime.settings import ExportSettings


class TestValidation(unittest.TestCase):
    def test_unknown_type(self):
        with self.assertRaises(UnknownItemTypeError):
            build_item("meeting", ItemDraft(title="X"))

    def test_title_required(self):
        with self.assertRaises(ItemValidationError) as ctx:
            build_item("task", ItemDraft(title="   "))
        self.assertEqual(str(ctx.exception), "Please enter a title")

    def test_reminder_needs_date_and_time(self):
        with self.assertRaises(ItemValidationError):
            build_item("reminder", ItemDraft(title="Pills", reminder_date="2025-01-15"))

    def test_event_needs_start(self):
        for kind in ("event", "appointment"):
            with self.assertRaises(ItemValidationError):
                build_item(kind, ItemDraft(title="Sync", start_date="2025-01-15"))

    def test_split_csv(self):
        self.assertEqual(split_csv(" a, ,b ,"), ["a", "b"])
        self.assertEqual(split_csv(""), [])


class TestBuildItem(unittest.TestCase):
    """Each type gets its defaults and note link."""

    def setUp(self):
        self.settings = ExportSettings(default_vault_name="Notes", default_timezone="UTC", id_prefix="obs")

    def test_task(self):
        draft = ItemDraft(title=" Call doctor ", tags="health, calls", due_date="2025-01-20",
                          scheduled_date="2025-01-18", priority=9, source_file="Daily/2025-01-15.md")
        item = build_item("task", draft, self.settings)
        self.assertIsInstance(item, TaskItem)
        self.assertEqual(item.title, "Call doctor")
        self.assertTrue(item.id.startswith("obs_task_call-doctor_"))
        self.assertEqual(item.status, "todo")
        self.assertEqual(item.tags, ["health", "calls"])
        self.assertEqual(item.due, "2025-01-20")
        self.assertEqual(item.scheduled_start, "2025-01-18T09:00:00")
        self.assertEqual(item.priority, 9)
        self.assertEqual(item.x_obsidian.source_file, "Daily/2025-01-15.md")
        self.assertEqual(item.x_obsidian.vault_name, "Notes")
        self.assertTrue(item.x_elysium.obsidian_enabled)
        self.assertEqual(item.x_elysium.obsidian_folder_path, "Daily")
        self.assertEqual(item.x_elysium.obsidian_behavior, "replace")

    def test_task_without_optional_fields(self):
        item = build_item("task", ItemDraft(title="Plain"), self.settings)
        self.assertIsNone(item.priority)
        self.assertIsNone(item.tags)
        self.assertIsNone(item.notes)
        self.assertEqual(item.x_obsidian.source_file, "unknown")
        self.assertIsNone(item.x_elysium.obsidian_folder_path)

    def test_goal_and_project(self):
        goal = build_item("goal", ItemDraft(title="Save", target_date="2025-12-31"), self.settings)
        self.assertIsInstance(goal, GoalItem)
        self.assertEqual((goal.target_date, goal.progress), ("2025-12-31", 0.0))
        project = build_item("project", ItemDraft(title="House"), self.settings)
        self.assertIsInstance(project, ProjectItem)
        self.assertEqual(project.children, [])
        self.assertEqual(project.progress, 0.0)

    def test_habit(self):
        item = build_item("habit", ItemDraft(title="Stretch", habit_frequency="weekly", window_start="07:00"),
                          self.settings)
        self.assertIsInstance(item, HabitItem)
        self.assertEqual(item.pattern.freq, "weekly")
        self.assertEqual(item.window.start_time, "07:00")
        self.assertIsNone(item.window.end_time)
        self.assertEqual((item.streak.current, item.streak.longest), (0, 0))

    def test_habit_without_window(self):
        self.assertIsNone(build_item("habit", ItemDraft(title="Read"), self.settings).window)

    def test_reminder(self):
        item = build_item("reminder", ItemDraft(title="Pills", reminder_date="2025-01-15", reminder_time="14:30"),
                          self.settings)
        self.assertIsInstance(item, ReminderItem)
        self.assertEqual(item.time, "2025-01-15T14:30:00")

    def test_event_end_defaults_to_start(self):
        item = build_item("event", ItemDraft(title="Sync", start_date="2025-01-15", start_time="10:00",
                                             location="Room 4"), self.settings)
        self.assertIsInstance(item, EventItem)
        self.assertEqual(item.start, "2025-01-15T10:00:00")
        self.assertEqual(item.end, "2025-01-15T10:00:00")
        self.assertEqual(item.timezone, "UTC")
        self.assertEqual(item.location, "Room 4")

    def test_appointment_attendees(self):
        item = build_item("APPOINTMENT", ItemDraft(title="Dentist", start_date="2025-01-16", start_time="08:00",
                                                   end_time="08:30", attendees="Dr. Smith, Me"), self.settings)
        self.assertIsInstance(item, AppointmentItem)
        self.assertEqual(item.end, "2025-01-16T08:30:00")
        self.assertEqual(item.attendees, ["Dr. Smith", "Me"])

    def test_alongside_behavior_from_settings(self):
        settings = ExportSettings(default_behavior="alongside")
        item = build_item("goal", ItemDraft(title="G", source_file="Goals/G.md"), settings)
        self.assertEqual(item.x_elysium.obsidian_behavior, "alongside")
        self.assertIsNone(item.x_elysium.obsidian_vault_name)


if __name__ == "__main__":
    unittest.main()
