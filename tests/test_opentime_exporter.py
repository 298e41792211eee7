"""Tests for the folder exporter."""
from __future__ import annotations

import datetime as dt
import os
import unittest
from unittest.mock import patch

from opentime.decoder import read_document_file
from opentime.exporter import FolderExporter, merge_items, sanitized_filename, utc_timestamp, write_atomic
from opentime.model import EventItem, GoalItem, TaskItem

from tests.fixtures import TempDirMixin, fixed_preferences, read_text, write_text

FIXED_NOW = dt.datetime(2025, 1, 15, 12, 0, 0, 123456, tzinfo=dt.timezone.utc)


def task(item_id: str, title: str, **kw) -> TaskItem:
    return TaskItem(id=item_id, title=title, **kw)


def exporter(mode: str = "single", filename: str = "elysium-schedule") -> FolderExporter:
    return FolderExporter(preferences=fixed_preferences(mode, filename), clock=lambda: FIXED_NOW)


class TestSanitizedFilename(unittest.TestCase):
    def test_special_characters_stripped(self):
        self.assertEqual(sanitized_filename("Review PR #123!", "task"), "elysium-task-review-pr-123.ot")

    def test_spaces_and_underscores(self):
        self.assertEqual(sanitized_filename("  Team_sync   notes ", "event"), "elysium-event-team-sync-notes.ot")

    def test_no_transliteration(self):
        self.assertEqual(sanitized_filename("Café Über", "goal"), "elysium-goal-caf-ber.ot")

    def test_long_titles_truncated(self):
        name = sanitized_filename("word " * 30, "task")
        slug = name[len("elysium-task-"):-len(".ot")]
        self.assertLessEqual(len(slug), 50)
        self.assertFalse(slug.endswith("-"))

    def test_empty_title(self):
        self.assertEqual(sanitized_filename("!!!", "habit"), "elysium-habit-untitled.ot")


class TestMergeItems(unittest.TestCase):
    """Union by id with new data winning."""

    def test_merge_law(self):
        prior = [task("a", "A old"), task("b", "B"), task("c", "C old")]
        fresh = [task("c", "C new"), task("d", "D"), task("a", "A new")]
        merged = merge_items(prior, fresh)
        self.assertEqual(len(merged), len(prior) + len(fresh) - 2)
        self.assertEqual([i.id for i in merged], ["a", "b", "c", "d"])
        by_id = {i.id: i for i in merged}
        self.assertEqual(by_id["a"].title, "A new")
        self.assertEqual(by_id["c"].title, "C new")
        self.assertEqual(by_id["b"].title, "B")

    def test_disjoint_and_empty(self):
        self.assertEqual(len(merge_items([], [task("x", "X")])), 1)
        self.assertEqual(len(merge_items([task("x", "X")], [])), 1)


class TestHelpers(TempDirMixin, unittest.TestCase):
    def test_utc_timestamp_format(self):
        self.assertEqual(utc_timestamp(FIXED_NOW), "2025-01-15T12:00:00.123Z")

    def test_write_atomic_replaces_and_cleans_up(self):
        path = os.path.join(self.tmpdir, "out.ot")
        write_text(path, "old")
        write_atomic(path, "new")
        self.assertEqual(read_text(path), "new")
        self.assertEqual(os.listdir(self.tmpdir), ["out.ot"])

    def test_write_atomic_failure_leaves_original(self):
        path = os.path.join(self.tmpdir, "out.ot")
        write_text(path, "old")
        with patch("opentime.exporter.os.replace", side_effect=OSError("disk full")):
            with self.assertRaises(OSError):
                write_atomic(path, "new")
        self.assertEqual(read_text(path), "old")
        self.assertEqual(os.listdir(self.tmpdir), ["out.ot"])


class TestSingleFileExport(TempDirMixin, unittest.TestCase):
    """Merging into one document."""

    def test_creates_document(self):
        report = exporter().export_items([task("t1", "Buy milk")], self.tmpdir, "UTC")
        self.assertTrue(report.ok())
        self.assertEqual(report.mode, "single")
        self.assertEqual(report.succeeded, 1)
        path = os.path.join(self.tmpdir, "elysium-schedule.ot")
        self.assertEqual(report.paths, [path])
        self.assertEqual(report.message, "Exported 1 items to elysium-schedule.ot")
        text = read_text(path)
        self.assertTrue(text.startswith("# OpenTime File\n# Generated by OpenTime Export\n"))
        self.assertIn('generated_by: "OpenTime Export 1.0.0"', text)
        self.assertIn('created_at: "2025-01-15T12:00:00.123Z"', text)

    def test_merges_with_prior_file(self):
        ex = exporter()
        ex.export_items([task("t1", "Old title"), GoalItem(id="g1", title="Keep me")], self.tmpdir, "UTC")
        ex.export_items([task("t1", "New title"), task("t2", "Second")], self.tmpdir, "UTC")
        doc = read_document_file(os.path.join(self.tmpdir, "elysium-schedule.ot"))
        self.assertEqual([i.id for i in doc.items], ["t1", "g1", "t2"])
        self.assertEqual(doc.items[0].title, "New title")

    def test_prior_foreign_keys_preserved(self):
        path = os.path.join(self.tmpdir, "elysium-schedule.ot")
        write_text(path, "items:\n  - type: task\n    id: app1\n    title: App task\n    x_color: blue\n")
        exporter().export_items([task("t1", "Mine")], self.tmpdir, "UTC")
        doc = read_document_file(path)
        self.assertEqual(doc.items[0].extras, {"x_color": "blue"})

    def test_invalid_prior_file_is_overwritten(self):
        path = os.path.join(self.tmpdir, "elysium-schedule.ot")
        write_text(path, "items: [\n  - this is: not: valid\n")
        with self.assertLogs("opentime.exporter", level="WARNING"):
            report = exporter().export_items([task("t1", "Fresh")], self.tmpdir, "UTC")
        self.assertTrue(report.ok())
        self.assertEqual([i.id for i in read_document_file(path).items], ["t1"])

    def test_binary_prior_file_is_overwritten(self):
        path = os.path.join(self.tmpdir, "elysium-schedule.ot")
        with open(path, "wb") as fh:
            fh.write(b"\xff\xfe\x00garbage")
        report = exporter().export_items([task("t1", "Fresh")], self.tmpdir, "UTC")
        self.assertTrue(report.ok())

    def test_custom_filename_and_nested_folder(self):
        folder = os.path.join(self.tmpdir, "deep", "er")
        report = exporter(filename="my-plan.ot").export_items([task("t1", "X")], folder, "UTC")
        self.assertTrue(os.path.exists(os.path.join(folder, "my-plan.ot")))
        self.assertIn("my-plan.ot", report.message)

    def test_write_failure_reported(self):
        with patch("opentime.exporter.write_atomic", side_effect=PermissionError("read-only")):
            report = exporter().export_items([task("t1", "X")], self.tmpdir, "UTC")
        self.assertFalse(report.ok())
        self.assertIn("read-only", report.message)

    def test_missing_folder_is_config_failure(self):
        report = exporter().export_items([task("t1", "X")], "", "UTC")
        self.assertEqual(report.mode, "config")
        self.assertFalse(report.ok())
        self.assertEqual(report.attempted, 1)
        self.assertEqual(report.succeeded, 0)
        self.assertIn("not configured", report.message)


class TestPerItemExport(TempDirMixin, unittest.TestCase):
    """One file per item."""

    def test_writes_one_file_each(self):
        items = [task("t1", "Review PR #123!"), EventItem(id="e1", title="Standup", start="s", end="e")]
        report = exporter("per-item").export_items(items, self.tmpdir, "UTC")
        self.assertEqual(report.mode, "per-item")
        self.assertEqual(report.succeeded, 2)
        self.assertEqual(report.message, "Exported 2 items")
        self.assertEqual(sorted(os.listdir(self.tmpdir)),
                         ["elysium-event-standup.ot", "elysium-task-review-pr-123.ot"])
        doc = read_document_file(os.path.join(self.tmpdir, "elysium-task-review-pr-123.ot"))
        self.assertEqual([i.id for i in doc.items], ["t1"])

    def test_partial_failure(self):
        ex = exporter("per-item")
        real = ex.export_document

        def flaky(doc, folder, filename):
            if doc.items[0].id == "bad":
                return False
            return real(doc, folder, filename)

        ex.export_document = flaky
        report = ex.export_items([task("ok", "Good"), task("bad", "Bad")], self.tmpdir, "UTC")
        self.assertTrue(report.ok())
        self.assertTrue(report.partial)
        self.assertEqual(report.message, "Exported 1/2 items (some failed)")
        self.assertEqual(len(report.errors), 1)

    def test_all_failed(self):
        ex = exporter("per-item")
        ex.export_document = lambda doc, folder, filename: False
        report = ex.export_items([task("t1", "X")], self.tmpdir, "UTC")
        self.assertFalse(report.ok())
        self.assertEqual(report.message, "Failed to export items")

    def test_export_item(self):
        ok = exporter().export_item(GoalItem(id="g1", title="Read 12 books"), self.tmpdir, "UTC")
        self.assertTrue(ok)
        self.assertTrue(os.path.exists(os.path.join(self.tmpdir, "elysium-goal-read-12-books.ot")))

    def test_export_document_without_folder(self):
        ex = exporter()
        self.assertFalse(ex.export_document(ex.new_document([], "UTC"), "", "x.ot"))


class TestCheckFolderAccess(TempDirMixin, unittest.TestCase):
    def test_existing_writable(self):
        self.assertTrue(FolderExporter.check_folder_access(self.tmpdir))

    def test_created_when_missing(self):
        path = os.path.join(self.tmpdir, "new", "folder")
        self.assertTrue(FolderExporter.check_folder_access(path))
        self.assertTrue(os.path.isdir(path))

    def test_file_path_rejected(self):
        path = write_text(os.path.join(self.tmpdir, "file.txt"), "x")
        self.assertFalse(FolderExporter.check_folder_access(path))

    def test_empty_path(self):
        self.assertFalse(FolderExporter.check_folder_access(""))


if __name__ == "__main__":
    unittest.main()
