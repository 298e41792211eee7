"""Tests for the opentime command-line interface."""
from __future__ import annotations

import json
import os
import unittest
from unittest.mock import patch

from core.cli_errors import ExitCode
from opentime.__main__ import main
from opentime.decoder import read_document_file
from opentime.preferences import CompanionPreferences

from tests.fixtures import TempDirMixin, capture_output, fixed_preferences, read_text, write_text


class CLITestBase(TempDirMixin, unittest.TestCase):
    """Isolated vault, output folder and settings file per test."""

    def setUp(self):
        super().setUp()
        self.vault = os.path.join(self.tmpdir, "vault")
        self.out = os.path.join(self.tmpdir, "out")
        self.config = os.path.join(self.tmpdir, "settings.yaml")
        write_text(self.config, f"folder_path: {self.out}\ndefault_timezone: UTC\ndefault_vault_name: Notes\n")
        write_text(os.path.join(self.vault, "Daily", "2025-01-15.md"), "- [ ] Buy milk\n10:00 - 11:00 Focus\n")
        patcher = patch("opentime.exporter.read_preferences", fixed_preferences())
        patcher.start()
        self.addCleanup(patcher.stop)

    def run_cli(self, *args: str):
        with capture_output() as (out, err):
            rc = main(["--config", self.config, *args])
        return rc, out.getvalue(), err.getvalue()


class TestExportCommands(CLITestBase):
    def test_export_vault(self):
        rc, out, _err = self.run_cli("export", "--vault", self.vault)
        self.assertEqual(rc, 0)
        self.assertIn("Exported 2 items to elysium-schedule.ot", out)
        doc = read_document_file(os.path.join(self.out, "elysium-schedule.ot"))
        self.assertEqual([i.title for i in doc.items], ["Buy milk", "Focus"])

    def test_export_folder_flag_overrides_settings(self):
        other = os.path.join(self.tmpdir, "other")
        rc, _out, _err = self.run_cli("export", "--vault", self.vault, "--folder", other)
        self.assertEqual(rc, 0)
        self.assertTrue(os.path.exists(os.path.join(other, "elysium-schedule.ot")))

    def test_export_missing_vault(self):
        rc, out, _err = self.run_cli("export", "--vault", os.path.join(self.tmpdir, "nope"))
        self.assertEqual(rc, ExitCode.NOT_FOUND)
        self.assertIn("Vault not found", out)

    def test_export_file(self):
        note = os.path.join(self.vault, "Daily", "2025-01-15.md")
        rc, out, _err = self.run_cli("export-file", note, "--vault", self.vault)
        self.assertEqual(rc, 0)
        doc = read_document_file(os.path.join(self.out, "elysium-schedule.ot"))
        self.assertEqual(doc.items[0].x_obsidian.source_file, "Daily/2025-01-15.md")

    def test_export_file_outside_vault(self):
        outside = write_text(os.path.join(self.tmpdir, "loose.md"), "- [ ] x\n")
        rc, _out, err = self.run_cli("export-file", outside, "--vault", self.vault)
        self.assertEqual(rc, ExitCode.USAGE)
        self.assertIn("not inside the vault", err)

    def test_export_file_without_items(self):
        note = write_text(os.path.join(self.vault, "plain.md"), "prose only\n")
        rc, out, _err = self.run_cli("export-file", note, "--vault", self.vault)
        self.assertEqual(rc, 0)
        self.assertIn("No calendar items found in this file", out)

    def test_invalid_settings_file(self):
        write_text(self.config, "default_event_duration: forever\n")
        rc, _out, err = self.run_cli("export", "--vault", self.vault)
        self.assertEqual(rc, ExitCode.CONFIG_ERROR)
        self.assertIn("config-init", err)


class TestCreateCommand(CLITestBase):
    def test_create_task_exports_per_item(self):
        rc, out, _err = self.run_cli("create", "task", "--title", "Call doctor", "--due", "2025-01-20",
                                     "--source", "Daily/2025-01-15.md")
        self.assertEqual(rc, 0)
        self.assertEqual(out.strip(), "- [ ] Call doctor \U0001f4c5 2025-01-20")
        doc = read_document_file(os.path.join(self.out, "elysium-task-call-doctor.ot"))
        item = doc.items[0]
        self.assertTrue(item.id.startswith("obs_task_call-doctor_"))
        self.assertEqual(item.x_obsidian.vault_name, "Notes")
        self.assertEqual(item.x_elysium.obsidian_folder_path, "Daily")

    def test_create_dry_run_writes_nothing(self):
        rc, out, _err = self.run_cli("create", "reminder", "--title", "Pills", "--date", "2025-01-15",
                                     "--time", "14:30", "--dry-run")
        self.assertEqual(rc, 0)
        self.assertIn("# OpenTime File", out)
        self.assertIn("  - type: reminder", out)
        self.assertIn("- ⏰ Pills @ 2025-01-15 @ 14:30", out)
        self.assertFalse(os.path.exists(self.out))

    def test_create_validation_error(self):
        rc, _out, err = self.run_cli("create", "event", "--title", "Sync")
        self.assertEqual(rc, ExitCode.USAGE)
        self.assertIn("Please set start date and time", err)

    def test_create_insert_appends_to_note(self):
        rc, _out, _err = self.run_cli("create", "event", "--title", "Lunch", "--start-date", "2025-01-15",
                                      "--start-time", "12:00", "--end-time", "13:00",
                                      "--source", "Daily/2025-01-15.md", "--vault", self.vault, "--insert")
        self.assertEqual(rc, 0)
        text = read_text(os.path.join(self.vault, "Daily", "2025-01-15.md"))
        self.assertTrue(text.endswith("- 12:00 - 13:00 Lunch\n"))

    def test_insert_needs_existing_note(self):
        rc, _out, _err = self.run_cli("create", "goal", "--title", "G", "--insert")
        self.assertEqual(rc, ExitCode.USAGE)
        rc, _out, _err = self.run_cli("create", "goal", "--title", "G", "--source", "missing.md",
                                      "--vault", self.vault, "--insert")
        self.assertEqual(rc, ExitCode.NOT_FOUND)
        self.assertFalse(os.path.exists(self.out))


class TestListAndLink(CLITestBase):
    def setUp(self):
        super().setUp()
        self.run_cli("export", "--vault", self.vault)

    def test_list_text(self):
        rc, out, _err = self.run_cli("list")
        self.assertEqual(rc, 0)
        self.assertIn("Buy milk", out)
        self.assertIn("elysium-schedule.ot", out)

    def test_list_search_no_match(self):
        rc, out, _err = self.run_cli("list", "--search", "zzz")
        self.assertEqual(rc, 0)
        self.assertIn("No items found", out)

    def test_list_json(self):
        rc, out, _err = self.run_cli("--output", "json", "list", "--search", "focus")
        self.assertEqual(rc, 0)
        rows = json.loads(out)
        self.assertEqual([r["title"] for r in rows], ["Focus"])
        self.assertEqual(rows[0]["type"], "event")

    def test_link(self):
        item_id = read_document_file(os.path.join(self.out, "elysium-schedule.ot")).items[0].id
        rc, out, _err = self.run_cli("link", "--item", item_id, "--note", "Projects/Home.md")
        self.assertEqual(rc, 0)
        self.assertIn('Linked "Buy milk" to Projects/Home.md', out)
        item = read_document_file(os.path.join(self.out, "elysium-schedule.ot")).items[0]
        self.assertEqual(item.x_elysium.obsidian_source_file, "Projects/Home.md")
        self.assertEqual(item.x_elysium.obsidian_folder_path, "Projects")
        self.assertEqual(item.x_elysium.obsidian_behavior, "alongside")
        self.assertEqual(item.x_elysium.obsidian_vault_name, "Notes")

    def test_link_unknown_item(self):
        rc, _out, err = self.run_cli("link", "--item", "nope", "--note", "x.md")
        self.assertEqual(rc, ExitCode.NOT_FOUND)
        self.assertIn("opentime list", err)


class TestPrefsAndConfig(CLITestBase):
    def test_prefs(self):
        prefs = CompanionPreferences(export_mode="per-item", folder_path="/Users/me/Elysium")
        with patch("opentime.__main__.read_preferences", return_value=prefs), \
                patch("opentime.__main__.is_installed", return_value=True):
            rc, out, _err = self.run_cli("prefs")
        self.assertEqual(rc, 0)
        self.assertIn("installed: True", out)
        self.assertIn("export_mode: per-item", out)
        self.assertIn("folder_path: /Users/me/Elysium", out)

    def test_config_init(self):
        target = os.path.join(self.tmpdir, "new", "settings.yaml")
        rc, out, _err = self.run_cli("config-init", "--path", target, "--folder", "/tmp/ely")
        self.assertEqual(rc, 0)
        self.assertIn(target, out)
        self.assertIn("folder_path: /tmp/ely", read_text(target))
        rc, _out, _err = self.run_cli("config-init", "--path", target)
        self.assertEqual(rc, ExitCode.USAGE)
        rc, _out, _err = self.run_cli("config-init", "--path", target, "--force")
        self.assertEqual(rc, 0)


if __name__ == "__main__":
    unittest.main()
