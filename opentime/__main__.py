"""OpenTime Export CLI

Scans a notes vault for checkbox tasks, time blocks and frontmatter items and
exports them into the companion app's watched folder as OpenTime files.

Examples:
  python -m opentime export --vault ~/Notes
  python -m opentime export-file ~/Notes/Daily/2025-01-15.md --vault ~/Notes
  python -m opentime create task --title "Call doctor" --due 2025-01-20
  python -m opentime list --search doctor
  python -m opentime link --item obs_task_call-doctor_m5x1 --note Daily/2025-01-15.md
"""
from __future__ import annotations

import argparse
import os
import sys
from typing import Optional, Sequence

from core.cli_errors import ConfigError, ExitCode, NotFoundError, UsageError
from core.cli_framework import CLIApp
from core.cli_output import OutputFormat
from core.pipeline import run_pipeline

from .builder import ItemDraft, build_item
from .constants import PACKAGE_VERSION
from .errors import ItemValidationError, SettingsError, UnknownItemTypeError
from .exporter import FolderExporter
from .markdown import item_to_markdown
from .model import ItemType, LinkBehavior
from .pipeline import ExportProcessor, ExportProducer, ExportRequest, ExportRequestConsumer, resolve_folder
from .preferences import export_mode_description, is_installed, read_preferences
from .reader import NoteLink, find_item, link_item_to_note, read_all_items, search_items
from .serializer import dump_document
from .settings import ExportSettings, default_settings_path, load_settings, save_settings


app = CLIApp(
    "opentime",
    "Export note-vault tasks, time blocks and frontmatter items to OpenTime files.",
    version=PACKAGE_VERSION,
    add_common_args=True,
)


def _settings(args: argparse.Namespace) -> ExportSettings:
    try:
        return load_settings(getattr(args, "config", None))
    except SettingsError as exc:
        raise ConfigError(str(exc), hint=f"Fix or regenerate it with: opentime config-init --path {default_settings_path()}") from exc


def _folder(args: argparse.Namespace, settings: ExportSettings) -> str:
    return resolve_folder(getattr(args, "folder", None), settings)


@app.command("export", help="Scan the vault and export every item found")
@app.argument("--vault", default=".", help="Vault root folder (default: current directory)")
@app.argument("--folder", help="Companion folder (default: settings, then the app's custom path)")
def cmd_export(args: argparse.Namespace) -> int:
    settings = _settings(args)
    request = ExportRequest(
        vault_root=os.path.expanduser(args.vault),
        folder=_folder(args, settings),
        settings=settings,
    )
    return run_pipeline(
        ExportRequestConsumer(request).consume(),
        ExportProcessor(FolderExporter()),
        ExportProducer(verbose=bool(args.verbose)),
    )


@app.command("export-file", help="Export the items found in one note")
@app.argument("file", help="Path to the note")
@app.argument("--vault", help="Vault root (default: the note's folder)")
@app.argument("--folder", help="Companion folder (default: settings, then the app's custom path)")
def cmd_export_file(args: argparse.Namespace) -> int:
    settings = _settings(args)
    note = os.path.abspath(os.path.expanduser(args.file))
    vault = os.path.abspath(os.path.expanduser(args.vault)) if args.vault else os.path.dirname(note)
    rel = os.path.relpath(note, vault).replace(os.sep, "/")
    if rel.startswith("../"):
        raise UsageError(f"{args.file} is not inside the vault {vault}")
    request = ExportRequest(vault_root=vault, folder=_folder(args, settings), settings=settings, files=[rel])
    return run_pipeline(
        ExportRequestConsumer(request).consume(),
        ExportProcessor(FolderExporter()),
        ExportProducer(verbose=bool(args.verbose)),
    )


@app.command("create", help="Create one item, export it, and print its markdown")
@app.argument("type", choices=[t.value for t in ItemType], help="Item type")
@app.argument("--title", required=True, help="Item title")
@app.argument("--tags", default="", help="Comma-separated tags")
@app.argument("--notes", default="", help="Free-text notes")
@app.argument("--target-date", default="", help="Goal/project target date (YYYY-MM-DD)")
@app.argument("--due", default="", help="Task due date (YYYY-MM-DD)")
@app.argument("--scheduled", default="", help="Task scheduled date (YYYY-MM-DD)")
@app.argument("--priority", type=int, default=0, help="Task priority 1-9 (0 = none)")
@app.argument("--frequency", default="daily", choices=["daily", "weekly", "custom"], help="Habit frequency")
@app.argument("--window-start", default="", help="Habit window start (HH:MM)")
@app.argument("--window-end", default="", help="Habit window end (HH:MM)")
@app.argument("--date", default="", help="Reminder date (YYYY-MM-DD)")
@app.argument("--time", default="", help="Reminder time (HH:MM)")
@app.argument("--start-date", default="", help="Event/appointment start date (YYYY-MM-DD)")
@app.argument("--start-time", default="", help="Event/appointment start time (HH:MM)")
@app.argument("--end-date", default="", help="Event/appointment end date (default: start date)")
@app.argument("--end-time", default="", help="Event/appointment end time (default: start time)")
@app.argument("--location", default="", help="Event/appointment location")
@app.argument("--attendees", default="", help="Comma-separated appointment attendees")
@app.argument("--source", default="", help="Vault-relative note the item belongs to")
@app.argument("--vault", default=".", help="Vault root used with --insert (default: current directory)")
@app.argument("--insert", action="store_true", help="Append the markdown line to the --source note")
@app.argument("--folder", help="Companion folder (default: settings, then the app's custom path)")
@app.argument("--dry-run", action="store_true", help="Print the OpenTime document instead of writing it")
def cmd_create(args: argparse.Namespace) -> int:
    out = args._output
    settings = _settings(args)
    draft = ItemDraft(
        title=args.title,
        tags=args.tags,
        notes=args.notes,
        target_date=args.target_date,
        due_date=args.due,
        scheduled_date=args.scheduled,
        priority=args.priority,
        habit_frequency=args.frequency,
        window_start=args.window_start,
        window_end=args.window_end,
        reminder_date=args.date,
        reminder_time=args.time,
        start_date=args.start_date,
        start_time=args.start_time,
        end_date=args.end_date,
        end_time=args.end_time,
        location=args.location,
        attendees=args.attendees,
        source_file=args.source,
    )
    note = os.path.join(os.path.expanduser(args.vault), args.source) if args.source else ""
    if args.insert:
        if not args.source:
            raise UsageError("--insert needs --source")
        if not os.path.isfile(note):
            raise NotFoundError(f"Note not found: {args.source}")
    try:
        item = build_item(args.type, draft, settings)
    except (ItemValidationError, UnknownItemTypeError) as exc:
        raise UsageError(str(exc)) from exc

    exporter = FolderExporter()
    if args.dry_run:
        out.print(dump_document(exporter.new_document([item], settings.default_timezone)), end="")
    else:
        folder = _folder(args, settings)
        if not folder:
            raise ConfigError("Companion folder not configured", hint="Pass --folder or set folder_path in settings")
        if not exporter.export_item(item, folder, settings.default_timezone):
            out.print_error(f"Failed to export {item.id}")
            return ExitCode.ERROR
        out.print_verbose(f"Exported {item.type} {item.id} to {folder}")

    markdown = item_to_markdown(item)
    if args.insert:
        with open(note, "a", encoding="utf-8") as fh:
            fh.write(markdown + "\n")
    out.print(markdown)
    return ExitCode.SUCCESS


@app.command("list", help="List items already in the companion folder")
@app.argument("--folder", help="Companion folder (default: settings, then the app's custom path)")
@app.argument("--search", default="", help="Filter by title, type or id (case-insensitive)")
def cmd_list(args: argparse.Namespace) -> int:
    out = args._output
    settings = _settings(args)
    folder = _folder(args, settings)
    if not folder:
        raise ConfigError("Companion folder not configured", hint="Pass --folder or set folder_path in settings")
    items = search_items(read_all_items(folder), args.search)
    if out.config.format == OutputFormat.TEXT:
        if not items:
            out.print("No items found")
        for s in items:
            out.print(f"{s.type:<12} {s.id}  {s.title}  ({s.filename})")
        return ExitCode.SUCCESS
    out.print_data(items, headers=["type", "id", "title", "filename"])
    return ExitCode.SUCCESS


@app.command("link", help="Link an existing companion item to a note")
@app.argument("--item", required=True, help="Item id")
@app.argument("--note", required=True, help="Vault-relative note path")
@app.argument("--behavior", choices=[b.value for b in LinkBehavior], default=LinkBehavior.ALONGSIDE.value,
              help="How the app shows the note (default: alongside)")
@app.argument("--folder", help="Companion folder (default: settings, then the app's custom path)")
def cmd_link(args: argparse.Namespace) -> int:
    out = args._output
    settings = _settings(args)
    folder = _folder(args, settings)
    if not folder:
        raise ConfigError("Companion folder not configured", hint="Pass --folder or set folder_path in settings")
    summary = find_item(read_all_items(folder), args.item)
    if summary is None:
        raise NotFoundError(f"Item not found: {args.item}", hint="Run 'opentime list' to see available ids")
    note = args.note.replace("\\", "/")
    link = NoteLink(
        source_file=note,
        folder_path=os.path.dirname(note),
        vault_name=settings.default_vault_name,
        behavior=args.behavior,
    )
    if not link_item_to_note(summary.filepath, summary.id, link):
        out.print_error(f"Failed to link {summary.id}")
        return ExitCode.ERROR
    out.print(f"Linked \"{summary.title}\" to {note}")
    return ExitCode.SUCCESS


@app.command("prefs", help="Show the companion app's export preferences")
def cmd_prefs(args: argparse.Namespace) -> int:
    out = args._output
    prefs = read_preferences()
    out.print_dict({
        "installed": is_installed(),
        "export_mode": prefs.export_mode,
        "description": export_mode_description(prefs),
        "single_filename": prefs.single_filename,
        "folder_path": prefs.folder_path or "",
    })
    return ExitCode.SUCCESS


@app.command("config-init", help="Write a settings file with default values")
@app.argument("--path", help="Target path (default: the standard settings location)")
@app.argument("--folder", default="", help="Companion folder to store in the file")
@app.argument("--force", action="store_true", help="Overwrite an existing file")
def cmd_config_init(args: argparse.Namespace) -> int:
    out = args._output
    target = os.path.expanduser(args.path) if args.path else default_settings_path()
    if os.path.exists(target) and not args.force:
        raise UsageError(f"{target} already exists", hint="Pass --force to overwrite")
    written = save_settings(ExportSettings(folder_path=os.path.expanduser(args.folder)), target)
    out.print(f"Wrote settings to {written}")
    return ExitCode.SUCCESS


def main(argv: Optional[Sequence[str]] = None) -> int:
    return app.run(argv)


if __name__ == "__main__":
    sys.exit(main())
