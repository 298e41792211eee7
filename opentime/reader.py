"""Read items already present in the companion folder and link them to notes."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .constants import OT_EXTENSION
from .decoder import read_document_file
from .errors import DocumentDecodeError
from .exporter import write_atomic
from .model import ElysiumExtension, LinkBehavior, OpenTimeDocument
from .serializer import dump_document

LOG = logging.getLogger(__name__)


@dataclass
class ItemSummary:
    id: str
    title: str
    type: str
    filename: str
    filepath: str


@dataclass
class NoteLink:
    """Where an item should point in the vault."""

    source_file: str
    folder_path: str = ""
    vault_name: str = ""
    behavior: str = LinkBehavior.REPLACE.value

    def to_extension(self) -> ElysiumExtension:
        return ElysiumExtension(
            obsidian_enabled=True,
            obsidian_vault_name=self.vault_name or None,
            obsidian_folder_path=self.folder_path or None,
            obsidian_source_file=self.source_file or None,
            obsidian_behavior=self.behavior or None,
        )


def read_document(path: str) -> Optional[OpenTimeDocument]:
    """Decode one .ot file; None when it is missing or unreadable."""
    if not os.path.exists(path):
        return None
    try:
        return read_document_file(path)
    except (OSError, UnicodeDecodeError, DocumentDecodeError) as exc:
        LOG.error("Failed to read %s: %s", path, exc)
        return None


def read_all_items(folder: str) -> List[ItemSummary]:
    """Summaries of every item in the folder's .ot files, files in name order."""
    if not folder:
        return []
    if not os.path.isdir(folder):
        LOG.info("Companion folder does not exist: %s", folder)
        return []
    summaries: List[ItemSummary] = []
    for filename in sorted(os.listdir(folder)):
        if not filename.endswith(OT_EXTENSION):
            continue
        filepath = os.path.join(folder, filename)
        try:
            doc = read_document_file(filepath)
        except (OSError, UnicodeDecodeError, DocumentDecodeError) as exc:
            LOG.warning("Failed to parse %s: %s", filename, exc)
            continue
        for item in doc.items:
            summaries.append(ItemSummary(
                id=item.id,
                title=item.title,
                type=item.type,
                filename=filename,
                filepath=filepath,
            ))
    return summaries


def find_item(items: Iterable[ItemSummary], item_id: str) -> Optional[ItemSummary]:
    for summary in items:
        if summary.id == item_id:
            return summary
    return None


def search_items(items: Iterable[ItemSummary], query: str) -> List[ItemSummary]:
    """Case-insensitive substring match on title, type, or id."""
    needle = (query or "").strip().lower()
    if not needle:
        return list(items)
    return [
        s for s in items
        if needle in s.title.lower() or needle in s.type.lower() or needle in s.id.lower()
    ]


def link_item_to_note(path: str, item_id: str, link: NoteLink) -> bool:
    """Set ``x_elysium`` on one item and rewrite its file.

    Returns False when the file cannot be read or holds no such item.
    """
    doc = read_document(path)
    if doc is None:
        return False
    for item in doc.items:
        if item.id == item_id:
            item.x_elysium = link.to_extension()
            item.extras.pop("x_elysium", None)
            break
    else:
        LOG.warning("Item %s not found in %s", item_id, path)
        return False
    try:
        write_atomic(path, dump_document(doc))
    except OSError as exc:
        LOG.error("Failed to link item %s in %s: %s", item_id, path, exc)
        return False
    return True
