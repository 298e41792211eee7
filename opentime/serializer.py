"""Canonical text emitter for OpenTime documents.

The output is a small, fixed subset of YAML that the companion app watches
for: a comment header, double-quoted header values, and one block per item
in a stable field order (type, id, title, variant fields, common fields,
extensions, then any unknown keys carried over from disk).
"""
from __future__ import annotations

import re
from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any, Dict, List, Set

from .constants import HEADER_COMMENT, OPENTIME_VERSION
from .model import (
    FLOAT_FIELDS,
    BaseItem,
    OpenTimeDocument,
    RepeatsSettings,
    variant_fields,
)

ITEM_INDENT = "    "
STEP = "  "

_RE_NEEDS_QUOTES = re.compile(r"""[:#\[\]{}|>&*?!,'"%@`]|^\s|\s$|^-\s|^$""")

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\x85": "\\N",
    "\u2028": "\\L",
    "\u2029": "\\P",
}

_TRAILING_COMMON = ("tags", "categories", "notes", "steps", "links", "x_obsidian", "x_elysium")


def _needs_escape(ch: str) -> bool:
    if ch in _ESCAPES:
        return True
    code = ord(ch)
    return code < 0x20 or code == 0x7F or 0x80 <= code < 0xA0 or 0xD800 <= code <= 0xDFFF or ch in "\ufeff\ufffe\uffff"


def _escape_char(ch: str) -> str:
    if ch in _ESCAPES:
        return _ESCAPES[ch]
    code = ord(ch)
    return f"\\x{code:02x}" if code < 0x100 else f"\\u{code:04x}"


def double_quote(value: str) -> str:
    """Wrap in double quotes, escaping anything YAML would not read back verbatim."""
    return '"' + "".join(_escape_char(ch) if _needs_escape(ch) else ch for ch in value) + '"'


def quote(value: Any) -> str:
    """Emit a string bare when it is safe to, double-quoted otherwise."""
    text = value.value if isinstance(value, Enum) else str(value)
    if text == "-" or _RE_NEEDS_QUOTES.search(text) or any(_needs_escape(ch) for ch in text):
        return double_quote(text)
    return text


def scalar(value: Any) -> str:
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    return quote(value)


def flow_list(values: List[Any]) -> str:
    return "[" + ", ".join(scalar(v) for v in values) + "]"


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float, bool, Enum))


def _as_mapping(value: Any) -> Dict[str, Any]:
    if isinstance(value, RepeatsSettings):
        return value.relevant()
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: getattr(value, f.name) for f in fields(value)}
    return dict(value)


def literal_block_ok(text: str) -> bool:
    """True when ``text`` survives a ``|`` / ``|-`` block unchanged."""
    if "\n" not in text or "\r" in text:
        return False
    if text.endswith("\n\n"):
        return False
    if any(_needs_escape(ch) for ch in text if ch not in "\n\t"):
        return False
    lines = text[:-1].split("\n") if text.endswith("\n") else text.split("\n")
    content = [line for line in lines if line]
    if not content:
        return False
    if any(not line.strip() for line in content):
        return False
    return not content[0][0].isspace()


def _emit_notes(lines: List[str], indent: str, text: str) -> None:
    if not literal_block_ok(text):
        lines.append(f"{indent}notes: {quote(text)}")
        return
    if text.endswith("\n"):
        lines.append(f"{indent}notes: |")
        body = text[:-1]
    else:
        lines.append(f"{indent}notes: |-")
        body = text
    for line in body.split("\n"):
        lines.append(f"{indent}{STEP}{line}" if line else "")


def emit_field(lines: List[str], indent: str, key: str, value: Any) -> None:
    """Append ``key: value`` (nested as needed) at the given indent."""
    if value is None:
        return
    name = quote(key)
    if _is_scalar(value):
        if key in FLOAT_FIELDS and isinstance(value, (int, float)) and not isinstance(value, bool):
            value = float(value)
        lines.append(f"{indent}{name}: {scalar(value)}")
    elif isinstance(value, (list, tuple)):
        if all(_is_scalar(v) for v in value):
            lines.append(f"{indent}{name}: {flow_list(list(value))}")
        else:
            lines.append(f"{indent}{name}:")
            for entry in value:
                _emit_entry(lines, indent + STEP, entry)
    else:
        mapping = _as_mapping(value)
        if not any(v is not None for v in mapping.values()):
            lines.append(f"{indent}{name}: {{}}")
            return
        lines.append(f"{indent}{name}:")
        for k, v in mapping.items():
            emit_field(lines, indent + STEP, k, v)


def _emit_entry(lines: List[str], indent: str, entry: Any) -> None:
    """Append one block-sequence entry (``- ...``)."""
    if entry is None:
        lines.append(f"{indent}- \"\"")
        return
    if _is_scalar(entry):
        lines.append(f"{indent}- {scalar(entry)}")
        return
    nested: List[str] = []
    inner = indent + STEP
    if isinstance(entry, (list, tuple)):
        if all(_is_scalar(v) for v in entry):
            lines.append(f"{indent}- {flow_list(list(entry))}")
            return
        for sub in entry:
            _emit_entry(nested, inner, sub)
    else:
        for k, v in _as_mapping(entry).items():
            emit_field(nested, inner, k, v)
    if not nested:
        lines.append(f"{indent}- {{}}")
        return
    nested[0] = f"{indent}- " + nested[0][len(inner):]
    lines.extend(nested)


def serialize_item(item: BaseItem) -> List[str]:
    """Render one item as lines, ending with a blank separator line."""
    indent = ITEM_INDENT
    lines = [
        f"  - type: {item.type}",
        f"{indent}id: {quote(item.id)}",
        f"{indent}title: {quote(item.title)}",
    ]
    emitted: Set[str] = {"type", "id", "title"}
    kind = getattr(item, "kind", None)
    if kind:
        lines.append(f"{indent}kind: {kind}")
        emitted.add("kind")

    for name in variant_fields(item):
        value = getattr(item, name)
        if name == "attendees":
            value = list(value or [])
        elif isinstance(value, (list, tuple)) and not value:
            continue
        emit_field(lines, indent, name, value)
        if value is not None:
            emitted.add(name)

    for name in _TRAILING_COMMON:
        value = getattr(item, name)
        if value is None or (isinstance(value, (list, tuple)) and not value):
            continue
        if name == "notes":
            _emit_notes(lines, indent, str(value))
        else:
            emit_field(lines, indent, name, value)
        emitted.add(name)

    for key, value in item.extras.items():
        if key in emitted:
            continue
        emit_field(lines, indent, key, value)

    lines.append("")
    return lines


def dump_document(doc: OpenTimeDocument) -> str:
    """Render a document to the canonical OpenTime text form."""
    lines: List[str] = list(HEADER_COMMENT)
    lines.append("")
    lines.append(f"opentime_version: {double_quote(doc.opentime_version or OPENTIME_VERSION)}")
    if doc.default_timezone:
        lines.append(f"default_timezone: {double_quote(doc.default_timezone)}")
    if doc.generated_by:
        lines.append(f"generated_by: {double_quote(doc.generated_by)}")
    if doc.created_at:
        lines.append(f"created_at: {double_quote(doc.created_at)}")
    lines.append("")
    if not doc.items:
        lines.append("items: []")
        lines.append("")
        return "\n".join(lines)
    lines.append("items:")
    for item in doc.items:
        lines.extend(serialize_item(item))
    return "\n".join(lines)
