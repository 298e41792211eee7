"""Decode OpenTime text back into a document.

YAML is read with PyYAML's ``BaseLoader`` so every scalar arrives as a
string; typed fields are converted here. Values that do not fit the model
are kept verbatim in the item's ``extras`` instead of being dropped.
"""
from __future__ import annotations

import logging
from dataclasses import fields
from typing import Any, Callable, Dict, List, Optional, Type

import yaml

from core.yamlio import load_text

from .constants import OPENTIME_VERSION
from .errors import DocumentDecodeError
from .model import (
    BOOL_FIELDS,
    FLOAT_FIELDS,
    INT_FIELDS,
    ITEM_CLASSES,
    STR_LIST_FIELDS,
    BaseItem,
    ElysiumExtension,
    HabitPattern,
    HabitStreak,
    HabitWindow,
    Link,
    ObsidianExtension,
    OpenTimeDocument,
    RepeatsSettings,
    Step,
)

LOG = logging.getLogger(__name__)

Converter = Callable[[Any], Any]

_TRUE = {"true", "yes", "on"}
_FALSE = {"false", "no", "off"}


def as_str(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"expected a scalar, got {type(value).__name__}")
    return value


def as_int(value: Any) -> int:
    return int(as_str(value).strip())


def as_float(value: Any) -> float:
    return float(as_str(value).strip())


def as_bool(value: Any) -> bool:
    text = as_str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"not a boolean: {value!r}")


def as_str_list(value: Any) -> List[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError("expected a list of scalars")
    return list(value)


def _record(cls: Type, converters: Dict[str, Converter]) -> Converter:
    """Converter for a nested mapping into a sub-record dataclass.

    Unknown sub-keys or missing required ones reject the whole mapping so
    the caller can keep it verbatim.
    """
    names = {f.name for f in fields(cls)}

    def convert(value: Any):
        if not isinstance(value, dict):
            raise ValueError(f"expected a mapping for {cls.__name__}")
        unknown = set(value) - names
        if unknown:
            raise ValueError(f"unknown keys for {cls.__name__}: {sorted(unknown)}")
        kwargs = {k: converters.get(k, as_str)(v) for k, v in value.items()}
        try:
            return cls(**kwargs)
        except TypeError as exc:
            raise ValueError(str(exc)) from exc

    return convert


def _records(convert_one: Converter) -> Converter:
    def convert(value: Any):
        if not isinstance(value, list):
            raise ValueError("expected a list")
        return [convert_one(v) for v in value]

    return convert


_CONVERTERS: Dict[str, Converter] = {
    "steps": _records(_record(Step, {"completed": as_bool, "order": as_int})),
    "links": _records(_record(Link, {})),
    "repeats": _record(RepeatsSettings, {
        "enabled": as_bool,
        "count": as_int,
        "weekdays": as_str_list,
        "end_count": as_int,
    }),
    "pattern": _record(HabitPattern, {"days_of_week": as_str_list}),
    "window": _record(HabitWindow, {}),
    "streak": _record(HabitStreak, {"current": as_int, "longest": as_int}),
    "x_obsidian": _record(ObsidianExtension, {"line_number": as_int}),
    "x_elysium": _record(ElysiumExtension, {"obsidian_enabled": as_bool}),
}
_CONVERTERS.update({name: as_int for name in INT_FIELDS})
_CONVERTERS.update({name: as_float for name in FLOAT_FIELDS})
_CONVERTERS.update({name: as_bool for name in BOOL_FIELDS})
_CONVERTERS.update({name: as_str_list for name in STR_LIST_FIELDS})

# Required variant fields get a blank default when a foreign file omits them
_LENIENT_DEFAULTS = {"time": "", "start": "", "end": ""}


def decode_item(raw: Dict[str, Any]) -> Optional[BaseItem]:
    """Build a typed item from one decoded mapping; None when unusable."""
    item_type = str(raw.get("type") or "").strip().lower()
    cls = ITEM_CLASSES.get(item_type)
    if cls is None:
        LOG.warning("Skipping item with unknown type %r", raw.get("type"))
        return None
    item_id = raw.get("id")
    if not isinstance(item_id, str) or not item_id:
        LOG.warning("Skipping %s item without an id", item_type)
        return None
    title = raw.get("title", "")
    if not isinstance(title, str):
        LOG.warning("Skipping item %s with a non-scalar title", item_id)
        return None

    names = {f.name for f in fields(cls)} - {"id", "title", "extras"}
    kwargs: Dict[str, Any] = {}
    extras: Dict[str, Any] = {}
    for key, value in raw.items():
        if key in ("type", "id", "title"):
            continue
        if key == "kind" and getattr(cls, "kind", None):
            continue
        if key not in names:
            extras[key] = value
            continue
        try:
            kwargs[key] = _CONVERTERS.get(key, as_str)(value)
        except ValueError as exc:
            LOG.debug("Keeping %s.%s verbatim: %s", item_id, key, exc)
            extras[key] = value

    for key, default in _LENIENT_DEFAULTS.items():
        if key in names and key not in kwargs:
            kwargs[key] = default

    return cls(id=item_id, title=title, extras=extras, **kwargs)


def _header(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    return value if isinstance(value, str) and value else None


def load_document(text: str) -> OpenTimeDocument:
    """Decode OpenTime text.

    Raises:
        DocumentDecodeError: invalid YAML, a root that is not a mapping, or
            an ``items`` value that is not a list.
    """
    try:
        data = load_text(text or "", typed=False)
    except yaml.YAMLError as exc:
        raise DocumentDecodeError(f"Invalid OpenTime document: {exc}") from exc
    if data is None:
        return OpenTimeDocument()
    if not isinstance(data, dict):
        raise DocumentDecodeError("OpenTime document root must be a mapping")

    raw_items = data.get("items")
    if raw_items in (None, ""):
        raw_items = []
    if not isinstance(raw_items, list):
        raise DocumentDecodeError("OpenTime document 'items' must be a list")

    items: List[BaseItem] = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            LOG.warning("Skipping non-mapping entry in items")
            continue
        item = decode_item(raw)
        if item is not None:
            items.append(item)

    return OpenTimeDocument(
        opentime_version=_header(data, "opentime_version") or OPENTIME_VERSION,
        default_timezone=_header(data, "default_timezone"),
        generated_by=_header(data, "generated_by"),
        created_at=_header(data, "created_at"),
        items=items,
    )


def read_document_file(path: str) -> OpenTimeDocument:
    """Read and decode an .ot file (OSError propagates)."""
    with open(path, encoding="utf-8") as fh:
        return load_document(fh.read())
