"""Shared YAML read/write helpers."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

__all__ = ["load_config", "dump_config", "load_text"]


def load_config(path: Optional[str]) -> Dict[str, Any]:
    """Load a YAML file into a dict; returns {} if missing/empty."""
    if not path:
        return {}
    p = Path(path)
    if not p.exists():
        return {}
    text = p.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    data = yaml.safe_load(text)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Top-level YAML must be a mapping: {p}")
    return data


def dump_config(path: str, data: Dict[str, Any]) -> None:
    """Write a dict to YAML with stable ordering for humans."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(
        yaml.safe_dump(data, sort_keys=False, allow_unicode=True), encoding="utf-8"
    )


def load_text(text: str, *, typed: bool = True) -> Any:
    """Parse YAML text.

    With typed=False every scalar is returned as a string (BaseLoader), so
    values such as ``2025-01-15`` or ``yes`` survive unchanged.
    """
    if typed:
        return yaml.safe_load(text)
    return yaml.load(text, Loader=yaml.BaseLoader)  # noqa: S506 - BaseLoader builds plain str/list/dict only
