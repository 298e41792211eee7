"""Identifier generation for new items."""
from __future__ import annotations

import re
import time
from typing import Optional

from .constants import ID_SLUG_MAX

_RE_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_DIGITS36 = "0123456789abcdefghijklmnopqrstuvwxyz"

_last_ms = 0


def base36(value: int) -> str:
    if value < 0:
        raise ValueError("base36 requires a non-negative integer")
    if value == 0:
        return "0"
    out = []
    while value:
        value, rem = divmod(value, 36)
        out.append(_DIGITS36[rem])
    return "".join(reversed(out))


def slugify(title: str, max_len: int = ID_SLUG_MAX) -> str:
    """Lower-case, hyphenate non-alphanumeric runs, trim, and truncate."""
    slug = _RE_NON_ALNUM.sub("-", (title or "").lower())
    if slug.startswith("-"):
        slug = slug[1:]
    if slug.endswith("-"):
        slug = slug[:-1]
    return slug[:max_len]


def _next_ms() -> int:
    # Never hand out the same millisecond twice within a process
    global _last_ms
    now = int(time.time() * 1000)
    _last_ms = max(now, _last_ms + 1)
    return _last_ms


def generate_id(prefix: str, title: str, now_ms: Optional[int] = None) -> str:
    """Return ``{prefix}_{slug}_{base36 ms}`` for a new item.

    Pass ``now_ms`` for a deterministic suffix; otherwise the suffix is the
    current time in milliseconds, bumped so it increases on every call.
    """
    stamp = _next_ms() if now_ms is None else int(now_ms)
    return f"{prefix}_{slugify(title)}_{base36(stamp)}"
