"""Export settings stored as YAML.

Lookup order for the settings file: ``--config``, ``$OPENTIME_CONFIG``,
``$XDG_CONFIG_HOME/opentime/settings.yaml``, ``~/.config/opentime/settings.yaml``.
Keys may be snake_case or the camelCase names used by the note-app plugin's
data file; unknown and retired keys are ignored.
"""
from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, List, Optional

import yaml

from core.yamlio import dump_config, load_config

from .constants import DEFAULT_EVENT_DURATION, DEFAULT_ID_PREFIX, DEFAULT_TIMEZONE
from .errors import SettingsError
from .model import LinkBehavior

CONFIG_ENV = "OPENTIME_CONFIG"

_CAMEL_KEYS = {
    "folderPath": "folder_path",
    "elysiumFolderPath": "folder_path",
    "enableTasksParser": "enable_tasks_parser",
    "enableDayPlannerParser": "enable_day_planner_parser",
    "enableFrontmatterParser": "enable_frontmatter_parser",
    "includeFolders": "include_folders",
    "excludeFolders": "exclude_folders",
    "defaultTimezone": "default_timezone",
    "defaultEventDuration": "default_event_duration",
    "idPrefix": "id_prefix",
    "defaultVaultName": "default_vault_name",
    "defaultObsidianBehavior": "default_behavior",
}


def _default_timezone() -> str:
    return os.environ.get("TZ") or DEFAULT_TIMEZONE


def split_folders(value: Any) -> List[str]:
    """Comma-separated (or list) folder setting to a clean list."""
    if not value:
        return []
    parts = value if isinstance(value, (list, tuple)) else str(value).split(",")
    return [str(p).strip().strip("/") for p in parts if str(p).strip().strip("/")]


@dataclass
class ExportSettings:
    folder_path: str = ""
    enable_tasks_parser: bool = True
    enable_day_planner_parser: bool = True
    enable_frontmatter_parser: bool = True
    include_folders: str = ""
    exclude_folders: str = ""
    default_timezone: str = ""
    default_event_duration: int = DEFAULT_EVENT_DURATION
    id_prefix: str = DEFAULT_ID_PREFIX
    default_vault_name: str = ""
    default_behavior: str = LinkBehavior.REPLACE.value

    def __post_init__(self) -> None:
        if not self.default_timezone:
            self.default_timezone = _default_timezone()

    @property
    def include_list(self) -> List[str]:
        return split_folders(self.include_folders)

    @property
    def exclude_list(self) -> List[str]:
        return split_folders(self.exclude_folders)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExportSettings":
        """Build settings from a loose mapping, validating value types."""
        names = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in (data or {}).items():
            name = _CAMEL_KEYS.get(key, key)
            if name not in names or value is None:
                continue
            kwargs[name] = value

        for key in ("enable_tasks_parser", "enable_day_planner_parser", "enable_frontmatter_parser"):
            if key in kwargs and not isinstance(kwargs[key], bool):
                raise SettingsError(f"{key} must be true or false")
        for key in ("include_folders", "exclude_folders"):
            if isinstance(kwargs.get(key), (list, tuple)):
                kwargs[key] = ", ".join(split_folders(kwargs[key]))
        if "default_event_duration" in kwargs:
            try:
                kwargs["default_event_duration"] = int(kwargs["default_event_duration"])
            except (TypeError, ValueError):
                raise SettingsError("default_event_duration must be a whole number of minutes") from None
            if kwargs["default_event_duration"] <= 0:
                raise SettingsError("default_event_duration must be positive")
        behavior = kwargs.get("default_behavior")
        if behavior is not None and behavior not in {b.value for b in LinkBehavior}:
            raise SettingsError("default_behavior must be 'replace' or 'alongside'")
        for key in ("folder_path", "default_timezone", "id_prefix", "default_vault_name"):
            if key in kwargs:
                kwargs[key] = os.path.expanduser(str(kwargs[key])) if key == "folder_path" else str(kwargs[key])
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def default_settings_path() -> str:
    env = os.environ.get(CONFIG_ENV)
    if env:
        return os.path.expanduser(env)
    root = os.environ.get("XDG_CONFIG_HOME") or os.path.expanduser("~/.config")
    return os.path.join(os.path.expanduser(root), "opentime", "settings.yaml")


def load_settings(path: Optional[str] = None) -> ExportSettings:
    """Load settings; a missing file yields defaults."""
    target = os.path.expanduser(path) if path else default_settings_path()
    try:
        data = load_config(target)
    except (yaml.YAMLError, ValueError) as exc:
        raise SettingsError(f"Invalid settings file {target}: {exc}") from exc
    return ExportSettings.from_dict(data)


def save_settings(settings: ExportSettings, path: Optional[str] = None) -> str:
    target = os.path.expanduser(path) if path else default_settings_path()
    dump_config(target, settings.to_dict())
    return target
