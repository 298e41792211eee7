"""CLI output formatting utilities.

Text output for humans, JSON/YAML for scripts, and a simple table view used
by the listing commands.
"""
from __future__ import annotations

import json
import sys
from dataclasses import asdict, dataclass, is_dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, TextIO

import yaml


class OutputFormat(str, Enum):
    """Output format options."""
    TEXT = "text"
    JSON = "json"
    YAML = "yaml"
    TABLE = "table"


@dataclass
class OutputConfig:
    """Configuration for output formatting."""
    format: OutputFormat = OutputFormat.TEXT
    verbose: bool = False
    quiet: bool = False
    file: Optional[TextIO] = None

    @property
    def stream(self) -> TextIO:
        return self.file or sys.stdout


class OutputWriter:
    """Handles formatted output for CLI commands."""

    def __init__(self, config: Optional[OutputConfig] = None):
        self.config = config or OutputConfig()

    def print(self, *args, **kwargs) -> None:
        """Print to the configured output stream."""
        if self.config.quiet:
            return
        kwargs.setdefault("file", self.config.stream)
        print(*args, **kwargs)

    def print_error(self, message: str) -> None:
        print(f"Error: {message}", file=sys.stderr)

    def print_verbose(self, message: str) -> None:
        if self.config.verbose:
            self.print(message)

    def print_data(self, data: Any, headers: Optional[List[str]] = None) -> None:
        """Print data in the configured format.

        Args:
            data: Dict, list, dataclass, or any JSON-friendly value.
            headers: Optional column headers for table format.
        """
        fmt = self.config.format
        if fmt == OutputFormat.JSON:
            self._print_json(data)
        elif fmt == OutputFormat.YAML:
            self._print_yaml(data)
        elif fmt == OutputFormat.TABLE:
            self._print_table(data, headers)
        else:
            self._print_text(data)

    def print_dict(self, data: Dict[str, Any], *, separator: str = ": ", indent: int = 0) -> None:
        if self.config.format in (OutputFormat.JSON, OutputFormat.YAML):
            self.print_data(data)
            return
        prefix = " " * indent
        for key, value in data.items():
            self.print(f"{prefix}{key}{separator}{value}")

    def _print_json(self, data: Any) -> None:
        self.print(json.dumps(self._normalize(data), indent=2, ensure_ascii=False, default=str))

    def _print_yaml(self, data: Any) -> None:
        self.print(yaml.safe_dump(self._normalize(data), default_flow_style=False, sort_keys=False, allow_unicode=True))

    def _print_table(self, data: Any, headers: Optional[List[str]] = None) -> None:
        rows = [self._normalize(r) for r in (data if isinstance(data, (list, tuple)) else [data])]
        if not rows:
            return
        if headers is None and isinstance(rows[0], dict):
            headers = list(rows[0].keys())
        if not headers:
            for row in rows:
                self.print(str(row))
            return
        str_rows = [[str(row.get(h, "")) if isinstance(row, dict) else str(row) for h in headers] for row in rows]
        widths = [len(h) for h in headers]
        for str_row in str_rows:
            for i, val in enumerate(str_row):
                widths[i] = max(widths[i], len(val))
        header_line = " | ".join(h.ljust(widths[i]) for i, h in enumerate(headers))
        self.print(header_line)
        self.print("-" * len(header_line))
        for str_row in str_rows:
            self.print(" | ".join(val.ljust(widths[i]) for i, val in enumerate(str_row)))

    def _print_text(self, data: Any) -> None:
        if isinstance(data, str):
            self.print(data)
        elif isinstance(data, dict):
            self.print_dict(data)
        elif isinstance(data, (list, tuple)):
            for item in data:
                self.print(item)
        elif is_dataclass(data) and not isinstance(data, type):
            self.print_dict(asdict(data))
        else:
            self.print(str(data))

    def _normalize(self, data: Any) -> Any:
        if is_dataclass(data) and not isinstance(data, type):
            return self._normalize(asdict(data))
        if isinstance(data, dict):
            return {k: self._normalize(v) for k, v in data.items()}
        if isinstance(data, (list, tuple)):
            return [self._normalize(v) for v in data]
        if isinstance(data, Enum):
            return data.value
        return data
