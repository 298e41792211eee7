"""Base parser class for note parsers."""
from __future__ import annotations

import posixpath
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Union

from ..constants import DEFAULT_ID_PREFIX
from ..model import BaseItem


@dataclass(frozen=True)
class SourceFile:
    """Identity of a note: its vault-relative path."""

    path: str

    @property
    def basename(self) -> str:
        """File name without folder or extension."""
        name = posixpath.basename(self.path)
        stem, dot, _ext = name.rpartition(".")
        return stem if dot and stem else name

    @property
    def folder(self) -> str:
        return posixpath.dirname(self.path)

    @classmethod
    def of(cls, source: Union["SourceFile", str]) -> "SourceFile":
        if isinstance(source, SourceFile):
            return source
        return cls(path=str(source).replace("\\", "/"))


class NoteParser(ABC):
    """Base class for note parsers."""

    def __init__(self, id_prefix: str = DEFAULT_ID_PREFIX):
        self.id_prefix = id_prefix

    @abstractmethod
    def parse(self, content: str, source: Union[SourceFile, str], date: Optional[str] = None) -> List[BaseItem]:
        """Parse schedule items from the text of one note.

        Args:
            content: Full note text
            source: Note identity (vault-relative path)
            date: Explicit date for parsers that need one

        Returns:
            List of items, empty when nothing matches
        """
        pass

    @staticmethod
    def _lines(content: str) -> List[str]:
        return [line[:-1] if line.endswith("\r") else line for line in (content or "").split("\n")]
