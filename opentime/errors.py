"""Exceptions raised by the OpenTime library."""
from __future__ import annotations


class OpenTimeError(Exception):
    """Base class for OpenTime errors."""


class DocumentDecodeError(OpenTimeError):
    """An .ot file could not be decoded into a document."""


class UnknownItemTypeError(OpenTimeError):
    """An item declares a type outside the seven known variants."""


class ItemValidationError(OpenTimeError, ValueError):
    """A required field for the requested item type is missing."""


class SettingsError(OpenTimeError):
    """The settings file exists but holds an unusable value."""
