"""Exceptions raised by the saved-state codec, loader and writer."""

from __future__ import annotations


class SavedStateError(Exception):
    """Base class for saved-state failures."""


class ParseError(SavedStateError, ValueError):
    """A line does not follow the entity identifier grammar."""

    def __init__(self, message: str, line: str = "") -> None:
        super().__init__(message)
        self.line = line


class LoadError(SavedStateError):
    """The saved-state file exists but could not be loaded."""

    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(message)
        self.path = path


class PersistError(SavedStateError, OSError):
    """The saved-state file could not be (fully) written."""

    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(message)
        self.path = path


__all__ = ["SavedStateError", "ParseError", "LoadError", "PersistError"]
