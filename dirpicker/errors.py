"""Error taxonomy for the picker core.

Most of these never reach the caller: the lister, the session and the
settings layer recover from them locally and log at debug level.
"""

from __future__ import annotations


class DirectoryPickerError(RuntimeError):
    """Base class for picker errors."""


class EnumerationFailure(DirectoryPickerError):
    """A directory could not be enumerated (permission, vanished path, I/O)."""

    def __init__(self, path: str, reason: str = "") -> None:
        message = f"Cannot enumerate '{path}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.path = path
        self.reason = reason


class InvalidInitialPath(DirectoryPickerError):
    """The path a session was started with does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Initial path does not exist: '{path}'")
        self.path = path


class InvalidPickTarget(DirectoryPickerError):
    """The path being confirmed does not match the pick mode."""

    def __init__(self, path: str, *, pick_file: bool) -> None:
        expected = "file" if pick_file else "folder"
        super().__init__(f"'{path}' is not a {expected}")
        self.path = path
        self.pick_file = pick_file


class FolderCreationError(DirectoryPickerError):
    def __init__(self, message: str, *, kind: str = "create_failed") -> None:
        super().__init__(message)
        self.kind = kind


class SettingsStoreError(DirectoryPickerError):
    """Raised when a settings file cannot be saved."""
