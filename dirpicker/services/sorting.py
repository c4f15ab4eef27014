from __future__ import annotations

from typing import Iterable

from dirpicker.models import FileEntry


def entry_sort_key(entry: FileEntry) -> tuple[bool, str]:
    return (not entry.is_directory, entry.name.lower())


def sort_entries(entries: Iterable[FileEntry]) -> list[FileEntry]:
    """Directories first, then case-insensitive name. Ties keep their input order."""
    return sorted(entries, key=entry_sort_key)
