from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dirpicker.core.navigation import BreadcrumbTrail


_SIZE_UNITS = ["B", "KB", "MB", "GB", "TB", "PB"]


def format_size(num_bytes: int) -> str:
    size = float(max(0, int(num_bytes)))
    idx = 0
    while size >= 1024 and idx < len(_SIZE_UNITS) - 1:
        size /= 1024
        idx += 1
    if idx == 0:
        return f"{int(size)} {_SIZE_UNITS[idx]}"
    return f"{size:.1f} {_SIZE_UNITS[idx]}"


@dataclass(frozen=True, slots=True)
class RawEntry:
    """One child as reported by a listing backend, before filtering."""

    name: str
    path: str
    is_dir: bool
    size: int = 0
    hidden: bool = False
    is_link: bool = False


@dataclass(frozen=True, slots=True)
class FileEntry:
    """Snapshot of one filesystem entry. Equality and hashing use the path only."""

    path: str
    name: str = field(compare=False)
    is_directory: bool = field(default=False, compare=False)
    child_count: int = field(default=0, compare=False)
    size: int = field(default=0, compare=False)

    def bubble_text(self, sort_by_size: bool = False) -> str:
        if sort_by_size:
            return format_size(self.size)
        return self.name[:1].upper()


class PickerState(enum.Enum):
    BROWSING = "browsing"
    FINALIZING = "finalizing"
    CLOSED = "closed"


@dataclass(frozen=True, slots=True)
class ListingRequest:
    generation: int
    path: str
    compute_proper_size: bool = False
    show_hidden: bool = False


@dataclass(frozen=True, slots=True)
class ListingResult:
    generation: int
    path: str
    entries: tuple[FileEntry, ...] = ()

    def contains_directory(self) -> bool:
        return any(entry.is_directory for entry in self.entries)


@dataclass(slots=True)
class NavigationState:
    """Mutable per-session state. Owned by a single thread."""

    current_path: str
    breadcrumbs: BreadcrumbTrail
    pick_file: bool = True
    show_hidden: bool = False
    allow_create_folder: bool = False
    state: PickerState = PickerState.BROWSING
    generation: int = 0
    first_update: bool = True
