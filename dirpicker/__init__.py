from .core.picker_session import PickerSession, resolve_initial_path, start_session
from .core.refresh import RefreshOrchestrator
from .errors import (
    DirectoryPickerError,
    EnumerationFailure,
    FolderCreationError,
    InvalidInitialPath,
    InvalidPickTarget,
    SettingsStoreError,
)
from .models import FileEntry, ListingRequest, ListingResult, PickerState, format_size
from .services.directory_lister import DirectoryLister
from .services.listing_backends import BackendRegistry, DeviceRootBackend, LocalFilesystemBackend
from .services.sorting import sort_entries
from .settings import JsonSettingsStore, PickerSettings

__all__ = [
    "BackendRegistry",
    "DeviceRootBackend",
    "DirectoryLister",
    "DirectoryPickerError",
    "EnumerationFailure",
    "FileEntry",
    "FolderCreationError",
    "InvalidInitialPath",
    "InvalidPickTarget",
    "JsonSettingsStore",
    "ListingRequest",
    "ListingResult",
    "LocalFilesystemBackend",
    "PickerSession",
    "PickerSettings",
    "PickerState",
    "RefreshOrchestrator",
    "SettingsStoreError",
    "format_size",
    "resolve_initial_path",
    "sort_entries",
    "start_session",
]
