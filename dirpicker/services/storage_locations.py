"""Storage roots offered to the user and the fallbacks used at session start."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from PySide6.QtCore import QStandardPaths, QStorageInfo

from dirpicker.settings import PickerSettings

from .path_utils import normalize_result_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StorageRoot:
    label: str
    path: str
    is_device: bool = False


def home_location() -> str:
    path = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.HomeLocation)
    return path or str(Path.home())


def internal_storage_root(settings: PickerSettings) -> str:
    return settings.internal_root or home_location()


def default_start_path(settings: PickerSettings) -> str:
    return settings.default_path or home_location()


def resolve_device_mount(settings: PickerSettings) -> str:
    """Host directory backing the device prefix, or "" when nothing is mounted."""
    if settings.device_mount_path:
        return settings.device_mount_path
    wanted = settings.device_volume_name
    if not wanted:
        return ""
    for volume in QStorageInfo.mountedVolumes():
        if not volume.isValid() or not volume.isReady():
            continue
        if wanted in (volume.name(), volume.displayName()):
            return volume.rootPath()
    logger.debug("No mounted volume named %r", wanted)
    return ""


def available_storage_roots(settings: PickerSettings) -> list[StorageRoot]:
    roots: list[StorageRoot] = []
    seen: set[str] = set()

    def add(label: str, path: str, *, is_device: bool = False) -> None:
        key = normalize_result_path(path, settings.device_prefix)
        if not key or key in seen:
            return
        seen.add(key)
        roots.append(StorageRoot(label=label, path=path, is_device=is_device))

    add("Internal storage", internal_storage_root(settings))

    system_root = QStorageInfo.root().rootPath() or "/"
    device_mount = resolve_device_mount(settings)
    for volume in QStorageInfo.mountedVolumes():
        if not volume.isValid() or not volume.isReady():
            continue
        root_path = volume.rootPath()
        if root_path in (system_root, device_mount):
            continue
        add(volume.displayName() or root_path, root_path)

    if device_mount:
        add("USB device", settings.device_prefix, is_device=True)

    add("Root", system_root)
    return roots
