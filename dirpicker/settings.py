"""JSON-backed picker settings with defaults and dot-key access."""

from __future__ import annotations

import json
import logging
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from PySide6.QtCore import QStandardPaths

from dirpicker.errors import SettingsStoreError

logger = logging.getLogger(__name__)

SETTINGS_FILENAME = "settings.json"
DEVICE_ROOT_PREFIX = "otg:/"

DEFAULT_SETTINGS: dict[str, Any] = {
    "storage": {
        "default_path": "",
        "internal_root": "",
    },
    "listing": {
        "sort_by_size": False,
        "follow_symlinks": False,
    },
    "display": {
        "show_info_bubble": True,
    },
    "external_device": {
        "prefix": DEVICE_ROOT_PREFIX,
        "mount_path": "",
        "volume_name": "",
    },
    "refresh": {
        "max_workers": 2,
        "poll_interval_ms": 35,
    },
}


def merge_defaults(data: Mapping[str, Any], defaults: Mapping[str, Any]) -> dict[str, Any]:
    """Fill in missing keys from defaults, recursing into nested dicts."""
    merged = deepcopy(dict(data))
    for key, default_value in defaults.items():
        if key not in merged:
            merged[key] = deepcopy(default_value)
        elif isinstance(merged[key], dict) and isinstance(default_value, dict):
            merged[key] = merge_defaults(merged[key], default_value)
    return merged


def dot_get(data: Mapping[str, Any], key: str, default: Any = None) -> Any:
    current: Any = data
    for part in key.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return default
        current = current[part]
    return current


def dot_set(data: dict[str, Any], key: str, value: Any) -> None:
    if not key:
        raise ValueError("Key cannot be empty.")
    parts = key.split(".")
    current = data
    for part in parts[:-1]:
        child = current.get(part)
        if not isinstance(child, dict):
            child = {}
            current[part] = child
        current = child
    current[parts[-1]] = value


def default_settings_path() -> Path:
    base = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.AppConfigLocation)
    if not base:
        base = str(Path.home() / ".config")
    return Path(base) / "dirpicker" / SETTINGS_FILENAME


class JsonSettingsStore:
    """Picker settings file. Invalid or missing files fall back to defaults."""

    def __init__(self, path: str | Path | None = None, defaults: Mapping[str, Any] | None = None) -> None:
        self.path = Path(path) if path is not None else default_settings_path()
        self.defaults: dict[str, Any] = deepcopy(dict(defaults if defaults is not None else DEFAULT_SETTINGS))
        self.data: dict[str, Any] = merge_defaults({}, self.defaults)
        self.dirty = False
        self.last_error: str | None = None

    def load(self) -> dict[str, Any]:
        self.last_error = None
        if not self.path.exists():
            self.data = merge_defaults({}, self.defaults)
            self.dirty = True
            return self.data

        loaded: dict[str, Any] = {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            self.last_error = str(exc)
            logger.debug("Ignoring unreadable settings file %s: %s", self.path, exc)
        else:
            if isinstance(raw, dict):
                loaded = raw
            else:
                self.last_error = (
                    f"Settings root in '{self.path}' must be a JSON object, "
                    f"found {type(raw).__name__}."
                )
                logger.debug(self.last_error)

        self.data = merge_defaults(loaded, self.defaults)
        self.dirty = False
        return self.data

    def save(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(self.data, indent=2, sort_keys=True), encoding="utf-8")
        except OSError as exc:
            raise SettingsStoreError(f"Could not write settings file '{self.path}': {exc}") from exc
        self.dirty = False
        self.last_error = None

    def get(self, key: str, default: Any = None) -> Any:
        return dot_get(self.data, key, default)

    def set(self, key: str, value: Any) -> bool:
        if self.get(key) == value:
            return False
        dot_set(self.data, key, value)
        self.dirty = True
        return True


@dataclass(frozen=True, slots=True)
class PickerSettings:
    default_path: str = ""
    internal_root: str = ""
    sort_by_size: bool = False
    follow_symlinks: bool = False
    show_info_bubble: bool = True
    device_prefix: str = DEVICE_ROOT_PREFIX
    device_mount_path: str = ""
    device_volume_name: str = ""
    max_workers: int = 2
    poll_interval_ms: int = 35

    @classmethod
    def from_store(cls, store: JsonSettingsStore) -> "PickerSettings":
        prefix = str(store.get("external_device.prefix") or DEVICE_ROOT_PREFIX).strip()
        if not prefix.endswith("/"):
            prefix += "/"
        return cls(
            default_path=str(store.get("storage.default_path") or "").strip(),
            internal_root=str(store.get("storage.internal_root") or "").strip(),
            sort_by_size=bool(store.get("listing.sort_by_size", False)),
            follow_symlinks=bool(store.get("listing.follow_symlinks", False)),
            show_info_bubble=bool(store.get("display.show_info_bubble", True)),
            device_prefix=prefix,
            device_mount_path=str(store.get("external_device.mount_path") or "").strip(),
            device_volume_name=str(store.get("external_device.volume_name") or "").strip(),
            max_workers=_clamp_int(store.get("refresh.max_workers"), 2, 1, 16),
            poll_interval_ms=_clamp_int(store.get("refresh.poll_interval_ms"), 35, 5, 1000),
        )

    @classmethod
    def load(cls, path: str | Path | None = None) -> "PickerSettings":
        store = JsonSettingsStore(path)
        store.load()
        return cls.from_store(store)


def _clamp_int(value: Any, default: int, low: int, high: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return max(low, min(high, number))
