"""Pluggable enumeration backends, selected by path prefix."""

from __future__ import annotations

import logging
import os
import stat as stat_mod
from pathlib import Path
from typing import Iterable, Protocol, runtime_checkable

from dirpicker.errors import EnumerationFailure
from dirpicker.models import RawEntry
from dirpicker.settings import PickerSettings

from .path_utils import display_name, has_prefix, is_device_path, normalize_result_path
from .storage_locations import resolve_device_mount

logger = logging.getLogger(__name__)


@runtime_checkable
class ListingBackend(Protocol):
    def handles(self, path: str) -> bool: ...

    def scan(self, path: str) -> list[RawEntry]: ...

    def stat(self, path: str) -> RawEntry | None: ...

    def make_dir(self, parent: str, name: str) -> str: ...

    def parent(self, path: str) -> str | None: ...

    def identity(self, path: str) -> tuple[int, int] | None: ...

    def root_for(self, path: str) -> str: ...


class LocalFilesystemBackend:
    """Direct filesystem access through ``os.scandir``."""

    def __init__(self, roots: Iterable[str] = (), *, follow_symlinks: bool = False) -> None:
        self._roots = [normalize_result_path(str(root)) for root in roots if root]
        self.follow_symlinks = bool(follow_symlinks)

    def handles(self, path: str) -> bool:
        return True

    def scan(self, path: str) -> list[RawEntry]:
        entries: list[RawEntry] = []
        try:
            with os.scandir(path) as it:
                for dir_entry in it:
                    entries.append(self._raw_from_dir_entry(dir_entry))
        except OSError as exc:
            raise EnumerationFailure(path, exc.strerror or str(exc)) from exc
        return entries

    def stat(self, path: str) -> RawEntry | None:
        try:
            info = os.stat(path)
        except OSError:
            return None
        name = display_name(path)
        return RawEntry(
            name=name,
            path=path,
            is_dir=stat_mod.S_ISDIR(info.st_mode),
            size=int(info.st_size),
            hidden=name.startswith("."),
            is_link=os.path.islink(path),
        )

    def make_dir(self, parent: str, name: str) -> str:
        target = os.path.join(parent, name)
        os.mkdir(target)
        return target

    def identity(self, path: str) -> tuple[int, int] | None:
        """``(st_dev, st_ino)`` of the directory ``path`` resolves to."""
        try:
            info = os.stat(path)
        except OSError:
            return None
        return (info.st_dev, info.st_ino)

    def parent(self, path: str) -> str | None:
        norm = normalize_result_path(path)
        if norm == self.root_for(norm):
            return None
        candidate = os.path.dirname(norm)
        if not candidate or candidate == norm:
            return None
        return candidate

    def root_for(self, path: str) -> str:
        matches = [root for root in self._roots if has_prefix(path, root)]
        if matches:
            return max(matches, key=len)
        return Path(path).anchor or os.sep

    def _raw_from_dir_entry(self, dir_entry: os.DirEntry) -> RawEntry:
        is_link = dir_entry.is_symlink()
        try:
            is_dir = dir_entry.is_dir()
        except OSError:
            is_dir = False
        try:
            size = int(dir_entry.stat().st_size)
        except OSError:
            # Broken symlink.
            size = 0
        return RawEntry(
            name=dir_entry.name,
            path=dir_entry.path,
            is_dir=is_dir,
            size=size,
            hidden=dir_entry.name.startswith("."),
            is_link=is_link,
        )


class DeviceRootBackend:
    """Serves paths under the external device prefix (``otg:/`` by default).

    The device is reached through a host mount point. Entries are reported
    back with device paths so callers never see the mount location.
    """

    def __init__(self, prefix: str, mount_path: str = "") -> None:
        self.prefix = prefix if prefix.endswith("/") else prefix + "/"
        self.mount_path = str(mount_path or "")
        self._local = LocalFilesystemBackend()

    def handles(self, path: str) -> bool:
        return is_device_path(path, self.prefix)

    def scan(self, path: str) -> list[RawEntry]:
        if not self.mount_path:
            logger.debug("No mount point configured for %s", self.prefix)
            raise EnumerationFailure(path, "no external device mounted")
        host = self._to_host(path)
        if host is None:
            raise EnumerationFailure(path, "path leaves the device root")
        return [self._to_device_entry(path, raw) for raw in self._local.scan(host)]

    def stat(self, path: str) -> RawEntry | None:
        host = self._to_host(path)
        if host is None:
            return None
        raw = self._local.stat(host)
        if raw is None:
            return None
        norm = normalize_result_path(path, self.prefix)
        return RawEntry(
            name=self._name_of(norm),
            path=norm,
            is_dir=raw.is_dir,
            size=raw.size,
            hidden=raw.hidden,
            is_link=raw.is_link,
        )

    def make_dir(self, parent: str, name: str) -> str:
        child = self._child_path(parent, name)
        target = self._to_host(child)
        if target is None:
            raise FileNotFoundError(f"No device directory for '{child}'")
        os.mkdir(target)
        return child

    def parent(self, path: str) -> str | None:
        norm = normalize_result_path(path, self.prefix)
        rel = self._relative(norm)
        if not rel:
            return None
        head = rel.rsplit("/", 1)[0] if "/" in rel else ""
        return self.prefix + head

    def identity(self, path: str) -> tuple[int, int] | None:
        host = self._to_host(path)
        if host is None:
            return None
        return self._local.identity(host)

    def root_for(self, path: str) -> str:
        return self.prefix

    def _relative(self, path: str) -> str:
        if not path.startswith(self.prefix):
            return ""
        return path[len(self.prefix):].strip("/")

    def _to_host(self, path: str) -> str | None:
        if not self.mount_path:
            return None
        rel = self._relative(path)
        if not rel:
            return self.mount_path
        parts = rel.split("/")
        if ".." in parts:
            return None
        return os.path.join(self.mount_path, *parts)

    def _child_path(self, parent: str, name: str) -> str:
        base = parent if parent.endswith("/") else parent + "/"
        return base + name

    def _name_of(self, path: str) -> str:
        rel = self._relative(path)
        return rel.rsplit("/", 1)[-1] if rel else self.prefix

    def _to_device_entry(self, parent: str, raw: RawEntry) -> RawEntry:
        return RawEntry(
            name=raw.name,
            path=self._child_path(parent, raw.name),
            is_dir=raw.is_dir,
            size=raw.size,
            hidden=raw.hidden,
            is_link=raw.is_link,
        )


class BackendRegistry:
    """Ordered backend variants; the first whose ``handles()`` matches wins."""

    def __init__(self, backends: Iterable[ListingBackend], fallback: ListingBackend | None = None) -> None:
        self._backends = list(backends)
        self._fallback = fallback or LocalFilesystemBackend()

    @classmethod
    def from_settings(cls, settings: PickerSettings, *, roots: Iterable[str] = ()) -> "BackendRegistry":
        device = DeviceRootBackend(settings.device_prefix, resolve_device_mount(settings))
        local = LocalFilesystemBackend(roots, follow_symlinks=settings.follow_symlinks)
        return cls([device], fallback=local)

    @property
    def backends(self) -> list[ListingBackend]:
        return [*self._backends, self._fallback]

    def for_path(self, path: str) -> ListingBackend:
        for backend in self._backends:
            if backend.handles(path):
                return backend
        return self._fallback

    def device_prefix(self) -> str:
        for backend in self._backends:
            prefix = getattr(backend, "prefix", "")
            if prefix:
                return prefix
        return ""

    def follow_symlinks(self, path: str) -> bool:
        return bool(getattr(self.for_path(path), "follow_symlinks", False))
