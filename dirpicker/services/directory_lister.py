"""Builds ``FileEntry`` snapshots for one directory."""

from __future__ import annotations

import logging

from dirpicker.errors import EnumerationFailure
from dirpicker.models import FileEntry, ListingRequest, ListingResult, RawEntry

from .listing_backends import BackendRegistry, ListingBackend
from .sorting import sort_entries

logger = logging.getLogger(__name__)


class DirectoryLister:
    def __init__(self, backends: BackendRegistry) -> None:
        self._backends = backends

    def __call__(self, request: ListingRequest) -> ListingResult:
        entries = self.list(
            request.path,
            compute_proper_size=request.compute_proper_size,
            show_hidden=request.show_hidden,
        )
        return ListingResult(
            generation=request.generation,
            path=request.path,
            entries=tuple(sort_entries(entries)),
        )

    def list(self, path: str, *, compute_proper_size: bool = False, show_hidden: bool = False) -> list[FileEntry]:
        """Immediate children of ``path``; an unreadable directory yields an empty list."""
        backend = self._backends.for_path(path)
        try:
            raw_entries = backend.scan(path)
        except EnumerationFailure as exc:
            logger.debug("Listing %s failed: %s", path, exc)
            return []

        follow_links = self._backends.follow_symlinks(path)
        entries: list[FileEntry] = []
        for raw in raw_entries:
            if raw.hidden and not show_hidden:
                continue
            if compute_proper_size:
                size = self.proper_size(backend, raw, show_hidden=show_hidden, follow_symlinks=follow_links)
            else:
                size = raw.size
            entries.append(
                FileEntry(
                    path=raw.path,
                    name=raw.name,
                    is_directory=raw.is_dir,
                    child_count=self.child_count(backend, raw, show_hidden=show_hidden),
                    size=size,
                )
            )
        return entries

    def child_count(self, backend: ListingBackend, raw: RawEntry, *, show_hidden: bool) -> int:
        if not raw.is_dir:
            return 0
        try:
            children = backend.scan(raw.path)
        except EnumerationFailure:
            return 0
        return sum(1 for child in children if show_hidden or not child.hidden)

    def proper_size(
        self,
        backend: ListingBackend,
        raw: RawEntry,
        *,
        show_hidden: bool,
        follow_symlinks: bool = False,
    ) -> int:
        """Total size of the files under ``raw``; a plain file's own size."""
        if not raw.is_dir:
            return raw.size

        total = 0
        visited: set[object] = set()
        pending = [raw.path]
        while pending:
            current = pending.pop()
            # Keyed by (st_dev, st_ino) when the backend can stat the directory.
            key = backend.identity(current) or current
            if key in visited:
                continue
            visited.add(key)
            try:
                children = backend.scan(current)
            except EnumerationFailure:
                continue
            for child in children:
                if child.hidden and not show_hidden:
                    continue
                if child.is_dir:
                    if child.is_link and not follow_symlinks:
                        continue
                    pending.append(child.path)
                else:
                    total += child.size
        return total
