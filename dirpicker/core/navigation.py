from __future__ import annotations

from typing import Iterator

from dirpicker.services.listing_backends import BackendRegistry
from dirpicker.services.path_utils import normalize_result_path

_MAX_DEPTH = 4096


class BreadcrumbTrail:
    """Ordered directories from a storage root down to the current path.

    Only ever appended to or truncated. Each crumb is a normalized path.
    """

    def __init__(self, backends: BackendRegistry, path: str | None = None) -> None:
        self._backends = backends
        self._device_prefix = backends.device_prefix()
        self._items: list[str] = []
        if path is not None:
            self.reset(path)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items))

    def __getitem__(self, index: int) -> str:
        return self._items[index]

    @property
    def items(self) -> list[str]:
        return list(self._items)

    @property
    def last(self) -> str | None:
        return self._items[-1] if self._items else None

    def key(self, path: str) -> str:
        return normalize_result_path(path, self._device_prefix)

    def chain_for(self, path: str) -> list[str]:
        backend = self._backends.for_path(path)
        chain = [self.key(path)]
        parent = backend.parent(path)
        while parent is not None and len(chain) < _MAX_DEPTH:
            chain.append(self.key(parent))
            parent = backend.parent(parent)
        chain.reverse()
        return chain

    def reset(self, path: str) -> None:
        self._items = self.chain_for(path)

    def move_to(self, path: str) -> None:
        key = self.key(path)
        if key in self._items:
            self.truncate(self._items.index(key))
            return
        last = self.last
        full = self.chain_for(path)
        if last is not None and last in full:
            self._items.extend(full[full.index(last) + 1:])
            return
        self._items = full

    def truncate(self, index: int) -> None:
        if 0 <= index < len(self._items):
            del self._items[index + 1:]

    def pop(self) -> str | None:
        """Drop the last crumb and return the new last one; None if only one is left."""
        if len(self._items) <= 1:
            return None
        self._items.pop()
        return self._items[-1]
