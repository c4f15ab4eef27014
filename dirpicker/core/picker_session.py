"""Navigation and selection state machine for one picker session."""

from __future__ import annotations

import logging
import os
from typing import Callable

from dirpicker.errors import FolderCreationError, InvalidInitialPath, InvalidPickTarget
from dirpicker.models import FileEntry, ListingRequest, ListingResult, NavigationState, PickerState, RawEntry
from dirpicker.services.directory_lister import DirectoryLister
from dirpicker.services.listing_backends import BackendRegistry
from dirpicker.services.path_utils import normalize_result_path, path_key
from dirpicker.services.storage_locations import (
    available_storage_roots,
    default_start_path,
    internal_storage_root,
)
from dirpicker.settings import PickerSettings

from .navigation import BreadcrumbTrail
from .refresh import RefreshOrchestrator

logger = logging.getLogger(__name__)

ListingCallback = Callable[[list[FileEntry], str, list[str]], None]
FinishedCallback = Callable[[str | None], None]

_INVALID_NAME_CHARS = set('/\\\0')


class PickerSession:
    """Owns a ``NavigationState``; must only be used from one thread.

    Listings are requested through the orchestrator and come back via
    ``_on_listing_ready`` when the owner thread drains it.
    """

    def __init__(
        self,
        *,
        current_path: str,
        backends: BackendRegistry,
        refresher: RefreshOrchestrator,
        pick_file: bool = True,
        show_hidden: bool = False,
        allow_create_folder: bool = False,
        compute_proper_size: bool = False,
        on_listing_updated: ListingCallback | None = None,
        on_finished: FinishedCallback | None = None,
    ) -> None:
        self._backends = backends
        self._refresher = refresher
        self._device_prefix = backends.device_prefix()
        self._compute_proper_size = bool(compute_proper_size)
        self._on_listing_updated = on_listing_updated
        self._on_finished = on_finished
        self._entries: list[FileEntry] = []
        self._nav = NavigationState(
            current_path=current_path,
            breadcrumbs=BreadcrumbTrail(backends, current_path),
            pick_file=bool(pick_file),
            show_hidden=bool(show_hidden),
            allow_create_folder=bool(allow_create_folder),
        )

    # ---------- Read-only view ----------

    @property
    def state(self) -> PickerState:
        return self._nav.state

    @property
    def current_path(self) -> str:
        return self._nav.current_path

    @property
    def breadcrumbs(self) -> list[str]:
        return self._nav.breadcrumbs.items

    @property
    def entries(self) -> list[FileEntry]:
        return list(self._entries)

    @property
    def generation(self) -> int:
        return self._nav.generation

    @property
    def pick_file(self) -> bool:
        return self._nav.pick_file

    @property
    def show_hidden(self) -> bool:
        return self._nav.show_hidden

    @property
    def allow_create_folder(self) -> bool:
        return self._nav.allow_create_folder

    def path_key(self, path: str | None = None) -> str:
        return path_key(self._nav.current_path if path is None else path, self._device_prefix)

    # ---------- Transitions ----------

    def start(self) -> None:
        self._request_listing()

    def refresh(self) -> None:
        if self._inactive():
            return
        self._request_listing()

    def navigate_into(self, path: str) -> None:
        if self._inactive():
            return
        raw = self._backends.for_path(path).stat(path)
        if raw is not None and not raw.is_dir:
            logger.debug("Ignoring navigation to non-directory %s", path)
            return
        self._nav.breadcrumbs.move_to(path)
        self._nav.current_path = path
        self._request_listing()

    def go_up(self) -> None:
        if self._inactive():
            return
        previous = self._nav.breadcrumbs.pop()
        if previous is None:
            self.cancel()
            return
        self._nav.current_path = previous
        self._request_listing()

    def select_entry(self, entry: FileEntry) -> None:
        if self._inactive():
            return
        if entry.is_directory:
            self.navigate_into(entry.path)
        elif self._nav.pick_file:
            self._try_finalize(entry.path)

    def confirm_current(self) -> None:
        if self._inactive():
            return
        self._try_finalize(self._nav.current_path)

    def cancel(self) -> None:
        if self._inactive():
            return
        self._close(None)

    def click_breadcrumb(self, index: int) -> None:
        if self._inactive():
            return
        trail = self._nav.breadcrumbs
        if not 0 <= index < len(trail):
            return
        target = trail[index]
        trail.truncate(index)
        if self.path_key(target) == self.path_key():
            return
        self._nav.current_path = target
        self._request_listing()

    def switch_storage(self, root: str) -> None:
        if self._inactive():
            return
        raw = self._backends.for_path(root).stat(root)
        if raw is None or not raw.is_dir:
            logger.debug("Storage root %s is not available", root)
            return
        self._nav.breadcrumbs.reset(root)
        self._nav.current_path = root
        self._request_listing()

    def create_folder(self, name: str) -> str:
        """Create ``name`` under the current path and finish the session with it."""
        if self._inactive():
            raise FolderCreationError("The picker session is closed.", kind="closed")
        if not self._nav.allow_create_folder:
            raise FolderCreationError("Creating folders is not enabled for this picker.", kind="disabled")
        clean = (name or "").strip()
        if not clean or clean in {".", ".."} or any(ch in _INVALID_NAME_CHARS for ch in clean):
            raise FolderCreationError(f"Invalid folder name: '{name}'", kind="invalid_name")

        parent = self._nav.current_path
        backend = self._backends.for_path(parent)
        try:
            created = backend.make_dir(parent, clean)
        except FileExistsError as exc:
            raise FolderCreationError(f"A folder named '{clean}' already exists.", kind="exists") from exc
        except OSError as exc:
            raise FolderCreationError(f"Could not create folder '{clean}': {exc}") from exc

        self._close(normalize_result_path(created, self._device_prefix))
        return created

    # ---------- Listing delivery ----------

    def _request_listing(self) -> None:
        self._nav.generation += 1
        request = ListingRequest(
            generation=self._nav.generation,
            path=self._nav.current_path,
            compute_proper_size=self._compute_proper_size,
            show_hidden=self._nav.show_hidden,
        )
        self._refresher.submit(request, self._on_listing_ready)

    def _on_listing_ready(self, result: ListingResult) -> None:
        if self._nav.state is not PickerState.BROWSING:
            return
        if result.generation != self._nav.generation:
            logger.debug("Dropping stale listing %d for %s", result.generation, result.path)
            return

        if self._should_auto_finalize(result):
            try:
                self._finalize(self._nav.current_path)
                return
            except InvalidPickTarget as exc:
                logger.debug("Auto-finalize skipped: %s", exc)

        self._entries = list(result.entries)
        self._nav.first_update = False
        if self._on_listing_updated is not None:
            self._on_listing_updated(list(self._entries), self._nav.current_path, self.breadcrumbs)

    def _should_auto_finalize(self, result: ListingResult) -> bool:
        if self._nav.first_update:
            return False
        if self._nav.pick_file or self._nav.allow_create_folder:
            return False
        return not result.contains_directory()

    # ---------- Finalizing ----------

    def _try_finalize(self, path: str) -> None:
        try:
            self._finalize(path)
        except InvalidPickTarget as exc:
            logger.debug("Ignoring pick: %s", exc)

    def _finalize(self, path: str) -> None:
        raw = self._backends.for_path(path).stat(path)
        pick_file = self._nav.pick_file
        if raw is None or raw.is_dir == pick_file:
            raise InvalidPickTarget(path, pick_file=pick_file)
        self._nav.state = PickerState.FINALIZING
        self._close(normalize_result_path(path, self._device_prefix))

    def _close(self, result: str | None) -> None:
        self._nav.state = PickerState.CLOSED
        if self._on_finished is not None:
            self._on_finished(result)

    def _inactive(self) -> bool:
        return self._nav.state is not PickerState.BROWSING


def resolve_initial_path(path: str | None, backends: BackendRegistry, settings: PickerSettings) -> str:
    """Pick the directory a session opens on.

    Missing paths fall back to the internal storage root; a file resolves to
    its parent directory.
    """
    candidate = path or default_start_path(settings)
    try:
        raw = _stat_existing(candidate, backends)
    except InvalidInitialPath as exc:
        logger.debug("%s; using internal storage", exc)
        candidate = internal_storage_root(settings)
        raw = backends.for_path(candidate).stat(candidate)

    if raw is not None and not raw.is_dir:
        parent = backends.for_path(candidate).parent(candidate)
        if parent is None:
            parent = os.path.dirname(candidate) or candidate
        candidate = parent
    return candidate


def _stat_existing(path: str, backends: BackendRegistry) -> RawEntry:
    raw = backends.for_path(path).stat(path)
    if raw is None:
        raise InvalidInitialPath(path)
    return raw


def start_session(
    initial_path: str | None = None,
    pick_file: bool = True,
    show_hidden: bool = False,
    allow_create_folder: bool = False,
    *,
    on_listing_updated: ListingCallback | None = None,
    on_finished: FinishedCallback | None = None,
    settings: PickerSettings | None = None,
    backends: BackendRegistry | None = None,
    refresher: RefreshOrchestrator | None = None,
) -> PickerSession:
    """Create a session, resolve its start directory and request the first listing.

    Results are only delivered when the refresher is drained on the calling
    thread (``refresher.drain()``, or the Qt controller's pump).
    """
    settings = settings or PickerSettings()
    if backends is None:
        roots = [root.path for root in available_storage_roots(settings) if not root.is_device]
        backends = BackendRegistry.from_settings(settings, roots=roots)
    if refresher is None:
        refresher = RefreshOrchestrator(DirectoryLister(backends), max_workers=settings.max_workers)

    session = PickerSession(
        current_path=resolve_initial_path(initial_path, backends, settings),
        backends=backends,
        refresher=refresher,
        pick_file=pick_file,
        show_hidden=show_hidden,
        allow_create_folder=allow_create_folder,
        compute_proper_size=settings.sort_by_size,
        on_listing_updated=on_listing_updated,
        on_finished=on_finished,
    )
    session.start()
    return session
