"""Qt adapter: drives a PickerSession from the GUI thread and re-emits its events as signals."""

from __future__ import annotations

from PySide6.QtCore import QObject, QTimer, Signal

from dirpicker.core.picker_session import PickerSession, start_session
from dirpicker.core.refresh import RefreshOrchestrator
from dirpicker.errors import FolderCreationError
from dirpicker.models import FileEntry
from dirpicker.services.directory_lister import DirectoryLister
from dirpicker.services.listing_backends import BackendRegistry
from dirpicker.services.storage_locations import StorageRoot, available_storage_roots
from dirpicker.settings import PickerSettings


class PickerController(QObject):
    listingUpdated = Signal(object, str, object)  # entries(list[FileEntry]), current_path, breadcrumbs(list[str])
    finished = Signal(object)                     # picked path, or None on cancel
    statusMessage = Signal(str)

    def __init__(
        self,
        settings: PickerSettings | None = None,
        *,
        backends: BackendRegistry | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._settings = settings or PickerSettings()
        self._storage_roots = available_storage_roots(self._settings)
        if backends is None:
            roots = [root.path for root in self._storage_roots if not root.is_device]
            backends = BackendRegistry.from_settings(self._settings, roots=roots)
        self._backends = backends
        self._refresher = RefreshOrchestrator(
            DirectoryLister(backends),
            max_workers=self._settings.max_workers,
        )
        self._session: PickerSession | None = None

        self._result_pump = QTimer(self)
        self._result_pump.setInterval(self._settings.poll_interval_ms)
        self._result_pump.timeout.connect(self._drain_pending)

    # ---------- Public API ----------

    @property
    def session(self) -> PickerSession | None:
        return self._session

    @property
    def settings(self) -> PickerSettings:
        return self._settings

    def start(
        self,
        initial_path: str | None = None,
        *,
        pick_file: bool = True,
        show_hidden: bool = False,
        allow_create_folder: bool = False,
    ) -> PickerSession:
        if self._session is not None:
            self._session.cancel()
        self._session = start_session(
            initial_path,
            pick_file,
            show_hidden,
            allow_create_folder,
            on_listing_updated=self._emit_listing,
            on_finished=self._emit_finished,
            settings=self._settings,
            backends=self._backends,
            refresher=self._refresher,
        )
        self._ensure_pump()
        return self._session

    def storage_roots(self) -> list[StorageRoot]:
        return list(self._storage_roots)

    def navigate_into(self, path: str) -> None:
        if self._session is not None:
            self._session.navigate_into(path)
            self._ensure_pump()

    def refresh(self) -> None:
        if self._session is not None:
            self._session.refresh()
            self._ensure_pump()

    def go_up(self) -> None:
        if self._session is not None:
            self._session.go_up()
            self._ensure_pump()

    def select_entry(self, entry: FileEntry) -> None:
        if self._session is not None:
            self._session.select_entry(entry)
            self._ensure_pump()

    def confirm_current(self) -> None:
        if self._session is not None:
            self._session.confirm_current()

    def cancel(self) -> None:
        if self._session is not None:
            self._session.cancel()

    def click_breadcrumb(self, index: int) -> None:
        if self._session is not None:
            self._session.click_breadcrumb(index)
            self._ensure_pump()

    def switch_storage(self, root: str) -> None:
        if self._session is not None:
            self._session.switch_storage(root)
            self._ensure_pump()

    def create_folder(self, name: str) -> str | None:
        if self._session is None:
            return None
        try:
            return self._session.create_folder(name)
        except FolderCreationError as exc:
            self.statusMessage.emit(str(exc))
            return None

    def bubble_text(self, row: int) -> str:
        """Label for the fast-scroll indicator at ``row``."""
        if self._session is None or not self._settings.show_info_bubble:
            return ""
        entries = self._session.entries
        if not 0 <= row < len(entries):
            return ""
        return entries[row].bubble_text(self._settings.sort_by_size)

    def flush(self, timeout: float | None = None) -> None:
        """Wait for in-flight listings and deliver them now, without the event loop."""
        self._refresher.wait(timeout)
        self._drain_pending()

    def shutdown(self) -> None:
        self._result_pump.stop()
        self._refresher.shutdown()

    # ---------- Result pump ----------

    def _ensure_pump(self) -> None:
        if self._refresher.has_pending and not self._result_pump.isActive():
            self._result_pump.start()

    def _drain_pending(self) -> None:
        self._refresher.drain()
        if not self._refresher.has_pending:
            self._result_pump.stop()

    def _emit_listing(self, entries: list[FileEntry], current_path: str, breadcrumbs: list[str]) -> None:
        self.listingUpdated.emit(entries, current_path, breadcrumbs)

    def _emit_finished(self, path: str | None) -> None:
        self.finished.emit(path)
        self.statusMessage.emit(f"Picked {path}" if path else "Picker cancelled.")
