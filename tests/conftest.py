from __future__ import annotations

import pytest

from dirpicker.core.refresh import RefreshOrchestrator
from dirpicker.services.directory_lister import DirectoryLister
from dirpicker.services.listing_backends import BackendRegistry, DeviceRootBackend, LocalFilesystemBackend


@pytest.fixture
def tree(tmp_path):
    root = tmp_path / "storage"
    (root / "Music").mkdir(parents=True)
    (root / "Music" / "song.mp3").write_bytes(b"x" * 300)
    (root / "Music" / ".cache").write_bytes(b"y" * 50)
    (root / "docs" / "reports").mkdir(parents=True)
    (root / "docs" / "reports" / "q1.txt").write_bytes(b"a" * 10)
    (root / "docs" / "notes.txt").write_bytes(b"b" * 20)
    (root / ".hidden_dir").mkdir()
    (root / ".hidden_dir" / "secret.txt").write_bytes(b"s" * 5)
    (root / "alpha.txt").write_bytes(b"c" * 7)
    (root / "Beta.txt").write_bytes(b"d" * 3)
    (root / "empty").mkdir()
    return root


@pytest.fixture
def device_mount(tmp_path):
    mount = tmp_path / "usb"
    (mount / "DCIM").mkdir(parents=True)
    (mount / "DCIM" / "img.jpg").write_bytes(b"i" * 40)
    return mount


@pytest.fixture
def backends(tree, device_mount):
    local = LocalFilesystemBackend([str(tree)])
    device = DeviceRootBackend("otg:/", str(device_mount))
    return BackendRegistry([device], fallback=local)


@pytest.fixture
def refresher(backends):
    orchestrator = RefreshOrchestrator(DirectoryLister(backends), max_workers=2)
    yield orchestrator
    orchestrator.shutdown()


@pytest.fixture
def settle(refresher):
    def _settle():
        while refresher.has_pending:
            assert refresher.wait(timeout=5)
            refresher.drain()

    return _settle


class Recorder:
    def __init__(self):
        self.listings: list[tuple[list, str, list[str]]] = []
        self.finished: list[str | None] = []

    def on_listing_updated(self, entries, current_path, breadcrumbs):
        self.listings.append((entries, current_path, breadcrumbs))

    def on_finished(self, path):
        self.finished.append(path)

    @property
    def last_names(self) -> list[str]:
        return [entry.name for entry in self.listings[-1][0]]


@pytest.fixture
def recorder():
    return Recorder()
