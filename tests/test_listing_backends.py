from __future__ import annotations

import pytest

from dirpicker.errors import EnumerationFailure
from dirpicker.services.listing_backends import (
    BackendRegistry,
    DeviceRootBackend,
    ListingBackend,
    LocalFilesystemBackend,
)
from dirpicker.settings import PickerSettings


class TestLocalFilesystemBackend:
    def test_scan_reports_hidden_flag(self, tree):
        backend = LocalFilesystemBackend()

        raw = {entry.name: entry for entry in backend.scan(str(tree))}

        assert raw[".hidden_dir"].hidden
        assert raw[".hidden_dir"].is_dir
        assert not raw["alpha.txt"].hidden
        assert raw["alpha.txt"].size == 7

    def test_scan_missing_directory_raises(self, tree):
        with pytest.raises(EnumerationFailure) as excinfo:
            LocalFilesystemBackend().scan(str(tree / "missing"))

        assert excinfo.value.path == str(tree / "missing")

    def test_stat(self, tree):
        backend = LocalFilesystemBackend()

        assert backend.stat(str(tree / "docs")).is_dir
        assert backend.stat(str(tree / "docs" / "notes.txt")).size == 20
        assert backend.stat(str(tree / "missing")) is None

    def test_parent_stops_at_configured_root(self, tree):
        backend = LocalFilesystemBackend([str(tree)])

        assert backend.parent(str(tree / "docs" / "reports")) == str(tree / "docs")
        assert backend.parent(str(tree / "docs")) == str(tree)
        assert backend.parent(str(tree)) is None

    def test_root_for_prefers_longest_root(self, tree):
        backend = LocalFilesystemBackend([str(tree), str(tree / "docs")])

        assert backend.root_for(str(tree / "docs" / "reports")) == str(tree / "docs")
        assert backend.root_for(str(tree / "Music")) == str(tree)

    def test_root_for_unconfigured_path_is_anchor(self, tmp_path):
        backend = LocalFilesystemBackend()

        assert backend.root_for(str(tmp_path)) == tmp_path.anchor

    def test_make_dir(self, tree):
        created = LocalFilesystemBackend().make_dir(str(tree), "fresh")

        assert created == str(tree / "fresh")
        assert (tree / "fresh").is_dir()


class TestDeviceRootBackend:
    def test_handles_prefix_only(self, device_mount):
        backend = DeviceRootBackend("otg:/", str(device_mount))

        assert backend.handles("otg:/")
        assert backend.handles("otg:/DCIM")
        assert not backend.handles("/otg/DCIM")

    def test_scan_translates_paths(self, device_mount):
        backend = DeviceRootBackend("otg:/", str(device_mount))

        (entry,) = backend.scan("otg:/DCIM")

        assert entry.path == "otg:/DCIM/img.jpg"
        assert entry.name == "img.jpg"
        assert entry.size == 40

    def test_scan_without_mount_fails(self):
        backend = DeviceRootBackend("otg:/")

        with pytest.raises(EnumerationFailure):
            backend.scan("otg:/")
        assert backend.stat("otg:/") is None

    def test_stat_and_parent(self, device_mount):
        backend = DeviceRootBackend("otg:/", str(device_mount))

        raw = backend.stat("otg:/DCIM/")
        assert raw.path == "otg:/DCIM"
        assert raw.name == "DCIM"
        assert raw.is_dir
        assert backend.parent("otg:/DCIM/img.jpg") == "otg:/DCIM"
        assert backend.parent("otg:/DCIM") == "otg:/"
        assert backend.parent("otg:/") is None
        assert backend.root_for("otg:/DCIM") == "otg:/"

    def test_make_dir_returns_device_path(self, device_mount):
        backend = DeviceRootBackend("otg:/", str(device_mount))

        assert backend.make_dir("otg:/DCIM", "Trips") == "otg:/DCIM/Trips"
        assert (device_mount / "DCIM" / "Trips").is_dir()

    def test_parent_segments_stay_inside_mount(self, device_mount):
        (device_mount.parent / "outside_secret").mkdir()
        backend = DeviceRootBackend("otg:/", str(device_mount))

        with pytest.raises(EnumerationFailure):
            backend.scan("otg:/..")
        with pytest.raises(EnumerationFailure):
            backend.scan("otg:/DCIM/../..")
        assert backend.stat("otg:/../outside_secret") is None
        assert backend.identity("otg:/..") is None
        with pytest.raises(OSError):
            backend.make_dir("otg:/..", "escaped")
        with pytest.raises(OSError):
            backend.make_dir("otg:/", "..")
        assert not (device_mount.parent / "escaped").exists()

    def test_identity_matches_host_directory(self, device_mount):
        backend = DeviceRootBackend("otg:/", str(device_mount))
        local = LocalFilesystemBackend()

        assert backend.identity("otg:/DCIM") == local.identity(str(device_mount / "DCIM"))
        assert backend.identity("otg:/missing") is None


class TestBackendRegistry:
    def test_selects_by_prefix(self, backends):
        assert isinstance(backends.for_path("otg:/DCIM"), DeviceRootBackend)
        assert isinstance(backends.for_path("/tmp"), LocalFilesystemBackend)
        assert backends.device_prefix() == "otg:/"

    def test_backends_satisfy_protocol(self, backends):
        assert all(isinstance(backend, ListingBackend) for backend in backends.backends)

    def test_from_settings(self, device_mount, tree):
        settings = PickerSettings(device_prefix="usb:/", device_mount_path=str(device_mount), follow_symlinks=True)

        registry = BackendRegistry.from_settings(settings, roots=[str(tree)])

        device = registry.for_path("usb:/DCIM")
        assert isinstance(device, DeviceRootBackend)
        assert device.mount_path == str(device_mount)
        assert registry.follow_symlinks(str(tree))
        assert registry.for_path(str(tree / "docs")).parent(str(tree)) is None
