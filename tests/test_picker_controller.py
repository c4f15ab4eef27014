from __future__ import annotations

import pytest

pytest.importorskip("PySide6")

from PySide6.QtCore import QCoreApplication  # noqa: E402

from dirpicker.settings import PickerSettings  # noqa: E402
from dirpicker.ui.controllers import PickerController  # noqa: E402


@pytest.fixture(scope="module")
def qt_app():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def make_controller(qt_app, backends):
    created = []

    def _make(**settings_kwargs):
        controller = PickerController(PickerSettings(**settings_kwargs), backends=backends)
        signals = {"listings": [], "finished": [], "status": []}
        controller.listingUpdated.connect(lambda entries, path, crumbs: signals["listings"].append((entries, path, crumbs)))
        controller.finished.connect(signals["finished"].append)
        controller.statusMessage.connect(signals["status"].append)
        created.append(controller)
        return controller, signals

    yield _make
    for controller in created:
        controller.shutdown()


def test_listing_is_emitted_after_flush(make_controller, tree):
    controller, signals = make_controller()

    controller.start(str(tree), pick_file=True)
    assert signals["listings"] == []
    controller.flush(timeout=5)

    entries, path, crumbs = signals["listings"][-1]
    assert path == str(tree)
    assert crumbs == [str(tree)]
    assert [entry.name for entry in entries][:3] == ["docs", "empty", "Music"]


def test_navigation_and_pick(make_controller, tree):
    controller, signals = make_controller()
    controller.start(str(tree), pick_file=True)
    controller.flush(timeout=5)

    controller.navigate_into(str(tree / "docs"))
    controller.flush(timeout=5)
    notes = next(entry for entry in controller.session.entries if entry.name == "notes.txt")
    controller.select_entry(notes)

    assert signals["finished"] == [str(tree / "docs" / "notes.txt")]
    assert signals["status"][-1].startswith("Picked ")


def test_go_up_from_root_cancels(make_controller, tree):
    controller, signals = make_controller()
    controller.start(str(tree), pick_file=False)
    controller.flush(timeout=5)

    controller.go_up()

    assert signals["finished"] == [None]


def test_bubble_text_follows_settings(make_controller, tree):
    controller, _signals = make_controller()
    controller.start(str(tree), pick_file=True)
    controller.flush(timeout=5)

    assert controller.bubble_text(0) == "D"
    assert controller.bubble_text(99) == ""

    sized, _ = make_controller(sort_by_size=True)
    sized.start(str(tree / "docs"), pick_file=True)
    sized.flush(timeout=5)
    assert sized.bubble_text(1) == "20 B"

    hidden, _ = make_controller(show_info_bubble=False)
    hidden.start(str(tree), pick_file=True)
    hidden.flush(timeout=5)
    assert hidden.bubble_text(0) == ""


def test_create_folder_failure_is_reported(make_controller, tree):
    controller, signals = make_controller()
    controller.start(str(tree), pick_file=False, allow_create_folder=True)
    controller.flush(timeout=5)

    assert controller.create_folder("docs") is None

    assert "already exists" in signals["status"][-1]
    assert signals["finished"] == []


def test_restart_cancels_previous_session(make_controller, tree):
    controller, signals = make_controller()
    controller.start(str(tree), pick_file=True)
    controller.flush(timeout=5)

    controller.start(str(tree / "docs"), pick_file=True)
    controller.flush(timeout=5)

    assert signals["finished"] == [None]
    assert signals["listings"][-1][1] == str(tree / "docs")


def test_refresh_emits_updated_listing(make_controller, tree):
    controller, signals = make_controller()
    controller.start(str(tree / "Music"), pick_file=True)
    controller.flush(timeout=5)
    (tree / "Music" / "track2.mp3").write_bytes(b"t")

    controller.refresh()
    controller.flush(timeout=5)

    assert len(signals["listings"]) == 2
    assert [entry.name for entry in signals["listings"][-1][0]] == ["song.mp3", "track2.mp3"]
