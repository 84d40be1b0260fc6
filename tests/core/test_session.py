"""Tests for the editor session lifecycle and persistence rules."""

import pytest

from gardenmap.core.errors import InvalidStateError, NotFoundError
from gardenmap.core.models import ExternalReference, Marker, Project
from gardenmap.core.relocation import GestureKind, Tool
from gardenmap.core.session import BASE_IMAGE_MAX_WIDTH, PHOTO_MAX_WIDTH


def _project(project_id: int, marker_count: int = 0, name: str = "") -> Project:
    markers = [
        Marker(id=project_id * 100 + index, x=10.0 * index, y=10.0 * index, label=f"P{index}")
        for index in range(marker_count)
    ]
    return Project(
        id=project_id,
        name=name or f"Project {project_id}",
        base_image_ref=f"uploads/{project_id}.jpg",
        markers=markers,
    )


def test_load_activates_first_project(make_session) -> None:
    """Loading selects the first stored project."""
    session = make_session([_project(1, 2), _project(2)])

    session.load_projects()

    assert session.active_project_id == 1
    assert len(session.markers()) == 2
    assert session.image_ref == "uploads/1.jpg"


def test_switch_project_resets_working_state(make_session) -> None:
    """Switching replaces markers and restores the identity view."""
    session = make_session([_project(1, 5), _project(2, 0)])
    session.load_projects()
    session.set_zoom(2.0)
    session.view.set_pan(40.0, 10.0)
    session.selected_marker_id = session.markers()[0].id
    session.mark_image_loaded(800, 600)

    session.switch_project(2)

    assert session.markers() == ()
    assert session.view.as_tuple() == (1.0, 0.0, 0.0)
    assert session.selected_marker_id is None
    assert not session.image_loaded
    with pytest.raises(NotFoundError):
        session.switch_project(3)


def test_switch_project_drops_pending_relocation(make_session) -> None:
    """A relocation never survives a project switch."""
    session = make_session([_project(1, 1), _project(2, 1)])
    session.load_projects()
    session.start_relocation(100)

    session.switch_project(2)

    assert not session.is_relocating()
    assert session.drag_target_id is None


def test_marker_tool_click_creates_and_saves(make_session, make_persistence) -> None:
    """Clicking empty space with the marker tool places a marker."""
    persistence = make_persistence([_project(1)])
    session = make_session(persistence=persistence)
    session.load_projects()
    session.default_marker_color = "#ff0000"

    assert session.handle_click((20.0, 20.0)) is None
    session.set_tool("marker")
    created = session.handle_click((20.0, 20.0))

    assert created.label == "Plant 1"
    assert created.color == "#ff0000"
    assert session.selected_marker_id == created.id
    assert persistence.save_calls == 1
    assert persistence.stored[0].markers[0].position == (20.0, 20.0)

    # Clicking near it selects instead of creating another one.
    assert session.handle_click((25.0, 22.0)).id == created.id
    assert len(session.markers()) == 1


def test_pan_tool_click_ignores_markers(make_session) -> None:
    """Clicking a marker while panning neither selects nor creates."""
    session = make_session([_project(1, 2)])
    session.load_projects()

    assert session.tool == Tool.PAN
    assert session.handle_click((0.0, 0.0)) is None
    assert session.selected_marker_id is None
    assert len(session.markers()) == 2

    session.set_tool(Tool.MARKER)
    assert session.handle_click((0.0, 0.0)).id == 100


def test_failed_load_blocks_saving(make_session, make_persistence) -> None:
    """An unreadable store is never overwritten by later edits."""
    persistence = make_persistence([_project(1)], fail_load=True)
    session = make_session(persistence=persistence)

    assert session.load_projects() == []
    assert session.save_blocked
    session.import_image("Fresh", "data:image/png;base64,AAAA")

    assert persistence.save_calls == 0
    assert [project.name for project in session.projects] == ["Fresh"]
    assert [project.id for project in persistence.stored] == [1]


def test_click_without_project_does_nothing(make_session) -> None:
    """No project means no marker placement."""
    session = make_session()
    session.load_projects()
    session.set_tool(Tool.MARKER)

    assert session.handle_click((1.0, 1.0)) is None
    assert session.markers() == ()


def test_save_is_deferred_while_relocating(make_session, make_persistence) -> None:
    """Edits during a relocation are not persisted until it finishes."""
    persistence = make_persistence([_project(1, 1)])
    session = make_session(persistence=persistence)
    session.load_projects()

    session.start_relocation(100)
    session.pointer_down((0.0, 0.0), (0.0, 0.0))
    session.pointer_move((60.0, 60.0), (0.0, 0.0))
    session.pointer_up()

    assert session.save() is False
    assert persistence.save_calls == 0
    assert persistence.stored[0].markers[0].position == (0.0, 0.0)
    assert session.handle_click((300.0, 300.0)) is None

    moved = session.finish_relocation(save=True)
    assert moved.position == (60.0, 60.0)
    assert persistence.save_calls == 1
    assert persistence.stored[0].markers[0].position == (60.0, 60.0)


def test_cancel_restores_last_saved_position(make_session, make_persistence) -> None:
    """Cancel restores the persisted position, not an unsaved edit."""
    persistence = make_persistence([_project(1, 2)])
    session = make_session(persistence=persistence)
    session.load_projects()
    marker_id = 101

    session.start_relocation(marker_id)
    for point in [(60.0, 60.0), (70.0, 40.0), (55.0, 55.0)]:
        session.pointer_down(session.store.get(marker_id).position, (0.0, 0.0))
        session.pointer_move(point, (0.0, 0.0))
        session.pointer_up()

    restored = session.finish_relocation(save=False)

    assert restored.position == (10.0, 10.0)
    assert not session.is_relocating()
    assert session.pointer_down((0.0, 0.0), (0.0, 0.0)).kind == GestureKind.PANNING


def test_persistence_failure_keeps_state(make_session, failing_persistence) -> None:
    """A failing save is reported but working state stays intact."""
    failing_persistence.stored = [_project(1)]
    session = make_session(persistence=failing_persistence)
    session.load_projects()
    session.set_tool(Tool.MARKER)

    marker = session.handle_click((5.0, 5.0))

    assert marker is not None
    assert failing_persistence.save_calls == 1
    assert session.save() is False
    assert [item.id for item in session.markers()] == [marker.id]


def test_import_rename_and_delete_projects(make_session, make_persistence) -> None:
    """Project lifecycle operations keep one active project when possible."""
    persistence = make_persistence([_project(1, 1)])
    session = make_session(persistence=persistence)
    session.load_projects()

    created = session.import_image("/photos/front-yard.png", b"raw-bytes")

    assert created.name == "front-yard"
    assert created.base_image_ref == f"resized:b'raw-bytes'@{BASE_IMAGE_MAX_WIDTH}"
    assert session.active_project_id == created.id
    assert [project.id for project in persistence.stored] == [1, created.id]

    assert session.rename_project("  ") is False
    assert session.rename_project("Front") is True
    assert persistence.stored[1].name == "Front"

    assert session.delete_current_project().id == 1
    assert session.delete_current_project() is None
    assert session.active_project is None
    assert persistence.stored == []
    with pytest.raises(InvalidStateError):
        session.rename_project("Nothing")


def test_import_keeps_previous_project_edits(make_session, make_persistence) -> None:
    """Working markers are written back before switching to a new project."""
    persistence = make_persistence([_project(1)])
    session = make_session(persistence=persistence)
    session.load_projects()
    session.set_tool(Tool.MARKER)
    session.handle_click((3.0, 4.0))

    session.import_image("new.jpg", "data:image/png;base64,AAAA")

    assert len(persistence.stored[0].markers) == 1
    assert session.markers() == ()


def test_marker_details_photos_and_references(make_session) -> None:
    """Detail edits, photos and plant links are stored on the marker."""
    session = make_session([_project(1, 1)])
    session.load_projects()
    reference = ExternalReference(source="wikipedia", display_name="Tomato")

    session.update_marker_details(100, label="Tomato", notes="Cherry", color="#123456")
    session.add_marker_photo(100, "photo-a")
    session.add_marker_photo(100, "photo-b")
    session.remove_marker_photo(100, 0)
    marker = session.link_reference(100, reference)

    assert (marker.label, marker.notes, marker.color) == ("Tomato", "Cherry", "#123456")
    assert marker.photos == [f"resized:photo-b@{PHOTO_MAX_WIDTH}"]
    assert marker.linked_reference == reference
    with pytest.raises(NotFoundError):
        session.remove_marker_photo(100, 5)

    assert session.link_reference(100, None).linked_reference is None


def test_marker_journal_is_newest_first(make_session) -> None:
    """Marker history entries are prepended and deletable."""
    session = make_session([_project(1, 1)])
    session.load_projects()

    first = session.add_marker_journal_entry(100, "Sowed")
    second = session.add_marker_journal_entry(100, "Sprouted", ["pic"])
    assert session.add_marker_journal_entry(100, "   ") is None

    journal = session.store.get(100).journal
    assert [entry.id for entry in journal] == [second.id, first.id]
    assert journal[0].photos == (f"resized:pic@{PHOTO_MAX_WIDTH}",)

    session.delete_marker_journal_entry(100, first.id)
    assert [entry.id for entry in session.store.get(100).journal] == [second.id]


def test_garden_journal_round_trip(make_session, make_persistence) -> None:
    """Garden journal entries are persisted with the project."""
    persistence = make_persistence([_project(1)])
    session = make_session(persistence=persistence)
    session.load_projects()

    entry = session.add_journal_entry("Spring cleanup")
    assert [item.text for item in persistence.stored[0].journal] == ["Spring cleanup"]

    session.delete_journal_entry(entry.id)
    assert persistence.stored[0].journal == []
    assert session.journal_entries() == []


def test_deleting_selected_marker_clears_selection(make_session) -> None:
    """Selection never points at a deleted marker."""
    session = make_session([_project(1, 2)])
    session.load_projects()
    session.set_tool(Tool.MARKER)
    session.handle_click((0.0, 0.0))
    assert session.selected_marker().id == 100

    session.delete_marker(100)

    assert session.selected_marker_id is None
    assert session.selected_marker() is None


def test_zoom_steps_and_clamps(make_session) -> None:
    """Zoom buttons step by half and stay within range."""
    session = make_session([_project(1)])
    session.load_projects()

    assert session.zoom_in() == 1.5
    assert session.zoom_out() == 1.0
    assert session.set_zoom(50.0) == 5.0
    session.reset_view()
    assert session.view.as_tuple() == (1.0, 0.0, 0.0)
