"""Tests for wire-format conversion and id generation."""

from gardenmap.core.models import (
    MAX_SCALE,
    MIN_SCALE,
    ExternalReference,
    IdFactory,
    JournalEntry,
    Marker,
    Project,
    ViewTransform,
    projects_from_dicts,
)


def test_project_dict_uses_stored_key_names() -> None:
    """Serialized projects keep the garden-data.json key names."""
    marker = Marker(
        id=11,
        x=1.5,
        y=2.5,
        label="Fig",
        notes="Near fence",
        photos=["uploads/a.jpg"],
        journal=[JournalEntry(id=12, timestamp=12, text="Pruned")],
        linked_reference=ExternalReference(
            source="wikipedia",
            display_name="Fig",
            extra={"description": "Ficus carica"},
        ),
    )
    project = Project(id=1, name="Backyard", base_image_ref="uploads/base.jpg", markers=[marker])

    data = project.to_dict()

    assert set(data) == {"id", "name", "image", "markers", "globalJournalEntries"}
    marker_data = data["markers"][0]
    assert marker_data["description"] == "Near fence"
    assert marker_data["journalEntries"][0]["text"] == "Pruned"
    assert marker_data["linkedPlant"]["displayName"] == "Fig"
    assert marker_data["linkedPlant"]["description"] == "Ficus carica"
    assert Project.from_dict(data) == project


def test_marker_without_label_is_repaired_by_position() -> None:
    """Blank labels become Plant N from their index in the collection."""
    project = Project.from_dict(
        {
            "id": 1,
            "name": "Plot",
            "image": "",
            "markers": [
                {"id": 2, "x": 0, "y": 0, "label": "Rose"},
                {"id": 3, "x": 5, "y": 5, "label": "  "},
            ],
        }
    )

    assert [marker.label for marker in project.markers] == ["Rose", "Plant 2"]
    assert project.markers[1].notes == ""
    assert project.markers[1].linked_reference is None


def test_projects_from_dicts_repairs_missing_ids() -> None:
    """Projects without an id get a fresh one; non-objects are dropped."""
    factory = IdFactory(clock=lambda: 900)
    projects = projects_from_dicts(
        [{"id": 5, "name": "Ok"}, {"name": "No id"}, "junk"], id_factory=factory
    )

    assert [(project.id, project.name) for project in projects] == [(5, "Ok"), (900, "No id")]
    assert projects[0].markers == [] and projects[0].journal == []


def test_marker_without_id_gets_fresh_id() -> None:
    """A missing or non-numeric marker id is replaced, not fatal."""
    factory = IdFactory(clock=lambda: 700)
    project = Project.from_dict(
        {
            "id": 1,
            "name": "Bad",
            "markers": [
                {"x": 1, "y": 2, "label": "No id"},
                {"id": "abc", "x": 3, "y": 4, "label": "Text id"},
                {"id": 8, "x": 5, "y": 6, "label": "Fine"},
            ],
        },
        id_factory=factory,
    )

    assert [marker.id for marker in project.markers] == [700, 701, 8]
    assert project.markers[0].position == (1.0, 2.0)


def test_null_or_text_coordinates_become_zero() -> None:
    """Coordinates that are null or not numbers load as 0.0."""
    marker = Marker.from_dict({"id": 3, "x": None, "y": "north", "label": "Fig"})

    assert marker.position == (0.0, 0.0)
    assert marker.label == "Fig"


def test_unrepairable_marker_is_skipped() -> None:
    """A marker with a broken nested field is dropped; its siblings stay."""
    project = Project.from_dict(
        {
            "id": 1,
            "name": "Plot",
            "markers": [
                {"id": 2, "x": 0, "y": 0, "label": "Keep"},
                {"id": 3, "x": 0, "y": 0, "label": "Broken", "photos": 5},
                {"id": 4, "x": 0, "y": 0, "label": "Bad journal", "journalEntries": ["junk"]},
            ],
        }
    )

    assert [marker.id for marker in project.markers] == [2]


def test_project_copy_is_independent() -> None:
    """Mutating a copied marker does not touch the original project."""
    project = Project(
        id=1, name="P", base_image_ref="", markers=[Marker(id=2, x=0.0, y=0.0, label="A")]
    )
    clone = project.copy()
    clone.markers[0].photos.append("uploads/new.jpg")
    clone.markers[0].x = 9.0

    assert project.markers[0].photos == []
    assert project.markers[0].x == 0.0


def test_id_factory_observes_external_ids() -> None:
    """Observed ids push later ids past them."""
    factory = IdFactory(clock=lambda: 100)
    factory.observe(500)
    factory.observe("not-a-number")

    assert factory.next_id() == 501
    assert factory.next_id() == 502


def test_view_transform_clamps_scale() -> None:
    """Zoom stays within the allowed range."""
    view = ViewTransform(scale=10.0)
    assert view.scale == MAX_SCALE

    view.zoom_by(-100.0)
    assert view.scale == MIN_SCALE

    view.set_pan(4.0, 5.0)
    view.reset()
    assert view.as_tuple() == (1.0, 0.0, 0.0)
