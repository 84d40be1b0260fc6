"""Tests for marker canvas mouse routing."""

from __future__ import annotations

import pytest
from PySide6.QtCore import QEvent, QPointF, Qt
from PySide6.QtGui import QImage, QMouseEvent

from gardenmap.core.models import Marker, Project
from gardenmap.core.relocation import Tool
from gardenmap.gui.components.marker_canvas import MarkerCanvas


def _mouse(kind: QEvent.Type, x: float, y: float, buttons=Qt.MouseButton.LeftButton) -> QMouseEvent:
    """Build one left-button mouse event at widget position ``(x, y)``."""
    button = Qt.MouseButton.NoButton if kind == QEvent.Type.MouseMove else Qt.MouseButton.LeftButton
    point = QPointF(x, y)
    return QMouseEvent(kind, point, point, button, buttons, Qt.KeyboardModifier.NoModifier)


def _drag(canvas: MarkerCanvas, start: tuple[float, float], end: tuple[float, float]) -> None:
    canvas.mousePressEvent(_mouse(QEvent.Type.MouseButtonPress, *start))
    canvas.mouseMoveEvent(_mouse(QEvent.Type.MouseMove, *end))
    canvas.mouseReleaseEvent(
        _mouse(QEvent.Type.MouseButtonRelease, *end, buttons=Qt.MouseButton.NoButton)
    )


def _click(canvas: MarkerCanvas, x: float, y: float) -> None:
    canvas.mousePressEvent(_mouse(QEvent.Type.MouseButtonPress, x, y))
    canvas.mouseReleaseEvent(
        _mouse(QEvent.Type.MouseButtonRelease, x, y, buttons=Qt.MouseButton.NoButton)
    )


@pytest.fixture
def canvas(qtbot, make_session) -> MarkerCanvas:
    """Canvas showing a 400x300 image that exactly fills the widget."""
    project = Project(
        id=1,
        name="Plot",
        base_image_ref="",
        markers=[Marker(id=10, x=100.0, y=100.0, label="Fig")],
    )
    session = make_session([project])
    session.load_projects()
    widget = MarkerCanvas(session)
    qtbot.addWidget(widget)
    widget.resize(400, 300)
    image = QImage(400, 300, QImage.Format_RGB32)
    image.fill(Qt.white)
    widget.set_base_image(image)
    return widget


def test_set_base_image_marks_session_loaded(canvas) -> None:
    """Decoded images report their natural size to the session."""
    assert canvas.has_image()
    assert canvas.session.image_loaded
    assert canvas.session.image_size == (400, 300)
    assert canvas.renderer.is_ready()

    canvas.set_base_image(None)
    assert not canvas.has_image()
    assert not canvas.session.image_loaded
    assert canvas.session.image_size is None
    assert not canvas.renderer.is_ready()
    assert canvas.image_point_at(QPointF(10.0, 10.0)) is None


def test_refresh_waits_for_base_image(qtbot, make_session) -> None:
    """Without a decoded image the marker surface is never rendered."""
    project = Project(
        id=1, name="Plot", base_image_ref="", markers=[Marker(id=5, x=10.0, y=10.0, label="A")]
    )
    session = make_session([project])
    session.load_projects()
    widget = MarkerCanvas(session)
    qtbot.addWidget(widget)

    widget.renderer.set_image_size(50, 50)
    widget.refresh()

    assert not session.image_loaded
    assert widget.renderer.surface().pixelColor(10, 10).alpha() == 0
    assert widget.display_rect() is None


def test_image_point_follows_zoom(canvas) -> None:
    """Zooming about the center halves pointer offsets in image space."""
    assert canvas.image_point_at(QPointF(100.0, 50.0)) == pytest.approx((100.0, 50.0))

    canvas.session.set_zoom(2.0)

    assert canvas.image_point_at(QPointF(200.0, 150.0)) == pytest.approx((200.0, 150.0))
    assert canvas.image_point_at(QPointF(300.0, 150.0)) == pytest.approx((250.0, 150.0))


def test_click_selects_existing_marker(canvas, qtbot) -> None:
    """A click near a marker selects it with the marker tool."""
    canvas.session.set_tool(Tool.MARKER)

    with qtbot.waitSignal(canvas.sigMarkerSelected) as blocker:
        _click(canvas, 105.0, 98.0)

    assert blocker.args[0].id == 10
    assert canvas.session.selected_marker_id == 10


def test_click_with_marker_tool_creates_marker(canvas, qtbot) -> None:
    """Empty-space clicks place markers at the image position."""
    canvas.session.set_tool(Tool.MARKER)

    with qtbot.waitSignal(canvas.sigMarkersChanged):
        _click(canvas, 300.0, 200.0)

    created = canvas.session.markers()[-1]
    assert created.position == (300.0, 200.0)
    assert created.label == "Plant 2"


def test_pan_drag_moves_view_without_click(canvas) -> None:
    """A moved press with the pan tool pans and never counts as a click."""
    assert canvas.session.tool == Tool.PAN

    _drag(canvas, (200.0, 200.0), (230.0, 210.0))

    assert (canvas.session.view.pan_x, canvas.session.view.pan_y) == (30.0, 10.0)
    assert len(canvas.session.markers()) == 1


def test_relocation_drag_and_cancel(canvas, qtbot) -> None:
    """Dragging a pending marker moves it until the relocation is cancelled."""
    session = canvas.session
    session.start_relocation(10)

    _drag(canvas, (102.0, 100.0), (150.0, 120.0))

    assert session.store.get(10).position == (150.0, 120.0)
    assert session.view.as_tuple() == (1.0, 0.0, 0.0)
    assert canvas.renderer.surface().pixelColor(150, 120).alpha() == 255

    session.finish_relocation(save=False)
    assert session.store.get(10).position == (100.0, 100.0)


def test_coordinates_are_reported_on_hover(canvas, qtbot) -> None:
    """Moving the pointer emits the image coordinate under it."""
    with qtbot.waitSignal(canvas.sigCoordinateChanged) as blocker:
        canvas.mouseMoveEvent(
            _mouse(QEvent.Type.MouseMove, 40.0, 60.0, buttons=Qt.MouseButton.NoButton)
        )

    assert blocker.args == pytest.approx([40.0, 60.0])
