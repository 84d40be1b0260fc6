"""
Marker canvas widget.

Shows the base image of the active project with the marker surface on top
and routes mouse input to the editor session:

- press/move/release drive the relocation state machine (pan or drag)
- a release without movement is a click (select or place a marker)
- the wheel steps the zoom like the toolbar buttons
"""

from __future__ import annotations

from typing import Optional

import pyqtgraph as pg
from loguru import logger
from PySide6.QtCore import QPointF, QRectF, Qt, Signal
from PySide6.QtGui import QImage, QMouseEvent, QPainter, QWheelEvent
from PySide6.QtWidgets import QWidget

from gardenmap.core.errors import GardenMapError
from gardenmap.core.relocation import GestureKind
from gardenmap.core.renderer import MarkerRenderer
from gardenmap.core.session import EditorSession
from gardenmap.core.transform import DisplayRect, display_rect_for_view, to_image_space

BACKGROUND_COLOR = "#1f2937"

# Pointer travel (screen px) below which a press/release counts as a click.
CLICK_SLOP = 3.0


class MarkerCanvas(QWidget):
    """
    Base image viewer with live marker overlay.

    Signals
    -------
    sigCoordinateChanged : Signal(float, float)
        Pointer position in image pixels.
    sigZoomChanged : Signal(float)
        New view scale after a wheel zoom.
    sigMarkerSelected : Signal(object)
        Marker selected or created by a click, or ``None``.
    sigMarkersChanged : Signal()
        Marker collection changed through canvas input.
    sigError : Signal(str)
        A session operation failed.
    """

    sigCoordinateChanged = Signal(float, float)
    sigZoomChanged = Signal(float)
    sigMarkerSelected = Signal(object)
    sigMarkersChanged = Signal()
    sigError = Signal(str)

    def __init__(self, session: EditorSession, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.session = session
        self.renderer = MarkerRenderer()
        self._base_image: Optional[QImage] = None
        self._press_screen: Optional[QPointF] = None
        self._press_image: Optional[tuple[float, float]] = None
        self._moved = False

        self.setMouseTracking(True)
        self.setMinimumSize(320, 240)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

    # ------------------------------------------------------------------
    # Image lifecycle
    # ------------------------------------------------------------------

    def set_base_image(self, image: Optional[QImage]) -> None:
        """Show a decoded base image, or clear the canvas with ``None``."""
        if image is None or image.isNull():
            self._base_image = None
            self.session.clear_image()
            self.renderer.clear_image()
            self.update()
            return
        self._base_image = image
        self.session.mark_image_loaded(image.width(), image.height())
        self.renderer.set_image_size(image.width(), image.height())
        logger.debug(f"Base image shown: {image.width()}x{image.height()}")
        self.refresh()

    def has_image(self) -> bool:
        return self._base_image is not None

    def refresh(self) -> None:
        """Redraw the marker surface from the session and repaint.

        Nothing is rendered until the session has a decoded base image.
        """
        if self.session.image_loaded:
            self.renderer.render(self.session.markers(), self.session.drag_target_id)
        self.update()

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def display_rect(self) -> Optional[DisplayRect]:
        image_size = self.session.image_size
        if self._base_image is None or image_size is None:
            return None
        return display_rect_for_view((self.width(), self.height()), image_size, self.session.view)

    def image_point_at(self, pos: QPointF) -> Optional[tuple[float, float]]:
        """Map a widget position to image pixels, ``None`` without image."""
        rect = self.display_rect()
        if rect is None:
            return None
        try:
            return to_image_space((pos.x(), pos.y()), rect, self.session.image_size)
        except ValueError:
            return None

    # ------------------------------------------------------------------
    # Painting
    # ------------------------------------------------------------------

    def paintEvent(self, event) -> None:
        painter = QPainter(self)
        try:
            painter.fillRect(self.rect(), pg.mkColor(BACKGROUND_COLOR))
            rect = self.display_rect()
            if rect is None:
                return
            painter.setRenderHint(QPainter.SmoothPixmapTransform, True)
            target = QRectF(rect.left, rect.top, rect.width, rect.height)
            painter.drawImage(target, self._base_image)
            if self.renderer.is_ready():
                painter.drawImage(target, self.renderer.surface())
        finally:
            painter.end()

    # ------------------------------------------------------------------
    # Mouse input
    # ------------------------------------------------------------------

    def mousePressEvent(self, event: QMouseEvent) -> None:
        if event.button() != Qt.MouseButton.LeftButton:
            super().mousePressEvent(event)
            return
        pos = event.position()
        image_point = self.image_point_at(pos)
        if image_point is None:
            return
        self._press_screen = pos
        self._press_image = image_point
        self._moved = False
        self._run(lambda: self.session.pointer_down(image_point, (pos.x(), pos.y())))

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        pos = event.position()
        image_point = self.image_point_at(pos)
        if image_point is None:
            return
        self.sigCoordinateChanged.emit(*image_point)
        if self._press_screen is None:
            return
        delta = pos - self._press_screen
        if abs(delta.x()) + abs(delta.y()) > CLICK_SLOP:
            self._moved = True
        changed = self._run(
            lambda: self.session.pointer_move(image_point, (pos.x(), pos.y()))
        )
        if not changed:
            return
        if self.session.relocation.state.kind == GestureKind.DRAGGING:
            self.refresh()
        else:
            self.update()

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        if event.button() != Qt.MouseButton.LeftButton or self._press_screen is None:
            super().mouseReleaseEvent(event)
            return
        was_click = not self._moved
        press_image = self._press_image
        self._end_gesture()
        if was_click and press_image is not None:
            self._handle_click(press_image)

    def leaveEvent(self, event) -> None:
        if self._press_screen is not None:
            self._end_gesture()
        super().leaveEvent(event)

    def wheelEvent(self, event: QWheelEvent) -> None:
        steps = event.angleDelta().y()
        if steps == 0 or self._base_image is None:
            return
        scale = self.session.zoom_in() if steps > 0 else self.session.zoom_out()
        self.sigZoomChanged.emit(scale)
        self.update()

    def _end_gesture(self) -> None:
        self.session.pointer_up()
        self._press_screen = None
        self._press_image = None
        self._moved = False
        self.refresh()

    def _handle_click(self, image_point: tuple[float, float]) -> None:
        count_before = len(self.session.store)
        marker = self._run(lambda: self.session.handle_click(image_point))
        if marker is None:
            return
        if len(self.session.store) != count_before:
            self.sigMarkersChanged.emit()
        self.sigMarkerSelected.emit(marker)
        self.refresh()

    def _run(self, action):
        try:
            return action()
        except GardenMapError as exc:
            logger.warning(f"Canvas action failed: {exc}")
            self.sigError.emit(str(exc))
            return None
