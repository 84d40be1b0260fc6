"""Raster rendering of marker glyphs and labels.

Markers are drawn onto a transparent ``QImage`` the size of the base image,
in image-pixel coordinates. Pan and zoom are applied later, when the canvas
widget composites that surface over the base image.
"""

from __future__ import annotations

from typing import Iterable, NamedTuple, Optional

import pyqtgraph as pg
from loguru import logger
from PySide6.QtCore import QPointF, QRectF, Qt
from PySide6.QtGui import QFont, QFontMetricsF, QImage, QPainter, QRadialGradient

from gardenmap.core.errors import ImageNotReadyError
from gardenmap.core.models import Marker

MARKER_RADIUS = 8.0
DRAG_MARKER_RADIUS = 12.0
OUTLINE_WIDTH = 3.0
GLOW_RADIUS = 12.0
DRAG_GLOW_RADIUS = 20.0
GLOW_ALPHA = 110
HIGHLIGHT_COLOR = "#fbbf24"

LABEL_FONT_FAMILY = "DM Sans"
LABEL_FONT_PX = 18
LABEL_PADDING = 6.0
LABEL_HEIGHT = 26.0
LABEL_OFFSET = 14.0
LABEL_CORNER_RADIUS = 6.0
LABEL_BACKGROUND = (0, 0, 0, int(round(0.85 * 255)))


class LabelBox(NamedTuple):
    """Label rectangle in image-pixel space."""

    left: float
    top: float
    width: float
    height: float
    flipped: bool


def compute_label_box(
    x: float, y: float, text_width: float, image_width: float
) -> LabelBox:
    """Place a label box next to a marker glyph.

    The box sits to the right of the glyph and is flipped to its left when
    it would overflow the right image edge.

    Parameters
    ----------
    x, y : float
        Marker position in image pixels.
    text_width : float
        Measured label text width.
    image_width : float
        Width of the raster surface.

    Returns
    -------
    LabelBox
        Box geometry.

    Examples
    --------
    >>> compute_label_box(10.0, 50.0, 40.0, 200.0)
    LabelBox(left=24.0, top=37.0, width=52.0, height=26.0, flipped=False)
    """
    width = float(text_width) + 2 * LABEL_PADDING
    top = y - LABEL_HEIGHT / 2
    left = x + LABEL_OFFSET
    flipped = left + width > image_width
    if flipped:
        left = x - LABEL_OFFSET - width
    return LabelBox(float(left), float(top), width, LABEL_HEIGHT, flipped)


def label_font() -> QFont:
    font = QFont(LABEL_FONT_FAMILY)
    font.setPixelSize(LABEL_FONT_PX)
    font.setBold(True)
    return font


def measure_label(text: str, font: Optional[QFont] = None) -> float:
    """Return the rendered width of ``text`` in pixels."""
    return QFontMetricsF(font or label_font()).horizontalAdvance(text)


def _draw_glow(
    painter: QPainter, center: QPointF, radius: float, glow: float, color, alpha: int = 255
) -> None:
    gradient = QRadialGradient(center, radius + glow)
    inner = pg.mkColor(color)
    inner.setAlpha(alpha)
    outer = pg.mkColor(color)
    outer.setAlpha(0)
    gradient.setColorAt(radius / (radius + glow), inner)
    gradient.setColorAt(1.0, outer)
    painter.setPen(Qt.NoPen)
    painter.setBrush(gradient)
    painter.drawEllipse(center, radius + glow, radius + glow)


def _draw_marker(
    painter: QPainter, marker: Marker, is_target: bool, font: QFont, image_width: float
) -> None:
    center = QPointF(marker.x, marker.y)
    radius = DRAG_MARKER_RADIUS if is_target else MARKER_RADIUS
    if is_target:
        _draw_glow(painter, center, radius, DRAG_GLOW_RADIUS, HIGHLIGHT_COLOR)
    else:
        _draw_glow(painter, center, radius, GLOW_RADIUS, marker.color, GLOW_ALPHA)

    fill = HIGHLIGHT_COLOR if is_target else marker.color
    painter.setBrush(pg.mkBrush(fill))
    painter.setPen(pg.mkPen("w", width=OUTLINE_WIDTH))
    painter.drawEllipse(center, radius, radius)

    box = compute_label_box(marker.x, marker.y, measure_label(marker.label, font), image_width)
    rect = QRectF(box.left, box.top, box.width, box.height)
    painter.setPen(Qt.NoPen)
    painter.setBrush(pg.mkBrush(LABEL_BACKGROUND))
    painter.drawRoundedRect(rect, LABEL_CORNER_RADIUS, LABEL_CORNER_RADIUS)
    painter.setPen(pg.mkPen("w"))
    painter.drawText(
        rect.adjusted(LABEL_PADDING, 0, -LABEL_PADDING, 0),
        int(Qt.AlignLeft | Qt.AlignVCenter),
        marker.label,
    )


def render_markers(
    surface: QImage,
    markers: Iterable[Marker],
    drag_target_id: Optional[int] = None,
) -> None:
    """Clear ``surface`` and draw every marker in collection order.

    Later markers paint over earlier ones. Given the same inputs the output
    is pixel-identical.
    """
    surface.fill(Qt.transparent)
    font = label_font()
    painter = QPainter(surface)
    try:
        painter.setRenderHint(QPainter.Antialiasing, True)
        painter.setRenderHint(QPainter.TextAntialiasing, True)
        painter.setFont(font)
        for marker in markers:
            _draw_marker(
                painter,
                marker,
                is_target=marker.id == drag_target_id,
                font=font,
                image_width=surface.width(),
            )
    finally:
        painter.end()


class MarkerRenderer:
    """Own the marker surface and redraw it on demand.

    The surface only exists once the base image has decoded and its size is
    known through :meth:`set_image_size`.
    """

    def __init__(self) -> None:
        self._surface: Optional[QImage] = None

    def is_ready(self) -> bool:
        return self._surface is not None

    def set_image_size(self, width: int, height: int) -> None:
        """Allocate a transparent surface matching the base image."""
        if width <= 0 or height <= 0:
            raise ValueError(f"image size must be positive, got {width}x{height}")
        self._surface = QImage(int(width), int(height), QImage.Format_ARGB32_Premultiplied)
        self._surface.fill(Qt.transparent)
        logger.debug(f"Marker surface sized to {width}x{height}")

    def clear_image(self) -> None:
        """Drop the surface, e.g. when the active project changes."""
        self._surface = None

    def render(self, markers: Iterable[Marker], drag_target_id: Optional[int] = None) -> bool:
        """Redraw all markers; return False when deferred for a missing image."""
        if self._surface is None:
            logger.debug("Render deferred: base image not loaded yet")
            return False
        render_markers(self._surface, markers, drag_target_id)
        return True

    def surface(self) -> QImage:
        """Return the current surface.

        Raises
        ------
        ImageNotReadyError
            If no base image size is known yet.
        """
        if self._surface is None:
            raise ImageNotReadyError("marker surface requested before the image loaded")
        return self._surface
