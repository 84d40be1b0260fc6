"""Pointer-to-image coordinate transform helpers.

The base image is shown at its natural size, centered in the viewport, and
the view transform (zoom about the image center, then pan) is applied to the
whole image container. The marker raster is therefore never resampled by
pan/zoom: converting a pointer position only needs the displayed rectangle
of the image and its intrinsic pixel size.
"""

from __future__ import annotations

from typing import NamedTuple

from gardenmap.core.models import ViewTransform


class DisplayRect(NamedTuple):
    """Displayed bounding box of the image in viewport pixels."""

    left: float
    top: float
    width: float
    height: float


def to_image_space(
    device_point: tuple[float, float],
    display_rect: DisplayRect,
    intrinsic_size: tuple[int, int],
) -> tuple[float, float]:
    """Map a viewport pixel position to image-pixel coordinates.

    Parameters
    ----------
    device_point : tuple[float, float]
        Pointer position relative to the viewport.
    display_rect : DisplayRect
        Where the image currently appears in the viewport, after zoom/pan.
    intrinsic_size : tuple[int, int]
        Natural ``(width, height)`` of the base image.

    Returns
    -------
    tuple[float, float]
        ``(x, y)`` in image-pixel space.

    Raises
    ------
    ValueError
        If the display rectangle has no area.

    Examples
    --------
    >>> to_image_space((60.0, 30.0), DisplayRect(10.0, 10.0, 100.0, 50.0), (200, 100))
    (100.0, 40.0)
    """
    if display_rect.width <= 0 or display_rect.height <= 0:
        raise ValueError(f"display rect must have positive size, got {display_rect}")
    scale_x = intrinsic_size[0] / display_rect.width
    scale_y = intrinsic_size[1] / display_rect.height
    x_coord = (device_point[0] - display_rect.left) * scale_x
    y_coord = (device_point[1] - display_rect.top) * scale_y
    return float(x_coord), float(y_coord)


def display_rect_for_view(
    viewport_size: tuple[float, float],
    intrinsic_size: tuple[int, int],
    view: ViewTransform,
) -> DisplayRect:
    """Compute where the image lands in the viewport for a view transform.

    Parameters
    ----------
    viewport_size : tuple[float, float]
        Viewport ``(width, height)`` in pixels.
    intrinsic_size : tuple[int, int]
        Natural image ``(width, height)``.
    view : ViewTransform
        Current zoom and pan.

    Returns
    -------
    DisplayRect
        Image rectangle after centering, zooming about its center and panning.
    """
    center_x = viewport_size[0] / 2.0 + view.pan_x
    center_y = viewport_size[1] / 2.0 + view.pan_y
    width = intrinsic_size[0] * view.scale
    height = intrinsic_size[1] * view.scale
    return DisplayRect(center_x - width / 2.0, center_y - height / 2.0, width, height)
