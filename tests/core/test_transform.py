"""Tests for pointer-to-image coordinate transforms."""

import pytest

from gardenmap.core.models import ViewTransform
from gardenmap.core.transform import (
    DisplayRect,
    display_rect_for_view,
    to_image_space,
)


def test_to_image_space_scales_by_intrinsic_display_ratio() -> None:
    """Half-size display should map pointer offsets to doubled image pixels."""
    rect = DisplayRect(left=10.0, top=20.0, width=500.0, height=250.0)

    assert to_image_space((10.0, 20.0), rect, (1000, 500)) == (0.0, 0.0)
    assert to_image_space((260.0, 145.0), rect, (1000, 500)) == (500.0, 250.0)
    assert to_image_space((510.0, 270.0), rect, (1000, 500)) == (1000.0, 500.0)


def test_to_image_space_is_linear_in_pointer_offset() -> None:
    """Equal pointer steps should produce equal image-space steps."""
    rect = DisplayRect(0.0, 0.0, 300.0, 150.0)
    first = to_image_space((30.0, 15.0), rect, (900, 450))
    second = to_image_space((60.0, 30.0), rect, (900, 450))
    third = to_image_space((90.0, 45.0), rect, (900, 450))

    assert second[0] - first[0] == pytest.approx(third[0] - second[0])
    assert second[1] - first[1] == pytest.approx(third[1] - second[1])
    assert first == pytest.approx((90.0, 45.0))


def test_to_image_space_rejects_degenerate_rect() -> None:
    """Zero-size display rect cannot be inverted."""
    with pytest.raises(ValueError):
        to_image_space((1.0, 1.0), DisplayRect(0.0, 0.0, 0.0, 10.0), (100, 100))


def test_display_rect_for_identity_view_centers_image() -> None:
    """Identity view shows the image at natural size in the viewport center."""
    rect = display_rect_for_view((800.0, 600.0), (400, 200), ViewTransform())

    assert rect == DisplayRect(200.0, 200.0, 400.0, 200.0)


def test_display_rect_for_view_zooms_about_center_then_pans() -> None:
    """Zoom scales about the image center and pan shifts in screen pixels."""
    view = ViewTransform(scale=2.0, pan_x=30.0, pan_y=-10.0)
    rect = display_rect_for_view((800.0, 600.0), (400, 200), view)

    assert rect == DisplayRect(30.0, 90.0, 800.0, 400.0)
    # Viewport center plus pan still maps to the image center.
    assert to_image_space((430.0, 290.0), rect, (400, 200)) == pytest.approx((200.0, 100.0))
