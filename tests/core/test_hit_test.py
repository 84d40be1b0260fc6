"""Tests for first-within-radius marker hit testing."""

from gardenmap.core.hit_test import HIT_RADIUS, find_first_within
from gardenmap.core.models import Marker


def _marker(marker_id: int, x: float, y: float) -> Marker:
    return Marker(id=marker_id, x=x, y=y, label=f"M{marker_id}")


def test_first_inserted_marker_wins_over_nearest() -> None:
    """Overlapping markers resolve to insertion order, not distance."""
    marker_a = _marker(1, 100.0, 100.0)
    marker_b = _marker(2, 105.0, 105.0)

    assert find_first_within([marker_a, marker_b], (102.0, 102.0)) is marker_a
    # B is nearer to this point but A is still within radius.
    assert find_first_within([marker_a, marker_b], (104.0, 104.0)) is marker_a
    assert find_first_within([marker_b, marker_a], (102.0, 102.0)) is marker_b


def test_radius_is_exclusive() -> None:
    """A marker exactly at the radius does not count as a hit."""
    marker = _marker(1, 0.0, 0.0)

    assert find_first_within([marker], (HIT_RADIUS, 0.0)) is None
    assert find_first_within([marker], (HIT_RADIUS - 0.01, 0.0)) is marker


def test_empty_collection_returns_none() -> None:
    """No markers means no hit."""
    assert find_first_within([], (10.0, 10.0)) is None


def test_custom_radius() -> None:
    """Radius argument overrides the default hit radius."""
    marker = _marker(1, 50.0, 50.0)

    assert find_first_within([marker], (60.0, 50.0), radius=5.0) is None
    assert find_first_within([marker], (60.0, 50.0), radius=15.0) is marker
