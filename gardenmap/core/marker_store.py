"""In-memory ordered marker collection for the active project."""

from __future__ import annotations

from dataclasses import fields, replace
from typing import Any, Callable, Iterable, Iterator, Optional

import pandas as pd
from loguru import logger

from gardenmap.core.errors import NotFoundError
from gardenmap.core.hit_test import HIT_RADIUS, find_first_within
from gardenmap.core.models import DEFAULT_MARKER_COLOR, IdFactory, Marker, default_label

DeleteListener = Callable[[int], None]

_PATCHABLE_FIELDS = frozenset(item.name for item in fields(Marker)) - {"id"}

_EXPORT_COLUMNS = [
    "id",
    "x",
    "y",
    "label",
    "notes",
    "color",
    "photo_count",
    "journal_count",
    "linked_plant",
]


class MarkerStore:
    """Ordered marker collection; insertion order is drawing z-order.

    Examples
    --------
    >>> store = MarkerStore()
    >>> marker = store.create((10.0, 20.0))
    >>> marker.label
    'Plant 1'
    >>> store.update(marker.id, {"x": 12.0}).x
    12.0
    """

    def __init__(self, id_factory: Optional[IdFactory] = None) -> None:
        self._markers: list[Marker] = []
        self._id_factory = id_factory or IdFactory()
        self._delete_listeners: list[DeleteListener] = []

    # -- queries ------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._markers)

    def __iter__(self) -> Iterator[Marker]:
        return iter(tuple(self._markers))

    def __contains__(self, marker_id: object) -> bool:
        return any(marker.id == marker_id for marker in self._markers)

    def markers(self) -> tuple[Marker, ...]:
        """Snapshot of the collection in insertion order."""
        return tuple(self._markers)

    def get(self, marker_id: int) -> Marker:
        """Return the marker with ``marker_id``.

        Raises
        ------
        NotFoundError
            If no marker has that id.
        """
        return self._markers[self._index_of(marker_id)]

    def find_near(
        self, image_point: tuple[float, float], radius: float = HIT_RADIUS
    ) -> Optional[Marker]:
        """Return the first marker within ``radius`` of ``image_point``."""
        return find_first_within(self._markers, image_point, radius)

    # -- mutations ----------------------------------------------------------

    def create(
        self,
        position: tuple[float, float],
        default_label_text: Optional[str] = None,
        color: str = DEFAULT_MARKER_COLOR,
    ) -> Marker:
        """Append a new marker at ``position``.

        Parameters
        ----------
        position : tuple[float, float]
            Image-pixel coordinate.
        default_label_text : str, optional
            Label to assign. Defaults to ``"Plant N"`` with N the marker
            count after insertion.
        color : str, optional
            Glyph fill color.

        Returns
        -------
        Marker
            Created marker.
        """
        label = (default_label_text or "").strip() or default_label(len(self._markers) + 1)
        marker = Marker(
            id=self._id_factory.next_id(),
            x=float(position[0]),
            y=float(position[1]),
            label=label,
            color=color or DEFAULT_MARKER_COLOR,
        )
        self._markers.append(marker)
        logger.debug(f"Marker created: {marker.id} '{label}' at ({marker.x:.1f}, {marker.y:.1f})")
        return marker

    def update(self, marker_id: int, patch: dict[str, Any]) -> Marker:
        """Replace fields of one marker in place, keeping its order.

        Parameters
        ----------
        marker_id : int
            Target marker id.
        patch : dict[str, Any]
            Field values to change. ``id`` cannot be patched. A blank
            ``label`` keeps the current label.

        Returns
        -------
        Marker
            The updated marker.

        Raises
        ------
        NotFoundError
            If the marker does not exist.
        ValueError
            If the patch names an unknown or immutable field.
        """
        unknown = set(patch) - _PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"cannot patch marker fields: {sorted(unknown)}")
        index = self._index_of(marker_id)
        current = self._markers[index]
        values = dict(patch)
        if "label" in values and not str(values["label"] or "").strip():
            logger.warning(f"Ignoring blank label for marker {marker_id}")
            values["label"] = current.label
        for key in ("x", "y"):
            if key in values:
                values[key] = float(values[key])
        updated = replace(current, **values)
        self._markers[index] = updated
        return updated

    def delete(self, marker_id: int) -> Marker:
        """Remove a marker and notify delete listeners.

        Raises
        ------
        NotFoundError
            If the marker does not exist.
        """
        index = self._index_of(marker_id)
        removed = self._markers.pop(index)
        logger.debug(f"Marker deleted: {marker_id}")
        for listener in list(self._delete_listeners):
            listener(marker_id)
        return removed

    def reset(self, markers: Iterable[Marker]) -> None:
        """Replace the whole collection.

        Only the project lifecycle calls this; it does not notify delete
        listeners because the session resets every dependent state itself.
        """
        self._markers = [marker.copy() for marker in markers]
        for marker in self._markers:
            self._id_factory.observe(marker.id)

    # -- listeners ----------------------------------------------------------

    def add_delete_listener(self, listener: DeleteListener) -> None:
        """Register a callback invoked with the id of each deleted marker."""
        if listener not in self._delete_listeners:
            self._delete_listeners.append(listener)

    # -- export -------------------------------------------------------------

    def to_dataframe(self) -> pd.DataFrame:
        """Convert markers to a DataFrame in insertion order.

        Returns
        -------
        pandas.DataFrame
            Table with columns ``id, x, y, label, notes, color,
            photo_count, journal_count, linked_plant``.
        """
        rows = [
            {
                "id": marker.id,
                "x": marker.x,
                "y": marker.y,
                "label": marker.label,
                "notes": marker.notes,
                "color": marker.color,
                "photo_count": len(marker.photos),
                "journal_count": len(marker.journal),
                "linked_plant": (
                    marker.linked_reference.display_name
                    if marker.linked_reference is not None
                    else None
                ),
            }
            for marker in self._markers
        ]
        if not rows:
            return pd.DataFrame(columns=_EXPORT_COLUMNS)
        return pd.DataFrame(rows)[_EXPORT_COLUMNS]

    def _index_of(self, marker_id: int) -> int:
        for index, marker in enumerate(self._markers):
            if marker.id == marker_id:
                return index
        raise NotFoundError("marker", marker_id)
