"""Data model for garden projects, markers and journal entries.

The JSON wire format produced by ``to_dict`` keeps the key names of the
``garden-data.json`` files written by earlier releases, so existing data
directories load unchanged.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Iterable, Optional

from loguru import logger

ImageRef = str

DEFAULT_MARKER_COLOR = "#10b981"

MIN_SCALE = 0.2
MAX_SCALE = 5.0


def default_label(index: int) -> str:
    """Return the auto-assigned label for the ``index``-th marker (1-based)."""
    return f"Plant {index}"


def now_ms() -> int:
    """Current wall-clock time in milliseconds since the Unix epoch."""
    return int(time.time() * 1000)


def _as_float(value: Any, default: float = 0.0) -> float:
    """Coerce a stored coordinate; ``None`` and non-numeric values give ``default``."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_id(value: Any) -> Optional[int]:
    """Coerce a stored id, or ``None`` when it is missing or not an integer."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def clamp_scale(scale: float) -> float:
    """Clamp a zoom factor into ``[MIN_SCALE, MAX_SCALE]``."""
    if scale < MIN_SCALE:
        return MIN_SCALE
    if scale > MAX_SCALE:
        return MAX_SCALE
    return float(scale)


class IdFactory:
    """Issue strictly increasing, timestamp-based integer ids.

    Ids start from the current time in milliseconds and are bumped by one
    whenever two requests land in the same millisecond, so no two ids issued
    by one factory ever collide.

    Parameters
    ----------
    clock : Callable[[], int], optional
        Millisecond clock, by default :func:`now_ms`.

    Examples
    --------
    >>> factory = IdFactory(clock=lambda: 1000)
    >>> factory.next_id(), factory.next_id()
    (1000, 1001)
    """

    def __init__(self, clock: Optional[Callable[[], int]] = None) -> None:
        self._clock = clock or now_ms
        self._last_id = 0

    def next_id(self) -> int:
        """Return a new id larger than every id issued or observed so far."""
        candidate = int(self._clock())
        if candidate <= self._last_id:
            candidate = self._last_id + 1
        self._last_id = candidate
        return candidate

    def observe(self, used_id: Any) -> None:
        """Record an externally created id so later ids never collide with it."""
        try:
            value = int(used_id)
        except (TypeError, ValueError):
            return
        if value > self._last_id:
            self._last_id = value


@dataclass(frozen=True)
class ExternalReference:
    """Plant catalog metadata attached to a marker.

    The core never interprets this object; provider specific keys that are
    not modelled explicitly are kept in ``extra`` so they round-trip.
    """

    source: str
    display_name: str
    scientific_name: Optional[str] = None
    image_url: Optional[str] = None
    info_url: Optional[str] = None
    extra: dict = field(default_factory=dict, hash=False)

    def to_dict(self) -> dict:
        data = dict(self.extra)
        data.update(
            {
                "source": self.source,
                "displayName": self.display_name,
                "scientificName": self.scientific_name,
                "imageUrl": self.image_url,
                "infoUrl": self.info_url,
            }
        )
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ExternalReference":
        known = {"source", "displayName", "scientificName", "imageUrl", "infoUrl"}
        return cls(
            source=str(data.get("source") or "unknown"),
            display_name=str(data.get("displayName") or ""),
            scientific_name=data.get("scientificName"),
            image_url=data.get("imageUrl"),
            info_url=data.get("infoUrl"),
            extra={key: value for key, value in data.items() if key not in known},
        )


@dataclass(frozen=True)
class JournalEntry:
    """Timestamped note with optional photos.

    Parameters
    ----------
    id : int
        Unique entry id.
    timestamp : int
        Creation time in milliseconds since the Unix epoch.
    text : str
        Freeform note text.
    photos : tuple[str, ...]
        Image references attached to the entry.
    """

    id: int
    timestamp: int
    text: str
    photos: tuple[ImageRef, ...] = ()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "text": self.text,
            "photos": list(self.photos),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "JournalEntry":
        timestamp = int(data.get("timestamp") or data.get("id") or 0)
        return cls(
            id=int(data.get("id") or timestamp),
            timestamp=timestamp,
            text=str(data.get("text") or ""),
            photos=tuple(data.get("photos") or ()),
        )


@dataclass
class Marker:
    """Point annotation on the base image.

    Parameters
    ----------
    id : int
        Unique, immutable marker id within a project.
    x, y : float
        Position in image-pixel space.
    label : str
        Display label drawn next to the glyph.
    notes : str
        Freeform notes.
    photos : list[str]
        Photo image references.
    journal : list[JournalEntry]
        Marker history log, newest entries first.
    linked_reference : ExternalReference | None
        Plant catalog reference chosen by the user.
    color : str
        Glyph fill color as hex string.
    """

    id: int
    x: float
    y: float
    label: str
    notes: str = ""
    photos: list[ImageRef] = field(default_factory=list)
    journal: list[JournalEntry] = field(default_factory=list)
    linked_reference: Optional[ExternalReference] = None
    color: str = DEFAULT_MARKER_COLOR

    @property
    def position(self) -> tuple[float, float]:
        return self.x, self.y

    def copy(self) -> "Marker":
        """Return a copy whose list fields are independent of this marker."""
        return replace(self, photos=list(self.photos), journal=list(self.journal))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "label": self.label,
            "description": self.notes,
            "photos": list(self.photos),
            "journalEntries": [entry.to_dict() for entry in self.journal],
            "linkedPlant": (
                None if self.linked_reference is None else self.linked_reference.to_dict()
            ),
            "color": self.color,
        }

    @classmethod
    def from_dict(
        cls, data: dict, index: int = 0, id_factory: Optional[IdFactory] = None
    ) -> "Marker":
        """Build a marker from its wire form, repairing missing fields.

        Parameters
        ----------
        data : dict
            Marker mapping in wire format.
        index : int, optional
            Zero-based position in the owning collection, used to derive a
            default label when the stored one is blank.
        id_factory : IdFactory, optional
            Source of a replacement id when the stored one is missing or not
            an integer. A fresh factory is used when omitted.

        Raises
        ------
        TypeError, ValueError
            If a nested field has a shape that cannot be repaired.
        """
        marker_id = _as_id(data.get("id"))
        if marker_id is None:
            marker_id = (id_factory or IdFactory()).next_id()
            logger.warning(f"Marker {data.get('id')!r} had no valid id, assigned {marker_id}")
        label = str(data.get("label") or "").strip()
        if not label:
            label = default_label(index + 1)
            logger.warning(f"Marker {marker_id} had no label, repaired as '{label}'")
        linked = data.get("linkedPlant")
        return cls(
            id=marker_id,
            x=_as_float(data.get("x")),
            y=_as_float(data.get("y")),
            label=label,
            notes=str(data.get("description") or ""),
            photos=list(data.get("photos") or []),
            journal=[JournalEntry.from_dict(item) for item in data.get("journalEntries") or []],
            linked_reference=(
                ExternalReference.from_dict(linked) if isinstance(linked, dict) else None
            ),
            color=str(data.get("color") or DEFAULT_MARKER_COLOR),
        )


@dataclass
class Project:
    """One garden plan: a base image plus its markers and garden journal."""

    id: int
    name: str
    base_image_ref: ImageRef
    markers: list[Marker] = field(default_factory=list)
    journal: list[JournalEntry] = field(default_factory=list)

    def copy(self) -> "Project":
        """Return a copy that shares no mutable marker state with this one."""
        return replace(
            self,
            markers=[marker.copy() for marker in self.markers],
            journal=list(self.journal),
        )

    def find_marker(self, marker_id: int) -> Optional[Marker]:
        for marker in self.markers:
            if marker.id == marker_id:
                return marker
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "image": self.base_image_ref,
            "markers": [marker.to_dict() for marker in self.markers],
            "globalJournalEntries": [entry.to_dict() for entry in self.journal],
        }

    @classmethod
    def from_dict(cls, data: dict, id_factory: Optional[IdFactory] = None) -> "Project":
        """Build a project from its wire form.

        A missing id is replaced from ``id_factory``; markers and journal
        entries that cannot be repaired are skipped with a warning so the
        rest of the project still loads.
        """
        id_factory = id_factory or IdFactory()
        project_id = _as_id(data.get("id"))
        if project_id is None:
            project_id = id_factory.next_id()
            logger.warning(f"Project {data.get('name')!r} had no valid id, assigned {project_id}")
        markers: list[Marker] = []
        for index, item in enumerate(data.get("markers") or []):
            try:
                markers.append(Marker.from_dict(item, index, id_factory))
            except (AttributeError, TypeError, ValueError) as exc:
                logger.warning(f"Skipping unreadable marker in project {project_id}: {exc}")
        journal: list[JournalEntry] = []
        for item in data.get("globalJournalEntries") or []:
            try:
                journal.append(JournalEntry.from_dict(item))
            except (AttributeError, TypeError, ValueError) as exc:
                logger.warning(f"Skipping unreadable journal entry in project {project_id}: {exc}")
        return cls(
            id=project_id,
            name=str(data.get("name") or "Untitled"),
            base_image_ref=str(data.get("image") or ""),
            markers=markers,
            journal=journal,
        )


def projects_from_dicts(
    items: Iterable[dict], id_factory: Optional[IdFactory] = None
) -> list[Project]:
    """Convert wire-format project mappings.

    Entries that are not mappings are skipped; everything else is repaired
    by :meth:`Project.from_dict`. All replacement ids come from one factory
    so they never collide with each other.
    """
    id_factory = id_factory or IdFactory()
    projects: list[Project] = []
    for item in items:
        if not isinstance(item, dict):
            logger.warning(f"Skipping malformed project entry: {item!r:.80}")
            continue
        projects.append(Project.from_dict(item, id_factory))
    return projects


@dataclass
class ViewTransform:
    """Pan/zoom state of the canvas container.

    ``scale`` always stays inside ``[MIN_SCALE, MAX_SCALE]``; pan offsets
    are screen pixels.
    """

    scale: float = 1.0
    pan_x: float = 0.0
    pan_y: float = 0.0

    def __post_init__(self) -> None:
        self.scale = clamp_scale(self.scale)

    def zoom_by(self, delta: float) -> float:
        """Add ``delta`` to the zoom factor, clamped; return the new scale."""
        self.scale = clamp_scale(self.scale + delta)
        return self.scale

    def set_pan(self, pan_x: float, pan_y: float) -> None:
        self.pan_x = float(pan_x)
        self.pan_y = float(pan_y)

    def reset(self) -> None:
        """Restore the identity transform ``(1, 0, 0)``."""
        self.scale = 1.0
        self.pan_x = 0.0
        self.pan_y = 0.0

    def as_tuple(self) -> tuple[float, float, float]:
        return self.scale, self.pan_x, self.pan_y
