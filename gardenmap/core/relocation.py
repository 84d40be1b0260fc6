"""Pointer gesture state machine for panning and marker relocation.

A relocation is started explicitly from the marker detail editor. While it
is pending, a pointer-down close to the marker grabs it, while one further
away pans the view instead. Pointer-up ends the gesture but never decides
the relocation: that is done by :meth:`RelocationStateMachine.commit` or
:meth:`RelocationStateMachine.cancel`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from loguru import logger

from gardenmap.core.errors import InvalidStateError
from gardenmap.core.marker_store import MarkerStore
from gardenmap.core.models import ViewTransform

GRAB_RADIUS = 50.0

PersistedPositionLookup = Callable[[int], Optional[tuple[float, float]]]


class Tool(str, Enum):
    """Canvas tools selectable from the toolbar."""

    PAN = "pan"
    MARKER = "marker"


class GestureKind(str, Enum):
    """Pointer gesture states."""

    IDLE = "idle"
    PANNING = "panning"
    DRAGGING = "dragging"


@dataclass(frozen=True)
class GestureState:
    """Current gesture tag plus the data captured at pointer-down.

    Parameters
    ----------
    kind : GestureKind
        Gesture tag.
    marker_id : int | None
        Dragged marker, only set for ``DRAGGING``.
    screen_origin : tuple[float, float]
        Screen position of the pointer-down, used for panning.
    pan_origin : tuple[float, float]
        View pan offset at pointer-down.
    """

    kind: GestureKind = GestureKind.IDLE
    marker_id: Optional[int] = None
    screen_origin: tuple[float, float] = (0.0, 0.0)
    pan_origin: tuple[float, float] = (0.0, 0.0)


IDLE = GestureState()


class RelocationStateMachine:
    """Route pointer events to view panning or live marker dragging.

    Parameters
    ----------
    store : MarkerStore
        Marker collection receiving live position updates.
    view : ViewTransform
        View transform receiving pan updates.
    persisted_position : Callable[[int], tuple[float, float] | None], optional
        Lookup of a marker position in the last persisted project snapshot,
        used by :meth:`cancel`.

    Examples
    --------
    >>> store = MarkerStore()
    >>> marker = store.create((50.0, 50.0))
    >>> machine = RelocationStateMachine(store, ViewTransform())
    >>> machine.begin_relocation(marker.id)
    >>> machine.pointer_down((52.0, 48.0), (0.0, 0.0), Tool.MARKER).kind
    <GestureKind.DRAGGING: 'dragging'>
    """

    def __init__(
        self,
        store: MarkerStore,
        view: ViewTransform,
        persisted_position: Optional[PersistedPositionLookup] = None,
    ) -> None:
        self._store = store
        self._view = view
        self._persisted_position = persisted_position or (lambda _marker_id: None)
        self._state: GestureState = IDLE
        self._pending_id: Optional[int] = None
        self._start_position: Optional[tuple[float, float]] = None
        store.add_delete_listener(self.on_marker_deleted)

    @property
    def state(self) -> GestureState:
        return self._state

    @property
    def pending_marker_id(self) -> Optional[int]:
        """Marker currently awaiting commit or cancel, if any."""
        return self._pending_id

    @property
    def drag_target_id(self) -> Optional[int]:
        """Marker to highlight while relocating."""
        return self._pending_id

    def is_pending(self) -> bool:
        return self._pending_id is not None

    # -- relocation lifecycle -------------------------------------------------

    def begin_relocation(self, marker_id: int) -> None:
        """Mark one marker as pending relocation.

        Raises
        ------
        NotFoundError
            If the marker does not exist.
        InvalidStateError
            If another marker is already pending.
        """
        marker = self._store.get(marker_id)
        if self._pending_id is not None and self._pending_id != marker_id:
            raise InvalidStateError(
                f"marker {self._pending_id} is already being relocated"
            )
        self._pending_id = marker_id
        self._start_position = marker.position
        self._state = IDLE
        logger.debug(f"Relocation started for marker {marker_id}")

    def commit(self) -> int:
        """Keep the live position of the pending marker and return its id."""
        marker_id = self._require_pending("commit")
        self._clear()
        logger.debug(f"Relocation committed for marker {marker_id}")
        return marker_id

    def cancel(self) -> int:
        """Restore the pending marker to its last persisted position.

        Falls back to the position at :meth:`begin_relocation` when the
        marker has never been persisted. Returns the marker id.
        """
        marker_id = self._require_pending("cancel")
        restored = self._persisted_position(marker_id) or self._start_position
        if restored is not None:
            self._store.update(marker_id, {"x": restored[0], "y": restored[1]})
        self._clear()
        logger.debug(f"Relocation cancelled for marker {marker_id}, restored to {restored}")
        return marker_id

    def reset(self) -> None:
        """Drop any pending relocation and gesture without touching markers."""
        self._clear()

    def on_marker_deleted(self, marker_id: int) -> None:
        """Forget a deleted marker so no dangling reference remains."""
        if self._pending_id == marker_id or self._state.marker_id == marker_id:
            logger.debug(f"Pending marker {marker_id} deleted, gesture reset")
            self._clear()

    # -- pointer events -------------------------------------------------------

    def pointer_down(
        self,
        image_point: tuple[float, float],
        screen_point: tuple[float, float],
        tool: Tool,
    ) -> GestureState:
        """Start a gesture from ``IDLE``.

        Parameters
        ----------
        image_point : tuple[float, float]
            Pointer position in image-pixel space.
        screen_point : tuple[float, float]
            Pointer position in viewport pixels.
        tool : Tool
            Active canvas tool.

        Returns
        -------
        GestureState
            State after the event.
        """
        if self._state.kind != GestureKind.IDLE:
            return self._state
        if self._pending_id is not None:
            marker = self._store.get(self._pending_id)
            distance = math.hypot(marker.x - image_point[0], marker.y - image_point[1])
            if distance <= GRAB_RADIUS:
                self._state = GestureState(GestureKind.DRAGGING, marker_id=marker.id)
            else:
                self._state = self._panning_state(screen_point)
        elif tool == Tool.PAN:
            self._state = self._panning_state(screen_point)
        return self._state

    def pointer_move(
        self,
        image_point: tuple[float, float],
        screen_point: tuple[float, float],
    ) -> bool:
        """Apply a pointer move; return True when it changed markers or view."""
        if self._state.kind == GestureKind.DRAGGING and self._state.marker_id is not None:
            self._store.update(
                self._state.marker_id, {"x": image_point[0], "y": image_point[1]}
            )
            return True
        if self._state.kind == GestureKind.PANNING:
            origin_x, origin_y = self._state.screen_origin
            pan_x, pan_y = self._state.pan_origin
            self._view.set_pan(
                pan_x + screen_point[0] - origin_x,
                pan_y + screen_point[1] - origin_y,
            )
            return True
        return False

    def pointer_up(self) -> GestureState:
        """End the current gesture (also used for pointer-leave)."""
        self._state = IDLE
        return self._state

    # -- helpers ----------------------------------------------------------------

    def _panning_state(self, screen_point: tuple[float, float]) -> GestureState:
        return GestureState(
            GestureKind.PANNING,
            screen_origin=(float(screen_point[0]), float(screen_point[1])),
            pan_origin=(self._view.pan_x, self._view.pan_y),
        )

    def _require_pending(self, action: str) -> int:
        if self._pending_id is None:
            raise InvalidStateError(f"cannot {action}: no relocation pending")
        return self._pending_id

    def _clear(self) -> None:
        self._pending_id = None
        self._start_position = None
        self._state = IDLE
