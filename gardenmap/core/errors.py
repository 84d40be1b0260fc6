"""Recoverable error kinds raised by the editing core."""

from __future__ import annotations


class GardenMapError(Exception):
    """Base class for all editing-core errors."""


class NotFoundError(GardenMapError, KeyError):
    """Raised when an operation targets a marker, entry or project id that
    no longer exists."""

    def __init__(self, kind: str, item_id: object) -> None:
        super().__init__(f"{kind} not found: {item_id!r}")
        self.kind = kind
        self.item_id = item_id

    def __str__(self) -> str:
        return str(self.args[0])


class InvalidStateError(GardenMapError):
    """Raised when an operation is not allowed in the current editor state,
    e.g. committing a relocation when none is pending."""


class ImageNotReadyError(GardenMapError):
    """Raised when the raster surface is requested before the base image has
    finished decoding."""


class DataFileError(GardenMapError):
    """Raised when an existing project data file cannot be read or parsed.

    Saving over such a file would destroy whatever it still holds, so the
    session refuses to save after this error.
    """
