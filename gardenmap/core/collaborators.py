"""Interfaces of the services the editing core depends on.

Concrete implementations live in :mod:`gardenmap.utils`; tests substitute
small fakes.
"""

from __future__ import annotations

from typing import Protocol, Sequence, Union

from gardenmap.core.models import ExternalReference, ImageRef, Project

# Encoded image bytes, a file path or a data URI.
RawImage = Union[bytes, str]


class ProjectPersistence(Protocol):
    def load(self) -> list[Project]:
        """Return all stored projects; an empty list when nothing is stored.

        Raises when stored data exists but cannot be read, so the caller
        knows not to save over it.
        """
        ...

    def save(self, projects: Sequence[Project]) -> list[Project]:
        """Store ``projects`` and return them, possibly with rewritten image refs."""
        ...


class PlantLookup(Protocol):
    def search(self, query: str) -> list[ExternalReference]:
        ...


class ImageResizer(Protocol):
    def resize(self, raw_image: RawImage, max_width: int) -> ImageRef:
        """Downscale ``raw_image`` to at most ``max_width`` pixels wide."""
        ...
