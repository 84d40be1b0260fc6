"""JSON file storage for garden projects."""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
import re
from pathlib import Path
from typing import Sequence

from loguru import logger

from gardenmap.core.errors import DataFileError
from gardenmap.core.models import ImageRef, JournalEntry, Project, projects_from_dicts

DATA_FILE_NAME = "garden-data.json"
UPLOADS_DIR_NAME = "uploads"

_DATA_URI_PATTERN = re.compile(r"^data:image/([A-Za-z+\-/]+);base64,(.+)$", re.DOTALL)


def _extension_for(mime_subtype: str) -> str:
    return "jpg" if mime_subtype == "jpeg" else mime_subtype


class JsonProjectRepository:
    """Store projects as ``garden-data.json`` plus an ``uploads`` folder.

    Inline data URIs are written once to ``uploads/<md5>.<ext>`` and replaced
    by that relative path, so the JSON file stays small.

    Parameters
    ----------
    data_dir : str | Path
        Folder holding the data file and uploads.

    Examples
    --------
    >>> repo = JsonProjectRepository("./garden-data")
    >>> repo.load()
    []
    """

    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)
        self.data_file = self.data_dir / DATA_FILE_NAME
        self.uploads_dir = self.data_dir / UPLOADS_DIR_NAME

    def load(self) -> list[Project]:
        """Read all projects.

        Returns
        -------
        list[Project]
            Stored projects; ``[]`` when no data file exists yet.

        Raises
        ------
        DataFileError
            If the data file exists but cannot be read or is not a JSON list.
        """
        if not self.data_file.exists():
            logger.info(f"No project data at {self.data_file}")
            return []
        try:
            raw_data = json.loads(self.data_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise DataFileError(f"Failed to read {self.data_file}: {exc}") from exc
        if not isinstance(raw_data, list):
            raise DataFileError(f"Unexpected project data in {self.data_file}, expected a list")
        return projects_from_dicts(raw_data)

    def save(self, projects: Sequence[Project]) -> list[Project]:
        """Externalise inline images and write all projects.

        Returns
        -------
        list[Project]
            The stored projects, with data URIs replaced by upload paths.

        Raises
        ------
        OSError
            If the data folder cannot be written.
        """
        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        stored = [self._externalise(project.copy()) for project in projects]
        payload = json.dumps([project.to_dict() for project in stored], indent=2)
        self.data_file.write_text(payload, encoding="utf-8")
        logger.debug(f"Wrote {len(stored)} project(s) to {self.data_file}")
        return stored

    def resolve(self, image_ref: ImageRef) -> str:
        """Turn a stored reference into something ``QImage`` can open."""
        if not image_ref or image_ref.startswith("data:"):
            return image_ref
        ref_path = Path(image_ref.lstrip("/"))
        if ref_path.parts and ref_path.parts[0] == UPLOADS_DIR_NAME:
            return str(self.data_dir / ref_path)
        return image_ref

    def store_image(self, image_ref: ImageRef) -> ImageRef:
        """Write one data URI to the uploads folder and return its path.

        Anything that is not a well-formed base64 image data URI is returned
        unchanged.
        """
        if not image_ref or not image_ref.startswith("data:image"):
            return image_ref
        match = _DATA_URI_PATTERN.match(image_ref)
        if match is None:
            return image_ref
        try:
            image_bytes = base64.b64decode(match.group(2), validate=True)
        except (binascii.Error, ValueError) as exc:
            logger.warning(f"Keeping malformed image data inline: {exc}")
            return image_ref
        digest = hashlib.md5(image_bytes).hexdigest()
        file_name = f"{digest}.{_extension_for(match.group(1))}"
        target = self.uploads_dir / file_name
        if not target.exists():
            target.write_bytes(image_bytes)
        return f"{UPLOADS_DIR_NAME}/{file_name}"

    def _externalise(self, project: Project) -> Project:
        project.base_image_ref = self.store_image(project.base_image_ref)
        for marker in project.markers:
            marker.photos = [self.store_image(ref) for ref in marker.photos]
            marker.journal = [self._externalise_entry(entry) for entry in marker.journal]
        project.journal = [self._externalise_entry(entry) for entry in project.journal]
        return project

    def _externalise_entry(self, entry: JournalEntry) -> JournalEntry:
        if not entry.photos:
            return entry
        return JournalEntry(
            id=entry.id,
            timestamp=entry.timestamp,
            text=entry.text,
            photos=tuple(self.store_image(ref) for ref in entry.photos),
        )
