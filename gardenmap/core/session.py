"""Editor session: active project, working marker state and view.

All state that the canvas, the detail editor and the journal panel share
lives on one :class:`EditorSession`. ``switch_project`` is the only way the
active project changes, and the session is the only component that replaces
the whole marker collection.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

from loguru import logger

from gardenmap.core.collaborators import ImageResizer, ProjectPersistence, RawImage
from gardenmap.core.errors import InvalidStateError, NotFoundError
from gardenmap.core.journal import JournalLog, new_entry, without_entry
from gardenmap.core.marker_store import MarkerStore
from gardenmap.core.models import (
    DEFAULT_MARKER_COLOR,
    ExternalReference,
    IdFactory,
    JournalEntry,
    Marker,
    Project,
    ViewTransform,
    clamp_scale,
)
from gardenmap.core.relocation import GestureState, RelocationStateMachine, Tool

BASE_IMAGE_MAX_WIDTH = 1920
PHOTO_MAX_WIDTH = 1200
ZOOM_STEP = 0.5


class EditorSession:
    """Explicit editor state for one running application.

    Parameters
    ----------
    persistence : ProjectPersistence
        Project storage.
    resizer : ImageResizer
        Converts imported images and photos to stored image references.
    id_factory : IdFactory, optional
        Shared id source for projects, markers and journal entries.

    Notes
    -----
    Every editing operation saves immediately, except while a relocation is
    pending: then :meth:`save` is deferred so the relocation can still be
    cancelled back to the last saved position.
    """

    def __init__(
        self,
        persistence: ProjectPersistence,
        resizer: ImageResizer,
        id_factory: Optional[IdFactory] = None,
    ) -> None:
        self._persistence = persistence
        self._resizer = resizer
        self._ids = id_factory or IdFactory()

        self._projects: list[Project] = []
        self._persisted: dict[int, Project] = {}
        self.active_project_id: Optional[int] = None

        self.store = MarkerStore(self._ids)
        self.journal = JournalLog(self._ids)
        self.view = ViewTransform()
        self.tool = Tool.PAN
        self.default_marker_color = DEFAULT_MARKER_COLOR
        self.relocation = RelocationStateMachine(
            self.store, self.view, self._persisted_position
        )
        self.selected_marker_id: Optional[int] = None
        self.image_loaded = False
        self.image_size: Optional[tuple[int, int]] = None
        self.save_blocked = False

        self.store.add_delete_listener(self._on_marker_deleted)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def projects(self) -> tuple[Project, ...]:
        return tuple(self._projects)

    @property
    def active_project(self) -> Optional[Project]:
        if self.active_project_id is None:
            return None
        return self._find_project(self.active_project_id)

    @property
    def image_ref(self) -> Optional[str]:
        project = self.active_project
        return None if project is None else project.base_image_ref

    @property
    def drag_target_id(self) -> Optional[int]:
        return self.relocation.drag_target_id

    def is_relocating(self) -> bool:
        return self.relocation.is_pending()

    def markers(self) -> tuple[Marker, ...]:
        return self.store.markers()

    def selected_marker(self) -> Optional[Marker]:
        if self.selected_marker_id is None or self.selected_marker_id not in self.store:
            return None
        return self.store.get(self.selected_marker_id)

    def journal_entries(self) -> list[JournalEntry]:
        return self.journal.entries()

    # ------------------------------------------------------------------
    # Project lifecycle
    # ------------------------------------------------------------------

    def load_projects(self) -> list[Project]:
        """Load stored projects and activate the first one.

        When the stored data cannot be read the session starts empty and
        ``save_blocked`` is set, so nothing is written over the unreadable
        file for the rest of the session.
        """
        try:
            loaded = self._persistence.load()
        except Exception as exc:
            logger.error(f"Failed to load projects, saving is disabled: {exc}")
            self.save_blocked = True
            loaded = []
        else:
            self.save_blocked = False
        self._projects = [project.copy() for project in loaded]
        for project in self._projects:
            self._ids.observe(project.id)
        self._remember_persisted()
        logger.info(f"Loaded {len(self._projects)} project(s)")
        if self._projects:
            self.switch_project(self._projects[0].id)
        else:
            self._clear_working_state()
        return list(self._projects)

    def switch_project(self, project_id: int) -> Project:
        """Make ``project_id`` the active project.

        Replaces the working markers and journal with the project's, resets
        the view to identity and drops any pending relocation, selection and
        image-loaded flag.

        Raises
        ------
        NotFoundError
            If no project has that id.
        """
        project = self._find_project(project_id)
        if project is None:
            raise NotFoundError("project", project_id)
        self.relocation.reset()
        self.store.reset(project.markers)
        self.journal.reset(project.journal)
        self.view.reset()
        self.selected_marker_id = None
        self.image_loaded = False
        self.image_size = None
        self.active_project_id = project.id
        logger.info(f"Switched to project {project.id} '{project.name}' ({len(self.store)} markers)")
        return project

    def import_image(self, name: str, raw_image: RawImage) -> Project:
        """Create a new project from an image and make it active."""
        image_ref = self._resizer.resize(raw_image, BASE_IMAGE_MAX_WIDTH)
        project = Project(
            id=self._ids.next_id(),
            name=Path(name).stem or "Untitled",
            base_image_ref=image_ref,
        )
        self._sync_working_state()
        self._projects.append(project)
        self.switch_project(project.id)
        logger.info(f"Created project {project.id} '{project.name}'")
        self.save()
        return project

    def rename_project(self, name: str) -> bool:
        """Rename the active project; blank names are ignored."""
        project = self._require_project()
        clean_name = (name or "").strip()
        if not clean_name:
            return False
        project.name = clean_name
        self.save()
        return True

    def delete_current_project(self) -> Optional[Project]:
        """Delete the active project and activate the last remaining one.

        Returns
        -------
        Project | None
            The newly active project, or ``None`` when none remain.
        """
        project = self._require_project()
        self._projects = [item for item in self._projects if item.id != project.id]
        logger.info(f"Deleted project {project.id} '{project.name}'")
        if self._projects:
            self.switch_project(self._projects[-1].id)
        else:
            self._clear_working_state()
        self.save()
        return self.active_project

    def mark_image_loaded(self, width: int, height: int) -> None:
        """Record that the base image decoded with the given natural size."""
        if width <= 0 or height <= 0:
            raise ValueError(f"image size must be positive, got {width}x{height}")
        self.image_loaded = True
        self.image_size = (int(width), int(height))

    def clear_image(self) -> None:
        """Forget the base image, e.g. after it failed to decode."""
        self.image_loaded = False
        self.image_size = None

    # ------------------------------------------------------------------
    # Canvas interaction
    # ------------------------------------------------------------------

    def set_tool(self, tool: Tool | str) -> Tool:
        self.tool = Tool(tool)
        return self.tool

    def handle_click(self, image_point: tuple[float, float]) -> Optional[Marker]:
        """Select the marker under a click, or place one with the marker tool.

        Clicks with the pan tool never select or create anything.

        Returns the selected or created marker, ``None`` when the click did
        nothing.
        """
        if self.active_project_id is None or self.relocation.is_pending():
            return None
        if self.tool != Tool.MARKER:
            return None
        hit = self.store.find_near(image_point)
        if hit is not None:
            self.selected_marker_id = hit.id
            return hit
        marker = self.store.create(image_point, color=self.default_marker_color)
        self.selected_marker_id = marker.id
        self.save()
        return marker

    def pointer_down(
        self, image_point: tuple[float, float], screen_point: tuple[float, float]
    ) -> GestureState:
        return self.relocation.pointer_down(image_point, screen_point, self.tool)

    def pointer_move(
        self, image_point: tuple[float, float], screen_point: tuple[float, float]
    ) -> bool:
        return self.relocation.pointer_move(image_point, screen_point)

    def pointer_up(self) -> GestureState:
        return self.relocation.pointer_up()

    def zoom_in(self) -> float:
        return self.view.zoom_by(ZOOM_STEP)

    def zoom_out(self) -> float:
        return self.view.zoom_by(-ZOOM_STEP)

    def set_zoom(self, scale: float) -> float:
        """Set an absolute zoom factor, clamped to the allowed range."""
        self.view.scale = clamp_scale(scale)
        return self.view.scale

    def reset_view(self) -> None:
        self.view.reset()

    # ------------------------------------------------------------------
    # Relocation
    # ------------------------------------------------------------------

    def start_relocation(self, marker_id: int) -> None:
        self.relocation.begin_relocation(marker_id)
        self.selected_marker_id = marker_id

    def finish_relocation(self, save: bool) -> Marker:
        """Commit (``save=True``) or cancel the pending relocation."""
        if save:
            marker_id = self.relocation.commit()
        else:
            marker_id = self.relocation.cancel()
        self.save()
        return self.store.get(marker_id)

    # ------------------------------------------------------------------
    # Marker details
    # ------------------------------------------------------------------

    def update_marker_details(
        self,
        marker_id: int,
        label: Optional[str] = None,
        notes: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Marker:
        patch = {}
        if label is not None:
            patch["label"] = label
        if notes is not None:
            patch["notes"] = notes
        if color is not None:
            patch["color"] = color
        marker = self.store.update(marker_id, patch)
        self.save()
        return marker

    def link_reference(
        self, marker_id: int, reference: Optional[ExternalReference]
    ) -> Marker:
        """Attach a plant reference to a marker, or clear it with ``None``."""
        marker = self.store.update(marker_id, {"linked_reference": reference})
        self.save()
        return marker

    def delete_marker(self, marker_id: int) -> Marker:
        removed = self.store.delete(marker_id)
        self.save()
        return removed

    def add_marker_photo(self, marker_id: int, raw_image: RawImage) -> Marker:
        current = self.store.get(marker_id)
        photo_ref = self._resizer.resize(raw_image, PHOTO_MAX_WIDTH)
        marker = self.store.update(marker_id, {"photos": [*current.photos, photo_ref]})
        self.save()
        return marker

    def remove_marker_photo(self, marker_id: int, index: int) -> Marker:
        current = self.store.get(marker_id)
        if not 0 <= index < len(current.photos):
            raise NotFoundError("photo", index)
        photos = [ref for position, ref in enumerate(current.photos) if position != index]
        marker = self.store.update(marker_id, {"photos": photos})
        self.save()
        return marker

    def add_marker_journal_entry(
        self, marker_id: int, text: str, raw_photos: Iterable[RawImage] = ()
    ) -> Optional[JournalEntry]:
        """Prepend a history entry to a marker; empty entries are ignored."""
        current = self.store.get(marker_id)
        entry = new_entry(self._ids, text, self._resize_photos(raw_photos))
        if entry is None:
            return None
        self.store.update(marker_id, {"journal": [entry, *current.journal]})
        self.save()
        return entry

    def delete_marker_journal_entry(self, marker_id: int, entry_id: int) -> Marker:
        current = self.store.get(marker_id)
        marker = self.store.update(
            marker_id, {"journal": without_entry(current.journal, entry_id)}
        )
        self.save()
        return marker

    # ------------------------------------------------------------------
    # Garden journal
    # ------------------------------------------------------------------

    def add_journal_entry(
        self, text: str, raw_photos: Iterable[RawImage] = ()
    ) -> Optional[JournalEntry]:
        self._require_project()
        entry = self.journal.add(text, self._resize_photos(raw_photos))
        if entry is not None:
            self.save()
        return entry

    def delete_journal_entry(self, entry_id: int) -> None:
        self.journal.delete(entry_id)
        self.save()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self) -> bool:
        """Write the working state through the persistence collaborator.

        Returns
        -------
        bool
            False when deferred by a pending relocation, when saving is
            blocked after a failed load, or when the collaborator failed.
            The in-memory state is kept either way.
        """
        if self.relocation.is_pending():
            logger.debug("Save deferred while a relocation is pending")
            return False
        if self.save_blocked:
            logger.error("Not saving: the stored project data could not be loaded")
            return False
        self._sync_working_state()
        try:
            saved = self._persistence.save([project.copy() for project in self._projects])
        except Exception as exc:
            logger.error(f"Failed to save projects: {exc}")
            return False
        self._projects = [project.copy() for project in saved]
        self._remember_persisted()
        self._adopt_saved_refs()
        logger.info(f"Saved {len(self._projects)} project(s)")
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _find_project(self, project_id: int) -> Optional[Project]:
        for project in self._projects:
            if project.id == project_id:
                return project
        return None

    def _require_project(self) -> Project:
        project = self.active_project
        if project is None:
            raise InvalidStateError("no active project")
        return project

    def _sync_working_state(self) -> None:
        # An uncommitted relocation never reaches the project list.
        project = self.active_project
        if project is None or self.relocation.is_pending():
            return
        project.markers = [marker.copy() for marker in self.store]
        project.journal = self.journal.raw_entries()

    def _remember_persisted(self) -> None:
        self._persisted = {project.id: project.copy() for project in self._projects}

    def _adopt_saved_refs(self) -> None:
        # The collaborator may have rewritten image references.
        project = self.active_project
        if project is None:
            return
        self.store.reset(project.markers)
        self.journal.reset(project.journal)

    def _persisted_position(self, marker_id: int) -> Optional[tuple[float, float]]:
        if self.active_project_id is None:
            return None
        snapshot = self._persisted.get(self.active_project_id)
        if snapshot is None:
            return None
        marker = snapshot.find_marker(marker_id)
        return None if marker is None else marker.position

    def _resize_photos(self, raw_photos: Iterable[RawImage]) -> list[str]:
        return [self._resizer.resize(raw, PHOTO_MAX_WIDTH) for raw in raw_photos]

    def _clear_working_state(self) -> None:
        self.relocation.reset()
        self.store.reset([])
        self.journal.reset([])
        self.view.reset()
        self.selected_marker_id = None
        self.image_loaded = False
        self.image_size = None
        self.active_project_id = None

    def _on_marker_deleted(self, marker_id: int) -> None:
        if self.selected_marker_id == marker_id:
            self.selected_marker_id = None
