"""Garden tab: project toolbar, marker canvas and side panels."""

from __future__ import annotations

from typing import Callable, Optional, TypeVar

from loguru import logger
from PySide6.QtCore import Qt, QThread, Slot
from PySide6.QtGui import QColor
from PySide6.QtWidgets import QFileDialog, QSplitter, QVBoxLayout, QWidget
from qfluentwidgets import (
    BodyLabel,
    ComboBox,
    InfoBar,
    LineEdit,
    PrimaryPushButton,
    PushButton,
    ScrollArea,
    TogglePushButton,
)

from gardenmap.core.collaborators import PlantLookup
from gardenmap.core.errors import GardenMapError
from gardenmap.core.relocation import Tool
from gardenmap.core.session import EditorSession
from gardenmap.gui.components.base_interface import BaseInterface, PageGroup
from gardenmap.gui.components.journal_panel import JournalPanel
from gardenmap.gui.components.marker_canvas import MarkerCanvas
from gardenmap.gui.components.marker_panel import IMAGE_FILTER, MarkerPanel
from gardenmap.gui.components.status_bar import StatusBar
from gardenmap.gui.config import cfg
from gardenmap.gui.tabs.plant_lookup_worker import PlantLookupWorker
from gardenmap.utils.image_resize import QtImageResizer, decode_image
from gardenmap.utils.plant_lookup import PlantSearch, default_providers
from gardenmap.utils.project_io import JsonProjectRepository

T = TypeVar("T")


class GardenTab(BaseInterface):
    """Main editing interface for garden projects.

    Parameters
    ----------
    session : EditorSession, optional
        Editor state. Built on a :class:`JsonProjectRepository` in the
        configured data folder when omitted.
    lookup : PlantLookup, optional
        Plant search service. Built from the configured credentials when
        omitted.
    resolve_image : Callable[[str], str], optional
        Maps stored image references to loadable paths or data URIs.
    """

    def __init__(
        self,
        parent: Optional[QWidget] = None,
        session: Optional[EditorSession] = None,
        lookup: Optional[PlantLookup] = None,
        resolve_image: Optional[Callable[[str], str]] = None,
    ) -> None:
        super().__init__(parent)
        if session is None:
            repository = JsonProjectRepository(cfg.dataDir.value)
            session = EditorSession(repository, QtImageResizer())
            resolve_image = resolve_image or repository.resolve
        self.session = session
        self._resolve_image = resolve_image or (lambda ref: ref)
        self._owns_lookup = lookup is None
        self.lookup: PlantLookup = lookup or self._build_lookup()
        self._lookup_thread: Optional[QThread] = None
        self._lookup_worker: Optional[PlantLookupWorker] = None
        self._pending_query: Optional[str] = None

        self.session.default_marker_color = QColor(cfg.markerColor.value).name()

        self._init_toolbar()
        self._init_content()
        self._connect_signals()
        self.session.load_projects()
        self._on_project_changed()
        if self.session.save_blocked:
            self._show_error("Stored garden data could not be read. Changes will not be saved.")

    # ------------------------------------------------------------------
    # UI construction
    # ------------------------------------------------------------------

    def _init_toolbar(self) -> None:
        self.combo_project = ComboBox()
        self.combo_project.setMinimumWidth(180)
        self.btn_import = PrimaryPushButton("New From Image")
        self.edit_name = LineEdit()
        self.edit_name.setPlaceholderText("Project name")
        self.btn_rename = PushButton("Rename")
        self.btn_delete_project = PushButton("Delete")
        self.btn_export = PushButton("Export CSV")
        self.btn_export_journal = PushButton("Export Journal")
        self.add_tool(
            PageGroup(
                "Project",
                self.combo_project,
                self.btn_import,
                self.edit_name,
                self.btn_rename,
                self.btn_delete_project,
                self.btn_export,
                self.btn_export_journal,
            )
        )

        self.btn_pan = TogglePushButton("Pan")
        self.btn_marker = TogglePushButton("Add Marker")
        self.add_tool(PageGroup("Tools", self.btn_pan, self.btn_marker))

        self.btn_zoom_in = PushButton("Zoom In")
        self.btn_zoom_out = PushButton("Zoom Out")
        self.btn_reset_view = PushButton("Reset")
        self.add_tool(
            PageGroup("View", self.btn_zoom_in, self.btn_zoom_out, self.btn_reset_view)
        )

        self.relocation_label = BodyLabel("")
        self.add_tool(self.relocation_label)
        self.finish_tool_bar()

    def _init_content(self) -> None:
        self.splitter = QSplitter(Qt.Orientation.Horizontal)

        canvas_host = QWidget()
        canvas_layout = QVBoxLayout(canvas_host)
        canvas_layout.setContentsMargins(0, 0, 0, 0)
        canvas_layout.setSpacing(0)
        self.canvas = MarkerCanvas(self.session)
        self.status_bar = StatusBar()
        canvas_layout.addWidget(self.canvas, 1)
        canvas_layout.addWidget(self.status_bar)
        self.splitter.addWidget(canvas_host)

        side = QSplitter(Qt.Orientation.Vertical)
        self.marker_panel = MarkerPanel()
        marker_scroll = ScrollArea()
        marker_scroll.setWidget(self.marker_panel)
        marker_scroll.setWidgetResizable(True)
        side.addWidget(marker_scroll)
        self.journal_panel = JournalPanel()
        side.addWidget(self.journal_panel)
        self.splitter.addWidget(side)

        self.splitter.setSizes([900, 340])
        self.set_content(self.splitter)

    def _connect_signals(self) -> None:
        self.combo_project.currentIndexChanged.connect(self._on_project_selected)
        self.btn_import.clicked.connect(self._on_import_clicked)
        self.btn_rename.clicked.connect(self._on_rename_clicked)
        self.btn_delete_project.clicked.connect(self._on_delete_project_clicked)
        self.btn_export.clicked.connect(self._on_export_clicked)
        self.btn_export_journal.clicked.connect(self._on_export_journal_clicked)
        self.btn_pan.clicked.connect(lambda: self.set_tool(Tool.PAN))
        self.btn_marker.clicked.connect(lambda: self.set_tool(Tool.MARKER))
        self.btn_zoom_in.clicked.connect(lambda: self._apply_zoom(self.session.zoom_in()))
        self.btn_zoom_out.clicked.connect(lambda: self._apply_zoom(self.session.zoom_out()))
        self.btn_reset_view.clicked.connect(self._on_reset_view)

        self.canvas.sigCoordinateChanged.connect(self.status_bar.update_coordinates)
        self.canvas.sigZoomChanged.connect(self.status_bar.update_zoom)
        self.canvas.sigMarkerSelected.connect(lambda _marker: self._sync_marker_panel())
        self.canvas.sigError.connect(self._show_error)
        self.status_bar.sigZoomChanged.connect(
            lambda scale: self._apply_zoom(self.session.set_zoom(scale))
        )

        panel = self.marker_panel
        panel.sigSaveDetails.connect(self._on_save_details)
        panel.sigStartRelocation.connect(self._on_start_relocation)
        panel.sigFinishRelocation.connect(self._on_finish_relocation)
        panel.sigDeleteMarker.connect(self._on_delete_marker)
        panel.sigAddPhotos.connect(self._on_add_photos)
        panel.sigRemovePhoto.connect(
            lambda marker_id, index: self._edit(
                lambda: self.session.remove_marker_photo(marker_id, index)
            )
        )
        panel.sigSearchPlants.connect(self.search_plants)
        panel.sigLinkReference.connect(
            lambda marker_id, reference: self._edit(
                lambda: self.session.link_reference(marker_id, reference)
            )
        )
        panel.sigAddJournalEntry.connect(self._on_add_marker_journal_entry)
        panel.sigDeleteJournalEntry.connect(
            lambda marker_id, entry_id: self._edit(
                lambda: self.session.delete_marker_journal_entry(marker_id, entry_id)
            )
        )

        self.journal_panel.sigAddEntry.connect(self._on_add_journal_entry)
        self.journal_panel.sigDeleteEntry.connect(
            lambda entry_id: self._edit(lambda: self.session.delete_journal_entry(entry_id))
        )

        cfg.perenualApiKey.valueChanged.connect(lambda _: self._refresh_lookup())
        cfg.trefleToken.valueChanged.connect(lambda _: self._refresh_lookup())
        cfg.markerColor.valueChanged.connect(self._on_marker_color_changed)

    # ------------------------------------------------------------------
    # Error handling
    # ------------------------------------------------------------------

    def _guard(self, action: Callable[[], T]) -> Optional[T]:
        """Run a session action, reporting recoverable failures."""
        try:
            return action()
        except (GardenMapError, ValueError) as exc:
            logger.warning(f"Garden action failed: {exc}")
            self._show_error(str(exc))
            return None

    def _edit(self, action: Callable[[], T]) -> Optional[T]:
        result = self._guard(action)
        self._sync_ui()
        return result

    def _show_error(self, message: str) -> None:
        InfoBar.error(
            title="Error",
            content=message,
            parent=self,
            duration=3500,
        )

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    def _on_project_changed(self) -> None:
        """Reload the base image and every view after the project changed."""
        self._load_base_image()
        self._sync_ui()

    def _load_base_image(self) -> None:
        image_ref = self.session.image_ref
        if not image_ref:
            self.canvas.set_base_image(None)
            return
        try:
            image = decode_image(self._resolve_image(image_ref))
        except ValueError as exc:
            logger.error(f"Failed to load base image for project {self.session.active_project_id}: {exc}")
            self._show_error("The base image of this project could not be loaded.")
            self.canvas.set_base_image(None)
            return
        self.canvas.set_base_image(image)

    def _sync_ui(self) -> None:
        self._sync_project_combo()
        project = self.session.active_project
        self.edit_name.setText("" if project is None else project.name)
        for widget in (
            self.btn_rename, self.btn_delete_project, self.btn_export, self.btn_export_journal
        ):
            widget.setEnabled(project is not None)
        self.btn_pan.setChecked(self.session.tool == Tool.PAN)
        self.btn_marker.setChecked(self.session.tool == Tool.MARKER)
        relocating = self.session.is_relocating()
        self.relocation_label.setText(
            "Drag the highlighted marker, then save or cancel its position." if relocating else ""
        )
        self.combo_project.setEnabled(not relocating)
        self.status_bar.update_zoom(self.session.view.scale)
        self.journal_panel.show_entries(self.session.journal_entries())
        self._sync_marker_panel()
        self.canvas.refresh()

    def _sync_project_combo(self) -> None:
        self.combo_project.blockSignals(True)
        self.combo_project.clear()
        for project in self.session.projects:
            self.combo_project.addItem(project.name, userData=project.id)
        ids = [project.id for project in self.session.projects]
        if self.session.active_project_id in ids:
            self.combo_project.setCurrentIndex(ids.index(self.session.active_project_id))
        self.combo_project.blockSignals(False)

    def _sync_marker_panel(self) -> None:
        self.marker_panel.show_marker(
            self.session.selected_marker(), relocating=self.session.is_relocating()
        )

    def _apply_zoom(self, scale: float) -> None:
        self.status_bar.update_zoom(scale)
        self.canvas.update()

    # ------------------------------------------------------------------
    # Project slots
    # ------------------------------------------------------------------

    @Slot(int)
    def _on_project_selected(self, index: int) -> None:
        project_id = self.combo_project.itemData(index)
        if project_id is None or project_id == self.session.active_project_id:
            return
        self._guard(lambda: self.session.switch_project(project_id))
        self._on_project_changed()

    def import_image(self, file_path: str) -> None:
        """Create a project from an image file and show it."""
        project = self._guard(lambda: self.session.import_image(file_path, file_path))
        if project is None:
            return
        self._on_project_changed()
        InfoBar.success(
            title="Project created",
            content=project.name,
            parent=self,
            duration=1800,
        )

    def _on_import_clicked(self) -> None:
        file_path, _ = QFileDialog.getOpenFileName(self, "Choose Base Image", "", IMAGE_FILTER)
        if file_path:
            self.import_image(file_path)

    def _on_rename_clicked(self) -> None:
        self._edit(lambda: self.session.rename_project(self.edit_name.text()))

    def _on_delete_project_clicked(self) -> None:
        self._guard(self.session.delete_current_project)
        self._on_project_changed()

    def _on_export_clicked(self) -> None:
        file_path, _ = QFileDialog.getSaveFileName(
            self, "Export Markers", "markers.csv", "CSV (*.csv)"
        )
        if file_path:
            self.export_markers(file_path)

    def export_markers(self, file_path: str) -> None:
        markers_df = self.session.store.to_dataframe()
        markers_df.to_csv(file_path, index=False)
        logger.info(f"Exported {len(markers_df)} marker(s) to {file_path}")

    def _on_export_journal_clicked(self) -> None:
        file_path, _ = QFileDialog.getSaveFileName(
            self, "Export Journal", "journal.csv", "CSV (*.csv)"
        )
        if file_path:
            self.export_journal(file_path)

    def export_journal(self, file_path: str) -> None:
        """Write the garden journal of the active project, newest first."""
        entries_df = self.session.journal.to_dataframe()
        entries_df.to_csv(file_path, index=False)
        logger.info(f"Exported {len(entries_df)} journal entries to {file_path}")

    # ------------------------------------------------------------------
    # Editing slots
    # ------------------------------------------------------------------

    def set_tool(self, tool: Tool) -> None:
        self.session.set_tool(tool)
        self._sync_ui()

    def _on_reset_view(self) -> None:
        self.session.reset_view()
        self._apply_zoom(self.session.view.scale)

    def _on_save_details(self, marker_id: int, label: str, notes: str) -> None:
        self._edit(lambda: self.session.update_marker_details(marker_id, label=label, notes=notes))

    def _on_start_relocation(self, marker_id: int) -> None:
        self._edit(lambda: self.session.start_relocation(marker_id))

    def _on_finish_relocation(self, save: bool) -> None:
        self._edit(lambda: self.session.finish_relocation(save))

    def _on_delete_marker(self, marker_id: int) -> None:
        self._edit(lambda: self.session.delete_marker(marker_id))

    def _on_add_photos(self, marker_id: int, file_paths: list) -> None:
        for file_path in file_paths:
            if self._guard(lambda: self.session.add_marker_photo(marker_id, file_path)) is None:
                break
        self._sync_ui()

    def _on_add_marker_journal_entry(self, marker_id: int, text: str, photo_paths: list) -> None:
        entry = self._edit(
            lambda: self.session.add_marker_journal_entry(marker_id, text, photo_paths)
        )
        if entry is not None:
            self.marker_panel.clear_entry_draft()

    def _on_add_journal_entry(self, text: str, photo_paths: list) -> None:
        entry = self._edit(lambda: self.session.add_journal_entry(text, photo_paths))
        if entry is not None:
            self.journal_panel.clear_draft()

    def _on_marker_color_changed(self, color: QColor) -> None:
        self.session.default_marker_color = QColor(color).name()

    # ------------------------------------------------------------------
    # Plant lookup
    # ------------------------------------------------------------------

    def _build_lookup(self) -> PlantLookup:
        return PlantSearch(default_providers(cfg.perenualApiKey.value, cfg.trefleToken.value))

    def _refresh_lookup(self) -> None:
        if self._owns_lookup:
            self.lookup = self._build_lookup()

    def search_plants(self, query: str) -> None:
        """Run a plant search in a background thread.

        A search requested while another runs cancels the running one and
        starts once it has stopped.
        """
        if self._lookup_thread is not None:
            self._pending_query = query
            self._lookup_worker.request_cancel()
            return
        self._pending_query = None
        self._lookup_thread = QThread(self)
        self._lookup_worker = PlantLookupWorker(self.lookup, query)
        self._lookup_worker.moveToThread(self._lookup_thread)
        self._lookup_thread.started.connect(self._lookup_worker.run)
        self._lookup_worker.sigFinished.connect(self._on_lookup_finished)
        self._lookup_worker.sigFailed.connect(self._on_lookup_failed)
        self._lookup_worker.sigCancelled.connect(self._on_lookup_cancelled)
        self._lookup_thread.start()

    def _teardown_lookup_thread(self) -> None:
        if self._lookup_thread is None:
            return
        self._lookup_thread.quit()
        self._lookup_thread.wait(1000)
        self._lookup_thread.deleteLater()
        self._lookup_thread = None
        self._lookup_worker = None
        if self._pending_query is not None:
            self.search_plants(self._pending_query)

    @Slot(str, list)
    def _on_lookup_finished(self, query: str, references: list) -> None:
        logger.debug(f"Plant lookup '{query}' finished with {len(references)} result(s)")
        self.marker_panel.show_search_results(references)
        self._teardown_lookup_thread()

    @Slot(str)
    def _on_lookup_failed(self, message: str) -> None:
        logger.error("Plant lookup failed:\n{}", message)
        short_message = message.splitlines()[0] if message else "Plant lookup failed"
        self._show_error(f"{short_message} (details in log)")
        self._teardown_lookup_thread()

    @Slot()
    def _on_lookup_cancelled(self) -> None:
        self._teardown_lookup_thread()

    def cleanup(self) -> None:
        """Stop a running plant search before the window closes."""
        self._pending_query = None
        if self._lookup_worker is not None:
            self._lookup_worker.request_cancel()
        if self._lookup_thread is not None:
            self._lookup_thread.quit()
            self._lookup_thread.wait(3000)
