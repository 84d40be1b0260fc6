"""Side panel for editing the selected marker."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QFileDialog,
    QHBoxLayout,
    QListWidgetItem,
    QVBoxLayout,
    QWidget,
)
from qfluentwidgets import (
    BodyLabel,
    CaptionLabel,
    LineEdit,
    ListWidget,
    PlainTextEdit,
    PrimaryPushButton,
    PushButton,
    SearchLineEdit,
    StrongBodyLabel,
    SubtitleLabel,
)

from gardenmap.core.journal import newest_first
from gardenmap.core.models import ExternalReference, JournalEntry, Marker

IMAGE_FILTER = "Images (*.png *.jpg *.jpeg *.bmp *.gif *.webp);;All Files (*)"


def format_timestamp(timestamp_ms: int) -> str:
    """Local date/time text for a millisecond timestamp."""
    return datetime.fromtimestamp(timestamp_ms / 1000.0).strftime("%Y-%m-%d %H:%M")


class MarkerPanel(QWidget):
    """
    Detail editor for one marker.

    The panel never touches the session itself; every action is emitted as
    a signal carrying the marker id and handled by the owning tab.
    """

    sigSaveDetails = Signal(object, str, str)
    sigStartRelocation = Signal(object)
    sigFinishRelocation = Signal(bool)
    sigDeleteMarker = Signal(object)
    sigAddPhotos = Signal(object, list)
    sigRemovePhoto = Signal(object, int)
    sigSearchPlants = Signal(str)
    sigLinkReference = Signal(object, object)
    sigAddJournalEntry = Signal(object, str, list)
    sigDeleteJournalEntry = Signal(object, object)

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setObjectName("markerPanel")
        self.setMinimumWidth(300)
        self._marker: Optional[Marker] = None
        self._results: list[ExternalReference] = []
        self.pending_entry_photos: list[str] = []
        self._init_ui()
        self._connect_signals()
        self.show_marker(None)

    def _init_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(8)

        self.title_label = SubtitleLabel("Marker")
        self.empty_label = CaptionLabel("Click a marker, or use the marker tool to place one.")
        self.empty_label.setWordWrap(True)
        layout.addWidget(self.title_label)
        layout.addWidget(self.empty_label)

        self.editor = QWidget()
        editor_layout = QVBoxLayout(self.editor)
        editor_layout.setContentsMargins(0, 0, 0, 0)
        editor_layout.setSpacing(6)

        # --- Label and notes ---
        editor_layout.addWidget(StrongBodyLabel("Label"))
        self.edit_label = LineEdit()
        editor_layout.addWidget(self.edit_label)

        editor_layout.addWidget(StrongBodyLabel("Notes"))
        self.edit_notes = PlainTextEdit()
        self.edit_notes.setFixedHeight(80)
        editor_layout.addWidget(self.edit_notes)

        self.btn_save = PrimaryPushButton("Save Details")
        editor_layout.addWidget(self.btn_save)

        # --- Position ---
        position_row = QHBoxLayout()
        self.btn_relocate = PushButton("Move Marker")
        self.btn_commit = PrimaryPushButton("Save Position")
        self.btn_cancel = PushButton("Cancel Move")
        position_row.addWidget(self.btn_relocate)
        position_row.addWidget(self.btn_commit)
        position_row.addWidget(self.btn_cancel)
        editor_layout.addLayout(position_row)

        # --- Plant link ---
        editor_layout.addWidget(StrongBodyLabel("Plant"))
        self.linked_label = BodyLabel("No plant linked")
        self.linked_label.setWordWrap(True)
        editor_layout.addWidget(self.linked_label)
        self.search_edit = SearchLineEdit()
        self.search_edit.setPlaceholderText("Search plants (Wikipedia, Perenual, Trefle)")
        editor_layout.addWidget(self.search_edit)
        self.results_list = ListWidget()
        self.results_list.setFixedHeight(110)
        editor_layout.addWidget(self.results_list)
        self.btn_unlink = PushButton("Remove Link")
        editor_layout.addWidget(self.btn_unlink)

        # --- Photos ---
        editor_layout.addWidget(StrongBodyLabel("Photos"))
        self.photo_list = ListWidget()
        self.photo_list.setFixedHeight(80)
        editor_layout.addWidget(self.photo_list)
        photo_row = QHBoxLayout()
        self.btn_add_photo = PushButton("Add Photos")
        self.btn_remove_photo = PushButton("Remove Photo")
        photo_row.addWidget(self.btn_add_photo)
        photo_row.addWidget(self.btn_remove_photo)
        editor_layout.addLayout(photo_row)

        # --- History ---
        editor_layout.addWidget(StrongBodyLabel("History"))
        self.edit_entry = PlainTextEdit()
        self.edit_entry.setPlaceholderText("What happened to this plant?")
        self.edit_entry.setFixedHeight(60)
        editor_layout.addWidget(self.edit_entry)
        entry_row = QHBoxLayout()
        self.btn_attach_entry_photo = PushButton("Attach Photos")
        self.btn_add_entry = PushButton("Add Entry")
        entry_row.addWidget(self.btn_attach_entry_photo)
        entry_row.addWidget(self.btn_add_entry)
        editor_layout.addLayout(entry_row)
        self.entry_attach_label = CaptionLabel("")
        editor_layout.addWidget(self.entry_attach_label)
        self.journal_list = ListWidget()
        editor_layout.addWidget(self.journal_list, 1)
        self.btn_delete_entry = PushButton("Delete Entry")
        editor_layout.addWidget(self.btn_delete_entry)

        self.btn_delete = PushButton("Delete Marker")
        editor_layout.addWidget(self.btn_delete)

        layout.addWidget(self.editor, 1)

    def _connect_signals(self) -> None:
        self.btn_save.clicked.connect(self._on_save_clicked)
        self.btn_relocate.clicked.connect(self._on_relocate_clicked)
        self.btn_commit.clicked.connect(lambda: self.sigFinishRelocation.emit(True))
        self.btn_cancel.clicked.connect(lambda: self.sigFinishRelocation.emit(False))
        self.btn_delete.clicked.connect(self._on_delete_clicked)
        self.search_edit.searchSignal.connect(self.sigSearchPlants.emit)
        self.search_edit.returnPressed.connect(
            lambda: self.sigSearchPlants.emit(self.search_edit.text())
        )
        self.results_list.itemDoubleClicked.connect(self._on_result_chosen)
        self.btn_unlink.clicked.connect(self._on_unlink_clicked)
        self.btn_add_photo.clicked.connect(self._on_add_photo_clicked)
        self.btn_remove_photo.clicked.connect(self._on_remove_photo_clicked)
        self.btn_attach_entry_photo.clicked.connect(self._on_attach_entry_photo_clicked)
        self.btn_add_entry.clicked.connect(self._on_add_entry_clicked)
        self.btn_delete_entry.clicked.connect(self._on_delete_entry_clicked)

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    @property
    def marker_id(self) -> Optional[int]:
        return None if self._marker is None else self._marker.id

    def show_marker(self, marker: Optional[Marker], relocating: bool = False) -> None:
        """Fill the editor from ``marker``; ``None`` shows the empty hint.

        Switching to another marker discards the unsent history draft.
        """
        if marker is None or marker.id != self.marker_id:
            self.clear_entry_draft()
        self._marker = marker
        self.editor.setVisible(marker is not None)
        self.empty_label.setVisible(marker is None)
        if marker is None:
            self.title_label.setText("Marker")
            return
        self.title_label.setText(marker.label)
        if self.edit_label.text() != marker.label:
            self.edit_label.setText(marker.label)
        if self.edit_notes.toPlainText() != marker.notes:
            self.edit_notes.setPlainText(marker.notes)
        self._show_reference(marker.linked_reference)
        self._show_photos(marker.photos)
        self._show_journal(marker.journal)
        self.set_relocating(relocating)

    def set_relocating(self, relocating: bool) -> None:
        self.btn_relocate.setVisible(not relocating)
        self.btn_commit.setVisible(relocating)
        self.btn_cancel.setVisible(relocating)
        for widget in (
            self.btn_save,
            self.btn_delete,
            self.btn_add_photo,
            self.btn_attach_entry_photo,
            self.btn_add_entry,
        ):
            widget.setEnabled(not relocating)

    def attach_entry_photos(self, file_paths: list[str]) -> None:
        """Queue photos for the next history entry."""
        self.pending_entry_photos.extend(file_paths)
        self.entry_attach_label.setText(
            f"{len(self.pending_entry_photos)} photo(s) attached"
            if self.pending_entry_photos
            else ""
        )

    def clear_entry_draft(self) -> None:
        self.edit_entry.clear()
        self.pending_entry_photos = []
        self.entry_attach_label.setText("")

    def show_search_results(self, references: list[ExternalReference]) -> None:
        self._results = list(references)
        self.results_list.clear()
        for reference in self._results:
            text = reference.display_name
            if reference.scientific_name:
                text = f"{text} ({reference.scientific_name})"
            item = QListWidgetItem(f"{text} [{reference.source}]")
            item.setToolTip(reference.info_url or "")
            self.results_list.addItem(item)

    def _show_reference(self, reference: Optional[ExternalReference]) -> None:
        if reference is None:
            self.linked_label.setText("No plant linked")
            self.btn_unlink.setEnabled(False)
            return
        text = reference.display_name
        if reference.info_url:
            text = f'<a href="{reference.info_url}">{text}</a>'
            self.linked_label.setOpenExternalLinks(True)
        self.linked_label.setText(f"{text} ({reference.source})")
        self.btn_unlink.setEnabled(True)

    def _show_photos(self, photos: list[str]) -> None:
        self.photo_list.clear()
        for index, _ref in enumerate(photos, start=1):
            self.photo_list.addItem(QListWidgetItem(f"Photo {index}"))

    def _show_journal(self, entries: list[JournalEntry]) -> None:
        self.journal_list.clear()
        for entry in newest_first(entries):
            text = entry.text or "(photo)"
            if entry.photos:
                text = f"{text}  [{len(entry.photos)} photo(s)]"
            item = QListWidgetItem(f"{format_timestamp(entry.timestamp)}  {text}")
            item.setData(Qt.ItemDataRole.UserRole, entry.id)
            self.journal_list.addItem(item)

    # ------------------------------------------------------------------
    # Slots
    # ------------------------------------------------------------------

    def _on_save_clicked(self) -> None:
        if self._marker is None:
            return
        self.sigSaveDetails.emit(
            self._marker.id, self.edit_label.text(), self.edit_notes.toPlainText()
        )

    def _on_relocate_clicked(self) -> None:
        if self._marker is not None:
            self.sigStartRelocation.emit(self._marker.id)

    def _on_delete_clicked(self) -> None:
        if self._marker is not None:
            self.sigDeleteMarker.emit(self._marker.id)

    def _on_result_chosen(self, item: QListWidgetItem) -> None:
        row = self.results_list.row(item)
        if self._marker is None or not 0 <= row < len(self._results):
            return
        self.sigLinkReference.emit(self._marker.id, self._results[row])

    def _on_unlink_clicked(self) -> None:
        if self._marker is not None:
            self.sigLinkReference.emit(self._marker.id, None)

    def _on_add_photo_clicked(self) -> None:
        if self._marker is None:
            return
        file_paths, _ = QFileDialog.getOpenFileNames(self, "Add Photos", "", IMAGE_FILTER)
        if file_paths:
            self.sigAddPhotos.emit(self._marker.id, list(file_paths))

    def _on_remove_photo_clicked(self) -> None:
        row = self.photo_list.currentRow()
        if self._marker is not None and row >= 0:
            self.sigRemovePhoto.emit(self._marker.id, row)

    def _on_add_entry_clicked(self) -> None:
        if self._marker is None:
            return
        self.sigAddJournalEntry.emit(
            self._marker.id, self.edit_entry.toPlainText(), list(self.pending_entry_photos)
        )

    def _on_attach_entry_photo_clicked(self) -> None:
        file_paths, _ = QFileDialog.getOpenFileNames(self, "Attach Photos", "", IMAGE_FILTER)
        if file_paths:
            self.attach_entry_photos(list(file_paths))

    def _on_delete_entry_clicked(self) -> None:
        item = self.journal_list.currentItem()
        if self._marker is None or item is None:
            return
        self.sigDeleteJournalEntry.emit(self._marker.id, int(item.data(Qt.ItemDataRole.UserRole)))
