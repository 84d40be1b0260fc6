"""Garden-wide journal panel."""

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import QFileDialog, QHBoxLayout, QListWidgetItem, QVBoxLayout, QWidget
from qfluentwidgets import (
    CaptionLabel,
    ListWidget,
    PlainTextEdit,
    PrimaryPushButton,
    PushButton,
    SubtitleLabel,
)

from gardenmap.core.models import JournalEntry
from gardenmap.gui.components.marker_panel import IMAGE_FILTER, format_timestamp


class JournalPanel(QWidget):
    """Compose, list and delete entries of the garden journal."""

    sigAddEntry = Signal(str, list)
    sigDeleteEntry = Signal(object)

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setObjectName("journalPanel")
        self.pending_photos: list[str] = []
        self._init_ui()
        self._connect_signals()

    def _init_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(8)

        layout.addWidget(SubtitleLabel("Garden Journal"))
        self.edit_text = PlainTextEdit()
        self.edit_text.setPlaceholderText("Weather, harvests, tasks...")
        self.edit_text.setFixedHeight(80)
        layout.addWidget(self.edit_text)

        row = QHBoxLayout()
        self.btn_attach = PushButton("Attach Photos")
        self.btn_add = PrimaryPushButton("Add Entry")
        row.addWidget(self.btn_attach)
        row.addWidget(self.btn_add)
        layout.addLayout(row)
        self.attach_label = CaptionLabel("")
        layout.addWidget(self.attach_label)

        self.entry_list = ListWidget()
        layout.addWidget(self.entry_list, 1)
        self.btn_delete = PushButton("Delete Entry")
        layout.addWidget(self.btn_delete)

    def _connect_signals(self) -> None:
        self.btn_attach.clicked.connect(self._on_attach_clicked)
        self.btn_add.clicked.connect(self._on_add_clicked)
        self.btn_delete.clicked.connect(self._on_delete_clicked)

    def attach_photos(self, file_paths: list[str]) -> None:
        """Queue photos for the next entry."""
        self.pending_photos.extend(file_paths)
        self.attach_label.setText(
            f"{len(self.pending_photos)} photo(s) attached" if self.pending_photos else ""
        )

    def show_entries(self, entries: list[JournalEntry]) -> None:
        self.entry_list.clear()
        for entry in entries:
            text = entry.text or "(photo)"
            if entry.photos:
                text = f"{text}  [{len(entry.photos)} photo(s)]"
            item = QListWidgetItem(f"{format_timestamp(entry.timestamp)}  {text}")
            item.setData(Qt.ItemDataRole.UserRole, entry.id)
            self.entry_list.addItem(item)

    def clear_draft(self) -> None:
        self.edit_text.clear()
        self.pending_photos = []
        self.attach_label.setText("")

    def _on_attach_clicked(self) -> None:
        file_paths, _ = QFileDialog.getOpenFileNames(self, "Attach Photos", "", IMAGE_FILTER)
        if file_paths:
            self.attach_photos(list(file_paths))

    def _on_add_clicked(self) -> None:
        self.sigAddEntry.emit(self.edit_text.toPlainText(), list(self.pending_photos))

    def _on_delete_clicked(self) -> None:
        item = self.entry_list.currentItem()
        if item is not None:
            self.sigDeleteEntry.emit(item.data(Qt.ItemDataRole.UserRole))
