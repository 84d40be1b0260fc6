from PySide6.QtWidgets import QFrame, QHBoxLayout, QWidget
from PySide6.QtCore import Signal, Qt
from qfluentwidgets import DoubleSpinBox, BodyLabel

from gardenmap.core.models import MAX_SCALE, MIN_SCALE


class StatusBar(QFrame):
    """
    Status bar with image-pixel coordinates and an editable zoom percentage.
    """

    sigZoomChanged = Signal(float)

    def __init__(self, parent: QWidget = None):
        super().__init__(parent)
        self._init_ui()
        self.zoom_sb.valueChanged.connect(self._on_zoom_changed)

    def _init_ui(self):
        self.setObjectName('statusBar')
        self.setFixedHeight(40)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        # --- Section 1: Coordinates ---
        self.coord_container = QWidget()
        coord_layout = QHBoxLayout(self.coord_container)
        coord_layout.setContentsMargins(16, 0, 16, 0)

        self.coord_label = BodyLabel(self._coord_text(0.0, 0.0))
        coord_layout.addWidget(self.coord_label, alignment=Qt.AlignmentFlag.AlignCenter)

        layout.addWidget(self.coord_container, 1)

        layout.addWidget(self._create_separator())

        # --- Section 2: Zoom ---
        self.zoom_container = QWidget()
        zoom_layout = QHBoxLayout(self.zoom_container)
        zoom_layout.setContentsMargins(16, 0, 16, 0)
        zoom_layout.setSpacing(10)

        self.zoom_label = BodyLabel("Zoom")

        self.zoom_sb = DoubleSpinBox()
        self.zoom_sb.setRange(MIN_SCALE * 100, MAX_SCALE * 100)
        self.zoom_sb.setSuffix("%")
        self.zoom_sb.setPrefix("")
        self.zoom_sb.setValue(100)
        self.zoom_sb.setSingleStep(50)
        self.zoom_sb.setDecimals(0)

        zoom_layout.addWidget(self.zoom_label)
        zoom_layout.addWidget(self.zoom_sb, 1)

        layout.addWidget(self.zoom_container, 1)

    def _create_separator(self) -> QFrame:
        line = QFrame()
        line.setFrameShape(QFrame.Shape.VLine)
        line.setFrameShadow(QFrame.Shadow.Sunken)
        line.setLineWidth(1)
        line.setMidLineWidth(0)
        line.setStyleSheet("QFrame { border: none; background-color: #E5E5E5; max-width: 1px; }")
        line.setFixedHeight(24)
        return line

    @staticmethod
    def _coord_text(x: float, y: float) -> str:
        return f"X: {x:.1f} px  Y: {y:.1f} px"

    def _on_zoom_changed(self, value: float):
        self.sigZoomChanged.emit(value / 100.0)

    def update_coordinates(self, x: float, y: float) -> None:
        self.coord_label.setText(self._coord_text(x, y))

    def update_zoom(self, scale: float) -> None:
        # Block signals to prevent loop: Canvas -> StatusBar -> Canvas -> ...
        percent = scale * 100.0
        if abs(self.zoom_sb.value() - percent) > 0.01:
            self.zoom_sb.blockSignals(True)
            self.zoom_sb.setValue(percent)
            self.zoom_sb.blockSignals(False)
