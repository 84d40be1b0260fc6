"""
Tab page skeleton: a row of titled control groups above one content widget.
"""

from typing import Optional

from PySide6.QtWidgets import (
    QWidget,
    QVBoxLayout,
    QHBoxLayout,
    QGroupBox,
)


class PageGroup(QGroupBox):
    """
    Titled box of tool bar controls laid out in one row.
    """

    def __init__(self, title: str, *widgets: QWidget, parent: Optional[QWidget] = None) -> None:
        super().__init__(title, parent)
        self.setObjectName("PageGroup")

        self._row = QHBoxLayout(self)
        self._row.setContentsMargins(8, 16, 8, 8)
        self._row.setSpacing(6)
        for widget in widgets:
            self.add_widget(widget)

    def add_widget(self, widget: QWidget) -> None:
        self._row.addWidget(widget)


class BaseInterface(QWidget):
    """
    Base widget for navigation pages.

    The tool bar on top holds :class:`PageGroup` boxes and loose widgets
    (status hints); the content widget fills the remaining height.
    """

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)

        outer = QVBoxLayout(self)
        outer.setContentsMargins(0, 0, 0, 0)
        outer.setSpacing(0)

        self.tool_bar = QWidget()
        self.tool_bar.setObjectName("ToolBar")
        self.tool_bar.setMaximumHeight(110)
        self._tool_layout = QHBoxLayout(self.tool_bar)
        self._tool_layout.setContentsMargins(4, 4, 4, 4)
        self._tool_layout.setSpacing(8)
        outer.addWidget(self.tool_bar)

        self.content_area = QWidget()
        self.content_area.setObjectName("ContentArea")
        self._content_layout = QVBoxLayout(self.content_area)
        self._content_layout.setContentsMargins(0, 0, 0, 0)
        outer.addWidget(self.content_area, 1)

    def add_tool(self, item: QWidget) -> None:
        """Append a group or a plain widget to the tool bar."""
        self._tool_layout.addWidget(item)

    def finish_tool_bar(self) -> None:
        """Push everything added so far to the left edge."""
        self._tool_layout.addStretch(1)

    def set_content(self, widget: QWidget) -> None:
        self._content_layout.addWidget(widget)
