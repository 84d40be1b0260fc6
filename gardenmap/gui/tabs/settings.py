from PySide6.QtWidgets import QWidget, QLabel, QFileDialog
from PySide6.QtCore import Qt
from qfluentwidgets import (
    ScrollArea,
    SettingCardGroup,
    PushSettingCard,
    OptionsSettingCard,
    ColorSettingCard,
    ExpandLayout,
    InfoBar,
    InfoBarPosition,
    LineEdit,
    setTheme,
)
from qfluentwidgets import FluentIcon as FIF

from gardenmap.gui.config import cfg


class SecretSettingCard(PushSettingCard):
    """
    Setting card with an inline text field for an API credential.
    """

    def __init__(self, config_item, icon, title, content=None, parent=None):
        super().__init__("Apply", icon, title, content, parent)
        self.configItem = config_item
        self.lineEdit = LineEdit(self)
        self.lineEdit.setEchoMode(LineEdit.EchoMode.Password)
        self.lineEdit.setClearButtonEnabled(True)
        self.lineEdit.setMinimumWidth(220)
        self.lineEdit.setText(config_item.value)
        self.hBoxLayout.insertWidget(self.hBoxLayout.count() - 2, self.lineEdit)
        self.clicked.connect(self._apply)

    def _apply(self):
        cfg.set(self.configItem, self.lineEdit.text().strip())


class SettingsTab(ScrollArea):
    """
    Settings Interface.
    """

    def __init__(self, parent=None):
        super().__init__(parent)

        self.scrollWidget = QWidget()
        self.expandLayout = ExpandLayout(self.scrollWidget)

        self.setWidget(self.scrollWidget)
        self.setWidgetResizable(True)
        self.setObjectName("settingsInterface")

        self._init_ui()
        self._load_settings()
        self._connect_signals()

    def _init_ui(self):
        """Initialize UI controls."""
        self.setViewportMargins(0, 80, 0, 20)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)

        # --- Settings Header ---
        self.settingLabel = QLabel("Settings", self)
        self.settingLabel.setObjectName("settingLabel")
        self.settingLabel.move(36, 30)

        # --- General Group ---
        self.generalGroup = SettingCardGroup("General", self.scrollWidget)

        self.themeCard = OptionsSettingCard(
            cfg.themeMode,
            FIF.BRUSH,
            "Application theme",
            "Change the appearance of the application",
            texts=["Light", "Dark", "Use system setting"],
            parent=self.generalGroup,
        )

        self.markerColorCard = ColorSettingCard(
            cfg.markerColor,
            FIF.PALETTE,
            "Marker color",
            "Fill color of newly placed markers",
            self.generalGroup,
        )

        self.generalGroup.addSettingCard(self.themeCard)
        self.generalGroup.addSettingCard(self.markerColorCard)

        # --- Storage Group ---
        self.storageGroup = SettingCardGroup("Storage", self.scrollWidget)

        self.dataDirCard = PushSettingCard(
            "Browse",
            FIF.FOLDER,
            "Data folder",
            cfg.dataDir.value,
            self.storageGroup,
        )
        self.storageGroup.addSettingCard(self.dataDirCard)

        # --- Plant Lookup Group ---
        self.lookupGroup = SettingCardGroup("Plant lookup", self.scrollWidget)

        self.perenualCard = SecretSettingCard(
            cfg.perenualApiKey,
            FIF.LEAF,
            "Perenual API key",
            "Adds Perenual species to plant search results",
            self.lookupGroup,
        )
        self.trefleCard = SecretSettingCard(
            cfg.trefleToken,
            FIF.SEARCH,
            "Trefle token",
            "Adds Trefle plants to plant search results",
            self.lookupGroup,
        )
        self.lookupGroup.addSettingCard(self.perenualCard)
        self.lookupGroup.addSettingCard(self.trefleCard)

        # --- Add Groups to Layout ---
        self.expandLayout.setSpacing(28)
        self.expandLayout.setContentsMargins(36, 10, 36, 0)
        self.expandLayout.addWidget(self.generalGroup)
        self.expandLayout.addWidget(self.storageGroup)
        self.expandLayout.addWidget(self.lookupGroup)

        self.scrollWidget.setObjectName("scrollWidget")

    def _load_settings(self):
        """Sync cards that are not bound to QConfig automatically."""
        self.dataDirCard.setContent(cfg.dataDir.value or "...")

    def _connect_signals(self):
        """Connect signals."""
        self.dataDirCard.clicked.connect(self._browse_data_dir)
        cfg.themeChanged.connect(setTheme)

    def _browse_data_dir(self):
        """Open file dialog to select the data folder."""
        directory = QFileDialog.getExistingDirectory(
            self,
            "Browse",
            cfg.dataDir.value,
        )
        if directory:
            self.set_data_dir(directory)

    def set_data_dir(self, directory: str):
        self.dataDirCard.setContent(directory)
        cfg.set(cfg.dataDir, directory)
        self._on_restart_needed()

    def _on_restart_needed(self):
        """Show restart warning."""
        InfoBar.warning(
            title="Restart required",
            content="The new data folder is used after restarting the application.",
            orient=Qt.Orientation.Horizontal,
            isClosable=True,
            position=InfoBarPosition.TOP_RIGHT,
            duration=5000,
            parent=self,
        )
