from pathlib import Path

from PySide6.QtGui import QColor
from qfluentwidgets import (
    QConfig,
    qconfig,
    ConfigItem,
    ColorConfigItem,
    FolderValidator,
    OptionsConfigItem,
    OptionsValidator,
    EnumSerializer,
    Theme,
)

from gardenmap import __version__
from gardenmap.core.models import DEFAULT_MARKER_COLOR

DEFAULT_DATA_DIR = str(Path.home() / "GardenMapper")


class Config(QConfig):
    """
    Configuration for the application.
    """

    # Theme Mode: Light, Dark, Auto
    themeMode = OptionsConfigItem(
        "General", "ThemeMode", Theme.AUTO, OptionsValidator(Theme), EnumSerializer(Theme), restart=False
    )

    # Folder holding garden-data.json and uploads/
    dataDir = ConfigItem(
        "Storage", "DataDir", DEFAULT_DATA_DIR, FolderValidator()
    )

    # Plant catalog credentials, empty disables the provider
    perenualApiKey = ConfigItem("PlantLookup", "PerenualApiKey", "")
    trefleToken = ConfigItem("PlantLookup", "TrefleToken", "")

    # Fill color of newly placed markers
    markerColor = ColorConfigItem("Editor", "MarkerColor", QColor(DEFAULT_MARKER_COLOR))


YEAR = 2025
AUTHOR = "GardenMapper contributors"
VERSION = __version__

cfg = Config()
qconfig.load('config.json', cfg)
