#!/usr/bin/env python
"""
GardenMapper - Garden plan annotation GUI.

Main entry point for the application.

Usage
-----
    python main.py
"""

import sys


def main() -> int:
    """
    Main entry point for GardenMapper application.

    Returns
    -------
    int
        Exit code (0 for success, non-zero for error).
    """
    from loguru import logger
    from PySide6.QtWidgets import QApplication
    import pyqtgraph as pg

    from gardenmap import __version__

    # Configure logging
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | "
               "<level>{level: <8}</level> | "
               "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
               "<level>{message}</level>",
        level="DEBUG"
    )

    logger.info("Starting GardenMapper...")

    # Antialiased pens and brushes for marker glyphs
    pg.setConfigOptions(antialias=True)

    # Create application
    app = QApplication(sys.argv)
    app.setApplicationName("GardenMapper")
    app.setApplicationVersion(__version__)
    app.setOrganizationName("GardenMapper")

    app.setStyle("Fusion")

    # Import and create main window
    from gardenmap.gui.main_window import MainWindow

    window = MainWindow()
    window.show()

    logger.info("Application started successfully")

    exit_code = app.exec()

    logger.info(f"Application exited with code: {exit_code}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
