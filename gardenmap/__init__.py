# GardenMapper - Source Package
"""
GardenMapper: spatial garden annotation GUI application.

This package provides a PySide6-based GUI for:
- Loading a garden floorplan or aerial photo as a project base image
- Placing, editing and relocating plant markers on the image
- Keeping per-marker and garden-wide timestamped journals
- Linking markers to plant references from online catalogs
"""

__version__ = "0.1.0"
