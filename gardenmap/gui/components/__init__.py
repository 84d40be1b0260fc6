# GardenMapper GUI Components
"""
Reusable GUI components for GardenMapper.

Components:
- MarkerCanvas: base image viewer with marker overlay and pointer routing
- MarkerPanel: detail editor for the selected marker
- JournalPanel: garden-wide journal
- StatusBar: image coordinates and zoom
"""
