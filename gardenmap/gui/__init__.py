# GardenMapper GUI
"""
PySide6 / Fluent desktop shell for GardenMapper.
"""
