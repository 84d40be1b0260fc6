# GardenMapper Tab Modules
"""
Tab modules for the GardenMapper main window.

Tabs:
- GardenTab: project toolbar, canvas and side panels
- SettingsTab: theme, storage and plant lookup credentials
"""
