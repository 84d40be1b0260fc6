# GardenMapper Core Module
"""
Core editing logic for GardenMapper.

Contains:
- Data model (projects, markers, journal entries)
- Pointer-to-image coordinate transform
- Marker store and hit testing
- Relocation (drag-to-move) state machine
- Marker raster renderer
- Editor session and project lifecycle
"""
