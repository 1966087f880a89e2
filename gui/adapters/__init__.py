"""GUI adapter layer.

This package provides thin Qt-shaped adapters over the grid engine.

Notes
-----
Adapters exist to:
- keep engine calls on the background event loop, off the UI thread,
- hand immutable snapshots back to widgets through queued signals,
- turn questions the engine asks (delete confirmation) into dialogs.
"""
