"""
Floor Display - live order board for the restaurant floor.

Architecture:
- datafeed/: websocket connection, payload normalisation and local order store
- engine/: projection of the store into per-table cards, label tables
- ui/: floor board (Textual TUI) and TV window (PyQt6)
"""

__version__ = "0.1.0"
