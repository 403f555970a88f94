"""Editor context and layout persistence."""

from .editor import RoomEditor
from .persistence import LayoutPersistence, LayoutSnapshot, LoadReport, SnapshotItem

__all__ = ["RoomEditor", "LayoutPersistence", "LayoutSnapshot", "LoadReport", "SnapshotItem"]
