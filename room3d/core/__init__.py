"""Core modules for room3d."""

from .config import Room3DConfig
from .errors import (
    AssetLoadError,
    EmptySelectionError,
    LayoutSaveError,
    NoSnapshotError,
    Room3DError,
    SnapshotFormatError,
)
from .store import JsonFileStore, KeyValueStore, MemoryStore

__all__ = [
    "Room3DConfig",
    "AssetLoadError",
    "EmptySelectionError",
    "LayoutSaveError",
    "NoSnapshotError",
    "Room3DError",
    "SnapshotFormatError",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
]
