"""room3d - Furniture layout editor for a fixed 3D room.

A Python application for placing furniture items in a room, selecting and
moving/rotating/scaling them, and saving the arrangement for later.
"""

__version__ = "0.1.0"

from .core.config import Room3DConfig
from .core.errors import AssetLoadError, EmptySelectionError, LayoutSaveError, NoSnapshotError
from .assets.resolver import AssetResolver
from .editor.editor import RoomEditor
from .editor.persistence import LayoutPersistence
from .scene.manipulator import ManipulatorModeController, TransformMode
from .scene.provenance import AssetRef, Primitive
from .scene.registry import ItemRegistry, PlacedItem
from .scene.selection import SelectionController
from .scene.transform import Transform3D

__all__ = [
    "Room3DConfig",
    "AssetLoadError",
    "EmptySelectionError",
    "LayoutSaveError",
    "NoSnapshotError",
    "AssetResolver",
    "RoomEditor",
    "LayoutPersistence",
    "ManipulatorModeController",
    "TransformMode",
    "AssetRef",
    "Primitive",
    "ItemRegistry",
    "PlacedItem",
    "SelectionController",
    "Transform3D",
]
