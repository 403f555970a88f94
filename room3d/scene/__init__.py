"""Scene-item lifecycle: placed items, selection and manipulator modes."""

from .transform import Transform3D
from .provenance import AssetRef, Primitive, parse_selector
from .registry import ItemRegistry, PlacedItem
from .selection import SelectionController
from .manipulator import ManipulatorModeController, TransformMode

__all__ = [
    "Transform3D",
    "AssetRef",
    "Primitive",
    "parse_selector",
    "ItemRegistry",
    "PlacedItem",
    "SelectionController",
    "ManipulatorModeController",
    "TransformMode",
]
