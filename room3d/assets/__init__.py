"""Asset loading and provenance resolution."""

from .loader import AssetLoader
from .resolver import PRIMITIVE_SHAPES, AssetResolver

__all__ = ["AssetLoader", "AssetResolver", "PRIMITIVE_SHAPES"]
