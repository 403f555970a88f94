"""Turning an item's provenance into a renderable visual node.

Primitive kinds are built synchronously and never fail. Asset references are
fetched and parsed asynchronously; on success the model is normalized to a
fixed size, on failure ``AssetLoadError`` is raised. Choosing a substitute
shape is left to the caller, which knows which primitive it wants.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import trimesh

from ..core.errors import AssetLoadError
from ..render.room_scene import VisualNode, paint
from ..scene.provenance import AssetRef, Primitive
from .loader import AssetLoader

if TYPE_CHECKING:
    import httpx

    from ..core.config import AssetParams
    from ..scene.provenance import Provenance
    from ..scene.transform import Transform3D

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PrimitiveShape:
    """A built-in furniture box."""

    label: str
    extents: tuple[float, float, float]
    color: str


PRIMITIVE_SHAPES: dict[str, PrimitiveShape] = {
    "sofa": PrimitiveShape("Sofa", (2.0, 0.8, 0.9), "#8b5cf6"),
    "chair": PrimitiveShape("Chair", (0.9, 0.9, 0.9), "#f59e0b"),
    "table": PrimitiveShape("Table", (1.2, 0.6, 1.2), "#10b981"),
}

KIND_ALIASES = {"box_sofa": "sofa", "box_chair": "chair"}

# Unrecognised kinds render as a table
DEFAULT_SHAPE = PRIMITIVE_SHAPES["table"]


def shape_for(kind: str) -> PrimitiveShape:
    kind = KIND_ALIASES.get(kind, kind)
    return PRIMITIVE_SHAPES.get(kind, DEFAULT_SHAPE)


def mark_shadows(scene: trimesh.Scene, cast: bool = True, receive: bool = True) -> None:
    """Flag every mesh in ``scene`` as shadow casting/receiving."""
    for geometry in scene.geometry.values():
        if isinstance(geometry, trimesh.Trimesh):
            geometry.metadata["cast_shadow"] = cast
            geometry.metadata["receive_shadow"] = receive


class AssetResolver:
    """Resolve provenance into normalized visual nodes."""

    def __init__(self, loader: AssetLoader | None = None, target_size: float = 1.4):
        self.loader = loader or AssetLoader()
        self.target_size = target_size

    @classmethod
    def from_params(cls, params: AssetParams, client: httpx.AsyncClient | None = None) -> AssetResolver:
        return cls(AssetLoader.from_params(params, client=client), params.target_size)

    @staticmethod
    def display_name(provenance: Provenance) -> str:
        if isinstance(provenance, Primitive):
            return shape_for(provenance.kind).label
        return provenance.stem or provenance.url

    def build_primitive(self, kind: str, transform: Transform3D | None = None) -> VisualNode:
        """Build the box for a primitive kind. Never fails."""
        shape = shape_for(kind)
        mesh = trimesh.creation.box(extents=shape.extents)
        paint(mesh, shape.color)

        parts = trimesh.Scene()
        parts.add_geometry(mesh, node_name="body", geom_name="body")
        mark_shadows(parts, cast=True, receive=False)

        return VisualNode(
            shape.label,
            parts,
            matrix=transform.to_matrix() if transform is not None else None,
        )

    def normalize(self, node: VisualNode) -> float:
        """Scale ``node`` so its largest dimension equals the target size.

        A zero-size model is left unscaled.

        Returns:
            The applied scale factor (1.0 when unscaled)
        """
        largest = float(np.max(node.local_extents()))
        if largest <= 0:
            return 1.0
        factor = self.target_size / largest
        node.apply_uniform_scale(factor)
        node.normalization = factor
        return factor

    async def resolve(self, provenance: Provenance, transform: Transform3D | None = None) -> VisualNode:
        """Resolve ``provenance`` into a visual node placed at ``transform``.

        Raises:
            AssetLoadError: If an asset reference cannot be fetched or parsed
        """
        if isinstance(provenance, Primitive):
            return self.build_primitive(provenance.kind, transform)

        return await self._resolve_asset(provenance, transform)

    async def _resolve_asset(self, ref: AssetRef, transform: Transform3D | None) -> VisualNode:
        try:
            parts = await self.loader.load(ref)
        except Exception as e:
            logger.debug(f"Model load failed: {ref.url}: {e}")
            raise AssetLoadError(ref.url, e) from e

        node = VisualNode(
            self.display_name(ref),
            parts,
            matrix=transform.to_matrix() if transform is not None else None,
        )
        factor = self.normalize(node)
        mark_shadows(node.parts)
        logger.debug(f"Resolved {ref.url} (normalization factor {factor:.4f})")
        return node
