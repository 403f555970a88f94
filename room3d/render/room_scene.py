"""Headless render collaborator built on trimesh.

The editor core only talks to the renderer through a handful of operations:
add a visual node, remove it, move it, ray-intersect a set of nodes and read
a node's bounding box. ``RoomScene`` provides those on top of a
``trimesh.Scene`` so layouts can be built, picked and exported without a GPU.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

import numpy as np
import trimesh
from numpy.typing import NDArray

if TYPE_CHECKING:
    from .camera import Ray

logger = logging.getLogger(__name__)


def hex_to_rgba(color: str) -> list[int]:
    """Convert ``#rrggbb`` to an RGBA list with full opacity."""
    value = color.lstrip("#")
    return [int(value[i:i + 2], 16) for i in (0, 2, 4)] + [255]


def paint(mesh: trimesh.Trimesh, color: str) -> None:
    """Set a uniform face color on a mesh."""
    mesh.visual.face_colors = hex_to_rgba(color)


class VisualNode:
    """A drawable subtree placed in the room by a single matrix.

    ``parts`` is a model-space ``trimesh.Scene``; each of its geometry nodes
    becomes one pickable sub-node once the visual is attached to a
    ``RoomScene``. An imported model can have many parts, a primitive has one.
    """

    def __init__(
        self,
        name: str,
        parts: trimesh.Scene,
        matrix: NDArray[np.float64] | None = None,
    ):
        self.name = name
        self.parts = parts
        self.matrix = np.eye(4) if matrix is None else np.asarray(matrix, dtype=np.float64)
        # Names of this node's parts inside the room scene while attached
        self.part_names: list[str] = []
        # Factor baked into the geometry by asset normalization
        self.normalization = 1.0

    @property
    def is_attached(self) -> bool:
        return bool(self.part_names)

    def iter_parts(self) -> Iterable[tuple[str, trimesh.Trimesh, NDArray[np.float64]]]:
        """Yield ``(local_name, mesh, local_matrix)`` for every drawable part."""
        graph = self.parts.graph
        for node_name in graph.nodes_geometry:
            local, geom_name = graph[node_name]
            geometry = self.parts.geometry.get(geom_name)
            if isinstance(geometry, trimesh.Trimesh):
                yield node_name, geometry, local

    def world_vertices(self) -> NDArray[np.float64]:
        chunks = [
            trimesh.transformations.transform_points(mesh.vertices, self.matrix @ local)
            for _, mesh, local in self.iter_parts()
        ]
        if not chunks:
            return np.empty((0, 3))
        return np.vstack(chunks)

    def bounds(self) -> tuple[NDArray[np.float64], NDArray[np.float64]] | None:
        """Return world-space (min, max) corners, or None when empty."""
        vertices = self.world_vertices()
        if len(vertices) == 0:
            return None
        return vertices.min(axis=0), vertices.max(axis=0)

    def local_extents(self) -> NDArray[np.float64]:
        """Return the model-space bounding-box size (zeros when empty)."""
        bounds = self.parts.bounds
        if bounds is None:
            return np.zeros(3)
        return np.asarray(bounds[1] - bounds[0], dtype=np.float64)

    def apply_uniform_scale(self, factor: float) -> None:
        """Scale the model-space geometry, preserving aspect ratio."""
        self.parts = self.parts.scaled(factor)

    def __repr__(self) -> str:
        return f"VisualNode({self.name!r}, {len(self.parts.graph.nodes_geometry)} parts)"


@dataclass
class RayHit:
    """One ray/triangle intersection, nearest first when sorted."""

    distance: float
    part_name: str
    point: NDArray[np.float64]


def _ray_triangle_distances(
    origin: NDArray[np.float64],
    direction: NDArray[np.float64],
    triangles: NDArray[np.float64],
    eps: float = 1e-9,
) -> NDArray[np.float64]:
    """Vectorized Moller-Trumbore; returns hit distances, inf for misses."""
    v0 = triangles[:, 0]
    e1 = triangles[:, 1] - v0
    e2 = triangles[:, 2] - v0

    p = np.cross(direction, e2)
    det = np.einsum("ij,ij->i", e1, p)
    valid = np.abs(det) > eps
    inv_det = np.zeros_like(det)
    inv_det[valid] = 1.0 / det[valid]

    s = origin - v0
    u = np.einsum("ij,ij->i", s, p) * inv_det
    q = np.cross(s, e1)
    v = (q @ direction) * inv_det
    t = np.einsum("ij,ij->i", e2, q) * inv_det

    hit = valid & (u >= 0) & (v >= 0) & (u + v <= 1) & (t > eps)
    return np.where(hit, t, np.inf)


class RoomScene:
    """The room's scene graph: static surfaces plus attached visual nodes."""

    def __init__(self) -> None:
        self.scene = trimesh.Scene()
        self._nodes: dict[str, VisualNode] = {}
        self._static: list[str] = []

    def add_static(self, name: str, mesh: trimesh.Trimesh) -> None:
        """Add a non-pickable mesh such as the floor or a wall."""
        self.scene.add_geometry(mesh, node_name=name, geom_name=name)
        self._static.append(name)

    def static_mesh(self, name: str) -> trimesh.Trimesh:
        return self.scene.geometry[name]

    def add_node(self, node: VisualNode) -> list[str]:
        """Attach a visual node; returns the names of its parts in the scene.

        Raises:
            ValueError: If a node with the same name is already attached
        """
        if node.name in self._nodes:
            raise ValueError(f"Visual node '{node.name}' is already in the scene")

        part_names = []
        for local_name, mesh, local in node.iter_parts():
            part_name = f"{node.name}/{local_name}"
            self.scene.add_geometry(
                mesh,
                node_name=part_name,
                geom_name=part_name,
                transform=node.matrix @ local,
            )
            part_names.append(part_name)

        node.part_names = part_names
        self._nodes[node.name] = node
        logger.debug(f"Attached {node!r} as {len(part_names)} part(s)")
        return part_names

    def remove_node(self, node: VisualNode) -> None:
        """Detach a visual node and drop its geometry. Unknown nodes are ignored."""
        if self._nodes.pop(node.name, None) is None:
            return
        if node.part_names:
            self.scene.delete_geometry(node.part_names)
        node.part_names = []

    def contains(self, node: VisualNode) -> bool:
        return self._nodes.get(node.name) is node

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    def set_node_matrix(self, node: VisualNode, matrix: NDArray[np.float64]) -> None:
        """Move an attached node by replacing its placement matrix."""
        node.matrix = np.asarray(matrix, dtype=np.float64)
        if not self.contains(node):
            return
        for (_, _, local), part_name in zip(node.iter_parts(), node.part_names):
            self.scene.graph.update(frame_to=part_name, matrix=node.matrix @ local)

    def intersect(self, ray: Ray, nodes: Iterable[VisualNode]) -> list[RayHit]:
        """Intersect a ray with every part of the given nodes.

        Returns:
            Hits sorted by distance, nearest first (one per part at most)
        """
        origin = np.asarray(ray.origin, dtype=np.float64)
        direction = np.asarray(ray.direction, dtype=np.float64)

        hits = []
        for node in nodes:
            for (_, mesh, local), part_name in zip(node.iter_parts(), node.part_names):
                triangles = trimesh.transformations.transform_points(
                    mesh.triangles.reshape(-1, 3), node.matrix @ local
                ).reshape(-1, 3, 3)
                distances = _ray_triangle_distances(origin, direction, triangles)
                if len(distances) == 0:
                    continue
                nearest = float(distances.min())
                if np.isfinite(nearest):
                    hits.append(RayHit(nearest, part_name, origin + nearest * direction))

        hits.sort(key=lambda h: h.distance)
        return hits

    def export(self, path: str | Path) -> Path:
        """Write the whole room (surfaces and items) to a model file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.scene.export(str(path))
        logger.info(f"Exported room to {path}")
        return path


class RoomShell:
    """Floor and two walls of the fixed room, with recolorable materials."""

    FLOOR = "floor"
    WALLS = ("wall_back", "wall_left")
    THICKNESS = 0.01

    def __init__(
        self,
        scene: RoomScene,
        floor_size: tuple[float, float] = (12.0, 8.0),
        wall_height: float = 4.0,
        floor_color: str = "#ffffff",
        wall_color: str = "#f0f0f0",
    ):
        self.scene = scene
        width, depth = floor_size
        t = self.THICKNESS

        floor = trimesh.creation.box(extents=[width, t, depth])
        floor.apply_translation([0.0, -t / 2, 0.0])

        back = trimesh.creation.box(extents=[width, wall_height, t])
        back.apply_translation([0.0, wall_height / 2, -depth / 2])

        left = trimesh.creation.box(extents=[t, wall_height, depth])
        left.apply_translation([-width / 2, wall_height / 2, 0.0])

        scene.add_static(self.FLOOR, floor)
        for name, mesh in zip(self.WALLS, (back, left)):
            scene.add_static(name, mesh)

        self.floor_color = floor_color
        self.wall_color = wall_color
        self.set_floor_color(floor_color)
        self.set_wall_color(wall_color)

    def set_floor_color(self, color: str) -> None:
        paint(self.scene.static_mesh(self.FLOOR), color)
        self.floor_color = color

    def set_wall_color(self, color: str) -> None:
        for name in self.WALLS:
            paint(self.scene.static_mesh(name), color)
        self.wall_color = color
