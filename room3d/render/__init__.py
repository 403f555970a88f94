"""Headless render collaborators: scene graph, camera and input widgets."""

from .camera import PerspectiveCamera, Ray
from .controls import OrbitControls, TransformGizmo
from .room_scene import RayHit, RoomScene, RoomShell, VisualNode

__all__ = [
    "PerspectiveCamera",
    "Ray",
    "OrbitControls",
    "TransformGizmo",
    "RayHit",
    "RoomScene",
    "RoomShell",
    "VisualNode",
]
