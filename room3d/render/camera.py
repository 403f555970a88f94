"""Pointer-to-ray projection for picking."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np
from numpy.typing import NDArray


@dataclass
class Ray:
    """A world-space ray; the direction is normalized on construction."""

    origin: NDArray[np.float64]
    direction: NDArray[np.float64] = field(default_factory=lambda: np.array([0.0, 0.0, -1.0]))

    def __post_init__(self) -> None:
        self.origin = np.asarray(self.origin, dtype=np.float64)
        direction = np.asarray(self.direction, dtype=np.float64)
        length = np.linalg.norm(direction)
        if length == 0:
            raise ValueError("Ray direction must be non-zero")
        self.direction = direction / length

    def at(self, distance: float) -> NDArray[np.float64]:
        return self.origin + distance * self.direction


class PerspectiveCamera:
    """A look-at perspective camera.

    Args:
        position: Eye position
        target: Point the camera looks at
        fov_deg: Vertical field of view in degrees
        aspect: Viewport width / height
    """

    def __init__(
        self,
        position: Sequence[float] = (6.0, 6.0, 8.0),
        target: Sequence[float] = (0.0, 1.0, 0.0),
        fov_deg: float = 50.0,
        aspect: float = 16 / 9,
        up: Sequence[float] = (0.0, 1.0, 0.0),
    ):
        self.position = np.asarray(position, dtype=np.float64)
        self.target = np.asarray(target, dtype=np.float64)
        self.fov_deg = fov_deg
        self.aspect = aspect
        self.up = np.asarray(up, dtype=np.float64)

    @staticmethod
    def pointer_to_ndc(x: float, y: float, width: float, height: float) -> tuple[float, float]:
        """Convert pixel coordinates (origin top-left) to normalized device coordinates."""
        return (x / width) * 2 - 1, -(y / height) * 2 + 1

    def ray_from_pointer(self, x_ndc: float, y_ndc: float) -> Ray:
        """Build the world-space ray through a point in normalized device coordinates."""
        forward = self.target - self.position
        forward /= np.linalg.norm(forward)
        right = np.cross(forward, self.up)
        right /= np.linalg.norm(right)
        true_up = np.cross(right, forward)

        tan_half = math.tan(math.radians(self.fov_deg) / 2)
        direction = (
            forward
            + x_ndc * tan_half * self.aspect * right
            + y_ndc * tan_half * true_up
        )
        return Ray(self.position.copy(), direction)

    def __repr__(self) -> str:
        return (
            f"PerspectiveCamera(pos={self.position.tolist()}, "
            f"target={self.target.tolist()}, fov={self.fov_deg})"
        )
