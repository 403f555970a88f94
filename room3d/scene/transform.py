"""3D transformation utilities for placed items.

Provides Transform3D for representing position, rotation, and scale,
with conversion to 4x4 homogeneous transformation matrices.
"""

from __future__ import annotations

import math
from typing import Any, Sequence

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, Field, field_validator
from scipy.spatial.transform import Rotation


def _triple(values: Sequence[float]) -> tuple[float, float, float]:
    x, y, z = (float(v) for v in values)
    return (x, y, z)


class Transform3D(BaseModel):
    """3D transformation: position + rotation + scale.

    Attributes:
        position: XYZ position in room units
        rotation: XYZ Euler angles in radians (intrinsic, applied in XYZ order)
        scale: Per-axis scale factors
    """

    position: tuple[float, float, float] = Field(
        default=(0.0, 0.0, 0.0),
        description="XYZ position"
    )
    rotation: tuple[float, float, float] = Field(
        default=(0.0, 0.0, 0.0),
        description="XYZ rotation in radians (Euler angles)"
    )
    scale: tuple[float, float, float] = Field(
        default=(1.0, 1.0, 1.0),
        description="Per-axis scale factors"
    )

    model_config = {"frozen": False}

    @field_validator("scale", mode="before")
    @classmethod
    def _expand_uniform_scale(cls, value: Any) -> Any:
        if isinstance(value, (int, float)):
            return (value, value, value)
        return value

    @field_validator("position", "rotation", "scale")
    @classmethod
    def _check_finite(cls, value: tuple[float, float, float]) -> tuple[float, float, float]:
        if not all(math.isfinite(v) for v in value):
            raise ValueError(f"Transform components must be finite, got {value}")
        return value

    @classmethod
    def at(cls, x: float, y: float, z: float) -> Transform3D:
        """Return a transform that only translates."""
        return cls(position=(x, y, z))

    def to_matrix(self) -> NDArray[np.float64]:
        """Convert to 4x4 homogeneous transformation matrix.

        The transformation order is: Scale -> Rotate -> Translate
        This means the matrix is built as: T @ R @ S

        Returns:
            4x4 transformation matrix
        """
        s = np.diag([*self.scale, 1.0]).astype(np.float64)

        rot = Rotation.from_euler('XYZ', self.rotation)
        r = np.eye(4, dtype=np.float64)
        r[:3, :3] = rot.as_matrix()

        t = np.eye(4, dtype=np.float64)
        t[:3, 3] = self.position

        # Combined: T @ R @ S (applied right to left to vertices)
        return t @ r @ s

    def apply_to_points(self, points: NDArray[np.float64]) -> NDArray[np.float64]:
        """Apply transformation to an Nx3 array of points.

        Args:
            points: Nx3 array of XYZ coordinates

        Returns:
            Transformed Nx3 array of points
        """
        matrix = self.to_matrix()

        ones = np.ones((len(points), 1), dtype=np.float64)
        homogeneous = np.hstack([points, ones])

        transformed = (matrix @ homogeneous.T).T
        return transformed[:, :3]

    def _with(self, **changes: Any) -> Transform3D:
        # Rebuild rather than model_copy so the validators run again
        return type(self)(**{**self.model_dump(), **changes})

    def translated(self, delta: Sequence[float]) -> Transform3D:
        """Return a copy moved by ``delta``."""
        return self._with(position=_triple(np.add(self.position, delta)))

    def rotated(self, delta: Sequence[float]) -> Transform3D:
        """Return a copy with ``delta`` radians added to each Euler angle."""
        return self._with(rotation=_triple(np.add(self.rotation, delta)))

    def rescaled(self, factors: Sequence[float]) -> Transform3D:
        """Return a copy with the scale multiplied per axis."""
        return self._with(scale=_triple(np.multiply(self.scale, factors)))

    def is_close(self, other: Transform3D, tol: float = 1e-4) -> bool:
        """Check that all nine components match within ``tol``."""
        mine = np.array([self.position, self.rotation, self.scale])
        theirs = np.array([other.position, other.rotation, other.scale])
        return bool(np.allclose(mine, theirs, atol=tol, rtol=0.0))

    @classmethod
    def identity(cls) -> Transform3D:
        """Return identity transform (no transformation)."""
        return cls()

    def __repr__(self) -> str:
        return (
            f"Transform3D(pos={self.position}, "
            f"rot={self.rotation}, scale={self.scale})"
        )
