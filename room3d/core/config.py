"""Configuration management for room3d.

This module defines all configuration models using Pydantic for validation.
Configuration can be loaded from JSON files or constructed programmatically.
"""

from __future__ import annotations

import json
import re
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})$")


def normalize_hex_color(value: str) -> str:
    """Normalize a color string to lowercase ``#rrggbb``.

    Accepts the value with or without the leading ``#``.

    Raises:
        ValueError: If the value is not a 6-digit hex color
    """
    match = _HEX_COLOR.match(value.strip())
    if match is None:
        raise ValueError(f"Invalid hex color: {value!r}")
    return "#" + match.group(1).lower()


class RoomParams(BaseModel):
    """Fixed room geometry and default surface colors."""

    floor_size: tuple[float, float] = Field(
        default=(12.0, 8.0),
        description="Floor width (X) and depth (Z)"
    )
    wall_height: float = Field(default=4.0, gt=0, description="Height of the two walls")
    floor_color: str = Field(default="#ffffff", description="Initial floor color")
    wall_color: str = Field(default="#f0f0f0", description="Initial wall color")

    @field_validator("floor_color", "wall_color")
    @classmethod
    def _check_color(cls, value: str) -> str:
        return normalize_hex_color(value)


class AssetParams(BaseModel):
    """Parameters for resolving external model assets."""

    target_size: float = Field(
        default=1.4,
        gt=0,
        description="Largest bounding-box dimension after normalization"
    )
    fallback_kind: str = Field(
        default="sofa",
        description="Primitive kind substituted when an asset fails to load"
    )
    timeout_s: float = Field(default=10.0, gt=0, description="HTTP fetch timeout in seconds")
    base_dir: Path | None = Field(
        default=None,
        description="Directory that relative asset urls are resolved against"
    )
    supported_formats: tuple[str, ...] = Field(
        default=(".glb", ".gltf", ".obj", ".stl", ".ply", ".off"),
        description="File suffixes recognised as loadable models"
    )


class StorageParams(BaseModel):
    """Durable layout store location and record keys."""

    path: Path = Field(
        default=Path("room3d_layout.json"),
        description="JSON file backing the layout store"
    )
    layout_key: str = Field(default="roomLayout", description="Key of the item list")
    floor_color_key: str = Field(default="floorColor", description="Key of the floor color")
    wall_color_key: str = Field(default="wallColor", description="Key of the wall color")


class CameraParams(BaseModel):
    """Viewpoint used to turn pointer coordinates into pick rays."""

    position: tuple[float, float, float] = Field(default=(6.0, 6.0, 8.0))
    target: tuple[float, float, float] = Field(default=(0.0, 1.0, 0.0))
    fov_deg: float = Field(default=50.0, gt=0, lt=180, description="Vertical field of view")
    aspect: float = Field(default=16 / 9, gt=0, description="Viewport width / height")


class Room3DConfig(BaseModel):
    """Main configuration container."""

    room: RoomParams = Field(default_factory=RoomParams)
    assets: AssetParams = Field(default_factory=AssetParams)
    storage: StorageParams = Field(default_factory=StorageParams)
    camera: CameraParams = Field(default_factory=CameraParams)

    @classmethod
    def from_file(cls, path: Path | str) -> Room3DConfig:
        """Load configuration from a JSON file."""
        path = Path(path)
        with open(path) as f:
            data = json.load(f)
        return cls.model_validate(data)

    def to_file(self, path: Path | str) -> None:
        """Save configuration to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2)

    @classmethod
    def default(cls) -> Room3DConfig:
        """Create a default configuration."""
        return cls()
