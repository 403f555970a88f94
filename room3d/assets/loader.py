"""Fetching and parsing external model assets with trimesh.

Assets are addressed by url: ``http(s)://`` urls are downloaded with httpx,
anything else is read as a path relative to the asset directory. Parsing
runs in a worker thread so the event loop is only suspended, never blocked.
"""

from __future__ import annotations

import asyncio
import io
import logging
from pathlib import Path
from typing import TYPE_CHECKING

import httpx
import trimesh

if TYPE_CHECKING:
    from ..core.config import AssetParams
    from ..scene.provenance import AssetRef

logger = logging.getLogger(__name__)


class AssetLoader:
    """Load model files (GLB, OBJ, STL, ...) into ``trimesh.Scene`` objects."""

    SUPPORTED_FORMATS = {".glb", ".gltf", ".obj", ".stl", ".ply", ".off"}

    def __init__(
        self,
        base_dir: str | Path | None = None,
        timeout_s: float = 10.0,
        client: httpx.AsyncClient | None = None,
        supported_formats: set[str] | None = None,
    ):
        """Create a loader.

        Args:
            base_dir: Directory relative asset paths are resolved against
                (defaults to the current directory)
            timeout_s: HTTP timeout for remote assets
            client: Shared HTTP client; a short-lived one is created per
                fetch when None
            supported_formats: Override of the accepted file suffixes
        """
        self.base_dir = Path(base_dir) if base_dir is not None else None
        self.timeout_s = timeout_s
        self.client = client
        if supported_formats is not None:
            self.SUPPORTED_FORMATS = set(supported_formats)

    @classmethod
    def from_params(cls, params: AssetParams, client: httpx.AsyncClient | None = None) -> AssetLoader:
        return cls(
            base_dir=params.base_dir,
            timeout_s=params.timeout_s,
            client=client,
            supported_formats=set(params.supported_formats),
        )

    def resolve_path(self, url: str) -> Path:
        """Map a non-http asset url to a filesystem path."""
        path = Path(url)
        if path.is_absolute() or self.base_dir is None:
            return path
        return (self.base_dir / path).resolve()

    async def fetch(self, ref: AssetRef) -> bytes:
        """Read the raw bytes of an asset.

        Raises:
            FileNotFoundError: If a local asset does not exist
            httpx.HTTPError: If a remote fetch fails
        """
        if ref.is_remote:
            if self.client is not None:
                response = await self.client.get(ref.url)
                response.raise_for_status()
                return response.content
            async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                response = await client.get(ref.url)
                response.raise_for_status()
                return response.content

        path = self.resolve_path(ref.url)
        if not path.exists():
            raise FileNotFoundError(f"Model file not found: {path}")
        return await asyncio.to_thread(path.read_bytes)

    def parse(self, data: bytes, suffix: str) -> trimesh.Scene:
        """Parse model bytes into a scene of one or more meshes.

        Raises:
            ValueError: If the format is unsupported or no mesh is found
        """
        suffix = suffix.lower()
        if suffix not in self.SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported format: {suffix or '(none)'}. "
                f"Supported: {sorted(self.SUPPORTED_FORMATS)}"
            )

        loaded = trimesh.load(io.BytesIO(data), file_type=suffix.lstrip("."), force="scene")
        if not isinstance(loaded, trimesh.Scene):
            loaded = trimesh.Scene(loaded)

        meshes = [
            geom for geom in loaded.geometry.values()
            if isinstance(geom, trimesh.Trimesh)
        ]
        if not meshes:
            raise ValueError("No valid meshes found in model")
        return loaded

    async def load(self, ref: AssetRef) -> trimesh.Scene:
        """Fetch and parse an asset."""
        data = await self.fetch(ref)
        scene = await asyncio.to_thread(self.parse, data, ref.suffix)
        logger.debug(
            f"Loaded {ref.url}: {len(scene.graph.nodes_geometry)} part(s), "
            f"{len(data)} bytes"
        )
        return scene
