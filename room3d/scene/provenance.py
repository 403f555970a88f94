"""Provenance: where an item's visual form comes from.

An item is either a built-in primitive shape or an external model asset.
Provenance is frozen; changing what an item represents means deleting it
and adding a new one.
"""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Annotated, Literal, Union
from urllib.parse import urlparse

from pydantic import BaseModel, Field

KNOWN_KINDS = ("sofa", "chair", "table")
DEFAULT_KIND = "sofa"


class Primitive(BaseModel):
    """A built-in furniture shape identified by ``kind``."""

    provenance_kind: Literal["primitive"] = "primitive"
    kind: str = Field(default=DEFAULT_KIND, description="Shape kind, e.g. sofa/chair/table")

    model_config = {"frozen": True}


class AssetRef(BaseModel):
    """An external model resource.

    ``kind`` is an optional primitive hint used when the asset cannot be
    loaded and a substitute shape is needed.
    """

    provenance_kind: Literal["asset"] = "asset"
    url: str = Field(description="Model url (http(s) or a path relative to the asset dir)")
    kind: str | None = Field(default=None, description="Primitive kind to fall back to")

    model_config = {"frozen": True}

    def substitute_kind(self, default: str = DEFAULT_KIND) -> str:
        """Primitive kind to place when this asset cannot be loaded."""
        return self.kind or default

    @property
    def suffix(self) -> str:
        """Lowercase file suffix of the url path, e.g. ``.glb``."""
        return PurePosixPath(urlparse(self.url).path).suffix.lower()

    @property
    def stem(self) -> str:
        return PurePosixPath(urlparse(self.url).path).stem

    @property
    def is_remote(self) -> bool:
        return urlparse(self.url).scheme in ("http", "https")


Provenance = Annotated[
    Union[Primitive, AssetRef],
    Field(discriminator="provenance_kind"),
]

MODEL_SUFFIXES = (".glb", ".gltf", ".obj", ".stl", ".ply", ".off")


def parse_selector(selector: str) -> Primitive | AssetRef:
    """Turn a UI selector string into a provenance.

    Model file names and http(s) urls become asset references; anything else
    is matched against the primitive kinds, defaulting to ``table``.

    Args:
        selector: e.g. ``"models/sofa.glb"``, ``"box_chair"``, ``"sofa"``

    Returns:
        The provenance the selector describes
    """
    lowered = selector.strip().lower()
    parsed = urlparse(lowered)
    if parsed.scheme in ("http", "https") or lowered.endswith(MODEL_SUFFIXES):
        return AssetRef(url=selector.strip())
    if "sofa" in lowered:
        return Primitive(kind="sofa")
    if "chair" in lowered:
        return Primitive(kind="chair")
    return Primitive(kind="table")
