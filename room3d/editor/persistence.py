"""Saving and restoring room layouts.

A layout snapshot is the ordered item list (provenance and transform per
item) plus the floor and wall colors. It is written to a key-value store
under three fixed keys: the JSON item list under the layout key and the two
colors under their own keys. Restoring resolves each item again through the
AssetResolver, falling back to a primitive shape when an asset fails.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ..core.config import StorageParams, normalize_hex_color
from ..core.errors import AssetLoadError, NoSnapshotError, SnapshotFormatError
from ..scene.provenance import DEFAULT_KIND, AssetRef, Primitive
from ..scene.registry import PlacedItem
from ..scene.transform import Transform3D

if TYPE_CHECKING:
    from ..assets.resolver import AssetResolver
    from ..core.store import KeyValueStore
    from ..render.room_scene import RoomShell
    from ..scene.provenance import Provenance
    from ..scene.registry import ItemRegistry

logger = logging.getLogger(__name__)


class SnapshotItem(BaseModel):
    """One serialized item."""

    provenance_kind: Literal["asset", "primitive"] = Field(alias="provenanceKind")
    url: str | None = Field(default=None, description="Asset url (asset items only)")
    kind: str | None = Field(default=None, description="Primitive kind or fallback hint")
    name: str | None = Field(default=None, description="Display name")
    position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    rotation: tuple[float, float, float] = (0.0, 0.0, 0.0)
    scale: tuple[float, float, float] = (1.0, 1.0, 1.0)
    # Legacy model scales include the normalization factor
    scale_includes_normalization: bool = Field(default=False, exclude=True)

    model_config = {"populate_by_name": True}

    @model_validator(mode="before")
    @classmethod
    def _upgrade_legacy_entry(cls, data: Any) -> Any:
        # Older layouts stored entries as
        # {modelUrl, type, name, pos, rot, scale}
        if not isinstance(data, dict) or "provenanceKind" in data or "provenance_kind" in data:
            return data
        if "modelUrl" not in data and "pos" not in data:
            return data
        url = data.get("modelUrl")
        return {
            "provenanceKind": "asset" if url else "primitive",
            "url": url,
            "kind": data.get("type"),
            "name": data.get("name") or None,
            "position": data.get("pos", (0.0, 0.0, 0.0)),
            "rotation": data.get("rot", (0.0, 0.0, 0.0)),
            "scale": data.get("scale", (1.0, 1.0, 1.0)),
            "scale_includes_normalization": bool(url),
        }

    @field_validator("position", "rotation", "scale")
    @classmethod
    def _check_finite(cls, value: tuple[float, float, float]) -> tuple[float, float, float]:
        if not all(math.isfinite(v) for v in value):
            raise ValueError(f"Non-finite transform component: {value}")
        return value

    @model_validator(mode="after")
    def _check_asset_url(self) -> SnapshotItem:
        if self.provenance_kind == "asset" and not self.url:
            raise ValueError("Asset items need a url")
        return self

    @classmethod
    def from_item(cls, item: PlacedItem) -> SnapshotItem:
        provenance = item.provenance
        t = item.transform
        return cls(
            provenance_kind=provenance.provenance_kind,
            url=provenance.url if isinstance(provenance, AssetRef) else None,
            kind=provenance.kind,
            name=item.name or None,
            position=t.position,
            rotation=t.rotation,
            scale=t.scale,
        )

    def provenance(self) -> Provenance:
        if self.provenance_kind == "asset":
            return AssetRef(url=self.url, kind=self.kind)
        return Primitive(kind=self.kind or DEFAULT_KIND)

    def transform(self) -> Transform3D:
        return Transform3D(position=self.position, rotation=self.rotation, scale=self.scale)


class LayoutSnapshot(BaseModel):
    """The full persisted record."""

    items: list[SnapshotItem] = Field(default_factory=list)
    floor_color: str | None = Field(default=None, alias="floorColor")
    wall_color: str | None = Field(default=None, alias="wallColor")

    model_config = {"populate_by_name": True}

    @field_validator("floor_color", "wall_color")
    @classmethod
    def _check_color(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return normalize_hex_color(value)

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


@dataclass
class Fallback:
    """An asset that failed to load and was replaced by a primitive."""

    url: str
    kind: str
    reason: str


@dataclass
class LoadReport:
    """Outcome of a layout restore."""

    restored: list[str] = field(default_factory=list)
    fallbacks: list[Fallback] = field(default_factory=list)
    discarded: int = 0
    abandoned: bool = False
    colors_applied: bool = False

    @property
    def count(self) -> int:
        return len(self.restored)


class LayoutPersistence:
    """Serialize the registry to a store and rebuild it from there."""

    def __init__(
        self,
        registry: ItemRegistry,
        resolver: AssetResolver,
        store: KeyValueStore,
        shell: RoomShell,
        storage: StorageParams | None = None,
        fallback_kind: str = DEFAULT_KIND,
    ):
        self.registry = registry
        self.resolver = resolver
        self.store = store
        self.shell = shell
        self.storage = storage or StorageParams()
        self.fallback_kind = fallback_kind

    def snapshot(self) -> LayoutSnapshot:
        """Capture the current registry and surface colors."""
        return LayoutSnapshot(
            items=[SnapshotItem.from_item(item) for item in self.registry],
            floor_color=self.shell.floor_color,
            wall_color=self.shell.wall_color,
        )

    def save(self) -> LayoutSnapshot:
        """Write the current layout to the store.

        The snapshot and all three serialized values are produced before the
        store is touched, and then written in one ``put_many`` call.

        Returns:
            The snapshot that was written
        """
        snapshot = self.snapshot()
        data = snapshot.to_json()
        values = {
            self.storage.layout_key: json.dumps(data["items"]),
            self.storage.floor_color_key: data["floorColor"],
            self.storage.wall_color_key: data["wallColor"],
        }
        self.store.put_many(values)
        logger.info(f"Saved layout with {len(snapshot.items)} item(s)")
        return snapshot

    def read(self) -> LayoutSnapshot:
        """Read and validate the stored snapshot without touching the registry.

        Raises:
            NoSnapshotError: If nothing is stored under the layout key
            SnapshotFormatError: If the stored record is malformed
        """
        try:
            raw = self.store.get(self.storage.layout_key)
            if raw is None:
                raise NoSnapshotError(self.storage.layout_key)
            snapshot = LayoutSnapshot.model_validate({
                "items": json.loads(raw),
                "floorColor": self.store.get(self.storage.floor_color_key),
                "wallColor": self.store.get(self.storage.wall_color_key),
            })
        except (ValueError, ValidationError) as e:
            # Store decode errors included
            raise SnapshotFormatError(f"Stored layout is malformed: {e}") from e
        return snapshot

    async def load(self) -> LoadReport:
        """Replace the registry contents with the stored layout.

        Items are restored strictly in saved order, each one finished (added
        or replaced by its fallback primitive) before the next starts. If the
        registry is cleared by someone else while an asset is resolving, the
        late result is dropped and the rest of this load is abandoned.

        Raises:
            NoSnapshotError: If nothing has been saved
            SnapshotFormatError: If the stored record is malformed
        """
        snapshot = self.read()

        self.registry.clear()
        generation = self.registry.generation
        report = LoadReport()

        for entry in snapshot.items:
            item = await self._restore_item(entry, report)
            if self.registry.generation != generation:
                report.discarded += 1
                report.abandoned = True
                logger.warning(
                    "Registry was cleared while the layout was loading; "
                    f"abandoning after {report.count} item(s)"
                )
                return report
            self.registry.add(item)
            report.restored.append(item.id)

        if snapshot.floor_color is not None:
            self.shell.set_floor_color(snapshot.floor_color)
            report.colors_applied = True
        if snapshot.wall_color is not None:
            self.shell.set_wall_color(snapshot.wall_color)
            report.colors_applied = True

        logger.info(
            f"Loaded layout: {report.count} item(s), "
            f"{len(report.fallbacks)} fallback(s)"
        )
        return report

    async def _restore_item(self, entry: SnapshotItem, report: LoadReport) -> PlacedItem:
        transform = entry.transform()
        provenance = entry.provenance()

        if isinstance(provenance, AssetRef):
            try:
                visual = await self.resolver.resolve(provenance, transform)
            except AssetLoadError as e:
                kind = provenance.substitute_kind(self.fallback_kind)
                report.fallbacks.append(Fallback(provenance.url, kind, str(e.cause)))
                provenance = Primitive(kind=kind)
                visual = self.resolver.build_primitive(kind, transform)
                return PlacedItem.create(
                    provenance,
                    visual,
                    transform=transform,
                    name=self.resolver.display_name(provenance),
                )
            if entry.scale_includes_normalization and visual.normalization != 1.0:
                transform = transform.rescaled([1.0 / visual.normalization] * 3)
                visual.matrix = transform.to_matrix()
        else:
            visual = self.resolver.build_primitive(provenance.kind, transform)

        return PlacedItem.create(
            provenance,
            visual,
            transform=transform,
            name=entry.name or self.resolver.display_name(provenance),
        )
