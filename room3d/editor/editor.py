"""The room editor: one context object wiring the core together.

``RoomEditor`` is constructed once and owns the render scene, the item
registry, selection, manipulator modes, asset resolution and persistence.
User commands go through it and report back through a notice callback.
"""

from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Callable, Sequence

from ..assets.resolver import AssetResolver
from ..core.config import Room3DConfig, normalize_hex_color
from ..core.errors import (
    AssetLoadError,
    EmptySelectionError,
    LayoutSaveError,
    NoSnapshotError,
    SnapshotFormatError,
)
from ..core.store import JsonFileStore, KeyValueStore
from ..render.camera import PerspectiveCamera
from ..render.controls import OrbitControls, TransformGizmo
from ..render.room_scene import RoomScene, RoomShell
from ..scene.manipulator import ManipulatorModeController, TransformMode
from ..scene.provenance import Primitive, Provenance, parse_selector
from ..scene.registry import ItemRegistry, PlacedItem
from ..scene.selection import SelectionController
from ..scene.transform import Transform3D
from .persistence import LayoutPersistence, LayoutSnapshot, LoadReport

logger = logging.getLogger(__name__)

NoticeCallback = Callable[[int, str], None]

DEFAULT_LAYOUT = (
    ("sofa", (-1.5, 0.5, 0.0)),
    ("chair", (1.2, 0.5, -0.5)),
    ("table", (0.0, 0.5, 1.5)),
)


def log_notice(level: int, message: str) -> None:
    """Default notice sink: the editor's logger."""
    logger.log(level, message)


class RoomEditor:
    """Furniture layout editor for a fixed room.

    Args:
        config: Editor configuration (defaults when None)
        store: Layout store; a JSON file store at ``config.storage.path``
            when None
        resolver: Asset resolver; built from ``config.assets`` when None
        notify: Receives ``(logging level, message)`` for user-visible notices
        seed: Seed for the random placement of items added without a position
    """

    def __init__(
        self,
        config: Room3DConfig | None = None,
        store: KeyValueStore | None = None,
        resolver: AssetResolver | None = None,
        notify: NoticeCallback | None = None,
        seed: int | None = None,
    ):
        self.config = config or Room3DConfig.default()
        room = self.config.room

        self.scene = RoomScene()
        self.shell = RoomShell(
            self.scene,
            floor_size=room.floor_size,
            wall_height=room.wall_height,
            floor_color=room.floor_color,
            wall_color=room.wall_color,
        )
        self.registry = ItemRegistry(self.scene)

        self.gizmo = TransformGizmo()
        self.orbit = OrbitControls()
        self.selection = SelectionController(self.registry, self.gizmo)
        self.modes = ManipulatorModeController(self.gizmo, self.orbit)
        self.gizmo.on_object_change(self._on_gizmo_change)

        cam = self.config.camera
        self.camera = PerspectiveCamera(cam.position, cam.target, cam.fov_deg, cam.aspect)

        self.resolver = resolver or AssetResolver.from_params(self.config.assets)
        self.store = store if store is not None else JsonFileStore(self.config.storage.path)
        self.persistence = LayoutPersistence(
            self.registry,
            self.resolver,
            self.store,
            self.shell,
            storage=self.config.storage,
            fallback_kind=self.config.assets.fallback_kind,
        )

        self.notify = notify or log_notice
        self.rng = random.Random(seed)

    @property
    def items(self) -> list[PlacedItem]:
        return self.registry.list()

    @property
    def selected(self) -> PlacedItem | None:
        return self.selection.selected

    def _random_floor_position(self) -> tuple[float, float, float]:
        return (self.rng.uniform(-1, 1), 0.5, self.rng.uniform(-1, 1))

    def _placement(self, position: Sequence[float] | None) -> Transform3D:
        if position is None:
            return Transform3D(position=self._random_floor_position())
        return Transform3D(position=tuple(position))

    def _on_gizmo_change(self, item: PlacedItem, transform: Transform3D) -> None:
        if item.id is not None and self.registry.contains(item.id):
            self.registry.update_transform(item.id, transform)

    # Adding items

    def add_primitive(
        self,
        kind: str,
        position: Sequence[float] | None = None,
    ) -> PlacedItem:
        """Add a built-in shape. Never fails."""
        transform = self._placement(position)
        provenance = Primitive(kind=kind)
        visual = self.resolver.build_primitive(kind, transform)
        item = PlacedItem.create(
            provenance, visual, transform=transform, name=self.resolver.display_name(provenance)
        )
        return self.registry.add(item)

    async def add_item(
        self,
        selector: Provenance | str,
        position: Sequence[float] | None = None,
    ) -> PlacedItem | None:
        """Add an item from a provenance or a selector string.

        If an asset fails to load, a warning notice is emitted and the
        fallback primitive (``sofa`` by default) is placed at the same
        position instead.

        Returns:
            The added item, or None when the registry was cleared while the
            asset was loading and the late result was dropped
        """
        provenance = parse_selector(selector) if isinstance(selector, str) else selector
        if isinstance(provenance, Primitive):
            return self.add_primitive(provenance.kind, position)

        transform = self._placement(position)
        generation = self.registry.generation
        try:
            visual = await self.resolver.resolve(provenance, transform)
        except AssetLoadError as e:
            if self.registry.generation != generation:
                return None
            kind = self.config.assets.fallback_kind
            self.notify(
                logging.WARNING,
                f"Model could not be loaded ({e.url}); placed a {kind} instead. "
                "Check that the file exists in the models folder or that the URL is correct.",
            )
            return self.add_primitive(kind, transform.position)

        if self.registry.generation != generation:
            logger.warning(f"Dropping late result for {provenance.url}: layout was reloaded")
            return None

        item = PlacedItem.create(
            provenance, visual, transform=transform, name=self.resolver.display_name(provenance)
        )
        return self.registry.add(item)

    def populate_defaults(self) -> list[PlacedItem]:
        """Place the starter sofa, chair and table."""
        return [self.add_primitive(kind, position) for kind, position in DEFAULT_LAYOUT]

    # Selection and manipulation

    def select_by_id(self, item_id: str) -> PlacedItem:
        """Select an item by id.

        Raises:
            KeyError: If no item has that id
        """
        item = self.registry.get(item_id)
        if item is None:
            raise KeyError(f"No item with id '{item_id}'")
        self.selection.select(item)
        return item

    def pick_at(self, x_ndc: float, y_ndc: float) -> PlacedItem | None:
        """Select whatever is under a pointer given in normalized device coordinates."""
        return self.selection.pick(self.camera.ray_from_pointer(x_ndc, y_ndc))

    def set_mode(self, mode: TransformMode | str) -> TransformMode:
        return self.modes.set_mode(mode)

    def move_item(
        self,
        item_id: str,
        position: Sequence[float] | None = None,
        rotation: Sequence[float] | None = None,
        scale: Sequence[float] | float | None = None,
    ) -> PlacedItem:
        """Set any of an item's transform components directly.

        Raises:
            KeyError: If no item has that id
        """
        item = self.registry.get(item_id)
        if item is None:
            raise KeyError(f"No item with id '{item_id}'")
        current = item.transform
        transform = Transform3D(
            position=tuple(position) if position is not None else current.position,
            rotation=tuple(rotation) if rotation is not None else current.rotation,
            scale=scale if scale is not None else current.scale,
        )
        return self.registry.update_transform(item_id, transform)

    def delete_selected(self) -> str:
        """Delete the selected item.

        Returns:
            The id of the deleted item

        Raises:
            EmptySelectionError: If nothing is selected (after a notice)
        """
        item = self.selection.selected
        if item is None or item.id is None:
            self.notify(logging.WARNING, "No item selected")
            raise EmptySelectionError()
        item_id = item.id
        self.registry.remove(item_id)
        return item_id

    # Surfaces

    def set_floor_color(self, color: str) -> str:
        color = normalize_hex_color(color)
        self.shell.set_floor_color(color)
        return color

    def set_wall_color(self, color: str) -> str:
        color = normalize_hex_color(color)
        self.shell.set_wall_color(color)
        return color

    # Persistence

    def save(self) -> LayoutSnapshot:
        """Write the current layout to the store.

        Raises:
            LayoutSaveError: If the store rejects the write (after a notice)
        """
        try:
            snapshot = self.persistence.save()
        except (OSError, ValueError) as e:
            self.notify(logging.ERROR, f"Layout could not be saved: {e}")
            raise LayoutSaveError(e) from e
        self.notify(logging.INFO, f"Saved {len(snapshot.items)} item(s)")
        return snapshot

    async def load(self) -> LoadReport:
        """Restore the saved layout.

        Raises:
            NoSnapshotError: If nothing was saved (after a notice)
            SnapshotFormatError: If the saved layout is malformed (after a notice)
        """
        try:
            report = await self.persistence.load()
        except NoSnapshotError:
            self.notify(logging.WARNING, "Nothing saved yet")
            raise
        except SnapshotFormatError as e:
            self.notify(logging.ERROR, str(e))
            raise

        for fallback in report.fallbacks:
            self.notify(
                logging.WARNING,
                f"Model {fallback.url} could not be loaded; restored as {fallback.kind}",
            )
        self.notify(logging.INFO, f"Loaded {report.count} item(s)")
        return report

    def export(self, path: str | Path) -> Path:
        return self.scene.export(path)

    def __repr__(self) -> str:
        selected = self.selected.id if self.selected is not None else None
        return (
            f"RoomEditor({len(self.registry)} items, selected={selected}, "
            f"mode={self.modes.mode.value})"
        )
