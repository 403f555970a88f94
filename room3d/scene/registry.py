"""Placed items and the registry that owns them.

The registry is the single source of truth for what is in the room. Adding
an item attaches its visual node to the scene and removing it detaches the
node in the same call, so the scene never holds orphaned nodes and items
never hold handles to nodes that are gone.
"""

from __future__ import annotations

import logging
import uuid
from typing import Callable, Iterator

from pydantic import BaseModel, Field, PrivateAttr

from ..render.room_scene import RoomScene, VisualNode
from .provenance import Provenance
from .transform import Transform3D

logger = logging.getLogger(__name__)


def new_item_id() -> str:
    return uuid.uuid4().hex[:8]


class PlacedItem(BaseModel):
    """A furniture item in the room.

    The visual node is owned by the render scene; the item only keeps a
    back-reference to route removal and picking.
    """

    id: str | None = Field(default=None, description="Unique id, assigned on add when None")
    name: str = Field(default="", description="Display name")
    provenance: Provenance = Field(frozen=True, description="How the visual form is built")
    transform: Transform3D = Field(
        default_factory=Transform3D,
        description="Position, rotation, and scale"
    )

    # Private attribute for the render-side node (not serialized)
    _visual: VisualNode | None = PrivateAttr(default=None)

    model_config = {"frozen": False}

    @classmethod
    def create(
        cls,
        provenance: Provenance,
        visual: VisualNode,
        transform: Transform3D | None = None,
        name: str = "",
        item_id: str | None = None,
    ) -> PlacedItem:
        item = cls(
            id=item_id,
            name=name,
            provenance=provenance,
            transform=transform or Transform3D(),
        )
        item._visual = visual
        return item

    @property
    def visual(self) -> VisualNode | None:
        return self._visual

    def __repr__(self) -> str:
        return f"PlacedItem({self.id!r}, {self.name!r}, {self.provenance.provenance_kind})"


class ItemRegistry:
    """Ordered collection of placed items keyed by id.

    Besides the items, the registry keeps an ownership map from every
    attached sub-node name to the id of the item that owns it, so a pick hit
    on any part of a multi-node model resolves with a single lookup.
    """

    def __init__(self, scene: RoomScene):
        self.scene = scene
        self._items: dict[str, PlacedItem] = {}
        self._owners: dict[str, str] = {}
        self._removal_listeners: list[Callable[[PlacedItem], None]] = []
        # Bumped on every clear(); lets async work detect that it went stale
        self.generation = 0

    def on_remove(self, callback: Callable[[PlacedItem], None]) -> None:
        """Register a callback invoked with each item just before it is removed."""
        self._removal_listeners.append(callback)

    def _fresh_id(self) -> str:
        item_id = new_item_id()
        while item_id in self._items:
            item_id = new_item_id()
        return item_id

    def add(self, item: PlacedItem) -> PlacedItem:
        """Register an item and attach its visual node to the scene.

        Args:
            item: Item with a visual node; its id is assigned if None

        Returns:
            The registered item

        Raises:
            ValueError: If the item has no visual node or its id is taken
        """
        visual = item.visual
        if visual is None:
            raise ValueError("Cannot add an item without a visual node")
        if item.id is None:
            item.id = self._fresh_id()
        elif item.id in self._items:
            raise ValueError(f"Item id '{item.id}' is already registered")

        visual.name = item.id
        visual.matrix = item.transform.to_matrix()
        for part_name in self.scene.add_node(visual):
            self._owners[part_name] = item.id

        self._items[item.id] = item
        logger.debug(f"Added {item!r} at {item.transform.position}")
        return item

    def remove(self, item_id: str) -> bool:
        """Remove an item and detach its visual node.

        Removing an unknown id is a no-op.

        Returns:
            True if an item was removed
        """
        item = self._items.get(item_id)
        if item is None:
            return False

        for callback in self._removal_listeners:
            callback(item)

        del self._items[item_id]
        visual = item.visual
        if visual is not None:
            for part_name in visual.part_names:
                self._owners.pop(part_name, None)
            self.scene.remove_node(visual)
            item._visual = None

        logger.debug(f"Removed {item!r}")
        return True

    def clear(self) -> None:
        """Remove every item."""
        for item_id in list(self._items):
            self.remove(item_id)
        self.generation += 1

    def contains(self, item_id: str) -> bool:
        return item_id in self._items

    def get(self, item_id: str) -> PlacedItem | None:
        return self._items.get(item_id)

    def owner_of(self, part_name: str) -> PlacedItem | None:
        """Return the item owning a scene sub-node, if any."""
        item_id = self._owners.get(part_name)
        if item_id is None:
            return None
        return self._items.get(item_id)

    def update_transform(self, item_id: str, transform: Transform3D) -> PlacedItem:
        """Set an item's transform and move its visual node to match.

        Raises:
            KeyError: If the id is not registered
        """
        item = self._items[item_id]
        item.transform = transform
        if item.visual is not None:
            self.scene.set_node_matrix(item.visual, transform.to_matrix())
        return item

    def visuals(self) -> list[VisualNode]:
        return [item.visual for item in self._items.values() if item.visual is not None]

    def list(self) -> list[PlacedItem]:
        """Return the items in insertion order."""
        return [*self._items.values()]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[PlacedItem]:
        return iter([*self._items.values()])

    def __repr__(self) -> str:
        return f"ItemRegistry({len(self._items)} items, generation={self.generation})"
