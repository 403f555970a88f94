"""Single-item selection driven by pointer rays."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..render.camera import Ray
    from ..render.controls import TransformGizmo
    from .registry import ItemRegistry, PlacedItem

logger = logging.getLogger(__name__)


class SelectionController:
    """Keeps at most one item selected and the gizmo attached to it.

    The gizmo is attached exactly when an item is selected. Removing the
    selected item from the registry deselects it as part of the removal.
    """

    def __init__(self, registry: ItemRegistry, gizmo: TransformGizmo):
        self.registry = registry
        self.gizmo = gizmo
        self._selected: PlacedItem | None = None
        registry.on_remove(self._on_item_removed)

    @property
    def selected(self) -> PlacedItem | None:
        return self._selected

    def pick(self, ray: Ray) -> PlacedItem | None:
        """Select the nearest item hit by ``ray``, or deselect on a miss.

        Every part of every item's visual subtree is tested; the nearest hit
        part is mapped to its owning item through the registry.

        Returns:
            The newly selected item, or None if nothing was hit
        """
        hits = self.registry.scene.intersect(ray, self.registry.visuals())
        for hit in hits:
            item = self.registry.owner_of(hit.part_name)
            if item is not None:
                logger.debug(f"Picked {item!r} at distance {hit.distance:.3f}")
                self.select(item)
                return item

        self.deselect()
        return None

    def select(self, item: PlacedItem) -> None:
        """Move the selection (and the gizmo) to ``item``."""
        if item.id is None or not self.registry.contains(item.id):
            raise ValueError(f"Cannot select unregistered item {item!r}")
        if self._selected is not None:
            self.gizmo.detach()
        self.gizmo.attach(item)
        self._selected = item

    def deselect(self) -> None:
        self.gizmo.detach()
        self._selected = None

    def _on_item_removed(self, item: PlacedItem) -> None:
        if self._selected is item:
            self.deselect()
