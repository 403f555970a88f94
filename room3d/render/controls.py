"""Headless input widgets: camera orbit and the transform gizmo.

These stand in for the interactive widgets of a GUI front end. The gizmo
keeps the same surface a drag-handle widget has (attach, detach, set mode,
dragging-changed notifications) and turns drags into proposed transforms.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Sequence

if TYPE_CHECKING:
    from ..scene.registry import PlacedItem
    from ..scene.transform import Transform3D

logger = logging.getLogger(__name__)

GIZMO_MODES = ("translate", "rotate", "scale")


class OrbitControls:
    """Camera orbit input; only the enabled flag matters to the editor."""

    def __init__(self) -> None:
        self.enabled = True


class TransformGizmo:
    """Drag-handle widget bound to at most one item."""

    def __init__(self) -> None:
        self.mode = "translate"
        self.attached: PlacedItem | None = None
        self.dragging = False
        self._dragging_listeners: list[Callable[[bool], None]] = []
        self._change_listeners: list[Callable[[PlacedItem, Transform3D], None]] = []

    def attach(self, item: PlacedItem) -> None:
        self.attached = item

    def detach(self) -> None:
        if self.dragging:
            self.end_drag()
        self.attached = None

    def set_mode(self, mode: str) -> None:
        if mode not in GIZMO_MODES:
            raise ValueError(f"Unknown gizmo mode: {mode}")
        self.mode = mode

    def on_dragging_changed(self, callback: Callable[[bool], None]) -> None:
        self._dragging_listeners.append(callback)

    def on_object_change(self, callback: Callable[[PlacedItem, Transform3D], None]) -> None:
        """Register a callback receiving ``(item, proposed_transform)`` per drag step."""
        self._change_listeners.append(callback)

    def begin_drag(self) -> None:
        if self.attached is None:
            raise RuntimeError("Cannot drag: gizmo is not attached to an item")
        self._set_dragging(True)

    def drag(self, delta: Sequence[float]) -> Transform3D:
        """Apply one drag step in the current mode.

        ``delta`` is an XYZ offset in translate mode, XYZ radians in rotate
        mode and XYZ multiplicative factors in scale mode.

        Returns:
            The proposed transform passed to change listeners
        """
        if self.attached is None or not self.dragging:
            raise RuntimeError("Cannot drag: no drag in progress")

        current = self.attached.transform
        if self.mode == "translate":
            proposed = current.translated(delta)
        elif self.mode == "rotate":
            proposed = current.rotated(delta)
        else:
            proposed = current.rescaled(delta)

        for callback in self._change_listeners:
            callback(self.attached, proposed)
        return proposed

    def end_drag(self) -> None:
        if self.dragging:
            self._set_dragging(False)

    def _set_dragging(self, value: bool) -> None:
        self.dragging = value
        logger.debug(f"Gizmo dragging={value} (mode={self.mode})")
        for callback in self._dragging_listeners:
            callback(value)
