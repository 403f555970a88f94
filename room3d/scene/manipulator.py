"""Transform mode state machine for the manipulator gizmo."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..render.controls import OrbitControls, TransformGizmo

logger = logging.getLogger(__name__)


class TransformMode(str, Enum):
    TRANSLATE = "translate"
    ROTATE = "rotate"
    SCALE = "scale"


class ManipulatorModeController:
    """Translate/Rotate/Scale mode selection.

    Every mode is reachable from every other and setting the current mode
    again is a no-op. Independently of the mode, camera orbit is suspended
    while the gizmo reports an active drag.
    """

    def __init__(self, gizmo: TransformGizmo, orbit: OrbitControls):
        self.gizmo = gizmo
        self.orbit = orbit
        self._mode = TransformMode.TRANSLATE
        gizmo.set_mode(self._mode.value)
        gizmo.on_dragging_changed(self._on_dragging_changed)

    @property
    def mode(self) -> TransformMode:
        return self._mode

    def set_mode(self, mode: TransformMode | str) -> TransformMode:
        """Activate ``mode`` and reconfigure the gizmo.

        Strings match mode names case-insensitively (``"Rotate"``,
        ``"SCALE"``).

        Raises:
            ValueError: If ``mode`` is a string that names no mode
        """
        if not isinstance(mode, TransformMode):
            mode = TransformMode(str(mode).strip().lower())
        self._mode = mode
        self.gizmo.set_mode(mode.value)
        logger.debug(f"Manipulator mode: {mode.value}")
        return mode

    def _on_dragging_changed(self, dragging: bool) -> None:
        self.orbit.enabled = not dragging
