"""Shared fixtures for room3d tests."""

from pathlib import Path

import pytest
import trimesh

from room3d.assets.resolver import AssetResolver
from room3d.core.config import Room3DConfig
from room3d.core.store import MemoryStore
from room3d.editor.editor import RoomEditor


def make_two_part_model() -> trimesh.Scene:
    """A two-part model 3 x 1 x 1 units in size (seat plus a side block)."""
    seat = trimesh.creation.box(extents=[2.0, 1.0, 1.0])
    side = trimesh.creation.box(extents=[1.0, 1.0, 1.0])
    side.apply_translation([1.5, 0.0, 0.0])

    model = trimesh.Scene()
    model.add_geometry(seat, node_name="seat", geom_name="seat")
    model.add_geometry(side, node_name="side", geom_name="side")
    return model


class NoticeLog:
    """Collects editor notices as ``(level, message)`` pairs."""

    def __init__(self):
        self.notices = []

    def __call__(self, level, message):
        self.notices.append((level, message))

    def levels(self):
        return [level for level, _ in self.notices]

    def messages(self):
        return [message for _, message in self.notices]


@pytest.fixture
def two_part_model() -> trimesh.Scene:
    return make_two_part_model()


@pytest.fixture
def glb_bytes(two_part_model: trimesh.Scene) -> bytes:
    return two_part_model.export(file_type="glb")


@pytest.fixture
def models_dir(tmp_path: Path, glb_bytes: bytes) -> Path:
    """An asset directory holding ``lamp.glb``."""
    models = tmp_path / "models"
    models.mkdir()
    (models / "lamp.glb").write_bytes(glb_bytes)
    return models


@pytest.fixture
def config(tmp_path: Path, models_dir: Path) -> Room3DConfig:
    cfg = Room3DConfig.default()
    cfg.assets.base_dir = tmp_path
    cfg.storage.path = tmp_path / "layout.json"
    return cfg


@pytest.fixture
def resolver(config: Room3DConfig) -> AssetResolver:
    return AssetResolver.from_params(config.assets)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def notices() -> NoticeLog:
    return NoticeLog()


@pytest.fixture
def editor(config: Room3DConfig, store: MemoryStore, notices: NoticeLog) -> RoomEditor:
    return RoomEditor(config, store=store, notify=notices, seed=7)
