#!/usr/bin/env python3
"""Example: Furnish the room, move things around and save the layout.

This script demonstrates the basic workflow for room3d:
1. Place the starter furniture and a model file
2. Pick and manipulate items
3. Save, reload and export the room

Run with: python examples/furnish_room.py
"""

import asyncio
import math
import tempfile
from pathlib import Path

import trimesh

from room3d import Room3DConfig, RoomEditor


def write_lamp(path: Path) -> None:
    """Write a small two-part model to use as an asset."""
    base = trimesh.creation.cylinder(radius=0.3, height=0.1)
    pole = trimesh.creation.cylinder(radius=0.03, height=1.6)
    pole.apply_translation([0.0, 0.0, 0.8])

    model = trimesh.Scene()
    model.add_geometry(base, node_name="base", geom_name="base")
    model.add_geometry(pole, node_name="pole", geom_name="pole")
    path.write_bytes(model.export(file_type="glb"))


def print_notice(level, message):
    print(f"   [{level}] {message}")


async def run(workdir: Path):
    config = Room3DConfig.default()
    config.assets.base_dir = workdir
    config.storage.path = workdir / "layout.json"

    models = workdir / "models"
    models.mkdir()
    write_lamp(models / "lamp.glb")

    editor = RoomEditor(config, notify=print_notice, seed=1)

    print("room3d - Furnish Room Example")
    print("=" * 40)

    print("\n1. Placing furniture...")
    editor.populate_defaults()
    await editor.add_item("models/lamp.glb", (2.5, 0.7, -2.0))
    await editor.add_item("models/does_not_exist.glb", (-3.0, 0.5, 2.0))
    for item in editor.items:
        print(f"   {item.name:<8} at {item.transform.position}")

    print("\n2. Picking the item in the middle of the view...")
    item = editor.pick_at(0.0, 0.0)
    print(f"   Picked: {item.name if item else 'nothing'}")

    print("\n3. Rotating the sofa by 45 degrees...")
    sofa = editor.items[0]
    editor.select_by_id(sofa.id)
    editor.set_mode("rotate")
    editor.gizmo.begin_drag()
    editor.gizmo.drag((0.0, math.radians(45), 0.0))
    editor.gizmo.end_drag()
    print(f"   Rotation: {sofa.transform.rotation}")

    print("\n4. Repainting and saving...")
    editor.set_floor_color("#d6c7a1")
    editor.set_wall_color("#e8eef2")
    editor.save()

    print("\n5. Reloading...")
    report = await editor.load()
    print(f"   Restored {report.count} item(s), {len(report.fallbacks)} fallback(s)")

    output = editor.export(workdir / "room.glb")
    print(f"\n6. Exported to {output}")


def main():
    with tempfile.TemporaryDirectory() as tmp:
        asyncio.run(run(Path(tmp)))


if __name__ == "__main__":
    main()
