"""Command-line interface for room3d.

Usage:
    room3d init
    room3d add --kind chair --position 1 0.5 0
    room3d add --url models/sofa.glb
    room3d info
    room3d export room.glb
"""

from __future__ import annotations

import asyncio
import logging
import math
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .core.config import Room3DConfig
from .core.errors import LayoutSaveError, NoSnapshotError, SnapshotFormatError
from .editor.editor import RoomEditor
from .scene.provenance import AssetRef, Primitive
from .scene.registry import PlacedItem

console = Console()

NOTICE_STYLES = {
    logging.DEBUG: "dim",
    logging.INFO: "green",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
}


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rich output."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False)],
    )


def console_notice(level: int, message: str) -> None:
    """Print an editor notice to the console."""
    style = NOTICE_STYLES.get(level, "red")
    console.print(message, style=style, markup=False)


def _quiet_notice(level: int, message: str) -> None:
    if level >= logging.WARNING:
        console_notice(level, message)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option(
    "--config", "-c",
    type=click.Path(exists=True),
    help="Path to configuration file",
)
@click.option(
    "--store", "-s",
    type=click.Path(),
    default=None,
    help="Layout file (default: storage.path from the config)",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, config: str | None, store: str | None) -> None:
    """room3d - Furniture layout editor for a fixed 3D room."""
    ctx.ensure_object(dict)
    setup_logging(verbose)

    cfg = Room3DConfig.from_file(config) if config else Room3DConfig.default()
    if store:
        cfg.storage.path = Path(store)
    ctx.obj["config"] = cfg


def _open_editor(ctx: click.Context) -> RoomEditor:
    """Build an editor and restore the saved layout into it."""
    editor = RoomEditor(ctx.obj["config"], notify=_quiet_notice)
    try:
        asyncio.run(editor.load())
    except NoSnapshotError:
        console.print("[red]No saved layout. Run 'room3d init' first.[/red]")
        raise click.Abort()
    except SnapshotFormatError:
        raise click.Abort()
    editor.notify = console_notice
    return editor


def _save(editor: RoomEditor) -> None:
    """Save the layout; the editor has already reported a failure."""
    try:
        editor.save()
    except LayoutSaveError:
        raise click.Abort()


def _print_items(editor: RoomEditor) -> None:
    table = Table(title="Items in Room")
    table.add_column("#", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Source", style="dim")
    table.add_column("Position", style="green")
    table.add_column("Rotation (deg)", style="yellow")
    table.add_column("Scale", style="magenta")

    for index, item in enumerate(editor.items, start=1):
        pos = item.transform.position
        rot = [math.degrees(r) for r in item.transform.rotation]
        scale = item.transform.scale
        provenance = item.provenance
        source = provenance.url if isinstance(provenance, AssetRef) else provenance.kind
        table.add_row(
            str(index),
            item.name,
            source,
            f"({pos[0]:.2f}, {pos[1]:.2f}, {pos[2]:.2f})",
            f"({rot[0]:.0f}, {rot[1]:.0f}, {rot[2]:.0f})",
            f"({scale[0]:.2f}, {scale[1]:.2f}, {scale[2]:.2f})",
        )
    console.print(table)


@main.command()
@click.option("--empty", is_flag=True, help="Start with no furniture")
@click.pass_context
def init(ctx: click.Context, empty: bool) -> None:
    """Create a fresh layout (sofa, chair and table unless --empty)."""
    editor = RoomEditor(ctx.obj["config"], notify=console_notice)
    if not empty:
        editor.populate_defaults()
    _save(editor)
    console.print(f"Layout file: {ctx.obj['config'].storage.path}")


@main.command()
@click.option("--kind", "-k", default=None, help="Primitive kind (sofa, chair, table)")
@click.option("--url", "-u", default=None, help="Model url or path (GLB/OBJ/STL/...)")
@click.option(
    "--fallback",
    default=None,
    help="Primitive kind to restore if the model later fails to load",
)
@click.option(
    "--position", "-p",
    nargs=3, type=float,
    default=None,
    help="XYZ position (random spot on the floor if omitted)",
)
@click.pass_context
def add(
    ctx: click.Context,
    kind: str | None,
    url: str | None,
    fallback: str | None,
    position: tuple[float, float, float] | None,
) -> None:
    """Add a piece of furniture."""
    if (kind is None) == (url is None):
        console.print("[red]Give exactly one of --kind or --url[/red]")
        raise click.Abort()

    editor = _open_editor(ctx)
    provenance = Primitive(kind=kind) if kind is not None else AssetRef(url=url, kind=fallback)
    item = asyncio.run(editor.add_item(provenance, position))
    _save(editor)

    if item is not None:
        console.print(f"  Index: {len(editor.items)}")
        console.print(f"  Name: {item.name}")
        console.print(f"  Position: {item.transform.position}")
    console.print(f"\nRoom now has {len(editor.items)} item(s)")


def _item_at(editor: RoomEditor, index: int) -> PlacedItem:
    """Look up an item by its 1-based position in the layout."""
    items = editor.items
    if not 1 <= index <= len(items):
        console.print(f"[red]No item #{index} (room has {len(items)} item(s))[/red]")
        raise click.Abort()
    return items[index - 1]


@main.command()
@click.argument("index", type=int)
@click.pass_context
def delete(ctx: click.Context, index: int) -> None:
    """Delete an item.

    INDEX: Position of the item as listed by 'room3d info'
    """
    editor = _open_editor(ctx)
    item = _item_at(editor, index)
    editor.select_by_id(item.id)
    editor.delete_selected()

    _save(editor)
    console.print(f"Deleted {item.name}. Room now has {len(editor.items)} item(s)")


@main.command()
@click.argument("index", type=int)
@click.option("--position", "-p", nargs=3, type=float, default=None, help="XYZ position")
@click.option(
    "--rotation", "-r",
    nargs=3, type=float,
    default=None,
    help="XYZ rotation in degrees",
)
@click.option("--scale", type=float, default=None, help="Uniform scale factor")
@click.pass_context
def move(
    ctx: click.Context,
    index: int,
    position: tuple[float, float, float] | None,
    rotation: tuple[float, float, float] | None,
    scale: float | None,
) -> None:
    """Set an item's position, rotation or scale.

    INDEX: Position of the item as listed by 'room3d info'
    """
    editor = _open_editor(ctx)
    item = _item_at(editor, index)
    radians = tuple(math.radians(r) for r in rotation) if rotation is not None else None
    editor.move_item(item.id, position=position, rotation=radians, scale=scale)

    _save(editor)
    console.print(f"[green]Moved {item.name}[/green]")


@main.command()
@click.argument("x", type=float)
@click.argument("y", type=float)
@click.option("--delete", "delete_hit", is_flag=True, help="Delete the picked item")
@click.pass_context
def pick(ctx: click.Context, x: float, y: float, delete_hit: bool) -> None:
    """Pick the item under a pointer position.

    X, Y: Pointer in normalized device coordinates (-1 to 1, Y up)
    """
    editor = _open_editor(ctx)
    item = editor.pick_at(x, y)
    if item is None:
        console.print("[yellow]Nothing under the pointer[/yellow]")
        return

    console.print(f"Picked #{editor.items.index(item) + 1}: {item.name}")
    if delete_hit:
        editor.delete_selected()
        _save(editor)
        console.print(f"Room now has {len(editor.items)} item(s)")


@main.command()
@click.option("--floor", "floor_color", default=None, help="Floor color (#rrggbb)")
@click.option("--wall", "wall_color", default=None, help="Wall color (#rrggbb)")
@click.pass_context
def colors(ctx: click.Context, floor_color: str | None, wall_color: str | None) -> None:
    """Set floor and wall colors."""
    editor = _open_editor(ctx)
    try:
        if floor_color is not None:
            editor.set_floor_color(floor_color)
        if wall_color is not None:
            editor.set_wall_color(wall_color)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise click.Abort()

    _save(editor)
    console.print(f"Floor: {editor.shell.floor_color}  Wall: {editor.shell.wall_color}")


@main.command()
@click.pass_context
def info(ctx: click.Context) -> None:
    """Show the saved layout."""
    editor = _open_editor(ctx)

    console.print(f"\n[bold]Layout: {ctx.obj['config'].storage.path}[/bold]\n")
    console.print(f"[cyan]Floor color:[/cyan] {editor.shell.floor_color}")
    console.print(f"[cyan]Wall color:[/cyan] {editor.shell.wall_color}\n")

    if not editor.items:
        console.print("[yellow]No items in room[/yellow]")
        return
    _print_items(editor)


@main.command()
@click.argument("output", type=click.Path())
@click.pass_context
def export(ctx: click.Context, output: str) -> None:
    """Export the room with its furniture to a model file.

    OUTPUT: Output path; the suffix picks the format (.glb, .obj, .stl, ...)
    """
    editor = _open_editor(ctx)
    try:
        path = editor.export(output)
    except Exception as e:
        console.print(f"[red]Export failed: {e}[/red]")
        raise click.Abort()
    console.print(f"[green]Exported room to {path}[/green]")


@main.command("init-config")
@click.option(
    "--output", "-o",
    type=click.Path(),
    default="room3d_config.json",
    help="Output path for configuration file",
)
def init_config(output: str) -> None:
    """Write a default configuration file."""
    try:
        Room3DConfig.default().to_file(output)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        raise click.Abort()
    console.print(f"[green]Created config: {output}[/green]")


if __name__ == "__main__":
    main()
