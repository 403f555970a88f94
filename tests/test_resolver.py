"""Tests for provenance parsing, AssetLoader and AssetResolver."""

import asyncio
from pathlib import Path

import httpx
import numpy as np
import pytest
import trimesh

from room3d.assets.loader import AssetLoader
from room3d.assets.resolver import PRIMITIVE_SHAPES, AssetResolver
from room3d.core.errors import AssetLoadError
from room3d.render.room_scene import VisualNode
from room3d.scene.provenance import AssetRef, Primitive, parse_selector
from room3d.scene.transform import Transform3D

REMOTE_URL = "https://assets.example.com/furniture/lamp.glb"


class TestParseSelector:
    """Test selector strings from the add-item control."""

    @pytest.mark.parametrize("selector, kind", [
        ("sofa", "sofa"),
        ("box_sofa", "sofa"),
        ("box_chair", "chair"),
        ("table", "table"),
        ("something else", "table"),
    ])
    def test_primitive_selectors(self, selector, kind):
        assert parse_selector(selector) == Primitive(kind=kind)

    @pytest.mark.parametrize("selector", [
        "models/sofa.glb",
        "models/Chair.OBJ",
        REMOTE_URL,
        "https://example.com/model?id=3",
    ])
    def test_asset_selectors(self, selector):
        ref = parse_selector(selector)
        assert isinstance(ref, AssetRef)
        assert ref.url == selector

    def test_asset_ref_properties(self):
        ref = AssetRef(url=REMOTE_URL + "?v=2")
        assert ref.is_remote
        assert ref.suffix == ".glb"
        assert ref.stem == "lamp"
        assert ref.substitute_kind() == "sofa"
        assert ref.substitute_kind("table") == "table"
        assert AssetRef(url="x.glb", kind="chair").substitute_kind("table") == "chair"
        assert not AssetRef(url="models/x.glb").is_remote


class TestPrimitives:
    """Test the built-in shapes."""

    @pytest.mark.parametrize("kind", ["sofa", "chair", "table"])
    def test_known_kinds(self, kind):
        node = AssetResolver().build_primitive(kind)
        np.testing.assert_array_almost_equal(node.local_extents(), PRIMITIVE_SHAPES[kind].extents)
        assert node.name == PRIMITIVE_SHAPES[kind].label

    def test_unknown_kind_is_table(self):
        node = AssetResolver().build_primitive("bookshelf")
        np.testing.assert_array_almost_equal(node.local_extents(), PRIMITIVE_SHAPES["table"].extents)

    def test_aliases(self):
        node = AssetResolver().build_primitive("box_chair")
        np.testing.assert_array_almost_equal(node.local_extents(), PRIMITIVE_SHAPES["chair"].extents)

    def test_color_and_shadows(self):
        node = AssetResolver().build_primitive("sofa")
        mesh = node.parts.geometry["body"]
        np.testing.assert_array_equal(mesh.visual.face_colors[0], [0x8B, 0x5C, 0xF6, 255])
        assert mesh.metadata["cast_shadow"] is True

    def test_deterministic(self):
        a = AssetResolver().build_primitive("chair")
        b = AssetResolver().build_primitive("chair")
        np.testing.assert_array_equal(a.world_vertices(), b.world_vertices())

    def test_placed_at_transform(self):
        node = AssetResolver().build_primitive("chair", Transform3D.at(1.2, 0.5, -0.5))
        np.testing.assert_array_almost_equal(node.matrix[:3, 3], [1.2, 0.5, -0.5])

    def test_resolve_primitive(self):
        node = asyncio.run(AssetResolver().resolve(Primitive(kind="table")))
        np.testing.assert_array_almost_equal(node.local_extents(), (1.2, 0.6, 1.2))

    def test_display_names(self):
        assert AssetResolver.display_name(Primitive(kind="box_sofa")) == "Sofa"
        assert AssetResolver.display_name(AssetRef(url="models/lamp.glb")) == "lamp"


class TestNormalize:
    """Test fitting models to the target size."""

    def test_largest_dimension_matches_target(self, two_part_model):
        node = VisualNode("m", two_part_model)
        factor = AssetResolver(target_size=1.4).normalize(node)

        assert factor == pytest.approx(1.4 / 3.0)
        assert float(np.max(node.local_extents())) == pytest.approx(1.4)

    def test_aspect_ratio_preserved(self, two_part_model):
        node = VisualNode("m", two_part_model)
        AssetResolver(target_size=1.4).normalize(node)
        extents = node.local_extents()
        assert extents[0] / extents[1] == pytest.approx(3.0)

    def test_zero_size_left_unscaled(self):
        node = VisualNode("empty", trimesh.Scene())
        assert AssetResolver().normalize(node) == 1.0


class TestAssetLoader:
    """Test fetching and parsing model bytes."""

    def test_resolve_path(self, tmp_path: Path):
        loader = AssetLoader(base_dir=tmp_path)
        assert loader.resolve_path("models/a.glb") == (tmp_path / "models" / "a.glb").resolve()
        assert loader.resolve_path("/abs/a.glb") == Path("/abs/a.glb")
        assert AssetLoader().resolve_path("a.glb") == Path("a.glb")

    def test_load_local(self, tmp_path: Path, models_dir: Path):
        scene = asyncio.run(AssetLoader(base_dir=tmp_path).load(AssetRef(url="models/lamp.glb")))
        assert len(scene.geometry) == 2

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            asyncio.run(AssetLoader(base_dir=tmp_path).fetch(AssetRef(url="models/nope.glb")))

    def test_unsupported_format(self):
        with pytest.raises(ValueError):
            AssetLoader().parse(b"solid x", ".fbx")

    def test_load_remote_with_shared_client(self, glb_bytes: bytes):
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(200, content=glb_bytes)

        async def run():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                return await AssetLoader(client=client).load(AssetRef(url=REMOTE_URL))

        scene = asyncio.run(run())
        assert requested == [REMOTE_URL]
        assert len(scene.geometry) == 2


class TestAssetResolver:
    """Test resolving asset references end to end."""

    def test_resolve_local_asset(self, resolver: AssetResolver):
        ref = AssetRef(url="models/lamp.glb")
        node = asyncio.run(resolver.resolve(ref, Transform3D.at(1.0, 0.5, 0.0)))

        assert node.name == "lamp"
        assert len(list(node.iter_parts())) == 2
        assert float(np.max(node.local_extents())) == pytest.approx(1.4)
        np.testing.assert_array_almost_equal(node.matrix[:3, 3], [1.0, 0.5, 0.0])
        for _, mesh, _ in node.iter_parts():
            assert mesh.metadata["cast_shadow"] is True
            assert mesh.metadata["receive_shadow"] is True

    def test_missing_asset_raises(self, resolver: AssetResolver):
        with pytest.raises(AssetLoadError) as exc_info:
            asyncio.run(resolver.resolve(AssetRef(url="models/missing.glb")))
        assert exc_info.value.url == "models/missing.glb"
        assert isinstance(exc_info.value.cause, FileNotFoundError)

    def test_corrupt_asset_raises(self, resolver: AssetResolver, models_dir: Path):
        (models_dir / "broken.glb").write_bytes(b"definitely not a model")
        with pytest.raises(AssetLoadError):
            asyncio.run(resolver.resolve(AssetRef(url="models/broken.glb")))

    def test_unsupported_suffix_raises(self, resolver: AssetResolver, models_dir: Path):
        (models_dir / "notes.txt").write_text("hello")
        with pytest.raises(AssetLoadError) as exc_info:
            asyncio.run(resolver.resolve(AssetRef(url="models/notes.txt")))
        assert isinstance(exc_info.value.cause, ValueError)

    def test_http_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404)

        async def run():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                return await AssetResolver(AssetLoader(client=client)).resolve(AssetRef(url=REMOTE_URL))

        with pytest.raises(AssetLoadError) as exc_info:
            asyncio.run(run())
        assert isinstance(exc_info.value.cause, httpx.HTTPStatusError)
