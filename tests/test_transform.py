"""Tests for Transform3D."""

import math

import numpy as np
import pytest
from pydantic import ValidationError

from room3d.scene.transform import Transform3D


class TestTransform3D:
    """Test Transform3D functionality."""

    def test_default_transform(self):
        """Test default transform is identity-like."""
        t = Transform3D()
        assert t.position == (0.0, 0.0, 0.0)
        assert t.rotation == (0.0, 0.0, 0.0)
        assert t.scale == (1.0, 1.0, 1.0)

    def test_to_matrix_identity(self):
        """Test identity transform produces identity matrix."""
        np.testing.assert_array_almost_equal(Transform3D.identity().to_matrix(), np.eye(4))

    def test_to_matrix_translation(self):
        """Test translation-only transform."""
        matrix = Transform3D.at(1.0, 0.5, -2.0).to_matrix()
        np.testing.assert_array_almost_equal(matrix[:3, 3], [1.0, 0.5, -2.0])

    def test_uniform_scale_expands(self):
        """Test a scalar scale becomes the same factor on every axis."""
        t = Transform3D(scale=2.0)
        assert t.scale == (2.0, 2.0, 2.0)
        np.testing.assert_array_almost_equal(np.diag(t.to_matrix()), [2.0, 2.0, 2.0, 1.0])

    def test_per_axis_scale(self):
        """Test non-uniform scale factors."""
        t = Transform3D(scale=(1.0, 2.0, 0.5))
        np.testing.assert_array_almost_equal(np.diag(t.to_matrix()), [1.0, 2.0, 0.5, 1.0])

    def test_to_matrix_rotation_z(self):
        """Test Z-rotation transform (radians)."""
        t = Transform3D(rotation=(0.0, 0.0, math.pi / 2))
        point = np.array([1.0, 0.0, 0.0, 1.0])
        result = t.to_matrix() @ point
        np.testing.assert_array_almost_equal(result[:3], [0.0, 1.0, 0.0])

    def test_to_matrix_rotation_y(self):
        """Test Y-rotation turns +Z toward +X."""
        t = Transform3D(rotation=(0.0, math.pi / 2, 0.0))
        result = t.to_matrix() @ np.array([0.0, 0.0, 1.0, 1.0])
        np.testing.assert_array_almost_equal(result[:3], [1.0, 0.0, 0.0])

    def test_apply_to_points(self):
        """Test applying transform to points: scale, then rotate, then translate."""
        t = Transform3D(
            position=(10.0, 0.0, 0.0),
            rotation=(0.0, 0.0, math.pi / 2),
            scale=2.0,
        )
        points = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
        result = t.apply_to_points(points)
        np.testing.assert_array_almost_equal(result, [[10.0, 2.0, 0.0], [8.0, 0.0, 0.0]])

    def test_non_finite_rejected(self):
        """Test NaN and infinite components are rejected."""
        with pytest.raises(ValidationError):
            Transform3D(position=(float("nan"), 0.0, 0.0))
        with pytest.raises(ValidationError):
            Transform3D(scale=float("inf"))

    def test_wrong_arity_rejected(self):
        """Test a two-component position is rejected."""
        with pytest.raises(ValidationError):
            Transform3D(position=(1.0, 2.0))


class TestTransformSteps:
    """Test the incremental helpers used by gizmo drags."""

    def test_translated(self):
        t = Transform3D.at(1.0, 0.5, 0.0).translated((0.5, 0.0, -1.0))
        assert t.position == pytest.approx((1.5, 0.5, -1.0))

    def test_rotated_adds_radians(self):
        t = Transform3D(rotation=(0.1, 0.0, 0.0)).rotated((0.2, 0.0, math.pi))
        assert t.rotation == pytest.approx((0.3, 0.0, math.pi))

    def test_rescaled_multiplies(self):
        t = Transform3D(scale=(1.0, 2.0, 3.0)).rescaled((2.0, 0.5, 1.0))
        assert t.scale == pytest.approx((2.0, 1.0, 3.0))

    def test_steps_do_not_mutate(self):
        original = Transform3D.at(0.0, 0.5, 0.0)
        original.translated((1.0, 1.0, 1.0))
        assert original.position == (0.0, 0.5, 0.0)

    def test_steps_revalidate(self):
        """Test a step producing a non-finite value is rejected."""
        with pytest.raises(ValidationError):
            Transform3D().translated((float("inf"), 0.0, 0.0))

    def test_is_close(self):
        a = Transform3D(position=(1.0, 0.5, 0.0), rotation=(0.0, 0.3, 0.0))
        b = Transform3D(position=(1.00005, 0.5, 0.0), rotation=(0.0, 0.30005, 0.0))
        assert a.is_close(b)
        assert not a.is_close(b.translated((0.01, 0.0, 0.0)))
