"""Tests for essential matrix decomposition and the Pose type."""

import cv2
import numpy as np
import pytest

from monovo.frontend.pose import Pose
from monovo.geometry.decompose import DecompositionStatus, decompose_essential


class TestDecomposeEssential:
    """Test suite for decompose_essential."""

    def test_candidates_are_rotations(self, scene):
        """Test that both candidates are proper rotations."""
        result = decompose_essential(scene.essential)

        assert len(result.candidates) == 2
        for R in result.candidates:
            assert np.allclose(R.T @ R, np.eye(3), atol=1e-9)
            assert np.linalg.det(R) == pytest.approx(1.0)

    def test_ambiguous_without_points(self, scene):
        """Test that two distinct proper candidates are not guessed between."""
        result = decompose_essential(scene.essential)

        assert result.status == DecompositionStatus.AMBIGUOUS
        assert not result.success
        assert result.pose is None
        assert any(np.allclose(R, scene.rotation, atol=1e-9) for R in result.candidates)

    def test_translation_direction(self, scene):
        """Test that the candidate translation is the unit baseline up to sign."""
        result = decompose_essential(scene.essential)

        direction = scene.translation / np.linalg.norm(scene.translation)
        assert np.linalg.norm(result.translation) == pytest.approx(1.0)
        assert abs(result.translation @ direction) == pytest.approx(1.0)

    def test_cheirality_selects_true_pose(self, scene):
        """Test that correspondences resolve rotation and translation sign."""
        result = decompose_essential(scene.essential, scene.points_a, scene.points_b)

        assert result.status == DecompositionStatus.OK
        assert result.success
        np.testing.assert_allclose(result.pose.rotation, scene.rotation, atol=1e-9)
        np.testing.assert_allclose(
            result.pose.translation,
            scene.translation / np.linalg.norm(scene.translation),
            atol=1e-9,
        )

    def test_sign_of_matrix_irrelevant(self, scene):
        """Test that E and -E decompose to the same pose."""
        a = decompose_essential(scene.essential, scene.points_a, scene.points_b)
        b = decompose_essential(-scene.essential, scene.points_a, scene.points_b)

        np.testing.assert_allclose(a.pose.rotation, b.pose.rotation, atol=1e-9)
        np.testing.assert_allclose(a.pose.translation, b.pose.translation, atol=1e-9)

    def test_non_finite_is_degenerate(self):
        """Test that a matrix with NaN entries is degenerate."""
        E = np.full((3, 3), np.nan)

        result = decompose_essential(E)

        assert result.status == DecompositionStatus.DEGENERATE
        assert result.pose is None

    def test_wrong_shape(self):
        """Test that non 3x3 input is rejected."""
        with pytest.raises(ValueError, match="3x3"):
            decompose_essential(np.eye(4))

    def test_point_count_mismatch(self, scene):
        """Test that correspondence arrays must have equal length."""
        with pytest.raises(ValueError, match="Point counts differ"):
            decompose_essential(scene.essential, scene.points_a, scene.points_b[:5])


class TestPose:
    """Test suite for Pose."""

    def test_identity(self):
        """Test the identity pose."""
        pose = Pose.identity()

        np.testing.assert_array_equal(pose.to_matrix(), np.eye(4))
        assert pose.rotation_angle == pytest.approx(0.0)
        np.testing.assert_array_equal(pose.direction, np.zeros(3))

    def test_inverse(self, scene):
        """Test that composing a pose with its inverse gives identity."""
        pose = Pose.from_Rt(scene.rotation, scene.translation)

        product = pose.to_matrix() @ pose.inverse().to_matrix()

        np.testing.assert_allclose(product, np.eye(4), atol=1e-12)

    def test_rotation_angle(self):
        """Test the angle of a known rotation."""
        R, _ = cv2.Rodrigues(np.array([0.0, 0.0, 0.3]))

        assert Pose(R, np.zeros(3)).rotation_angle == pytest.approx(0.3)

    def test_rotation_validity(self, scene):
        """Test orthonormality and determinant checks."""
        assert Pose(scene.rotation, scene.translation).is_rotation_valid()
        assert not Pose(2 * np.eye(3), np.zeros(3)).is_rotation_valid()
        assert not Pose(-np.eye(3), np.zeros(3)).is_rotation_valid()

    def test_direction_is_unit(self):
        """Test translation normalization."""
        pose = Pose(np.eye(3), np.array([0.0, 3.0, 4.0]))

        np.testing.assert_allclose(pose.direction, [0.0, 0.6, 0.8])

    def test_invalid_shapes(self):
        """Test that wrong shapes are rejected."""
        with pytest.raises(ValueError, match="Rotation"):
            Pose(np.eye(2), np.zeros(3))
        with pytest.raises(ValueError, match="Translation"):
            Pose(np.eye(3), np.zeros(4))

    def test_repr(self):
        """Test the string form."""
        assert "angle=0.00deg" in repr(Pose.identity())
