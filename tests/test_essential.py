"""Tests for eight-point and RANSAC essential matrix estimation."""

import numpy as np
import pytest

from monovo.frontend.feature_detector import KeyPoint
from monovo.frontend.matcher import MatchedPair
from monovo.geometry.essential import (
    EpipolarError,
    EssentialEstimator,
    EstimationStatus,
    eight_point,
    epipolar_errors,
    estimate_essential,
)
from monovo.random_source import RandomSource


def same_up_to_scale(E: np.ndarray, E_true: np.ndarray, atol: float = 1e-6) -> bool:
    """Return True if two essential matrices agree up to scale and sign."""
    a = E / np.linalg.norm(E)
    b = E_true / np.linalg.norm(E_true)
    return min(np.linalg.norm(a - b), np.linalg.norm(a + b)) < atol


def with_outliers(scene, n_outliers: int = 10) -> list[MatchedPair]:
    """Append random correspondences to the scene's matches."""
    rng = np.random.default_rng(1)
    outliers = [
        MatchedPair(KeyPoint(*rng.uniform(-0.3, 0.3, 2)), KeyPoint(*rng.uniform(-0.3, 0.3, 2)))
        for _ in range(n_outliers)
    ]
    return scene.matches() + outliers


class TestEightPoint:
    """Test suite for the eight-point fit."""

    def test_exact_data(self, scene):
        """Test that noiseless data recovers the true essential matrix."""
        E = eight_point(scene.points_a, scene.points_b)

        assert E is not None
        assert same_up_to_scale(E, scene.essential)

    def test_rank_two(self, scene):
        """Test that the result has a zero smallest singular value."""
        E = eight_point(scene.points_a[:8], scene.points_b[:8])

        singular_values = np.linalg.svd(E, compute_uv=False)
        assert singular_values[2] == pytest.approx(0.0, abs=1e-12)
        assert singular_values[1] > 1e-3

    def test_too_few_points(self, scene):
        """Test that fewer than eight points give no result."""
        assert eight_point(scene.points_a[:7], scene.points_b[:7]) is None

    def test_degenerate_points(self):
        """Test that repeated points give no result."""
        points = np.tile([[0.1, 0.2]], (10, 1))

        assert eight_point(points, points) is None


class TestEpipolarErrors:
    """Test suite for epipolar residuals."""

    @pytest.mark.parametrize("metric", list(EpipolarError))
    def test_true_matrix_has_zero_error(self, scene, metric: EpipolarError):
        """Test that exact correspondences have zero residual."""
        errors = epipolar_errors(scene.essential, scene.points_a, scene.points_b, metric)

        assert errors.shape == (40,)
        assert np.all(errors < 1e-12)

    def test_algebraic_value(self):
        """Test the algebraic residual of a pure x translation."""
        E = np.array([[0.0, 0.0, 0.0], [0.0, 0.0, -1.0], [0.0, 1.0, 0.0]])  # [t]x, t = x

        # Epipolar lines are horizontal; a vertical offset of 0.5 violates them
        errors = epipolar_errors(E, np.array([[0.2, 0.1]]), np.array([[0.4, 0.6]]))

        assert errors[0] == pytest.approx(0.5)


class TestEstimateEssential:
    """Test suite for RANSAC estimation."""

    def test_recovers_scene(self, scene):
        """Test that noiseless matches are all inliers of the true matrix."""
        result = estimate_essential(
            scene.matches(), iterations=20, inlier_threshold=1e-6, rng=RandomSource(1)
        )

        assert result.status == EstimationStatus.OK
        assert result.success
        assert result.num_inliers == 40
        assert result.inlier_ratio == 1.0
        assert same_up_to_scale(result.essential_matrix, scene.essential)

    def test_rejects_outliers(self, scene):
        """Test that random correspondences are excluded from the inliers."""
        matches = with_outliers(scene)

        result = estimate_essential(
            matches, iterations=200, inlier_threshold=1e-6, rng=RandomSource(2523523)
        )

        assert result.success
        assert result.inliers[:40].all()
        assert not result.inliers[40:].any()
        assert result.num_inliers == 40
        assert same_up_to_scale(result.essential_matrix, scene.essential)

    def test_reproducible(self, scene):
        """Test that the same seed gives the same result."""
        matches = with_outliers(scene)

        a = estimate_essential(matches, 50, 1e-6, RandomSource(9))
        b = estimate_essential(matches, 50, 1e-6, RandomSource(9))

        np.testing.assert_array_equal(a.inliers, b.inliers)
        np.testing.assert_array_equal(a.essential_matrix, b.essential_matrix)

    @pytest.mark.parametrize("n_matches", [0, 1, 7])
    def test_insufficient_correspondences(self, scene, n_matches: int):
        """Test that fewer than eight matches are reported, not fitted."""
        result = estimate_essential(
            scene.matches()[:n_matches], 100, 0.01, RandomSource(1)
        )

        assert result.status == EstimationStatus.INSUFFICIENT_CORRESPONDENCES
        assert result.essential_matrix is None
        assert result.inliers.shape == (n_matches,)
        assert result.inlier_ratio == 0.0

    def test_no_consensus_on_degenerate_matches(self):
        """Test that matches without a usable minimal set give NO_CONSENSUS."""
        pair = MatchedPair(KeyPoint(0.1, 0.2), KeyPoint(0.1, 0.2))

        result = estimate_essential([pair] * 12, 30, 0.01, RandomSource(1))

        assert result.status == EstimationStatus.NO_CONSENSUS
        assert result.essential_matrix is None
        assert result.num_inliers == 0

    def test_zero_iterations(self, scene):
        """Test that no iterations means no consensus."""
        result = estimate_essential(scene.matches(), 0, 0.01, RandomSource(1))

        assert result.status == EstimationStatus.NO_CONSENSUS

    def test_sample_size_too_small(self, scene):
        """Test that minimal sets below eight are rejected."""
        with pytest.raises(ValueError, match="sample_size"):
            estimate_essential(scene.matches(), 10, 0.01, RandomSource(1), sample_size=7)

    def test_larger_sample_size(self, scene):
        """Test RANSAC with nine-point minimal sets."""
        result = estimate_essential(
            scene.matches(), 10, 1e-6, RandomSource(1), sample_size=9
        )

        assert result.success
        assert result.num_inliers == 40

    def test_sample_size_above_match_count(self, scene):
        """Test that a minimal set larger than the match list is insufficient."""
        result = estimate_essential(
            scene.matches()[:8], 10, 1e-6, RandomSource(1), sample_size=9
        )

        assert result.status == EstimationStatus.INSUFFICIENT_CORRESPONDENCES

    def test_sampson_metric(self, scene):
        """Test scoring with the Sampson residual."""
        result = estimate_essential(
            with_outliers(scene),
            200,
            1e-6,
            RandomSource(4),
            metric=EpipolarError.SAMPSON,
        )

        assert result.success
        assert result.inliers[:40].all()

    def test_without_refinement(self, scene):
        """Test that the RANSAC candidate is returned when refinement is off."""
        result = estimate_essential(
            scene.matches(), 5, 1e-6, RandomSource(1), refine=False
        )

        assert result.success
        assert same_up_to_scale(result.essential_matrix, scene.essential)


class TestEssentialEstimator:
    """Test suite for EssentialEstimator."""

    def test_defaults(self):
        """Test default parameters."""
        estimator = EssentialEstimator()

        assert estimator.iterations == 1000
        assert estimator.inlier_threshold == 0.01

    def test_estimate(self, scene):
        """Test that estimate delegates to estimate_essential."""
        estimator = EssentialEstimator(iterations=20, inlier_threshold=1e-6)

        result = estimator.estimate(scene.matches(), RandomSource(3))

        assert result.success
        assert result.num_inliers == 40

    def test_invalid_sample_size(self):
        """Test that the constructor validates the minimal set size."""
        with pytest.raises(ValueError):
            EssentialEstimator(sample_size=4)
