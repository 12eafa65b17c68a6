"""Essential matrix estimation with the eight-point algorithm and RANSAC."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

import numpy as np

from ..frontend.matcher import MatchedPair, matches_to_arrays
from ..random_source import RandomSource

logger = logging.getLogger(__name__)

MIN_CORRESPONDENCES = 8

# Relative singular value below which a minimal design matrix is rank deficient
_RANK_EPS = 1e-10


class EstimationStatus(Enum):
    """Outcome of essential matrix estimation."""

    OK = "OK"
    INSUFFICIENT_CORRESPONDENCES = "INSUFFICIENT_CORRESPONDENCES"
    NO_CONSENSUS = "NO_CONSENSUS"


class EpipolarError(Enum):
    """Residual used to score correspondences against a candidate."""

    ALGEBRAIC = "algebraic"
    SAMPSON = "sampson"


@dataclass
class EssentialResult:
    """Result of RANSAC essential matrix estimation.

    Attributes:
        status: Outcome of the estimation
        essential_matrix: 3x3 rank-2 essential matrix, None if not found
        inliers: Boolean mask over the input matches
        num_inliers: Number of inlier correspondences of the best candidate
    """

    status: EstimationStatus
    essential_matrix: np.ndarray | None
    inliers: np.ndarray  # (N,) bool
    num_inliers: int

    @property
    def success(self) -> bool:
        """Return True if an essential matrix was found."""
        return self.status == EstimationStatus.OK

    @property
    def inlier_ratio(self) -> float:
        """Return the fraction of matches that are inliers."""
        if len(self.inliers) == 0:
            return 0.0
        return self.num_inliers / len(self.inliers)


def _homogeneous(points: np.ndarray) -> np.ndarray:
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    return np.hstack([points, np.ones((len(points), 1))])


def eight_point(points_a: np.ndarray, points_b: np.ndarray) -> np.ndarray | None:
    """Fit an essential matrix to at least eight correspondences.

    Each correspondence contributes the row
    [x2*x1, x2*y1, x2, y2*x1, y2*y1, y2, x1, y1, 1] of the design matrix,
    so that p_b^T E p_a = 0. The right singular vector of the smallest
    singular value is reshaped to 3x3, then the smallest singular value of
    that matrix is set to zero.

    Coordinates are assumed to be normalized (identity intrinsics).

    Args:
        points_a: Nx2 points in frame A
        points_b: Nx2 points in frame B

    Returns:
        3x3 rank-2 matrix, or None if there are fewer than 8 points, the
        points are degenerate or the result is not finite
    """
    pa = np.asarray(points_a, dtype=np.float64).reshape(-1, 2)
    pb = np.asarray(points_b, dtype=np.float64).reshape(-1, 2)
    if len(pa) < MIN_CORRESPONDENCES or len(pa) != len(pb):
        return None

    x1, y1 = pa[:, 0], pa[:, 1]
    x2, y2 = pb[:, 0], pb[:, 1]
    design = np.column_stack(
        [x2 * x1, x2 * y1, x2, y2 * x1, y2 * y1, y2, x1, y1, np.ones(len(pa))]
    )

    try:
        _, singular_values, vt = np.linalg.svd(design)
        if singular_values[0] <= 0 or (
            singular_values[MIN_CORRESPONDENCES - 1] <= _RANK_EPS * singular_values[0]
        ):
            return None

        E = vt[-1].reshape(3, 3)

        # Enforce the rank-2 constraint
        U, S, Vt = np.linalg.svd(E)
        S[2] = 0.0
        E = U @ np.diag(S) @ Vt
    except np.linalg.LinAlgError:
        return None

    if not np.isfinite(E).all():
        return None
    return E


def epipolar_errors(
    E: np.ndarray,
    points_a: np.ndarray,
    points_b: np.ndarray,
    metric: EpipolarError = EpipolarError.ALGEBRAIC,
) -> np.ndarray:
    """Compute per-correspondence epipolar residuals.

    ALGEBRAIC is |p_b^T E p_a|. SAMPSON is the square root of the Sampson
    distance, a first-order approximation of the distance to the epipolar
    lines.

    Args:
        E: 3x3 essential matrix
        points_a: Nx2 points in frame A
        points_b: Nx2 points in frame B
        metric: Residual type

    Returns:
        (N,) array of non-negative residuals
    """
    pa = _homogeneous(points_a)
    pb = _homogeneous(points_b)

    Ep_a = pa @ E.T  # epipolar lines in B
    residual = np.sum(pb * Ep_a, axis=1)

    if metric == EpipolarError.ALGEBRAIC:
        return np.abs(residual)

    Etp_b = pb @ E  # epipolar lines in A
    denominator = Ep_a[:, 0] ** 2 + Ep_a[:, 1] ** 2 + Etp_b[:, 0] ** 2 + Etp_b[:, 1] ** 2
    with np.errstate(divide="ignore", invalid="ignore"):
        sampson = np.where(
            denominator > 0, residual**2 / denominator, np.inf
        )
    return np.sqrt(sampson)


def estimate_essential(
    matches: Sequence[MatchedPair],
    iterations: int,
    inlier_threshold: float,
    rng: RandomSource,
    sample_size: int = MIN_CORRESPONDENCES,
    refine: bool = True,
    metric: EpipolarError = EpipolarError.ALGEBRAIC,
) -> EssentialResult:
    """Robustly estimate the essential matrix between two frames.

    Every iteration draws sample_size distinct matches, fits a candidate
    with the eight-point algorithm and counts the matches whose residual is
    below inlier_threshold. A candidate replaces the current best only with
    a strictly larger inlier count, so ties keep the earlier candidate.
    With refine, the best candidate's inliers are refitted; if that fit
    fails the RANSAC candidate is kept.

    Args:
        matches: Matched keypoint pairs (A, B)
        iterations: Number of RANSAC iterations
        inlier_threshold: Residual bound for inliers (exclusive)
        rng: Random source used for subset selection
        sample_size: Minimal set size (>= 8)
        refine: Refit on the inliers of the best candidate
        metric: Residual type used for scoring

    Returns:
        EssentialResult; status is INSUFFICIENT_CORRESPONDENCES when there
        are fewer than 8 (or sample_size) matches and NO_CONSENSUS when no
        candidate had an inlier
    """
    if sample_size < MIN_CORRESPONDENCES:
        raise ValueError(
            f"sample_size must be >= {MIN_CORRESPONDENCES}, got {sample_size}"
        )

    n = len(matches)
    if n < max(MIN_CORRESPONDENCES, sample_size):
        logger.debug("Essential: only %d matches, need %d", n, sample_size)
        return EssentialResult(
            status=EstimationStatus.INSUFFICIENT_CORRESPONDENCES,
            essential_matrix=None,
            inliers=np.zeros(n, dtype=bool),
            num_inliers=0,
        )

    points_a, points_b = matches_to_arrays(matches)

    best_E = None
    best_inliers = np.zeros(n, dtype=bool)
    best_count = 0

    for _ in range(iterations):
        subset = rng.choose_indices(n, sample_size)
        E = eight_point(points_a[subset], points_b[subset])
        if E is None:
            continue

        inliers = epipolar_errors(E, points_a, points_b, metric) < inlier_threshold
        count = int(np.count_nonzero(inliers))
        if count > best_count:
            best_E = E
            best_inliers = inliers
            best_count = count

    if best_E is None:
        logger.debug("Essential: no consensus after %d iterations", iterations)
        return EssentialResult(
            status=EstimationStatus.NO_CONSENSUS,
            essential_matrix=None,
            inliers=np.zeros(n, dtype=bool),
            num_inliers=0,
        )

    if refine and best_count >= MIN_CORRESPONDENCES:
        refined = eight_point(points_a[best_inliers], points_b[best_inliers])
        if refined is not None:
            best_E = refined

    logger.debug("Essential: %d/%d inliers", best_count, n)
    return EssentialResult(
        status=EstimationStatus.OK,
        essential_matrix=best_E,
        inliers=best_inliers,
        num_inliers=best_count,
    )


class EssentialEstimator:
    """RANSAC essential matrix estimator with fixed parameters."""

    def __init__(
        self,
        iterations: int = 1000,
        inlier_threshold: float = 0.01,
        sample_size: int = MIN_CORRESPONDENCES,
        refine_with_all_inliers: bool = True,
        metric: EpipolarError = EpipolarError.ALGEBRAIC,
    ) -> None:
        """Initialize the estimator.

        Args:
            iterations: Number of RANSAC iterations; the only bound on
                running time
            inlier_threshold: Residual bound for inliers
            sample_size: Minimal set size (8 or more)
            refine_with_all_inliers: Refit on the inliers after RANSAC
            metric: Residual used for scoring
        """
        if sample_size < MIN_CORRESPONDENCES:
            raise ValueError(
                f"sample_size must be >= {MIN_CORRESPONDENCES}, got {sample_size}"
            )
        self._iterations = iterations
        self._inlier_threshold = inlier_threshold
        self._sample_size = sample_size
        self._refine = refine_with_all_inliers
        self._metric = metric

    def estimate(
        self, matches: Sequence[MatchedPair], rng: RandomSource
    ) -> EssentialResult:
        """Estimate the essential matrix (see estimate_essential)."""
        return estimate_essential(
            matches,
            self._iterations,
            self._inlier_threshold,
            rng,
            sample_size=self._sample_size,
            refine=self._refine,
            metric=self._metric,
        )

    @property
    def iterations(self) -> int:
        """Return the number of RANSAC iterations."""
        return self._iterations

    @property
    def inlier_threshold(self) -> float:
        """Return the inlier residual bound."""
        return self._inlier_threshold
