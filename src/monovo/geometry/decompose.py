"""Decomposition of an essential matrix into rotation and translation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

import cv2
import numpy as np

from ..frontend.pose import Pose

logger = logging.getLogger(__name__)

# 90 degree rotation about the optical axis
W = np.array([[0.0, -1.0, 0.0], [1.0, 0.0, 0.0], [0.0, 0.0, 1.0]])


class DecompositionStatus(Enum):
    """Outcome of essential matrix decomposition."""

    OK = "OK"
    AMBIGUOUS = "AMBIGUOUS"
    DEGENERATE = "DEGENERATE"


@dataclass
class DecompositionResult:
    """Result of decomposing an essential matrix.

    Attributes:
        status: Outcome of the decomposition
        pose: Selected relative pose, None unless status is OK
        candidates: The two rotation candidates (U W V^T, U W^T V^T)
        translation: Candidate translation (third column of U)
    """

    status: DecompositionStatus
    pose: Pose | None = None
    candidates: tuple[np.ndarray, ...] = field(default_factory=tuple)
    translation: np.ndarray | None = None

    @property
    def success(self) -> bool:
        """Return True if a pose was selected."""
        return self.status == DecompositionStatus.OK


def _count_in_front(
    R: np.ndarray, t: np.ndarray, points_a: np.ndarray, points_b: np.ndarray
) -> int:
    """Count correspondences triangulated in front of both cameras."""
    P_a = np.hstack([np.eye(3), np.zeros((3, 1))])
    P_b = np.hstack([R, t.reshape(3, 1)])
    X = cv2.triangulatePoints(
        P_a,
        P_b,
        np.ascontiguousarray(points_a.T),
        np.ascontiguousarray(points_b.T),
    )
    with np.errstate(divide="ignore", invalid="ignore"):
        X = X[:3] / X[3]
        depth_a = X[2]
        depth_b = (R @ X + t.reshape(3, 1))[2]
    valid = np.isfinite(depth_a) & np.isfinite(depth_b) & (depth_a > 0) & (depth_b > 0)
    return int(np.count_nonzero(valid))


def _resolve_cheirality(
    R1: np.ndarray,
    R2: np.ndarray,
    t: np.ndarray,
    points_a: np.ndarray,
    points_b: np.ndarray,
) -> Pose | None:
    """Pick the (R, t) combination that puts most points in front of both views."""
    hypotheses = [(R1, t), (R1, -t), (R2, t), (R2, -t)]
    counts = [_count_in_front(R, tt, points_a, points_b) for R, tt in hypotheses]
    best = int(np.argmax(counts))
    logger.debug("Cheirality votes: %s", counts)
    if counts[best] == 0:
        return None
    R, tt = hypotheses[best]
    return Pose(rotation=R, translation=tt)


def decompose_essential(
    E: np.ndarray,
    points_a: np.ndarray | None = None,
    points_b: np.ndarray | None = None,
    tolerance: float = 1e-6,
) -> DecompositionResult:
    """Recover the relative pose encoded by an essential matrix.

    With E = U S V^T the rotation candidates are R1 = U W V^T and
    R2 = U W^T V^T, and the translation is the third column of U (sign and
    scale ambiguous). Since E is only defined up to sign, U and V^T are
    flipped to determinant +1 first.

    Selection by determinant: a single candidate with positive determinant
    is accepted; two positive candidates closer than tolerance accept R1;
    two negative candidates are DEGENERATE. Two positive, materially
    different candidates are AMBIGUOUS unless correspondences are given, in
    which case the combination of rotation and translation sign that
    triangulates the most points in front of both cameras is chosen.

    Args:
        E: 3x3 essential matrix
        points_a: Optional Nx2 normalized points in frame A
        points_b: Optional Nx2 normalized points in frame B
        tolerance: Frobenius distance under which R1 and R2 are identical

    Returns:
        DecompositionResult with the selected pose when status is OK
    """
    E = np.asarray(E, dtype=np.float64)
    if E.shape != (3, 3):
        raise ValueError(f"Essential matrix must be 3x3, got {E.shape}")
    if not np.isfinite(E).all():
        return DecompositionResult(status=DecompositionStatus.DEGENERATE)

    try:
        U, _, Vt = np.linalg.svd(E)
    except np.linalg.LinAlgError:
        return DecompositionResult(status=DecompositionStatus.DEGENERATE)

    if np.linalg.det(U) < 0:
        U = -U
    if np.linalg.det(Vt) < 0:
        Vt = -Vt

    R1 = U @ W @ Vt
    R2 = U @ W.T @ Vt
    t = U[:, 2].copy()
    candidates = (R1, R2)

    det1 = np.linalg.det(R1)
    det2 = np.linalg.det(R2)

    if det1 > 0 and det2 > 0:
        if np.linalg.norm(R1 - R2) < tolerance:
            pose = Pose(rotation=R1, translation=t)
        elif points_a is not None and points_b is not None:
            pa = np.asarray(points_a, dtype=np.float64).reshape(-1, 2)
            pb = np.asarray(points_b, dtype=np.float64).reshape(-1, 2)
            if len(pa) != len(pb):
                raise ValueError(
                    f"Point counts differ: {len(pa)} vs {len(pb)}"
                )
            pose = _resolve_cheirality(R1, R2, t, pa, pb) if len(pa) else None
        else:
            pose = None

        if pose is None:
            logger.debug("Decomposition: rotation candidates are ambiguous")
            return DecompositionResult(
                status=DecompositionStatus.AMBIGUOUS,
                candidates=candidates,
                translation=t,
            )
    elif det1 > 0:
        pose = Pose(rotation=R1, translation=t)
    elif det2 > 0:
        pose = Pose(rotation=R2, translation=t)
    else:
        logger.debug("Decomposition: both rotation candidates are improper")
        return DecompositionResult(
            status=DecompositionStatus.DEGENERATE,
            candidates=candidates,
            translation=t,
        )

    return DecompositionResult(
        status=DecompositionStatus.OK,
        pose=pose,
        candidates=candidates,
        translation=t,
    )
