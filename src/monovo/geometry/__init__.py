"""Two-view geometry: essential matrix estimation and decomposition."""

from .decompose import DecompositionResult, DecompositionStatus, decompose_essential
from .essential import (
    EpipolarError,
    EssentialEstimator,
    EssentialResult,
    EstimationStatus,
    eight_point,
    epipolar_errors,
    estimate_essential,
)

__all__ = [
    "EssentialEstimator",
    "EssentialResult",
    "EstimationStatus",
    "EpipolarError",
    "eight_point",
    "epipolar_errors",
    "estimate_essential",
    "DecompositionResult",
    "DecompositionStatus",
    "decompose_essential",
]
