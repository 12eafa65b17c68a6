"""Per-frame components: preprocessing, detection, description, matching.

Components:
- Preprocessing: RGBA to grayscale, separable Gaussian blur
- FeatureDetector: FAST corners with intensity-moment orientation
- BriefExtractor: Rotated BRIEF descriptors over a shared sampling pattern
- FeatureMatcher: Brute-force Hamming matching
- Pose: Relative rotation and translation between two views
"""

from .descriptor import (
    BriefExtractor,
    SamplingPattern,
    compute_descriptor,
    compute_descriptors,
    generate_sampling_pattern,
)
from .feature_detector import (
    FeatureDetector,
    Features,
    KeyPoint,
    compute_orientations,
    fast_keypoints,
)
from .matcher import (
    FeatureMatcher,
    MatchedPair,
    hamming_distance,
    match_features,
    matches_to_arrays,
)
from .pose import Pose
from .preprocess import (
    fixed_gaussian_blur,
    gaussian_blur,
    gaussian_kernel,
    separable_blur,
    to_grayscale,
)

__all__ = [
    # Preprocessing
    "to_grayscale",
    "gaussian_kernel",
    "gaussian_blur",
    "fixed_gaussian_blur",
    "separable_blur",
    # Detection
    "FeatureDetector",
    "Features",
    "KeyPoint",
    "fast_keypoints",
    "compute_orientations",
    # Description
    "BriefExtractor",
    "SamplingPattern",
    "generate_sampling_pattern",
    "compute_descriptor",
    "compute_descriptors",
    # Matching
    "FeatureMatcher",
    "MatchedPair",
    "hamming_distance",
    "match_features",
    "matches_to_arrays",
    # Pose
    "Pose",
]
