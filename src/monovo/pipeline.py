"""Two-frame monocular visual odometry pipeline."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

import numpy as np

from .config import PipelineConfig
from .errors import DimensionError
from .frontend.descriptor import BriefExtractor, SamplingPattern, generate_sampling_pattern
from .frontend.feature_detector import FeatureDetector, Features, KeyPoint
from .frontend.matcher import FeatureMatcher, MatchedPair, matches_to_arrays
from .frontend.pose import Pose
from .frontend.preprocess import gaussian_blur, to_grayscale
from .geometry.decompose import DecompositionResult, decompose_essential
from .geometry.essential import EssentialEstimator, EssentialResult
from .image import Image
from .random_source import RandomSource

logger = logging.getLogger(__name__)


@dataclass
class FrameArtifacts:
    """Per-frame output of the pipeline.

    Attributes:
        keypoints: Oriented keypoints of the frame
        descriptors: (N, n_bytes) uint8 descriptors, one row per keypoint
        preprocessed: Flat blurred grayscale buffer, or None when the
            pipeline does not hand it back for this frame
        width: Frame width in pixels
        height: Frame height in pixels
    """

    keypoints: list[KeyPoint]
    descriptors: np.ndarray
    preprocessed: np.ndarray | None
    width: int
    height: int

    @property
    def features(self) -> Features:
        """Return keypoints and descriptors as a Features container."""
        return Features(keypoints=tuple(self.keypoints), descriptors=self.descriptors)

    def __iter__(self):
        """Allow unpacking as (keypoints, descriptors, preprocessed)."""
        yield self.keypoints
        yield self.descriptors
        yield self.preprocessed

    def __len__(self) -> int:
        """Return number of keypoints."""
        return len(self.keypoints)


@dataclass
class PipelineTiming:
    """Timing breakdown for one pipeline run."""

    detection_ms: float = 0.0
    description_ms: float = 0.0
    matching_ms: float = 0.0
    geometry_ms: float = 0.0
    total_ms: float = 0.0


@dataclass
class PipelineResult:
    """Output of a two-frame pipeline run.

    Unpacks as (pose, matches, frame_a, frame_b).
    """

    pose: Pose | None
    matches: list[MatchedPair]
    frame_a: FrameArtifacts
    frame_b: FrameArtifacts
    essential: EssentialResult | None = None
    decomposition: DecompositionResult | None = None
    timing: PipelineTiming = field(default_factory=PipelineTiming)

    @property
    def success(self) -> bool:
        """Return True if a pose was recovered."""
        return self.pose is not None

    def __iter__(self):
        """Allow unpacking as (pose, matches, frame_a, frame_b)."""
        yield self.pose
        yield self.matches
        yield self.frame_a
        yield self.frame_b


def _check_rgba(image: Image) -> None:
    if image.channels != 4:
        raise DimensionError(
            f"Pipeline input must be 4-channel RGBA, got {image.channels} channels"
        )


def preprocess(image: Image, config: PipelineConfig) -> np.ndarray:
    """Convert an RGBA image to a blurred grayscale buffer."""
    _check_rgba(image)
    gray = to_grayscale(image.pixels, image.width, image.height)
    return gaussian_blur(gray, image.width, image.height, config.blur_sigma)


def compute_features(
    image: Image,
    config: PipelineConfig | None = None,
    pattern: SamplingPattern | None = None,
) -> FrameArtifacts:
    """Detect and describe the features of a single RGBA frame.

    Args:
        image: RGBA input frame
        config: Pipeline parameters (defaults when omitted)
        pattern: Sampling pattern to describe with. Descriptors are only
            comparable between frames that share a pattern; when omitted the
            pattern is drawn from a fresh RandomSource(config.seed), which is
            the same pattern run_pipeline uses.

    Returns:
        FrameArtifacts including the blurred buffer

    Raises:
        DimensionError: If the image is not RGBA or is too small
    """
    config = config or PipelineConfig()
    if pattern is None:
        pattern = generate_sampling_pattern(
            RandomSource(config.seed), config.patch_size, config.num_pairs
        )

    blurred = preprocess(image, config)
    features = FeatureDetector(config.threshold).detect(blurred, image.width, image.height)
    descriptors = BriefExtractor(pattern).compute(
        blurred, image.width, image.height, features.keypoints
    )
    return FrameArtifacts(
        keypoints=list(features.keypoints),
        descriptors=descriptors,
        preprocessed=blurred,
        width=image.width,
        height=image.height,
    )


def estimate_pose(
    matches: list[MatchedPair],
    config: PipelineConfig | None = None,
    rng: RandomSource | None = None,
) -> Pose | None:
    """Estimate the relative pose from matched keypoints.

    Args:
        matches: Matched pairs; coordinates are taken as normalized
        config: Pipeline parameters (defaults when omitted)
        rng: Random source for RANSAC; RandomSource(config.seed) when omitted

    Returns:
        Relative pose of frame B, or None if no essential matrix was found
        or its decomposition was ambiguous
    """
    config = config or PipelineConfig()
    rng = rng or RandomSource(config.seed)
    _, decomposition = _solve_geometry(matches, config, rng)
    return decomposition.pose if decomposition is not None else None


def _solve_geometry(
    matches: list[MatchedPair], config: PipelineConfig, rng: RandomSource
) -> tuple[EssentialResult, DecompositionResult | None]:
    estimator = EssentialEstimator(
        iterations=config.ransac_iterations,
        inlier_threshold=config.ransac_inlier_threshold,
        sample_size=config.ransac_sample_size,
        refine_with_all_inliers=config.refine_essential,
        metric=config.error_metric,
    )
    essential = estimator.estimate(matches, rng)
    if not essential.success:
        return essential, None

    points_a, points_b = matches_to_arrays(matches)
    decomposition = decompose_essential(
        essential.essential_matrix,
        points_a[essential.inliers],
        points_b[essential.inliers],
    )
    return essential, decomposition


class VisualOdometryPipeline:
    """Recovers the relative camera pose between two RGBA frames.

    Stages, in order:
    1. Grayscale conversion, Gaussian blur and FAST detection per frame
    2. One sampling pattern shared by both frames
    3. BRIEF descriptors per frame, against that frame's own keypoints
    4. Brute-force Hamming matching from frame A to frame B
    5. RANSAC essential matrix estimation
    6. Essential matrix decomposition

    The random source is re-seeded on every run: the pattern is drawn
    first and the RANSAC subsets afterwards, so results are reproducible.
    """

    def __init__(self, config: PipelineConfig | None = None) -> None:
        """Initialize the pipeline.

        Args:
            config: Pipeline parameters (defaults when omitted)
        """
        self._config = config or PipelineConfig()
        self._detector = FeatureDetector(self._config.threshold)
        self._matcher = FeatureMatcher(self._config.max_hamming_distance)

    def run(self, image_a: Image, image_b: Image) -> PipelineResult:
        """Process two frames.

        Args:
            image_a: First RGBA frame
            image_b: Second RGBA frame

        Returns:
            PipelineResult; pose is None when estimation or decomposition
            failed

        Raises:
            DimensionError: If a frame is not RGBA or is too small
        """
        config = self._config
        timing = PipelineTiming()
        t_start = time.perf_counter()

        _check_rgba(image_a)
        _check_rgba(image_b)
        rng = RandomSource(config.seed)

        # Stage 1: preprocessing and detection
        t0 = time.perf_counter()
        blurred_a = preprocess(image_a, config)
        blurred_b = preprocess(image_b, config)
        features_a = self._detector.detect(blurred_a, image_a.width, image_a.height)
        features_b = self._detector.detect(blurred_b, image_b.width, image_b.height)
        timing.detection_ms = (time.perf_counter() - t0) * 1000

        # Stages 2-3: shared pattern, per-frame descriptors
        t0 = time.perf_counter()
        extractor = BriefExtractor.from_random(rng, config.patch_size, config.num_pairs)
        features_a.descriptors = extractor.compute(
            blurred_a, image_a.width, image_a.height, features_a.keypoints
        )
        features_b.descriptors = extractor.compute(
            blurred_b, image_b.width, image_b.height, features_b.keypoints
        )
        timing.description_ms = (time.perf_counter() - t0) * 1000

        # Stage 4: matching
        t0 = time.perf_counter()
        matches = self._matcher.match(features_a, features_b)
        timing.matching_ms = (time.perf_counter() - t0) * 1000

        # Stages 5-6: essential matrix and decomposition
        t0 = time.perf_counter()
        essential, decomposition = _solve_geometry(matches, config, rng)
        timing.geometry_ms = (time.perf_counter() - t0) * 1000

        pose = decomposition.pose if decomposition is not None else None
        timing.total_ms = (time.perf_counter() - t_start) * 1000

        logger.debug(
            "Pipeline: %d/%d keypoints, %d matches, essential %s, pose %s",
            len(features_a),
            len(features_b),
            len(matches),
            essential.status.value,
            "found" if pose is not None else "not found",
        )

        return PipelineResult(
            pose=pose,
            matches=matches,
            frame_a=FrameArtifacts(
                keypoints=list(features_a.keypoints),
                descriptors=features_a.descriptors,
                preprocessed=blurred_a,
                width=image_a.width,
                height=image_a.height,
            ),
            frame_b=FrameArtifacts(
                keypoints=list(features_b.keypoints),
                descriptors=features_b.descriptors,
                preprocessed=None,
                width=image_b.width,
                height=image_b.height,
            ),
            essential=essential,
            decomposition=decomposition,
            timing=timing,
        )

    @property
    def config(self) -> PipelineConfig:
        """Return the pipeline configuration."""
        return self._config


def run_pipeline(
    image_a: Image, image_b: Image, config: PipelineConfig | None = None
) -> PipelineResult:
    """Run the full two-frame pipeline (see VisualOdometryPipeline.run)."""
    return VisualOdometryPipeline(config).run(image_a, image_b)
