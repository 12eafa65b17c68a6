"""monovo - two-frame monocular visual odometry front end."""

__version__ = "0.1.0"

# Re-export main classes for convenient imports
from .config import PipelineConfig
from .errors import DescriptorLengthMismatch, DimensionError, MonoVOError
from .image import Image
from .random_source import RandomSource, choose_without_replacement
from .frontend import (
    BriefExtractor,
    FeatureDetector,
    FeatureMatcher,
    Features,
    KeyPoint,
    MatchedPair,
    Pose,
    SamplingPattern,
)
from .geometry import (
    DecompositionStatus,
    EssentialEstimator,
    EssentialResult,
    EstimationStatus,
    decompose_essential,
    estimate_essential,
)
from .io import load_image
from .visualization import RerunVisualizer
from .pipeline import (
    FrameArtifacts,
    PipelineResult,
    PipelineTiming,
    VisualOdometryPipeline,
    compute_features,
    estimate_pose,
    run_pipeline,
)

__all__ = [
    "__version__",
    # Configuration
    "PipelineConfig",
    # Errors
    "MonoVOError",
    "DimensionError",
    "DescriptorLengthMismatch",
    # Images / I/O
    "Image",
    "load_image",
    # Random source
    "RandomSource",
    "choose_without_replacement",
    # Frontend
    "FeatureDetector",
    "Features",
    "KeyPoint",
    "BriefExtractor",
    "SamplingPattern",
    "FeatureMatcher",
    "MatchedPair",
    # Geometry
    "EssentialEstimator",
    "EssentialResult",
    "EstimationStatus",
    "estimate_essential",
    "DecompositionStatus",
    "decompose_essential",
    # Pose
    "Pose",
    # Pipeline
    "VisualOdometryPipeline",
    "PipelineResult",
    "PipelineTiming",
    "FrameArtifacts",
    "compute_features",
    "estimate_pose",
    "run_pipeline",
    # Visualization
    "RerunVisualizer",
]
