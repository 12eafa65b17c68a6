"""Pipeline configuration."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from .geometry.essential import MIN_CORRESPONDENCES, EpipolarError


@dataclass
class PipelineConfig:
    """Parameters of one two-frame pipeline run.

    Attributes:
        threshold: FAST contrast threshold
        patch_size: Side of the square the descriptor offsets are drawn from
        num_pairs: Number of intensity comparisons (descriptor bits)
        max_hamming_distance: Matches need a distance strictly below this
        blur_sigma: Standard deviation of the Gaussian prefilter
        ransac_iterations: Number of RANSAC iterations
        ransac_inlier_threshold: Epipolar residual bound for inliers
        seed: Seed of the random source (pattern and RANSAC draws)
        ransac_sample_size: Minimal set size drawn per iteration (>= 8)
        refine_essential: Refit the essential matrix on the final inliers
        epipolar_error: "algebraic" or "sampson"
    """

    threshold: int = 30
    patch_size: int = 100
    num_pairs: int = 500
    max_hamming_distance: int = 300
    blur_sigma: float = 3.0
    ransac_iterations: int = 1000
    ransac_inlier_threshold: float = 0.01
    seed: int = 2523523
    ransac_sample_size: int = MIN_CORRESPONDENCES
    refine_essential: bool = True
    epipolar_error: str = EpipolarError.ALGEBRAIC.value

    def __post_init__(self) -> None:
        """Validate parameter ranges."""
        if not 0 <= self.threshold <= 255:
            raise ValueError(f"threshold must be in [0, 255], got {self.threshold}")
        if self.patch_size <= 0:
            raise ValueError(f"patch_size must be positive, got {self.patch_size}")
        if self.num_pairs <= 0:
            raise ValueError(f"num_pairs must be positive, got {self.num_pairs}")
        if self.max_hamming_distance < 0:
            raise ValueError(
                f"max_hamming_distance must be >= 0, got {self.max_hamming_distance}"
            )
        if self.blur_sigma <= 0:
            raise ValueError(f"blur_sigma must be positive, got {self.blur_sigma}")
        if self.ransac_iterations < 0:
            raise ValueError(
                f"ransac_iterations must be >= 0, got {self.ransac_iterations}"
            )
        if self.ransac_inlier_threshold <= 0:
            raise ValueError(
                "ransac_inlier_threshold must be positive, "
                f"got {self.ransac_inlier_threshold}"
            )
        if self.ransac_sample_size < MIN_CORRESPONDENCES:
            raise ValueError(
                f"ransac_sample_size must be >= {MIN_CORRESPONDENCES}, "
                f"got {self.ransac_sample_size}"
            )
        # Raises ValueError for unknown names
        EpipolarError(self.epipolar_error)

    @property
    def error_metric(self) -> EpipolarError:
        """Return the epipolar residual as an enum."""
        return EpipolarError(self.epipolar_error)

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> PipelineConfig:
        """Create a config from a dictionary.

        Raises:
            ValueError: If the dictionary contains unknown keys or invalid values
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(config_dict) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**config_dict)

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> PipelineConfig:
        """Load a config from a YAML mapping.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the file is not a mapping or holds invalid values
        """
        path = Path(yaml_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        with open(path, "r") as f:
            data = yaml.safe_load(f)

        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {yaml_path}")
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        """Convert config to a dictionary."""
        return asdict(self)

    def replace(self, **changes: Any) -> PipelineConfig:
        """Return a copy with some parameters changed."""
        return self.from_dict({**self.to_dict(), **changes})
