"""Rotated BRIEF binary descriptors."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ..image import as_image_view
from ..random_source import RandomSource
from .feature_detector import KeyPoint


@dataclass
class SamplingPattern:
    """Offset pairs compared by every descriptor of a pipeline run.

    Attributes:
        offsets: (num_pairs, 2, 2) array; offsets[i] = ((dx1, dy1), (dx2, dy2))
    """

    offsets: np.ndarray

    def __post_init__(self) -> None:
        """Validate and normalize the offset array."""
        self.offsets = np.asarray(self.offsets, dtype=np.float64).reshape(-1, 2, 2)

    @classmethod
    def from_pairs(
        cls, pairs: Sequence[tuple[tuple[float, float], tuple[float, float]]]
    ) -> SamplingPattern:
        """Create a pattern from ((dx1, dy1), (dx2, dy2)) tuples."""
        return cls(offsets=np.asarray(pairs, dtype=np.float64).reshape(-1, 2, 2))

    @property
    def num_pairs(self) -> int:
        """Return the number of comparisons (descriptor bits)."""
        return int(self.offsets.shape[0])

    @property
    def descriptor_size(self) -> int:
        """Return descriptor length in bytes."""
        return math.ceil(self.num_pairs / 8)

    def __len__(self) -> int:
        """Return the number of offset pairs."""
        return self.num_pairs


def generate_sampling_pattern(
    rng: RandomSource, patch_size: int, num_pairs: int
) -> SamplingPattern:
    """Draw num_pairs offset pairs uniformly from [-patch_size/2, patch_size/2].

    Consumes four values per pair from rng, in the order x1, y1, x2, y2.
    """
    half = patch_size / 2.0
    offsets = np.empty((num_pairs, 2, 2), dtype=np.float64)
    for i in range(num_pairs):
        x1 = rng.range(-half, half)
        y1 = rng.range(-half, half)
        x2 = rng.range(-half, half)
        y2 = rng.range(-half, half)
        offsets[i] = ((x1, y1), (x2, y2))
    return SamplingPattern(offsets=offsets)


def compute_descriptors(
    gray: np.ndarray,
    width: int,
    height: int,
    keypoints: Sequence[KeyPoint],
    pattern: SamplingPattern,
) -> np.ndarray:
    """Evaluate the sampling pattern at every keypoint.

    Both offsets of a pair are rotated by the keypoint orientation,
    translated to the keypoint, clamped into the image and truncated to
    pixel coordinates. Bit i is 1 when the first pixel is strictly
    brighter than the second. Bits are packed least-significant first and
    the last byte is zero-padded.

    Args:
        gray: Flat grayscale buffer of length width * height
        width: Image width in pixels
        height: Image height in pixels
        keypoints: Keypoints of this image
        pattern: Sampling pattern shared by both frames

    Returns:
        (N, pattern.descriptor_size) uint8 array
    """
    img = as_image_view(gray, width, height)
    n_bytes = pattern.descriptor_size
    if len(keypoints) == 0 or pattern.num_pairs == 0:
        return np.zeros((len(keypoints), n_bytes), dtype=np.uint8)

    kx = np.array([kp.x for kp in keypoints], dtype=np.float64)[:, np.newaxis]
    ky = np.array([kp.y for kp in keypoints], dtype=np.float64)[:, np.newaxis]
    theta = np.array([kp.orientation for kp in keypoints], dtype=np.float64)
    cos_t = np.cos(theta)[:, np.newaxis]
    sin_t = np.sin(theta)[:, np.newaxis]

    def sample(dx: np.ndarray, dy: np.ndarray) -> np.ndarray:
        # (N, P) intensities at the rotated, translated and clamped offsets
        x = kx + (dx * cos_t - dy * sin_t)
        y = ky + (dx * sin_t + dy * cos_t)
        col = np.clip(x, 0.0, width - 1.0).astype(np.int64)
        row = np.clip(y, 0.0, height - 1.0).astype(np.int64)
        return img[row, col]

    first = sample(pattern.offsets[:, 0, 0], pattern.offsets[:, 0, 1])
    second = sample(pattern.offsets[:, 1, 0], pattern.offsets[:, 1, 1])
    bits = first > second

    return np.packbits(bits, axis=1, bitorder="little")


def compute_descriptor(
    gray: np.ndarray,
    width: int,
    height: int,
    keypoint: KeyPoint,
    pattern: SamplingPattern,
) -> bytes:
    """Compute the descriptor of a single keypoint as bytes."""
    return compute_descriptors(gray, width, height, [keypoint], pattern)[0].tobytes()


class BriefExtractor:
    """Computes rotated BRIEF descriptors against a fixed sampling pattern."""

    def __init__(self, pattern: SamplingPattern) -> None:
        """Initialize the extractor.

        Args:
            pattern: Sampling pattern; reuse the same pattern for every frame
                whose descriptors will be compared
        """
        self._pattern = pattern

    @classmethod
    def from_random(
        cls, rng: RandomSource, patch_size: int = 100, num_pairs: int = 500
    ) -> BriefExtractor:
        """Create an extractor with a freshly drawn sampling pattern."""
        return cls(generate_sampling_pattern(rng, patch_size, num_pairs))

    def compute(
        self, gray: np.ndarray, width: int, height: int, keypoints: Sequence[KeyPoint]
    ) -> np.ndarray:
        """Compute descriptors for a keypoint list (see compute_descriptors)."""
        return compute_descriptors(gray, width, height, keypoints, self._pattern)

    @property
    def pattern(self) -> SamplingPattern:
        """Return the sampling pattern."""
        return self._pattern

    @property
    def descriptor_size(self) -> int:
        """Return descriptor length in bytes."""
        return self._pattern.descriptor_size
