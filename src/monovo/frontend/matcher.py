"""Brute-force Hamming matching of binary descriptors."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ..errors import DescriptorLengthMismatch
from .feature_detector import Features, KeyPoint

logger = logging.getLogger(__name__)

# Number of set bits for every byte value
_POPCOUNT = np.array([bin(i).count("1") for i in range(256)], dtype=np.int64)


@dataclass(frozen=True)
class MatchedPair:
    """A keypoint in frame A and its best match in frame B."""

    keypoint_a: KeyPoint
    keypoint_b: KeyPoint

    def __iter__(self):
        """Allow unpacking as (keypoint_a, keypoint_b)."""
        yield self.keypoint_a
        yield self.keypoint_b


def _to_bytes(descriptor: Sequence[int] | bytes | np.ndarray) -> bytes:
    if isinstance(descriptor, (bytes, bytearray)):
        return bytes(descriptor)
    return np.asarray(descriptor, dtype=np.uint8).reshape(-1).tobytes()


def hamming_distance(a: Sequence[int] | bytes, b: Sequence[int] | bytes) -> int:
    """Return the number of differing bits between two byte strings.

    Raises:
        DescriptorLengthMismatch: If the inputs differ in length
    """
    a_bytes = _to_bytes(a)
    b_bytes = _to_bytes(b)
    if len(a_bytes) != len(b_bytes):
        raise DescriptorLengthMismatch(
            f"Descriptor lengths differ: {len(a_bytes)} vs {len(b_bytes)} bytes"
        )
    xor = int.from_bytes(a_bytes, "little") ^ int.from_bytes(b_bytes, "little")
    return xor.bit_count()


def _as_descriptor_array(descriptors: np.ndarray | Sequence) -> np.ndarray:
    """Return descriptors as an (N, n_bytes) uint8 array."""
    if isinstance(descriptors, np.ndarray) and descriptors.ndim == 2:
        return descriptors.astype(np.uint8, copy=False)

    rows = [_to_bytes(d) for d in descriptors]
    widths = {len(row) for row in rows}
    if len(widths) > 1:
        raise DescriptorLengthMismatch(
            f"Descriptor set mixes lengths {sorted(widths)}"
        )
    width = widths.pop() if widths else 0
    if not rows:
        return np.zeros((0, width), dtype=np.uint8)
    return np.frombuffer(b"".join(rows), dtype=np.uint8).reshape(len(rows), width)


def match_features(
    keypoints_a: Sequence[KeyPoint],
    descriptors_a: np.ndarray | Sequence,
    keypoints_b: Sequence[KeyPoint],
    descriptors_b: np.ndarray | Sequence,
    max_distance: int,
) -> list[MatchedPair]:
    """Match every A feature to its nearest B feature.

    The best candidate is the one with the smallest Hamming distance that is
    strictly below max_distance; among equal distances the earliest B
    feature wins. B features may be matched by several A features.

    Args:
        keypoints_a: Keypoints of frame A
        descriptors_a: Descriptors of frame A, one per keypoint
        keypoints_b: Keypoints of frame B
        descriptors_b: Descriptors of frame B, one per keypoint
        max_distance: Exclusive upper bound on the accepted distance

    Returns:
        Matched pairs in frame A order

    Raises:
        DescriptorLengthMismatch: If the two sets use different descriptor
            lengths
        ValueError: If a keypoint list and its descriptors differ in count
    """
    desc_a = _as_descriptor_array(descriptors_a)
    desc_b = _as_descriptor_array(descriptors_b)

    if len(desc_a) != len(keypoints_a) or len(desc_b) != len(keypoints_b):
        raise ValueError(
            f"Keypoint/descriptor counts differ: A {len(keypoints_a)}/{len(desc_a)}, "
            f"B {len(keypoints_b)}/{len(desc_b)}"
        )

    if len(desc_a) == 0 or len(desc_b) == 0:
        return []

    if desc_a.shape[1] != desc_b.shape[1]:
        raise DescriptorLengthMismatch(
            f"Descriptor lengths differ: {desc_a.shape[1]} vs {desc_b.shape[1]} bytes"
        )

    matches = []
    for keypoint_a, descriptor in zip(keypoints_a, desc_a):
        distances = _POPCOUNT[np.bitwise_xor(desc_b, descriptor)].sum(axis=1)
        best = int(np.argmin(distances))  # first occurrence on ties
        if distances[best] < max_distance:
            matches.append(MatchedPair(keypoint_a, keypoints_b[best]))

    logger.debug(
        "Matched %d of %d features (max distance %d)",
        len(matches),
        len(keypoints_a),
        max_distance,
    )
    return matches


def matches_to_arrays(matches: Sequence[MatchedPair]) -> tuple[np.ndarray, np.ndarray]:
    """Return (N, 2) float64 arrays of frame A and frame B coordinates."""
    if len(matches) == 0:
        return np.empty((0, 2), dtype=np.float64), np.empty((0, 2), dtype=np.float64)
    points_a = np.array([m.keypoint_a.pt for m in matches], dtype=np.float64)
    points_b = np.array([m.keypoint_b.pt for m in matches], dtype=np.float64)
    return points_a, points_b


class FeatureMatcher:
    """Brute-force matcher bounded by a maximum Hamming distance."""

    def __init__(self, max_hamming_distance: int = 300) -> None:
        """Initialize the matcher.

        Args:
            max_hamming_distance: Matches need a distance strictly below this
        """
        self._max_distance = max_hamming_distance

    def match(self, features_a: Features, features_b: Features) -> list[MatchedPair]:
        """Match two frames' features (see match_features)."""
        if features_a.descriptors is None or features_b.descriptors is None:
            raise ValueError("Both feature sets need descriptors before matching")
        return match_features(
            features_a.keypoints,
            features_a.descriptors,
            features_b.keypoints,
            features_b.descriptors,
            self._max_distance,
        )

    @property
    def max_hamming_distance(self) -> int:
        """Return the exclusive distance bound."""
        return self._max_distance
