"""FAST corner detection with intensity-moment orientation."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from ..errors import DimensionError
from ..image import as_image_view

logger = logging.getLogger(__name__)

# Detection pattern, in sampling order (not angular order)
FAST_OFFSETS: tuple[tuple[int, int], ...] = (
    (-3, 0),
    (0, 3),
    (3, 0),
    (0, -3),
    (-1, 3),
    (1, 3),
    (3, 1),
    (3, -1),
    (1, -3),
    (-1, -3),
    (-3, 1),
    (-3, -1),
)

# Ring used for the orientation moment
ORIENTATION_OFFSETS: tuple[tuple[int, int], ...] = (
    (-1, -3),
    (0, -3),
    (1, -3),
    (-2, -2),
    (2, -2),
    (-3, -1),
    (3, -1),
    (-3, 0),
    (3, 0),
    (-3, 1),
    (3, 1),
    (-2, 2),
    (2, 2),
    (-1, 3),
    (0, 3),
    (1, 3),
)

BORDER = 3
MIN_RUN = 9


@dataclass(frozen=True)
class KeyPoint:
    """Detected corner.

    Attributes:
        x: Column (integer-valued)
        y: Row (integer-valued)
        orientation: Dominant local intensity direction in radians
    """

    x: float
    y: float
    orientation: float = 0.0

    @property
    def pt(self) -> tuple[float, float]:
        """Return (x, y)."""
        return self.x, self.y


@dataclass
class Features:
    """Container for the features of one frame.

    Attributes:
        keypoints: Tuple of KeyPoint objects
        descriptors: (N, n_bytes) uint8 array of binary descriptors, or None
            before descriptors have been computed
    """

    keypoints: tuple[KeyPoint, ...]
    descriptors: np.ndarray | None = None

    @property
    def points(self) -> np.ndarray:
        """Return Nx2 array of keypoint (x, y) coordinates."""
        if len(self.keypoints) == 0:
            return np.empty((0, 2), dtype=np.float32)
        return np.array([kp.pt for kp in self.keypoints], dtype=np.float32)

    def __len__(self) -> int:
        """Return number of keypoints."""
        return len(self.keypoints)


def _has_cyclic_run(mask: np.ndarray, run: int) -> np.ndarray:
    """Return, per column, whether mask (S, N) holds a cyclic run of True.

    A run that wraps from the last sample back to the first counts as one
    run.
    """
    n_samples = mask.shape[0]
    if run > n_samples:
        return np.zeros(mask.shape[1:], dtype=bool)

    wrapped = np.concatenate([mask, mask[: run - 1]], axis=0).astype(np.int32)
    totals = np.concatenate(
        [np.zeros((1,) + mask.shape[1:], dtype=np.int32), np.cumsum(wrapped, axis=0)],
        axis=0,
    )
    result = np.zeros(mask.shape[1:], dtype=bool)
    for start in range(n_samples):
        result |= (totals[start + run] - totals[start]) == run
    return result


def fast_keypoints(
    gray: np.ndarray, width: int, height: int, threshold: int
) -> list[tuple[int, int]]:
    """Detect FAST corners.

    A pixel is a corner when at least nine consecutive samples of the
    12-point pattern (counted cyclically) differ from it by more than
    threshold. Only pixels at least 3 pixels away from every border are
    tested.

    Args:
        gray: Flat grayscale buffer of length width * height
        width: Image width in pixels
        height: Image height in pixels
        threshold: Intensity contrast threshold

    Returns:
        List of (x, y) corner coordinates in row-major scan order

    Raises:
        DimensionError: If the buffer length is wrong or the image is
            smaller than 7x7
    """
    img = as_image_view(gray, width, height).astype(np.int16)
    if width < 2 * BORDER + 1 or height < 2 * BORDER + 1:
        raise DimensionError(
            f"Image {width}x{height} is too small for a {BORDER}-pixel detection border"
        )

    inner_h = height - 2 * BORDER
    inner_w = width - 2 * BORDER
    center = img[BORDER : BORDER + inner_h, BORDER : BORDER + inner_w]

    samples = np.stack(
        [
            img[BORDER + dy : BORDER + dy + inner_h, BORDER + dx : BORDER + dx + inner_w]
            for dx, dy in FAST_OFFSETS
        ]
    )
    contrast = np.abs(samples - center[np.newaxis]) > threshold

    corners = _has_cyclic_run(contrast, MIN_RUN)
    ys, xs = np.nonzero(corners)
    keypoints = [(int(x) + BORDER, int(y) + BORDER) for y, x in zip(ys, xs)]

    logger.debug("FAST: %d corners in %dx%d image", len(keypoints), width, height)
    return keypoints


def compute_orientations(
    gray: np.ndarray,
    width: int,
    height: int,
    points: list[tuple[int, int]],
) -> list[KeyPoint]:
    """Assign each point the direction of its intensity moment.

    m_x and m_y are the intensity-weighted sums of the ring offsets; the
    orientation is atan2(m_y, m_x).

    Args:
        gray: Flat grayscale buffer of length width * height
        width: Image width in pixels
        height: Image height in pixels
        points: (x, y) coordinates, each at least 3 pixels from the border

    Returns:
        KeyPoint per input point, in input order
    """
    img = as_image_view(gray, width, height).astype(np.float64)
    if len(points) == 0:
        return []

    coords = np.asarray(points, dtype=np.int64).reshape(-1, 2)
    xs, ys = coords[:, 0], coords[:, 1]
    inside = (
        (xs >= BORDER)
        & (xs < width - BORDER)
        & (ys >= BORDER)
        & (ys < height - BORDER)
    )
    if not inside.all():
        bad = coords[~inside][0]
        raise ValueError(
            f"Keypoint ({bad[0]}, {bad[1]}) lies within the {BORDER}-pixel border"
        )

    m_x = np.zeros(len(coords), dtype=np.float64)
    m_y = np.zeros(len(coords), dtype=np.float64)
    for dx, dy in ORIENTATION_OFFSETS:
        weight = img[ys + dy, xs + dx]
        m_x += weight * dx
        m_y += weight * dy

    orientations = np.arctan2(m_y, m_x)
    return [
        KeyPoint(x=float(x), y=float(y), orientation=float(theta))
        for x, y, theta in zip(xs, ys, orientations)
    ]


class FeatureDetector:
    """FAST corner detector producing oriented keypoints."""

    def __init__(self, threshold: int = 30) -> None:
        """Initialize the detector.

        Args:
            threshold: Intensity contrast threshold for the FAST test.
                Lower values detect more corners but may include noise.
        """
        self._threshold = threshold

    def detect(self, gray: np.ndarray, width: int, height: int) -> Features:
        """Detect oriented keypoints in a preprocessed grayscale buffer.

        Args:
            gray: Flat grayscale buffer (usually blurred)
            width: Image width in pixels
            height: Image height in pixels

        Returns:
            Features with keypoints only (descriptors not yet computed)
        """
        corners = fast_keypoints(gray, width, height, self._threshold)
        keypoints = compute_orientations(gray, width, height, corners)
        return Features(keypoints=tuple(keypoints))

    @property
    def threshold(self) -> int:
        """Return the FAST contrast threshold."""
        return self._threshold
