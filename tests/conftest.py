"""Shared fixtures: synthetic two-view geometry and synthetic frames."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import cv2
import numpy as np
import pytest

from monovo import Image, KeyPoint, MatchedPair, PipelineConfig

FRAME_SIZE = 96
FRAME_SHIFT = (3, 2)  # (dx, dy) of frame B relative to frame A
BLOB_CENTERS = (16, 31, 46, 61, 76)
BLOB_VALUE = 220


@dataclass
class TwoViewScene:
    """Noiseless correspondences between two calibrated views."""

    rotation: np.ndarray
    translation: np.ndarray
    points_a: np.ndarray
    points_b: np.ndarray

    @property
    def essential(self) -> np.ndarray:
        """Return [t]x R."""
        tx, ty, tz = self.translation
        skew = np.array([[0.0, -tz, ty], [tz, 0.0, -tx], [-ty, tx, 0.0]])
        return skew @ self.rotation

    def matches(self) -> list[MatchedPair]:
        """Return the correspondences as matched keypoint pairs."""
        return [
            MatchedPair(KeyPoint(float(a[0]), float(a[1])), KeyPoint(float(b[0]), float(b[1])))
            for a, b in zip(self.points_a, self.points_b)
        ]


def make_scene(n_points: int = 40, seed: int = 0) -> TwoViewScene:
    """Project random 3D points in front of both cameras (normalized coordinates)."""
    rng = np.random.default_rng(seed)
    R, _ = cv2.Rodrigues(np.array([0.05, -0.1, 0.02]))
    t = np.array([0.5, 0.1, 0.05])

    X = np.column_stack(
        [
            rng.uniform(-1.0, 1.0, n_points),
            rng.uniform(-1.0, 1.0, n_points),
            rng.uniform(4.0, 8.0, n_points),
        ]
    )
    X_b = X @ R.T + t
    return TwoViewScene(
        rotation=R,
        translation=t,
        points_a=X[:, :2] / X[:, 2:],
        points_b=X_b[:, :2] / X_b[:, 2:],
    )


@pytest.fixture
def scene() -> TwoViewScene:
    """Noiseless two-view scene with 40 correspondences."""
    return make_scene()


def make_blob_frame(seed: int = 3) -> np.ndarray:
    """Grayscale frame of 3x3 bright blobs on low-contrast noise.

    Every blob pixel is a FAST corner at threshold 30; no noise pixel is.
    """
    rng = np.random.default_rng(seed)
    gray = rng.integers(0, 21, size=(FRAME_SIZE, FRAME_SIZE), dtype=np.uint8)
    for cy in BLOB_CENTERS:
        for cx in BLOB_CENTERS:
            gray[cy - 1 : cy + 2, cx - 1 : cx + 2] = BLOB_VALUE
    return gray


def gray_to_rgba_image(gray: np.ndarray) -> Image:
    """Wrap a grayscale array as an opaque RGBA Image."""
    rgba = np.dstack([gray, gray, gray, np.full_like(gray, 255)])
    return Image.from_array(rgba)


@pytest.fixture
def blob_frames() -> tuple[Image, Image]:
    """Frame A and frame B = frame A shifted by FRAME_SHIFT."""
    gray_a = make_blob_frame()
    dx, dy = FRAME_SHIFT
    gray_b = np.roll(gray_a, shift=(dy, dx), axis=(0, 1))
    return gray_to_rgba_image(gray_a), gray_to_rgba_image(gray_b)


@pytest.fixture
def blob_config() -> PipelineConfig:
    """Config for the blob frames: identity blur, small patch, few iterations."""
    return PipelineConfig(
        threshold=30,
        patch_size=16,
        num_pairs=256,
        max_hamming_distance=64,
        blur_sigma=0.5,
        ransac_iterations=50,
        seed=42,
    )


@pytest.fixture
def frame_shift() -> tuple[int, int]:
    """(dx, dy) offset of frame B relative to frame A."""
    return FRAME_SHIFT


@pytest.fixture
def blob_image_files(tmp_path: Path, blob_frames: tuple[Image, Image]) -> tuple[Path, Path]:
    """Write the blob frames as PNG files.

    Returns:
        Paths to frame A and frame B
    """
    paths = []
    for name, image in zip(("frame_a.png", "frame_b.png"), blob_frames):
        path = tmp_path / name
        cv2.imwrite(str(path), cv2.cvtColor(image.as_array(), cv2.COLOR_RGBA2BGRA))
        paths.append(path)
    return paths[0], paths[1]
