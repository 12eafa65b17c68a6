"""Loading camera frames into validated RGBA images."""

from __future__ import annotations

from pathlib import Path

import cv2
import numpy as np

from ..image import Image, as_image_view

_TO_RGBA = {
    1: cv2.COLOR_GRAY2RGBA,
    3: cv2.COLOR_BGR2RGBA,
    4: cv2.COLOR_BGRA2RGBA,
}


def image_from_bgr(array: np.ndarray) -> Image:
    """Convert an OpenCV-ordered frame (gray, BGR or BGRA) to an RGBA Image.

    Args:
        array: (H, W), (H, W, 1), (H, W, 3) or (H, W, 4) uint8 array

    Returns:
        RGBA Image

    Raises:
        ValueError: If the array has an unsupported shape or dtype
    """
    array = np.asarray(array)
    if array.dtype != np.uint8:
        raise ValueError(f"Frame must be uint8, got {array.dtype}")

    channels = 1 if array.ndim == 2 else array.shape[2] if array.ndim == 3 else 0
    if channels not in _TO_RGBA:
        raise ValueError(f"Unsupported frame shape {array.shape}")

    rgba = cv2.cvtColor(array, _TO_RGBA[channels])
    return Image.from_array(rgba)


def load_image(path: str | Path) -> Image:
    """Read an image file as an RGBA Image.

    Args:
        path: Path to a PNG, JPEG or other OpenCV-readable file

    Returns:
        RGBA Image

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If OpenCV cannot decode the file
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")

    array = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if array is None:
        raise ValueError(f"Could not decode image: {path}")
    if array.dtype != np.uint8:
        array = cv2.convertScaleAbs(array, alpha=255.0 / max(float(array.max()), 1.0))

    return image_from_bgr(array)


def grayscale_to_rgba(buffer: np.ndarray, width: int, height: int) -> np.ndarray:
    """Expand a single-channel buffer to an opaque (H, W, 4) RGBA array."""
    gray = as_image_view(buffer, width, height)
    return cv2.cvtColor(np.ascontiguousarray(gray), cv2.COLOR_GRAY2RGBA)
