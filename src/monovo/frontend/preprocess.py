"""Grayscale conversion and separable Gaussian blur."""

from __future__ import annotations

import math

import numpy as np

from ..image import as_image_view

# Luma weights (ITU-R BT.601)
_LUMA = np.array([0.299, 0.587, 0.114], dtype=np.float32)

# Normalized Gaussian with a standard deviation of 1.0
FIXED_KERNEL = np.array([0.06136, 0.24477, 0.38774, 0.24477, 0.06136], dtype=np.float64)


def to_grayscale(buffer: np.ndarray, width: int, height: int) -> np.ndarray:
    """Convert an interleaved RGBA buffer to 8-bit luma.

    The weighted sum is truncated, not rounded, so pure red, green and blue
    map to 76, 149 and 29.

    Args:
        buffer: Flat RGBA buffer of length width * height * 4
        width: Image width in pixels
        height: Image height in pixels

    Returns:
        Flat uint8 buffer of length width * height

    Raises:
        DimensionError: If the buffer length disagrees with the dimensions
    """
    rgba = as_image_view(buffer, width, height, channels=4)
    rgb = rgba[..., :3].astype(np.float32)
    gray = rgb[..., 0] * _LUMA[0] + rgb[..., 1] * _LUMA[1] + rgb[..., 2] * _LUMA[2]
    return np.clip(gray, 0, 255).astype(np.uint8).reshape(-1)


def gaussian_kernel(sigma: float) -> np.ndarray:
    """Build a normalized 1D Gaussian kernel of odd length ceil(2*sigma) | 1.

    Args:
        sigma: Standard deviation in pixels (> 0)

    Returns:
        Kernel weights summing to 1
    """
    if sigma <= 0:
        raise ValueError(f"sigma must be positive, got {sigma}")

    size = math.ceil(2 * sigma) | 1
    half = size // 2
    x = np.arange(-half, half + 1, dtype=np.float64)
    kernel = np.exp(-(x * x) / (2.0 * sigma * sigma))
    return kernel / kernel.sum()


def separable_blur(
    gray: np.ndarray, width: int, height: int, kernel: np.ndarray
) -> np.ndarray:
    """Convolve horizontally then vertically with a symmetric 1D kernel.

    Samples outside the image replicate the nearest edge pixel. Output
    samples are rounded half up to uint8.

    Args:
        gray: Flat single-channel buffer of length width * height
        width: Image width in pixels
        height: Image height in pixels
        kernel: Odd-length 1D kernel

    Returns:
        Flat uint8 buffer of length width * height
    """
    img = as_image_view(gray, width, height).astype(np.float64)
    kernel = np.asarray(kernel, dtype=np.float64)
    if kernel.ndim != 1 or kernel.size % 2 == 0:
        raise ValueError(f"Kernel must be 1D with odd length, got {kernel.shape}")

    if img.size == 0:
        return np.empty(0, dtype=np.uint8)

    half = kernel.size // 2

    padded = np.pad(img, ((0, 0), (half, half)), mode="edge")
    horizontal = np.zeros_like(img)
    for i, weight in enumerate(kernel):
        horizontal += weight * padded[:, i : i + width]

    padded = np.pad(horizontal, ((half, half), (0, 0)), mode="edge")
    vertical = np.zeros_like(img)
    for i, weight in enumerate(kernel):
        vertical += weight * padded[i : i + height, :]

    return np.clip(np.floor(vertical + 0.5), 0, 255).astype(np.uint8).reshape(-1)


def gaussian_blur(gray: np.ndarray, width: int, height: int, sigma: float) -> np.ndarray:
    """Blur a grayscale buffer with a Gaussian of the given sigma."""
    return separable_blur(gray, width, height, gaussian_kernel(sigma))


def fixed_gaussian_blur(gray: np.ndarray, width: int, height: int) -> np.ndarray:
    """Blur with the fixed five-tap kernel (sigma of about 1.0)."""
    return separable_blur(gray, width, height, FIXED_KERNEL)
