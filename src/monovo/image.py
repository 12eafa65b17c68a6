"""Validated image buffers exchanged with the host."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .errors import DimensionError


def as_image_view(
    buffer: np.ndarray | bytes | bytearray,
    width: int,
    height: int,
    channels: int = 1,
) -> np.ndarray:
    """Return a bounds-checked (H, W) or (H, W, C) uint8 view of a flat buffer.

    Args:
        buffer: Flat pixel buffer (row-major, interleaved channels)
        width: Image width in pixels
        height: Image height in pixels
        channels: Number of interleaved channels

    Returns:
        Array of shape (height, width) for single-channel buffers,
        otherwise (height, width, channels)

    Raises:
        DimensionError: If the buffer length disagrees with the dimensions
    """
    if width < 0 or height < 0 or channels < 1:
        raise DimensionError(
            f"Invalid dimensions: width={width}, height={height}, channels={channels}"
        )

    if isinstance(buffer, (bytes, bytearray)):
        data = np.frombuffer(buffer, dtype=np.uint8)
    else:
        data = np.asarray(buffer)
        if data.dtype != np.uint8:
            data = data.astype(np.uint8)
        data = data.reshape(-1)

    expected = width * height * channels
    if data.size != expected:
        raise DimensionError(
            f"Buffer has {data.size} bytes, expected {expected} "
            f"({width}x{height}x{channels})"
        )

    if channels == 1:
        return data.reshape(height, width)
    return data.reshape(height, width, channels)


@dataclass
class Image:
    """Caller-owned pixel buffer with its dimensions.

    Attributes:
        pixels: Flat uint8 buffer of length width * height * channels
        width: Image width in pixels
        height: Image height in pixels
        channels: 4 for interleaved RGBA input, 1 for grayscale
    """

    pixels: np.ndarray
    width: int
    height: int
    channels: int = 4

    def __post_init__(self) -> None:
        """Validate the buffer against the declared dimensions."""
        view = as_image_view(self.pixels, self.width, self.height, self.channels)
        self.pixels = view.reshape(-1)

    @classmethod
    def from_array(cls, array: np.ndarray) -> Image:
        """Create an Image from an (H, W) or (H, W, C) uint8 array.

        Args:
            array: Image array; a 2D array is treated as single-channel

        Returns:
            Image sharing the array's pixel data where possible
        """
        array = np.asarray(array, dtype=np.uint8)
        if array.ndim == 2:
            height, width = array.shape
            channels = 1
        elif array.ndim == 3:
            height, width, channels = array.shape
        else:
            raise DimensionError(f"Image array must be 2D or 3D, got {array.shape}")
        return cls(
            pixels=np.ascontiguousarray(array).reshape(-1),
            width=width,
            height=height,
            channels=channels,
        )

    def as_array(self) -> np.ndarray:
        """Return the pixels as an (H, W) or (H, W, C) array view."""
        return as_image_view(self.pixels, self.width, self.height, self.channels)

    @property
    def shape(self) -> tuple[int, int]:
        """Return (height, width)."""
        return self.height, self.width

    def __len__(self) -> int:
        """Return buffer length in bytes."""
        return int(self.pixels.size)
