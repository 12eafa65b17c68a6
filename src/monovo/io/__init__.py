"""Host-side I/O: reading frames into validated images."""

from .image_io import grayscale_to_rgba, image_from_bgr, load_image

__all__ = ["load_image", "image_from_bgr", "grayscale_to_rgba"]
