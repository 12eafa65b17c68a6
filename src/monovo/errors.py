"""Exception types raised by the visual odometry pipeline."""


class MonoVOError(Exception):
    """Base class for all monovo errors."""


class DimensionError(MonoVOError, ValueError):
    """Pixel buffer does not match its declared width, height and channels.

    Also raised when an image is too small for the feature detector's
    3-pixel border.
    """


class DescriptorLengthMismatch(MonoVOError, ValueError):
    """Two descriptor sets (or two descriptors) differ in byte length."""
