"""RGBA to single-channel intensity conversion."""

import cv2
import numpy as np


def rgba_to_gray(pixels, width: int, height: int) -> np.ndarray:
    """Convert a packed RGBA buffer to a grayscale image.

    Uses OpenCV's fixed luma weighting (0.299 R + 0.587 G + 0.114 B).

    Args:
        pixels: Packed 4-channel buffer of width*height pixels. May be
            bytes-like, a flat uint8 array or an (H, W, 4) array.
        width: Image width in pixels
        height: Image height in pixels

    Returns:
        (height, width) uint8 intensity image

    Raises:
        ValueError: If the dimensions are not positive, the buffer size
            does not match width*height*4, or an image-shaped array is not
            (height, width, 4)
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Frame dimensions must be positive, got {width}x{height}")

    if isinstance(pixels, (bytes, bytearray, memoryview)):
        buffer = np.frombuffer(pixels, dtype=np.uint8)
    else:
        buffer = np.asarray(pixels)
        if buffer.dtype != np.uint8:
            raise ValueError(f"RGBA buffer must be uint8, got {buffer.dtype}")

    expected = width * height * 4
    if buffer.size != expected:
        raise ValueError(
            f"RGBA buffer has {buffer.size} values, expected {expected} "
            f"for {width}x{height}"
        )
    if buffer.ndim != 1 and buffer.shape != (height, width, 4):
        raise ValueError(
            f"RGBA array has shape {buffer.shape}, expected ({height}, {width}, 4)"
        )

    rgba = np.ascontiguousarray(buffer.reshape(height, width, 4))
    return cv2.cvtColor(rgba, cv2.COLOR_RGBA2GRAY)
