"""Tests for RGBA to grayscale conversion."""

import numpy as np
import pytest

from slamlite.frontend.grayscale import rgba_to_gray


class TestRgbaToGray:
    """Test suite for rgba_to_gray."""

    def test_luma_weights(self):
        """Pure channels map to the fixed luma weights."""
        rgba = np.array(
            [[[255, 0, 0, 255], [0, 255, 0, 255], [0, 0, 255, 255], [255, 255, 255, 0]]],
            dtype=np.uint8,
        )
        gray = rgba_to_gray(rgba, width=4, height=1)

        assert gray.shape == (1, 4)
        assert gray.dtype == np.uint8
        assert gray[0].tolist() == [76, 150, 29, 255]

    def test_alpha_is_ignored(self):
        """Alpha channel does not affect intensity."""
        opaque = np.full((2, 3, 4), 100, dtype=np.uint8)
        transparent = opaque.copy()
        transparent[..., 3] = 0

        np.testing.assert_array_equal(
            rgba_to_gray(opaque, 3, 2), rgba_to_gray(transparent, 3, 2)
        )

    def test_accepts_flat_bytes(self):
        """A packed bytes buffer is accepted and reshaped row-major."""
        rgba = np.zeros((2, 3, 4), dtype=np.uint8)
        rgba[1, 2] = [200, 200, 200, 255]

        gray = rgba_to_gray(rgba.tobytes(), width=3, height=2)

        assert gray.shape == (2, 3)
        assert gray[1, 2] == 200
        assert gray[0, 0] == 0

    def test_accepts_flat_array(self):
        """A flat uint8 array of width*height*4 values is accepted."""
        rgba = np.full(5 * 4 * 4, 50, dtype=np.uint8)
        gray = rgba_to_gray(rgba, width=5, height=4)
        assert gray.shape == (4, 5)
        assert np.all(gray == 50)

    def test_size_mismatch_raises(self):
        """A buffer with the wrong number of values is rejected."""
        rgba = np.zeros((2, 2, 4), dtype=np.uint8)
        with pytest.raises(ValueError, match="expected 36"):
            rgba_to_gray(rgba, width=3, height=3)

    def test_swapped_dimensions_raise(self):
        """An (H, W, 4) array with width and height swapped is rejected."""
        rgba = np.zeros((240, 320, 4), dtype=np.uint8)
        with pytest.raises(ValueError, match=r"expected \(320, 240, 4\)"):
            rgba_to_gray(rgba, width=240, height=320)

    def test_non_image_shape_raises(self):
        """A 2D array of the right size is not mistaken for an image."""
        rgba = np.zeros((6, 16), dtype=np.uint8)
        with pytest.raises(ValueError, match="shape"):
            rgba_to_gray(rgba, width=4, height=6)

    def test_non_positive_dimensions_raise(self):
        """Zero or negative dimensions are rejected."""
        with pytest.raises(ValueError, match="must be positive"):
            rgba_to_gray(b"", width=0, height=10)

    def test_wrong_dtype_raises(self):
        """Non-uint8 arrays are rejected."""
        rgba = np.zeros((2, 2, 4), dtype=np.float32)
        with pytest.raises(ValueError, match="uint8"):
            rgba_to_gray(rgba, width=2, height=2)
