"""Tests for Shi-Tomasi feature detection."""

import numpy as np
import pytest

from slamlite.frontend.feature_detector import FeatureDetector


def _pairwise_min_distance(points: np.ndarray) -> float:
    diff = points[:, None, :] - points[None, :, :]
    dist = np.linalg.norm(diff, axis=-1)
    np.fill_diagonal(dist, np.inf)
    return float(dist.min())


class TestFeatureDetector:
    """Test suite for FeatureDetector."""

    def test_detects_corners(self, textured_image: np.ndarray):
        """A corner-rich image yields float32 Nx2 corners."""
        points = FeatureDetector().detect(textured_image)

        assert points.ndim == 2 and points.shape[1] == 2
        assert points.dtype == np.float32
        assert len(points) > 20

    def test_respects_max_corners(self, textured_image: np.ndarray):
        """Never returns more than max_corners points."""
        points = FeatureDetector(max_corners=15).detect(textured_image)
        assert 0 < len(points) <= 15

    def test_default_bound(self, textured_image: np.ndarray):
        """Default detector returns at most 300 corners."""
        detector = FeatureDetector()
        assert detector.max_corners == 300
        assert len(detector.detect(textured_image)) <= 300

    @pytest.mark.parametrize("min_distance", [5.0, 10.0, 25.0])
    def test_minimum_separation(self, textured_image: np.ndarray, min_distance: float):
        """No two corners are closer than min_distance."""
        points = FeatureDetector(min_distance=min_distance).detect(textured_image)

        assert len(points) > 1
        assert _pairwise_min_distance(points) >= min_distance - 1e-3

    def test_points_inside_image(self, textured_image: np.ndarray):
        """Every corner lies inside the image."""
        points = FeatureDetector().detect(textured_image)
        h, w = textured_image.shape
        assert np.all((points[:, 0] >= 0) & (points[:, 0] < w))
        assert np.all((points[:, 1] >= 0) & (points[:, 1] < h))

    def test_textureless_image_returns_empty(self):
        """A uniform image gives an empty (0, 2) array."""
        uniform = np.full((120, 160), 128, dtype=np.uint8)
        points = FeatureDetector().detect(uniform)

        assert points.shape == (0, 2)
        assert points.dtype == np.float32

    def test_mask_limits_detection(self, textured_image: np.ndarray):
        """Corners are only found where the mask is set."""
        mask = np.zeros_like(textured_image)
        mask[:, : textured_image.shape[1] // 2] = 255

        points = FeatureDetector().detect(textured_image, mask=mask)

        assert len(points) > 0
        assert np.all(points[:, 0] < textured_image.shape[1] // 2)

    def test_deterministic(self, textured_image: np.ndarray):
        """The same image always gives the same corners."""
        detector = FeatureDetector()
        np.testing.assert_array_equal(
            detector.detect(textured_image), detector.detect(textured_image)
        )

    def test_invalid_parameters(self):
        """Out-of-range parameters are rejected."""
        with pytest.raises(ValueError):
            FeatureDetector(max_corners=0)
        with pytest.raises(ValueError):
            FeatureDetector(quality_level=1.5)
