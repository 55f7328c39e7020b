"""Shi-Tomasi corner detection for sparse optical-flow tracking."""

import cv2
import numpy as np


class FeatureDetector:
    """Corner detector producing points suitable for KLT tracking.

    Wraps cv2.goodFeaturesToTrack. Corners are ranked by the minimum
    eigenvalue of the local structure tensor (Shi-Tomasi), weak corners
    below quality_level * strongest are discarded, and non-maximum
    suppression enforces a minimum pixel distance between results.
    """

    def __init__(
        self,
        max_corners: int = 300,
        quality_level: float = 0.01,
        min_distance: float = 10.0,
        block_size: int = 3,
        use_harris: bool = False,
        harris_k: float = 0.04,
    ) -> None:
        """Initialize detector with configurable parameters.

        Args:
            max_corners: Maximum number of corners to return (strongest first)
            quality_level: Minimum accepted corner strength relative to the
                strongest corner in the image
            min_distance: Minimum Euclidean distance (pixels) between corners
            block_size: Neighborhood size for the structure tensor
            use_harris: Use the Harris response instead of Shi-Tomasi
            harris_k: Harris detector free parameter (ignored for Shi-Tomasi)
        """
        if max_corners <= 0:
            raise ValueError(f"max_corners must be positive, got {max_corners}")
        if not 0.0 < quality_level < 1.0:
            raise ValueError(f"quality_level must be in (0, 1), got {quality_level}")

        self._max_corners = max_corners
        self._quality_level = quality_level
        self._min_distance = min_distance
        self._block_size = block_size
        self._use_harris = use_harris
        self._harris_k = harris_k

    def detect(self, image: np.ndarray, mask: np.ndarray | None = None) -> np.ndarray:
        """Detect corners in a grayscale image.

        Args:
            image: Grayscale image (uint8)
            mask: Optional binary mask where 255 = detect, 0 = ignore.
                Must be same size as image.

        Returns:
            Nx2 float32 array of (x, y) corner coordinates, N <= max_corners.
            Empty (0, 2) array if the image has no texture.

        Example:
            >>> detector = FeatureDetector(max_corners=300)
            >>> points = detector.detect(gray)
            >>> print(f"Detected {len(points)} corners")
        """
        corners = cv2.goodFeaturesToTrack(
            image,
            maxCorners=self._max_corners,
            qualityLevel=self._quality_level,
            minDistance=self._min_distance,
            mask=mask,
            blockSize=self._block_size,
            useHarrisDetector=self._use_harris,
            k=self._harris_k,
        )

        # No corners at all (e.g. uniform image)
        if corners is None:
            return np.empty((0, 2), dtype=np.float32)

        return corners.reshape(-1, 2).astype(np.float32)

    @property
    def max_corners(self) -> int:
        """Return maximum number of corners to detect."""
        return self._max_corners

    @property
    def min_distance(self) -> float:
        """Return minimum distance between detected corners."""
        return self._min_distance
