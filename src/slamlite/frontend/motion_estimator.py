"""Two-view motion estimation from the essential matrix with RANSAC."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import cv2
import numpy as np

logger = logging.getLogger(__name__)

# Minimum correspondences for the eight-point essential matrix solver
MIN_CORRESPONDENCES = 8

# Cheirality depth limit, in units of the (unit) baseline. recoverPose's
# default of 50 discards distant points seen with small parallax.
DEFAULT_MAX_DEPTH = 1e4


@dataclass
class MotionResult:
    """Result of relative motion estimation between two views.

    The motion maps points from the previous camera frame into the
    current one: x_curr = rotation @ x_prev + translation. Translation is
    a unit direction; monocular motion has no absolute scale.

    Attributes:
        success: True if the estimate can be trusted
        rotation: 3x3 relative rotation (identity if failed)
        translation: (3,) unit translation direction (zeros if failed)
        inliers: Boolean mask of correspondences that passed both the
            RANSAC epipolar test and the cheirality check
        num_inliers: Number of inlier correspondences
        reason: Short description of why estimation failed, or "OK"
    """

    success: bool
    rotation: np.ndarray  # (3, 3) float64
    translation: np.ndarray  # (3,) float64
    inliers: np.ndarray  # (N,) bool
    num_inliers: int
    reason: str = "OK"

    @classmethod
    def failed(cls, n_points: int, reason: str, num_inliers: int = 0) -> MotionResult:
        """Build a failed result that carries the previous pose forward."""
        return cls(
            success=False,
            rotation=np.eye(3, dtype=np.float64),
            translation=np.zeros(3, dtype=np.float64),
            inliers=np.zeros(n_points, dtype=bool),
            num_inliers=num_inliers,
            reason=reason,
        )


class MotionEstimator:
    """Estimates relative camera motion from 2D-2D correspondences.

    The essential matrix is fitted robustly with RANSAC over the
    correspondences, then decomposed into its four (R, t) candidates.
    cv2.recoverPose keeps the candidate that places the triangulated
    points in front of both cameras (cheirality check).

    Degenerate configurations (pure rotation, collinear points) produce
    few cheirality inliers; results below min_inliers are rejected so the
    caller never applies an unstable estimate.
    """

    def __init__(
        self,
        ransac_confidence: float = 0.999,
        ransac_threshold: float = 1.0,
        min_inliers: int = 10,
        max_depth: float = DEFAULT_MAX_DEPTH,
    ) -> None:
        """Initialize motion estimator.

        Args:
            ransac_confidence: Desired probability of finding a good model.
                Higher values = more iterations. Range: 0-1.
            ransac_threshold: Maximum distance (pixels) from a point to its
                epipolar line for it to count as an inlier.
            min_inliers: Minimum number of cheirality inliers for a valid
                estimate.
            max_depth: Points triangulated farther than this (in baseline
                units) do not count as cheirality inliers.
        """
        if min_inliers < 5:
            raise ValueError(f"min_inliers must be at least 5, got {min_inliers}")
        if max_depth <= 0:
            raise ValueError(f"max_depth must be positive, got {max_depth}")

        self._ransac_confidence = ransac_confidence
        self._ransac_threshold = ransac_threshold
        self._min_inliers = min_inliers
        self._max_depth = max_depth

    def estimate(
        self,
        prev_points: np.ndarray,
        curr_points: np.ndarray,
        camera_matrix: np.ndarray,
    ) -> MotionResult:
        """Estimate relative motion from previous to current frame.

        Args:
            prev_points: Nx2 pixel coordinates in the previous frame
            curr_points: Nx2 pixel coordinates in the current frame,
                index-aligned with prev_points
            camera_matrix: 3x3 camera intrinsic matrix K

        Returns:
            MotionResult with relative rotation, translation direction and
            inlier mask

        Raises:
            ValueError: If the two point sets differ in length
        """
        # Ensure float64 for OpenCV numerical stability
        p0 = np.asarray(prev_points, dtype=np.float64).reshape(-1, 2)
        p1 = np.asarray(curr_points, dtype=np.float64).reshape(-1, 2)
        K = np.asarray(camera_matrix, dtype=np.float64)

        if len(p0) != len(p1):
            raise ValueError(
                f"Correspondence sets differ in length: {len(p0)} vs {len(p1)}"
            )

        n_points = len(p0)
        if n_points < MIN_CORRESPONDENCES:
            return MotionResult.failed(n_points, f"too few correspondences ({n_points})")

        try:
            E, mask = cv2.findEssentialMat(
                p0,
                p1,
                cameraMatrix=K,
                method=cv2.RANSAC,
                prob=self._ransac_confidence,
                threshold=self._ransac_threshold,
            )
        except cv2.error as e:
            logger.debug("findEssentialMat failed: %s", e)
            return MotionResult.failed(n_points, "essential matrix estimation failed")

        if E is None or mask is None or E.shape[0] < 3:
            return MotionResult.failed(n_points, "no essential matrix found")

        # Several solutions may be stacked vertically; keep the first
        if E.shape[0] > 3:
            E = E[:3, :3]

        ransac_inliers = int(np.count_nonzero(mask))
        if ransac_inliers < self._min_inliers:
            return MotionResult.failed(
                n_points,
                f"too few RANSAC inliers ({ransac_inliers})",
                num_inliers=ransac_inliers,
            )

        try:
            _, R, t, pose_mask, _points = cv2.recoverPose(
                E,
                p0,
                p1,
                cameraMatrix=K,
                distanceThresh=self._max_depth,
                mask=mask.copy(),
            )
        except cv2.error as e:
            logger.debug("recoverPose failed: %s", e)
            return MotionResult.failed(n_points, "pose recovery failed")

        inliers = pose_mask.reshape(-1).astype(bool)
        num_inliers = int(np.count_nonzero(inliers))
        if num_inliers < self._min_inliers:
            return MotionResult.failed(
                n_points,
                f"too few cheirality inliers ({num_inliers})",
                num_inliers=num_inliers,
            )

        if not np.isfinite(R).all() or not np.isfinite(t).all():
            return MotionResult.failed(n_points, "non-finite pose")

        translation = t.reshape(3).astype(np.float64)
        norm = np.linalg.norm(translation)
        if norm > 0:
            translation = translation / norm

        return MotionResult(
            success=True,
            rotation=R.astype(np.float64),
            translation=translation,
            inliers=inliers,
            num_inliers=num_inliers,
        )

    @property
    def ransac_threshold(self) -> float:
        """Return RANSAC inlier threshold."""
        return self._ransac_threshold

    @property
    def min_inliers(self) -> int:
        """Return minimum required inliers."""
        return self._min_inliers

    @property
    def max_depth(self) -> float:
        """Return the cheirality depth limit."""
        return self._max_depth
