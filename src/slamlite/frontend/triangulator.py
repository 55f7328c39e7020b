"""Linear two-view triangulation of inlier correspondences."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import cv2
import numpy as np

logger = logging.getLogger(__name__)

# Homogeneous scale below which a point is treated as lying at infinity
W_EPSILON = 1e-6


def projection_matrices(
    camera_matrix: np.ndarray,
    rotation: np.ndarray,
    translation: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """Build the projection matrices of a two-view pair.

    The first camera sits at the origin, the second is displaced by the
    relative motion (x_curr = R @ x_prev + t):

        P0 = K @ [I | 0]
        P1 = K @ [R | t]

    Args:
        camera_matrix: 3x3 intrinsic matrix K
        rotation: 3x3 relative rotation
        translation: 3D relative translation

    Returns:
        Tuple of (P0, P1), each 3x4 float64
    """
    K = np.asarray(camera_matrix, dtype=np.float64)
    R = np.asarray(rotation, dtype=np.float64)
    t = np.asarray(translation, dtype=np.float64).reshape(3, 1)

    P0 = K @ np.hstack([np.eye(3), np.zeros((3, 1))])
    P1 = K @ np.hstack([R, t])
    return P0, P1


def dehomogenize(
    points_h: np.ndarray, eps: float = W_EPSILON
) -> tuple[np.ndarray, np.ndarray]:
    """Convert 4xN homogeneous points to Euclidean, dropping unstable ones.

    Each column is divided by its own w. Columns with |w| < eps are points
    at (or near) infinity and are dropped rather than blown up.

    Args:
        points_h: 4xN homogeneous coordinates
        eps: Minimum accepted |w|

    Returns:
        Tuple of (points, keep) where points is Mx3 and keep is an (N,)
        boolean mask of the columns that survived
    """
    points_h = np.asarray(points_h, dtype=np.float64)
    if points_h.ndim != 2 or points_h.shape[0] != 4:
        raise ValueError(f"Homogeneous points must be 4xN, got {points_h.shape}")

    w = points_h[3]
    keep = np.abs(w) >= eps
    points = (points_h[:3, keep] / w[keep]).T

    # Division may still overflow for tiny-but-accepted w
    finite = np.isfinite(points).all(axis=1)
    if not finite.all():
        keep_idx = np.flatnonzero(keep)
        keep[keep_idx[~finite]] = False
        points = points[finite]

    return points.reshape(-1, 3), keep


@dataclass
class TriangulationResult:
    """Triangulated points and which input correspondences produced them.

    Attributes:
        points: Mx3 points in the first camera's frame
        keep: (N,) bool, True for correspondences that yielded a point
    """

    points: np.ndarray  # (M, 3) float64
    keep: np.ndarray  # (N,) bool

    def __len__(self) -> int:
        return len(self.points)

    @property
    def num_dropped(self) -> int:
        """Return number of correspondences dropped as unstable."""
        return int(np.count_nonzero(~self.keep))


class Triangulator:
    """Reconstructs 3D points from two views with known projections.

    Uses the linear (DLT) method of cv2.triangulatePoints.
    """

    def __init__(self, eps: float = W_EPSILON) -> None:
        """Initialize triangulator.

        Args:
            eps: Minimum |w| for a homogeneous point to be kept
        """
        self._eps = eps

    def triangulate(
        self,
        P0: np.ndarray,
        P1: np.ndarray,
        pts0: np.ndarray,
        pts1: np.ndarray,
    ) -> TriangulationResult:
        """Triangulate index-aligned correspondences.

        Args:
            P0: 3x4 projection matrix of the first view
            P1: 3x4 projection matrix of the second view
            pts0: Nx2 pixel coordinates in the first view
            pts1: Nx2 pixel coordinates in the second view

        Returns:
            TriangulationResult with the stable points

        Raises:
            ValueError: If the correspondence sets differ in length
        """
        pts0 = np.asarray(pts0, dtype=np.float64).reshape(-1, 2)
        pts1 = np.asarray(pts1, dtype=np.float64).reshape(-1, 2)

        if len(pts0) != len(pts1):
            raise ValueError(
                f"Correspondence sets differ in length: {len(pts0)} vs {len(pts1)}"
            )

        if len(pts0) == 0:
            return TriangulationResult(
                points=np.empty((0, 3), dtype=np.float64),
                keep=np.zeros(0, dtype=bool),
            )

        # cv2.triangulatePoints expects 2xN
        points_h = cv2.triangulatePoints(
            np.asarray(P0, dtype=np.float64),
            np.asarray(P1, dtype=np.float64),
            pts0.T,
            pts1.T,
        )

        points, keep = dehomogenize(points_h, self._eps)
        dropped = len(keep) - len(points)
        if dropped:
            logger.debug("Dropped %d point(s) near infinity", dropped)

        return TriangulationResult(points=points, keep=keep)

    @property
    def eps(self) -> float:
        """Return the homogeneous scale threshold."""
        return self._eps
