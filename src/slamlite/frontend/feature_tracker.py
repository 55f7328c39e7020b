"""Frame-to-frame feature tracking with pyramidal Lucas-Kanade flow."""

from __future__ import annotations

from dataclasses import dataclass

import cv2
import numpy as np


@dataclass
class TrackedFeatures:
    """Index-aligned result of tracking points from one frame to the next.

    Index i in prev_points, curr_points and status always refers to the
    same physical point. Coordinates in curr_points where status is False
    are undefined and must not be used.

    Attributes:
        prev_points: Nx2 point coordinates in the previous frame
        curr_points: Nx2 tracked coordinates in the current frame
        status: (N,) True where tracking succeeded
    """

    prev_points: np.ndarray  # (N, 2) float32
    curr_points: np.ndarray  # (N, 2) float32
    status: np.ndarray  # (N,) bool

    def __post_init__(self) -> None:
        """Normalize array shapes and check index alignment."""
        self.prev_points = np.asarray(self.prev_points, dtype=np.float32).reshape(-1, 2)
        self.curr_points = np.asarray(self.curr_points, dtype=np.float32).reshape(-1, 2)
        self.status = np.asarray(self.status, dtype=bool).reshape(-1)

        n = len(self.prev_points)
        if len(self.curr_points) != n or len(self.status) != n:
            raise ValueError(
                f"Tracked sets must be index-aligned, got {n} previous, "
                f"{len(self.curr_points)} current and {len(self.status)} status"
            )

    def __len__(self) -> int:
        """Return number of input points (tracked or not)."""
        return len(self.prev_points)

    @property
    def num_tracked(self) -> int:
        """Return number of successfully tracked points."""
        return int(np.count_nonzero(self.status))

    def good(self) -> tuple[np.ndarray, np.ndarray]:
        """Return (good_prev, good_curr) for successfully tracked points."""
        return self.prev_points[self.status], self.curr_points[self.status]


class FeatureTracker:
    """Tracks sparse points between consecutive grayscale frames.

    Uses cv2.calcOpticalFlowPyrLK: each point's displacement is found by
    iterative local-window matching, coarse-to-fine over an image pyramid
    so that larger motions can still be recovered.
    """

    def __init__(
        self,
        win_size: tuple[int, int] = (21, 21),
        max_level: int = 3,
        max_iterations: int = 30,
        epsilon: float = 0.01,
    ) -> None:
        """Initialize tracker.

        Args:
            win_size: Search window size at each pyramid level
            max_level: Number of pyramid levels above the base image
            max_iterations: Iteration cap for the per-point refinement
            epsilon: Stop refining once the update is below this (pixels)
        """
        self._win_size = tuple(win_size)
        self._max_level = max_level
        self._criteria = (
            cv2.TERM_CRITERIA_EPS | cv2.TERM_CRITERIA_COUNT,
            max_iterations,
            epsilon,
        )

    def track(
        self,
        prev_image: np.ndarray,
        curr_image: np.ndarray,
        prev_points: np.ndarray,
    ) -> TrackedFeatures:
        """Track points from the previous frame into the current frame.

        Args:
            prev_image: Previous grayscale frame (uint8)
            curr_image: Current grayscale frame, same shape as prev_image
            prev_points: Nx2 point coordinates in the previous frame, N > 0

        Returns:
            TrackedFeatures with exactly N entries

        Raises:
            ValueError: If prev_points is empty or the frames differ in shape
        """
        if prev_image.shape != curr_image.shape:
            raise ValueError(
                f"Frame shapes differ: {prev_image.shape} vs {curr_image.shape}"
            )

        prev_points = np.asarray(prev_points, dtype=np.float32).reshape(-1, 2)
        if len(prev_points) == 0:
            raise ValueError("Cannot track an empty point set")

        curr_points, status, _err = cv2.calcOpticalFlowPyrLK(
            prev_image,
            curr_image,
            prev_points.reshape(-1, 1, 2),
            None,
            winSize=self._win_size,
            maxLevel=self._max_level,
            criteria=self._criteria,
        )

        n = len(prev_points)
        if curr_points is None or status is None:
            return TrackedFeatures(
                prev_points=prev_points,
                curr_points=np.zeros((n, 2), dtype=np.float32),
                status=np.zeros(n, dtype=bool),
            )

        curr_points = curr_points.reshape(-1, 2)
        valid = status.reshape(-1).astype(bool)

        # Points that drifted out of the image left the frame
        h, w = curr_image.shape[:2]
        inside = (
            np.isfinite(curr_points).all(axis=1)
            & (curr_points[:, 0] >= 0)
            & (curr_points[:, 0] <= w - 1)
            & (curr_points[:, 1] >= 0)
            & (curr_points[:, 1] <= h - 1)
        )

        return TrackedFeatures(
            prev_points=prev_points,
            curr_points=curr_points,
            status=valid & inside,
        )

    @property
    def win_size(self) -> tuple[int, int]:
        """Return the search window size."""
        return self._win_size

    @property
    def max_level(self) -> int:
        """Return the number of pyramid levels."""
        return self._max_level
