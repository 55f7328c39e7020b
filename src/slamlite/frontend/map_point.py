"""Append-only sparse point map."""

from __future__ import annotations

import numpy as np


class Map:
    """Sparse map of triangulated 3D points.

    The map only grows: points are appended after each successful motion
    estimate and are never removed, moved or merged. Coordinates live in
    the unscaled world frame fixed by the first processed image.

    Points are stored in fixed-size blocks that are concatenated lazily,
    so appending stays cheap while snapshot() is only paid for on demand.
    """

    def __init__(self) -> None:
        """Initialize empty map."""
        self._blocks: list[np.ndarray] = []
        self._num_points: int = 0
        self._cache: np.ndarray | None = None

    def add_points(self, points: np.ndarray) -> int:
        """Append points to the map.

        Args:
            points: Mx3 array of world-frame positions

        Returns:
            Number of points added

        Raises:
            ValueError: If points is not Mx3
        """
        points = np.asarray(points, dtype=np.float64)
        if points.size == 0:
            return 0
        if points.ndim != 2 or points.shape[1] != 3:
            raise ValueError(f"Points must be Mx3, got {points.shape}")

        self._blocks.append(points.copy())
        self._num_points += len(points)
        self._cache = None
        return len(points)

    def snapshot(self) -> np.ndarray:
        """Return all map points as a read-only Mx3 array.

        The returned array is a copy; later appends never change it and
        callers cannot write into the map through it.
        """
        if self._cache is None:
            if self._blocks:
                merged = np.concatenate(self._blocks, axis=0)
                self._blocks = [merged]
            else:
                merged = np.empty((0, 3), dtype=np.float64)
            self._cache = merged

        out = self._cache.copy()
        out.flags.writeable = False
        return out

    def __getitem__(self, index: int) -> np.ndarray:
        """Return a copy of a single point."""
        return self.snapshot()[index].copy()

    def __len__(self) -> int:
        """Return number of points in the map."""
        return self._num_points

    @property
    def num_points(self) -> int:
        """Return number of points in the map."""
        return self._num_points

    def clear(self) -> None:
        """Drop every point. Only used when the whole session restarts."""
        self._blocks.clear()
        self._num_points = 0
        self._cache = None
