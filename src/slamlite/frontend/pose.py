"""SE(3) pose representation for the accumulated camera trajectory."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from scipy.spatial.transform import Rotation


def rotation_angle(R: np.ndarray) -> float:
    """Return the angle (radians, in [0, pi]) of a 3x3 rotation matrix.

    From the axis-angle identity trace(R) = 1 + 2 cos(angle).
    """
    cos_angle = (np.trace(R) - 1.0) / 2.0
    return float(np.arccos(np.clip(cos_angle, -1.0, 1.0)))


@dataclass
class SE3:
    """Camera pose T_world_camera.

    Maps a point from camera coordinates into world coordinates:

        p_world = rotation @ p_camera + translation

    The world frame is the camera frame of the first processed image, so
    the identity pose is "where the session started" and translation is
    the camera centre in world coordinates.

    Attributes:
        rotation: 3x3 rotation matrix, det = +1
        translation: (3,) camera centre in world coordinates
    """

    rotation: np.ndarray
    translation: np.ndarray

    def __post_init__(self) -> None:
        self.rotation = np.asarray(self.rotation, dtype=np.float64)
        # recoverPose returns t as a 3x1 column
        self.translation = np.asarray(self.translation, dtype=np.float64).reshape(-1)

        if self.rotation.shape != (3, 3):
            raise ValueError(f"Rotation must be 3x3, got {self.rotation.shape}")
        if self.translation.shape != (3,):
            raise ValueError(f"Translation must be (3,), got {self.translation.shape}")

    @classmethod
    def identity(cls) -> SE3:
        return cls(np.eye(3), np.zeros(3))

    @classmethod
    def from_Rt(cls, R: np.ndarray, t: np.ndarray) -> SE3:
        """Build a transform from a rotation matrix and a translation vector."""
        return cls(rotation=R, translation=t)

    def to_matrix(self) -> np.ndarray:
        """Return the 4x4 homogeneous matrix [[R, t], [0, 1]]."""
        T = np.eye(4)
        T[:3, :3] = self.rotation
        T[:3, 3] = self.translation
        return T

    def to_extrinsics(self) -> np.ndarray:
        """Return the 3x4 world-to-camera matrix [R^T | -R^T t].

        This is the view matrix a renderer needs and the [R | t] part of
        a projection matrix K [R | t].
        """
        inv = self.inverse()
        return np.column_stack([inv.rotation, inv.translation])

    def inverse(self) -> SE3:
        R_t = self.rotation.T
        return SE3(R_t, -R_t @ self.translation)

    def compose(self, other: SE3) -> SE3:
        """Return self @ other, applying other first.

        T_world_prev.compose(T_prev_curr) is T_world_curr.
        """
        return SE3(
            self.rotation @ other.rotation,
            self.rotation @ other.translation + self.translation,
        )

    def __matmul__(self, other: SE3) -> SE3:
        return self.compose(other)

    def orthonormalized(self) -> SE3:
        """Return a copy with the rotation snapped to the nearest proper rotation.

        Chained products drift away from SO(3) in floating point; this
        restores R^T R = I and det(R) = +1.
        """
        R = Rotation.from_matrix(self.rotation).as_matrix()
        return SE3(R, self.translation.copy())

    def is_rotation_valid(self, atol: float = 1e-6) -> bool:
        """True if the rotation is finite, orthonormal and has det = +1."""
        R = self.rotation
        if not np.isfinite(R).all():
            return False
        orthonormal = np.allclose(R.T @ R, np.eye(3), atol=atol)
        return bool(orthonormal and abs(np.linalg.det(R) - 1.0) < atol)

    def is_finite(self) -> bool:
        return bool(np.isfinite(self.rotation).all() and np.isfinite(self.translation).all())

    def transform_points(self, points: np.ndarray) -> np.ndarray:
        """Map Nx3 camera-frame points into the world frame.

        Raises:
            ValueError: If points is not Nx3 (a single (3,) point is accepted)
        """
        pts = np.atleast_2d(np.asarray(points, dtype=np.float64))
        if pts.ndim != 2 or pts.shape[1] != 3:
            raise ValueError(f"Points must be Nx3, got {pts.shape}")
        return pts @ self.rotation.T + self.translation

    def copy(self) -> SE3:
        return SE3(self.rotation.copy(), self.translation.copy())

    @property
    def position(self) -> np.ndarray:
        """Camera centre in world coordinates (a copy)."""
        return self.translation.copy()

    def __repr__(self) -> str:
        x, y, z = self.translation
        angle = np.degrees(rotation_angle(self.rotation))
        return f"SE3(position=[{x:.3f}, {y:.3f}, {z:.3f}], angle={angle:.2f}deg)"
