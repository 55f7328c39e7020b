"""Accumulation of relative motion into a global pose and map."""

from __future__ import annotations

import logging
from enum import Enum

import numpy as np

from .map_point import Map
from .pose import SE3

logger = logging.getLogger(__name__)


class CompositionMode(Enum):
    """How relative motion is folded into the running pose."""

    # T_world_curr = T_world_prev @ T_prev_curr
    RIGID = "rigid"
    # R_new = R_rel @ R_old, t_new = t_old + t_rel (early SLAM-lite behavior)
    ADDITIVE = "additive"


class PoseAccumulator:
    """Composes frame-to-frame motion into a pose relative to the first frame.

    There is no global optimization: each relative estimate is chained
    onto the previous pose, so both scale and direction drift over time.
    Every relative translation has unit length, so each accepted frame
    advances the camera by one "unit" of the arbitrary map scale.

    In RIGID mode the pose is T_world_camera and new points, which are
    triangulated in the previous camera frame, are moved into the world
    frame before being stored. ADDITIVE mode reproduces the simplified
    composition that ignores the accumulated rotation when adding
    translations, and stores points as triangulated.
    """

    def __init__(self, mode: CompositionMode = CompositionMode.RIGID) -> None:
        self._mode = CompositionMode(mode)
        self._pose = SE3.identity()

    @property
    def pose(self) -> SE3:
        """Return the current accumulated pose (a copy)."""
        return self._pose.copy()

    @property
    def mode(self) -> CompositionMode:
        return self._mode

    def apply(
        self,
        rotation: np.ndarray,
        translation: np.ndarray,
        points_local: np.ndarray,
        world_map: Map,
    ) -> SE3:
        """Fold one relative motion and its triangulated points into the state.

        Args:
            rotation: 3x3 relative rotation (x_curr = R @ x_prev + t)
            translation: 3D relative translation
            points_local: Mx3 points in the previous camera frame
            world_map: Map receiving the new points

        Returns:
            The updated accumulated pose

        Raises:
            ValueError: If the relative motion is not finite
        """
        relative = SE3.from_Rt(rotation, translation)
        if not relative.is_finite():
            raise ValueError("Relative motion contains non-finite values")

        prev_pose = self._pose

        if self._mode is CompositionMode.RIGID:
            # relative is T_curr_prev; the camera moved by its inverse
            new_pose = prev_pose @ relative.inverse()
            points_world = (
                prev_pose.transform_points(points_local)
                if len(points_local)
                else np.empty((0, 3), dtype=np.float64)
            )
        else:
            new_pose = SE3(
                rotation=relative.rotation @ prev_pose.rotation,
                translation=prev_pose.translation + relative.translation,
            )
            points_world = np.asarray(points_local, dtype=np.float64).reshape(-1, 3)

        self._pose = new_pose.orthonormalized()
        added = world_map.add_points(points_world)

        logger.debug(
            "Pose updated to %r, %d map point(s) added (%d total)",
            self._pose,
            added,
            len(world_map),
        )
        return self.pose

    def reset(self) -> None:
        """Return to the identity pose."""
        self._pose = SE3.identity()
