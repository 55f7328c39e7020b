"""Rerun-based visualization for monocular visual odometry."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import rerun as rr
import rerun.blueprint as rrb

if TYPE_CHECKING:
    from ..frontend.camera import CameraIntrinsics
    from ..frontend.pose import SE3
    from ..visual_odometry import VOFrame

STATUS_COLORS = {
    "INITIALIZING": [0, 128, 255],
    "OK": [0, 255, 0],
    "REINITIALIZED": [255, 165, 0],
    "DEGENERATE": [255, 0, 0],
}


def depth_colors(depths: np.ndarray) -> np.ndarray:
    """Map depths to a blue (near) -> green -> red (far) ramp.

    The ramp spans the 5th-95th percentile so a few far outliers from
    low-parallax triangulation don't wash out the rest of the cloud.
    """
    near, far = np.percentile(depths, [5, 95])
    s = np.clip((depths - near) / max(far - near, 1e-3), 0.0, 1.0)

    rgb = np.empty((len(depths), 3), dtype=np.uint8)
    rgb[:, 0] = (255 * s).astype(np.uint8)
    rgb[:, 1] = (255 * (1.0 - 2.0 * np.abs(s - 0.5))).astype(np.uint8)
    rgb[:, 2] = (255 * (1.0 - s)).astype(np.uint8)
    return rgb


class RerunVisualizer:
    """Streams pipeline output to the Rerun viewer.

    Entity tree:
        world/camera           pose of the latest frame (pinhole frustum)
        world/camera/image     the processed frame
        world/camera/image/features
                               baseline points for the next frame,
                               colored by tracking status
        world/trajectory       camera centres so far
        world/map              sparse point cloud, colored by depth
    """

    def __init__(self, app_name: str = "python-slamlite", spawn: bool = True) -> None:
        """Start a Rerun recording.

        Args:
            app_name: Recording name shown in the viewer
            spawn: Launch a viewer process; pass False for headless runs
        """
        rr.init(app_name, spawn=spawn)
        # The world frame is the first camera frame: X right, Y down, Z forward
        rr.log("world", rr.ViewCoordinates.RDF, static=True)
        rr.send_blueprint(
            rrb.Blueprint(
                rrb.Horizontal(
                    rrb.Spatial2DView(name="Camera", origin="world/camera/image"),
                    rrb.Spatial3DView(name="Map", origin="world"),
                )
            )
        )

    def log_vo_frame(
        self,
        vo_frame: VOFrame,
        image: np.ndarray | None = None,
        intrinsics: CameraIntrinsics | None = None,
    ) -> None:
        """Log everything known after one processed frame.

        The image and frustum are only logged when given; the pose,
        features and map always are.
        """
        rr.set_time("frame", sequence=vo_frame.frame_id)
        self.log_pose(vo_frame.pose)

        if image is not None:
            if intrinsics is not None:
                height, width = image.shape[:2]
                rr.log(
                    "world/camera/image",
                    rr.Pinhole(
                        image_from_camera=intrinsics.to_matrix(),
                        resolution=[width, height],
                    ),
                )
            rr.log("world/camera/image", rr.Image(image))

        if len(vo_frame.features):
            color = STATUS_COLORS[vo_frame.tracking_status.value]
            rr.log(
                "world/camera/image/features",
                rr.Points2D(vo_frame.features, colors=[color], radii=2.0),
            )

        self.log_map_points(vo_frame.map_points)

    def log_pose(self, pose: SE3, entity_path: str = "world/camera") -> None:
        """Log a camera-to-world pose as the transform of entity_path."""
        rr.log(
            entity_path,
            rr.Transform3D(translation=pose.translation, mat3x3=pose.rotation),
        )

    def log_trajectory(
        self, positions: np.ndarray, entity_path: str = "world/trajectory"
    ) -> None:
        """Log Nx3 camera centres as one line strip (needs two or more)."""
        if len(positions) >= 2:
            rr.log(
                entity_path,
                rr.LineStrips3D([positions], colors=[[255, 255, 0]], radii=0.01),
            )

    def log_map_points(self, points: np.ndarray, entity_path: str = "world/map") -> None:
        """Log the Nx3 point map, skipping non-finite entries."""
        points = np.asarray(points)
        if len(points) == 0:
            return

        points = points[np.isfinite(points).all(axis=1)]
        if len(points):
            rr.log(
                entity_path,
                rr.Points3D(points, colors=depth_colors(points[:, 2]), radii=0.02),
            )
