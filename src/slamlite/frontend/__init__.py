"""Per-frame estimation components for monocular visual odometry.

Components:
- rgba_to_gray: RGBA buffer to intensity image
- FeatureDetector: Shi-Tomasi corner detection
- FeatureTracker: Pyramidal Lucas-Kanade tracking
- MotionEstimator: Essential matrix + RANSAC + cheirality
- Triangulator: Linear two-view triangulation
- PoseAccumulator: Running pose composition
- Map: Append-only sparse point map
- SE3: Rigid body transformation
"""

from .camera import CameraIntrinsics
from .feature_detector import FeatureDetector
from .feature_tracker import FeatureTracker, TrackedFeatures
from .grayscale import rgba_to_gray
from .map_point import Map
from .motion_estimator import MotionEstimator, MotionResult
from .pose import SE3, rotation_angle
from .pose_accumulator import CompositionMode, PoseAccumulator
from .triangulator import (
    TriangulationResult,
    Triangulator,
    dehomogenize,
    projection_matrices,
)

__all__ = [
    # Pose
    "SE3",
    "rotation_angle",
    # Camera
    "CameraIntrinsics",
    # Image
    "rgba_to_gray",
    # Features
    "FeatureDetector",
    "FeatureTracker",
    "TrackedFeatures",
    # Geometry
    "MotionEstimator",
    "MotionResult",
    "Triangulator",
    "TriangulationResult",
    "dehomogenize",
    "projection_matrices",
    # Map / pose accumulation
    "Map",
    "PoseAccumulator",
    "CompositionMode",
]
