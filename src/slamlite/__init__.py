"""SLAM-lite - monocular visual odometry in Python."""

__version__ = "0.1.0"

# Re-export main classes for convenient imports
from .config import (
    DetectorConfig,
    EstimatorConfig,
    PipelineConfig,
    SlamConfig,
    TrackerConfig,
)
from .frontend import (
    SE3,
    CameraIntrinsics,
    CompositionMode,
    FeatureDetector,
    FeatureTracker,
    Map,
    MotionEstimator,
    PoseAccumulator,
    Triangulator,
    rgba_to_gray,
)
from .io import FrameReader
from .visualization import RerunVisualizer
from .visual_odometry import (
    SlamState,
    TrackingState,
    TrackingStatus,
    VisualOdometry,
    VOFrame,
    VOTiming,
)

__all__ = [
    "__version__",
    # Pipeline
    "VisualOdometry",
    "VOFrame",
    "VOTiming",
    "SlamState",
    "TrackingState",
    "TrackingStatus",
    # Configuration
    "SlamConfig",
    "DetectorConfig",
    "TrackerConfig",
    "EstimatorConfig",
    "PipelineConfig",
    "CameraIntrinsics",
    # Components
    "rgba_to_gray",
    "FeatureDetector",
    "FeatureTracker",
    "MotionEstimator",
    "Triangulator",
    "PoseAccumulator",
    "CompositionMode",
    "Map",
    "SE3",
    # I/O
    "FrameReader",
    # Visualization
    "RerunVisualizer",
]
