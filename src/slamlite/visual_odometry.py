"""Monocular visual odometry pipeline and its per-session state.

VisualOdometry runs once per incoming frame:
1. RGBA -> grayscale
2. Detect corners (first frame, or after tracking collapses)
3. Track corners from the previous frame (pyramidal KLT)
4. Estimate relative motion (essential matrix + RANSAC + cheirality)
5. Triangulate inlier correspondences
6. Accumulate pose and append new points to the map

All state lives in a SlamState owned by the pipeline. Nothing runs in the
background; each call finishes before the next frame is accepted.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from .config import SlamConfig
from .frontend import (
    SE3,
    CameraIntrinsics,
    FeatureDetector,
    FeatureTracker,
    Map,
    MotionEstimator,
    PoseAccumulator,
    Triangulator,
    projection_matrices,
    rgba_to_gray,
)

logger = logging.getLogger(__name__)


class TrackingState(Enum):
    """Lifecycle state of the pipeline."""

    UNINITIALIZED = "UNINITIALIZED"
    TRACKING = "TRACKING"


class TrackingStatus(Enum):
    """Outcome of processing a single frame."""

    INITIALIZING = "INITIALIZING"  # first frame, features seeded
    OK = "OK"  # motion estimated, pose and map updated
    REINITIALIZED = "REINITIALIZED"  # too few tracks, features re-detected
    DEGENERATE = "DEGENERATE"  # motion estimate rejected, pose carried forward


@dataclass
class VOTiming:
    """Timing breakdown for a single frame."""

    grayscale_ms: float = 0.0
    detection_ms: float = 0.0
    tracking_ms: float = 0.0
    motion_ms: float = 0.0
    triangulation_ms: float = 0.0
    total_ms: float = 0.0


@dataclass
class VOFrame:
    """Output of visual odometry for a single frame.

    pose and map_points are snapshots: mutating them never affects the
    pipeline, and later frames never change them.
    """

    frame_id: int
    pose: SE3
    map_points: np.ndarray  # (M, 3) read-only
    tracking_status: TrackingStatus
    features: np.ndarray = field(
        default_factory=lambda: np.empty((0, 2), dtype=np.float32)
    )  # (N, 2) baseline points for the next frame
    num_features: int = 0
    num_tracked: int = 0
    num_inliers: int = 0
    new_points: int = 0
    timing: VOTiming = field(default_factory=VOTiming)

    @property
    def position(self) -> np.ndarray:
        """Return camera position in world frame."""
        return self.pose.position

    @property
    def is_tracking_ok(self) -> bool:
        """Return True if the pose was updated on this frame."""
        return self.tracking_status == TrackingStatus.OK


@dataclass
class SlamState:
    """Session state carried from one frame to the next.

    Attributes:
        tracking_state: UNINITIALIZED until the first frame is seen
        prev_gray: Grayscale image of the last processed frame
        prev_points: Nx2 points in prev_gray that the next frame tracks
        accumulator: Running pose composition
        map: Append-only point map
        image_size: (width, height) fixed by the first frame
        intrinsics: Camera intrinsics, fixed once the image size is known
        frame_count: Number of frames processed
    """

    tracking_state: TrackingState = TrackingState.UNINITIALIZED
    prev_gray: np.ndarray | None = None
    prev_points: np.ndarray = field(
        default_factory=lambda: np.empty((0, 2), dtype=np.float32)
    )
    accumulator: PoseAccumulator = field(default_factory=PoseAccumulator)
    map: Map = field(default_factory=Map)
    image_size: tuple[int, int] | None = None
    intrinsics: CameraIntrinsics | None = None
    frame_count: int = 0

    def replace_previous(self, gray: np.ndarray, points: np.ndarray) -> None:
        """Make gray/points the baseline for the next frame.

        The old previous image is released; only one frame is kept.
        """
        self.prev_gray = gray
        self.prev_points = np.asarray(points, dtype=np.float32).reshape(-1, 2)


class VisualOdometry:
    """Frame-to-frame monocular visual odometry ("SLAM-lite").

    States: UNINITIALIZED -> TRACKING. The first frame seeds features and
    moves to TRACKING; every later frame tracks, estimates motion and
    grows the map. When too few tracks survive, features are re-detected
    on the current frame and the pose is left unchanged; the pipeline
    stays in TRACKING.
    """

    def __init__(
        self,
        config: SlamConfig | None = None,
        intrinsics: CameraIntrinsics | None = None,
        feature_detector: FeatureDetector | None = None,
        feature_tracker: FeatureTracker | None = None,
        motion_estimator: MotionEstimator | None = None,
        triangulator: Triangulator | None = None,
        enable_timing: bool = True,
    ) -> None:
        """Initialize visual odometry pipeline.

        Args:
            config: Pipeline configuration (defaults if None)
            intrinsics: Camera intrinsics. If None, approximate intrinsics
                are derived from the first frame size.
            feature_detector: Override the detector built from config
            feature_tracker: Override the tracker built from config
            motion_estimator: Override the estimator built from config
            triangulator: Override the triangulator built from config
            enable_timing: Record per-stage timings in VOFrame.timing
        """
        self._config = config or SlamConfig()
        self._intrinsics = intrinsics
        self._enable_timing = enable_timing

        cfg = self._config
        self._detector = feature_detector or FeatureDetector(
            max_corners=cfg.detector.max_corners,
            quality_level=cfg.detector.quality_level,
            min_distance=cfg.detector.min_distance,
            block_size=cfg.detector.block_size,
            use_harris=cfg.detector.use_harris,
            harris_k=cfg.detector.harris_k,
        )
        self._tracker = feature_tracker or FeatureTracker(
            win_size=cfg.tracker.win_size,
            max_level=cfg.tracker.max_level,
            max_iterations=cfg.tracker.max_iterations,
            epsilon=cfg.tracker.epsilon,
        )
        self._motion_estimator = motion_estimator or MotionEstimator(
            ransac_confidence=cfg.estimator.ransac_confidence,
            ransac_threshold=cfg.estimator.ransac_threshold,
            min_inliers=cfg.estimator.min_inliers,
            max_depth=cfg.estimator.max_depth,
        )
        self._triangulator = triangulator or Triangulator(
            eps=cfg.pipeline.triangulation_eps
        )
        self._min_correspondences = cfg.pipeline.min_correspondences

        self._state = self._new_state()
        self._trajectory: list[SE3] = []

    def _new_state(self) -> SlamState:
        return SlamState(
            accumulator=PoseAccumulator(self._config.pipeline.composition),
            intrinsics=self._intrinsics,
        )

    def process_frame(self, pixels, width: int, height: int) -> VOFrame:
        """Process one RGBA frame through the pipeline.

        Args:
            pixels: Packed RGBA buffer of width*height pixels
            width: Frame width, constant for the session
            height: Frame height, constant for the session

        Returns:
            VOFrame with the accumulated pose and the full map

        Raises:
            ValueError: If the buffer is malformed or the frame size
                differs from the first frame of the session
        """
        state = self._state
        timing = VOTiming()
        t_start = time.perf_counter()

        t0 = time.perf_counter()
        gray = rgba_to_gray(pixels, width, height)
        timing.grayscale_ms = self._elapsed_ms(t0)
        self._check_frame_size(width, height)

        frame_id = state.frame_count
        state.frame_count += 1

        if state.tracking_state is TrackingState.UNINITIALIZED:
            result = self._initialize(frame_id, gray, timing)
        else:
            result = self._track(frame_id, gray, timing)

        self._trajectory.append(result.pose)
        timing.total_ms = self._elapsed_ms(t_start)
        return result

    def _check_frame_size(self, width: int, height: int) -> None:
        state = self._state
        if state.image_size is None:
            state.image_size = (width, height)
            if state.intrinsics is None:
                state.intrinsics = CameraIntrinsics.approximate(
                    width, height, self._config.pipeline.focal_length
                )
        elif state.image_size != (width, height):
            raise ValueError(
                f"Frame size changed from {state.image_size[0]}x"
                f"{state.image_size[1]} to {width}x{height}; "
                "call reset() to start a new session"
            )

    def _initialize(self, frame_id: int, gray: np.ndarray, timing: VOTiming) -> VOFrame:
        """Seed features on the first frame and start tracking."""
        state = self._state

        t0 = time.perf_counter()
        points = self._detector.detect(gray)
        timing.detection_ms = self._elapsed_ms(t0)

        state.replace_previous(gray, points)
        state.tracking_state = TrackingState.TRACKING
        logger.info("Initialized with %d feature(s) on frame %d", len(points), frame_id)

        return self._make_frame(
            frame_id,
            TrackingStatus.INITIALIZING,
            timing,
            num_features=len(points),
        )

    def _track(self, frame_id: int, gray: np.ndarray, timing: VOTiming) -> VOFrame:
        """Track, estimate motion and grow the map for one frame."""
        state = self._state

        # Nothing to track after a textureless frame
        if len(state.prev_points) == 0:
            good_prev = good_curr = np.empty((0, 2), dtype=np.float32)
        else:
            t0 = time.perf_counter()
            tracked = self._tracker.track(state.prev_gray, gray, state.prev_points)
            timing.tracking_ms = self._elapsed_ms(t0)
            good_prev, good_curr = tracked.good()

        num_tracked = len(good_prev)
        if num_tracked < self._min_correspondences:
            return self._redetect(frame_id, gray, num_tracked, timing)

        K = state.intrinsics.to_matrix()

        t0 = time.perf_counter()
        motion = self._motion_estimator.estimate(good_prev, good_curr, K)
        timing.motion_ms = self._elapsed_ms(t0)

        if not motion.success:
            logger.debug(
                "Frame %d: motion rejected (%s), pose unchanged", frame_id, motion.reason
            )
            state.replace_previous(gray, good_curr)
            return self._make_frame(
                frame_id,
                TrackingStatus.DEGENERATE,
                timing,
                num_features=num_tracked,
                num_tracked=num_tracked,
                num_inliers=motion.num_inliers,
            )

        t0 = time.perf_counter()
        P0, P1 = projection_matrices(K, motion.rotation, motion.translation)
        triangulated = self._triangulator.triangulate(
            P0,
            P1,
            good_prev[motion.inliers],
            good_curr[motion.inliers],
        )
        timing.triangulation_ms = self._elapsed_ms(t0)

        map_size_before = len(state.map)
        state.accumulator.apply(
            motion.rotation,
            motion.translation,
            triangulated.points,
            state.map,
        )

        # Keep every tracked point, not just inliers, for the next frame
        state.replace_previous(gray, good_curr)

        return self._make_frame(
            frame_id,
            TrackingStatus.OK,
            timing,
            num_features=num_tracked,
            num_tracked=num_tracked,
            num_inliers=motion.num_inliers,
            new_points=len(state.map) - map_size_before,
        )

    def _redetect(
        self, frame_id: int, gray: np.ndarray, num_tracked: int, timing: VOTiming
    ) -> VOFrame:
        """Replace the baseline with fresh corners from the current frame."""
        state = self._state

        t0 = time.perf_counter()
        points = self._detector.detect(gray)
        timing.detection_ms = self._elapsed_ms(t0)

        logger.debug(
            "Frame %d: %d good track(s) < %d, re-detected %d feature(s)",
            frame_id,
            num_tracked,
            self._min_correspondences,
            len(points),
        )
        state.replace_previous(gray, points)

        return self._make_frame(
            frame_id,
            TrackingStatus.REINITIALIZED,
            timing,
            num_features=len(points),
            num_tracked=num_tracked,
        )

    def _make_frame(
        self,
        frame_id: int,
        status: TrackingStatus,
        timing: VOTiming,
        **counts: int,
    ) -> VOFrame:
        state = self._state
        return VOFrame(
            frame_id=frame_id,
            pose=state.accumulator.pose,
            map_points=state.map.snapshot(),
            features=state.prev_points.copy(),
            tracking_status=status,
            timing=timing,
            **counts,
        )

    def _elapsed_ms(self, t0: float) -> float:
        if not self._enable_timing:
            return 0.0
        return (time.perf_counter() - t0) * 1000

    def get_trajectory(self) -> list[SE3]:
        """Return the pose reported for every processed frame."""
        return [pose.copy() for pose in self._trajectory]

    def get_trajectory_positions(self) -> np.ndarray:
        """Return camera positions as array."""
        if len(self._trajectory) == 0:
            return np.empty((0, 3), dtype=np.float64)
        return np.array([p.position for p in self._trajectory], dtype=np.float64)

    @property
    def state(self) -> TrackingState:
        return self._state.tracking_state

    @property
    def is_initialized(self) -> bool:
        return self._state.tracking_state is TrackingState.TRACKING

    @property
    def current_pose(self) -> SE3:
        return self._state.accumulator.pose

    @property
    def map_points(self) -> np.ndarray:
        return self._state.map.snapshot()

    @property
    def num_map_points(self) -> int:
        return len(self._state.map)

    @property
    def num_frames(self) -> int:
        return self._state.frame_count

    @property
    def previous_points(self) -> np.ndarray:
        """Return a copy of the points the next frame will be tracked from."""
        return self._state.prev_points.copy()

    @property
    def intrinsics(self) -> CameraIntrinsics | None:
        return self._state.intrinsics

    @property
    def config(self) -> SlamConfig:
        return self._config

    def reset(self) -> None:
        """Reset VO to initial state, discarding pose, map and trajectory."""
        self._state = self._new_state()
        self._trajectory.clear()
