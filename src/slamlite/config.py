"""Pipeline configuration with YAML loading."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from .frontend.camera import DEFAULT_FOCAL_LENGTH
from .frontend.motion_estimator import DEFAULT_MAX_DEPTH
from .frontend.pose_accumulator import CompositionMode


@dataclass
class DetectorConfig:
    """Shi-Tomasi corner detection parameters."""

    max_corners: int = 300
    quality_level: float = 0.01
    min_distance: float = 10.0
    block_size: int = 3
    use_harris: bool = False
    harris_k: float = 0.04


@dataclass
class TrackerConfig:
    """Pyramidal Lucas-Kanade parameters."""

    win_size: tuple[int, int] = (21, 21)
    max_level: int = 3
    max_iterations: int = 30
    epsilon: float = 0.01

    def __post_init__(self) -> None:
        self.win_size = tuple(self.win_size)


@dataclass
class EstimatorConfig:
    """Essential matrix RANSAC parameters."""

    ransac_confidence: float = 0.999
    ransac_threshold: float = 1.0
    min_inliers: int = 10
    max_depth: float = DEFAULT_MAX_DEPTH


@dataclass
class PipelineConfig:
    """Per-frame state machine policy.

    Attributes:
        min_correspondences: Good tracks needed to attempt motion
            estimation; below this the frame triggers re-detection.
        composition: How relative motion is chained into the pose.
        focal_length: Focal length used for approximate intrinsics when
            no calibration is provided.
        triangulation_eps: Minimum |w| for a triangulated point.
    """

    min_correspondences: int = 16
    composition: CompositionMode = CompositionMode.RIGID
    focal_length: float = DEFAULT_FOCAL_LENGTH
    triangulation_eps: float = 1e-6

    def __post_init__(self) -> None:
        self.composition = CompositionMode(self.composition)
        if self.min_correspondences < 8:
            raise ValueError(
                "min_correspondences must be at least 8 for essential matrix "
                f"estimation, got {self.min_correspondences}"
            )


_SECTIONS = {
    "detector": DetectorConfig,
    "tracker": TrackerConfig,
    "estimator": EstimatorConfig,
    "pipeline": PipelineConfig,
}


@dataclass
class SlamConfig:
    """Complete configuration of the visual odometry pipeline.

    Every section has defaults matching the reference tuning, so
    SlamConfig() is a working configuration. A YAML file only needs the
    keys it overrides:

        pipeline:
          min_correspondences: 24
          composition: additive
        tracker:
          win_size: [15, 15]
    """

    detector: DetectorConfig = field(default_factory=DetectorConfig)
    tracker: TrackerConfig = field(default_factory=TrackerConfig)
    estimator: EstimatorConfig = field(default_factory=EstimatorConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> SlamConfig:
        """Build a configuration from nested dictionaries.

        Raises:
            ValueError: On unknown sections or keys, or invalid values
        """
        data = data or {}
        if not isinstance(data, dict):
            raise ValueError(f"Configuration must be a mapping, got {type(data).__name__}")

        unknown = set(data) - set(_SECTIONS)
        if unknown:
            raise ValueError(f"Unknown configuration section(s): {sorted(unknown)}")

        sections = {}
        for name, section_cls in _SECTIONS.items():
            values = data.get(name) or {}
            if not isinstance(values, dict):
                raise ValueError(f"Section '{name}' must be a mapping")

            allowed = {f.name for f in fields(section_cls)}
            bad_keys = set(values) - allowed
            if bad_keys:
                raise ValueError(f"Unknown key(s) in '{name}': {sorted(bad_keys)}")

            try:
                sections[name] = section_cls(**values)
            except (TypeError, ValueError) as e:
                raise ValueError(f"Invalid value in '{name}': {e}") from e

        return cls(**sections)

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> SlamConfig:
        """Load configuration from a YAML file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the file content is invalid
        """
        path = Path(yaml_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        with open(path, "r") as f:
            data = yaml.safe_load(f)

        try:
            return cls.from_dict(data)
        except ValueError as e:
            raise ValueError(f"{yaml_path}: {e}") from e

    def to_dict(self) -> dict[str, Any]:
        """Return the configuration as plain nested dictionaries."""
        data = asdict(self)
        data["pipeline"]["composition"] = self.pipeline.composition.value
        data["tracker"]["win_size"] = list(self.tracker.win_size)
        return data
