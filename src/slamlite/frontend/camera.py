"""Pinhole camera intrinsics for the monocular pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import numpy as np
import yaml

# Approximate phone camera focal length at the processing resolution.
DEFAULT_FOCAL_LENGTH = 600.0


@dataclass(frozen=True)
class CameraIntrinsics:
    """Camera intrinsic parameters (pinhole model, no distortion)."""

    fx: float  # Focal length x (pixels)
    fy: float  # Focal length y (pixels)
    cx: float  # Principal point x (pixels)
    cy: float  # Principal point y (pixels)

    def __post_init__(self) -> None:
        if self.fx <= 0 or self.fy <= 0:
            raise ValueError(
                f"Focal lengths must be positive, got fx={self.fx}, fy={self.fy}"
            )

    @classmethod
    def approximate(
        cls,
        width: int,
        height: int,
        focal_length: float = DEFAULT_FOCAL_LENGTH,
    ) -> CameraIntrinsics:
        """Build uncalibrated intrinsics with the principal point at the center.

        Args:
            width: Image width in pixels
            height: Image height in pixels
            focal_length: Focal length used for both axes

        Returns:
            CameraIntrinsics with fx = fy = focal_length, cx = width/2,
            cy = height/2
        """
        return cls(
            fx=float(focal_length),
            fy=float(focal_length),
            cx=width / 2.0,
            cy=height / 2.0,
        )

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> CameraIntrinsics:
        """Load intrinsics from a YAML file.

        Expected format (same key as EuRoC sensor.yaml)::

            intrinsics: [fx, fy, cx, cy]

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the intrinsics entry is missing or malformed
        """
        path = Path(yaml_path)
        if not path.exists():
            raise FileNotFoundError(f"Calibration file not found: {yaml_path}")

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        intrinsics_list = data.get("intrinsics")
        if intrinsics_list is None or len(intrinsics_list) != 4:
            raise ValueError(f"Invalid intrinsics in {yaml_path}")

        fx, fy, cx, cy = (float(v) for v in intrinsics_list)
        return cls(fx=fx, fy=fy, cx=cx, cy=cy)

    def to_matrix(self) -> np.ndarray:
        """Return 3x3 camera intrinsic matrix K."""
        return np.array(
            [[self.fx, 0.0, self.cx], [0.0, self.fy, self.cy], [0.0, 0.0, 1.0]],
            dtype=np.float64,
        )
