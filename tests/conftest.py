"""Shared fixtures: synthetic images and two-view scenes."""

import numpy as np
import pytest

from synthetic import (
    HEIGHT,
    WIDTH,
    TwoViewScene,
    make_lateral_scene,
    make_textured_image,
    render_squares,
)


@pytest.fixture
def textured_image() -> np.ndarray:
    return make_textured_image(WIDTH, HEIGHT)


@pytest.fixture
def lateral_scene() -> TwoViewScene:
    return make_lateral_scene()


@pytest.fixture
def lateral_frames() -> tuple[np.ndarray, np.ndarray, TwoViewScene]:
    """Two rendered grayscale frames of a square-marker scene.

    Each of the 20 markers contributes four sharp corners that move
    together, so every tracked corner obeys the same lateral motion.
    """
    scene = make_lateral_scene(baseline=0.25, depth_range=(4.0, 8.0), seed=3)
    values = np.linspace(140, 255, len(scene.pts_prev)).astype(np.uint8)
    frame0 = render_squares(scene.pts_prev, values)
    frame1 = render_squares(scene.pts_curr, values)
    return frame0, frame1, scene
