"""Tests for SE3 poses, the point map and pose accumulation."""

import numpy as np
import pytest
from scipy.spatial.transform import Rotation

from slamlite.frontend.map_point import Map
from slamlite.frontend.pose import SE3, rotation_angle
from slamlite.frontend.pose_accumulator import CompositionMode, PoseAccumulator


def _rot(axis: str, degrees: float) -> np.ndarray:
    return Rotation.from_euler(axis, degrees, degrees=True).as_matrix()


class TestSE3:
    """Test suite for SE3."""

    def test_identity(self):
        """Identity pose is the 4x4 identity matrix."""
        pose = SE3.identity()
        np.testing.assert_array_equal(pose.to_matrix(), np.eye(4))
        assert pose.is_rotation_valid()

    def test_inverse_composes_to_identity(self):
        """T @ T^-1 is the identity."""
        pose = SE3.from_Rt(_rot("y", 30), np.array([1.0, -2.0, 0.5]))
        result = pose @ pose.inverse()

        np.testing.assert_allclose(result.rotation, np.eye(3), atol=1e-12)
        np.testing.assert_allclose(result.translation, np.zeros(3), atol=1e-12)

    def test_accepts_column_translation(self):
        """A 3x1 translation is flattened."""
        pose = SE3.from_Rt(np.eye(3), np.array([[1.0], [2.0], [3.0]]))
        assert pose.translation.shape == (3,)

    def test_invalid_shapes_raise(self):
        """Wrong rotation or translation shapes are rejected."""
        with pytest.raises(ValueError, match="3x3"):
            SE3(rotation=np.eye(4), translation=np.zeros(3))
        with pytest.raises(ValueError, match=r"\(3,\)"):
            SE3(rotation=np.eye(3), translation=np.zeros(4))

    def test_transform_points(self):
        """Points are rotated then translated."""
        pose = SE3.from_Rt(_rot("z", 90), np.array([1.0, 0.0, 0.0]))
        out = pose.transform_points(np.array([[1.0, 0.0, 0.0]]))
        np.testing.assert_allclose(out, [[1.0, 1.0, 0.0]], atol=1e-12)

    def test_extrinsics_are_world_to_camera(self):
        """to_extrinsics maps world points back into the camera frame."""
        pose = SE3.from_Rt(_rot("x", 20), np.array([0.0, 1.0, 2.0]))
        extrinsics = pose.to_extrinsics()
        world_point = pose.transform_points(np.array([0.3, 0.2, 5.0]))[0]

        cam = extrinsics[:, :3] @ world_point + extrinsics[:, 3]
        np.testing.assert_allclose(cam, [0.3, 0.2, 5.0], atol=1e-12)

    def test_orthonormalized_repairs_drift(self):
        """A perturbed rotation is snapped back onto SO(3)."""
        R = _rot("y", 10) + 1e-3 * np.random.default_rng(0).standard_normal((3, 3))
        pose = SE3(rotation=R, translation=np.zeros(3))

        assert not pose.is_rotation_valid()
        assert pose.orthonormalized().is_rotation_valid()

    def test_rotation_angle(self):
        """Angle of a rotation matrix via the trace."""
        assert rotation_angle(np.eye(3)) == pytest.approx(0.0)
        assert np.degrees(rotation_angle(_rot("x", 45))) == pytest.approx(45.0)

    def test_copy_is_independent(self):
        """Mutating a copy leaves the original untouched."""
        pose = SE3.identity()
        copy = pose.copy()
        copy.translation[0] = 5.0
        assert pose.translation[0] == 0.0


class TestMap:
    """Test suite for the append-only Map."""

    def test_starts_empty(self):
        """A new map has no points."""
        world_map = Map()
        assert len(world_map) == 0
        assert world_map.snapshot().shape == (0, 3)

    def test_add_points_appends(self):
        """Points are appended in order."""
        world_map = Map()
        assert world_map.add_points(np.ones((3, 3))) == 3
        assert world_map.add_points(np.zeros((2, 3))) == 2

        snapshot = world_map.snapshot()
        assert world_map.num_points == 5
        np.testing.assert_array_equal(snapshot[:3], np.ones((3, 3)))
        np.testing.assert_array_equal(world_map[4], np.zeros(3))

    def test_empty_add_is_noop(self):
        """Adding zero points changes nothing."""
        world_map = Map()
        assert world_map.add_points(np.empty((0, 3))) == 0
        assert len(world_map) == 0

    def test_snapshot_is_read_only_and_detached(self):
        """Snapshots can't be written and don't see later points."""
        world_map = Map()
        world_map.add_points(np.ones((2, 3)))
        snapshot = world_map.snapshot()

        with pytest.raises(ValueError):
            snapshot[0, 0] = 42.0

        world_map.add_points(np.zeros((1, 3)))
        assert len(snapshot) == 2
        assert len(world_map.snapshot()) == 3

    def test_caller_array_is_copied(self):
        """Mutating the input array after adding does not change the map."""
        points = np.ones((2, 3))
        world_map = Map()
        world_map.add_points(points)
        points[:] = 7.0
        np.testing.assert_array_equal(world_map.snapshot(), np.ones((2, 3)))

    def test_rejects_bad_shape(self):
        """Arrays that are not Mx3 are rejected."""
        with pytest.raises(ValueError, match="Mx3"):
            Map().add_points(np.ones((4, 2)))


class TestPoseAccumulator:
    """Test suite for PoseAccumulator."""

    def test_starts_at_identity(self):
        """A new accumulator sits at the identity pose."""
        assert PoseAccumulator().pose.is_rotation_valid()
        np.testing.assert_array_equal(PoseAccumulator().pose.to_matrix(), np.eye(4))

    def test_rigid_lateral_motion(self):
        """t = (-1, 0, 0) means the camera moved one unit to the right."""
        acc = PoseAccumulator()
        world_map = Map()

        pose = acc.apply(np.eye(3), np.array([-1.0, 0.0, 0.0]), np.empty((0, 3)), world_map)

        np.testing.assert_allclose(pose.position, [1.0, 0.0, 0.0])
        np.testing.assert_allclose(pose.rotation, np.eye(3))

    def test_rigid_rotates_translation_into_world(self):
        """Second step's translation follows the accumulated heading."""
        acc = PoseAccumulator(CompositionMode.RIGID)
        world_map = Map()
        R_rel = _rot("y", -90)  # camera turns +90 deg about y
        t_fwd = np.array([0.0, 0.0, -1.0])  # camera moves 1 forward

        acc.apply(R_rel, np.zeros(3), np.empty((0, 3)), world_map)
        pose = acc.apply(np.eye(3), t_fwd, np.empty((0, 3)), world_map)

        np.testing.assert_allclose(pose.rotation, _rot("y", 90), atol=1e-9)
        # Forward for the turned camera is world +x
        np.testing.assert_allclose(pose.position, [1.0, 0.0, 0.0], atol=1e-9)

    def test_rigid_matches_se3_chain(self):
        """RIGID mode equals chaining inverse relative motions."""
        rng = np.random.default_rng(4)
        acc = PoseAccumulator()
        world_map = Map()
        expected = SE3.identity()

        for _ in range(10):
            R = Rotation.from_rotvec(rng.normal(scale=0.1, size=3)).as_matrix()
            t = rng.normal(size=3)
            t /= np.linalg.norm(t)
            expected = expected @ SE3.from_Rt(R, t).inverse()
            pose = acc.apply(R, t, np.empty((0, 3)), world_map)

        np.testing.assert_allclose(pose.rotation, expected.rotation, atol=1e-9)
        np.testing.assert_allclose(pose.translation, expected.translation, atol=1e-9)

    def test_rigid_points_go_to_world_frame(self):
        """RIGID mode moves new points with the previous pose."""
        acc = PoseAccumulator()
        world_map = Map()
        acc.apply(np.eye(3), np.array([-1.0, 0.0, 0.0]), np.empty((0, 3)), world_map)

        acc.apply(np.eye(3), np.array([-1.0, 0.0, 0.0]), np.array([[0.0, 0.0, 5.0]]), world_map)

        # Triangulated in the previous camera, which sits at x = 1
        np.testing.assert_allclose(world_map.snapshot(), [[1.0, 0.0, 5.0]])

    def test_additive_reproduces_simple_accumulation(self):
        """ADDITIVE mode adds translations and premultiplies rotations."""
        acc = PoseAccumulator(CompositionMode.ADDITIVE)
        world_map = Map()
        R1, t1 = _rot("y", 90), np.array([0.0, 0.0, 1.0])
        R2, t2 = _rot("x", 30), np.array([1.0, 0.0, 0.0])
        points = np.array([[1.0, 2.0, 3.0]])

        acc.apply(R1, t1, np.empty((0, 3)), world_map)
        pose = acc.apply(R2, t2, points, world_map)

        np.testing.assert_allclose(pose.rotation, R2 @ R1, atol=1e-9)
        np.testing.assert_allclose(pose.translation, t1 + t2)
        np.testing.assert_array_equal(world_map.snapshot(), points)

    @pytest.mark.parametrize("mode", list(CompositionMode))
    def test_rotation_stays_orthonormal(self, mode):
        """Slightly non-orthonormal inputs never degrade the accumulated rotation."""
        rng = np.random.default_rng(9)
        acc = PoseAccumulator(mode)
        world_map = Map()

        for _ in range(200):
            R = Rotation.from_rotvec(rng.normal(scale=0.2, size=3)).as_matrix()
            R += 1e-5 * rng.standard_normal((3, 3))
            acc.apply(R, rng.normal(size=3), np.empty((0, 3)), world_map)
            assert acc.pose.is_rotation_valid(atol=1e-9)

    def test_map_length_non_decreasing(self):
        """Map size never shrinks across updates."""
        acc = PoseAccumulator()
        world_map = Map()
        sizes = []
        for n in [3, 0, 5, 1]:
            acc.apply(np.eye(3), np.array([0.0, 0.0, 1.0]), np.ones((n, 3)), world_map)
            sizes.append(len(world_map))
        assert sizes == [3, 3, 8, 9]

    def test_non_finite_motion_raises(self):
        """NaN relative motion is rejected."""
        acc = PoseAccumulator()
        with pytest.raises(ValueError, match="non-finite"):
            acc.apply(np.eye(3), np.array([np.nan, 0.0, 0.0]), np.empty((0, 3)), Map())
        np.testing.assert_array_equal(acc.pose.to_matrix(), np.eye(4))

    def test_pose_property_is_a_copy(self):
        """Mutating the returned pose leaves the accumulator untouched."""
        acc = PoseAccumulator()
        acc.pose.translation[0] = 3.0
        assert acc.pose.translation[0] == 0.0

    def test_reset(self):
        """reset returns to the identity pose."""
        acc = PoseAccumulator()
        acc.apply(np.eye(3), np.ones(3), np.empty((0, 3)), Map())
        acc.reset()
        np.testing.assert_array_equal(acc.pose.to_matrix(), np.eye(4))
