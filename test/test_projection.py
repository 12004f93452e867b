import math

import numpy as np
import pytest
from tf_transformations import quaternion_from_euler, quaternion_multiply

from nav_goal.poses import MarkerDetection, Side
from nav_goal.projection import offset_marker_position, project_marker, unproject_goal
from nav_goal.transforms import IDENTITY_Q, YAW_180, RigidTransform, same_rotation, yaw_from_quat


def detection(x, y, z=0.0, q=IDENTITY_Q, label='aruco_marker_7'):
    return MarkerDetection(label, np.array([x, y, z]), np.asarray(q, dtype=float))


def test_offsets_are_applied_in_camera_frame():
    p = offset_marker_position([1.0, 0.2, 0.3], Side.LEFT, -0.5, 0.1)
    np.testing.assert_allclose(p, [0.5, 0.3, 0.3])


def test_lateral_offset_sign_flips_for_right_side():
    p = offset_marker_position([1.0, 0.2, 0.3], Side.RIGHT, -0.5, 0.1)
    np.testing.assert_allclose(p, [0.5, 0.1, 0.3])


def test_identity_transform_keeps_offset_position_and_flips_yaw():
    proj = project_marker(detection(1.0, 0.2), RigidTransform.identity(), Side.LEFT,
                          distance_offset=-0.5, lateral_offset=0.1, stamp=12_500_000_000)
    np.testing.assert_allclose(proj.goal.position, [0.5, 0.3, 0.0], atol=1e-12)
    assert same_rotation(proj.goal.orientation, YAW_180)
    assert proj.goal.frame_id == 'map'
    assert proj.goal.stamp == 12_500_000_000
    assert proj.longitudinal_distance == pytest.approx(0.5)


@pytest.mark.parametrize('side, expected', [
    (Side.LEFT, [1.7, 1.5, 0.0]),
    (Side.RIGHT, [1.9, 1.5, 0.0]),
])
def test_camera_to_map_rotation_and_translation(side, expected):
    camera_to_map = RigidTransform(quaternion_from_euler(0.0, 0.0, math.pi / 2), [2.0, 1.0, 0.0])
    proj = project_marker(detection(1.0, 0.2), camera_to_map, side,
                          distance_offset=-0.5, lateral_offset=0.1, map_frame='odom')
    np.testing.assert_allclose(proj.goal.position, expected, atol=1e-12)
    # 90 deg camera yaw + 180 deg correction
    assert yaw_from_quat(*proj.goal.orientation) == pytest.approx(-math.pi / 2)
    assert proj.goal.frame_id == 'odom'


def test_orientation_is_transform_then_marker_then_yaw():
    q_cam = quaternion_from_euler(0.0, 0.0, math.pi / 2)
    q_marker = quaternion_from_euler(math.pi / 2, 0.0, 0.0)
    proj = project_marker(detection(1.0, 0.0, q=q_marker), RigidTransform(q_cam, np.zeros(3)), Side.LEFT)

    expected = quaternion_multiply(quaternion_multiply(q_cam, q_marker), YAW_180)
    assert same_rotation(proj.goal.orientation, expected)
    assert np.linalg.norm(proj.goal.orientation) == pytest.approx(1.0)


def test_unnormalized_marker_quaternion_is_normalized():
    proj = project_marker(detection(1.0, 0.0, q=[0.0, 0.0, 0.0, 5.0]), RigidTransform.identity(), Side.LEFT)
    assert same_rotation(proj.goal.orientation, YAW_180)
    assert np.linalg.norm(proj.goal.orientation) == pytest.approx(1.0)


def test_degenerate_marker_quaternion_raises():
    with pytest.raises(ValueError):
        project_marker(detection(1.0, 0.0, q=[0.0, 0.0, 0.0, 0.0]), RigidTransform.identity(), Side.LEFT)


@pytest.mark.parametrize('side', list(Side))
@pytest.mark.parametrize('rpy, xyz', [
    ((0.0, 0.0, 0.0), (0.0, 0.0, 0.0)),
    ((0.0, 0.0, 1.2), (3.0, -2.0, 0.1)),
    ((-1.5708, 0.0, -1.5708), (0.2, 0.0, 0.45)),   # optical frame on a mast
    ((0.3, -0.2, 2.9), (-4.0, 7.5, 1.0)),
])
def test_project_then_unproject_round_trip(side, rpy, xyz):
    camera_to_map = RigidTransform(quaternion_from_euler(*rpy), xyz)
    marker = detection(1.3, -0.4, 0.2, q=quaternion_from_euler(0.4, 0.1, -2.0))

    proj = project_marker(marker, camera_to_map, side, distance_offset=-0.5, lateral_offset=0.25)
    back = unproject_goal(proj.goal, camera_to_map, side, distance_offset=-0.5, lateral_offset=0.25)

    np.testing.assert_allclose(back.position, marker.position, atol=1e-9)
    assert same_rotation(back.orientation, marker.orientation, tol=1e-9)
