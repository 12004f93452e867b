from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from tf_transformations import quaternion_inverse

from nav_goal.poses import GoalPose, MarkerDetection, Side
from nav_goal.transforms import YAW_180, RigidTransform, normalize_quat, quat_mul


@dataclass
class Projection:
    goal: GoalPose
    longitudinal_distance: float  # camera-frame x after the distance offset


def lateral_sign(side: Side) -> float:
    # left camera shifts the goal toward +y, right camera toward -y
    return 1.0 if side is Side.LEFT else -1.0


def offset_marker_position(position, side: Side, distance_offset: float, lateral_offset: float) -> np.ndarray:
    """Apply the operator offsets in camera space, before any transform."""
    x, y, z = np.asarray(position, dtype=float).reshape(3)
    return np.array([
        x + distance_offset,
        y + lateral_sign(side) * lateral_offset,
        z,
    ])


def project_marker(detection: MarkerDetection,
                   camera_to_map: RigidTransform,
                   side: Side,
                   distance_offset: float = -0.5,
                   lateral_offset: float = 0.0,
                   map_frame: str = 'map',
                   stamp: int = 0) -> Projection:
    """
    Turn a camera-frame marker pose into a map-frame goal.

    Position: offsets first, then R_cam->map * p + t_cam->map.
    Orientation: q_cam->map * q_marker * YAW_180.

    Raises ValueError if the marker orientation is degenerate.
    """
    p_cam = offset_marker_position(detection.position, side, distance_offset, lateral_offset)
    p_map = camera_to_map.apply(p_cam)

    q_marker = normalize_quat(detection.orientation)
    q_goal = quat_mul(quat_mul(camera_to_map.rotation, q_marker), YAW_180)

    goal = GoalPose(stamp, map_frame, p_map, normalize_quat(q_goal))
    return Projection(goal, float(p_cam[0]))


def unproject_goal(goal: GoalPose,
                   camera_to_map: RigidTransform,
                   side: Side,
                   distance_offset: float = -0.5,
                   lateral_offset: float = 0.0,
                   frame_id: str = '') -> MarkerDetection:
    """Inverse of project_marker: recover the camera-frame marker pose a goal came from."""
    p_cam = camera_to_map.inverse().apply(goal.position)
    p_marker = p_cam - np.array([distance_offset, lateral_sign(side) * lateral_offset, 0.0])

    q_cam_inv = quaternion_inverse(camera_to_map.rotation)
    q_marker = quat_mul(quat_mul(q_cam_inv, goal.orientation), quaternion_inverse(YAW_180))
    return MarkerDetection(frame_id, p_marker, q_marker, goal.stamp)
