from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from tf_transformations import (
    quaternion_from_euler,
    quaternion_inverse,
    quaternion_matrix,
    quaternion_multiply,
)

# Quaternions are [x, y, z, w] throughout, same as geometry_msgs and tf2.
IDENTITY_Q = np.array([0.0, 0.0, 0.0, 1.0])

# Marker z-axis points out of the tag, toward the camera; the robot has to
# face the other way to approach it.
YAW_180 = np.asarray(quaternion_from_euler(0.0, 0.0, math.pi), dtype=float)


def normalize_quat(q) -> np.ndarray:
    q = np.asarray(q, dtype=float).reshape(4)
    n = float(np.linalg.norm(q))
    if n < 1e-9 or not math.isfinite(n):
        raise ValueError(f"degenerate quaternion {q.tolist()}")
    return q / n


def quat_mul(a, b) -> np.ndarray:
    """Hamilton product a * b of two normalized quaternions."""
    return np.asarray(quaternion_multiply(normalize_quat(a), normalize_quat(b)), dtype=float)


def same_rotation(a, b, tol: float = 1e-9) -> bool:
    # q and -q encode the same rotation
    a, b = normalize_quat(a), normalize_quat(b)
    return abs(abs(float(np.dot(a, b))) - 1.0) < tol


def yaw_from_quat(qx, qy, qz, qw) -> float:
    siny = 2.0*(qw*qz + qx*qy)
    cosy = 1.0-2.0*(qy*qy+qz*qz)
    return math.atan2(siny, cosy)


@dataclass
class RigidTransform:
    """Pose of a child frame in a parent frame: p_parent = R(rotation) p_child + translation."""
    rotation: np.ndarray     # [x, y, z, w]
    translation: np.ndarray  # [x, y, z]

    def __post_init__(self):
        self.rotation = normalize_quat(self.rotation)
        self.translation = np.asarray(self.translation, dtype=float).reshape(3)

    @classmethod
    def identity(cls) -> RigidTransform:
        return cls(IDENTITY_Q, np.zeros(3))

    @classmethod
    def from_msg(cls, msg) -> RigidTransform:
        """Build from a geometry_msgs TransformStamped (or bare Transform)."""
        t = getattr(msg, 'transform', msg)
        return cls(
            [t.rotation.x, t.rotation.y, t.rotation.z, t.rotation.w],
            [t.translation.x, t.translation.y, t.translation.z],
        )

    def rotation_matrix(self) -> np.ndarray:
        return quaternion_matrix(self.rotation)[:3, :3]

    def apply(self, point) -> np.ndarray:
        return self.rotation_matrix() @ np.asarray(point, dtype=float).reshape(3) + self.translation

    def compose(self, other: RigidTransform) -> RigidTransform:
        """self * other: first other, then self."""
        return RigidTransform(quat_mul(self.rotation, other.rotation), self.apply(other.translation))

    def inverse(self) -> RigidTransform:
        q_inv = np.asarray(quaternion_inverse(self.rotation), dtype=float)
        R_inv = quaternion_matrix(q_inv)[:3, :3]
        return RigidTransform(q_inv, -(R_inv @ self.translation))
