from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np


class Side(str, Enum):
    LEFT = 'left'
    RIGHT = 'right'


@dataclass
class MarkerDetection:
    frame_id: str
    position: np.ndarray     # camera frame [x, y, z]
    orientation: np.ndarray  # camera frame [x, y, z, w]
    stamp: int = 0           # ns

    @classmethod
    def from_pose(cls, frame_id: str, pose, stamp: int = 0) -> MarkerDetection:
        return cls(
            frame_id,
            np.array([pose.position.x, pose.position.y, pose.position.z], dtype=float),
            np.array([pose.orientation.x, pose.orientation.y,
                      pose.orientation.z, pose.orientation.w], dtype=float),
            stamp,
        )


@dataclass
class GoalPose:
    stamp: int               # ns
    frame_id: str
    position: np.ndarray     # map frame [x, y, z]
    orientation: np.ndarray  # map frame [x, y, z, w]
