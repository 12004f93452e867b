from __future__ import annotations

from typing import Optional

from nav_goal.poses import Side


class DockingEvaluator:
    """
    Single "close enough to dock" flag shared by both cameras.

    Last writer wins: a detection on either side overwrites the flag, there
    is no per-side state and no hysteresis.
    """

    def __init__(self, threshold: float = 0.3):
        self.threshold = float(threshold)
        self._docking = False
        self.last_side: Optional[Side] = None
        self.last_distance: Optional[float] = None

    @property
    def docking(self) -> bool:
        return self._docking

    def update(self, distance: float, side: Optional[Side] = None) -> bool:
        self._docking = distance < self.threshold
        self.last_side = side
        self.last_distance = float(distance)
        return self._docking

    def reset(self):
        self._docking = False
        self.last_side = None
        self.last_distance = None
