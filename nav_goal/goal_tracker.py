from __future__ import annotations

import math
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from nav_goal.arbiter import Decision, GoalArbiter, SideSnapshot
from nav_goal.docking import DockingEvaluator
from nav_goal.marker_id import marker_matches
from nav_goal.poses import GoalPose, MarkerDetection, Side
from nav_goal.projection import Projection, project_marker
from nav_goal.transforms import RigidTransform


@dataclass
class GoalSettings:
    map_frame: str = 'map'
    desired_marker_id_left: int = -1
    desired_marker_id_right: int = -1
    distance_offset: float = -0.5
    lateral_offset: float = 0.0
    docking_distance_threshold: float = 0.3
    marker_staleness_sec: float = 1.0

    def desired_marker_id(self, side: Side) -> int:
        if side is Side.LEFT:
            return self.desired_marker_id_left
        return self.desired_marker_id_right


@dataclass
class BatchResult:
    side: Side
    matched: int = 0
    projection: Optional[Projection] = None
    rejected: List[str] = field(default_factory=list)
    docking_changed: bool = False

    @property
    def updated(self) -> bool:
        return self.projection is not None


class SideState:
    """Last goal seen by one camera and when it was computed."""

    def __init__(self, side: Side):
        self.side = side
        # one lock per side so (goal, last_update) is always read as a pair
        self._lock = threading.Lock()
        self._goal: Optional[GoalPose] = None
        self._last_update: Optional[float] = None

    def update(self, goal: GoalPose, now: float):
        with self._lock:
            self._goal = goal
            self._last_update = now

    def snapshot(self, now: float) -> SideSnapshot:
        with self._lock:
            if self._last_update is None:
                return SideSnapshot(self.side, None, math.inf)
            return SideSnapshot(self.side, self._goal, now - self._last_update)

    def clear(self):
        with self._lock:
            self._goal = None
            self._last_update = None


class GoalTracker:
    """
    Per-detection bookkeeping for the nav_goal node, without any ROS types.

    Detection handlers write their own SideState; decide() only reads
    snapshots, so the two sides never touch each other's record.
    """

    def __init__(self, settings: Optional[GoalSettings] = None):
        self.settings = settings or GoalSettings()
        self.sides: Dict[Side, SideState] = {side: SideState(side) for side in Side}
        self.docking = DockingEvaluator(self.settings.docking_distance_threshold)
        self.arbiter = GoalArbiter(self.settings.marker_staleness_sec)

    def configure(self, settings: GoalSettings):
        self.settings = settings
        self.docking.threshold = float(settings.docking_distance_threshold)
        self.arbiter.staleness_sec = float(settings.marker_staleness_sec)

    def handle_detections(self,
                          side: Side,
                          detections: Sequence[MarkerDetection],
                          lookup: Callable[[], RigidTransform],
                          now: float,
                          stamp_ns: Optional[int] = None) -> BatchResult:
        """
        Update ``side`` from one detection batch.

        ``now`` (seconds) drives goal ages; ``stamp_ns`` becomes the goal
        header stamp and defaults to ``now``.

        ``lookup`` is only called when the batch holds the desired marker;
        whatever it raises propagates and leaves all state untouched. The
        last matching detection of the batch wins.
        """
        result = BatchResult(side)
        desired = self.settings.desired_marker_id(side)
        matching = [d for d in detections if marker_matches(d.frame_id, desired)]
        result.matched = len(matching)
        if not matching:
            return result

        camera_to_map = lookup()
        stamp = stamp_ns if stamp_ns is not None else int(round(now * 1e9))

        for detection in matching:
            try:
                result.projection = project_marker(
                    detection, camera_to_map, side,
                    distance_offset=self.settings.distance_offset,
                    lateral_offset=self.settings.lateral_offset,
                    map_frame=self.settings.map_frame,
                    stamp=stamp,
                )
            except ValueError as e:
                result.rejected.append(f'{detection.frame_id}: {e}')

        if result.projection is None:
            return result

        was_docking = self.docking.docking
        self.docking.update(result.projection.longitudinal_distance, side)
        result.docking_changed = was_docking != self.docking.docking
        self.sides[side].update(result.projection.goal, now)
        return result

    def snapshot(self, side: Side, now: float) -> SideSnapshot:
        return self.sides[side].snapshot(now)

    def decide(self, now: float) -> Decision:
        return self.arbiter.decide(
            self.snapshot(Side.LEFT, now),
            self.snapshot(Side.RIGHT, now),
            self.docking.docking,
        )

    def reset(self):
        for state in self.sides.values():
            state.clear()
        self.docking.reset()
