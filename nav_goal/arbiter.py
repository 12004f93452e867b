from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from nav_goal.poses import GoalPose, Side


class Freshness(Enum):
    NEVER_SEEN = 'never_seen'
    FRESH = 'fresh'
    STALE = 'stale'


def freshness(age: float, staleness_sec: float) -> Freshness:
    if math.isinf(age):
        return Freshness.NEVER_SEEN
    if age < staleness_sec:
        return Freshness.FRESH
    return Freshness.STALE


@dataclass(frozen=True)
class SideSnapshot:
    side: Side
    goal: Optional[GoalPose]
    age: float  # seconds since the last matching detection, inf if never


@dataclass(frozen=True)
class Decision:
    side: Optional[Side]
    goal: Optional[GoalPose]
    reason: str


class GoalArbiter:
    """
    Picks the goal to publish on a timer tick.

      1. left younger than right, left fresh, not docking  -> left
      2. right younger than left, right fresh, not docking -> right
      3. anything else (equal ages included)               -> nothing
    """

    def __init__(self, staleness_sec: float = 1.0):
        self.staleness_sec = float(staleness_sec)

    def decide(self, left: SideSnapshot, right: SideSnapshot, docking: bool) -> Decision:
        if left.age < right.age:
            pick = left
        elif left.age > right.age:
            pick = right
        else:
            return Decision(None, None, f'equal ages ({left.age:.3f}s)')

        state = freshness(pick.age, self.staleness_sec)
        if state is not Freshness.FRESH:
            return Decision(None, None, f'{pick.side.value} goal {state.value} ({pick.age:.3f}s)')
        if docking:
            return Decision(None, None, 'docking distance reached')
        return Decision(pick.side, pick.goal, f'{pick.side.value} seen {pick.age:.3f}s ago')

    def select(self, left: SideSnapshot, right: SideSnapshot, docking: bool) -> Optional[Side]:
        return self.decide(left, right, docking).side
