"""
Append-only, branchable timeline of timed waypoints.

A PathBuilder is a cursor (position, time) plus a pending delay that is
applied before the next move. Every operation advances the cursor
monotonically in time; alternatives are explored on independent branches
and only the chosen branch is merged back.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional

from ..constants.movement_constants import AGENT_SPEED, DISTANCE_EPSILON, TIME_EPSILON
from ..hazards.hazard_model import RepeatingAOE
from ..utils import geometry
from ..utils.geometry import Vec3

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Waypoint:
    """Destination plus the absolute instant movement towards it should start."""

    dest: Vec3
    start_move_at: Optional[float] = None  # None => move immediately
    jump: bool = False


class PathBuilder:
    def __init__(self, position: Vec3, time: float, name: str = "", speed: float = AGENT_SPEED):
        if speed <= 0.0:
            raise ValueError("speed must be positive")
        self.name = name
        self.position: Vec3 = tuple(float(c) for c in position)
        self.time = float(time)
        self.speed = speed
        self.pending_delay = 0.0
        self.waypoints: List[Waypoint] = []

    def __repr__(self) -> str:
        return (
            f"PathBuilder({self.name!r}, pos={self.position}, t={self.time:.3f}, "
            f"delay={self.pending_delay:.3f}, waypoints={len(self.waypoints)})"
        )

    @property
    def inv_speed(self) -> float:
        return 1.0 / self.speed

    @property
    def departure_time(self) -> float:
        """Instant the next move would start, including the pending delay."""
        return self.time + self.pending_delay

    def travel_time(self, point: Vec3) -> float:
        return geometry.distance_xz(self.position, point) * self.inv_speed

    def move_to(self, point: Vec3, jump: bool = False) -> float:
        """Append a waypoint; returns elapsed time including any pending delay."""
        point = tuple(float(c) for c in point)
        dt = self.travel_time(point)
        logger.debug(
            "MoveTo %s: %s->%s with delay %.3f, will take %.3f",
            self.name,
            self.position,
            point,
            self.pending_delay,
            dt,
        )
        start_move_at = self.time + self.pending_delay if self.pending_delay > 0.0 else None
        self.waypoints.append(Waypoint(dest=point, start_move_at=start_move_at, jump=jump))
        elapsed = self.pending_delay + dt
        self.time += elapsed
        self.position = point
        self.pending_delay = 0.0
        return elapsed

    def move_by(self, offset: Vec3, jump: bool = False) -> float:
        return self.move_to(geometry.add(self.position, offset), jump)

    def wait(self, duration: float) -> float:
        """Queue a non-negative delay before the next move; returns the total pending delay."""
        self.pending_delay += max(duration, 0.0)
        return self.pending_delay

    def move_to_hazard_edge(
        self,
        hazard: RepeatingAOE,
        direction: Vec3,
        extra_delay: float = 0.0,
        max_distance: float = math.inf,
    ) -> float:
        """
        Stop at the hazard boundary if it would be live while we cross it.

        The crossing window is measured from the departure time plus
        extra_delay. If the hazard is live during it, the extra delay is
        queued, the cursor moves to the entry point and waits until the live
        window ends. Otherwise nothing changes and 0 is returned; the caller
        handles the full crossing.
        """
        enter, exit_ = hazard.intersect(self.position, direction)
        if math.isnan(enter) or enter <= DISTANCE_EPSILON or enter >= max_distance:
            return 0.0
        exit_ = min(exit_, max_distance)
        delay = hazard.activates_between(
            self.departure_time,
            enter * self.inv_speed + extra_delay,
            exit_ * self.inv_speed + extra_delay,
        )
        if delay is None:
            return 0.0

        live_until = self.departure_time + enter * self.inv_speed + extra_delay + delay
        t = 0.0
        self.wait(extra_delay)
        t += self.move_by(geometry.scale(direction, enter))
        hold = max(live_until - self.time, 0.0)
        self.wait(hold)
        return t + hold

    def crossing_is_safe(self, hazard: RepeatingAOE, target: Vec3) -> bool:
        """True if moving straight to target from the departure time never meets the live hazard."""
        direction = geometry.direction_xz(self.position, target)
        if direction is None:
            return self.hold_is_safe(hazard, self.time, self.departure_time)
        enter, exit_ = hazard.intersect(self.position, direction)
        if math.isnan(enter):
            return True
        distance = geometry.distance_xz(self.position, target)
        if exit_ <= DISTANCE_EPSILON or enter >= distance:
            return True
        # an activation exactly at departure is the one we just waited out
        lo = max(enter, 0.0) * self.inv_speed + TIME_EPSILON
        hi = min(exit_, distance) * self.inv_speed
        return hazard.activates_between(self.departure_time, lo, hi) is None

    def hold_is_safe(self, hazard: RepeatingAOE, t0: float, t1: float) -> bool:
        """True if standing at the cursor during [t0, t1) never overlaps a live window."""
        if not hazard.contains(self.position):
            return True
        return hazard.activates_between(t0, 0.0, max(t1 - t0, 0.0)) is None

    def branch(self, label: str) -> "PathBuilder":
        child = PathBuilder(self.position, self.time, f"{self.name}>{label}", self.speed)
        child.pending_delay = self.pending_delay
        return child

    def merge(self, other: "PathBuilder") -> None:
        self.waypoints.extend(other.waypoints)
        self.position = other.position
        self.time = other.time
        self.pending_delay = other.pending_delay
