"""
Per-venue session: owns hazard state, telemetry intake and the current route.

The session is driven by the caller's frame loop through tick(). All state
changes happen inside tick(), in order: drain telemetry, synchronize hazard
timing, then either rebuild the route or prune the waypoints already passed.
"""

import logging
import time
from typing import List, Optional

import numpy as np

from .config import EngineConfig
from .hazards.hazard_model import HazardModel, HazardSnapshot
from .hazards.synchronizer import HazardSynchronizer
from .hazards.telemetry import TelemetryQueue
from .planning.grid_planner import GridPlanner
from .planning.path_builder import Waypoint
from .planning.route_plan import PlanStatus, RoutePlan, RoutePlanner
from .planning.route_planner import BranchingPlanner
from .utils import geometry
from .utils.geometry import Vec3
from .venues.venue_config import VenueConfig

logger = logging.getLogger(__name__)


class VenueSession:
    def __init__(self, venue: VenueConfig, config: Optional[EngineConfig] = None):
        self.venue = venue
        self.config = config or EngineConfig()
        self.model: HazardModel = venue.build_model()
        self.queue = TelemetryQueue()
        self.synchronizer = HazardSynchronizer(
            self.model,
            venue.hit_actions,
            venue.cast_actions,
            self.config.match_tolerance_sq,
        )
        self.planner = self._create_planner()
        self.progress_direction = geometry.normalized_xz(venue.progress_direction)

        self.plan: RoutePlan = RoutePlan.awaiting()
        self.path: List[Waypoint] = []
        self.path_dirty = True
        self.agent_position: Optional[Vec3] = None
        self.last_rebuild_ms = 0.0

    def _create_planner(self) -> RoutePlanner:
        if self.config.planner == "grid":
            if self.venue.goal is None:
                raise ValueError(f"Venue {self.venue.name!r} has no goal for the grid planner")
            grid_config = self.config.grid
            return GridPlanner(
                self.venue.build_grid(grid_config.space_resolution, grid_config.time_resolution),
                self.venue.goal,
                speed=self.config.speed,
                goal_radius=grid_config.goal_radius,
                height_at=self.venue.elevation_at,
                required_sequences=self.venue.required_sequences,
            )
        return BranchingPlanner(
            self.venue.stages,
            self.venue.progress_direction,
            speed=self.config.speed,
            required_sequences=self.venue.required_sequences,
        )

    # Telemetry intake; events are only applied on the next tick
    def observe_hit(self, action_id: int, position: Vec3, observed_at: float) -> None:
        self.queue.push_hit(action_id, position, observed_at)

    def observe_cast(
        self, action_id: int, position: Vec3, observed_at: float, lead_time: Optional[float] = None
    ) -> None:
        if lead_time is None:
            lead_time = self.venue.lead_time(action_id, self.config.cast_lead_time)
        self.queue.push_cast_started(action_id, position, observed_at, lead_time)

    def tick(self, now: float, agent_position: Vec3) -> List[Waypoint]:
        """Advance the session to now; returns the waypoints still ahead of the agent."""
        self.agent_position = tuple(agent_position)
        events = self.queue.drain()
        if events and self.synchronizer.process_all(events) > 0:
            self.path_dirty = True

        if self.path_dirty or self.config.rebuild_every_tick:
            self.rebuild(now)
        else:
            self.prune()
        return self.path

    def rebuild(self, now: float, start: Optional[Vec3] = None) -> RoutePlan:
        """Replan from start (default: last ticked agent position) at now."""
        if start is not None:
            self.agent_position = tuple(start)
        if self.agent_position is None:
            logger.debug("Rebuild at %.3f skipped: agent position unknown", now)
            return self.plan

        started = time.perf_counter()
        self.plan = self.planner.plan(self.model, self.agent_position, now)
        self.path = list(self.plan.waypoints)
        self.path_dirty = False
        self.last_rebuild_ms = (time.perf_counter() - started) * 1000.0
        logger.info(
            "Path rebuilt: took %.3fms, len=%d, status=%s",
            self.last_rebuild_ms,
            len(self.path),
            self.plan.status.value,
        )
        return self.plan

    def prune(self) -> None:
        """Drop leading waypoints the agent has already passed along the course."""
        if self.agent_position is None or self.progress_direction is None:
            return
        while self.path:
            ahead = geometry.sub(self.path[0].dest, self.agent_position)
            if geometry.dot_xz(ahead, self.progress_direction) >= 0.0:
                break
            self.path.pop(0)

    def reset(self) -> None:
        """Forget all observations, e.g. when the venue is re-entered."""
        self.model.reset()
        self.queue.clear()
        self.synchronizer.dropped_events = 0
        self.plan = RoutePlan.awaiting()
        self.path = []
        self.path_dirty = True

    @property
    def waypoints(self) -> List[Waypoint]:
        return list(self.path)

    @property
    def status(self) -> PlanStatus:
        return self.plan.status

    def hazard_snapshots(self, now: float) -> List[HazardSnapshot]:
        return self.model.snapshots(now)

    def hazard_outlines(self) -> List[np.ndarray]:
        """Ground polygons of every hazard, tessellated at the configured error."""
        return [hazard.outline(self.config.tessellation_max_error) for hazard in self.model.hazards()]

    def time_until_overlap(self, now: float, start: Vec3, target: Vec3) -> Optional[float]:
        """
        Soonest live overlap of a straight move from start to target beginning at now.

        Returns the smallest value reported by any hazard (seconds after the
        agent would reach it until it stops being live), or None when the move
        is safe against everything currently known.
        """
        direction = geometry.direction_xz(start, target)
        if direction is None:
            return None
        distance = geometry.distance_xz(start, target)
        overlaps = [
            overlap
            for overlap in (
                hazard.time_until_overlap(now, start, direction, self.config.speed, distance)
                for hazard in self.model.hazards()
            )
            if overlap is not None
        ]
        return min(overlaps) if overlaps else None

    def strategy(self) -> str:
        return self.venue.describe_strategy(self.model)
