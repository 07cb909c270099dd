"""
Configuration classes for the hazard route engine.

Module-level constants in hazardroute.constants hold the defaults; these
dataclasses let a session override them and validate the overrides up front.
"""

from dataclasses import dataclass, field
from typing import Any, Dict
import logging

from .constants.movement_constants import (
    AGENT_SPEED,
    DEFAULT_CAST_LEAD_TIME,
    DEFAULT_SPACE_RESOLUTION,
    DEFAULT_TESSELLATION_ERROR,
    DEFAULT_TIME_RESOLUTION,
    MATCH_TOLERANCE_SQ,
)

PLANNER_KINDS = ["branching", "grid"]


@dataclass
class GridConfig:
    """Resolution of the voxel spacetime grid used by the grid planner."""

    space_resolution: float = DEFAULT_SPACE_RESOLUTION
    time_resolution: float = DEFAULT_TIME_RESOLUTION
    goal_radius: float = 1.0

    def __post_init__(self):
        """Validate grid configuration."""
        if self.space_resolution <= 0.0:
            raise ValueError("space_resolution must be positive")
        if self.time_resolution <= 0.0:
            raise ValueError("time_resolution must be positive")
        if self.goal_radius < 0.0:
            raise ValueError("goal_radius must be non-negative")


@dataclass
class EngineConfig:
    """Main configuration class for VenueSession."""

    speed: float = AGENT_SPEED
    match_tolerance_sq: float = MATCH_TOLERANCE_SQ
    cast_lead_time: float = DEFAULT_CAST_LEAD_TIME  # used when a venue has no per-action value
    tessellation_max_error: float = DEFAULT_TESSELLATION_ERROR
    planner: str = "branching"
    rebuild_every_tick: bool = False
    enable_logging: bool = False

    grid: GridConfig = field(default_factory=GridConfig)

    def __post_init__(self):
        """Validate engine configuration."""
        if self.speed <= 0.0:
            raise ValueError("speed must be positive")
        if self.match_tolerance_sq <= 0.0:
            raise ValueError("match_tolerance_sq must be positive")
        if self.cast_lead_time < 0.0:
            raise ValueError("cast_lead_time must be non-negative")
        if self.tessellation_max_error <= 0.0:
            raise ValueError("tessellation_max_error must be positive")
        if self.planner not in PLANNER_KINDS:
            raise ValueError(f"planner must be one of {PLANNER_KINDS}")

        if self.enable_logging:
            logging.basicConfig(level=logging.DEBUG)
            logging.info("Engine logging enabled")

    @classmethod
    def for_replanning(cls, **kwargs) -> "EngineConfig":
        """Rebuild the route on every tick instead of only after new observations."""
        return cls(rebuild_every_tick=True, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "speed": self.speed,
            "match_tolerance_sq": self.match_tolerance_sq,
            "cast_lead_time": self.cast_lead_time,
            "tessellation_max_error": self.tessellation_max_error,
            "planner": self.planner,
            "rebuild_every_tick": self.rebuild_every_tick,
            "enable_logging": self.enable_logging,
            "space_resolution": self.grid.space_resolution,
            "time_resolution": self.grid.time_resolution,
            "goal_radius": self.grid.goal_radius,
        }
