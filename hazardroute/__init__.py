"""
Timing prediction for recurring area-of-effect hazards and timed route planning.
"""

from .config import EngineConfig, GridConfig
from .hazards import (
    AOEShape,
    EventKind,
    HazardEvent,
    HazardModel,
    HazardSequence,
    HazardSnapshot,
    HazardSynchronizer,
    RepeatingAOE,
    TelemetryQueue,
)
from .planning import (
    BranchingPlanner,
    ChoiceStage,
    GridPlanner,
    MoveStage,
    PathBuilder,
    PlanStatus,
    RoutePlan,
    RoutePlanner,
    WaitStage,
    Waypoint,
)
from .pathfinding import SpacetimeGrid
from .session import VenueSession
from .venues import VENUES, VenueConfig, get_venue, select_venue

__version__ = "0.1.0"

__all__ = [
    "EngineConfig",
    "GridConfig",
    "AOEShape",
    "EventKind",
    "HazardEvent",
    "HazardModel",
    "HazardSequence",
    "HazardSnapshot",
    "HazardSynchronizer",
    "RepeatingAOE",
    "TelemetryQueue",
    "BranchingPlanner",
    "ChoiceStage",
    "GridPlanner",
    "MoveStage",
    "PathBuilder",
    "PlanStatus",
    "RoutePlan",
    "RoutePlanner",
    "WaitStage",
    "Waypoint",
    "SpacetimeGrid",
    "VenueSession",
    "VENUES",
    "VenueConfig",
    "get_venue",
    "select_venue",
]
