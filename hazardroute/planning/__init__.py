from .path_builder import PathBuilder, Waypoint
from .route_plan import PlanStatus, RoutePlan, RoutePlanner
from .stages import ChoiceStage, MoveStage, Stage, WaitStage
from .route_planner import BranchingPlanner
from .grid_planner import GridPlanner

__all__ = [
    "PathBuilder",
    "Waypoint",
    "PlanStatus",
    "RoutePlan",
    "RoutePlanner",
    "Stage",
    "MoveStage",
    "WaitStage",
    "ChoiceStage",
    "BranchingPlanner",
    "GridPlanner",
]
