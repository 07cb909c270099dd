"""Planner result types and the planner interface."""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from ..hazards.hazard_model import HazardModel
from ..utils.geometry import Vec3
from .path_builder import Waypoint


class PlanStatus(Enum):
    READY = "ready"
    UNREACHABLE = "unreachable"
    AWAITING_OBSERVATIONS = "awaiting_observations"


@dataclass(frozen=True)
class RoutePlan:
    waypoints: Tuple[Waypoint, ...]
    finish_time: float
    status: PlanStatus

    @property
    def reachable(self) -> bool:
        return self.status is PlanStatus.READY and not math.isinf(self.finish_time)

    @classmethod
    def unreachable(cls) -> "RoutePlan":
        return cls((), math.inf, PlanStatus.UNREACHABLE)

    @classmethod
    def awaiting(cls) -> "RoutePlan":
        return cls((), math.inf, PlanStatus.AWAITING_OBSERVATIONS)


class RoutePlanner(ABC):
    """Turns the current hazard timing knowledge into a timed waypoint list."""

    @abstractmethod
    def plan(self, model: HazardModel, start: Vec3, start_time: float) -> RoutePlan:
        pass
