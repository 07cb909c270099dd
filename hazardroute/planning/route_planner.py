"""
Recursive branch-and-merge planner over a venue's stage tree.

Every ChoiceStage is solved once per option on an independent PathBuilder
branch; the option finishing earliest is merged back and the rest are
discarded. Because MoveStages whose target is already behind the agent are
skipped, the same stage tree can be replanned from any point along the
course.
"""

import logging
import math
from typing import List, Optional, Sequence, Tuple

from ..constants.movement_constants import AGENT_SPEED, DISTANCE_EPSILON, UNREACHABLE
from ..hazards.hazard_model import HazardModel, RepeatingAOE
from ..utils import geometry
from ..utils.geometry import Vec3
from .path_builder import PathBuilder
from .route_plan import PlanStatus, RoutePlan, RoutePlanner
from .stages import ChoiceStage, MoveStage, Stage, WaitStage

logger = logging.getLogger(__name__)


class BranchingPlanner(RoutePlanner):
    def __init__(
        self,
        stages: Sequence[Stage],
        progress_direction: Optional[Vec3] = None,
        speed: float = AGENT_SPEED,
        required_sequences: Sequence[str] = (),
    ):
        if speed <= 0.0:
            raise ValueError("speed must be positive")
        self.stages: Tuple[Stage, ...] = tuple(stages)
        self.progress_direction = (
            geometry.normalized_xz(progress_direction) if progress_direction is not None else None
        )
        self.speed = speed
        self.required_sequences = tuple(required_sequences)

    def plan(self, model: HazardModel, start: Vec3, start_time: float) -> RoutePlan:
        if not model.is_synchronized(self.required_sequences):
            return RoutePlan.awaiting()

        builder = PathBuilder(start, start_time, "root", self.speed)
        finish = self.solve(model, builder, self.stages)
        if math.isinf(finish):
            logger.info("No safe route from %s at %.3f", start, start_time)
            return RoutePlan.unreachable()
        return RoutePlan(tuple(builder.waypoints), finish, PlanStatus.READY)

    def solve(self, model: HazardModel, builder: PathBuilder, stages: Sequence[Stage]) -> float:
        """Extend builder through stages; returns the finish time or UNREACHABLE."""
        if not stages:
            return builder.time
        stage, rest = stages[0], tuple(stages[1:])

        if isinstance(stage, ChoiceStage):
            return self._solve_choice(model, builder, stage, rest)
        if isinstance(stage, WaitStage):
            if not self._wait(model, builder, stage):
                return UNREACHABLE
            return self.solve(model, builder, rest)
        if isinstance(stage, MoveStage):
            if self._already_passed(builder.position, stage.target):
                logger.debug("%s: skipping %s, target already behind", builder.name, stage.label)
            elif not self._advance(model, builder, stage):
                return UNREACHABLE
            return self.solve(model, builder, rest)
        raise TypeError(f"Unsupported stage type: {type(stage).__name__}")

    def _solve_choice(
        self, model: HazardModel, builder: PathBuilder, stage: ChoiceStage, rest: Tuple[Stage, ...]
    ) -> float:
        best: Optional[PathBuilder] = None
        best_finish = UNREACHABLE
        for label, option in stage.options:
            branch = builder.branch(label)
            finish = self.solve(model, branch, tuple(option) + rest)
            logger.debug("%s: option %s finishes at %.3f", stage.label, branch.name, finish)
            if finish < best_finish:
                best, best_finish = branch, finish

        if best is None:
            logger.debug("%s: every option of %s is unreachable", builder.name, stage.label)
            return UNREACHABLE
        builder.merge(best)
        return best_finish

    def _already_passed(self, position: Vec3, target: Vec3) -> bool:
        if self.progress_direction is None:
            return False
        return geometry.dot_xz(geometry.sub(target, position), self.progress_direction) < -DISTANCE_EPSILON

    def _wait(self, model: HazardModel, builder: PathBuilder, stage: WaitStage) -> bool:
        builder.wait(stage.duration)
        for hazard in model.hazards(stage.hazards):
            if not builder.hold_is_safe(hazard, builder.time, builder.departure_time):
                logger.debug("%s: waiting %.3f at %s is unsafe", builder.name, stage.duration, builder.position)
                return False
        return True

    def _first_live_hazard(
        self, builder: PathBuilder, hazards: List[RepeatingAOE], direction: Vec3, distance: float
    ) -> Optional[Tuple[RepeatingAOE, float]]:
        """Nearest hazard ahead that would be live while the agent crosses it."""
        best: Optional[Tuple[RepeatingAOE, float]] = None
        for hazard in hazards:
            enter, exit_ = hazard.intersect(builder.position, direction)
            if math.isnan(enter) or enter <= DISTANCE_EPSILON or enter >= distance:
                continue
            live = hazard.activates_between(
                builder.departure_time,
                enter * builder.inv_speed,
                min(exit_, distance) * builder.inv_speed,
            )
            if live is not None and (best is None or enter < best[1]):
                best = (hazard, enter)
        return best

    def _advance(self, model: HazardModel, builder: PathBuilder, stage: MoveStage) -> bool:
        hazards = model.hazards(stage.hazards)
        target = stage.target

        # each edge wait clears one live window
        for _ in range(2 * len(hazards) + 1):
            direction = geometry.direction_xz(builder.position, target)
            if direction is None:
                break
            distance = geometry.distance_xz(builder.position, target)
            found = self._first_live_hazard(builder, hazards, direction, distance)
            if found is None:
                break
            blocker, enter = found
            edge = geometry.add(builder.position, geometry.scale(direction, enter))
            for hazard in hazards:
                if hazard is not blocker and not builder.crossing_is_safe(hazard, edge):
                    logger.debug("%s: approach to %s edge is unsafe", builder.name, stage.label)
                    return False
            builder.move_to_hazard_edge(blocker, direction, max_distance=distance)
            for hazard in hazards:
                if hazard is not blocker and not builder.hold_is_safe(
                    hazard, builder.time, builder.departure_time
                ):
                    logger.debug("%s: hold at %s is unsafe", builder.name, builder.position)
                    return False
        else:
            logger.debug("%s: gave up waiting out hazards towards %s", builder.name, stage.label)
            return False

        for hazard in hazards:
            if not builder.crossing_is_safe(hazard, target):
                logger.debug("%s: crossing towards %s is unsafe", builder.name, stage.label)
                return False
        builder.move_to(target, stage.jump)
        return True
