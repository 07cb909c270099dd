"""
Voxel spacetime planner.

Rasterizes every synchronized hazard into a copy of a static SpacetimeGrid
and expands the set of reachable cells one time slice at a time. Each slice
the agent may stay put or move to any cell within speed * dt; the first
slice in which a goal cell is reachable gives the arrival time and the path
is recovered by walking the reachable layers backwards.
"""

import logging
import math
from typing import Callable, List, Optional, Tuple

import numpy as np

from ..constants.movement_constants import AGENT_SPEED
from ..hazards.hazard_model import AOEShape, HazardModel, RepeatingAOE
from ..pathfinding.spacetime_grid import SpacetimeGrid
from ..utils.geometry import Vec3
from .path_builder import Waypoint
from .route_plan import PlanStatus, RoutePlan, RoutePlanner

logger = logging.getLogger(__name__)

Cell = Tuple[int, int]


def _dilate(layer: np.ndarray, offsets: List[Cell]) -> np.ndarray:
    height, width = layer.shape
    out = np.zeros_like(layer)
    for dy, dx in offsets:
        y0, y1 = max(0, -dy), height - max(0, dy)
        x0, x1 = max(0, -dx), width - max(0, dx)
        if y0 >= y1 or x0 >= x1:
            continue
        out[y0 + dy : y1 + dy, x0 + dx : x1 + dx] |= layer[y0:y1, x0:x1]
    return out


class GridPlanner(RoutePlanner):
    def __init__(
        self,
        grid: SpacetimeGrid,
        goal: Vec3,
        speed: float = AGENT_SPEED,
        goal_radius: float = 1.0,
        height_at: Optional[Callable[[Vec3], float]] = None,
        required_sequences: Tuple[str, ...] = (),
    ):
        if speed <= 0.0:
            raise ValueError("speed must be positive")
        if goal_radius < 0.0:
            raise ValueError("goal_radius must be non-negative")
        self.grid = grid
        self.goal = goal
        self.speed = speed
        self.goal_radius = goal_radius
        self.height_at = height_at
        self.required_sequences = tuple(required_sequences)
        self.offsets = self._step_offsets()

    def _step_offsets(self) -> List[Cell]:
        reach = self.speed * self.grid.time_resolution * self.grid.inv_space_resolution
        r = int(math.floor(reach))
        offsets = [
            (dy, dx)
            for dy in range(-r, r + 1)
            for dx in range(-r, r + 1)
            if dy * dy + dx * dx <= reach * reach
        ]
        # staying put first, then longest steps
        offsets.sort(key=lambda o: (o != (0, 0), -(o[0] * o[0] + o[1] * o[1])))
        return offsets

    def rasterize(self, model: HazardModel, start_time: float) -> SpacetimeGrid:
        grid = self.grid.clone()
        leeway = grid.time_resolution
        for sequence in model.sequences():
            if not sequence.is_synchronized:
                continue
            for hazard in sequence:
                self._block_hazard(grid, hazard, start_time, leeway)
        return grid

    def _block_hazard(
        self, grid: SpacetimeGrid, hazard: RepeatingAOE, start_time: float, leeway: float
    ) -> bool:
        duration = hazard.active_duration
        # include an activation that began before start_time but is still live
        t_start = hazard.time_until_next_activation(start_time - duration) - duration
        period = hazard.repeat_period
        origin = (hazard.origin[0], hazard.origin[2])
        if hazard.shape == AOEShape.CIRCLE:
            return grid.block_circle(origin, hazard.size, t_start, duration, period, leeway)
        if hazard.shape == AOEShape.SQUARE:
            return grid.block_square(origin, hazard.size, t_start, duration, period, leeway)
        return grid.block_rect(
            origin, hazard.size, hazard.half_width, hazard.rotation, t_start, duration, period, leeway
        )

    def _goal_mask(self, grid: SpacetimeGrid) -> np.ndarray:
        gx, gy = grid.world_to_grid_frac(self.goal)
        ys, xs = np.mgrid[0 : grid.height, 0 : grid.width]
        r = self.goal_radius * grid.inv_space_resolution
        mask = (xs + 0.5 - gx) ** 2 + (ys + 0.5 - gy) ** 2 <= r * r
        cx, cy = grid.world_to_grid(self.goal)
        if 0 <= cx < grid.width and 0 <= cy < grid.height:
            mask[cy, cx] = True
        return mask

    def plan(self, model: HazardModel, start: Vec3, start_time: float) -> RoutePlan:
        if not model.is_synchronized(self.required_sequences):
            return RoutePlan.awaiting()

        grid = self.rasterize(model, start_time)
        sx, sy = grid.world_to_grid(start)
        if not grid.in_bounds(sx, sy, 0) or grid.voxels[0, sy, sx]:
            logger.info("Start %s is outside the grid or blocked", start)
            return RoutePlan.unreachable()
        goal_mask = self._goal_mask(grid)
        if not goal_mask.any():
            logger.info("Goal %s is outside the grid", self.goal)
            return RoutePlan.unreachable()

        reachable = np.zeros_like(grid.voxels)
        reachable[0, sy, sx] = True
        arrival = 0 if goal_mask[sy, sx] else -1
        for t in range(1, grid.duration):
            if arrival >= 0:
                break
            reachable[t] = _dilate(reachable[t - 1], self.offsets) & ~grid.voxels[t]
            if not reachable[t].any():
                logger.debug("Reachable set vanished at slice %d", t)
                return RoutePlan.unreachable()
            if (reachable[t] & goal_mask).any():
                arrival = t

        if arrival < 0:
            logger.info("Goal not reachable within %.1fs", grid.max_time)
            return RoutePlan.unreachable()

        gy, gx = np.argwhere(reachable[arrival] & goal_mask)[0]
        cells = self._backtrack(reachable, arrival, (int(gy), int(gx)))
        waypoints = self._to_waypoints(grid, cells, start, start_time)
        return RoutePlan(tuple(waypoints), start_time + arrival * grid.time_resolution, PlanStatus.READY)

    def _backtrack(self, reachable: np.ndarray, arrival: int, goal: Cell) -> List[Cell]:
        cells = [goal]
        y, x = goal
        height, width = reachable.shape[1:]
        for t in range(arrival, 0, -1):
            for dy, dx in self.offsets:
                py, px = y - dy, x - dx
                if 0 <= py < height and 0 <= px < width and reachable[t - 1, py, px]:
                    y, x = py, px
                    break
            cells.append((y, x))
        cells.reverse()
        return cells

    def _to_waypoints(
        self, grid: SpacetimeGrid, cells: List[Cell], start: Vec3, start_time: float
    ) -> List[Waypoint]:
        """One waypoint per stop or change of heading; waits become start times."""
        waypoints: List[Waypoint] = []
        dt = grid.time_resolution
        depart: Optional[float] = None
        waited = False
        for k in range(1, len(cells)):
            step = (cells[k][0] - cells[k - 1][0], cells[k][1] - cells[k - 1][1])
            if step == (0, 0):
                waited = True
                continue
            if depart is None and waited:
                depart = start_time + (k - 1) * dt
            waited = False
            following = (
                (cells[k + 1][0] - cells[k][0], cells[k + 1][1] - cells[k][1])
                if k + 1 < len(cells)
                else None
            )
            if following == step:
                continue
            y, x = cells[k]
            dest = grid.grid_to_world(x, y)
            elevation = self.height_at(dest) if self.height_at is not None else start[1]
            waypoints.append(Waypoint((dest[0], elevation, dest[2]), depart))
            depart = None
        return waypoints
