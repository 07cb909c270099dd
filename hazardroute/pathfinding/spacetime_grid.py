"""
Voxelized ground-plane x time occupancy grid.

Each voxel covers space_resolution x space_resolution world units of the
X/Z plane and time_resolution seconds. A voxel is True when standing in it
during that time slice is unsafe, either because terrain is permanently
blocked or because a hazard footprint is live.
"""

import math
from typing import Callable, List, Sequence, Tuple

import numpy as np

from ..constants.movement_constants import DEFAULT_SPACE_RESOLUTION, DEFAULT_TIME_RESOLUTION
from ..utils.geometry import Vec3

# Vectorized predicate over cell-centre coordinate arrays (x, z) -> bool array
ShapeMask = Callable[[np.ndarray, np.ndarray], np.ndarray]


class SpacetimeGrid:
    def __init__(
        self,
        center: Vec3,
        world_half_width: float,
        world_half_height: float,
        max_duration: float,
        space_resolution: float = DEFAULT_SPACE_RESOLUTION,
        time_resolution: float = DEFAULT_TIME_RESOLUTION,
    ):
        if space_resolution <= 0.0 or time_resolution <= 0.0:
            raise ValueError("Grid resolutions must be positive")
        if world_half_width <= 0.0 or world_half_height <= 0.0 or max_duration <= 0.0:
            raise ValueError("Grid extents must be positive")

        self.space_resolution = space_resolution
        self.time_resolution = time_resolution
        self.inv_space_resolution = 1.0 / space_resolution
        self.inv_time_resolution = 1.0 / time_resolution
        self.width = 2 * int(math.ceil(world_half_width / space_resolution))
        self.height = 2 * int(math.ceil(world_half_height / space_resolution))
        self.duration = int(math.ceil(max_duration / time_resolution))
        self.center = (float(center[0]), float(center[2]))
        self.voxels = np.zeros((self.duration, self.height, self.width), dtype=bool)

    def __repr__(self) -> str:
        return (
            f"SpacetimeGrid({self.width}x{self.height}x{self.duration}, "
            f"ds={self.space_resolution}, dt={self.time_resolution}, "
            f"blocked={int(self.voxels.sum())})"
        )

    def __getitem__(self, key: Tuple[int, int, int]) -> bool:
        x, y, t = key
        if not self.in_bounds(x, y, t):
            return False
        return bool(self.voxels[t, y, x])

    def clone(self) -> "SpacetimeGrid":
        result = SpacetimeGrid.__new__(SpacetimeGrid)
        result.__dict__.update(self.__dict__)
        result.voxels = self.voxels.copy()
        return result

    @property
    def max_time(self) -> float:
        return self.duration * self.time_resolution

    def clamp_x(self, x: int) -> int:
        return min(max(x, 0), self.width - 1)

    def clamp_y(self, y: int) -> int:
        return min(max(y, 0), self.height - 1)

    def clamp_t(self, t: int) -> int:
        return min(max(t, 0), self.duration - 1)

    def in_bounds(self, x: int, y: int, t: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height and 0 <= t < self.duration

    def world_to_grid_frac(self, world: Sequence[float]) -> Tuple[float, float]:
        return (
            self.width // 2 + (world[0] - self.center[0]) * self.inv_space_resolution,
            self.height // 2 + (world[2] - self.center[1]) * self.inv_space_resolution,
        )

    def world_to_grid(self, world: Sequence[float]) -> Tuple[int, int]:
        fx, fy = self.world_to_grid_frac(world)
        return (int(math.floor(fx)), int(math.floor(fy)))

    def grid_to_world(self, gx: int, gy: int, fx: float = 0.5, fy: float = 0.5) -> Vec3:
        # elevation is resolved by the caller (see HeightProfile)
        x = self.center[0] + (gx - self.width // 2 + fx) * self.space_resolution
        z = self.center[1] + (gy - self.height // 2 + fy) * self.space_resolution
        return (x, 0.0, z)

    def time_to_slice(self, t: float) -> int:
        return int(math.floor(t * self.inv_time_resolution))

    def is_blocked(self, world: Sequence[float], t: float) -> bool:
        x, y = self.world_to_grid(world)
        return self[x, y, self.time_to_slice(t)]

    def _time_intervals(
        self, t_start: float, t_duration: float, t_repeat: float, t_leeway: float
    ) -> List[Tuple[int, int]]:
        intervals: List[Tuple[int, int]] = []
        t = t_start
        while t < self.max_time:
            begin = self.clamp_t(int(math.floor((t - t_leeway) * self.inv_time_resolution)))
            end = self.clamp_t(int(math.floor((t + t_duration + t_leeway) * self.inv_time_resolution)))
            if t + t_duration + t_leeway >= 0.0:
                intervals.append((begin, end))
            if t_repeat <= 0.0:
                break
            t += t_repeat
        return intervals

    def block_inside(
        self,
        bounds_min: Tuple[float, float],
        bounds_max: Tuple[float, float],
        shape: ShapeMask,
        t_start: float,
        t_duration: float,
        t_repeat: float,
        t_leeway: float,
    ) -> bool:
        """
        Block every voxel whose centre satisfies shape during each repetition.

        bounds are (x, z) world coordinates limiting the cells tested;
        repetitions start at t_start and recur every t_repeat seconds
        (t_repeat <= 0 blocks a single interval), each padded by t_leeway.
        Returns False if nothing could be blocked.
        """
        intervals = self._time_intervals(t_start, t_duration, t_repeat, t_leeway)
        if not intervals:
            return False

        rel_min = (bounds_min[0] - self.center[0], bounds_min[1] - self.center[1])
        rel_max = (bounds_max[0] - self.center[0], bounds_max[1] - self.center[1])
        xmin = self.width // 2 + int(math.floor(rel_min[0] * self.inv_space_resolution))
        xmax = self.width // 2 + int(math.ceil(rel_max[0] * self.inv_space_resolution))
        ymin = self.height // 2 + int(math.floor(rel_min[1] * self.inv_space_resolution))
        ymax = self.height // 2 + int(math.ceil(rel_max[1] * self.inv_space_resolution))
        if xmax < 0 or ymax < 0 or xmin >= self.width or ymin >= self.height:
            return False
        xmin, xmax = self.clamp_x(xmin), self.clamp_x(xmax)
        ymin, ymax = self.clamp_y(ymin), self.clamp_y(ymax)

        xs = self.center[0] + (np.arange(xmin, xmax + 1) - self.width // 2 + 0.5) * self.space_resolution
        zs = self.center[1] + (np.arange(ymin, ymax + 1) - self.height // 2 + 0.5) * self.space_resolution
        cell_x, cell_z = np.meshgrid(xs, zs)
        mask = np.asarray(shape(cell_x, cell_z), dtype=bool)
        if not mask.any():
            return False

        for begin, end in intervals:
            self.voxels[begin : end + 1, ymin : ymax + 1, xmin : xmax + 1] |= mask
        return True

    def block_circle(
        self,
        center: Tuple[float, float],
        radius: float,
        t_start: float,
        t_duration: float,
        t_repeat: float,
        t_leeway: float,
    ) -> bool:
        cx, cz = center
        rsq = radius * radius
        return self.block_inside(
            (cx - radius, cz - radius),
            (cx + radius, cz + radius),
            lambda x, z: (x - cx) ** 2 + (z - cz) ** 2 <= rsq,
            t_start,
            t_duration,
            t_repeat,
            t_leeway,
        )

    def block_aligned_rect(
        self,
        xmin: float,
        xmax: float,
        zmin: float,
        zmax: float,
        t_start: float,
        t_duration: float,
        t_repeat: float,
        t_leeway: float,
    ) -> bool:
        return self.block_inside(
            (xmin, zmin),
            (xmax, zmax),
            lambda x, z: (x >= xmin) & (x <= xmax) & (z >= zmin) & (z <= zmax),
            t_start,
            t_duration,
            t_repeat,
            t_leeway,
        )

    def block_square(
        self,
        center: Tuple[float, float],
        half_side: float,
        t_start: float,
        t_duration: float,
        t_repeat: float,
        t_leeway: float,
    ) -> bool:
        cx, cz = center
        return self.block_aligned_rect(
            cx - half_side, cx + half_side, cz - half_side, cz + half_side,
            t_start, t_duration, t_repeat, t_leeway,
        )

    def block_rect(
        self,
        origin: Tuple[float, float],
        length: float,
        half_width: float,
        rotation: float,
        t_start: float,
        t_duration: float,
        t_repeat: float,
        t_leeway: float,
    ) -> bool:
        ox, oz = origin
        dx, dz = math.sin(rotation), math.cos(rotation)
        nx, nz = dz, -dx
        reach = length + half_width
        return self.block_inside(
            (ox - reach, oz - reach),
            (ox + reach, oz + reach),
            lambda x, z: (
                ((x - ox) * dx + (z - oz) * dz >= 0.0)
                & ((x - ox) * dx + (z - oz) * dz <= length)
                & (np.abs((x - ox) * nx + (z - oz) * nz) <= half_width)
            ),
            t_start,
            t_duration,
            t_repeat,
            t_leeway,
        )
