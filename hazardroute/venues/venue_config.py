"""
Static description of a venue: hazard layout, action tables and course tree.

A VenueConfig is pure data. build_model() materializes fresh, unsynchronized
hazard state for one session so that several sessions never share timing.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Sequence, Tuple

import numpy as np

from ..hazards.hazard_model import AOEShape, HazardModel, HazardSequence, RepeatingAOE
from ..pathfinding.spacetime_grid import SpacetimeGrid
from ..planning.stages import Stage
from ..utils.geometry import Vec3


@dataclass(frozen=True)
class SequenceLayout:
    """
    Layout of one hazard sequence.

    members holds (origin, sequence_delay) pairs in firing order; rotations,
    when given, supplies one rotation per member for RECT footprints.
    """

    name: str
    shape: AOEShape
    size: float
    members: Tuple[Tuple[Vec3, float], ...]
    half_width: float = 0.0
    rotations: Tuple[float, ...] = ()
    active_duration: float = 0.0

    def __post_init__(self):
        if not self.members:
            raise ValueError(f"Sequence {self.name!r} has no members")
        if self.size <= 0.0:
            raise ValueError(f"Sequence {self.name!r} must have a positive size")
        if any(delay < 0.0 for _, delay in self.members):
            raise ValueError(f"Sequence {self.name!r} has a negative delay")
        if sum(delay for _, delay in self.members) <= 0.0:
            raise ValueError(f"Sequence {self.name!r} must have a positive repeat period")
        if self.rotations and len(self.rotations) != len(self.members):
            raise ValueError(f"Sequence {self.name!r} needs one rotation per member")

    def build(self) -> HazardSequence:
        members = []
        for i, (origin, delay) in enumerate(self.members):
            members.append(
                RepeatingAOE(
                    shape=self.shape,
                    size=self.size,
                    origin=tuple(float(c) for c in origin),
                    sequence_delay=delay,
                    half_width=self.half_width,
                    rotation=self.rotations[i] if self.rotations else 0.0,
                    active_duration=self.active_duration,
                )
            )
        return HazardSequence(self.name, members)


class HeightProfile:
    """Piecewise-linear elevation along the course's progress coordinate (Z)."""

    def __init__(self, points: Sequence[Tuple[float, float]]):
        if len(points) < 2:
            raise ValueError("HeightProfile needs at least two points")
        data = np.array(sorted(points), dtype=np.float64)
        self.z = data[:, 0]
        self.y = data[:, 1]

    def elevation_at(self, z: float) -> float:
        return float(np.interp(z, self.z, self.y))

    def lift(self, point: Vec3) -> Vec3:
        return (point[0], self.elevation_at(point[2]), point[2])


@dataclass
class VenueConfig:
    name: str
    sequences: Tuple[SequenceLayout, ...]
    stages: Tuple[Stage, ...]
    hit_actions: Dict[int, Tuple[str, ...]] = field(default_factory=dict)
    cast_actions: Dict[int, Tuple[str, ...]] = field(default_factory=dict)
    cast_lead_times: Dict[int, float] = field(default_factory=dict)
    required_sequences: Tuple[str, ...] = ()
    progress_direction: Vec3 = (0.0, 0.0, 1.0)
    bounds: Tuple[Tuple[float, float], Tuple[float, float]] = ((-np.inf, -np.inf), (np.inf, np.inf))
    goal: Optional[Vec3] = None
    height_profile: Optional[HeightProfile] = None
    strategy: Optional[Callable[[HazardModel], str]] = None
    static_obstacles: Optional[Callable[[SpacetimeGrid], None]] = None
    grid_center: Vec3 = (0.0, 0.0, 0.0)
    grid_half_extents: Tuple[float, float] = (20.0, 20.0)
    grid_duration: float = 30.0

    def __post_init__(self):
        names = [layout.name for layout in self.sequences]
        if len(set(names)) != len(names):
            raise ValueError(f"Venue {self.name!r} has duplicate sequence names")
        known = set(names)
        for table in (self.hit_actions, self.cast_actions):
            for action_id, candidates in table.items():
                unknown = [c for c in candidates if c not in known]
                if unknown:
                    raise ValueError(
                        f"Venue {self.name!r}: action {action_id} refers to unknown sequences {unknown}"
                    )
        missing = [n for n in self.required_sequences if n not in known]
        if missing:
            raise ValueError(f"Venue {self.name!r}: unknown required sequences {missing}")
        (xmin, zmin), (xmax, zmax) = self.bounds
        if xmin > xmax or zmin > zmax:
            raise ValueError(f"Venue {self.name!r} has inverted bounds")

    def build_model(self) -> HazardModel:
        return HazardModel(layout.build() for layout in self.sequences)

    def contains(self, position: Vec3) -> bool:
        (xmin, zmin), (xmax, zmax) = self.bounds
        return xmin <= position[0] <= xmax and zmin <= position[2] <= zmax

    def elevation_at(self, point: Vec3) -> float:
        if self.height_profile is None:
            return point[1]
        return self.height_profile.elevation_at(point[2])

    def lead_time(self, action_id: int, default: float) -> float:
        return self.cast_lead_times.get(action_id, default)

    def build_grid(self, space_resolution: float, time_resolution: float) -> SpacetimeGrid:
        grid = SpacetimeGrid(
            self.grid_center,
            self.grid_half_extents[0],
            self.grid_half_extents[1],
            self.grid_duration,
            space_resolution,
            time_resolution,
        )
        if self.static_obstacles is not None:
            self.static_obstacles(grid)
        return grid

    def describe_strategy(self, model: HazardModel) -> str:
        """Human readable summary of what has been observed so far."""
        if self.strategy is not None:
            return self.strategy(model)
        parts = []
        for name, index in model.first_observed().items():
            parts.append(f"{name}={'?' if index is None else index + 1}")
        return " ".join(parts)
