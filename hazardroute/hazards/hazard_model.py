"""
Timing model for recurring area-of-effect hazards.

A RepeatingAOE is one hazard footprint that becomes live periodically. A
HazardSequence groups footprints that fire in lockstep, each offset from the
previous one by a fixed delay, so that observing any one member pins down the
schedule of the whole group. HazardModel owns every sequence of one venue
session; only the synchronizer writes activation times.
"""

import math
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from ..constants.movement_constants import AGENT_SPEED, DEFAULT_TESSELLATION_ERROR
from ..utils import geometry
from ..utils.geometry import Interval, Vec3


class AOEShape(IntEnum):
    """Footprint shapes supported by the intersection math."""

    CIRCLE = 0  # size = radius
    SQUARE = 1  # size = half side, axis aligned
    RECT = 2  # size = length along rotation, half_width across


@dataclass
class RepeatingAOE:
    """One periodically activating hazard footprint."""

    shape: AOEShape
    size: float
    origin: Vec3
    sequence_delay: float = 0.0  # gap until the next member of the sequence fires
    repeat_period: float = 0.0
    half_width: float = 0.0
    rotation: float = 0.0
    active_duration: float = 0.0  # 0 => instantaneous activation
    next_activation: Optional[float] = None  # None until first observed

    @property
    def is_synchronized(self) -> bool:
        return self.next_activation is not None

    def time_until_next_activation(self, t: float) -> float:
        """Seconds from t until the first activation at or after t (inf if unknown)."""
        if self.next_activation is None:
            return math.inf
        imminent_in = self.next_activation - t
        if self.repeat_period <= 0.0:
            return imminent_in if imminent_in >= 0.0 else math.inf
        return imminent_in % self.repeat_period

    def next_activation_after(self, t: float) -> float:
        """Absolute instant of the first activation at or after t."""
        return t + self.time_until_next_activation(t)

    def activates_between(self, now: float, lo: float, hi: float) -> Optional[float]:
        """
        Check whether the hazard is live at any instant of [now + lo, now + hi].

        Returns the number of seconds after now + lo at which that live
        window ends, or None if the hazard stays dormant for the whole window.
        A window spanning a period boundary is handled by querying the next
        activation relative to the window start rather than a snapshot.
        """
        if hi < 0.0:
            return None
        lo = max(0.0, lo)
        window_start = now + lo
        # an activation that started before the window may still be live
        first = self.next_activation_after(window_start - self.active_duration)
        if math.isinf(first) or first - window_start >= hi - lo:
            return None
        return max(first + self.active_duration - window_start, 0.0)

    def is_live_at(self, t: float) -> bool:
        if self.next_activation is None:
            return False
        first = self.next_activation_after(t - self.active_duration)
        return first <= t

    def intersect(self, start: Vec3, direction: Vec3) -> Interval:
        if self.shape == AOEShape.CIRCLE:
            return geometry.intersect_ray_circle(self.origin, self.size, start, direction)
        if self.shape == AOEShape.SQUARE:
            return geometry.intersect_ray_square(self.origin, self.size, start, direction)
        if self.shape == AOEShape.RECT:
            return geometry.intersect_ray_rect(
                self.origin, self.size, self.half_width, self.rotation, start, direction
            )
        return geometry.NO_INTERSECTION

    def contains(self, point: Vec3) -> bool:
        if self.shape == AOEShape.CIRCLE:
            return geometry.circle_contains(self.origin, self.size, point)
        if self.shape == AOEShape.SQUARE:
            return geometry.square_contains(self.origin, self.size, point)
        if self.shape == AOEShape.RECT:
            return geometry.rect_contains(
                self.origin, self.size, self.half_width, self.rotation, point
            )
        return False

    def time_until_overlap(
        self,
        now: float,
        start: Vec3,
        direction: Vec3,
        speed: float = AGENT_SPEED,
        max_distance: float = math.inf,
    ) -> Optional[float]:
        """
        Risk of a straight move starting at now from start along direction.

        Returns seconds after the agent would reach the footprint until the
        hazard stops being live (see activates_between), or None if the move
        never overlaps a live window. The move stops after max_distance.
        """
        enter, exit_ = self.intersect(start, direction)
        if math.isnan(enter) or exit_ <= 0.0 or enter >= max_distance:
            return None
        return self.activates_between(now, enter / speed, min(exit_, max_distance) / speed)

    def outline(self, max_error: float = DEFAULT_TESSELLATION_ERROR) -> np.ndarray:
        """Ground polygon of the footprint for display consumers."""
        if self.shape == AOEShape.CIRCLE:
            return geometry.tessellate_circle(self.origin, self.size, max_error)
        if self.shape == AOEShape.SQUARE:
            ox, oy, oz = self.origin
            h = self.size
            return np.array(
                [(ox - h, oy, oz - h), (ox + h, oy, oz - h), (ox + h, oy, oz + h), (ox - h, oy, oz + h)],
                dtype=np.float64,
            )
        corners = geometry.rect_corners(self.origin, self.size, self.half_width, self.rotation)
        return np.array(corners, dtype=np.float64)


@dataclass(frozen=True)
class HazardSnapshot:
    """Read-only view of one hazard for renderers and risk annotation."""

    sequence: str
    index: int
    shape: AOEShape
    size: float
    half_width: float
    rotation: float
    origin: Vec3
    next_activation: Optional[float]
    time_until_activation: float
    repeat_period: float


@dataclass
class HazardSequence:
    """Ordered ring of hazards sharing one schedule."""

    name: str
    members: List[RepeatingAOE] = field(default_factory=list)
    first_observed_index: Optional[int] = None
    next_index: int = 0

    def __post_init__(self):
        period = self.repeat_period
        for member in self.members:
            member.repeat_period = period

    def __len__(self) -> int:
        return len(self.members)

    def __iter__(self) -> Iterator[RepeatingAOE]:
        return iter(self.members)

    def __getitem__(self, index: int) -> RepeatingAOE:
        return self.members[index]

    @property
    def repeat_period(self) -> float:
        return sum(member.sequence_delay for member in self.members)

    @property
    def is_synchronized(self) -> bool:
        return bool(self.members) and self.members[0].is_synchronized

    def find_index(self, position: Sequence[float], tolerance_sq: float) -> int:
        """Index of the member whose origin matches position, or -1."""
        for index, member in enumerate(self.members):
            if geometry.length_sq(geometry.sub(member.origin, position)) < tolerance_sq:
                return index
        return -1

    def offset(self, index: int, steps: int) -> int:
        return (index + steps) % len(self.members)


class HazardModel:
    """All hazard sequences of one venue session, addressed by name."""

    def __init__(self, sequences: Iterable[HazardSequence] = ()):
        self._sequences: Dict[str, HazardSequence] = {}
        for sequence in sequences:
            self.add(sequence)

    def add(self, sequence: HazardSequence) -> HazardSequence:
        if sequence.name in self._sequences:
            raise ValueError(f"Duplicate hazard sequence name: {sequence.name}")
        self._sequences[sequence.name] = sequence
        return sequence

    def sequence(self, name: str) -> HazardSequence:
        try:
            return self._sequences[name]
        except KeyError:
            raise KeyError(f"Unknown hazard sequence: {name}") from None

    def sequences(self) -> List[HazardSequence]:
        return list(self._sequences.values())

    def names(self) -> List[str]:
        return list(self._sequences)

    def hazards(self, names: Optional[Iterable[str]] = None) -> List[RepeatingAOE]:
        """Flattened member list of the named sequences (all if names is None)."""
        selected = self._sequences.values() if names is None else (self.sequence(n) for n in names)
        return [member for sequence in selected for member in sequence]

    def is_synchronized(self, names: Iterable[str]) -> bool:
        return all(self.sequence(name).is_synchronized for name in names)

    def snapshots(self, now: float) -> List[HazardSnapshot]:
        result: List[HazardSnapshot] = []
        for sequence in self._sequences.values():
            for index, member in enumerate(sequence):
                result.append(
                    HazardSnapshot(
                        sequence=sequence.name,
                        index=index,
                        shape=member.shape,
                        size=member.size,
                        half_width=member.half_width,
                        rotation=member.rotation,
                        origin=member.origin,
                        next_activation=member.next_activation,
                        time_until_activation=member.time_until_next_activation(now),
                        repeat_period=member.repeat_period,
                    )
                )
        return result

    def first_observed(self) -> Dict[str, Optional[int]]:
        return {name: seq.first_observed_index for name, seq in self._sequences.items()}

    def reset(self) -> None:
        """Forget all timing knowledge (e.g. on venue re-entry)."""
        for sequence in self._sequences.values():
            sequence.first_observed_index = None
            sequence.next_index = 0
            for member in sequence:
                member.next_activation = None


def circle_sequence(
    name: str, radius: float, members: Iterable[Tuple[Vec3, float]], active_duration: float = 0.0
) -> HazardSequence:
    """Convenience builder for the common all-circles sequence."""
    return HazardSequence(
        name=name,
        members=[
            RepeatingAOE(
                shape=AOEShape.CIRCLE,
                size=radius,
                origin=tuple(float(c) for c in position),
                sequence_delay=delay,
                active_duration=active_duration,
            )
            for position, delay in members
        ],
    )
