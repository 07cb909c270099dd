"""Stage variants making up a venue's course tree."""

from dataclasses import dataclass
from typing import Tuple, Union

from ..utils.geometry import Vec3


@dataclass(frozen=True)
class MoveStage:
    """Move straight to target, avoiding the named hazard sequences."""

    target: Vec3
    hazards: Tuple[str, ...] = ()
    jump: bool = False
    label: str = ""


@dataclass(frozen=True)
class WaitStage:
    duration: float
    hazards: Tuple[str, ...] = ()
    label: str = ""


@dataclass(frozen=True)
class ChoiceStage:
    """Alternative stage lists; the planner keeps the earliest finishing one."""

    label: str
    options: Tuple[Tuple[str, Tuple["Stage", ...]], ...]

    def __post_init__(self):
        if not self.options:
            raise ValueError(f"Choice {self.label!r} needs at least one option")


Stage = Union[MoveStage, WaitStage, ChoiceStage]
