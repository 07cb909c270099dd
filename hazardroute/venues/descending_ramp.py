"""
Descending ramp course.

The agent enters at the top (z ~ 290) and descends towards the finish at
z ~ 124 through seven hazard mechanics: rotating circles, two rows of
exaflares, rotating circles beside a second exaflare pair, square rect lanes
with a single exaflare, circle pairs on the stairs, a last exaflare and a
final pair of small circles.
"""

from typing import List, Sequence, Tuple

import numpy as np

from ..hazards.hazard_model import AOEShape, HazardModel
from ..pathfinding.spacetime_grid import SpacetimeGrid
from ..planning.stages import ChoiceStage, MoveStage, Stage
from ..utils.geometry import Vec3
from .venue_config import HeightProfile, SequenceLayout, VenueConfig

HEIGHT_PROFILE = HeightProfile(
    [
        (135.6, 36.2),
        (139.0, 35.5),
        (139.1, 34.5),
        (143.0, 34.3),
        (143.1, 33.6),
        (147.0, 33.4),
        (147.1, 32.8),
        (150.9, 32.5),
        (151.0, 31.9),
        (180.7, 28.8),
        (218.9, 15.1),
        (229.7, 14.5),
        (236.8, 13.5),
        (262.9, 6.0),
        (273.2, 6.0),
        (286.9, 3.2),
    ]
)

EXAFLARE_X = (-12.0, -4.0, 4.0, 12.0)
RECT_ROWS = ((25.59, 190.4), (23.37, 196.4), (21.15, 202.4), (18.94, 208.4), (16.73, 214.4))

# action identifiers reported by telemetry
EXAFLARE_HIT = 34801
ROTATING_HIT = 34802
RECTS_HIT = 34804
RECTS_CAST = 34812
STAIR_PAIRS_HIT = 34796
FINAL_PAIRS_HIT = 29795

ROTATING = ("mech1_rotating",)
EXAFLARES_1 = ("mech2_exaflares",)
MECH3 = ("mech3_rotating", "mech3_exaflares")
MECH4 = ("mech4_rects_L", "mech4_rects_R", "mech4_rects_C", "mech4_exaflare")
STAIRS = (
    "mech5_pair_L1",
    "mech5_pair_L2",
    "mech5_pair_R1",
    "mech5_pair_R2",
    "mech6_exaflare",
    "mech7_pair_L",
    "mech7_pair_R",
)


def _rotating(name: str, delay: float, y: float, z: float, xs: Sequence[float]) -> SequenceLayout:
    return SequenceLayout(name, AOEShape.CIRCLE, 5.0, tuple(((x, y, z), delay) for x in xs))


def _single_exaflare(name: str, y: float, z: float, xs: Sequence[float]) -> SequenceLayout:
    members = tuple(((x, y, z), 1.9 if i == len(xs) - 1 else 1.4) for i, x in enumerate(xs))
    return SequenceLayout(name, AOEShape.CIRCLE, 6.0, members)


def _double_exaflare(name: str, y1: float, z1: float, y2: float, z2: float) -> SequenceLayout:
    first = [((x, y1, z1), 1.4) for x in EXAFLARE_X]
    second = [((x, y2, z2), 1.4) for x in EXAFLARE_X]
    return SequenceLayout(name, AOEShape.CIRCLE, 6.0, tuple(first + second))


def _rects(name: str, xs: Sequence[float], last_delay: float = 1.1) -> SequenceLayout:
    members = []
    for x in xs:
        for i, (y, z) in enumerate(RECT_ROWS):
            members.append(((x, y, z), last_delay if i == len(RECT_ROWS) - 1 else 0.5))
    return SequenceLayout(name, AOEShape.SQUARE, 3.0, tuple(members))


def _pair(name: str, radius: float, p1: Vec3, p2: Vec3) -> SequenceLayout:
    return SequenceLayout(name, AOEShape.CIRCLE, radius, ((p1, 2.5), (p2, 2.5)))


SEQUENCES = (
    _rotating("mech1_rotating", 1.2, 6.0, 267.5, (-10.0, 10.0)),
    _double_exaflare("mech2_exaflares", 9.39, 251.0, 11.75, 243.0),
    _rotating("mech3_rotating", 1.0, 14.76, 225.3, (-10.0, 0.0, 10.0)),
    _double_exaflare("mech3_exaflares", 14.54, 229.3, 14.97, 221.3),
    _rects("mech4_rects_L", (-12.0, -6.0)),
    _rects("mech4_rects_R", (12.0, 6.0)),
    _rects("mech4_rects_C", (0.0,), last_delay=4.2),
    _single_exaflare("mech4_exaflare", 22.52, 198.7, EXAFLARE_X),
    _pair("mech5_pair_L1", 5.0, (-10.0, 29.95, 170.0), (-2.0, 29.95, 170.0)),
    _pair("mech5_pair_L2", 5.0, (-10.0, 31.39, 156.0), (-4.34, 30.81, 161.66)),
    _pair("mech5_pair_R1", 5.0, (10.0, 29.95, 170.0), (4.34, 29.37, 175.66)),
    _pair("mech5_pair_R2", 5.0, (10.0, 31.39, 156.0), (2.0, 31.39, 156.0)),
    _single_exaflare("mech6_exaflare", 33.47, 145.7, (-4.0, 4.0, 12.0, -12.0)),
    _pair("mech7_pair_L", 3.0, (-6.78, 35.91, 136.91), (-3.22, 36.30, 135.09)),
    _pair("mech7_pair_R", 3.0, (6.78, 35.91, 136.91), (3.22, 36.30, 135.09)),
)

HIT_ACTIONS = {
    EXAFLARE_HIT: ("mech2_exaflares", "mech3_exaflares", "mech4_exaflare", "mech6_exaflare"),
    ROTATING_HIT: ("mech1_rotating", "mech3_rotating"),
    RECTS_HIT: ("mech4_rects_L", "mech4_rects_R", "mech4_rects_C"),
    RECTS_CAST: ("mech4_rects_L", "mech4_rects_R", "mech4_rects_C"),
    STAIR_PAIRS_HIT: ("mech5_pair_L1", "mech5_pair_L2", "mech5_pair_R1", "mech5_pair_R2"),
    FINAL_PAIRS_HIT: ("mech7_pair_L", "mech7_pair_R"),
}
CAST_ACTIONS = {RECTS_CAST: ("mech4_rects_L", "mech4_rects_R")}
CAST_LEAD_TIMES = {RECTS_CAST: 1.0}

REQUIRED = ("mech2_exaflares", "mech3_exaflares", "mech4_rects_L", "mech4_exaflare")


def _move(x: float, z: float, hazards: Tuple[str, ...], label: str = "") -> MoveStage:
    return MoveStage(HEIGHT_PROFILE.lift((x, 0.0, z)), hazards, label=label or f"({x:g}, {z:g})")


def _lane1_end_x(lane: int, mech3_left: bool) -> float:
    if lane == 2:
        return -5.5 if mech3_left else -2.0
    if lane == 3:
        return 2.0 if mech3_left else 5.5
    return {1: -9.5, 4: 9.5}[lane]


def _corridor(lane2: int) -> List[Stage]:
    x = {1: -12.0, 2: -5.0, 3: 5.0, 4: 12.0}[lane2]
    side = -1.0 if x <= 2.0 else 1.0
    return [
        _move(x, 145.5, STAIRS, "stairs"),
        _move(side * 6.5, 135.0, STAIRS, "corridor"),
        _move(side * 8.5, 124.0, STAIRS, "finish"),
    ]


def _inner_rects(lane2: int) -> List[Stage]:
    mid_x = {1: -12.5, 4: 12.5}.get(lane2, 0.0)
    top_x = {1: -12.0, 2: -3.5, 3: 3.5, 4: 12.0}[lane2]
    return [
        _move(-6.0 if lane2 <= 2 else 6.0, 203.5, MECH4),
        _move(mid_x, 194.5, MECH4),
        _move(top_x, 188.0, MECH4),
    ] + _corridor(lane2)


def _outer_rects(lane2: int, mech3_left: bool) -> List[Stage]:
    if lane2 == 1:
        low_x = -12.0 if mech3_left else 0.0
    elif lane2 == 4:
        low_x = 0.0 if mech3_left else 12.0
    else:
        low_x = 0.0
    mid_x = {1: -12.0, 2: -6.0, 3: 6.0, 4: 12.0}[lane2]
    return [
        _move(low_x, 212.0, MECH4),
        _move(low_x, 208.0, MECH4),
        _move(mid_x, 203.0, MECH4),
    ] + _corridor(lane2)


def _rect_phase(mech3_left: bool) -> ChoiceStage:
    return ChoiceStage(
        "rects",
        (
            ("inner", (ChoiceStage("lane2", tuple((str(l), tuple(_inner_rects(l))) for l in range(1, 5))),)),
            (
                "outer",
                (ChoiceStage("lane2", tuple((str(l), tuple(_outer_rects(l, mech3_left))) for l in range(1, 5))),),
            ),
        ),
    )


def _mech3_side(lane: int) -> ChoiceStage:
    options = []
    for label, left in (("L", True), ("R", False)):
        x = -5.0 if left else 5.0
        options.append(
            (
                label,
                (
                    _move(_lane1_end_x(lane, left), 238.5, EXAFLARES_1 + MECH3),
                    _move(x, 228.0, MECH3),
                    _move(x, 223.0, MECH3),
                    _rect_phase(left),
                ),
            )
        )
    return ChoiceStage("mech3", tuple(options))


def _lane1(lanes: Sequence[int]) -> ChoiceStage:
    x = {1: -9.5, 2: -5.5, 3: 5.5, 4: 9.5}
    return ChoiceStage(
        "lane1",
        tuple(
            (str(lane), (_move(x[lane], 255.5, ROTATING + EXAFLARES_1), _mech3_side(lane)))
            for lane in lanes
        ),
    )


STAGES: Tuple[Stage, ...] = (
    ChoiceStage(
        "entry",
        (
            ("L", (_move(-5.5, 270.5, ROTATING), _move(-5.5, 263.5, ROTATING), _lane1((1, 2)))),
            ("R", (_move(5.5, 270.5, ROTATING), _move(5.5, 263.5, ROTATING), _lane1((3, 4)))),
        ),
    ),
)


def describe_strategy(model: HazardModel) -> str:
    """Lane call-out derived from which members were observed first."""
    firsts = model.first_observed()
    if any(firsts[name] is None for name in REQUIRED):
        return ""

    mech2, mech3 = firsts["mech2_exaflares"], firsts["mech3_exaflares"]
    mech4 = firsts["mech4_exaflare"]
    mech3_left = mech3 in (1, 2, 3, 6, 7)
    lane1 = {
        0: 1 if mech3_left else 4,
        1: 1 if mech3_left else 2,
        2: 2 if mech3_left else 3,
        3: 3 if mech3_left else 4,
    }[mech2 % 4]
    # a rect cycle starting outside will have wrapped by the time the agent reaches it
    inner = firsts["mech4_rects_L"] < 5
    lane2 = (mech4 + (0 if inner else 1)) % 4 + 1
    mech6 = firsts["mech6_exaflare"]
    exaflares = [mech2 % 4 + 1, mech3 % 4 + 1, mech4 % 4 + 1, "?" if mech6 is None else mech6 % 4 + 1]
    return (
        f"{'L' if lane1 <= 2 else 'R'} -> {lane1} -> {'L' if mech3_left else 'R'} -> {lane2} "
        f"[{'inner' if inner else 'outer'}, {' '.join(str(e) for e in exaflares)}]"
    )


def _block_prism(grid: SpacetimeGrid, cx: float, cz: float, s: float) -> None:
    grid.block_inside(
        (cx - s, cz - s), (cx + s, cz + s),
        lambda x, z: np.abs(x - cx) + np.abs(z - cz) <= s,
        0.0, grid.max_time, 0.0, 0.0,
    )


def _block_trapezium(grid: SpacetimeGrid, dx1: float, z1: float, dx2: float, z2: float) -> None:
    coeff = (dx2 - dx1) / (z2 - z1)
    const = dx1 - z1 * coeff
    grid.block_inside(
        (-dx2, z2), (dx2, z1),
        lambda x, z: np.abs(x) < const + coeff * z,
        0.0, grid.max_time, 0.0, 0.0,
    )


def _block_corners(grid: SpacetimeGrid, a: Tuple[float, float], b: Tuple[float, float], c: Tuple[float, float]) -> None:
    n1 = (b[1] - a[1], a[0] - b[0])
    n2 = (c[1] - b[1], b[0] - c[0])
    grid.block_inside(
        (-a[0], c[1]), (a[0], a[1]),
        lambda x, z: (n1[0] * (np.abs(x) - a[0]) + n1[1] * (z - a[1]) < 0)
        & (n2[0] * (np.abs(x) - b[0]) + n2[1] * (z - b[1]) < 0),
        0.0, grid.max_time, 0.0, 0.0,
    )


def block_terrain(grid: SpacetimeGrid) -> None:
    """Permanent obstacles: columns, lane walls, prisms, stair and corridor walls."""
    forever = (0.0, grid.max_time, 0.0, 0.0)
    grid.block_circle((-4.0, 292.0), 1.5, *forever)
    grid.block_circle((4.0, 292.0), 1.5, *forever)
    grid.block_aligned_rect(-10.0, -3.3, 285.5, 293.0, *forever)
    grid.block_aligned_rect(3.3, 10.0, 285.5, 293.0, *forever)

    grid.block_aligned_rect(-2.0, 2.0, 271.0, 278.0, *forever)
    grid.block_aligned_rect(-5.5, 5.5, 262.5, 271.0, *forever)

    for zmin, zmax in ((247.5, 256.0), (238.5, 246.5)):
        grid.block_aligned_rect(-9.5, -5.5, zmin, zmax, *forever)
        grid.block_aligned_rect(-2.0, 2.0, zmin, zmax, *forever)
        grid.block_aligned_rect(5.5, 9.5, zmin, zmax, *forever)

    for cx, cz in ((-9.0, 211.0), (9.0, 211.0), (-2.5, 202.0), (2.5, 202.0), (-9.0, 194.0), (9.0, 194.0), (0.0, 188.0)):
        _block_prism(grid, cx, cz, 4.0)

    _block_trapezium(grid, 1.1, 151.5, 3.3, 139.0)
    _block_trapezium(grid, 4.3, 133.5, 8.5, 123.7)
    _block_corners(grid, (14.0, 139.0), (7.0, 136.0), (13.0, 123.0))


DESCENDING_RAMP = VenueConfig(
    name="descending_ramp",
    sequences=SEQUENCES,
    stages=STAGES,
    hit_actions=HIT_ACTIONS,
    cast_actions=CAST_ACTIONS,
    cast_lead_times=CAST_LEAD_TIMES,
    required_sequences=REQUIRED,
    progress_direction=(0.0, 0.0, -1.0),
    bounds=((-14.0, 122.0), (14.0, 324.0)),
    goal=HEIGHT_PROFILE.lift((-8.5, 0.0, 124.0)),
    height_profile=HEIGHT_PROFILE,
    strategy=describe_strategy,
    static_obstacles=block_terrain,
    grid_center=(0.0, 0.0, 223.0),
    grid_half_extents=(14.0, 101.0),
    grid_duration=60.0,
)
