#!/usr/bin/env python3
"""
Proving ground demo.

Feeds one observed activation of the proving ground circle into a session
and prints the resulting timed route.

Usage:
    python -m hazardroute --hit-at -0.5 --planner branching
"""

import argparse
import sys

from .config import EngineConfig, GridConfig, PLANNER_KINDS
from .session import VenueSession
from .venues.proving_ground import CIRCLE_HIT, PROVING_GROUND, START


def format_plan(session: VenueSession) -> str:
    lines = [f"status: {session.status.value}"]
    if session.plan.reachable:
        lines.append(f"finish: {session.plan.finish_time:.3f}s")
    for i, waypoint in enumerate(session.waypoints):
        x, y, z = waypoint.dest
        start = "now" if waypoint.start_move_at is None else f"{waypoint.start_move_at:.3f}s"
        lines.append(f"  {i}: ({x:.2f}, {y:.2f}, {z:.2f}) start {start}")
    return "\n".join(lines)


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Plan a timed route across the proving ground")
    parser.add_argument(
        "--hit-at",
        type=float,
        default=-0.5,
        help="Instant (s) the circle was last seen activating; the agent starts at 0",
    )
    parser.add_argument("--planner", choices=PLANNER_KINDS, default="branching")
    parser.add_argument("--speed", type=float, default=None, help="Agent speed override")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)

    kwargs = {"planner": args.planner, "enable_logging": args.verbose}
    if args.speed is not None:
        kwargs["speed"] = args.speed
    try:
        config = EngineConfig(grid=GridConfig(time_resolution=0.1), **kwargs)
    except ValueError as e:
        parser.error(str(e))

    circle = PROVING_GROUND.sequences[0].members[0][0]
    session = VenueSession(PROVING_GROUND, config)
    session.tick(args.hit_at, START)
    session.observe_hit(CIRCLE_HIT, circle, args.hit_at)
    session.tick(0.0, START)

    print(format_plan(session))
    return 0 if session.plan.reachable else 1


if __name__ == "__main__":
    sys.exit(main())
