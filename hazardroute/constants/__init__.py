"""Shared constants for the hazard timing model and route planner."""

from .movement_constants import *  # noqa: F401,F403
