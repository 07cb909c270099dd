"""Utilities package for hazardroute."""

from .geometry import *  # noqa: F401,F403
