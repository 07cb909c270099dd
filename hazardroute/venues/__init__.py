"""
Bundled venue data and runtime venue selection.
"""

from typing import Dict, Optional

from ..utils.geometry import Vec3
from .venue_config import HeightProfile, SequenceLayout, VenueConfig
from .descending_ramp import DESCENDING_RAMP
from .proving_ground import PROVING_GROUND

VENUES: Dict[str, VenueConfig] = {
    DESCENDING_RAMP.name: DESCENDING_RAMP,
    PROVING_GROUND.name: PROVING_GROUND,
}


def get_venue(name: str) -> VenueConfig:
    try:
        return VENUES[name]
    except KeyError:
        raise KeyError(f"Unknown venue: {name}. Available: {', '.join(sorted(VENUES))}") from None


def select_venue(position: Vec3) -> Optional[VenueConfig]:
    """First registered venue whose bounds contain position, if any."""
    for venue in VENUES.values():
        if venue.contains(position):
            return venue
    return None


__all__ = [
    "HeightProfile",
    "SequenceLayout",
    "VenueConfig",
    "DESCENDING_RAMP",
    "PROVING_GROUND",
    "VENUES",
    "get_venue",
    "select_venue",
]
