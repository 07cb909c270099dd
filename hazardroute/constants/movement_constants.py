"""
Centralized movement, matching and geometry constants.
All timing/geometry tunables should be defined here to avoid duplication.
"""

import math

# === AGENT MOVEMENT ===
AGENT_SPEED = 6.0  # Ground speed in world units per second
INV_AGENT_SPEED = 1.0 / AGENT_SPEED  # Seconds per world unit

# === TELEMETRY MATCHING ===
MATCH_TOLERANCE_SQ = 1.0  # Max squared distance between caster and hazard origin
DEFAULT_CAST_LEAD_TIME = 1.0  # Seconds between cast start and activation

# === GEOMETRY ===
PARALLEL_EPSILON = 1e-6  # Direction component treated as parallel to a slab
DEGENERATE_LENGTH = 1e-9  # Vectors shorter than this have no direction
MIN_CIRCLE_SEGMENTS = 4
MAX_CIRCLE_SEGMENTS = 512
DEFAULT_TESSELLATION_ERROR = 0.1  # Max chord deviation from the arc (world units)

# === PLANNING ===
UNREACHABLE = math.inf  # Finish time of a branch with no safe solution
TIME_EPSILON = 1e-6  # Tolerance when comparing absolute instants
DISTANCE_EPSILON = 1e-6  # Cursor this close to a boundary counts as on it

# === SPACETIME GRID ===
DEFAULT_SPACE_RESOLUTION = 0.5  # World units per voxel
DEFAULT_TIME_RESOLUTION = 0.25  # Seconds per voxel
