"""
Placement of newly inserted elements.
"""
from .placement import (
    COLLISION_DISTANCE,
    PROBE_OFFSETS,
    collides,
    find_free_position,
    place,
)

__all__ = [
    "COLLISION_DISTANCE",
    "PROBE_OFFSETS",
    "collides",
    "find_free_position",
    "place",
]
