"""Projection engine and view-state tracking.

- mercator: pure Web Mercator geo/world/pixel transforms
- view_state: live view plus the frozen stable snapshot used for saved overlays
"""

from annotation_map.projection.mercator import (
    forward,
    inverse,
    pixel_distance,
    project,
    project_ring,
    world_scale,
    world_to_pixel,
)
from annotation_map.projection.view_state import ViewStateTracker

__all__ = [
    "ViewStateTracker",
    "forward",
    "inverse",
    "pixel_distance",
    "project",
    "project_ring",
    "world_scale",
    "world_to_pixel",
]
