"""Data models.

Defines the value types used throughout the engine:
- GeoPoint, Ring, PolygonWithHoles, MultiPolygon: geometry in ``(lat, lng)``
- VertexRef: ``(part_index, local_index)`` vertex address
- PixelPoint, WorldPoint, ViewportSize, ViewState: the map's planar frames
- AnnotationPolygon: the host-owned persisted area selection
"""

from annotation_map.models.geometry import (
    GeoPoint,
    MultiPolygon,
    PolygonWithHoles,
    Ring,
    VertexRef,
    clamp_latitude,
    is_within_bounds,
    latitude_band_ring,
    normalize_longitude,
    rectangle_ring,
    world_boundary_ring,
)
from annotation_map.models.polygon import AnnotationKind, AnnotationPolygon
from annotation_map.models.view import PixelPoint, ViewportSize, ViewState, WorldPoint

__all__ = [
    "AnnotationKind",
    "AnnotationPolygon",
    "GeoPoint",
    "MultiPolygon",
    "PixelPoint",
    "PolygonWithHoles",
    "Ring",
    "VertexRef",
    "ViewState",
    "ViewportSize",
    "WorldPoint",
    "clamp_latitude",
    "is_within_bounds",
    "latitude_band_ring",
    "normalize_longitude",
    "rectangle_ring",
    "world_boundary_ring",
]
