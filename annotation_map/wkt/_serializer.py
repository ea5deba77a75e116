"""Geometry to WKT text.

Output conventions:
- rings are closed (first vertex repeated at the end),
- coordinates are written ``lng lat``,
- latitude is clamped to the Web Mercator range and longitude wrapped
  into ``[-180, 180]``,
- numbers use the shortest text that round-trips the float exactly.
"""

from __future__ import annotations

from annotation_map.models.geometry import (
    GeoPoint,
    MultiPolygon,
    PolygonWithHoles,
    Ring,
    clamp_latitude,
    normalize_longitude,
)
from annotation_map.wkt._constants import MULTIPOLYGON, POLYGON


def format_number(value: float) -> str:
    """Shortest exact text for *value* (``10`` rather than ``10.0``)."""
    value = float(value)
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(value)


def output_ring(ring: Ring) -> Ring:
    """*ring* as it will be written: latitude clamped, longitude wrapped."""
    return Ring(
        tuple(GeoPoint(clamp_latitude(p.lat), normalize_longitude(p.lng)) for p in ring)
    )


def format_ring(ring: Ring) -> str:
    """``(lng lat, ..., lng lat)`` with the closing vertex re-added."""
    pairs = ", ".join(
        f"{format_number(p.lng)} {format_number(p.lat)}" for p in output_ring(ring).closed()
    )
    return f"({pairs})"


def format_polygon(polygon: PolygonWithHoles) -> str:
    rings = ", ".join(format_ring(r) for r in polygon.rings())
    return f"({rings})"


def write_geometry(
    geometry: MultiPolygon | PolygonWithHoles | Ring,
    *,
    force_multi: bool = False,
) -> str:
    """Serialise *geometry*; a single polygon becomes POLYGON unless *force_multi*."""
    if isinstance(geometry, Ring):
        geometry = MultiPolygon.from_ring(geometry)
    elif isinstance(geometry, PolygonWithHoles):
        geometry = MultiPolygon((geometry,))

    if len(geometry.polygons) == 1 and not force_multi:
        return f"{POLYGON} {format_polygon(geometry.polygons[0])}"
    polygons = ", ".join(format_polygon(p) for p in geometry.polygons)
    return f"{MULTIPOLYGON} ({polygons})"
