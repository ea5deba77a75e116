"""Web Mercator projection engine.

Pure, stateless conversion between three frames:

- **geographic** ``GeoPoint(lat, lng)`` in degrees,
- **world** ``WorldPoint(x, y)`` on a ``256 * 2**zoom`` pixel square,
- **pixel** ``PixelPoint(x, y)`` relative to the viewport's top-left.

Live and stable overlays both call ``project``; they differ only in the
center and zoom they pass, so freshly drawn and previously saved
geometry always land on the same pixels.

Latitude is clamped to ``±85.0511287798`` before every forward transform
and after every inverse one.  Non-finite output therefore signals a
programming error and raises ``ProjectionError``.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from annotation_map.core.constants import TILE_SIZE
from annotation_map.core.exceptions import ProjectionError
from annotation_map.models.geometry import GeoPoint, clamp_latitude
from annotation_map.models.view import PixelPoint, ViewportSize, WorldPoint


def world_scale(zoom: float) -> float:
    """Width of the world plane in pixels at *zoom*."""
    return TILE_SIZE * math.pow(2.0, zoom)


def forward(geo: GeoPoint, zoom: float) -> WorldPoint:
    """Project a geographic point onto the world plane.

    Raises:
        ProjectionError: If the result is not finite.
    """
    scale = world_scale(zoom)
    lat_rad = math.radians(clamp_latitude(geo.lat))
    x = (geo.lng + 180.0) / 360.0 * scale
    mercator_y = math.log(math.tan(math.pi / 4 + lat_rad / 2))
    y = (1 - mercator_y / math.pi) / 2 * scale
    _check_finite(x, y, "forward", geo)
    return WorldPoint(x, y)


def world_to_pixel(
    world: WorldPoint,
    center_world: WorldPoint,
    viewport: ViewportSize,
) -> PixelPoint:
    """Translate a world point into viewport pixels around *center_world*."""
    return PixelPoint(
        world.x - center_world.x + viewport.width / 2,
        world.y - center_world.y + viewport.height / 2,
    )


def project(
    geo: GeoPoint,
    center: GeoPoint,
    zoom: float,
    viewport: ViewportSize,
) -> PixelPoint:
    """Geographic point to viewport pixel for a view centred on *center*."""
    return world_to_pixel(forward(geo, zoom), forward(center, zoom), viewport)


def project_ring(
    points: Iterable[GeoPoint],
    center: GeoPoint,
    zoom: float,
    viewport: ViewportSize,
) -> list[PixelPoint]:
    """``project`` applied to every point, sharing one center transform."""
    center_world = forward(center, zoom)
    return [world_to_pixel(forward(p, zoom), center_world, viewport) for p in points]


def inverse(
    pixel: PixelPoint,
    center: GeoPoint,
    zoom: float,
    viewport: ViewportSize,
) -> GeoPoint:
    """Viewport pixel back to a geographic point.

    Exact inverse of ``project`` for latitudes inside the Web Mercator
    range; the returned latitude is re-clamped.

    Raises:
        ProjectionError: If the result is not finite.
    """
    center_world = forward(center, zoom)
    world_x = center_world.x + (pixel.x - viewport.width / 2)
    world_y = center_world.y + (pixel.y - viewport.height / 2)

    scale = world_scale(zoom)
    lng = world_x / scale * 360.0 - 180.0
    mercator_y = math.pi * (1 - 2 * world_y / scale)
    lat = math.degrees(math.atan(math.sinh(mercator_y)))
    _check_finite(lat, lng, "inverse", pixel)
    return GeoPoint(clamp_latitude(lat), lng)


def pixel_distance(a: PixelPoint, b: PixelPoint) -> float:
    """Euclidean distance between two pixels."""
    return math.hypot(b.x - a.x, b.y - a.y)


def _check_finite(a: float, b: float, operation: str, source: object) -> None:
    if not (math.isfinite(a) and math.isfinite(b)):
        msg = f"{operation} produced non-finite output ({a}, {b}) for {source!r}"
        raise ProjectionError(msg)
