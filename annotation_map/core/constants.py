"""Shared geometry-engine constants — single source of truth.

Centralises projection limits, ring-size rules and interop encodings
that would otherwise be duplicated across projection, editing and the
WKT codec.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Web Mercator (EPSG:3857) limits
# ---------------------------------------------------------------------------

WEB_MERCATOR_MAX_LAT: float = 85.0511287798
"""Largest latitude representable by Web Mercator (degrees)."""

MIN_LONGITUDE: float = -180.0
MAX_LONGITUDE: float = 180.0

TILE_SIZE: int = 256
"""World size in pixels at zoom 0."""

# ---------------------------------------------------------------------------
# Ring rules
# ---------------------------------------------------------------------------

MIN_RING_VERTICES: int = 3
"""Minimum distinct vertices for a polygon ring (closure not counted)."""

# ---------------------------------------------------------------------------
# Host vertex-reference interop
# ---------------------------------------------------------------------------

VERTEX_PART_STRIDE: int = 10_000
"""Packed vertex reference is ``part_index * stride + local_index``."""

# ---------------------------------------------------------------------------
# Drawing helpers
# ---------------------------------------------------------------------------

DEFAULT_DRAG_THRESHOLD_PX: float = 5.0
"""Shape drags shorter than this are treated as accidental clicks."""

LATITUDE_BAND_EDGE_BUFFER: float = 0.4
"""Degrees kept clear of the antimeridian on each side of a latitude band."""

LATITUDE_BAND_MAX_LAT: float = 85.0
LATITUDE_BAND_MIN_HEIGHT: float = 0.5

DEFAULT_DENSIFY_MAX_VERTICES: int = 100
DEFAULT_THIN_MIN_VERTICES: int = 6
