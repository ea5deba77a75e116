"""WKT codec — POLYGON / MULTIPOLYGON text to and from the geometry model.

The codec is split into focused stages:
- **_constants**: keywords and the keyword pattern
- **_validation**: parenthesis balance, coordinate tokens, ring structure
- **_parser**: paren-aware group splitting into ``MultiPolygon``
- **_serializer**: closed-ring ``lng lat`` text output

Conventions:
- WKT is ``lng lat``; the model is ``(lat, lng)``.  The codec swaps.
- WKT rings are closed; model rings are open.  The codec drops and
  re-adds the closing vertex.
- Inversion ("everywhere except this area") is metadata carried next to
  the WKT in a ``WktRecord`` and never changes the WKT text.

A parse failure raises ``ParseError`` and affects only that one text;
``try_parse`` turns it into ``None`` for batch imports.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from annotation_map.core.exceptions import ParseError
from annotation_map.models.geometry import MultiPolygon, PolygonWithHoles, Ring
from annotation_map.models.polygon import AnnotationPolygon
from annotation_map.wkt._constants import MULTIPOLYGON, POLYGON
from annotation_map.wkt._parser import parse_geometry
from annotation_map.wkt._serializer import format_number, output_ring, write_geometry

if TYPE_CHECKING:
    from annotation_map.models.polygon import AnnotationKind

logger = logging.getLogger("annotation_map.wkt")

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    "MULTIPOLYGON",
    "POLYGON",
    "WktRecord",
    "annotation_from_wkt",
    "annotation_to_wkt",
    "format_number",
    "parse",
    "parse_polygon",
    "serialize",
    "to_record",
    "try_parse",
]


@dataclass(frozen=True, slots=True)
class WktRecord:
    """WKT text plus the metadata that travels beside it.

    Attributes:
        wkt: POLYGON or MULTIPOLYGON text.
        inverted: Whether the area means "everywhere except this region".
    """

    wkt: str
    inverted: bool = False


def parse(text: str) -> MultiPolygon:
    """Parse POLYGON or MULTIPOLYGON text into a ``MultiPolygon``.

    A POLYGON becomes a one-polygon ``MultiPolygon``.

    Raises:
        ParseError: If the text is malformed.
    """
    return parse_geometry(text)


def parse_polygon(text: str) -> PolygonWithHoles:
    """Parse text that must describe exactly one polygon.

    Raises:
        ParseError: If the text is malformed or has several parts.
    """
    geometry = parse_geometry(text)
    if len(geometry.polygons) != 1:
        msg = f"Expected a single polygon, got {len(geometry.polygons)} parts"
        raise ParseError(msg)
    return geometry.polygons[0]


def try_parse(text: str) -> MultiPolygon | None:
    """Parse *text*, logging and returning ``None`` on malformed input."""
    try:
        return parse_geometry(text)
    except ParseError as exc:
        logger.warning("Skipping malformed WKT: %s", exc.message)
        return None


def serialize(
    geometry: MultiPolygon | PolygonWithHoles | Ring,
    *,
    force_multi: bool = False,
) -> str:
    """Serialise a geometry to WKT.

    A single polygon is written as POLYGON unless *force_multi* is set.

    Raises:
        GeometryError: If any ring has fewer than 3 distinct vertices
            once latitudes are clamped and longitudes wrapped.
    """
    rings = (geometry,) if isinstance(geometry, Ring) else geometry.rings()
    for ring in rings:
        output_ring(ring).require_valid("WKT ring")
    return write_geometry(geometry, force_multi=force_multi)


def to_record(
    geometry: MultiPolygon | PolygonWithHoles | Ring,
    *,
    inverted: bool = False,
    force_multi: bool = False,
) -> WktRecord:
    """Serialise *geometry* and attach the inversion flag as metadata."""
    return WktRecord(serialize(geometry, force_multi=force_multi), inverted)


# ---------------------------------------------------------------------------
# AnnotationPolygon bridge
# ---------------------------------------------------------------------------


def annotation_to_wkt(polygon: AnnotationPolygon) -> WktRecord:
    """WKT record for a persisted annotation polygon."""
    return to_record(
        polygon.geometry,
        inverted=polygon.inverted,
        force_multi=polygon.is_multi_polygon,
    )


def annotation_from_wkt(
    polygon_id: str,
    record: WktRecord | str,
    *,
    annotation_kind: AnnotationKind | None = None,
    species_ref: str = "",
) -> AnnotationPolygon:
    """Build an ``AnnotationPolygon`` from stored WKT.

    Raises:
        ParseError: If the WKT is malformed.
        GeometryError: If the geometry has holes (annotation polygons
            hold outer rings only).
    """
    if isinstance(record, str):
        record = WktRecord(record)
    geometry = parse_geometry(record.wkt)
    kwargs: dict[str, object] = {"inverted": record.inverted, "species_ref": species_ref}
    if annotation_kind is not None:
        kwargs["annotation_kind"] = annotation_kind
    polygon = AnnotationPolygon.from_geometry(polygon_id, geometry, **kwargs)
    if record.wkt.lstrip().upper().startswith(MULTIPOLYGON) and not polygon.is_multi_polygon:
        # Keep a one-part MULTIPOLYGON a multipolygon on the way back out.
        return replace(polygon, coordinates=(polygon.coordinates,), is_multi_polygon=True)
    return polygon
