"""Pure vertex/edge edits on a ``MultiPolygon``.

Each function returns a new geometry or raises; the input is never
modified.  A vertex is addressed with a ``VertexRef`` whose
``part_index`` is the flat ring index (see ``MultiPolygon``).
"""

from __future__ import annotations

import logging

from annotation_map.core.constants import MIN_RING_VERTICES
from annotation_map.core.exceptions import EditConstraintViolation
from annotation_map.models.geometry import GeoPoint, MultiPolygon, Ring, VertexRef

logger = logging.getLogger("annotation_map.editing")


def resolve_ring(geometry: MultiPolygon, ref: VertexRef) -> Ring:
    """Return the ring addressed by *ref*, checking the vertex exists.

    Raises:
        EditConstraintViolation: If the ring or vertex does not exist.
    """
    try:
        ring = geometry.ring(ref.part_index)
    except IndexError as exc:
        msg = f"No ring at part index {ref.part_index}"
        raise EditConstraintViolation(msg) from exc
    if not 0 <= ref.local_index < len(ring):
        msg = (
            f"No vertex {ref.local_index} in ring {ref.part_index} "
            f"({len(ring)} vertices)"
        )
        raise EditConstraintViolation(msg)
    return ring


def move_vertex(geometry: MultiPolygon, ref: VertexRef, point: GeoPoint) -> MultiPolygon:
    """Replace the vertex at *ref* with *point*."""
    ring = resolve_ring(geometry, ref)
    return geometry.with_ring(ref.part_index, ring.with_vertex(ref.local_index, point))


def delete_vertex(geometry: MultiPolygon, ref: VertexRef) -> MultiPolygon:
    """Remove the vertex at *ref*.

    Raises:
        EditConstraintViolation: If the ring has only 3 vertices left,
            would keep fewer than 3 distinct vertices, or *ref* does not
            address a vertex.
    """
    ring = resolve_ring(geometry, ref)
    if len(ring) <= MIN_RING_VERTICES:
        msg = (
            f"Cannot delete vertex: ring {ref.part_index} must keep at least "
            f"{MIN_RING_VERTICES} vertices"
        )
        raise EditConstraintViolation(msg)
    updated = ring.without_vertex(ref.local_index)
    if not updated.is_valid:
        msg = (
            f"Cannot delete vertex: ring {ref.part_index} would keep only "
            f"{updated.distinct_count} distinct vertices"
        )
        raise EditConstraintViolation(msg)
    return geometry.with_ring(ref.part_index, updated)


def insert_midpoint(geometry: MultiPolygon, ref: VertexRef) -> MultiPolygon:
    """Insert the midpoint of edge ``local_index -> local_index + 1 (mod n)``.

    The new vertex lands at index ``local_index + 1``.
    """
    ring = resolve_ring(geometry, ref)
    midpoint = ring.edge_midpoint(ref.local_index)
    return geometry.with_ring(ref.part_index, ring.with_inserted(ref.local_index + 1, midpoint))


def densify(geometry: MultiPolygon, *, max_vertices: int) -> MultiPolygon:
    """Insert a midpoint on every edge of every ring.

    Rings that already have ``max_vertices`` or more are left as they are.
    """

    def _densify(ring: Ring) -> Ring:
        if len(ring) >= max_vertices:
            logger.warning(
                "Not densifying ring with %d vertices (limit %d)", len(ring), max_vertices
            )
            return ring
        points: list[GeoPoint] = []
        for index, vertex in enumerate(ring):
            points.append(vertex)
            points.append(ring.edge_midpoint(index))
        return Ring(tuple(points))

    return geometry.map_rings(_densify)


def thin(geometry: MultiPolygon, *, min_vertices: int) -> MultiPolygon:
    """Keep every other vertex of every ring.

    Rings with ``min_vertices`` or fewer, or that would fall below 3
    vertices, are left as they are.
    """

    def _thin(ring: Ring) -> Ring:
        if len(ring) <= min_vertices:
            logger.warning(
                "Not thinning ring with %d vertices (minimum %d)", len(ring), min_vertices
            )
            return ring
        kept = Ring(ring.vertices[::2])
        return kept if kept.is_valid else ring

    return geometry.map_rings(_thin)


def collapse_repeats(points: list[GeoPoint]) -> list[GeoPoint]:
    """Drop consecutive duplicate points (e.g. from a double click)."""
    collapsed: list[GeoPoint] = []
    for point in points:
        if not collapsed or collapsed[-1] != point:
            collapsed.append(point)
    if len(collapsed) > 1 and collapsed[0] == collapsed[-1]:
        collapsed.pop()
    return collapsed
