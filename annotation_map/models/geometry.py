"""Polygon geometry model: points, rings, polygons with holes, multipolygons.

All types are immutable.  Every edit returns a new value, so a failed
operation can never leave a half-mutated ring behind.

Coordinates are held in ``(lat, lng)`` order, the order the map uses.
WKT's ``lng lat`` order is handled only by the ``annotation_map.wkt``
codec.

Rings are stored *open*: the closing vertex (first == last) is a WKT and
rendering convention produced by ``Ring.closed()``, not part of the
in-memory value.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from annotation_map.core.constants import (
    LATITUDE_BAND_EDGE_BUFFER,
    LATITUDE_BAND_MAX_LAT,
    LATITUDE_BAND_MIN_HEIGHT,
    MAX_LONGITUDE,
    MIN_LONGITUDE,
    MIN_RING_VERTICES,
    VERTEX_PART_STRIDE,
    WEB_MERCATOR_MAX_LAT,
)
from annotation_map.core.exceptions import GeometryError

if TYPE_CHECKING:
    import shapely.geometry

# ---------------------------------------------------------------------------
# Coordinate helpers
# ---------------------------------------------------------------------------


def clamp_latitude(lat: float) -> float:
    """Clamp *lat* to the Web Mercator range ``±85.0511287798``."""
    return max(-WEB_MERCATOR_MAX_LAT, min(WEB_MERCATOR_MAX_LAT, lat))


def normalize_longitude(lng: float) -> float:
    """Wrap *lng* into ``[-180, 180]``.

    Values already inside the range are returned unchanged, so ``180``
    and ``-180`` both survive.
    """
    if MIN_LONGITUDE <= lng <= MAX_LONGITUDE:
        return lng
    wrapped = math.fmod(lng + 180.0, 360.0)
    if wrapped < 0:
        wrapped += 360.0
    return wrapped - 180.0


def is_within_bounds(lat: float, lng: float) -> bool:
    """Whether ``(lat, lng)`` lies inside the displayable map area."""
    return (
        -WEB_MERCATOR_MAX_LAT <= lat <= WEB_MERCATOR_MAX_LAT
        and MIN_LONGITUDE <= lng <= MAX_LONGITUDE
    )


# ---------------------------------------------------------------------------
# GeoPoint
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """A geographic position in degrees.

    Attributes:
        lat: Latitude. Clamped to the Web Mercator range before projection.
        lng: Longitude. Unrestricted; wraps around the antimeridian.
    """

    lat: float
    lng: float

    @classmethod
    def from_pair(cls, pair: Sequence[float]) -> GeoPoint:
        """Build from a ``[lat, lng]`` pair.

        Raises:
            TypeError: If *pair* does not hold two numbers.
        """
        if len(pair) < 2:
            msg = f"Coordinate pair needs 2 elements, got {len(pair)}"
            raise TypeError(msg)
        return cls(float(pair[0]), float(pair[1]))

    def as_tuple(self) -> tuple[float, float]:
        return (self.lat, self.lng)

    def clamped(self) -> GeoPoint:
        """Return this point with latitude clamped for projection."""
        lat = clamp_latitude(self.lat)
        if lat == self.lat:
            return self
        return GeoPoint(lat, self.lng)

    def translate(self, d_lat: float, d_lng: float) -> GeoPoint:
        return GeoPoint(self.lat + d_lat, self.lng + d_lng)

    def midpoint(self, other: GeoPoint) -> GeoPoint:
        """Arithmetic midpoint in geographic space."""
        return GeoPoint((self.lat + other.lat) / 2, (self.lng + other.lng) / 2)


# ---------------------------------------------------------------------------
# Ring
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Ring:
    """An ordered, open sequence of vertices bounding a simple polygon.

    A *valid* ring has at least 3 distinct vertices.  Construction does
    not enforce this so that drawing previews and parse intermediates can
    be represented; commit boundaries call ``require_valid()``.
    """

    vertices: tuple[GeoPoint, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.vertices, tuple):
            object.__setattr__(self, "vertices", tuple(self.vertices))

    @classmethod
    def from_pairs(cls, pairs: Iterable[Sequence[float]]) -> Ring:
        """Build an open ring from ``[lat, lng]`` pairs.

        A trailing vertex equal to the first is dropped, so closed input
        is accepted too.
        """
        points = [GeoPoint.from_pair(p) for p in pairs]
        if len(points) > 1 and points[0] == points[-1]:
            points.pop()
        return cls(tuple(points))

    def to_pairs(self) -> list[list[float]]:
        """Return vertices as ``[lat, lng]`` lists (open ring)."""
        return [[p.lat, p.lng] for p in self.vertices]

    def __len__(self) -> int:
        return len(self.vertices)

    def __iter__(self) -> Iterator[GeoPoint]:
        return iter(self.vertices)

    def __getitem__(self, index: int) -> GeoPoint:
        return self.vertices[index]

    # -- properties ---------------------------------------------------------

    @property
    def distinct_count(self) -> int:
        return len(set(self.vertices))

    @property
    def is_valid(self) -> bool:
        """Whether the ring has at least 3 distinct vertices."""
        return self.distinct_count >= MIN_RING_VERTICES

    def require_valid(self, context: str = "ring") -> Ring:
        """Return self, or raise ``GeometryError`` if fewer than 3 vertices.

        Raises:
            GeometryError: If the ring has fewer than 3 distinct vertices.
        """
        if not self.is_valid:
            msg = (
                f"{context} has {self.distinct_count} distinct vertex(es), "
                f"need at least {MIN_RING_VERTICES}"
            )
            raise GeometryError(msg)
        return self

    def closed(self) -> tuple[GeoPoint, ...]:
        """Return the vertices with the first one repeated at the end."""
        if not self.vertices:
            return ()
        return (*self.vertices, self.vertices[0])

    def bounds(self) -> tuple[float, float, float, float]:
        """Return ``(min_lat, min_lng, max_lat, max_lng)``.

        Raises:
            GeometryError: If the ring is empty.
        """
        if not self.vertices:
            msg = "Cannot compute bounds of an empty ring"
            raise GeometryError(msg)
        lats = [p.lat for p in self.vertices]
        lngs = [p.lng for p in self.vertices]
        return (min(lats), min(lngs), max(lats), max(lngs))

    # -- edits (return new rings) ------------------------------------------

    def edge_midpoint(self, index: int) -> GeoPoint:
        """Midpoint of the edge from vertex *index* to ``(index + 1) mod n``."""
        n = len(self.vertices)
        return self.vertices[index].midpoint(self.vertices[(index + 1) % n])

    def with_vertex(self, index: int, point: GeoPoint) -> Ring:
        verts = list(self.vertices)
        verts[index] = point
        return Ring(tuple(verts))

    def with_inserted(self, index: int, point: GeoPoint) -> Ring:
        """Insert *point* so that it becomes vertex *index*."""
        verts = list(self.vertices)
        verts.insert(index, point)
        return Ring(tuple(verts))

    def without_vertex(self, index: int) -> Ring:
        verts = list(self.vertices)
        del verts[index]
        return Ring(tuple(verts))

    def translate(self, d_lat: float, d_lng: float) -> Ring:
        return Ring(tuple(p.translate(d_lat, d_lng) for p in self.vertices))

    def to_shapely(self) -> shapely.geometry.Polygon:
        """Return a Shapely polygon in ``(lng, lat)`` axis order."""
        from shapely.geometry import Polygon

        return Polygon([(p.lng, p.lat) for p in self.vertices])


# ---------------------------------------------------------------------------
# Polygons
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PolygonWithHoles:
    """An outer ring plus zero or more hole rings."""

    outer: Ring
    holes: tuple[Ring, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.holes, tuple):
            object.__setattr__(self, "holes", tuple(self.holes))

    def rings(self) -> tuple[Ring, ...]:
        """Outer ring first, then holes."""
        return (self.outer, *self.holes)

    def with_ring(self, ring_index: int, ring: Ring) -> PolygonWithHoles:
        if ring_index == 0:
            return PolygonWithHoles(ring, self.holes)
        holes = list(self.holes)
        holes[ring_index - 1] = ring
        return PolygonWithHoles(self.outer, tuple(holes))

    def translate(self, d_lat: float, d_lng: float) -> PolygonWithHoles:
        return PolygonWithHoles(
            self.outer.translate(d_lat, d_lng),
            tuple(h.translate(d_lat, d_lng) for h in self.holes),
        )

    def to_shapely(self) -> shapely.geometry.Polygon:
        """Return a Shapely polygon in ``(lng, lat)`` axis order."""
        from shapely.geometry import Polygon

        return Polygon(
            [(p.lng, p.lat) for p in self.outer],
            [[(p.lng, p.lat) for p in hole] for hole in self.holes],
        )


@dataclass(frozen=True, slots=True)
class MultiPolygon:
    """A set of independent polygons, each optionally with holes.

    Rings are addressed in flat order: polygon 0's outer ring, its holes,
    then polygon 1's outer ring and so on.  That flat position is the
    ``part_index`` of a ``VertexRef``.
    """

    polygons: tuple[PolygonWithHoles, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.polygons, tuple):
            object.__setattr__(self, "polygons", tuple(self.polygons))

    @classmethod
    def from_ring(cls, ring: Ring) -> MultiPolygon:
        return cls((PolygonWithHoles(ring),))

    @classmethod
    def from_rings(cls, rings: Iterable[Ring]) -> MultiPolygon:
        """One hole-free polygon per ring."""
        return cls(tuple(PolygonWithHoles(r) for r in rings))

    def __len__(self) -> int:
        return len(self.polygons)

    def rings(self) -> tuple[Ring, ...]:
        return tuple(ring for poly in self.polygons for ring in poly.rings())

    @property
    def ring_count(self) -> int:
        return sum(1 + len(poly.holes) for poly in self.polygons)

    def locate(self, part_index: int) -> tuple[int, int]:
        """Map a flat ring index to ``(polygon_index, ring_index)``.

        Raises:
            IndexError: If *part_index* does not address a ring.
        """
        if part_index >= 0:
            remaining = part_index
            for poly_index, poly in enumerate(self.polygons):
                count = 1 + len(poly.holes)
                if remaining < count:
                    return poly_index, remaining
                remaining -= count
        msg = f"Ring index {part_index} out of range (have {self.ring_count})"
        raise IndexError(msg)

    def ring(self, part_index: int) -> Ring:
        poly_index, ring_index = self.locate(part_index)
        return self.polygons[poly_index].rings()[ring_index]

    def with_ring(self, part_index: int, ring: Ring) -> MultiPolygon:
        poly_index, ring_index = self.locate(part_index)
        polygons = list(self.polygons)
        polygons[poly_index] = polygons[poly_index].with_ring(ring_index, ring)
        return MultiPolygon(tuple(polygons))

    def map_rings(self, fn: Callable[[Ring], Ring]) -> MultiPolygon:
        """Apply ``fn(ring) -> Ring`` to every ring."""
        return MultiPolygon(
            tuple(
                PolygonWithHoles(fn(poly.outer), tuple(fn(h) for h in poly.holes))
                for poly in self.polygons
            )
        )

    def translate(self, d_lat: float, d_lng: float) -> MultiPolygon:
        return MultiPolygon(tuple(p.translate(d_lat, d_lng) for p in self.polygons))

    def all_points(self) -> Iterator[GeoPoint]:
        for ring in self.rings():
            yield from ring

    def to_shapely(self) -> shapely.geometry.MultiPolygon:
        """Return a Shapely multipolygon in ``(lng, lat)`` axis order."""
        from shapely.geometry import MultiPolygon as ShapelyMultiPolygon

        return ShapelyMultiPolygon([poly.to_shapely() for poly in self.polygons])


# ---------------------------------------------------------------------------
# Vertex references
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class VertexRef:
    """Addresses one vertex: flat ring index plus index within the ring.

    Hosts that can only report a single number per UI element use the
    packed form ``part_index * 10000 + local_index`` via ``encode`` and
    ``decode``.  Both sides of the packing are limited to 10000.
    """

    part_index: int
    local_index: int

    def encode(self) -> int:
        """Pack into ``part_index * 10000 + local_index``.

        Raises:
            ValueError: If either index is negative or ``>= 10000``.
        """
        _check_packable("part_index", self.part_index)
        _check_packable("local_index", self.local_index)
        return self.part_index * VERTEX_PART_STRIDE + self.local_index

    @classmethod
    def decode(cls, packed: int) -> VertexRef:
        """Unpack a host integer reference.

        Raises:
            ValueError: If *packed* is negative or the part index
                exceeds the packing limit.
        """
        if packed < 0:
            msg = f"Packed vertex reference must be >= 0, got {packed}"
            raise ValueError(msg)
        part_index, local_index = divmod(packed, VERTEX_PART_STRIDE)
        _check_packable("part_index", part_index)
        return cls(part_index, local_index)

    def as_tuple(self) -> tuple[int, int]:
        return (self.part_index, self.local_index)


def _check_packable(name: str, value: int) -> None:
    if not 0 <= value < VERTEX_PART_STRIDE:
        msg = f"{name} {value} outside packable range [0, {VERTEX_PART_STRIDE})"
        raise ValueError(msg)


# ---------------------------------------------------------------------------
# Shape builders
# ---------------------------------------------------------------------------


def rectangle_ring(corner: GeoPoint, opposite: GeoPoint) -> Ring:
    """Axis-aligned rectangle from two opposite corners.

    The closed form is ``[corner, (corner.lat, opposite.lng), opposite,
    (opposite.lat, corner.lng), corner]``.
    """
    return Ring(
        (
            corner,
            GeoPoint(corner.lat, opposite.lng),
            opposite,
            GeoPoint(opposite.lat, corner.lng),
        )
    )


def latitude_band_ring(south: float, north: float) -> Ring:
    """Ring spanning almost all longitudes between two latitudes.

    Latitudes are clamped to ``±85`` and the longitude edges are pulled in
    by 0.4° so the band never touches the antimeridian.

    Raises:
        GeometryError: If the band is less than 0.5° tall after clamping.
    """
    north = min(LATITUDE_BAND_MAX_LAT, north)
    south = max(-LATITUDE_BAND_MAX_LAT, south)
    if north - south < LATITUDE_BAND_MIN_HEIGHT:
        msg = (
            f"Latitude band {south}..{north} is narrower than "
            f"{LATITUDE_BAND_MIN_HEIGHT} degrees"
        )
        raise GeometryError(msg)
    min_lng = MIN_LONGITUDE + LATITUDE_BAND_EDGE_BUFFER
    max_lng = MAX_LONGITUDE - LATITUDE_BAND_EDGE_BUFFER
    return Ring(
        (
            GeoPoint(south, min_lng),
            GeoPoint(north, min_lng),
            GeoPoint(north, max_lng),
            GeoPoint(south, max_lng),
        )
    )


def world_boundary_ring() -> Ring:
    """The full Web Mercator surface, used as the outer ring of inverted previews."""
    lat = WEB_MERCATOR_MAX_LAT
    south = [GeoPoint(-lat, lng) for lng in (-180.0, -90.0, 0.0, 90.0, 180.0)]
    north = [GeoPoint(lat, lng) for lng in (180.0, 90.0, 0.0, -90.0, -180.0)]
    return Ring(tuple(south + north))
