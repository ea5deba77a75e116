"""Data model for a persisted annotation polygon ("rule" geometry).

An ``AnnotationPolygon`` is owned by the host application.  The geometry
engine reads and replaces only its ``coordinates``, ``inverted`` and
``is_multi_polygon`` fields; everything else is carried through
untouched.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime

from annotation_map.core.exceptions import GeometryError
from annotation_map.models.geometry import MultiPolygon, PolygonWithHoles, Ring


class AnnotationKind(enum.StrEnum):
    """What the annotated area says about the species' occurrences."""

    NATIVE = "NATIVE"
    INTRODUCED = "INTRODUCED"
    MANAGED = "MANAGED"
    FORMER = "FORMER"
    VAGRANT = "VAGRANT"
    SUSPICIOUS = "SUSPICIOUS"
    OTHER = "OTHER"


@dataclass(frozen=True, slots=True)
class AnnotationPolygon:
    """A user-drawn area selection.

    Attributes:
        id: Host-assigned identifier.
        coordinates: A single ring, or one ring per part when
            ``is_multi_polygon`` is set.
        is_multi_polygon: Whether ``coordinates`` holds several parts.
        inverted: "Everywhere except this region".  Metadata only; it is
            never baked into the ring content or the WKT.
        annotation_kind: Annotation category for the area.
        species_ref: Opaque species identifier (e.g. a taxon key).
        created_at: Creation timestamp (UTC).
    """

    id: str
    coordinates: Ring | tuple[Ring, ...]
    is_multi_polygon: bool = False
    inverted: bool = False
    annotation_kind: AnnotationKind = AnnotationKind.SUSPICIOUS
    species_ref: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if isinstance(self.coordinates, list):
            object.__setattr__(self, "coordinates", tuple(self.coordinates))

    # -- geometry bridge ----------------------------------------------------

    @property
    def geometry(self) -> MultiPolygon:
        """The coordinates as a ``MultiPolygon`` (one hole-free polygon per part)."""
        if isinstance(self.coordinates, Ring):
            return MultiPolygon.from_ring(self.coordinates)
        return MultiPolygon.from_rings(self.coordinates)

    def with_geometry(self, geometry: MultiPolygon) -> AnnotationPolygon:
        """Return a copy whose coordinates are taken from *geometry*.

        A single ring stays a plain polygon; several polygons become a
        multipolygon with one part per outer ring.

        Raises:
            GeometryError: If *geometry* is empty or any polygon has
                holes; the persisted entity has no slot for them.
        """
        if not geometry.polygons:
            msg = f"Annotation polygon {self.id!r} needs at least one ring"
            raise GeometryError(msg)
        if any(poly.holes for poly in geometry.polygons):
            msg = f"Annotation polygon {self.id!r} cannot hold holes"
            raise GeometryError(msg)
        rings = geometry.rings()
        if len(rings) == 1:
            return replace(self, coordinates=rings[0], is_multi_polygon=False)
        return replace(self, coordinates=tuple(rings), is_multi_polygon=True)

    @classmethod
    def from_geometry(
        cls,
        polygon_id: str,
        geometry: MultiPolygon | PolygonWithHoles | Ring,
        **kwargs: object,
    ) -> AnnotationPolygon:
        """Build an annotation from any geometry value."""
        if isinstance(geometry, Ring):
            geometry = MultiPolygon.from_ring(geometry)
        elif isinstance(geometry, PolygonWithHoles):
            geometry = MultiPolygon((geometry,))
        seed = cls(id=polygon_id, coordinates=Ring(), **kwargs)  # type: ignore[arg-type]
        return seed.with_geometry(geometry)

    # -- transport ----------------------------------------------------------

    def to_dict(self) -> dict[str, object]:
        """Serialise to a plain dict with ``[lat, lng]`` coordinate lists."""
        if isinstance(self.coordinates, Ring):
            coords: object = self.coordinates.to_pairs()
        else:
            coords = [ring.to_pairs() for ring in self.coordinates]
        return {
            "id": self.id,
            "coordinates": coords,
            "is_multi_polygon": self.is_multi_polygon,
            "inverted": self.inverted,
            "annotation_kind": self.annotation_kind.value,
            "species_ref": self.species_ref,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> AnnotationPolygon:
        """Deserialise from a plain dict payload.

        Missing optional fields are defaulted rather than raising.

        Raises:
            TypeError: If field values have unexpected types.
            ValueError: If ``annotation_kind`` is not a known kind.
        """
        coords_raw = data.get("coordinates", [])
        if not isinstance(coords_raw, list):
            msg = f"coordinates must be a list, got {type(coords_raw).__name__}"
            raise TypeError(msg)

        is_multi = _as_bool(data.get("is_multi_polygon", False))
        if is_multi:
            coordinates: Ring | tuple[Ring, ...] = tuple(
                Ring.from_pairs(part) for part in coords_raw  # type: ignore[arg-type]
            )
        else:
            coordinates = Ring.from_pairs(coords_raw)  # type: ignore[arg-type]

        created_raw = data.get("created_at", "")
        created_at = (
            datetime.fromisoformat(str(created_raw)) if created_raw else datetime.now(UTC)
        )

        return cls(
            id=str(data.get("id", "")),
            coordinates=coordinates,
            is_multi_polygon=is_multi,
            inverted=_as_bool(data.get("inverted", False)),
            annotation_kind=AnnotationKind(
                str(data.get("annotation_kind", AnnotationKind.SUSPICIOUS.value)).upper()
            ),
            species_ref=str(data.get("species_ref", "")),
            created_at=created_at,
        )

    @property
    def vertex_count(self) -> int:
        """Total number of vertices over all parts."""
        return sum(len(r) for r in self.geometry.rings())


def _as_bool(value: object) -> bool:
    """Read a boolean flag from a dict payload.

    Strings are compared case-insensitively with ``"true"``, so a
    string ``"false"`` stays ``False``.

    A missing (``None``) flag is ``False``.

    Raises:
        TypeError: If *value* is not a bool, int or string.
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    if isinstance(value, int):
        return value != 0
    msg = f"Expected a boolean flag, got {type(value).__name__}"
    raise TypeError(msg)
