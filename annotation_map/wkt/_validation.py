"""Validation helpers for WKT parsing.

Responsibilities:
- Parenthesis balance checking
- Coordinate token parsing (numeric, finite)
- Ring closure de-duplication and minimum distinct vertex count
"""

from __future__ import annotations

import logging
import math

from annotation_map.core.constants import MIN_RING_VERTICES
from annotation_map.core.exceptions import ParseError
from annotation_map.models.geometry import GeoPoint, Ring

logger = logging.getLogger("annotation_map.wkt")


# ---------------------------------------------------------------------------
# Parentheses
# ---------------------------------------------------------------------------


def validate_balanced(text: str, offset: int = 0) -> None:
    """Check that parentheses in *text* are balanced.

    Raises:
        ParseError: On a stray ``)`` or an unclosed ``(``.
    """
    depth = 0
    for index, char in enumerate(text):
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                msg = f"Unbalanced parentheses: unexpected ')' at position {offset + index}"
                raise ParseError(msg, position=offset + index)
    if depth != 0:
        msg = f"Unbalanced parentheses: {depth} unclosed '('"
        raise ParseError(msg, position=offset + len(text))


# ---------------------------------------------------------------------------
# Coordinates
# ---------------------------------------------------------------------------


def parse_coordinate(token: str, offset: int) -> GeoPoint:
    """Parse one ``"lng lat"`` WKT pair into a ``(lat, lng)`` GeoPoint.

    Ordinates after the first two (Z, M) are ignored.

    Raises:
        ParseError: If the pair has fewer than 2 ordinates or any
            ordinate is not a finite number.
    """
    parts = token.split()
    if len(parts) < 2:
        msg = f"Coordinate {token.strip()!r} at position {offset} needs 'lng lat'"
        raise ParseError(msg, position=offset)
    try:
        lng = float(parts[0])
        lat = float(parts[1])
    except ValueError as exc:
        msg = f"Non-numeric coordinate {token.strip()!r} at position {offset}"
        raise ParseError(msg, position=offset) from exc
    if not (math.isfinite(lng) and math.isfinite(lat)):
        msg = f"Non-finite coordinate {token.strip()!r} at position {offset}"
        raise ParseError(msg, position=offset)
    return GeoPoint(lat, lng)


# ---------------------------------------------------------------------------
# Ring structure
# ---------------------------------------------------------------------------


def validate_ring(points: list[GeoPoint], offset: int) -> Ring:
    """Drop the closing duplicate and enforce 3 distinct vertices.

    Returns the open ring.

    Raises:
        ParseError: If fewer than 3 distinct vertices remain.
    """
    if len(points) > 1 and points[0] == points[-1]:
        points = points[:-1]
    else:
        logger.debug("Ring at position %d is not explicitly closed", offset)

    ring = Ring(tuple(points))
    if ring.distinct_count < MIN_RING_VERTICES:
        msg = (
            f"Ring at position {offset} has {ring.distinct_count} distinct vertex(es), "
            f"need at least {MIN_RING_VERTICES}"
        )
        raise ParseError(msg, position=offset)
    return ring
