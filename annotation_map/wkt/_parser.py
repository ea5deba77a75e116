"""WKT text to ``MultiPolygon``.

Grammar accepted (case-insensitive, whitespace tolerant)::

    POLYGON      ( ring [, ring]* )
    MULTIPOLYGON ( polygon [, polygon]* )
    polygon   := ( ring [, ring]* )
    ring      := ( lng lat [, lng lat]* )

The first ring of each polygon is the outer boundary; the rest are holes.
"""

from __future__ import annotations

from annotation_map.core.exceptions import ParseError
from annotation_map.models.geometry import MultiPolygon, PolygonWithHoles, Ring
from annotation_map.wkt._constants import KEYWORD_PATTERN, MULTIPOLYGON
from annotation_map.wkt._validation import parse_coordinate, validate_balanced, validate_ring

# (content between a group's parentheses, absolute offset of that content)
_Group = tuple[str, int]


def parse_geometry(text: str) -> MultiPolygon:
    """Parse POLYGON or MULTIPOLYGON text.

    Raises:
        ParseError: If the keyword is missing, parentheses are unbalanced,
            a token is non-numeric, a ring is degenerate or the text has
            trailing content.
    """
    if not isinstance(text, str) or not text.strip():
        msg = "WKT text is empty"
        raise ParseError(msg, position=0)

    match = KEYWORD_PATTERN.match(text)
    if match is None:
        head = text.strip()[:20]
        msg = f"Expected POLYGON or MULTIPOLYGON keyword, got {head!r}"
        raise ParseError(msg, position=0)

    keyword = match.group(1).upper()
    body_offset = match.end()
    body = text[body_offset:]
    validate_balanced(body, body_offset)

    top = _split_groups(body.rstrip(), body_offset)
    if len(top) != 1:
        msg = f"{keyword} must have exactly one outer group, found {len(top)}"
        raise ParseError(msg, position=body_offset)
    content, content_offset = top[0]

    if keyword == MULTIPOLYGON:
        polygons = tuple(
            _parse_polygon(poly_content, poly_offset)
            for poly_content, poly_offset in _split_groups(content, content_offset)
        )
    else:
        polygons = (_parse_polygon(content, content_offset),)

    if not polygons:
        msg = f"{keyword} has no polygons"
        raise ParseError(msg, position=content_offset)
    return MultiPolygon(polygons)


def _parse_polygon(content: str, offset: int) -> PolygonWithHoles:
    rings = [
        _parse_ring(ring_content, ring_offset)
        for ring_content, ring_offset in _split_groups(content, offset)
    ]
    if not rings:
        msg = f"Polygon at position {offset} has no rings"
        raise ParseError(msg, position=offset)
    return PolygonWithHoles(rings[0], tuple(rings[1:]))


def _parse_ring(content: str, offset: int) -> Ring:
    points = []
    cursor = offset
    for token in content.split(","):
        points.append(parse_coordinate(token, cursor))
        cursor += len(token) + 1
    return validate_ring(points, offset)


def _split_groups(text: str, offset: int) -> list[_Group]:
    """Split ``(a), (b), ...`` into its top-level parenthesised groups.

    Nested parentheses inside a group are kept intact.  Anything other
    than whitespace or commas between groups is an error.

    Raises:
        ParseError: On unexpected characters between groups, a missing
            comma, or an unbalanced group.
    """
    groups: list[_Group] = []
    depth = 0
    start = -1
    expect_separator = False
    for index, char in enumerate(text):
        if depth == 0:
            if char.isspace():
                continue
            if char == ",":
                if not expect_separator:
                    msg = f"Unexpected ',' at position {offset + index}"
                    raise ParseError(msg, position=offset + index)
                expect_separator = False
                continue
            if char != "(" or expect_separator:
                msg = f"Unexpected {char!r} at position {offset + index}, expected '('"
                raise ParseError(msg, position=offset + index)
            depth = 1
            start = index + 1
            continue
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                groups.append((text[start:index], offset + start))
                expect_separator = True

    if depth != 0:
        msg = f"Unbalanced parentheses: group at position {offset + start - 1} is not closed"
        raise ParseError(msg, position=offset + start - 1)
    if groups and not expect_separator:
        msg = f"Trailing ',' at position {offset + len(text)}"
        raise ParseError(msg, position=offset + len(text))
    return groups
