"""Shared constants for the WKT codec."""

from __future__ import annotations

import re

POLYGON = "POLYGON"
MULTIPOLYGON = "MULTIPOLYGON"

# MULTIPOLYGON must be tried first: POLYGON is a suffix of it.
KEYWORD_PATTERN = re.compile(r"^\s*(MULTIPOLYGON|POLYGON)\b\s*", re.IGNORECASE)
