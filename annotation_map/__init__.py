"""Annotation Map polygon-geometry engine.

Interactive core for drawing, editing and persisting geographic area
selections ("rules") on a Web Mercator world map: projection math,
stable/live view tracking, the polygon data model, the editing state
machine and the WKT codec.
"""

__version__ = "0.1.0"
