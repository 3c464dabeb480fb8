"""
core/grid.py -- Dimension parsing and placement bounds for the 2D arena grid.

Dimensions travel over the wire as "<width>x<height>" strings ("100x200").
Stores persist them as two integer columns; these helpers convert between the
two forms and answer the one geometric question the API asks: does an
element's footprint fit inside a space?

Pure functions, no I/O -- shared by the catalog (map templates) and the space
routes.
"""

import re
from typing import Optional

DIMENSIONS_PATTERN = r"^\d+x\d+$"

# Largest width or height accepted anywhere on the grid.
MAX_GRID_SIDE = 2**31 - 1

_DIMENSIONS_RE = re.compile(DIMENSIONS_PATTERN)


def parse_dimensions(value: str) -> Optional[tuple[int, int]]:
    """Parse "WxH" into (width, height). Returns None if malformed or non-positive."""
    if not isinstance(value, str):
        return None
    value = value.strip().lower()
    if not _DIMENSIONS_RE.match(value):
        return None
    width_s, height_s = value.split("x", 1)
    width, height = int(width_s), int(height_s)
    if not (0 < width <= MAX_GRID_SIDE and 0 < height <= MAX_GRID_SIDE):
        return None
    return width, height


def format_dimensions(width: int, height: int) -> str:
    return f"{width}x{height}"


def footprint_fits(x: int, y: int, element_width: int, element_height: int, width: int, height: int) -> bool:
    """Return True if an element placed at (x, y) lies entirely inside a width x height grid.

    The check is against the element's footprint, not just its anchor point:
    the far edge (x + element_width, y + element_height) may touch the grid
    edge but not cross it.
    """
    if x < 0 or y < 0:
        return False
    return x + element_width <= width and y + element_height <= height
