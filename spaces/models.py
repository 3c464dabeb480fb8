"""
spaces/models.py -- Domain dataclasses for user-owned spaces (arenas).

Pure data containers. Ownership and bounds rules are enforced by the route
layer before anything reaches spaces/store.py.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class SpaceElement:
    """One placement of a catalog Element inside a Space at (x, y).

    id and space_id are None until the row is written; the store fills
    space_id in when placements are inserted alongside a new space.
    """

    element_id: int
    x: int
    y: int
    id: Optional[int] = None
    space_id: Optional[int] = None


@dataclass
class Space:
    """A user-owned 2D canvas of fixed dimensions.

    map_id records the template the space was cloned from, if any. It is
    informational only -- the placements were copied at creation time.
    """

    name: str
    width: int
    height: int
    owner_id: int
    thumbnail: Optional[str] = None
    map_id: Optional[int] = None
    elements: list[SpaceElement] = field(default_factory=list)
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
