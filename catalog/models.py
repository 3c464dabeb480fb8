"""
catalog/models.py -- Domain dataclasses for admin-managed catalog entities.

These are pure data containers with zero logic. Validation of references and
grid bounds happens in the route layer and catalog/store.py.

A Map is a template: its placements are copied by value into a Space when the
space is created from it, and the space never refers back to them.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Avatar:
    image_url: str
    name: str
    id: Optional[int] = None


@dataclass
class Element:
    """A reusable sprite/object definition with a width x height footprint.

    static elements are scenery (walls, desks); non-static ones are meant to be
    interacted with. The flag is stored and returned, never interpreted here.
    """

    image_url: str
    width: int
    height: int
    static: bool = False
    id: Optional[int] = None


@dataclass
class MapPlacement:
    """One default element placement inside a Map template."""

    element_id: int
    x: int
    y: int
    id: Optional[int] = None
    map_id: Optional[int] = None


@dataclass
class Map:
    """An admin-authored template: fixed dimensions plus default placements.

    id is None before the record is written to the database.
    """

    name: str
    width: int
    height: int
    thumbnail: Optional[str] = None
    placements: list[MapPlacement] = field(default_factory=list)
    id: Optional[int] = None
