"""
api/routes/v1/spaces.py -- Space (arena) lifecycle and element placement.

Routes (in registration order to avoid FastAPI path capture conflicts):
  POST   /space               -- create from dimensions or from a map template
  POST   /space/element       -- place an element (owner only)
  DELETE /space/element       -- remove a placement (owner only)
  GET    /spaces/all          -- caller's own spaces
  GET    /space/{space_id}    -- space dimensions + placements (any caller)
  DELETE /space/{space_id}    -- delete space and placements (owner only)

/space/element is registered before /space/{space_id} so "element" is never
captured as a space id.

Space ids arrive as path strings and are parsed by hand: a malformed id is
reported as 400 not_found, the same as an unknown one, rather than as a
validation error.

Bounds rule: a placement's footprint (x + width, y + height) must stay inside
the space, and x, y must be non-negative (core.grid.footprint_fits).
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request

from api.errors import api_error
from api.models import (
    MAX_DB_ID,
    ElementRow,
    IdResponse,
    MessageResponse,
    SpaceCreate,
    SpaceCreatedResponse,
    SpaceDetailResponse,
    SpaceElementCreate,
    SpaceElementDelete,
    SpaceElementRow,
    SpaceListResponse,
    SpaceSummaryRow,
)
from auth.dependencies import get_current_user, require_owner
from auth.models import User
from catalog.store import CatalogStore
from core.grid import footprint_fits, format_dimensions, parse_dimensions
from spaces.models import Space, SpaceElement
from spaces.store import SpaceStore

logger = logging.getLogger("arena.spaces")

# All space routes require authentication.
# Router-level dependency applies to every route registered on this router;
# handlers that need the caller's identity also take it as a parameter.
router = APIRouter(dependencies=[Depends(get_current_user)])


def _parse_space_id(raw: str) -> Optional[int]:
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if 0 < value <= MAX_DB_ID else None


def _load_space(spaces: SpaceStore, space_id: Optional[int]) -> Space:
    space = spaces.get_space(space_id) if space_id is not None else None
    if space is None:
        raise api_error(400, "not_found", "Space not found.")
    return space


# ---------------------------------------------------------------------------
# POST /space -- create a space
# ---------------------------------------------------------------------------


@router.post("/space", response_model=SpaceCreatedResponse)
def create_space(
    request: Request,
    body: SpaceCreate,
    current_user: User = Depends(get_current_user),
) -> SpaceCreatedResponse:
    """Create a space owned by the caller.

    With mapId: dimensions and thumbnail come from the map and every default
    placement is cloned into the new space in the same transaction as the
    space row itself.
    """
    spaces: SpaceStore = request.app.state.spaces

    if body.map_id is not None:
        catalog: CatalogStore = request.app.state.catalog
        template = catalog.get_map(body.map_id)
        if template is None:
            raise api_error(400, "not_found", "Map not found.")
        space = Space(
            name=body.name,
            width=template.width,
            height=template.height,
            owner_id=current_user.id,
            thumbnail=template.thumbnail,
            map_id=template.id,
        )
        placements = [SpaceElement(element_id=p.element_id, x=p.x, y=p.y) for p in template.placements]
    else:
        width, height = parse_dimensions(body.dimensions)
        space = Space(name=body.name, width=width, height=height, owner_id=current_user.id)
        placements = []

    space_id = spaces.create_space(space, placements)
    return SpaceCreatedResponse(space_id=space_id)


# ---------------------------------------------------------------------------
# POST /space/element -- place an element (must be before /space/{space_id})
# ---------------------------------------------------------------------------


@router.post("/space/element", response_model=IdResponse)
def add_element(
    request: Request,
    body: SpaceElementCreate,
    current_user: User = Depends(get_current_user),
) -> IdResponse:
    """Place a catalog element into one of the caller's spaces."""
    spaces: SpaceStore = request.app.state.spaces
    catalog: CatalogStore = request.app.state.catalog

    space = _load_space(spaces, body.space_id)
    require_owner(current_user, space.owner_id)

    element = catalog.get_element(body.element_id)
    if element is None:
        raise api_error(400, "not_found", "Element not found.")

    if not footprint_fits(body.x, body.y, element.width, element.height, space.width, space.height):
        raise api_error(
            400,
            "validation_error",
            "Element does not fit inside the space at the requested position.",
            detail=(
                f"element {element.width}x{element.height} at ({body.x}, {body.y}) "
                f"in space {format_dimensions(space.width, space.height)}"
            ),
        )

    placement_id = spaces.add_element(SpaceElement(space_id=space.id, element_id=element.id, x=body.x, y=body.y))
    return IdResponse(id=placement_id)


# ---------------------------------------------------------------------------
# DELETE /space/element -- remove a placement
# ---------------------------------------------------------------------------


@router.delete("/space/element", response_model=MessageResponse)
def remove_element(
    request: Request,
    body: SpaceElementDelete,
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    """Remove a placement from one of the caller's spaces.

    body.element_id is the placement (SpaceElement) id, not the catalog
    element id. The store matches on both ids, so a placement belonging to a
    different space is reported as not found.
    """
    spaces: SpaceStore = request.app.state.spaces

    space = _load_space(spaces, body.space_id)
    require_owner(current_user, space.owner_id)

    if not spaces.remove_element(space.id, body.element_id):
        raise api_error(400, "not_found", "Element is not placed in this space.")
    return MessageResponse(message="Element removed.")


# ---------------------------------------------------------------------------
# GET /spaces/all -- caller's spaces
# ---------------------------------------------------------------------------


@router.get("/spaces/all", response_model=SpaceListResponse)
def list_spaces(
    request: Request,
    current_user: User = Depends(get_current_user),
) -> SpaceListResponse:
    spaces: SpaceStore = request.app.state.spaces
    rows = [
        SpaceSummaryRow(
            id=s.id,
            space_id=s.id,
            name=s.name,
            dimensions=format_dimensions(s.width, s.height),
            thumbnail=s.thumbnail,
        )
        for s in spaces.list_spaces_by_owner(current_user.id)
    ]
    return SpaceListResponse(spaces=rows)


# ---------------------------------------------------------------------------
# GET /space/{space_id} -- space detail
# ---------------------------------------------------------------------------


@router.get("/space/{space_id}", response_model=SpaceDetailResponse)
def get_space(request: Request, space_id: str) -> SpaceDetailResponse:
    """Return a space's dimensions and every placement, with element detail.

    Readable by any authenticated caller, not only the owner.
    """
    spaces: SpaceStore = request.app.state.spaces
    catalog: CatalogStore = request.app.state.catalog

    space = _load_space(spaces, _parse_space_id(space_id))
    elements = catalog.get_elements([p.element_id for p in space.elements])

    rows = []
    for p in space.elements:
        element = elements.get(p.element_id)
        rows.append(
            SpaceElementRow(
                id=p.id,
                element_id=p.element_id,
                x=p.x,
                y=p.y,
                element=ElementRow.from_element(element) if element else None,
            )
        )
    return SpaceDetailResponse(
        id=space.id,
        name=space.name,
        dimensions=format_dimensions(space.width, space.height),
        thumbnail=space.thumbnail,
        elements=rows,
    )


# ---------------------------------------------------------------------------
# DELETE /space/{space_id} -- delete space
# ---------------------------------------------------------------------------


@router.delete("/space/{space_id}", response_model=MessageResponse)
def delete_space(
    request: Request,
    space_id: str,
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    """Delete one of the caller's spaces together with all of its placements."""
    spaces: SpaceStore = request.app.state.spaces

    space = _load_space(spaces, _parse_space_id(space_id))
    require_owner(current_user, space.owner_id)

    spaces.delete_space(space.id)
    logger.info("Deleted space %s (owner %s)", space.id, current_user.id)
    return MessageResponse(message="Space deleted.")
