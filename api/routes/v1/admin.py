"""
api/routes/v1/admin.py -- Admin-only catalog management.

Routes:
  POST /api/v1/admin/avatar                -- create avatar; returns {avatarId}
  POST /api/v1/admin/element               -- create element; returns {id}
  PUT  /api/v1/admin/element/{element_id}  -- replace an element's image
  POST /api/v1/admin/map                   -- create map template; returns {id}

Map validation:
  Every default placement must reference an existing element (400
  invalid_reference) and the element's footprint must fit inside the map
  (400 validation_error). A space cloned from the map therefore starts out
  satisfying the same bounds rule that POST /space/element enforces.
"""

import logging

from fastapi import APIRouter, Depends, Path, Request

from api.errors import api_error
from api.models import (
    MAX_DB_ID,
    AvatarCreate,
    AvatarCreatedResponse,
    ElementCreate,
    ElementUpdate,
    IdResponse,
    MapCreate,
    MessageResponse,
)
from auth.dependencies import require_admin
from catalog.models import Avatar, Element, Map, MapPlacement
from catalog.store import CatalogStore
from core.grid import footprint_fits, parse_dimensions

logger = logging.getLogger("arena.api")

# Auth policy: every route requires role == "admin".
# Router-level dependency applies to every route registered on this router
# (401 without a valid token, 403 for a non-admin caller).
router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


@router.post("/avatar", response_model=AvatarCreatedResponse)
def create_avatar(request: Request, body: AvatarCreate) -> AvatarCreatedResponse:
    catalog: CatalogStore = request.app.state.catalog
    avatar_id = catalog.create_avatar(Avatar(image_url=body.image, name=body.name))
    return AvatarCreatedResponse(avatar_id=avatar_id)


@router.post("/element", response_model=IdResponse)
def create_element(request: Request, body: ElementCreate) -> IdResponse:
    catalog: CatalogStore = request.app.state.catalog
    element_id = catalog.create_element(
        Element(image_url=body.image_url, width=body.width, height=body.height, static=body.static)
    )
    return IdResponse(id=element_id)


@router.put("/element/{element_id}", response_model=MessageResponse)
def update_element(
    request: Request,
    body: ElementUpdate,
    element_id: int = Path(ge=1, le=MAX_DB_ID),
) -> MessageResponse:
    """Replace an element's image URL. Width, height and static are fixed at creation."""
    catalog: CatalogStore = request.app.state.catalog
    if not catalog.update_element_image(element_id, body.image_url):
        raise api_error(400, "not_found", "Element not found.")
    return MessageResponse(message="Element updated.")


@router.post("/map", response_model=IdResponse)
def create_map(request: Request, body: MapCreate) -> IdResponse:
    """Create a map template with default element placements.

    Element lookups are batched into one query; the map and its placements are
    then written in a single transaction.
    """
    catalog: CatalogStore = request.app.state.catalog
    width, height = parse_dimensions(body.dimensions)

    elements = catalog.get_elements([p.element_id for p in body.default_elements])
    placements: list[MapPlacement] = []
    for p in body.default_elements:
        element = elements.get(p.element_id)
        if element is None:
            raise api_error(400, "invalid_reference", f"Element {p.element_id} does not exist.")
        if not footprint_fits(p.x, p.y, element.width, element.height, width, height):
            raise api_error(
                400,
                "validation_error",
                f"Element {p.element_id} at ({p.x}, {p.y}) does not fit inside {body.dimensions}.",
            )
        placements.append(MapPlacement(element_id=p.element_id, x=p.x, y=p.y))

    map_id = catalog.create_map(
        Map(name=body.name, width=width, height=height, thumbnail=body.thumbnail, placements=placements)
    )
    logger.info("Created map %s with %d placements", map_id, len(placements))
    return IdResponse(id=map_id)
