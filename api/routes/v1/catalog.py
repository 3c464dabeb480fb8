"""
api/routes/v1/catalog.py -- Public read-only catalog endpoints.

Routes:
  GET /api/v1/elements  -- every element definition
  GET /api/v1/avatars   -- every avatar

Both return the full catalog with no pagination; the catalog is admin-curated
and expected to stay small.
"""

from fastapi import APIRouter, Request

from api.models import AvatarListResponse, AvatarRow, ElementListResponse, ElementRow
from catalog.store import CatalogStore

# Auth policy:
# - GET /api/v1/elements: public
# - GET /api/v1/avatars:  public
router = APIRouter()


@router.get("/elements", response_model=ElementListResponse)
def list_elements(request: Request) -> ElementListResponse:
    catalog: CatalogStore = request.app.state.catalog
    return ElementListResponse(elements=[ElementRow.from_element(e) for e in catalog.list_elements()])


@router.get("/avatars", response_model=AvatarListResponse)
def list_avatars(request: Request) -> AvatarListResponse:
    catalog: CatalogStore = request.app.state.catalog
    return AvatarListResponse(avatars=[AvatarRow.from_avatar(a) for a in catalog.list_avatars()])
