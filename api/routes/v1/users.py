"""
api/routes/v1/users.py -- User metadata (avatar selection) endpoints.

Routes:
  POST /api/v1/user/metadata        -- set the caller's avatar
  GET  /api/v1/user/metadata/bulk   -- avatars for a set of user ids (public)

POST /user/metadata answers an unauthenticated caller with 403 rather than
the 401 get_current_user() would raise; that status is part of the route's
published contract, so the soft try_get_current_user() variant is used here.
"""

from typing import Optional

from fastapi import APIRouter, Request

from api.errors import api_error
from api.models import MAX_DB_ID, BulkMetadataResponse, MessageResponse, MetadataUpdate, UserAvatarRow
from auth.dependencies import try_get_current_user
from auth.store import UserStore
from catalog.store import CatalogStore

# Auth policy:
# - POST /api/v1/user/metadata:      requires auth (403 when missing)
# - GET  /api/v1/user/metadata/bulk: public
router = APIRouter(prefix="/user")

# Upper bound on ids accepted by the bulk lookup; extras are ignored.
_MAX_BULK_IDS = 100


def _parse_ids(raw: str) -> list[int]:
    """Parse "[1,2,3]" or "1,2,3" into a de-duplicated list of ints.

    Entries that are not integers are dropped rather than rejected, matching
    the "missing users are omitted" contract of the bulk endpoint.
    """
    ids: list[int] = []
    seen: set[int] = set()
    for part in raw.strip().strip("[]").split(","):
        part = part.strip().strip('"').strip("'")
        try:
            value = int(part)
        except ValueError:
            continue
        if not 0 < value <= MAX_DB_ID:
            continue
        if value not in seen:
            seen.add(value)
            ids.append(value)
    return ids[:_MAX_BULK_IDS]


@router.post("/metadata", response_model=MessageResponse)
def update_metadata(request: Request, body: MetadataUpdate) -> MessageResponse:
    """Point the caller's avatar at an existing catalog avatar."""
    user = try_get_current_user(request)
    if user is None:
        raise api_error(403, "unauthorized", "Authentication required.")

    catalog: CatalogStore = request.app.state.catalog
    if catalog.get_avatar(body.avatar_id) is None:
        raise api_error(400, "not_found", "Avatar not found.")

    user_store: UserStore = request.app.state.user_store
    user_store.set_avatar(user.id, body.avatar_id)
    return MessageResponse(message="Metadata updated.")


@router.get("/metadata/bulk", response_model=BulkMetadataResponse)
def bulk_metadata(request: Request, ids: Optional[str] = None) -> BulkMetadataResponse:
    """Return {userId, avatarId, imageUrl} for every known id in ?ids=[1,2,3].

    Users that do not exist are omitted. Users without an avatar are included
    with null avatarId/imageUrl.
    """
    user_ids = _parse_ids(ids or "")
    user_store: UserStore = request.app.state.user_store
    catalog: CatalogStore = request.app.state.catalog

    users = user_store.get_by_ids(user_ids)
    avatars = catalog.get_avatars([u.avatar_id for u in users if u.avatar_id is not None])

    rows = []
    for u in users:
        avatar = avatars.get(u.avatar_id) if u.avatar_id is not None else None
        rows.append(
            UserAvatarRow(
                user_id=u.id,
                avatar_id=u.avatar_id,
                image_url=avatar.image_url if avatar else None,
            )
        )
    return BulkMetadataResponse(avatars=rows)
