"""
API request and response models for the Arena REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/, catalog/ and
spaces/, which own the internal domain representation. Route handlers map
between the two.

Wire format is camelCase (imageUrl, spaceId, defaultElements); Python field
names stay snake_case and the alias generator bridges the two. Dimensions are
"<width>x<height>" strings on the wire.
"""

from enum import Enum
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StringConstraints, model_validator
from pydantic.alias_generators import to_camel

from auth.models import ROLE_ADMIN, ROLE_USER
from auth.tokens import MAX_PASSWORD_BYTES
from catalog.models import Avatar, Element
from core.grid import DIMENSIONS_PATTERN, MAX_GRID_SIDE, parse_dimensions

# Shared config: accept camelCase from clients, emit camelCase in responses.
_WIRE = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)
_WIRE_OUT = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)
# Credentials are never rewritten: passwords are hashed and compared exactly as sent.
_WIRE_CREDENTIALS = ConfigDict(alias_generator=to_camel, populate_by_name=True)

Username = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]


def _check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


NewPassword = Annotated[str, Field(min_length=1), AfterValidator(_check_password_bytes)]


def _check_dimensions(value: str) -> str:
    if parse_dimensions(value) is None:
        raise ValueError("dimensions must be '<width>x<height>' with positive integers")
    return value.lower()


# "100x200": shape checked by the pattern, positivity by parse_dimensions.
DimensionsStr = Annotated[str, Field(max_length=32, pattern=DIMENSIONS_PATTERN), AfterValidator(_check_dimensions)]

# Database primary keys; the upper bound keeps values inside SQLite's signed 64-bit INTEGER.
MAX_DB_ID = 2**63 - 1
DbId = Annotated[int, Field(ge=1, le=MAX_DB_ID)]


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class RoleEnum(str, Enum):
    admin = ROLE_ADMIN
    user = ROLE_USER


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class SignupRequest(BaseModel):
    """Request body for POST /api/v1/signup.

    password is capped at 72 UTF-8 bytes, the bcrypt input limit, and is kept
    exactly as sent (no whitespace stripping). username is stripped.
    """

    model_config = _WIRE_CREDENTIALS

    username: Username
    password: NewPassword
    role: RoleEnum = Field(default=RoleEnum.user, alias="type")


class SignupResponse(BaseModel):
    model_config = _WIRE_OUT

    user_id: int


class SigninRequest(BaseModel):
    """Request body for POST /api/v1/signin.

    Both fields default to "" so a missing field is answered by the route with
    the same 403 as a bad password. There are no length caps: an over-long
    password is simply a wrong one. Anything that still fails validation is
    mapped to 403 bad_credentials by the app's validation handler.
    """

    model_config = _WIRE_CREDENTIALS

    username: Annotated[str, StringConstraints(strip_whitespace=True)] = ""
    password: str = ""


class SigninResponse(BaseModel):
    model_config = _WIRE_OUT

    token: str


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class AvatarCreate(BaseModel):
    """Request body for POST /api/v1/admin/avatar."""

    model_config = _WIRE

    image: str = Field(min_length=1, max_length=2048)
    name: str = Field(min_length=1, max_length=255)


class AvatarCreatedResponse(BaseModel):
    model_config = _WIRE_OUT

    avatar_id: int


class AvatarRow(BaseModel):
    model_config = _WIRE_OUT

    id: int
    image_url: str
    name: str

    @classmethod
    def from_avatar(cls, avatar: Avatar) -> "AvatarRow":
        return cls(id=avatar.id, image_url=avatar.image_url, name=avatar.name)


class AvatarListResponse(BaseModel):
    model_config = _WIRE_OUT

    avatars: list[AvatarRow]


class ElementCreate(BaseModel):
    """Request body for POST /api/v1/admin/element."""

    model_config = _WIRE

    image_url: str = Field(min_length=1, max_length=2048)
    width: int = Field(gt=0, le=MAX_GRID_SIDE)
    height: int = Field(gt=0, le=MAX_GRID_SIDE)
    static: bool = False


class ElementUpdate(BaseModel):
    """Request body for PUT /api/v1/admin/element/{element_id}."""

    model_config = _WIRE

    image_url: str = Field(min_length=1, max_length=2048)


class ElementRow(BaseModel):
    model_config = _WIRE_OUT

    id: int
    image_url: str
    width: int
    height: int
    static: bool

    @classmethod
    def from_element(cls, element: Element) -> "ElementRow":
        """Factory Method: the dataclass-to-wire mapping lives beside the wire model."""
        return cls(
            id=element.id,
            image_url=element.image_url,
            width=element.width,
            height=element.height,
            static=element.static,
        )


class ElementListResponse(BaseModel):
    model_config = _WIRE_OUT

    elements: list[ElementRow]


class IdResponse(BaseModel):
    model_config = _WIRE_OUT

    id: int


class MapPlacementIn(BaseModel):
    model_config = _WIRE

    element_id: DbId
    x: int = Field(ge=0, le=MAX_GRID_SIDE)
    y: int = Field(ge=0, le=MAX_GRID_SIDE)


class MapCreate(BaseModel):
    """Request body for POST /api/v1/admin/map."""

    model_config = _WIRE

    name: str = Field(default="", max_length=255)
    thumbnail: Optional[str] = Field(default=None, max_length=2048)
    dimensions: DimensionsStr
    default_elements: list[MapPlacementIn] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# User metadata
# ---------------------------------------------------------------------------


class MetadataUpdate(BaseModel):
    """Request body for POST /api/v1/user/metadata."""

    model_config = _WIRE

    avatar_id: DbId


class UserAvatarRow(BaseModel):
    model_config = _WIRE_OUT

    user_id: int
    avatar_id: Optional[int]
    image_url: Optional[str]


class BulkMetadataResponse(BaseModel):
    model_config = _WIRE_OUT

    avatars: list[UserAvatarRow]


# ---------------------------------------------------------------------------
# Spaces
# ---------------------------------------------------------------------------


class SpaceCreate(BaseModel):
    """Request body for POST /api/v1/space.

    Exactly one of dimensions or map_id must be supplied. With map_id the
    dimensions and default placements are copied from the map.
    """

    model_config = _WIRE

    name: str = Field(min_length=1, max_length=255)
    dimensions: Optional[DimensionsStr] = None
    map_id: Optional[DbId] = None

    @model_validator(mode="after")
    def exactly_one_source(self) -> "SpaceCreate":
        if self.dimensions is None and self.map_id is None:
            raise ValueError("either dimensions or mapId is required")
        if self.dimensions is not None and self.map_id is not None:
            raise ValueError("dimensions and mapId are mutually exclusive")
        return self


class SpaceCreatedResponse(BaseModel):
    model_config = _WIRE_OUT

    space_id: int


class SpaceSummaryRow(BaseModel):
    """One row in GET /spaces/all -- no placement detail."""

    model_config = _WIRE_OUT

    id: int
    space_id: int
    name: str
    dimensions: str
    thumbnail: Optional[str]


class SpaceListResponse(BaseModel):
    model_config = _WIRE_OUT

    spaces: list[SpaceSummaryRow]


class SpaceElementRow(BaseModel):
    model_config = _WIRE_OUT

    id: int
    element_id: int
    x: int
    y: int
    element: Optional[ElementRow] = None


class SpaceDetailResponse(BaseModel):
    model_config = _WIRE_OUT

    id: int
    name: str
    dimensions: str
    thumbnail: Optional[str]
    elements: list[SpaceElementRow]


class SpaceElementCreate(BaseModel):
    """Request body for POST /api/v1/space/element."""

    model_config = _WIRE

    space_id: DbId
    element_id: DbId
    x: int
    y: int


class SpaceElementDelete(BaseModel):
    """Request body for DELETE /api/v1/space/element. element_id is the placement id."""

    model_config = _WIRE

    space_id: DbId
    element_id: DbId
