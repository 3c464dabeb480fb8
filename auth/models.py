"""
auth/models.py -- Domain dataclass for authenticated identities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in catalog/models.py and spaces/models.py -- dataclasses own domain shape;
stores and routes do the work.

Layer rule: no imports from api/, catalog/, or spaces/.
"""

from __future__ import annotations

from dataclasses import dataclass

ROLE_ADMIN = "admin"
ROLE_USER = "user"


@dataclass
class User:
    """Represents a registered identity.

    role is fixed at signup and never updated afterwards. avatar_id is a weak
    reference into the catalog -- the user does not own the avatar, and the
    catalog store is the authority on whether the id still exists.
    """

    username: str
    role: str  # "admin" | "user"
    id: int | None = None
    hashed_password: str | None = None
    avatar_id: int | None = None
    created_at: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
