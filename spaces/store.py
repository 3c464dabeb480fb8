"""
spaces/store.py -- SQLAlchemy-backed persistence for spaces and their placements.

Pattern: Repository + Data Mapper, same as catalog/store.py.

Transactions: a Space exclusively owns its SpaceElement rows. Creating a space
together with its cloned placements, and deleting a space together with its
placements, each happen on one connection with a single commit, so a failure
part-way leaves neither a space without its template placements nor orphaned
placement rows.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = SpaceStore("sqlite:///arena.db")
    space_id = store.create_space(Space(name="hq", width=100, height=200, owner_id=1), placements)
    space = store.get_space(space_id)      # includes .elements
    store.delete_space(space_id)
    store.close()
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine

from spaces.models import Space, SpaceElement

logger = logging.getLogger("arena.spaces")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'arena_spaces.db'}"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_spaces = Table(
    "spaces",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("width", Integer, nullable=False),
    Column("height", Integer, nullable=False),
    Column("owner_id", Integer, nullable=False, index=True),
    Column("thumbnail", Text),
    Column("map_id", Integer),
    Column("created_at", String(32), nullable=False),
)

_space_elements = Table(
    "space_elements",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("space_id", Integer, nullable=False, index=True),
    Column("element_id", Integer, nullable=False),
    Column("x", Integer, nullable=False),
    Column("y", Integer, nullable=False),
)


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode; set per-connection since PRAGMAs are not pooled."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class SpaceStore:
    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Spaces
    # ------------------------------------------------------------------

    def create_space(self, space: Space, placements: Optional[list[SpaceElement]] = None) -> int:
        """Insert a space and its initial placements atomically; return the space ID.

        placements is usually a map template cloned by value. Bounds and
        element existence are the caller's responsibility.
        """
        placements = placements or []
        with self.engine.connect() as conn:
            result = conn.execute(
                _spaces.insert().values(
                    name=space.name,
                    width=space.width,
                    height=space.height,
                    owner_id=space.owner_id,
                    thumbnail=space.thumbnail,
                    map_id=space.map_id,
                    created_at=_now_iso(),
                )
            )
            space_id = result.inserted_primary_key[0]
            if placements:
                conn.execute(
                    _space_elements.insert(),
                    [{"space_id": space_id, "element_id": p.element_id, "x": p.x, "y": p.y} for p in placements],
                )
            conn.commit()
        logger.info("Created space %s for owner %s with %d placements", space_id, space.owner_id, len(placements))
        return space_id

    def get_space(self, space_id: int) -> Optional[Space]:
        """Fetch a space with all of its placements. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_spaces.select().where(_spaces.c.id == space_id)).fetchone()
            if row is None:
                return None
            element_rows = conn.execute(
                _space_elements.select()
                .where(_space_elements.c.space_id == space_id)
                .order_by(_space_elements.c.id)
            ).fetchall()
        space = _row_to_space(row)
        space.elements = [_row_to_space_element(r) for r in element_rows]
        return space

    def list_spaces_by_owner(self, owner_id: int) -> list[Space]:
        """Return the owner's spaces, oldest first. Placements are not loaded."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _spaces.select().where(_spaces.c.owner_id == owner_id).order_by(_spaces.c.id)
            ).fetchall()
        return [_row_to_space(r) for r in rows]

    def delete_space(self, space_id: int) -> bool:
        """Delete a space and every placement it owns in one transaction.

        Returns True if the space existed, False otherwise. Ownership is the
        caller's responsibility.
        """
        with self.engine.connect() as conn:
            conn.execute(_space_elements.delete().where(_space_elements.c.space_id == space_id))
            result = conn.execute(_spaces.delete().where(_spaces.c.id == space_id))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Placements
    # ------------------------------------------------------------------

    def add_element(self, placement: SpaceElement) -> int:
        """Insert one placement into an existing space and return its ID."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _space_elements.insert().values(
                    space_id=placement.space_id,
                    element_id=placement.element_id,
                    x=placement.x,
                    y=placement.y,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def remove_element(self, space_id: int, space_element_id: int) -> bool:
        """Delete a placement, but only if it belongs to space_id.

        Both conditions are in the WHERE clause, so a placement id taken from
        another space never matches. Returns True if a row was deleted.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _space_elements.delete().where(
                    (_space_elements.c.id == space_element_id) & (_space_elements.c.space_id == space_id)
                )
            )
            conn.commit()
        return result.rowcount > 0

    def ping(self) -> bool:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_space(row) -> Space:
    return Space(
        id=row.id,
        name=row.name,
        width=row.width,
        height=row.height,
        owner_id=row.owner_id,
        thumbnail=row.thumbnail,
        map_id=row.map_id,
        created_at=row.created_at,
    )


def _row_to_space_element(row) -> SpaceElement:
    return SpaceElement(id=row.id, space_id=row.space_id, element_id=row.element_id, x=row.x, y=row.y)
