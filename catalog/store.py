"""
catalog/store.py -- SQLAlchemy-backed persistence for avatars, elements and maps.

Uses SQLAlchemy Core (not ORM) so the dataclasses in catalog/models.py remain
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change, not a rewrite.

Pattern: Repository + Data Mapper. CatalogStore is the repository; the
_row_to_* functions are the mappers. Route handlers never touch SQL directly.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = CatalogStore("sqlite:///arena.db")
    element_id = store.create_element(Element(image_url="...", width=2, height=1, static=True))
    map_id = store.create_map(Map(name="office", width=100, height=200, placements=[...]))
    template = store.get_map(map_id)
    store.close()
"""

from pathlib import Path
from typing import Optional

from sqlalchemy import Boolean, Column, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine

from catalog.models import Avatar, Element, Map, MapPlacement

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'arena_catalog.db'}"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_avatars = Table(
    "avatars",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("image_url", Text, nullable=False),
    Column("name", String(255), nullable=False),
)

_elements = Table(
    "elements",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("image_url", Text, nullable=False),
    Column("width", Integer, nullable=False),
    Column("height", Integer, nullable=False),
    Column("static", Boolean, nullable=False, server_default="0"),
)

_maps = Table(
    "maps",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("width", Integer, nullable=False),
    Column("height", Integer, nullable=False),
    Column("thumbnail", Text),
)

_map_elements = Table(
    "map_elements",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("map_id", Integer, nullable=False, index=True),
    Column("element_id", Integer, nullable=False),
    Column("x", Integer, nullable=False),
    Column("y", Integer, nullable=False),
)


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode; set per-connection since PRAGMAs are not pooled."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class CatalogStore:
    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            # FastAPI runs sync handlers on a thread pool, so a pooled SQLite
            # connection may be used from more than one thread.
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Avatars
    # ------------------------------------------------------------------

    def create_avatar(self, avatar: Avatar) -> int:
        """Insert a new avatar and return its assigned database ID."""
        with self.engine.connect() as conn:
            result = conn.execute(_avatars.insert().values(image_url=avatar.image_url, name=avatar.name))
            conn.commit()
            return result.inserted_primary_key[0]

    def get_avatar(self, avatar_id: int) -> Optional[Avatar]:
        with self.engine.connect() as conn:
            row = conn.execute(_avatars.select().where(_avatars.c.id == avatar_id)).fetchone()
        return _row_to_avatar(row) if row is not None else None

    def get_avatars(self, avatar_ids: list[int]) -> dict[int, Avatar]:
        """Return {id: Avatar} for every id that exists. Unknown ids are skipped."""
        if not avatar_ids:
            return {}
        with self.engine.connect() as conn:
            rows = conn.execute(_avatars.select().where(_avatars.c.id.in_(avatar_ids))).fetchall()
        return {r.id: _row_to_avatar(r) for r in rows}

    def list_avatars(self) -> list[Avatar]:
        """Return every avatar, oldest first. No pagination."""
        with self.engine.connect() as conn:
            rows = conn.execute(_avatars.select().order_by(_avatars.c.id)).fetchall()
        return [_row_to_avatar(r) for r in rows]

    # ------------------------------------------------------------------
    # Elements
    # ------------------------------------------------------------------

    def create_element(self, element: Element) -> int:
        """Insert a new element and return its assigned database ID."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _elements.insert().values(
                    image_url=element.image_url,
                    width=element.width,
                    height=element.height,
                    static=element.static,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_element(self, element_id: int) -> Optional[Element]:
        """Fetch a single element by ID. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_elements.select().where(_elements.c.id == element_id)).fetchone()
        return _row_to_element(row) if row is not None else None

    def get_elements(self, element_ids: list[int]) -> dict[int, Element]:
        """Return {id: Element} for every id that exists, in one query."""
        ids = sorted(set(element_ids))
        if not ids:
            return {}
        with self.engine.connect() as conn:
            rows = conn.execute(_elements.select().where(_elements.c.id.in_(ids))).fetchall()
        return {r.id: _row_to_element(r) for r in rows}

    def list_elements(self) -> list[Element]:
        """Return every element, oldest first. No pagination."""
        with self.engine.connect() as conn:
            rows = conn.execute(_elements.select().order_by(_elements.c.id)).fetchall()
        return [_row_to_element(r) for r in rows]

    def update_element_image(self, element_id: int, image_url: str) -> bool:
        """Replace an element's image. Footprint is immutable once placed.

        Returns True if a row was updated, False if element_id was not found.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _elements.update().where(_elements.c.id == element_id).values(image_url=image_url)
            )
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Maps
    # ------------------------------------------------------------------

    def create_map(self, template: Map) -> int:
        """Insert a map and its default placements in a single transaction.

        Callers must have verified that every placement's element_id exists.
        Returns the new map ID.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _maps.insert().values(
                    name=template.name,
                    width=template.width,
                    height=template.height,
                    thumbnail=template.thumbnail,
                )
            )
            map_id = result.inserted_primary_key[0]
            if template.placements:
                conn.execute(
                    _map_elements.insert(),
                    [{"map_id": map_id, "element_id": p.element_id, "x": p.x, "y": p.y} for p in template.placements],
                )
            conn.commit()
        return map_id

    def get_map(self, map_id: int) -> Optional[Map]:
        """Fetch a map together with its placements (in insertion order)."""
        with self.engine.connect() as conn:
            row = conn.execute(_maps.select().where(_maps.c.id == map_id)).fetchone()
            if row is None:
                return None
            placement_rows = conn.execute(
                _map_elements.select().where(_map_elements.c.map_id == map_id).order_by(_map_elements.c.id)
            ).fetchall()
        template = _row_to_map(row)
        template.placements = [_row_to_placement(r) for r in placement_rows]
        return template

    def ping(self) -> bool:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern -- DB row -> domain dataclass)
# ---------------------------------------------------------------------------


def _row_to_avatar(row) -> Avatar:
    return Avatar(id=row.id, image_url=row.image_url, name=row.name)


def _row_to_element(row) -> Element:
    return Element(
        id=row.id,
        image_url=row.image_url,
        width=row.width,
        height=row.height,
        static=bool(row.static),
    )


def _row_to_map(row) -> Map:
    return Map(
        id=row.id,
        name=row.name,
        width=row.width,
        height=row.height,
        thumbnail=row.thumbnail,
    )


def _row_to_placement(row) -> MapPlacement:
    return MapPlacement(id=row.id, map_id=row.map_id, element_id=row.element_id, x=row.x, y=row.y)
