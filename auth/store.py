"""
auth/store.py -- SQLAlchemy Core persistence layer for auth entities.

Pattern: Repository + Data Mapper (same as contacts/store.py).
UserStore is the repository; _row_to_user / _row_to_role are the mappers.
Route and dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Listing sorts only by columns in USER_SORT_COLUMNS (see core/collection.py).

Roles:
  The roles table is seeded with admin (1) and user (2) on first start.
  Roles are read-only through the API.

Layer rule: no imports from api/ or contacts/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, ForeignKey, Integer, MetaData, String, Table, Text, func, insert, select
from sqlalchemy.engine import Engine

from auth.models import Role, User
from core.collection import CollectionPage, QuerySpec, fetch_page
from core.database import create_store_engine

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_roles = Table(
    "roles",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(50), nullable=False, unique=True),
)

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("password", Text, nullable=False),  # bcrypt hash
    Column("role_id", Integer, ForeignKey("roles.id"), nullable=False),
    Column("created_at", String(32), nullable=False),
)

DEFAULT_ROLES: tuple[tuple[int, str], ...] = ((1, "admin"), (2, "user"))

# Public sort name -> column. Role and other joined fields are not sortable.
USER_SORT_COLUMNS = {
    "id": _users.c.id,
    "username": _users.c.username,
}

# Base SELECT for user reads: every user column plus the joined role name.
# Outer join so a user whose role row is missing still lists.
_user_select = select(
    _users.c.id,
    _users.c.username,
    _users.c.password,
    _users.c.role_id,
    _users.c.created_at,
    _roles.c.name.label("role_name"),
).select_from(_users.outerjoin(_roles, _users.c.role_id == _roles.c.id))


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User and Role entities.

    Usage:
        store = UserStore("postgresql+psycopg2://user:pw@host/db")
        store.create_user(User(username="admin", role_id=1, hashed_password=hash_password("secret")))
        user = store.get_by_username("admin")
        store.close()
    """

    def __init__(self, db_url: str, **engine_options) -> None:
        self.engine: Engine = create_store_engine(db_url, **engine_options)
        _metadata.create_all(self.engine)
        self._seed_roles()

    def _seed_roles(self) -> None:
        """Insert the default roles when the roles table is empty. Safe to call on every startup."""
        with self.engine.connect() as conn:
            count = conn.execute(select(func.count()).select_from(_roles)).scalar_one()
            if count == 0:
                conn.execute(insert(_roles), [{"id": rid, "name": name} for rid, name in DEFAULT_ROLES])
                conn.commit()

    # ------------------------------------------------------------------
    # User queries
    # ------------------------------------------------------------------

    def has_users(self) -> bool:
        """Return True if at least one user record exists."""
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return (result or 0) > 0

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the username already exists.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    username=user.username,
                    password=user.hashed_password,
                    role_id=user.role_id,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_user_select.where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_user_select.where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self, spec: QuerySpec) -> CollectionPage:
        """Return one page of users (with role_name) and the total user count."""
        with self.engine.connect() as conn:
            page = fetch_page(conn, _user_select, spec, USER_SORT_COLUMNS, tiebreaker=_users.c.id)
        return CollectionPage(rows=[_row_to_user(r) for r in page.rows], total=page.total)

    def replace_user(self, user_id: int, username: str, role_id: int, hashed_password: str | None = None) -> bool:
        """Overwrite username and role; the password only when a new hash is given.

        Returns True if a row was updated, False if user_id was not found.
        """
        values: dict = {"username": username, "role_id": role_id}
        if hashed_password:
            values["password"] = hashed_password
        with self.engine.connect() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(**values))
            conn.commit()
        return result.rowcount > 0

    def delete_user(self, user_id: int) -> bool:
        """Permanently delete a user record. Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    def list_roles(self) -> list[Role]:
        """Return all roles ordered by id."""
        with self.engine.connect() as conn:
            rows = conn.execute(_roles.select().order_by(_roles.c.id)).fetchall()
        return [_row_to_role(r) for r in rows]

    def get_role(self, role_id: int) -> Role | None:
        with self.engine.connect() as conn:
            row = conn.execute(_roles.select().where(_roles.c.id == role_id)).fetchone()
        return _row_to_role(row) if row is not None else None

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            conn.execute(select(1))
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        hashed_password=row.password,
        role_id=row.role_id,
        role_name=row.role_name,
        created_at=row.created_at,
    )


def _row_to_role(row) -> Role:
    return Role(id=row.id, name=row.name)
