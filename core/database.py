"""
core/database.py -- Engine construction shared by every store.

Each store owns its own Engine (and therefore its own connection pool), the
same way each store owns its own tables. This module only centralizes how
that Engine is built:

  PostgreSQL (production): QueuePool bounded by pool_size + max_overflow.
      A request that cannot get a connection within pool_timeout seconds
      fails with a store error instead of queueing forever.

  SQLite (tests, local dev): check_same_thread=False because TestClient and
      the ASGI server run sync route handlers in a thread pool; WAL journal
      mode so readers are not blocked by writers. In-memory URLs (":memory:"
      or "mode=memory") get SingletonThreadPool explicitly.

Stores always use `with engine.connect() as conn:` so the connection goes
back to the pool on every exit path, including exceptions and cancellation.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import SingletonThreadPool

logger = logging.getLogger("rubrica.store")


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode per connection (SQLite PRAGMAs are not inherited)."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _is_memory_sqlite(db_url: str) -> bool:
    return db_url in ("sqlite://", "sqlite:///") or ":memory:" in db_url or "mode=memory" in db_url


def create_store_engine(
    db_url: str,
    pool_size: int = 5,
    max_overflow: int = 10,
    pool_timeout: int = 30,
) -> Engine:
    """Return an Engine for db_url with a bounded pool on server databases."""
    kwargs: dict[str, Any] = {}
    if db_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if _is_memory_sqlite(db_url):
            # One connection per thread keeps the in-memory database alive.
            kwargs["poolclass"] = SingletonThreadPool
    else:
        kwargs.update(
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_timeout=pool_timeout,
            pool_pre_ping=True,
        )
    engine = create_engine(db_url, **kwargs)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    # Dialect only: the URL can carry credentials.
    logger.debug("Engine created (dialect=%s)", engine.dialect.name)
    return engine
