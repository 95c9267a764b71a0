"""
db.engine - Connection pool and session factory.

A Database owns one SQLAlchemy engine (and therefore one connection
pool).  It is built explicitly at startup and disposed explicitly at
shutdown; import runs borrow sessions from it and always give them back.

The connection string selects the backend: PostgreSQL in production,
SQLite for local runs and tests.  No other code needs to change.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import config
from db.models import Base
from import_engine.errors import ConfigurationError

logger = logging.getLogger(__name__)


class Database:

    def __init__(
        self,
        url: Optional[str],
        *,
        schema: Optional[str] = None,
        pool_size: int = 5,
        echo: bool = False,
    ) -> None:
        if not url:
            raise ConfigurationError("Database URL is not configured (FLEETLOAD_DB)")

        parsed = make_url(url)
        kwargs: dict = {"echo": echo, "future": True, "pool_pre_ping": True}

        if parsed.get_backend_name() == "sqlite":
            kwargs["connect_args"] = {"check_same_thread": False}
            if parsed.database in (None, "", ":memory:"):
                # One shared connection, otherwise every checkout sees an empty DB
                kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_size"] = pool_size
            if schema:
                kwargs["connect_args"] = {"options": f"-c search_path={schema}"}

        self.url = parsed
        self.engine = create_engine(url, **kwargs)

        if parsed.get_backend_name() == "sqlite":
            @event.listens_for(self.engine, "connect")
            def _sqlite_pragmas(dbapi_conn, _rec):
                cur = dbapi_conn.cursor()
                cur.execute("PRAGMA journal_mode=WAL")
                cur.execute("PRAGMA foreign_keys=ON")
                cur.execute("PRAGMA synchronous=NORMAL")
                cur.close()

        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        logger.info("Database pool initialised: %s", parsed.render_as_string(hide_password=True))

    # ── Schema ─────────────────────────────────────────────────────────

    def create_all(self) -> None:
        """Emit CREATE TABLE for every model (no-op for existing tables)."""
        Base.metadata.create_all(self.engine)

    # ── Sessions ───────────────────────────────────────────────────────

    def session(self) -> Session:
        """Return a new session.  Caller is responsible for .close()."""
        return self._session_factory()

    @contextmanager
    def scoped_session(self) -> Iterator[Session]:
        """Session that is closed (connection released) on every exit path."""
        session = self._session_factory()
        try:
            yield session
        finally:
            session.close()
            logger.debug("Database session released")

    # ── Health / teardown ──────────────────────────────────────────────

    def check(self) -> None:
        """Raise ConfigurationError when the database cannot be reached."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            raise ConfigurationError(
                f"Database unreachable: {exc}",
                details={"url": self.url.render_as_string(hide_password=True)},
            ) from exc

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Database pool disposed")


def init_db(url: Optional[str] = None, *, create: bool = True) -> Database:
    """
    Build a Database from config (or an explicit URL), verify it is
    reachable and optionally create the tables.
    """
    db = Database(
        url or config.DB_URL,
        schema=config.DB_SCHEMA,
        pool_size=config.DB_POOL_SIZE,
    )
    db.check()
    if create:
        db.create_all()
    return db
