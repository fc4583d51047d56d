import logging
from typing import Generator, Optional

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from . import config

logger = logging.getLogger("uninest.db")

# Base class for ORM models declared via SQLAlchemy's declarative API
Base = declarative_base()


def build_engine(url: str) -> Engine:
    """
    Build the SQLAlchemy engine with backend-specific settings.

    - SQLite (dev/local): allow cross-thread access since it's a file-based database.
    - Server DBs (e.g., MySQL/Postgres): enable safe pooling to avoid stale or dropped connections under load.
    """
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_recycle=280,
        pool_size=10,
        max_overflow=20,
    )


class Database:
    """
    Process-scoped persistence gateway.

    Owns the engine (and its connection pool) plus the session factory. Created
    once at application startup and disposed at shutdown; request handlers reach
    it through the `get_db` dependency rather than a module-level global.
    """

    def __init__(self, url: Optional[str] = None) -> None:
        self.url = url or config.DATABASE_URL
        self.engine = build_engine(self.url)
        # One session per request; autocommit and autoflush disabled for explicit transaction control
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    def session(self) -> Session:
        return self.session_factory()

    def create_all(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self) -> None:
        logger.info("Disposing database engine for %s", self.engine.url.render_as_string(hide_password=True))
        self.engine.dispose()


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    FastAPI dependency.

    Yields a database session for the lifetime of the request and guarantees it
    is closed afterwards, even if an exception is raised.
    """
    database: Database = request.app.state.database
    db = database.session()
    try:
        yield db
    finally:
        db.close()
