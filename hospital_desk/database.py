"""Database handle with an explicit lifecycle.

Pattern:
- One ``Store`` per process, constructed by the application factory and
  handed to whoever needs it (no module-level connection state)
- ``init()`` creates tables and is idempotent
- ``close()`` disposes the engine and its pooled connections

Usage:
    store = Store("sqlite:///hospital_desk.db")
    store.init()
    with store.session() as db:
        ...
    store.close()
"""
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from hospital_desk.api.database_models import Base
from hospital_desk.logging_config import get_logger

logger = get_logger(__name__)


def _is_in_memory_sqlite(database_url: str) -> bool:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return False
    return url.database in (None, "", ":memory:") or url.query.get("mode") == "memory"


class Store:
    """Owns the SQLAlchemy engine and session factory."""

    def __init__(self, database_url: str):
        """
        Create the engine (no connection is opened yet).

        In-memory SQLite shares a single connection across threads so the
        database survives between sessions and works under the FastAPI test
        client. File-backed SQLite gets a regular pool: each session owns
        its connection, so closing one session never rolls back another
        session's uncommitted write.

        Args:
            database_url: SQLAlchemy connection string
        """
        self.database_url = database_url

        if _is_in_memory_sqlite(database_url):
            self.engine = create_engine(
                database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        elif database_url.startswith("sqlite"):
            self.engine = create_engine(
                database_url,
                connect_args={"check_same_thread": False},
            )
        else:
            self.engine = create_engine(
                database_url,
                pool_pre_ping=True,
                pool_size=5,
                max_overflow=10,
                pool_timeout=30,  # Connection acquisition timeout
            )

        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)
        self._initialized = False

    def init(self) -> None:
        """Create all tables and indexes if they do not exist yet."""
        Base.metadata.create_all(self.engine)
        self._initialized = True
        logger.info("store_initialized", backend=self.engine.dialect.name)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """
        Yield a session; roll back if the block raises.

        Callers commit explicitly.
        """
        db = self.SessionLocal()
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def close(self) -> None:
        """Dispose of pooled connections. Safe to call more than once."""
        self.engine.dispose()
        self._initialized = False
        logger.info("store_closed")

    @property
    def is_initialized(self) -> bool:
        return self._initialized
