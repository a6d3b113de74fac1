"""Database connection and session management for the SQL result cache."""

import threading
from typing import Generator, Optional
from contextlib import contextmanager, nullcontext
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from ..config import config
from .models import Base

# Seconds a SQLite writer waits for a competing writer's lock
SQLITE_BUSY_TIMEOUT = 30

UPSERT_DIALECTS = ("sqlite", "postgresql")


def is_memory_url(database_url: str) -> bool:
    """Check if a URL points at an in-process SQLite database."""
    url = make_url(database_url)
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


class Database:
    """Engine and session factory for the result cache.

    An in-memory SQLite database lives on a single connection, so sessions
    on it are serialized. File and server databases get a pooled connection
    per session and rely on the database's own locking.
    """

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or config.DATABASE_URL
        url = make_url(self.database_url)

        if url.get_backend_name() not in UPSERT_DIALECTS:
            raise ValueError(f"Unsupported cache database '{url.get_backend_name()}' "
                             f"(expected one of {', '.join(UPSERT_DIALECTS)})")

        if is_memory_url(self.database_url):
            self.engine = create_engine(
                self.database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
            self._session_lock = threading.Lock()
        elif url.get_backend_name() == "sqlite":
            self.engine = create_engine(
                self.database_url,
                connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT},
            )
            self._session_lock = None
        else:
            self.engine = create_engine(self.database_url, pool_pre_ping=True)
            self._session_lock = None

        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    def create_tables(self):
        """Create the cache table if it does not exist."""
        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Transactional session: commits on success, rolls back on error."""
        with self._session_lock or nullcontext():
            session = self.SessionLocal()
            try:
                yield session
                session.commit()
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

    def close(self):
        self.engine.dispose()


# Global database instance
_db: Optional[Database] = None


def get_db() -> Database:
    """Get or create the global database instance."""
    global _db
    if _db is None:
        _db = Database()
    return _db
