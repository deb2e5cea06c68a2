from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker


Base = declarative_base()


def _engine_options(database_url: str) -> Dict[str, Any]:
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        # request handlers run in a threadpool
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


class DatabaseSessionManager:
    """Owns the engine and hands out transactional sessions.

    Sessions keep loaded attributes after commit so records built from them
    stay readable once the session is closed.
    """

    def __init__(self, database_url: str) -> None:
        self._engine = create_engine(database_url, **_engine_options(database_url))
        self._session_factory = sessionmaker(
            bind=self._engine,
            autoflush=False,
            expire_on_commit=False,
        )

    def create_all(self) -> None:
        Base.metadata.create_all(self._engine, checkfirst=True)

    def dispose(self) -> None:
        self._engine.dispose()

    def ping(self) -> None:
        """Round-trips a trivial query; raises if the database is unreachable."""
        with self.session() as session:
            session.execute(text("SELECT 1"))

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yields a session committed on success and rolled back on any error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
