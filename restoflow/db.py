"""Database engine + session management.

Request handlers use the thread-scoped session from ``get_session()``; CLI
commands and queued jobs open their own via ``get_new_session()``.
"""

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, scoped_session, sessionmaker

from .models import Base

_engine: Engine | None = None
_factory: sessionmaker[Session] | None = None
_registry: scoped_session[Session] | None = None


def _normalize_url(url: str) -> str:
    # Hosted Postgres hands out postgres:// URLs; route them to psycopg v3
    if url.startswith("postgres://"):
        return "postgresql+psycopg://" + url[len("postgres://") :]
    if url.startswith("postgresql://") and "+" not in url.split("://", 1)[1].split("@", 1)[0]:
        return "postgresql+psycopg://" + url[len("postgresql://") :]
    return url


def init_engine(database_url: str) -> Engine:
    """Create the process-wide engine once; later calls return the existing one."""
    global _engine, _factory, _registry
    if _engine is None:
        _engine = create_engine(_normalize_url(database_url), future=True, echo=False)
        _factory = sessionmaker(bind=_engine, autoflush=False, autocommit=False, expire_on_commit=False)
        _registry = scoped_session(_factory)
    return _engine


def get_session() -> Session:
    if _registry is None:
        raise RuntimeError("DB not initialized; call init_engine first")
    return _registry()


def remove_session() -> None:
    if _registry is not None:
        _registry.remove()


def get_new_session() -> Session:
    """A fresh Session outside the thread-scoped registry."""
    if _factory is None:
        raise RuntimeError("DB not initialized; call init_engine first")
    return _factory()


def create_all() -> None:  # tests and scratch databases only; use Alembic otherwise
    if _engine is None:
        raise RuntimeError("Engine not initialized")
    Base.metadata.create_all(_engine)


__all__ = ["init_engine", "get_session", "remove_session", "get_new_session", "create_all"]
