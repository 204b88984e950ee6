"""Database bootstrap helpers."""

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    """Declarative base for SQLAlchemy models."""

    pass


def create_db_engine(
    dsn: str,
    *,
    pool_size: int = 5,
    connect_timeout: float,
    statement_timeout: float,
) -> Engine:
    """Build one pooled engine with explicit driver-level timeouts."""

    url = make_url(dsn)
    backend = url.get_backend_name()
    if backend == "sqlite":
        # In-memory SQLite has to share a single connection across threads.
        kwargs = {"connect_args": {"check_same_thread": False, "timeout": connect_timeout}}
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)

    connect_args = {}
    if backend == "postgresql":
        connect_args = {
            "connect_timeout": max(1, int(connect_timeout)),
            "options": f"-c statement_timeout={int(statement_timeout * 1000)}",
        }
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=pool_size,
        pool_timeout=connect_timeout,
        connect_args=connect_args,
    )


def make_session_factory(engine: Engine) -> sessionmaker:
    # `expire_on_commit=False` keeps ORM objects readable after commit.
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
