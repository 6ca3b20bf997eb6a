"""Database engine and session factory."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from bronzeledger.core.config import settings
from bronzeledger.core.logging import get_logger

log = get_logger("db")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:  # noqa: ARG001
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine; SQLite gets foreign keys and, in memory, a single shared connection."""
    if not url.startswith("sqlite"):
        return create_engine(url, echo=echo, pool_pre_ping=True)

    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
        kwargs["poolclass"] = StaticPool
    engine = create_engine(url, echo=echo, **kwargs)
    event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def create_session_factory(url: Optional[str] = None, engine: Optional[Engine] = None) -> sessionmaker[Session]:
    engine = engine or create_db_engine(url or settings.DATABASE_URL, echo=settings.sql_echo)
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_db(bind: Engine) -> None:
    """Create every bronze, history and bookkeeping table that is missing."""
    import bronzeledger.models  # noqa: F401  registers every mapped table

    from bronzeledger.models.base import Base

    Base.metadata.create_all(bind)
    log.info(f"Schema ensured on {bind.url.render_as_string(hide_password=True)}")
