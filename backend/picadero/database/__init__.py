"""
Database engine, session factory, and metadata shared across the application.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, declarative_base, sessionmaker

from picadero.core.config import settings

logger = logging.getLogger(__name__)

_DEFAULT_POOL_KWARGS: dict[str, Any] = {
    "pool_size": 5,
    "max_overflow": 5,
    "pool_timeout": 5,
    # Recycle before managed Postgres poolers drop idle connections
    "pool_recycle": 300,
    "pool_pre_ping": True,
    "future": True,
}


def _build_engine_kwargs(db_url: str) -> dict[str, Any]:
    """Pool tuning only applies to server databases; SQLite uses its own pool."""
    if db_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}, "future": True}
    return dict(_DEFAULT_POOL_KWARGS)


db_url = settings.get_database_url()
engine: Engine = create_engine(db_url, **_build_engine_kwargs(db_url))


@event.listens_for(engine, "connect")
def receive_connect(dbapi_connection: Any, connection_record: Any) -> None:
    connection_record.info["connect_time"] = datetime.now()
    logger.debug("Database connection established")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


__all__ = [
    "Base",
    "SessionLocal",
    "engine",
]
