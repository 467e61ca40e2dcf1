"""Database engine management"""
import math
from typing import Optional, Union

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.pool import NullPool

# Global engine
_engine: Optional[Engine] = None


def build_engine(
    database_url: Union[str, URL],
    connect_timeout: Optional[float] = None,
    pooled: bool = True,
) -> Engine:
    """
    Create a SQLAlchemy engine.

    Args:
        database_url: Connection URL
        connect_timeout: Seconds to wait when opening a connection
        pooled: Use a connection pool; probes disable it so every check
            opens a new connection

    Returns:
        Engine
    """
    url = make_url(database_url)
    connect_args = {}
    if connect_timeout is not None:
        backend = url.get_backend_name()
        if backend == "postgresql":
            # libpq only accepts whole seconds
            connect_args["connect_timeout"] = max(1, math.ceil(connect_timeout))
        elif backend == "sqlite":
            connect_args["timeout"] = connect_timeout

    if pooled:
        return create_engine(
            url,
            pool_pre_ping=True,  # Verify connections before using
            connect_args=connect_args,
        )
    return create_engine(url, poolclass=NullPool, connect_args=connect_args)


def init_database(database_url: Union[str, URL]) -> Engine:
    """
    Initialize the global database engine.

    Args:
        database_url: PostgreSQL connection URL
    """
    global _engine

    if _engine is not None:
        _engine.dispose()
    _engine = build_engine(database_url)
    return _engine


def get_engine() -> Engine:
    """Get database engine"""
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _engine


def dispose_database() -> None:
    """Dispose the global engine, if any"""
    global _engine
    if _engine is not None:
        _engine.dispose()
        _engine = None
