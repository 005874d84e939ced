# anta/database.py
from __future__ import annotations

import logging
import math
from typing import Iterator, Optional

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from .config import get_settings

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None


def normalize_url(url: str) -> str:
    url = (url or "").strip()
    if not url:
        raise RuntimeError("DB_URL env var is required")
    # mysql:// would pick the C client; we ship PyMySQL
    if url.startswith("mysql://"):
        url = url.replace("mysql://", "mysql+pymysql://", 1)
    return url


def _sqlite_acos(x):
    if x is None:
        return None
    return math.acos(max(-1.0, min(1.0, x)))


def _sqlite_least(*args):
    values = [a for a in args if a is not None]
    return min(values) if values else None


def register_sqlite_functions(dbapi_conn, _record) -> None:
    """SQLite lacks the math functions MySQL ships; the Haversine query needs them."""
    dbapi_conn.create_function("acos", 1, _sqlite_acos)
    dbapi_conn.create_function("cos", 1, lambda x: None if x is None else math.cos(x))
    dbapi_conn.create_function("sin", 1, lambda x: None if x is None else math.sin(x))
    dbapi_conn.create_function("radians", 1, lambda x: None if x is None else math.radians(x))
    dbapi_conn.create_function("least", -1, _sqlite_least)


def build_engine(url: str, pool_min: int = 2, pool_max: int = 10, echo: bool = False) -> Engine:
    url = normalize_url(url)

    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}, "echo": echo}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, **kwargs)
        event.listen(engine, "connect", register_sqlite_functions)
        return engine

    return create_engine(
        url,
        pool_pre_ping=True,   # auto-reconnect
        pool_size=pool_min,
        max_overflow=max(pool_max - pool_min, 0),
        echo=echo,
    )


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        db = get_settings().db
        _engine = build_engine(db.url, db.pool_min, db.pool_max, db.echo)
        logger.info("Database engine created (pool %d-%d)", db.pool_min, db.pool_max)
    return _engine


def get_session() -> Iterator[Session]:
    with Session(get_engine()) as session:
        yield session


def init_db(engine: Optional[Engine] = None) -> None:
    # Creates tables that don't exist; does not drop/alter
    from . import models  # noqa: F401  (register tables on the metadata)

    SQLModel.metadata.create_all(engine or get_engine())
